from typing import Optional

from pydantic import BaseModel


class CustomerSummary(BaseModel):
    """Identity fields copied onto order responses for display."""
    id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None

    class Config:
        from_attributes = True
