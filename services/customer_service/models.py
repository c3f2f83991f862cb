from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.sql import func
from shared.config.database import Base


class Customer(Base):
    """Read-only here: customer records are owned and written elsewhere."""
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(String, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    company = Column(String(255), nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
