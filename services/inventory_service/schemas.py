from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class InventoryItemCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    sku: Optional[str] = Field(default=None, max_length=100)
    current_quantity: int = Field(ge=0)
    low_stock_alert: int = Field(default=0, ge=0)
    cost_per_unit: Optional[Decimal] = Field(default=None, ge=0)


class InventoryItemResponse(BaseModel):
    id: int
    name: str
    sku: Optional[str]
    current_quantity: int
    low_stock_alert: int
    cost_per_unit: Optional[Decimal]

    class Config:
        from_attributes = True


class InventoryTransactionResponse(BaseModel):
    id: int
    inventory_id: int
    user_id: Optional[str]
    type: str
    quantity_change: int
    new_quantity: int
    notes: Optional[str]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class StockLevel(BaseModel):
    """Consistent read of one inventory record's quantity and alert threshold."""
    inventory_id: int
    name: str
    current_quantity: int
    low_stock_alert: int
