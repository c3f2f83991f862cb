from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.sql import func
from shared.config.database import Base


class InventoryItem(Base):
    __tablename__ = "inventory_items"

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(String, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    sku = Column(String(100), nullable=True)
    current_quantity = Column(Integer, nullable=False, default=0) # never negative, guarded on every write
    low_stock_alert = Column(Integer, nullable=False, default=0)
    cost_per_unit = Column(Numeric(12, 2), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class InventoryTransaction(Base):
    """Immutable stock ledger row; one per applied delta."""
    __tablename__ = "inventory_transactions"

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(String, nullable=False, index=True)
    inventory_id = Column(Integer, ForeignKey("inventory_items.id"), nullable=False, index=True)
    user_id = Column(String, nullable=True)
    type = Column(String(20), nullable=False) # sale, adjustment, restock
    quantity_change = Column(Integer, nullable=False)
    new_quantity = Column(Integer, nullable=False)
    notes = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
