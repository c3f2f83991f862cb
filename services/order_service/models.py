from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from shared.config.database import Base


class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (
        UniqueConstraint("business_id", "order_number", name="uq_orders_business_order_number"),
        UniqueConstraint("business_id", "idempotency_key", name="uq_orders_business_idempotency_key"),
    )

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(String, nullable=False, index=True)
    customer_id = Column(Integer, nullable=True, index=True)
    order_number = Column(String(50), nullable=False)
    idempotency_key = Column(String(100), nullable=True)
    status = Column(String(20), nullable=False, default="pending") # see workflow.OrderStatus
    payment_status = Column(String(20), nullable=False, default="unpaid")
    payment_method = Column(String(30), nullable=True)

    # Money. total_amount = max(0, subtotal + tax_amount - discount_amount)
    subtotal = Column(Numeric(12, 2), nullable=False, default=0)
    tax_rate = Column(Numeric(6, 4), nullable=False)
    tax_amount = Column(Numeric(12, 2), nullable=False, default=0)
    discount_amount = Column(Numeric(12, 2), nullable=False, default=0)
    total_amount = Column(Numeric(12, 2), nullable=False, default=0)

    notes = Column(Text, nullable=True)
    shipping_address = Column(JSON, nullable=True)
    billing_address = Column(JSON, nullable=True)
    estimated_delivery_date = Column(Date, nullable=True)
    actual_delivery_date = Column(Date, nullable=True)

    created_by = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    items = relationship(
        "OrderItem",
        back_populates="order",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, nullable=True)
    inventory_id = Column(Integer, nullable=True) # at most one of product_id / inventory_id
    product_name = Column(String(255), nullable=False) # snapshot, survives catalog renames
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    stock_consumed = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    order = relationship("Order", back_populates="items")

    @property
    def total_price(self):
        return self.quantity * self.unit_price


class OrderStatusHistory(Base):
    """Append-only; rows are never updated or deleted in the lifecycle."""
    __tablename__ = "order_status_history"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(20), nullable=False)
    changed_by = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    changed_at = Column(DateTime(timezone=True), server_default=func.now())
