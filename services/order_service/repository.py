from datetime import date, datetime, time, timedelta
from typing import List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Order, OrderItem, OrderStatusHistory
from .schemas import OrderFilters, OrderTotals, OrderUpdate


class SQLAlchemyOrderRepository:
    """Order rows for one business. Flushes, never commits."""

    def __init__(self, db: AsyncSession, business_id: str):
        self.db = db
        self.business_id = business_id

    def _scoped(self):
        return select(Order).where(Order.business_id == self.business_id)

    async def create_order(self, order: Order, items: List[OrderItem]) -> Order:
        order.business_id = self.business_id
        order.items = items
        self.db.add(order)
        await self.db.flush()
        await self.db.refresh(order)
        return order

    async def get_order(self, order_id: int, for_update: bool = False) -> Optional[Order]:
        stmt = self._scoped().where(Order.id == order_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_by_idempotency_key(self, key: str) -> Optional[Order]:
        result = await self.db.execute(self._scoped().where(Order.idempotency_key == key))
        return result.scalars().first()

    async def list_orders(self, filters: OrderFilters) -> List[Order]:
        stmt = self._scoped()
        if filters.status:
            stmt = stmt.where(Order.status.in_(filters.status))
        if filters.payment_status:
            stmt = stmt.where(Order.payment_status.in_(filters.payment_status))
        if filters.customer_id is not None:
            stmt = stmt.where(Order.customer_id == filters.customer_id)
        if filters.date_from:
            stmt = stmt.where(Order.created_at >= datetime.combine(filters.date_from, time.min))
        if filters.date_to:
            stmt = stmt.where(Order.created_at < datetime.combine(filters.date_to + timedelta(days=1), time.min))
        if filters.search:
            stmt = stmt.where(Order.order_number.ilike(f"%{filters.search}%"))

        stmt = stmt.order_by(Order.created_at.desc(), Order.id.desc()).limit(filters.limit).offset(filters.offset)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def next_order_number(self, on: date) -> str:
        """ORD-YYYYMMDD-NNNN, sequence per business per day.

        Two writers can compute the same number; the unique constraint
        turns the loser's flush into a conflict.
        """
        prefix = f"ORD-{on:%Y%m%d}"
        last = await self.db.scalar(
            select(Order.order_number)
            .where(Order.business_id == self.business_id)
            .where(Order.order_number.like(f"{prefix}-%"))
            # Longer tails sort above shorter ones: -10000 comes after -9999
            .order_by(func.length(Order.order_number).desc(), Order.order_number.desc())
            .limit(1)
        )
        sequence = 1
        if last:
            tail = last.rsplit("-", 1)[-1]
            sequence = int(tail) + 1 if tail.isdigit() else 1
        return f"{prefix}-{sequence:04d}"

    async def update_details(self, order: Order, update: OrderUpdate) -> Order:
        fields = update.model_fields_set
        if "payment_status" in fields and update.payment_status is not None:
            order.payment_status = update.payment_status
        if "payment_method" in fields:
            order.payment_method = update.payment_method.lower() if update.payment_method else None
        if "notes" in fields:
            order.notes = update.notes
        if "shipping_address" in fields:
            order.shipping_address = update.shipping_address.model_dump() if update.shipping_address else None
        if "billing_address" in fields:
            order.billing_address = update.billing_address.model_dump() if update.billing_address else None
        if "estimated_delivery_date" in fields:
            order.estimated_delivery_date = update.estimated_delivery_date
        if "actual_delivery_date" in fields:
            order.actual_delivery_date = update.actual_delivery_date
        await self.db.flush()
        return order

    async def update_totals(self, order: Order, totals: OrderTotals) -> Order:
        order.subtotal = totals.subtotal
        order.tax_amount = totals.tax_amount
        order.discount_amount = totals.discount_amount
        order.total_amount = totals.total_amount
        await self.db.flush()
        return order

    async def update_status(self, order: Order, expected: str, new: str) -> bool:
        """Compare-and-set on status; False means another writer got there first."""
        result = await self.db.execute(
            update(Order)
            .where(Order.id == order.id)
            .where(Order.business_id == self.business_id)
            .where(Order.status == expected)
            .values(status=new)
        )
        return result.rowcount == 1

    async def delete_order(self, order: Order) -> None:
        # Administrative path only; history is otherwise never removed.
        await self.db.execute(delete(OrderStatusHistory).where(OrderStatusHistory.order_id == order.id))
        await self.db.delete(order)
        await self.db.flush()


class SQLAlchemyStatusHistoryRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def append(self, order_id: int, status: str, actor: Optional[str], notes: Optional[str] = None) -> OrderStatusHistory:
        entry = OrderStatusHistory(order_id=order_id, status=status, changed_by=actor, notes=notes)
        self.db.add(entry)
        await self.db.flush()
        return entry

    async def list(self, order_id: int) -> List[OrderStatusHistory]:
        result = await self.db.execute(
            select(OrderStatusHistory)
            .where(OrderStatusHistory.order_id == order_id)
            .order_by(OrderStatusHistory.id)
        )
        return list(result.scalars().all())
