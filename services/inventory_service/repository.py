from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import InventoryItem, InventoryTransaction
from .schemas import StockLevel


class SQLAlchemyInventoryRepository:
    """Stock reads and guarded deltas for one business.

    Never commits: the caller's unit of work owns the transaction.
    """

    def __init__(self, db: AsyncSession, business_id: str):
        self.db = db
        self.business_id = business_id

    async def create_item(self, item: InventoryItem) -> InventoryItem:
        item.business_id = self.business_id
        self.db.add(item)
        await self.db.flush()
        await self.db.refresh(item)
        return item

    async def get_item(self, inventory_id: int) -> Optional[InventoryItem]:
        result = await self.db.execute(
            select(InventoryItem)
            .where(InventoryItem.id == inventory_id)
            .where(InventoryItem.business_id == self.business_id)
        )
        return result.scalars().first()

    async def get_quantity(self, inventory_id: int) -> Optional[StockLevel]:
        # Column select rather than entity load: a stale identity-map copy
        # must never stand in for the stored quantity.
        result = await self.db.execute(
            select(
                InventoryItem.id,
                InventoryItem.name,
                InventoryItem.current_quantity,
                InventoryItem.low_stock_alert,
            )
            .where(InventoryItem.id == inventory_id)
            .where(InventoryItem.business_id == self.business_id)
        )
        row = result.first()
        if row is None:
            return None
        return StockLevel(
            inventory_id=row.id,
            name=row.name,
            current_quantity=row.current_quantity,
            low_stock_alert=row.low_stock_alert,
        )

    async def apply_delta(self, inventory_id: int, delta: int, guard_non_negative: bool = True) -> Optional[int]:
        """Atomically add ``delta`` to the stored quantity.

        Returns the resulting quantity, or None when no row matched: the
        record is missing or, with the guard on, the write would have driven
        the quantity below zero.
        """
        stmt = (
            update(InventoryItem)
            .where(InventoryItem.id == inventory_id)
            .where(InventoryItem.business_id == self.business_id)
        )
        if guard_non_negative:
            stmt = stmt.where(InventoryItem.current_quantity + delta >= 0)
        stmt = stmt.values(
            current_quantity=InventoryItem.current_quantity + delta
        ).execution_options(synchronize_session=False)

        result = await self.db.execute(stmt)
        if result.rowcount == 0:
            return None

        return await self.db.scalar(
            select(InventoryItem.current_quantity).where(InventoryItem.id == inventory_id)
        )

    async def record_transaction(
        self,
        inventory_id: int,
        type: str,
        quantity_change: int,
        new_quantity: int,
        notes: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> InventoryTransaction:
        entry = InventoryTransaction(
            business_id=self.business_id,
            inventory_id=inventory_id,
            user_id=user_id,
            type=type,
            quantity_change=quantity_change,
            new_quantity=new_quantity,
            notes=notes,
        )
        self.db.add(entry)
        await self.db.flush()
        return entry

    async def list_transactions(self, inventory_id: int) -> list[InventoryTransaction]:
        result = await self.db.execute(
            select(InventoryTransaction)
            .where(InventoryTransaction.inventory_id == inventory_id)
            .where(InventoryTransaction.business_id == self.business_id)
            .order_by(InventoryTransaction.id)
        )
        return list(result.scalars().all())
