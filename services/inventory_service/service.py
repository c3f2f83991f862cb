import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from .models import InventoryItem
from .repository import SQLAlchemyInventoryRepository
from .schemas import InventoryItemCreate

logger = structlog.get_logger(__name__)


class InventoryService:

    @staticmethod
    async def create_item(db: AsyncSession, business_id: str, data: InventoryItemCreate, actor_id: str | None = None):
        repo = SQLAlchemyInventoryRepository(db, business_id)
        item = await repo.create_item(InventoryItem(
            name=data.name,
            sku=data.sku,
            current_quantity=data.current_quantity,
            low_stock_alert=data.low_stock_alert,
            cost_per_unit=data.cost_per_unit,
        ))
        if data.current_quantity:
            await repo.record_transaction(
                inventory_id=item.id,
                type="restock",
                quantity_change=data.current_quantity,
                new_quantity=data.current_quantity,
                notes="Opening stock",
                user_id=actor_id,
            )
        await db.commit()
        logger.info("inventory_item_created", inventory_id=item.id, business_id=business_id)
        return item

    @staticmethod
    async def get_item(db: AsyncSession, business_id: str, inventory_id: int):
        return await SQLAlchemyInventoryRepository(db, business_id).get_item(inventory_id)

    @staticmethod
    async def list_transactions(db: AsyncSession, business_id: str, inventory_id: int):
        return await SQLAlchemyInventoryRepository(db, business_id).list_transactions(inventory_id)
