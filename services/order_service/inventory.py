"""
Inventory reconciliation for orders.

``check`` is advisory and read-only. ``apply`` is what actually protects
stock: every delta is one guarded write, so a check that went stale between
request and write surfaces as ConcurrencyConflictError instead of negative
stock.
"""
from enum import Enum
from typing import Dict, Iterable, List, Optional

import structlog

from shared.observability import inventory_conflicts_total, stock_restored_units_total

from .exceptions import ConcurrencyConflictError
from .interfaces import InventoryRepository
from .models import OrderItem
from .schemas import (
    InventoryValidation,
    InventoryValidationError,
    InventoryValidationWarning,
)

logger = structlog.get_logger(__name__)


class StockDirection(str, Enum):
    CONSUME = "consume"
    RESTORE = "restore"


TRANSACTION_TYPES = {
    StockDirection.CONSUME: "sale",
    StockDirection.RESTORE: "adjustment",
}


class InventoryReconciler:

    def __init__(self, inventory: InventoryRepository):
        self.inventory = inventory

    async def check(self, items: Iterable) -> InventoryValidation:
        """Compare requested quantities with stock on hand.

        Lines that share an inventory record draw from the same stock, so
        demand is accumulated per record in line order. Untracked lines
        (no inventory_id) are skipped.
        """
        errors: List[InventoryValidationError] = []
        warnings: List[InventoryValidationWarning] = []
        claimed: Dict[int, int] = {}

        for item in items:
            if item.inventory_id is None:
                continue

            requested = int(item.quantity or 0)
            name = item.product_name or f"Inventory item {item.inventory_id}"
            stock = await self.inventory.get_quantity(item.inventory_id)

            if stock is None:
                errors.append(InventoryValidationError(
                    product_id=item.product_id,
                    inventory_id=item.inventory_id,
                    product_name=name,
                    requested_quantity=requested,
                    available_quantity=0,
                    message=f"Inventory item {item.inventory_id} not found for {name}",
                ))
                continue

            available = stock.current_quantity - claimed.get(item.inventory_id, 0)
            claimed[item.inventory_id] = claimed.get(item.inventory_id, 0) + requested

            if available < requested:
                errors.append(InventoryValidationError(
                    product_id=item.product_id,
                    inventory_id=item.inventory_id,
                    product_name=name,
                    requested_quantity=requested,
                    available_quantity=max(available, 0),
                    message=f"Insufficient stock for {name}. Available: {max(available, 0)}, Requested: {requested}",
                ))
            elif available - requested <= stock.low_stock_alert:
                warnings.append(InventoryValidationWarning(
                    product_id=item.product_id,
                    inventory_id=item.inventory_id,
                    product_name=name,
                    message=(
                        f"{name} will be low on stock after this order "
                        f"(remaining: {available - requested}, alert level: {stock.low_stock_alert})"
                    ),
                ))

        return InventoryValidation(is_valid=not errors, errors=errors, warnings=warnings)

    async def apply(
        self,
        items: Iterable[OrderItem],
        direction: StockDirection,
        order_number: str,
        actor: Optional[str] = None,
        note: Optional[str] = None,
    ) -> List[OrderItem]:
        """Consume or restore stock for persisted order lines.

        Only lines whose ``stock_consumed`` flag says the move is still due
        are touched, and the flag flips with the write, so re-applying the
        same direction is a no-op. Returns the lines that moved.
        """
        direction = StockDirection(direction)
        moved: List[OrderItem] = []

        for item in items:
            if item.inventory_id is None:
                continue
            if direction == StockDirection.CONSUME and item.stock_consumed:
                continue
            if direction == StockDirection.RESTORE and not item.stock_consumed:
                continue

            delta = -item.quantity if direction == StockDirection.CONSUME else item.quantity
            new_quantity = await self.inventory.apply_delta(item.inventory_id, delta, guard_non_negative=True)

            if new_quantity is None:
                if direction == StockDirection.RESTORE:
                    # Record deleted since the sale; nothing left to hand stock back to.
                    logger.warning(
                        "inventory_restore_skipped",
                        inventory_id=item.inventory_id,
                        order_number=order_number,
                    )
                    item.stock_consumed = False
                    continue
                await self._raise_conflict(item, direction)

            await self.inventory.record_transaction(
                inventory_id=item.inventory_id,
                type=TRANSACTION_TYPES[direction],
                quantity_change=delta,
                new_quantity=new_quantity,
                notes=note or self._default_note(direction, order_number, item),
                user_id=actor,
            )
            item.stock_consumed = direction == StockDirection.CONSUME
            moved.append(item)
            logger.info(
                "inventory_applied",
                direction=direction.value,
                inventory_id=item.inventory_id,
                quantity_change=delta,
                new_quantity=new_quantity,
                order_number=order_number,
            )

        if direction == StockDirection.RESTORE and moved:
            stock_restored_units_total.inc(sum(item.quantity for item in moved))
        return moved

    async def _raise_conflict(self, item: OrderItem, direction: StockDirection):
        inventory_conflicts_total.labels(direction=direction.value).inc()
        stock = await self.inventory.get_quantity(item.inventory_id)
        if stock is None:
            message = f"Inventory item {item.inventory_id} no longer exists for {item.product_name}"
        else:
            message = (
                f"Stock for {item.product_name} changed concurrently. "
                f"Available: {stock.current_quantity}, Requested: {item.quantity}"
            )
        logger.warning("inventory_conflict", inventory_id=item.inventory_id, detail=message)
        raise ConcurrencyConflictError(message)

    @staticmethod
    def _default_note(direction: StockDirection, order_number: str, item: OrderItem) -> str:
        if direction == StockDirection.CONSUME:
            return f"Sale - Order {order_number} - {item.product_name}"
        return f"Order {order_number} - {item.product_name} - Inventory restored"
