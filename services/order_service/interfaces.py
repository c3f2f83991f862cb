"""
Storage contracts the order core depends on.

OrderService only ever sees these protocols; the SQLAlchemy classes in
``repository.py`` and the sibling services are one implementation of them.
"""
from datetime import date
from typing import List, Optional, Protocol

from services.customer_service.schemas import CustomerSummary
from services.inventory_service.schemas import StockLevel

from .models import Order, OrderItem, OrderStatusHistory
from .schemas import OrderFilters, OrderTotals, OrderUpdate


class OrderRepository(Protocol):
    async def create_order(self, order: Order, items: List[OrderItem]) -> Order: ...

    async def get_order(self, order_id: int, for_update: bool = False) -> Optional[Order]: ...

    async def get_by_idempotency_key(self, key: str) -> Optional[Order]: ...

    async def list_orders(self, filters: OrderFilters) -> List[Order]: ...

    async def next_order_number(self, on: date) -> str: ...

    async def update_details(self, order: Order, update: OrderUpdate) -> Order: ...

    async def update_totals(self, order: Order, totals: OrderTotals) -> Order: ...

    async def update_status(self, order: Order, expected: str, new: str) -> bool: ...

    async def delete_order(self, order: Order) -> None: ...


class InventoryRepository(Protocol):
    async def get_quantity(self, inventory_id: int) -> Optional[StockLevel]: ...

    async def apply_delta(self, inventory_id: int, delta: int, guard_non_negative: bool = True) -> Optional[int]: ...

    async def record_transaction(
        self,
        inventory_id: int,
        type: str,
        quantity_change: int,
        new_quantity: int,
        notes: Optional[str] = None,
        user_id: Optional[str] = None,
    ): ...


class StatusHistoryRepository(Protocol):
    async def append(self, order_id: int, status: str, actor: Optional[str], notes: Optional[str] = None) -> OrderStatusHistory: ...

    async def list(self, order_id: int) -> List[OrderStatusHistory]: ...


class CustomerLookup(Protocol):
    async def resolve(self, customer_id: int) -> Optional[CustomerSummary]: ...


class UnitOfWork(Protocol):
    """Transaction boundary: leaving ``async with`` cleanly commits, an exception rolls back."""

    orders: OrderRepository
    inventory: InventoryRepository
    history: StatusHistoryRepository
    customers: CustomerLookup

    async def __aenter__(self) -> "UnitOfWork": ...

    async def __aexit__(self, exc_type, exc, tb) -> None: ...

    async def refresh(self, instance): ...
