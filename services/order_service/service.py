from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Callable, Iterable, List, Optional

import structlog

from shared.observability import (
    order_create_duration_seconds,
    order_status_transitions_total,
    orders_created_total,
)

from .exceptions import (
    ConcurrencyConflictError,
    InventoryError,
    OrderNotFoundError,
    OrderValidationError,
    PersistenceError,
    StatusTransitionError,
)
from .interfaces import UnitOfWork
from .inventory import InventoryReconciler, StockDirection
from .models import Order, OrderItem
from .money import MAX_ROUNDABLE, to_cents
from .schemas import (
    InventoryValidation,
    InventoryValidationWarning,
    OrderCreate,
    OrderFilters,
    OrderItemCreate,
    OrderResponse,
    OrderTotals,
    OrderUpdate,
    StatusHistoryResponse,
    ValidationErrorDetail,
)
from .totals import calculate_order_total, calculate_subtotal
from .validators import validate_order, validate_order_item, validate_update_order_request
from .workflow import (
    INITIAL_HISTORY_NOTE,
    INITIAL_STATUS,
    OrderStatus,
    default_history_note,
    requires_stock_restore,
    validate_transition,
)

logger = structlog.get_logger(__name__)

DELETABLE_STATUSES = (OrderStatus.PENDING.value, OrderStatus.CANCELLED.value)


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


class OrderService:
    """Order lifecycle: create, advance status, edit, and administrative delete.

    Every mutating operation runs inside one ``async with self.uow`` block, so
    the order row, its items, stock deltas and history rows commit or roll
    back together.
    """

    def __init__(self, uow: UnitOfWork, tax_rate: Decimal, today: Callable[[], date] = utc_today):
        self.uow = uow
        self.tax_rate = Decimal(tax_rate)
        self.today = today
        self.reconciler = InventoryReconciler(uow.inventory)

    # --- pricing and checks (no writes) ---

    def calculate_order_total(self, items: Iterable, discount_amount: Optional[Decimal] = None) -> OrderTotals:
        return calculate_order_total(items, discount_amount, self.tax_rate)

    def preview_totals(self, items: List[OrderItemCreate], discount_amount: Optional[Decimal] = None) -> OrderTotals:
        """Totals for an order form that has not been submitted yet.

        Lines are checked first, so an out-of-range value comes back as a
        field error rather than a price.
        """
        errors: List[ValidationErrorDetail] = []
        for index, item in enumerate(items):
            errors.extend(validate_order_item(item, f"items[{index}]").errors)
        if discount_amount is not None and not 0 <= discount_amount < MAX_ROUNDABLE:
            errors.append(ValidationErrorDetail(field="discount_amount", message="Discount amount is out of range"))
        if errors:
            raise OrderValidationError(errors)
        return self.calculate_order_total(items, discount_amount)

    async def validate_inventory(self, items: Iterable) -> InventoryValidation:
        return await self.reconciler.check(items)

    # --- create ---

    async def create_order(self, request: OrderCreate, actor: Optional[str] = None) -> OrderResponse:
        with order_create_duration_seconds.time():
            try:
                response = await self._create_order(request, actor)
            except (OrderValidationError, InventoryError):
                orders_created_total.labels(outcome="rejected").inc()
                raise
            except ConcurrencyConflictError:
                orders_created_total.labels(outcome="conflict").inc()
                raise
            except PersistenceError:
                orders_created_total.labels(outcome="failed").inc()
                raise
        return response

    async def _create_order(self, request: OrderCreate, actor: Optional[str]) -> OrderResponse:
        validation = validate_order(request, self.today())
        if not validation.is_valid:
            logger.info("order_rejected", reason="validation", errors=len(validation.errors))
            raise OrderValidationError(validation.errors)

        async with self.uow:
            if request.idempotency_key:
                existing = await self.uow.orders.get_by_idempotency_key(request.idempotency_key)
                if existing is not None:
                    if not self._same_request(existing, request):
                        logger.warning(
                            "order_replay_mismatch",
                            order_id=existing.id,
                            idempotency_key=request.idempotency_key,
                        )
                        raise OrderValidationError([ValidationErrorDetail(
                            field="idempotency_key",
                            message="Idempotency key was already used for a different order",
                        )])
                    logger.info("order_create_replayed", order_id=existing.id, order_number=existing.order_number)
                    orders_created_total.labels(outcome="replayed").inc()
                    customer = await self._resolve_customer(existing.customer_id)
                    return self._to_response(existing, customer)

            customer = None
            if request.customer_id is not None:
                customer = await self.uow.customers.resolve(request.customer_id)
                if customer is None:
                    raise OrderValidationError([
                        ValidationErrorDetail(field="customer_id", message="Customer not found")
                    ])

            stock = await self.reconciler.check(request.items)
            if not stock.is_valid:
                logger.info("order_rejected", reason="inventory", errors=len(stock.errors))
                raise InventoryError(stock.errors, stock.warnings)

            totals = self.calculate_order_total(request.items, request.discount_amount)
            order_number = await self.uow.orders.next_order_number(self.today())

            order = Order(
                customer_id=request.customer_id,
                order_number=order_number,
                idempotency_key=request.idempotency_key,
                status=INITIAL_STATUS.value,
                payment_status="unpaid",
                payment_method=request.payment_method.lower() if request.payment_method else None,
                subtotal=totals.subtotal,
                tax_rate=self.tax_rate,
                tax_amount=totals.tax_amount,
                discount_amount=totals.discount_amount,
                total_amount=totals.total_amount,
                notes=request.notes,
                shipping_address=request.shipping_address.model_dump() if request.shipping_address else None,
                billing_address=request.billing_address.model_dump() if request.billing_address else None,
                estimated_delivery_date=request.estimated_delivery_date,
                created_by=actor,
            )
            items = [
                OrderItem(
                    product_id=item.product_id,
                    inventory_id=item.inventory_id,
                    product_name=item.product_name.strip(),
                    quantity=int(item.quantity),
                    unit_price=item.unit_price,
                    stock_consumed=False,
                )
                for item in request.items
            ]
            order = await self.uow.orders.create_order(order, items)
            await self.reconciler.apply(order.items, StockDirection.CONSUME, order_number, actor)
            await self.uow.history.append(order.id, INITIAL_STATUS.value, actor, INITIAL_HISTORY_NOTE)

        await self.uow.refresh(order)
        orders_created_total.labels(outcome="created").inc()
        logger.info(
            "order_created",
            order_id=order.id,
            order_number=order.order_number,
            total_amount=str(order.total_amount),
            items=len(order.items),
        )
        return self._to_response(order, customer, stock.warnings)

    # --- status workflow ---

    async def advance_status(
        self,
        order_id: int,
        new_status: OrderStatus,
        actor: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> OrderResponse:
        new_status = OrderStatus(new_status)

        async with self.uow:
            order = await self._load_for_update(order_id)
            current = order.status

            errors = validate_transition(current, new_status)
            if errors:
                logger.info("status_transition_rejected", order_id=order_id, current=current, requested=new_status.value)
                raise StatusTransitionError(errors)

            if not await self.uow.orders.update_status(order, current, new_status.value):
                raise ConcurrencyConflictError(
                    f"Order {order.order_number} changed status concurrently; re-read before retrying"
                )

            if requires_stock_restore(new_status):
                await self.reconciler.apply(
                    order.items,
                    StockDirection.RESTORE,
                    order.order_number,
                    actor,
                    note=f"Order {order.order_number} cancelled - Inventory restored",
                )

            await self.uow.history.append(order.id, new_status.value, actor, notes or default_history_note(new_status))

        await self.uow.refresh(order)
        order_status_transitions_total.labels(status=new_status.value).inc()
        logger.info("order_status_advanced", order_id=order.id, from_status=current, to_status=new_status.value)
        customer = await self._resolve_customer(order.customer_id)
        return self._to_response(order, customer)

    # --- edits outside the workflow ---

    async def update_order(self, order_id: int, update: OrderUpdate, actor: Optional[str] = None) -> OrderResponse:
        async with self.uow:
            order = await self._load_for_update(order_id)

            errors = list(validate_update_order_request(update, order.estimated_delivery_date).errors)
            discount_changed = "discount_amount" in update.model_fields_set and update.discount_amount is not None
            if discount_changed and not errors:
                if order.status != OrderStatus.PENDING.value:
                    errors.append(ValidationErrorDetail(
                        field="discount_amount",
                        message="Discount can only be changed while the order is pending",
                    ))
                elif update.discount_amount > calculate_subtotal(order.items):
                    errors.append(ValidationErrorDetail(
                        field="discount_amount",
                        message="Discount amount cannot exceed order subtotal",
                    ))
            if errors:
                raise OrderValidationError(errors)

            await self.uow.orders.update_details(order, update)
            if discount_changed:
                totals = calculate_order_total(order.items, update.discount_amount, order.tax_rate)
                await self.uow.orders.update_totals(order, totals)

        await self.uow.refresh(order)
        logger.info("order_updated", order_id=order.id, fields=sorted(update.model_fields_set), actor=actor)
        customer = await self._resolve_customer(order.customer_id)
        return self._to_response(order, customer)

    async def delete_order(self, order_id: int, actor: Optional[str] = None) -> None:
        """Administrative hard delete of a pending or cancelled order."""
        async with self.uow:
            order = await self._load_for_update(order_id)
            if order.status not in DELETABLE_STATUSES:
                raise StatusTransitionError([
                    ValidationErrorDetail(field="status", message="Can only delete pending or cancelled orders")
                ])

            await self.reconciler.apply(
                order.items,
                StockDirection.RESTORE,
                order.order_number,
                actor,
                note=f"Order {order.order_number} deleted - Inventory restored",
            )
            await self.uow.orders.delete_order(order)

        logger.warning("order_deleted", order_id=order_id, order_number=order.order_number, actor=actor)

    # --- reads ---

    async def get_order(self, order_id: int) -> OrderResponse:
        async with self.uow:
            order = await self.uow.orders.get_order(order_id)
            if order is None:
                raise OrderNotFoundError(order_id)
            customer = await self._resolve_customer(order.customer_id)
        return self._to_response(order, customer)

    async def list_orders(self, filters: OrderFilters) -> List[OrderResponse]:
        async with self.uow:
            orders = await self.uow.orders.list_orders(filters)
            customers = {}
            for customer_id in {o.customer_id for o in orders if o.customer_id is not None}:
                customers[customer_id] = await self.uow.customers.resolve(customer_id)
        return [self._to_response(order, customers.get(order.customer_id)) for order in orders]

    async def get_status_history(self, order_id: int) -> List[StatusHistoryResponse]:
        async with self.uow:
            order = await self.uow.orders.get_order(order_id)
            if order is None:
                raise OrderNotFoundError(order_id)
            rows = await self.uow.history.list(order_id)
        return [StatusHistoryResponse.model_validate(row) for row in rows]

    # --- helpers ---

    async def _load_for_update(self, order_id: int) -> Order:
        order = await self.uow.orders.get_order(order_id, for_update=True)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    async def _resolve_customer(self, customer_id: Optional[int]):
        if customer_id is None:
            return None
        return await self.uow.customers.resolve(customer_id)

    @staticmethod
    def _same_request(order: Order, request: OrderCreate) -> bool:
        """Whether a retried create asks for the order that was stored under its key."""
        def line(product_id, inventory_id, name, quantity, unit_price):
            return (product_id, inventory_id, (name or "").strip(), int(quantity), to_cents(unit_price))

        stored = [
            line(i.product_id, i.inventory_id, i.product_name, i.quantity, i.unit_price)
            for i in order.items
        ]
        requested = [
            line(i.product_id, i.inventory_id, i.product_name, i.quantity, i.unit_price)
            for i in request.items
        ]
        return (
            order.customer_id == request.customer_id
            and stored == requested
            and order.discount_amount == to_cents(request.discount_amount or Decimal("0"))
        )

    @staticmethod
    def _to_response(order: Order, customer=None, warnings: Iterable[InventoryValidationWarning] = ()) -> OrderResponse:
        response = OrderResponse.model_validate(order)
        extra = {"warnings": list(warnings)}
        if customer is not None:
            extra.update(
                customer_name=customer.name,
                customer_email=customer.email,
                customer_phone=customer.phone,
            )
        return response.model_copy(update=extra)
