from enum import Enum
from typing import Dict, FrozenSet, List

from .schemas import ValidationErrorDetail


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    # Independent of OrderStatus; no transition rules apply.
    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"
    REFUNDED = "refunded"


ORDER_STATUS_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

# Declaration order, used to render allowed sets deterministically
_STATUS_ORDER = list(OrderStatus)

INITIAL_STATUS = OrderStatus.PENDING
INITIAL_HISTORY_NOTE = "Order created"


def allowed_transitions(current: OrderStatus) -> List[OrderStatus]:
    allowed = ORDER_STATUS_TRANSITIONS[OrderStatus(current)]
    return [status for status in _STATUS_ORDER if status in allowed]


def is_terminal(status: OrderStatus) -> bool:
    return not ORDER_STATUS_TRANSITIONS[OrderStatus(status)]


def validate_transition(current: OrderStatus, requested: OrderStatus) -> List[ValidationErrorDetail]:
    """Return the reasons ``current -> requested`` is illegal (empty when legal)."""
    current = OrderStatus(current)
    requested = OrderStatus(requested)
    errors: List[ValidationErrorDetail] = []

    if current == requested:
        errors.append(ValidationErrorDetail(field="status", message="Order is already in this status"))

    allowed = allowed_transitions(current)
    if requested not in allowed:
        allowed_text = ", ".join(status.value for status in allowed) or "none"
        errors.append(ValidationErrorDetail(
            field="status",
            message=(
                f"Cannot change status from {current.value} to {requested.value}. "
                f"Allowed transitions: {allowed_text}"
            ),
        ))
    return errors


def requires_stock_restore(requested: OrderStatus) -> bool:
    """Entering ``cancelled`` hands consumed stock back to inventory."""
    return OrderStatus(requested) == OrderStatus.CANCELLED


def default_history_note(status: OrderStatus) -> str:
    return f"Status changed to {OrderStatus(status).value}"
