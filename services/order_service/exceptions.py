"""Order core errors.

Raised by the service layer; the HTTP layer maps each to a status code.
Nothing here is retried automatically: retry policy belongs to the caller.
"""
from typing import List, Optional

from .schemas import (
    InventoryValidationError,
    InventoryValidationWarning,
    ValidationErrorDetail,
)


class OrderError(Exception):
    """Base class for order lifecycle failures."""


class OrderValidationError(OrderError):
    """Request shape or business rules rejected before any write."""

    def __init__(self, errors: List[ValidationErrorDetail]):
        self.errors = errors
        super().__init__("; ".join(f"{e.field}: {e.message}" for e in errors))


class InventoryError(OrderError):
    """Hard stock shortfall; blocks order creation."""

    def __init__(
        self,
        errors: List[InventoryValidationError],
        warnings: Optional[List[InventoryValidationWarning]] = None,
    ):
        self.errors = errors
        self.warnings = warnings or []
        super().__init__("; ".join(e.message for e in errors))


class StatusTransitionError(OrderError):
    """Requested status change is not allowed from the current status."""

    def __init__(self, errors: List[ValidationErrorDetail]):
        self.errors = errors
        super().__init__("; ".join(e.message for e in errors))


class ConcurrencyConflictError(OrderError):
    """A guarded write lost a race with another writer.

    The caller must re-read state and re-validate before retrying.
    """


class OrderNotFoundError(OrderError):
    def __init__(self, order_id: int):
        self.order_id = order_id
        super().__init__(f"Order {order_id} not found")


class PersistenceError(OrderError):
    """The underlying store failed or was unreachable."""
