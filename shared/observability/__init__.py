from .setup import setup_observability
from .metrics import (
    orders_created_total,
    order_create_duration_seconds,
    order_status_transitions_total,
    inventory_conflicts_total,
    stock_restored_units_total
)
