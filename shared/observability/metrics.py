from prometheus_client import Counter, Histogram

# Business Metrics
orders_created_total = Counter(
    "orders_created_total",
    "Total create-order requests processed",
    ["outcome"] # Labels: 'created', 'rejected', 'replayed', 'conflict', 'failed'
)

order_create_duration_seconds = Histogram(
    "order_create_duration_seconds",
    "Create-order duration in seconds"
)

order_status_transitions_total = Counter(
    "order_status_transitions_total",
    "Total order status transitions committed",
    ["status"] # Labels: target status, e.g. 'confirmed', 'cancelled'
)

inventory_conflicts_total = Counter(
    "inventory_conflicts_total",
    "Inventory deltas rejected by the non-negative guard",
    ["direction"] # Labels: 'consume', 'restore'
)

stock_restored_units_total = Counter(
    "stock_restored_units_total",
    "Units handed back to inventory by cancellations and deletions"
)
