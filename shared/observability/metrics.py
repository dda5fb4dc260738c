from prometheus_client import Counter, Histogram, Gauge

# Business Metrics
ecomm_checkout_total = Counter(
    "ecomm_checkout_total", 
    "Total checkouts processed", 
    ["status"] # Labels: 'success', 'failed', 'cancelled'
)

ecomm_checkout_duration_seconds = Histogram(
    "ecomm_checkout_duration_seconds", 
    "Checkout duration in seconds"
)

ecomm_saga_compensation_total = Counter(
    "ecomm_saga_compensation_total", 
    "Total saga compensations triggered", 
    ["step_name"] # Labels: 'reserve_stock', ...
)

ecomm_stock_conflicts_total = Counter(
    "ecomm_stock_conflicts_total",
    "Checkout lines rejected because the conditional stock decrement matched no row"
)

ecomm_reconciliation_items_total = Counter(
    "ecomm_reconciliation_items_total",
    "Stock changes whose outcome is unknown or could not be compensated",
    ["source"] # Labels: 'checkout'
)

ecomm_order_status_transitions_total = Counter(
    "ecomm_order_status_transitions_total",
    "Order status changes applied",
    ["from_status", "to_status"]
)

ecomm_active_carts = Gauge(
    "ecomm_active_carts", 
    "Carts currently holding at least one line"
)
