from prometheus_client import Counter, Histogram, Gauge

# Reconciliation
corner_order_events_total = Counter(
    "corner_order_events_total",
    "Order hub events applied to a board",
    ["board", "kind", "outcome"]  # outcome: 'inserted', 'replaced', 'removed', 'ignored'
)

corner_board_reload_total = Counter(
    "corner_board_reload_total",
    "Full board reloads",
    ["board", "status"]  # status: 'success', 'failed'
)

corner_board_orders = Gauge(
    "corner_board_orders",
    "Orders currently held in a board's working set",
    ["board"]
)

# Push channel
corner_hub_connected = Gauge(
    "corner_hub_connected",
    "1 while the orders hub connection is up",
    ["group"]
)

corner_hub_reconnects_total = Counter(
    "corner_hub_reconnects_total",
    "Orders hub reconnect attempts",
    ["group"]
)

# Outgoing API calls
corner_api_request_duration_seconds = Histogram(
    "corner_api_request_duration_seconds",
    "Latency of calls to the CornerApp API",
    ["method", "status"]
)
