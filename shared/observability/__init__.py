from .setup import setup_observability, configure_logging
from .metrics import (
    corner_order_events_total,
    corner_board_reload_total,
    corner_board_orders,
    corner_hub_connected,
    corner_hub_reconnects_total,
    corner_api_request_duration_seconds
)
