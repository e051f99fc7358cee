import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:5000")
HUB_URL = os.getenv("HUB_URL", "ws://localhost:5000/hubs/orders")
HUB_GROUP = os.getenv("HUB_GROUP", "admin")

REQUEST_TIMEOUT_SECONDS = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "10"))
RELOAD_INTERVAL_SECONDS = float(os.getenv("RELOAD_INTERVAL_SECONDS", "10"))
SEARCH_DEBOUNCE_SECONDS = float(os.getenv("SEARCH_DEBOUNCE_SECONDS", "0.3"))

KITCHEN_PAGE_SIZE = int(os.getenv("KITCHEN_PAGE_SIZE", "20"))
PAYMENTS_PAGE_SIZE = int(os.getenv("PAYMENTS_PAGE_SIZE", "10"))

# Where role sessions (token + user) are persisted between runs
SESSION_FILE = Path(os.getenv("SESSION_FILE", str(Path.home() / ".cornerapp" / "session.json")))

# Category names whose line items never reach the kitchen board
BEVERAGE_CATEGORIES = frozenset(
    name.strip().lower()
    for name in os.getenv("BEVERAGE_CATEGORIES", "bebida,bebidas,beverage,beverages,drink,drinks").split(",")
    if name.strip()
)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# OTLP gRPC collector for traces (Jaeger by default)
OTLP_ENDPOINT = os.getenv("OTLP_ENDPOINT", "http://localhost:4317")
