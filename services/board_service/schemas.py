from datetime import datetime
from typing import Optional

from shared.api.models import CamelModel
from services.order_service.schemas import Order


class OrdersPage(CamelModel):
    board: str
    items: list[Order]
    page: int
    total_pages: int
    total: int


class BoardStatus(CamelModel):
    board: str
    online: bool
    loading: bool
    error: Optional[str] = None
    last_loaded_at: Optional[datetime] = None
    size: int
    pending_events: int


class ToastOut(CamelModel):
    kind: str
    message: str
    created_at: datetime


class ReloadResult(CamelModel):
    board: str
    reloaded: bool
    size: int
