from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Literal

import structlog

logger = structlog.get_logger(__name__)

ToastKind = Literal["success", "error", "info"]


@dataclass
class Toast:
    kind: ToastKind
    message: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class Notifier:
    """Transient user-facing notifications.

    Keeps the most recent toasts for a board to render; entries older than
    `ttl` are no longer returned. Every toast is also logged.
    """

    def __init__(self, ttl: timedelta = timedelta(seconds=5), max_items: int = 50):
        self.ttl = ttl
        self._items: deque[Toast] = deque(maxlen=max_items)

    def show(self, message: str, kind: ToastKind = "success") -> Toast:
        toast = Toast(kind=kind, message=message)
        self._items.append(toast)
        if kind == "error":
            logger.warning("toast", kind=kind, message=message)
        else:
            logger.info("toast", kind=kind, message=message)
        return toast

    def success(self, message: str) -> Toast:
        return self.show(message, "success")

    def error(self, message: str) -> Toast:
        return self.show(message, "error")

    def info(self, message: str) -> Toast:
        return self.show(message, "info")

    def active(self, now: datetime = None) -> list[Toast]:
        now = now or datetime.now(timezone.utc)
        return [t for t in self._items if now - t.created_at < self.ttl]

    def history(self) -> list[Toast]:
        return list(self._items)
