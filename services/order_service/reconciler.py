"""
Keeps a view's working list of orders consistent with hub events.

Events go through one FIFO queue and are applied in arrival order. The list
is ordered newest insertion first and never holds the same order id twice.
The membership classifier is consulted on every event, so an order whose
status moved out of the view is dropped even if events were reordered; the
board's periodic reload covers anything the hub never delivered.
"""
import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Optional

import structlog

from shared.observability import corner_order_events_total, corner_board_orders

from .membership import MembershipClassifier
from .schemas import (
    Order,
    OrderCreated,
    OrderDeleted,
    OrderEvent,
    OrderStatusChanged,
    OrderUpdated,
)

logger = structlog.get_logger(__name__)


class Outcome(str, Enum):
    INSERTED = "inserted"
    REPLACED = "replaced"
    REMOVED = "removed"
    IGNORED = "ignored"


@dataclass
class Applied:
    event: OrderEvent
    outcome: Outcome
    order: Optional[Order] = None  # the stored order, or the one just removed


Listener = Callable[[Applied], None]


class OrderReconciler:

    def __init__(self, classifier: MembershipClassifier):
        self.classifier = classifier
        self._orders: list[Order] = []
        self._queue: asyncio.Queue = asyncio.Queue()
        self._listeners: list[Listener] = []

    @property
    def orders(self) -> list[Order]:
        return list(self._orders)

    def __len__(self) -> int:
        return len(self._orders)

    def __contains__(self, order_id: int) -> bool:
        return self._index(order_id) is not None

    def get(self, order_id: int) -> Optional[Order]:
        idx = self._index(order_id)
        return self._orders[idx] if idx is not None else None

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    # --- Inbound queue ---

    def submit(self, event: OrderEvent) -> None:
        self._queue.put_nowait(event)

    def pending(self) -> int:
        return self._queue.qsize()

    def process_pending(self) -> list[Applied]:
        """Applies every queued event now, in arrival order."""
        results = []
        while not self._queue.empty():
            event = self._queue.get_nowait()
            try:
                results.append(self.apply(event))
            finally:
                self._queue.task_done()
        return results

    async def run(self) -> None:
        """Consumer loop; runs until cancelled."""
        while True:
            event = await self._queue.get()
            try:
                self.apply(event)
            except Exception:
                logger.exception("order_event_failed", board=self.classifier.name, kind=getattr(event, "kind", None))
            finally:
                self._queue.task_done()

    # --- Event application ---

    def apply(self, event: OrderEvent) -> Applied:
        if isinstance(event, OrderCreated):
            applied = self._on_created(event)
        elif isinstance(event, OrderUpdated):
            applied = self._on_updated(event)
        elif isinstance(event, OrderStatusChanged):
            applied = self._on_status_changed(event)
        elif isinstance(event, OrderDeleted):
            removed = self._remove(event.order_id)
            applied = Applied(event, Outcome.REMOVED if removed else Outcome.IGNORED, removed)
        else:
            raise TypeError(f"Unsupported order event: {type(event).__name__}")

        corner_order_events_total.labels(
            board=self.classifier.name, kind=event.kind, outcome=applied.outcome.value
        ).inc()
        corner_board_orders.labels(board=self.classifier.name).set(len(self._orders))
        logger.debug(
            "order_event_applied", board=self.classifier.name, kind=event.kind,
            outcome=applied.outcome.value, size=len(self._orders),
        )
        self._notify(applied)
        return applied

    def _on_created(self, event: OrderCreated) -> Applied:
        if not self.classifier.is_member(event.order):
            return Applied(event, Outcome.IGNORED)
        return Applied(event, self._upsert(event.order), event.order)

    def _on_updated(self, event: OrderUpdated) -> Applied:
        if self.classifier.is_member(event.order):
            return Applied(event, self._upsert(event.order), event.order)
        removed = self._remove(event.order.id)
        return Applied(event, Outcome.REMOVED if removed else Outcome.IGNORED, removed)

    def _on_status_changed(self, event: OrderStatusChanged) -> Applied:
        idx = self._index(event.order_id)
        if idx is None:
            # The event carries no full record; a later update or reload brings it in
            return Applied(event, Outcome.IGNORED)

        patched = self._orders[idx].model_copy(update={"status": event.status})
        if self.classifier.is_member(patched):
            self._orders[idx] = patched
            return Applied(event, Outcome.REPLACED, patched)
        del self._orders[idx]
        return Applied(event, Outcome.REMOVED, patched)

    def _notify(self, applied: Applied) -> None:
        for listener in self._listeners:
            try:
                listener(applied)
            except Exception:
                logger.exception("order_listener_failed", board=self.classifier.name)

    # --- List primitives ---

    def _index(self, order_id: int) -> Optional[int]:
        for idx, order in enumerate(self._orders):
            if order.id == order_id:
                return idx
        return None

    def _upsert(self, order: Order) -> Outcome:
        idx = self._index(order.id)
        if idx is None:
            self._orders.insert(0, order)
            return Outcome.INSERTED
        self._orders[idx] = order
        return Outcome.REPLACED

    def _remove(self, order_id: int) -> Optional[Order]:
        idx = self._index(order_id)
        if idx is None:
            return None
        return self._orders.pop(idx)

    def replace_all(self, orders: Iterable[Order]) -> None:
        """Swaps in the server's current list for this view."""
        seen: set[int] = set()
        working = []
        for order in orders:
            if order.id in seen or not self.classifier.is_member(order):
                continue
            seen.add(order.id)
            working.append(order)
        self._orders = working
        corner_board_orders.labels(board=self.classifier.name).set(len(working))
