"""
Kitchen and delivery boards.

A board owns one reconciler and keeps it fresh two ways: hub events go
through the reconciler queue, and a periodic full reload replaces the working
set with the server's current list for the role. A failed reload leaves the
list as it was and raises an error toast; the reload timer keeps going.
"""
import asyncio
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import structlog

from shared.api import ApiError
from shared.config.settings import KITCHEN_PAGE_SIZE, RELOAD_INTERVAL_SECONDS
from shared.notifications import Notifier
from shared.observability import corner_board_reload_total
from services.admin_service.schemas import DeliveryPerson

from .membership import DeliveryMembership, KitchenMembership, MembershipClassifier
from .reconciler import Applied, OrderReconciler, Outcome
from .schemas import Order, OrderStatus, can_transition
from .service import OrderService

logger = structlog.get_logger(__name__)

STATUS_LABELS = {
    OrderStatus.PENDING: "Pending",
    OrderStatus.PREPARING: "Preparing",
    OrderStatus.DELIVERING: "Out for delivery",
    OrderStatus.DELIVERED: "Delivered",
    OrderStatus.COMPLETED: "Completed",
    OrderStatus.CANCELLED: "Cancelled",
}


@dataclass
class Page:
    items: list[Order]
    page: int
    total_pages: int
    total: int


class OrderBoard:
    load_error_message = "Could not load orders"

    def __init__(
        self,
        classifier: MembershipClassifier,
        orders: OrderService,
        notifier: Notifier,
        reload_interval: float = RELOAD_INTERVAL_SECONDS,
        page_size: int = KITCHEN_PAGE_SIZE,
        sleep=asyncio.sleep,
    ):
        self.reconciler = OrderReconciler(classifier)
        self.orders_api = orders
        self.notifier = notifier
        self.reload_interval = reload_interval
        self.page_size = page_size
        self._sleep = sleep

        self.loading = False
        self.error: Optional[str] = None
        self.online = False
        self.last_loaded_at: Optional[datetime] = None

        self.reconciler.add_listener(self.announce)

    @property
    def name(self) -> str:
        return self.reconciler.classifier.name

    @property
    def orders(self) -> list[Order]:
        return self.reconciler.orders

    async def fetch(self) -> list[Order]:
        raise NotImplementedError

    def announce(self, applied: Applied) -> None:
        """Hook for toasts on applied hub events."""

    def set_online(self, connected: bool) -> None:
        self.online = connected

    async def load(self) -> bool:
        self.loading = True
        try:
            orders = await self.fetch()
        except ApiError as e:
            message = e.message or self.load_error_message
            self.error = message
            self.notifier.error(message)
            corner_board_reload_total.labels(board=self.name, status="failed").inc()
            logger.warning("board_reload_failed", board=self.name, error=message, kept=len(self.reconciler))
            return False
        finally:
            self.loading = False

        self.reconciler.replace_all(orders)
        self.error = None
        self.last_loaded_at = datetime.now(timezone.utc)
        corner_board_reload_total.labels(board=self.name, status="success").inc()
        logger.info("board_reloaded", board=self.name, size=len(self.reconciler))
        return True

    async def run_reload_loop(self) -> None:
        """Reloads every `reload_interval` seconds until cancelled."""
        while True:
            await self._sleep(self.reload_interval)
            try:
                await self.load()
            except Exception:
                # Keep the timer alive; the next tick retries
                logger.exception("board_reload_crashed", board=self.name)

    def page(self, number: int = 1) -> Page:
        orders = self.orders
        total_pages = math.ceil(len(orders) / self.page_size) if orders else 0
        if number < 1 or (total_pages and number > total_pages):
            number = 1
        start = (number - 1) * self.page_size
        return Page(orders[start:start + self.page_size], number, total_pages, len(orders))

    async def _run_action(self, call, success_message: str, fallback_error: str) -> bool:
        try:
            await call
        except ApiError as e:
            self.notifier.error(e.message or fallback_error)
            return False
        self.notifier.success(success_message)
        await self.load()
        return True


class KitchenBoard(OrderBoard):
    load_error_message = "Could not load kitchen orders"

    def __init__(self, orders: OrderService, notifier: Notifier, classifier: Optional[KitchenMembership] = None, **kwargs):
        super().__init__(classifier or KitchenMembership(), orders, notifier, **kwargs)
        self.delivery_persons: list[DeliveryPerson] = []

    async def fetch(self) -> list[Order]:
        return await self.orders_api.active_orders()

    async def load(self) -> bool:
        loaded = await super().load()
        await self.refresh_delivery_persons()
        return loaded

    async def refresh_delivery_persons(self) -> None:
        try:
            self.delivery_persons = await self.orders_api.active_delivery_persons()
        except ApiError as e:
            logger.warning("delivery_persons_unavailable", error=e.message)

    def announce(self, applied: Applied) -> None:
        if applied.outcome == Outcome.INSERTED and applied.event.kind == "created":
            order = applied.order
            self.notifier.success(f"New order #{order.id} from {order.customer_name}")
        elif (
            applied.outcome == Outcome.REMOVED
            and applied.event.kind == "status_changed"
            and applied.event.status == OrderStatus.DELIVERING
        ):
            self.notifier.info(f"Order #{applied.event.order_id} is out for delivery")

    async def change_status(self, order: Order, status: OrderStatus, delivery_person_id: Optional[int] = None) -> bool:
        status = OrderStatus(status)
        if not can_transition(order.status, status):
            self.notifier.error(
                f"Order #{order.id} cannot go from {STATUS_LABELS[order.status]} to {STATUS_LABELS[status]}"
            )
            return False
        return await self._run_action(
            self.orders_api.update_status(order.id, status, delivery_person_id),
            f"Status updated to {STATUS_LABELS[status]}",
            "Could not update status",
        )

    async def assign_and_dispatch(self, order: Order, delivery_person_id: Optional[int]) -> bool:
        if not delivery_person_id:
            self.notifier.error("Select a delivery person")
            return False
        return await self.change_status(order, OrderStatus.DELIVERING, delivery_person_id)


class DeliveryBoard(OrderBoard):

    def __init__(self, orders: OrderService, notifier: Notifier, delivery_person_id: Optional[int], **kwargs):
        super().__init__(DeliveryMembership(delivery_person_id), orders, notifier, **kwargs)

    async def fetch(self) -> list[Order]:
        return await self.orders_api.courier_orders()

    def announce(self, applied: Applied) -> None:
        # Assignment usually arrives as an update, not a creation
        if applied.outcome == Outcome.INSERTED:
            self.notifier.success(f"New order #{applied.order.id} assigned")

    async def update_status(self, order: Order, status: OrderStatus) -> bool:
        status = OrderStatus(status)
        label = "Rejected" if status == OrderStatus.CANCELLED else STATUS_LABELS[status]
        return await self._run_action(
            self.orders_api.update_courier_status(order.id, status),
            f"Status updated to {label}",
            "Could not update status",
        )

    async def reject(self, order: Order) -> bool:
        return await self._run_action(
            self.orders_api.update_courier_status(order.id, OrderStatus.CANCELLED),
            f"Order #{order.id} rejected",
            "Could not reject order",
        )
