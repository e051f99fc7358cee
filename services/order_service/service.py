from typing import Any, Iterable, Optional

import structlog
from pydantic import ValidationError

from shared.api import ApiClient
from shared.api.models import as_list, parse_records
from services.admin_service.schemas import DeliveryPerson

from .schemas import Order, OrderStatus, OrderStatusHistoryItem

logger = structlog.get_logger(__name__)


def parse_orders(items: Iterable[Any]) -> list[Order]:
    return parse_records(Order, items)


def _maybe_order(data: Any) -> Optional[Order]:
    # Status endpoints answer with the order, a wrapper or nothing at all
    if isinstance(data, dict) and isinstance(data.get("order"), dict):
        data = data["order"]
    try:
        return Order.model_validate(data) if data else None
    except ValidationError:
        return None


class OrderService:

    def __init__(self, client: ApiClient):
        self.client = client

    async def active_orders(self) -> list[Order]:
        return parse_orders(as_list(await self.client.get_active_orders()))

    async def courier_orders(self) -> list[Order]:
        """Orders assigned to the logged-in delivery person."""
        return parse_orders(as_list(await self.client.get_delivery_person_orders()))

    async def all_orders(self, show_archived: bool = False) -> list[Order]:
        return parse_orders(as_list(await self.client.get_orders(show_archived=show_archived)))

    async def get_order(self, order_id: int) -> Order:
        return Order.model_validate(await self.client.get_order(order_id))

    async def update_status(
        self, order_id: int, status: OrderStatus, delivery_person_id: Optional[int] = None
    ) -> Optional[Order]:
        data = await self.client.update_order_status(order_id, OrderStatus(status).value, delivery_person_id)
        logger.info("order_status_requested", order_id=order_id, status=OrderStatus(status).value,
                    delivery_person_id=delivery_person_id)
        return _maybe_order(data)

    async def update_courier_status(self, order_id: int, status: OrderStatus) -> Optional[Order]:
        data = await self.client.update_delivery_order_status(order_id, OrderStatus(status).value)
        logger.info("courier_status_requested", order_id=order_id, status=OrderStatus(status).value)
        return _maybe_order(data)

    async def verify_receipt(self, order_id: int, is_verified: bool) -> None:
        await self.client.verify_receipt(order_id, is_verified)
        logger.info("receipt_verification_changed", order_id=order_id, verified=is_verified)

    async def status_history(self, order_id: int) -> list[OrderStatusHistoryItem]:
        return parse_records(OrderStatusHistoryItem, as_list(await self.client.get_order_status_history(order_id)))

    async def active_delivery_persons(self) -> list[DeliveryPerson]:
        return parse_records(DeliveryPerson, as_list(await self.client.get_active_delivery_persons()))
