from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from shared.notifications import Notifier
from shared.security import SessionContext, SessionStore
from services.order_service.schemas import Order
from services.order_service.service import OrderService

BASE_TIME = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def build_order(
    order_id: int = 1,
    status: str = "preparing",
    categories: tuple = ("Pizzas",),
    delivery_person_id: int = None,
    minutes: int = 0,
    **extra,
) -> Order:
    """Order built from a camelCase payload, as the API sends it."""
    payload = {
        "id": order_id,
        "status": status,
        "customerName": f"Customer {order_id}",
        "customerAddress": "Main St 123",
        "total": 100,
        "paymentMethod": "cash",
        "deliveryPersonId": delivery_person_id,
        "createdAt": (BASE_TIME + timedelta(minutes=minutes)).isoformat(),
        "items": [
            {"productName": f"Item {i}", "categoryName": category, "quantity": 1, "unitPrice": 10, "subtotal": 10}
            for i, category in enumerate(categories)
        ],
    }
    payload.update(extra)
    return Order.model_validate(payload)


@pytest.fixture
def make_order():
    return build_order


@pytest.fixture
def notifier():
    return Notifier()


@pytest.fixture
def session():
    return SessionContext(SessionStore())


@pytest.fixture
def order_service():
    service = AsyncMock(spec=OrderService)
    service.active_orders.return_value = []
    service.courier_orders.return_value = []
    service.all_orders.return_value = []
    service.active_delivery_persons.return_value = []
    return service
