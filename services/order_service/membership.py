"""
Membership classifiers: one per staff view.

A classifier decides whether an order belongs in a view's working list. The
reconciler asks it again on every event; nothing is cached.
"""
from typing import Iterable, Optional, Protocol

from shared.config.settings import BEVERAGE_CATEGORIES

from .schemas import Order, OrderItem, OrderStatus


class MembershipClassifier(Protocol):
    name: str

    def is_member(self, order: Order) -> bool:
        ...


class KitchenMembership:
    """Orders being prepared that have something to cook."""

    name = "kitchen"

    def __init__(self, beverage_categories: Iterable[str] = BEVERAGE_CATEGORIES):
        self.beverage_categories = frozenset(c.strip().lower() for c in beverage_categories)

    def is_beverage(self, item: OrderItem) -> bool:
        category = (item.category_name or "").strip().lower()
        return category in self.beverage_categories

    def is_member(self, order: Order) -> bool:
        if order.status != OrderStatus.PREPARING:
            return False
        return any(not self.is_beverage(item) for item in order.items)


class DeliveryMembership:
    """Active orders assigned to one courier."""

    name = "delivery"
    ACTIVE_STATUSES = frozenset({OrderStatus.PREPARING, OrderStatus.DELIVERING})

    def __init__(self, delivery_person_id: Optional[int]):
        self.delivery_person_id = delivery_person_id

    def is_member(self, order: Order) -> bool:
        if self.delivery_person_id is None or order.delivery_person_id != self.delivery_person_id:
            return False
        return order.status in self.ACTIVE_STATUSES
