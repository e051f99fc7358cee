"""
Tests for order membership rules and the order status model
"""

import pytest

from services.order_service.membership import DeliveryMembership, KitchenMembership
from services.order_service.schemas import Order, OrderStatus, can_transition


class TestKitchenMembership:

    @pytest.fixture
    def kitchen(self):
        return KitchenMembership()

    def test_preparing_food_order_is_member(self, kitchen, make_order):
        assert kitchen.is_member(make_order(categories=("Pizzas",)))

    def test_beverage_only_order_is_not_member(self, kitchen, make_order):
        assert not kitchen.is_member(make_order(categories=("Bebida", "bebidas")))

    def test_beverage_match_ignores_case_and_spaces(self, kitchen, make_order):
        assert not kitchen.is_member(make_order(categories=("  BEBIDA ",)))

    def test_mixed_order_is_member(self, kitchen, make_order):
        assert kitchen.is_member(make_order(categories=("bebida", "Hamburguesas")))

    def test_uncategorized_items_count_as_food(self, kitchen, make_order):
        assert kitchen.is_member(make_order(categories=(None,)))

    def test_order_without_items_is_not_member(self, kitchen, make_order):
        assert not kitchen.is_member(make_order(categories=()))

    @pytest.mark.parametrize("status", ["pending", "delivering", "delivered", "completed", "cancelled"])
    def test_other_statuses_are_not_members(self, kitchen, make_order, status):
        assert not kitchen.is_member(make_order(status=status))

    def test_custom_beverage_categories(self, make_order):
        kitchen = KitchenMembership(beverage_categories=["Postres"])
        assert not kitchen.is_member(make_order(categories=("postres",)))
        assert kitchen.is_member(make_order(categories=("bebida",)))


class TestDeliveryMembership:

    def test_assigned_active_orders_are_members(self, make_order):
        courier = DeliveryMembership(7)
        assert courier.is_member(make_order(status="preparing", delivery_person_id=7))
        assert courier.is_member(make_order(status="delivering", delivery_person_id=7))

    def test_other_courier_is_not_member(self, make_order):
        assert not DeliveryMembership(7).is_member(make_order(delivery_person_id=8))

    def test_unassigned_is_not_member(self, make_order):
        assert not DeliveryMembership(7).is_member(make_order(delivery_person_id=None))

    def test_finished_orders_are_not_members(self, make_order):
        courier = DeliveryMembership(7)
        assert not courier.is_member(make_order(status="delivered", delivery_person_id=7))
        assert not courier.is_member(make_order(status="cancelled", delivery_person_id=7))

    def test_no_courier_id_matches_nothing(self, make_order):
        assert not DeliveryMembership(None).is_member(make_order(delivery_person_id=None))


class TestOrderModel:

    def test_pushed_nulls_are_normalized(self):
        order = Order.model_validate({
            "id": 5, "status": "preparing", "items": None, "customerName": None,
            "isArchived": None, "createdAt": None,
        })
        assert order.items == []
        assert order.customer_name == ""
        assert order.is_archived is False
        assert order.created_at.tzinfo is not None

    def test_naive_timestamps_become_utc(self):
        order = Order.model_validate({"id": 5, "status": "pending", "createdAt": "2026-03-01T10:00:00"})
        assert order.created_at.utcoffset().total_seconds() == 0

    def test_snake_case_is_accepted(self):
        order = Order(id=1, status=OrderStatus.PENDING, customer_name="Ana")
        assert order.to_wire()["customerName"] == "Ana"


class TestTransitions:

    def test_forward_moves_are_allowed(self):
        assert can_transition(OrderStatus.PENDING, OrderStatus.PREPARING)
        assert can_transition(OrderStatus.PREPARING, OrderStatus.DELIVERING)
        assert can_transition(OrderStatus.PENDING, OrderStatus.DELIVERED)

    def test_backward_moves_are_rejected(self):
        assert not can_transition(OrderStatus.DELIVERING, OrderStatus.PREPARING)

    def test_cancel_from_any_open_status(self):
        for status in (OrderStatus.PENDING, OrderStatus.PREPARING, OrderStatus.DELIVERING, OrderStatus.DELIVERED):
            assert can_transition(status, OrderStatus.CANCELLED)

    def test_terminal_statuses_are_final(self):
        assert not can_transition(OrderStatus.COMPLETED, OrderStatus.CANCELLED)
        assert not can_transition(OrderStatus.CANCELLED, OrderStatus.PENDING)

    def test_same_status_is_not_a_transition(self):
        assert not can_transition(OrderStatus.PREPARING, OrderStatus.PREPARING)
