"""
Tests for the orders hub client
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest

from services.order_service.hub import (
    RECORD_SEPARATOR,
    HubError,
    MessageType,
    OrdersHub,
    encode_message,
    parse_frames,
    retry_delay,
    to_event,
)
from services.order_service.schemas import OrderCreated, OrderDeleted, OrderStatus, OrderStatusChanged, OrderUpdated

ORDER_PAYLOAD = {
    "id": 11,
    "status": "preparing",
    "customerName": "Ana",
    "items": [{"productName": "Pizza", "categoryName": "Pizzas", "quantity": 1}],
}


def invocation(target, *arguments):
    return {"type": MessageType.INVOCATION, "target": target, "arguments": list(arguments)}


def frame(*messages):
    return "".join(encode_message(m) for m in messages)


class FakeWebSocket:
    """Minimal stand-in for a websockets client connection."""

    def __init__(self, handshake_reply, frames=()):
        self.handshake_reply = handshake_reply
        self.frames = list(frames)
        self.sent = []

    async def send(self, data):
        self.sent.append(data)

    async def recv(self):
        return self.handshake_reply

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for item in self.frames:
            yield item

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False


class TestFraming:

    def test_splits_records(self):
        data = frame({"type": 6}, invocation("OrderDeleted", {"orderId": 3}))
        assert [m["type"] for m in parse_frames(data)] == [6, 1]

    def test_accepts_bytes(self):
        assert parse_frames(b'{"type":6}\x1e') == [{"type": 6}]

    def test_malformed_records_are_skipped(self):
        data = "{not json" + RECORD_SEPARATOR + '{"type":6}' + RECORD_SEPARATOR + "[1,2]" + RECORD_SEPARATOR
        assert parse_frames(data) == [{"type": 6}]

    def test_encoded_message_ends_with_separator(self):
        assert encode_message({"protocol": "json", "version": 1}).endswith(RECORD_SEPARATOR)


class TestEventMapping:

    def test_order_created(self):
        event = to_event(invocation("OrderCreated", ORDER_PAYLOAD))
        assert isinstance(event, OrderCreated)
        assert event.order.customer_name == "Ana"

    def test_order_updated(self):
        assert isinstance(to_event(invocation("OrderUpdated", ORDER_PAYLOAD)), OrderUpdated)

    def test_status_changed(self):
        event = to_event(invocation(
            "OrderStatusChanged",
            {"orderId": 11, "status": "delivering", "deliveryPersonName": "Luis", "timestamp": "2026-03-01T10:00:00Z"},
        ))
        assert isinstance(event, OrderStatusChanged)
        assert event.status == OrderStatus.DELIVERING
        assert event.delivery_person_name == "Luis"

    def test_order_deleted(self):
        event = to_event(invocation("OrderDeleted", {"orderId": 11}))
        assert isinstance(event, OrderDeleted)
        assert event.order_id == 11

    def test_ping_is_not_an_event(self):
        assert to_event({"type": MessageType.PING}) is None

    def test_unknown_target_is_ignored(self):
        assert to_event(invocation("TableUpdated", {"id": 1})) is None

    def test_invalid_payload_is_dropped(self):
        assert to_event(invocation("OrderStatusChanged", {"orderId": 11, "status": "teleported"})) is None

    def test_missing_arguments(self):
        assert to_event(invocation("OrderCreated")) is None


class TestBackoff:

    def test_retry_schedule(self):
        assert [retry_delay(n) for n in range(8)] == [1.0, 2.0, 4.0, 8.0, 16.0, 30.0, 30.0, 30.0]


class TestConnection:

    async def test_connect_once_handshakes_joins_and_dispatches(self):
        received, status = [], []
        ws = FakeWebSocket(
            "{}" + RECORD_SEPARATOR,
            frames=[
                frame({"type": MessageType.PING}, invocation("OrderCreated", ORDER_PAYLOAD)),
                frame({"type": MessageType.CLOSE}),
                frame(invocation("OrderDeleted", {"orderId": 11})),
            ],
        )
        uris = []

        def connect(uri):
            uris.append(uri)
            return ws

        hub = OrdersHub(
            sink=received.append,
            url="ws://backend/hubs/orders",
            group="admin",
            token_provider=lambda: "tok en",
            on_connection_change=status.append,
            connect=connect,
        )
        await hub.connect_once()

        assert uris == ["ws://backend/hubs/orders?access_token=tok+en"]
        handshake, join = [parse_frames(s)[0] for s in ws.sent]
        assert handshake == {"protocol": "json", "version": 1}
        assert join["target"] == "JoinGroup"
        assert join["arguments"] == ["admin"]
        # Nothing after the close message is dispatched
        assert [type(e) for e in received] == [OrderCreated]
        assert status == [True]

    async def test_events_in_handshake_frame_are_dispatched(self):
        received = []
        ws = FakeWebSocket("{}" + RECORD_SEPARATOR + frame(invocation("OrderDeleted", {"orderId": 2})))
        hub = OrdersHub(sink=received.append, connect=lambda uri: ws)

        await hub.connect_once()

        assert [e.order_id for e in received] == [2]

    async def test_rejected_handshake_raises(self):
        ws = FakeWebSocket(json.dumps({"error": "Requested protocol 'json' is not available."}) + RECORD_SEPARATOR)
        hub = OrdersHub(sink=lambda e: None, connect=lambda uri: ws)

        with pytest.raises(HubError):
            await hub.connect_once()

    async def test_run_reconnects_with_backoff(self):
        status = []
        sleep = AsyncMock(side_effect=[None, None, None, asyncio.CancelledError()])

        def connect(uri):
            raise OSError("connection refused")

        hub = OrdersHub(sink=lambda e: None, connect=connect, sleep=sleep, on_connection_change=status.append)

        with pytest.raises(asyncio.CancelledError):
            await hub.run()

        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0, 4.0, 8.0]
        assert status == []
        assert hub.connected is False

    async def test_run_reports_disconnect_and_resets_backoff(self):
        status = []
        sleep = AsyncMock(side_effect=[None, asyncio.CancelledError()])
        sockets = iter([
            FakeWebSocket("{}" + RECORD_SEPARATOR, frames=[frame({"type": MessageType.CLOSE})]),
            FakeWebSocket("{}" + RECORD_SEPARATOR, frames=[]),
        ])
        hub = OrdersHub(sink=lambda e: None, connect=lambda uri: next(sockets), sleep=sleep,
                        on_connection_change=status.append)

        with pytest.raises(asyncio.CancelledError):
            await hub.run()

        assert status == [True, False, True, False]
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 1.0]


class TestMalformedTraffic:

    def test_undecodable_bytes_frame_is_skipped(self):
        assert parse_frames(b"\xff\xfe\x1e") == []

    def test_object_arguments_are_ignored(self):
        message = {"type": MessageType.INVOCATION, "target": "OrderCreated", "arguments": {"id": 1}}
        assert to_event(message) is None

    async def test_bad_frames_do_not_end_the_connection(self):
        received = []
        ws = FakeWebSocket(
            "{}" + RECORD_SEPARATOR,
            frames=[
                b"\xff\xfe\x1e",
                '{"type":1,"target":"OrderCreated","arguments":{"id":1}}\x1e',
                frame(invocation("OrderDeleted", {"orderId": 3})),
            ],
        )
        sleep = AsyncMock(side_effect=asyncio.CancelledError())
        hub = OrdersHub(sink=received.append, connect=lambda uri: ws, sleep=sleep)

        with pytest.raises(asyncio.CancelledError):
            await hub.run()

        assert [e.order_id for e in received] == [3]
        sleep.assert_awaited_once_with(1.0)

    async def test_unexpected_error_schedules_a_reconnect(self):
        status = []
        sleep = AsyncMock(side_effect=[None, asyncio.CancelledError()])

        def broken_sink(event):
            raise RuntimeError("sink bug")

        hub = OrdersHub(
            sink=broken_sink,
            connect=lambda uri: FakeWebSocket(
                "{}" + RECORD_SEPARATOR, frames=[frame(invocation("OrderDeleted", {"orderId": 3}))]
            ),
            sleep=sleep,
            on_connection_change=status.append,
        )

        with pytest.raises(asyncio.CancelledError):
            await hub.run()

        assert status == [True, False, True, False]
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]
        assert hub.connected is False
