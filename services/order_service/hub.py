"""
Client for the orders hub (SignalR JSON hub protocol over WebSockets).

Frames are JSON records terminated by 0x1E. After the handshake the client
joins its group and then only listens: OrderCreated / OrderUpdated /
OrderStatusChanged / OrderDeleted invocations become order events and are
handed to the sink (normally OrderReconciler.submit). The connection is
re-established with backoff until the task is cancelled.
"""
import asyncio
import json
from enum import IntEnum
from typing import Any, Callable, Optional
from urllib.parse import urlencode

import structlog
import websockets
from pydantic import ValidationError
from websockets.exceptions import WebSocketException

from shared.config.settings import HUB_GROUP, HUB_URL
from shared.observability import corner_hub_connected, corner_hub_reconnects_total

from .schemas import (
    Order,
    OrderCreated,
    OrderDeleted,
    OrderEvent,
    OrderStatusChanged,
    OrderUpdated,
)

logger = structlog.get_logger(__name__)

RECORD_SEPARATOR = "\x1e"
HANDSHAKE = {"protocol": "json", "version": 1}
HANDSHAKE_TIMEOUT_SECONDS = 10.0


class MessageType(IntEnum):
    INVOCATION = 1
    STREAM_ITEM = 2
    COMPLETION = 3
    STREAM_INVOCATION = 4
    CANCEL_INVOCATION = 5
    PING = 6
    CLOSE = 7


class HubError(Exception):
    pass


def encode_message(message: dict[str, Any]) -> str:
    return json.dumps(message) + RECORD_SEPARATOR


def parse_frames(data: str | bytes) -> list[dict[str, Any]]:
    """Splits a transport frame into hub messages; malformed records are skipped."""
    if isinstance(data, bytes):
        try:
            data = data.decode("utf-8")
        except UnicodeDecodeError:
            logger.warning("hub_frame_malformed", size=len(data))
            return []
    messages = []
    for record in data.split(RECORD_SEPARATOR):
        if not record.strip():
            continue
        try:
            message = json.loads(record)
        except ValueError:
            logger.warning("hub_frame_malformed", record=record[:200])
            continue
        if isinstance(message, dict):
            messages.append(message)
    return messages


def to_event(message: dict[str, Any]) -> Optional[OrderEvent]:
    """Maps one invocation message to an order event, or None."""
    if message.get("type") != MessageType.INVOCATION:
        return None
    target = message.get("target")
    args = message.get("arguments")
    if not isinstance(args, list) or not args:
        return None

    payload = args[0]
    try:
        if target == "OrderCreated":
            return OrderCreated(order=Order.model_validate(payload))
        if target == "OrderUpdated":
            return OrderUpdated(order=Order.model_validate(payload))
        if target == "OrderStatusChanged":
            return OrderStatusChanged.model_validate(payload)
        if target == "OrderDeleted":
            return OrderDeleted.model_validate(payload)
    except ValidationError as e:
        logger.warning("hub_event_invalid", target=target, errors=e.errors(include_url=False))
        return None

    logger.debug("hub_target_ignored", target=target)
    return None


def retry_delay(attempt: int) -> float:
    # 1, 2, 4, 8, 16 seconds, then every 30 seconds
    if attempt < 5:
        return float(2 ** attempt)
    return 30.0


class OrdersHub:

    def __init__(
        self,
        sink: Callable[[OrderEvent], None],
        url: str = HUB_URL,
        group: str = HUB_GROUP,
        token_provider: Optional[Callable[[], Optional[str]]] = None,
        on_connection_change: Optional[Callable[[bool], None]] = None,
        connect=websockets.connect,
        sleep=asyncio.sleep,
    ):
        self.sink = sink
        self.url = url
        self.group = group
        self.token_provider = token_provider
        self.on_connection_change = on_connection_change
        self._connect = connect
        self._sleep = sleep
        self._invocation_id = 0
        self.connected = False

    def _uri(self) -> str:
        token = self.token_provider() if self.token_provider else None
        if not token:
            return self.url
        sep = "&" if "?" in self.url else "?"
        return f"{self.url}{sep}{urlencode({'access_token': token})}"

    def _set_connected(self, connected: bool) -> None:
        if connected == self.connected:
            return
        self.connected = connected
        corner_hub_connected.labels(group=self.group).set(1 if connected else 0)
        logger.info("hub_connection_changed", group=self.group, connected=connected)
        if self.on_connection_change:
            self.on_connection_change(connected)

    async def _handshake(self, ws) -> list[dict[str, Any]]:
        await ws.send(encode_message(HANDSHAKE))
        raw = await asyncio.wait_for(ws.recv(), timeout=HANDSHAKE_TIMEOUT_SECONDS)
        messages = parse_frames(raw)
        if not messages:
            raise HubError("Empty handshake response")
        if messages[0].get("error"):
            raise HubError(f"Handshake rejected: {messages[0]['error']}")
        # Anything after the handshake record is already hub traffic
        return messages[1:]

    async def _join_group(self, ws) -> None:
        self._invocation_id += 1
        await ws.send(encode_message({
            "type": MessageType.INVOCATION,
            "invocationId": str(self._invocation_id),
            "target": "JoinGroup",
            "arguments": [self.group],
        }))

    def _dispatch(self, message: dict[str, Any]) -> bool:
        """Handles one hub message. Returns False when the server closed the hub."""
        msg_type = message.get("type")
        if msg_type == MessageType.CLOSE:
            logger.info("hub_closed_by_server", error=message.get("error"))
            return False
        if msg_type == MessageType.COMPLETION and message.get("error"):
            logger.warning("hub_invocation_failed", invocation_id=message.get("invocationId"), error=message["error"])
            return True
        event = to_event(message)
        if event is not None:
            self.sink(event)
        return True

    async def listen(self, ws) -> None:
        async for raw in ws:
            for message in parse_frames(raw):
                if not self._dispatch(message):
                    return

    async def connect_once(self) -> None:
        """One connection lifetime: handshake, join, listen until closed."""
        async with self._connect(self._uri()) as ws:
            leftover = await self._handshake(ws)
            await self._join_group(ws)
            self._set_connected(True)
            for message in leftover:
                if not self._dispatch(message):
                    return
            await self.listen(ws)

    async def run(self) -> None:
        """Keeps the hub connected until cancelled."""
        attempt = 0
        while True:
            try:
                await self.connect_once()
                attempt = 0
            except (OSError, asyncio.TimeoutError, WebSocketException, HubError) as e:
                logger.warning("hub_connection_failed", url=self.url, attempt=attempt, error=str(e))
            except Exception:
                logger.exception("hub_listener_crashed", url=self.url, attempt=attempt)
            finally:
                self._set_connected(False)

            delay = retry_delay(attempt)
            attempt += 1
            corner_hub_reconnects_total.labels(group=self.group).inc()
            await self._sleep(delay)
