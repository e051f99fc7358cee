"""
Board service: runs the kitchen and delivery boards in the background and
serves their reconciled order lists.

Both boards share one ApiClient and one SessionContext. The delivery board
needs a stored delivery session to know whose orders it shows; without one
it is not started and its routes answer 503.
"""
from typing import Optional

import structlog
import websockets
from fastapi import FastAPI

from shared.api import ApiClient
from shared.config.settings import HUB_GROUP, SESSION_FILE
from shared.notifications import Notifier
from shared.observability import setup_observability
from shared.security import Role, SessionContext, SessionStore
from services.order_service.board import DeliveryBoard, KitchenBoard
from services.order_service.hub import OrdersHub
from services.order_service.service import OrderService

from .router import build_router, public_router
from .runtime import BoardRuntime

logger = structlog.get_logger(__name__)

BOARD_NAMES = ("kitchen", "delivery")


def _delivery_token(session: SessionContext) -> Optional[str]:
    current = session.load(Role.DELIVERY)
    return current.token if current else None


def build_boards(
    session: SessionContext,
    client: ApiClient,
    connect=websockets.connect,
    with_hub: bool = True,
) -> dict[str, BoardRuntime]:
    orders = OrderService(client)
    boards: dict[str, BoardRuntime] = {}

    kitchen = KitchenBoard(orders, Notifier())
    kitchen_hub = None
    if with_hub:
        kitchen_hub = OrdersHub(
            sink=kitchen.reconciler.submit,
            group=HUB_GROUP,
            token_provider=session.active_token,
            on_connection_change=kitchen.set_online,
            connect=connect,
        )
    boards["kitchen"] = BoardRuntime(kitchen, kitchen_hub)

    courier = session.load(Role.DELIVERY)
    if courier is None or courier.user_id is None:
        logger.warning("delivery_board_idle", reason="no delivery session")
        return boards

    delivery = DeliveryBoard(orders, Notifier(), delivery_person_id=courier.user_id)
    delivery_hub = None
    if with_hub:
        delivery_hub = OrdersHub(
            sink=delivery.reconciler.submit,
            group=HUB_GROUP,
            token_provider=lambda: _delivery_token(session),
            on_connection_change=delivery.set_online,
            connect=connect,
        )
    boards["delivery"] = BoardRuntime(delivery, delivery_hub)
    return boards


def create_app(
    session: Optional[SessionContext] = None,
    client: Optional[ApiClient] = None,
    connect=websockets.connect,
    observability: bool = True,
) -> FastAPI:
    session = session or SessionContext(SessionStore(SESSION_FILE))
    client = client or ApiClient(session)

    app = FastAPI(title="Corner Ops Boards", version="1.0.0")

    # --- OBSERVABILITY BOOTSTRAP ---
    if observability:
        setup_observability(app, "board_service")

    app.state.boards = {}
    app.include_router(public_router)
    for name in BOARD_NAMES:
        app.include_router(build_router(name))

    @app.on_event("startup")
    async def startup_event():
        app.state.boards = build_boards(session, client, connect=connect)
        for runtime in app.state.boards.values():
            await runtime.start()

    @app.on_event("shutdown")
    async def shutdown_event():
        for runtime in app.state.boards.values():
            await runtime.stop()
        await client.aclose()

    return app
