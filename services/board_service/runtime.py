import asyncio
from typing import Optional

import structlog

from services.order_service.board import OrderBoard
from services.order_service.hub import OrdersHub

logger = structlog.get_logger(__name__)


class BoardRuntime:
    """Background tasks of one board: reload timer, event consumer and hub listener."""

    def __init__(self, board: OrderBoard, hub: Optional[OrdersHub] = None):
        self.board = board
        self.hub = hub
        self._tasks: list[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return any(not t.done() for t in self._tasks)

    async def start(self) -> None:
        await self.board.load()
        self._tasks = [
            asyncio.create_task(self.board.run_reload_loop(), name=f"{self.board.name}-reload"),
            asyncio.create_task(self.board.reconciler.run(), name=f"{self.board.name}-events"),
        ]
        if self.hub is not None:
            self._tasks.append(asyncio.create_task(self.hub.run(), name=f"{self.board.name}-hub"))
        logger.info("board_started", board=self.board.name, hub=self.hub is not None)

    async def reload(self) -> bool:
        return await self.board.load()

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        logger.info("board_stopped", board=self.board.name)
