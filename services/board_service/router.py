from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from .runtime import BoardRuntime
from .schemas import BoardStatus, OrdersPage, ReloadResult, ToastOut

public_router = APIRouter()


@public_router.get("/health", include_in_schema=False)
async def health_check(request: Request):
    boards = getattr(request.app.state, "boards", {})
    return {"service": "board", "status": "running", "boards": sorted(boards)}


def build_router(name: str) -> APIRouter:
    """Routes for one board, looked up by name in `app.state.boards`."""
    router = APIRouter(prefix=f"/{name}", tags=[name.capitalize()])

    def get_runtime(request: Request) -> BoardRuntime:
        runtime = getattr(request.app.state, "boards", {}).get(name)
        if runtime is None:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=f"The {name} board is not running",
            )
        return runtime

    @router.get("/orders", response_model=OrdersPage)
    async def list_orders(page: int = Query(1), runtime: BoardRuntime = Depends(get_runtime)):
        current = runtime.board.page(page)
        return OrdersPage(
            board=name,
            items=current.items,
            page=current.page,
            total_pages=current.total_pages,
            total=current.total,
        )

    @router.get("/status", response_model=BoardStatus)
    async def board_status(runtime: BoardRuntime = Depends(get_runtime)):
        board = runtime.board
        return BoardStatus(
            board=name,
            online=board.online,
            loading=board.loading,
            error=board.error,
            last_loaded_at=board.last_loaded_at,
            size=len(board.reconciler),
            pending_events=board.reconciler.pending(),
        )

    @router.get("/notifications", response_model=list[ToastOut])
    async def notifications(runtime: BoardRuntime = Depends(get_runtime)):
        return [
            ToastOut(kind=t.kind, message=t.message, created_at=t.created_at)
            for t in runtime.board.notifier.active()
        ]

    @router.post("/reload", response_model=ReloadResult)
    async def reload(runtime: BoardRuntime = Depends(get_runtime)):
        reloaded = await runtime.reload()
        return ReloadResult(board=name, reloaded=reloaded, size=len(runtime.board.reconciler))

    return router
