# streamrokuo_admin/api/live_accounts_routes.py
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from streamrokuo_admin.deps import AdminContext, require_admin
from streamrokuo_admin.errors import InputValidationError
from streamrokuo_admin.format_utils import is_uuid
from streamrokuo_admin.schemas import ALL
from streamrokuo_admin.screens import LiveAccountDetailScreen, LiveAccountsScreen, WatchAction

router = APIRouter(prefix="/live-accounts", tags=["live-accounts"])


@router.get("")
async def list_live_accounts(
    platform: str = Query(""),
    status: str = Query(""),
    page: int = Query(0, ge=0),
    ctx: AdminContext = Depends(require_admin),
):
    screen = LiveAccountsScreen(ctx.client)
    await screen.mount(page=page, platform=platform, status=status)
    return screen.snapshot()


@router.get("/{live_account_id}")
async def live_account_detail(
    live_account_id: str,
    status: str = Query(ALL, description="recording status filter"),
    page: int = Query(0, ge=0),
    ctx: AdminContext = Depends(require_admin),
):
    if not is_uuid(live_account_id):
        raise InputValidationError(LiveAccountDetailScreen.invalid_id_message)

    watch = WatchAction(ctx.watch_client, lambda: ctx.session)
    screen = LiveAccountDetailScreen(ctx.client, live_account_id, watch=watch)
    await screen.mount(status=status, page=page)
    if screen.not_found:
        return JSONResponse(status_code=404, content=screen.snapshot())
    return screen.snapshot()
