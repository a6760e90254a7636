# streamrokuo_admin/api/recordings_routes.py
import logging

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from streamrokuo_admin.deps import AdminContext, require_admin
from streamrokuo_admin.errors import InputValidationError
from streamrokuo_admin.format_utils import is_uuid
from streamrokuo_admin.schemas import ALL
from streamrokuo_admin.screens import RecordingsScreen, WatchAction
from streamrokuo_admin.screens.watch import NO_SESSION

log = logging.getLogger("streamrokuo_admin.recordings_routes")

router = APIRouter(prefix="/recordings", tags=["recordings"])

# grants are never cached or sent on as a referrer
GRANT_HEADERS = {"Referrer-Policy": "no-referrer", "Cache-Control": "no-store"}


@router.get("")
async def list_recordings(
    status_filter: str = Query(ALL, alias="status"),
    platform: str = Query(""),
    live_account_id: str = Query(""),
    page: int = Query(0, ge=0),
    ctx: AdminContext = Depends(require_admin),
):
    screen = RecordingsScreen(ctx.client)
    await screen.mount(page=page, status=status_filter, platform=platform, live_account_id=live_account_id)
    return screen.snapshot()


@router.get("/{recording_id}/watch-url")
async def watch_url(recording_id: str, ctx: AdminContext = Depends(require_admin)):
    if not is_uuid(recording_id):
        raise InputValidationError("Invalid recording ID.")

    action = WatchAction(ctx.watch_client, lambda: ctx.session)
    grant = await action.watch(recording_id)
    if grant is None:
        log.info("Watch URL refused recording=%s: %s", recording_id, action.watch_error)
        code = status.HTTP_401_UNAUTHORIZED if action.watch_error == NO_SESSION else status.HTTP_502_BAD_GATEWAY
        return JSONResponse(status_code=code, content={"detail": action.watch_error}, headers=GRANT_HEADERS)
    return JSONResponse(content=grant.model_dump(), headers=GRANT_HEADERS)
