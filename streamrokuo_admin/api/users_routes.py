# streamrokuo_admin/api/users_routes.py
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from streamrokuo_admin.deps import AdminContext, require_admin
from streamrokuo_admin.errors import InputValidationError
from streamrokuo_admin.format_utils import is_uuid
from streamrokuo_admin.screens import UserDetailScreen, UsersScreen

router = APIRouter(prefix="/users", tags=["users"])


@router.get("")
async def list_users(
    query: str = Query("", description="exact user UUID"),
    page: int = Query(0, ge=0),
    ctx: AdminContext = Depends(require_admin),
):
    screen = UsersScreen(ctx.client)
    await screen.mount(page=page, query=query)
    return screen.snapshot()


@router.get("/{user_id}")
async def user_detail(user_id: str, ctx: AdminContext = Depends(require_admin)):
    if not is_uuid(user_id):
        raise InputValidationError(UserDetailScreen.invalid_id_message)

    screen = UserDetailScreen(ctx.client, user_id)
    await screen.load()
    if screen.not_found:
        return JSONResponse(status_code=404, content=screen.snapshot())
    return screen.snapshot()
