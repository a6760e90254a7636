# streamrokuo_admin/api/dashboard_routes.py
from fastapi import APIRouter, Depends

from streamrokuo_admin.deps import AdminContext, require_admin
from streamrokuo_admin.screens import DashboardScreen

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard")
async def dashboard(ctx: AdminContext = Depends(require_admin)):
    screen = DashboardScreen(ctx.client)
    await screen.load()
    return screen.snapshot()
