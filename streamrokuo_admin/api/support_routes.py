# streamrokuo_admin/api/support_routes.py
from fastapi import APIRouter, Depends, HTTPException, Query

from streamrokuo_admin.deps import AdminContext, require_admin
from streamrokuo_admin.errors import BackendError, InputValidationError
from streamrokuo_admin.format_utils import is_uuid
from streamrokuo_admin.schemas import ALL, TicketStatusIn
from streamrokuo_admin.screens import SupportTicketsScreen
from streamrokuo_admin.screens.support_tickets import check_ticket_status
from streamrokuo_admin.services import support_service

router = APIRouter(prefix="/support-tickets", tags=["support"])

NO_ROWS_CODE = "PGRST116"


@router.get("")
async def list_tickets(
    status: str = Query(ALL),
    category: str = Query(ALL),
    search: str = Query(""),
    page: int = Query(0, ge=0),
    ctx: AdminContext = Depends(require_admin),
):
    screen = SupportTicketsScreen(ctx.client)
    await screen.mount(page=page, status=status, category=category, search=search)
    return screen.snapshot()


@router.patch("/{ticket_id}")
async def update_ticket(ticket_id: str, body: TicketStatusIn, ctx: AdminContext = Depends(require_admin)):
    if not is_uuid(ticket_id):
        raise InputValidationError("Invalid ticket ID.")
    next_status = check_ticket_status(body.status.strip().lower())

    try:
        patch = await support_service.update_ticket_status(ctx.client, ticket_id, next_status)
    except BackendError as exc:
        if exc.code == NO_ROWS_CODE:
            raise HTTPException(status_code=404, detail="Ticket not found")
        raise
    return {"id": ticket_id, **patch}
