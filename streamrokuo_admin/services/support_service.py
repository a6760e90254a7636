# streamrokuo_admin/services/support_service.py
import logging
from typing import Any, Dict, List, Tuple

from streamrokuo_admin.backend import PostgrestClient
from streamrokuo_admin.format_utils import escape_like, is_uuid, quote_filter_value
from streamrokuo_admin.schemas import ALL, SupportTicketRow, rows_of

log = logging.getLogger("streamrokuo_admin.support_service")

ID_COLUMNS = ("user_id", "id")
TEXT_COLUMNS = ("subject", "email")


def search_expression(search: str) -> str:
    """
    Identifier-shaped input matches user_id OR id exactly; anything else is a
    case-insensitive substring match over subject/email with wildcards escaped.
    """
    term = search.strip()
    if is_uuid(term):
        return ",".join(f"{col}.eq.{term}" for col in ID_COLUMNS)
    pattern = quote_filter_value(f"%{escape_like(term)}%")
    return ",".join(f"{col}.ilike.{pattern}" for col in TEXT_COLUMNS)


async def list_tickets(
    client: PostgrestClient,
    *,
    start: int,
    end: int,
    status: str = ALL,
    category: str = ALL,
    search: str = "",
) -> Tuple[List[SupportTicketRow], int]:
    query = (
        client.table("support_tickets")
        .select("*", count="exact")
        .order("created_at", desc=True)
        .range(start, end)
    )
    if status != ALL:
        query = query.eq("status", status)
    if category != ALL:
        query = query.eq("category", category)
    if search.strip():
        query = query.or_(search_expression(search))
    result = await query.execute()
    return rows_of(SupportTicketRow, result.data), result.count or 0


async def update_ticket_status(client: PostgrestClient, ticket_id: str, status: str) -> Dict[str, Any]:
    """Write the new status; returns only the fields the backend echoed back."""
    result = await (
        client.table("support_tickets")
        .update({"status": status})
        .eq("id", ticket_id)
        .select("status,updated_at")
        .single()
        .execute()
    )
    data = result.data or {}
    log.info("Ticket %s status -> %s", ticket_id, data.get("status"))
    return {key: data[key] for key in ("status", "updated_at") if key in data}
