# streamrokuo_admin/services/users_service.py
from typing import Dict, Iterable, List, Optional, Tuple

from streamrokuo_admin.backend import PostgrestClient
from streamrokuo_admin.schemas import AdminUserRow, SubscriptionRow, row_of, rows_of

LIST_USERS_RPC = "admin_list_users"


async def list_admin_users(
    client: PostgrestClient,
    *,
    limit: int,
    offset: int,
    user_id: Optional[str] = None,
) -> Tuple[List[AdminUserRow], int]:
    """
    Users come from a remote procedure; every row embeds the total matching
    count, so an empty page means a total of zero.
    """
    result = await client.rpc(
        LIST_USERS_RPC,
        {"limit_count": limit, "offset_count": offset, "filter_user_id": user_id or None},
    )
    rows = rows_of(AdminUserRow, result.data)
    total = int(rows[0].total_count) if rows and rows[0].total_count else 0
    return rows, total


async def latest_subscriptions(client: PostgrestClient, user_ids: Iterable[str]) -> Dict[str, SubscriptionRow]:
    result = await (
        client.table("subscriptions")
        .select("id,user_id,status,starts_at,ends_at,plan:plans(id,name)")
        .in_("user_id", list(user_ids))
        .order("starts_at", desc=True)
        .execute()
    )
    mapped: Dict[str, SubscriptionRow] = {}
    for sub in rows_of(SubscriptionRow, result.data):
        # newest first; keep the first seen per user
        mapped.setdefault(sub.user_id, sub)
    return mapped


async def latest_subscription(client: PostgrestClient, user_id: str) -> Optional[SubscriptionRow]:
    result = await (
        client.table("subscriptions")
        .select("id,user_id,status,starts_at,ends_at,billing_mode,cancel_at_period_end,plan:plans(id,name,features)")
        .eq("user_id", user_id)
        .order("starts_at", desc=True)
        .maybe_single()
        .execute()
    )
    return row_of(SubscriptionRow, result.data) if result.data else None
