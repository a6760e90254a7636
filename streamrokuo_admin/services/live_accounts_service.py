# streamrokuo_admin/services/live_accounts_service.py
from typing import Dict, Iterable, List, Optional, Tuple

from streamrokuo_admin.backend import PostgrestClient
from streamrokuo_admin.schemas import FollowRow, LiveAccountRow, row_of, rows_of

LIVE_ACCOUNT_COLUMNS = "id,platform,account_id,canonical_url,status,created_at,updated_at"


async def list_live_accounts(
    client: PostgrestClient,
    *,
    start: int,
    end: int,
    platform: str = "",
    status: str = "",
) -> Tuple[List[LiveAccountRow], int]:
    query = (
        client.table("live_accounts")
        .select(LIVE_ACCOUNT_COLUMNS, count="exact")
        .order("created_at", desc=True)
        .range(start, end)
    )
    if platform:
        query = query.eq("platform", platform)
    if status:
        query = query.eq("status", status)
    result = await query.execute()
    return rows_of(LiveAccountRow, result.data), result.count or 0


async def get_live_account(client: PostgrestClient, live_account_id: str) -> Optional[LiveAccountRow]:
    result = await (
        client.table("live_accounts")
        .select(LIVE_ACCOUNT_COLUMNS)
        .eq("id", live_account_id)
        .maybe_single()
        .execute()
    )
    return row_of(LiveAccountRow, result.data) if result.data else None


async def active_follower_counts(client: PostgrestClient, live_account_ids: Iterable[str]) -> Dict[str, int]:
    result = await (
        client.table("follows")
        .select("live_account_id")
        .in_("live_account_id", list(live_account_ids))
        .eq("status", "active")
        .execute()
    )
    counts: Dict[str, int] = {}
    for follow in result.data or []:
        key = follow["live_account_id"]
        counts[key] = counts.get(key, 0) + 1
    return counts


async def count_active_followers(client: PostgrestClient, live_account_id: str) -> int:
    result = await (
        client.table("follows")
        .select("live_account_id", count="exact", head=True)
        .eq("live_account_id", live_account_id)
        .eq("status", "active")
        .execute()
    )
    return result.count or 0


async def follows_for_user(client: PostgrestClient, user_id: str) -> List[FollowRow]:
    result = await (
        client.table("follows")
        .select("user_id,live_account_id,status,created_at,live_accounts(id,platform,account_id,canonical_url,status)")
        .eq("user_id", user_id)
        .order("created_at", desc=True)
        .execute()
    )
    return rows_of(FollowRow, result.data)
