# streamrokuo_admin/services/stats_service.py
import asyncio

from streamrokuo_admin.backend import PostgrestClient
from streamrokuo_admin.schemas import AdminStats
from streamrokuo_admin.services.users_service import list_admin_users


async def _count(client: PostgrestClient, table: str, column: str, **eq) -> int:
    query = client.table(table).select(column, count="exact", head=True)
    for key, value in eq.items():
        query = query.eq(key, value)
    result = await query.execute()
    return result.count or 0


async def load_stats(client: PostgrestClient) -> AdminStats:
    """
    Six independent counts issued together. If any fails, the first
    failure (in declaration order) propagates.
    """
    results = await asyncio.gather(
        list_admin_users(client, limit=1, offset=0),
        _count(client, "subscriptions", "id", status="active"),
        _count(client, "follows", "user_id", status="active"),
        _count(client, "recordings", "id"),
        _count(client, "recordings", "id", status="ready"),
        _count(client, "recordings", "id", status="failed"),
        return_exceptions=True,
    )
    for result in results:
        if isinstance(result, BaseException):
            raise result

    (_, total_users), active_subs, active_follows, rec_total, rec_ready, rec_failed = results
    return AdminStats(
        total_users=total_users,
        active_subscriptions=active_subs,
        active_follows=active_follows,
        recordings_total=rec_total,
        recordings_ready=rec_ready,
        recordings_failed=rec_failed,
    )
