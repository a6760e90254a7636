# streamrokuo_admin/services/recordings_service.py
from typing import Iterable, List, Tuple

from streamrokuo_admin.backend import PostgrestClient
from streamrokuo_admin.schemas import ALL, RecordingRow, rows_of

RECORDING_COLUMNS = "id,live_account_id,status,started_at,ended_at,duration_sec,storage_path"
_EMBED = "live_accounts{inner}(id,platform,account_id,canonical_url)"


async def list_recordings(
    client: PostgrestClient,
    *,
    start: int,
    end: int,
    status: str = ALL,
    platform: str = "",
    live_account_id: str = "",
) -> Tuple[List[RecordingRow], int]:
    # a platform filter needs an inner join so non-matching recordings drop out
    embed = _EMBED.format(inner="!inner" if platform else "")
    query = (
        client.table("recordings")
        .select(f"{RECORDING_COLUMNS},{embed}", count="exact")
        .order("started_at", desc=True)
        .range(start, end)
    )
    if status != ALL:
        query = query.eq("status", status)
    if platform:
        query = query.eq("live_accounts.platform", platform)
    if live_account_id:
        query = query.eq("live_account_id", live_account_id)
    result = await query.execute()
    return rows_of(RecordingRow, result.data), result.count or 0


async def list_account_recordings(
    client: PostgrestClient,
    live_account_id: str,
    *,
    start: int,
    end: int,
    status: str = ALL,
) -> Tuple[List[RecordingRow], int]:
    query = (
        client.table("recordings")
        .select(RECORDING_COLUMNS, count="exact")
        .eq("live_account_id", live_account_id)
        .order("started_at", desc=True)
        .range(start, end)
    )
    if status != ALL:
        query = query.eq("status", status)
    result = await query.execute()
    return rows_of(RecordingRow, result.data), result.count or 0


async def recent_recordings_for_accounts(
    client: PostgrestClient,
    live_account_ids: Iterable[str],
    limit: int = 20,
) -> List[RecordingRow]:
    result = await (
        client.table("recordings")
        .select("id,live_account_id,status,started_at,ended_at,duration_sec,live_accounts(account_id)")
        .in_("live_account_id", list(live_account_ids))
        .order("started_at", desc=True)
        .limit(limit)
        .execute()
    )
    return rows_of(RecordingRow, result.data)
