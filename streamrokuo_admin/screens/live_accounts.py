# streamrokuo_admin/screens/live_accounts.py
from typing import Any, Dict, List, Optional

from streamrokuo_admin.errors import InputValidationError
from streamrokuo_admin.format_utils import format_datetime
from streamrokuo_admin.pagination import PAGE_SIZE, can_goto, has_next, has_prev, page_range, total_pages
from streamrokuo_admin.schemas import ALL, RECORDING_STATUSES, RecordingRow
from streamrokuo_admin.screens.base import DetailScreen, ListScreen
from streamrokuo_admin.screens.watch import WatchAction
from streamrokuo_admin.services import live_accounts_service, recordings_service


def clean_recording_status(value: Any) -> str:
    status = str(value or ALL).strip().lower()
    if status != ALL and status not in RECORDING_STATUSES:
        raise InputValidationError(f"Unknown recording status: {status}")
    return status


class LiveAccountsScreen(ListScreen):
    name = "live-accounts"
    default_filters = {"platform": "", "status": ""}

    def clean_filters(self, filters):
        return {
            "platform": str(filters.get("platform") or "").strip().lower(),
            "status": str(filters.get("status") or "").strip().lower(),
        }

    async def fetch(self, filters, start, end):
        return await live_accounts_service.list_live_accounts(
            self.client,
            start=start,
            end=end,
            platform=filters["platform"],
            status=filters["status"],
        )

    def empty_related(self) -> Dict[str, int]:
        return {}

    async def fetch_related(self, rows):
        return await live_accounts_service.active_follower_counts(self.client, [row.id for row in rows])

    def apply_related(self, related):
        self.follower_counts = related

    def present(self, row):
        data = row.model_dump()
        data["followers"] = self.follower_counts.get(row.id, 0)
        data["created"] = format_datetime(row.created_at)
        return data


class LiveAccountDetailScreen(DetailScreen):
    """Account header, active follower count and the account's recordings (paged)."""

    name = "live-account"
    invalid_id_message = "Invalid live account ID."
    page_size = PAGE_SIZE

    def __init__(self, client, live_account_id: str, watch: Optional[WatchAction] = None):
        super().__init__(client, live_account_id)
        self.watch = watch
        self.follower_count = 0
        self.recordings: List[RecordingRow] = []
        self.recordings_total = 0
        self.status_filter = ALL
        self.page = 0

    async def fetch_entity(self, entity_id):
        return await live_accounts_service.get_live_account(self.client, entity_id)

    async def load_related(self, generation):
        await self.related(
            generation,
            live_accounts_service.count_active_followers(self.client, self.entity_id),
            self._set_follower_count,
        )
        start, end = page_range(self.page, self.page_size)
        loaded = await self.related(
            generation,
            recordings_service.list_account_recordings(
                self.client, self.entity_id, start=start, end=end, status=self.status_filter
            ),
            self._set_recordings,
        )
        if not loaded and self.is_current(generation):
            self.recordings, self.recordings_total = [], 0

    def _set_follower_count(self, value):
        self.follower_count = value

    def _set_recordings(self, value):
        self.recordings, self.recordings_total = value

    async def mount(self, status: Any = ALL, page: int = 0) -> None:
        self.page = max(page, 0)
        try:
            self.status_filter = clean_recording_status(status)
        except InputValidationError as exc:
            self.error = exc.message
            self.is_loading = False
            return
        await self.load()

    async def set_status_filter(self, status: Any) -> None:
        try:
            self.status_filter = clean_recording_status(status)
        except InputValidationError as exc:
            self.error = exc.message
            return
        self.page = 0
        await self.load()

    async def goto(self, page: int) -> bool:
        if not can_goto(page, self.recordings_total, self.page_size):
            return False
        self.page = page
        await self.load()
        return True

    def extra_snapshot(self) -> Dict[str, Any]:
        data = {
            "follower_count": self.follower_count,
            "status_filter": self.status_filter,
            "page": self.page,
            "page_size": self.page_size,
            "recordings_total": self.recordings_total,
            "total_pages": total_pages(self.recordings_total, self.page_size),
            "has_prev": has_prev(self.page),
            "has_next": has_next(self.page, self.recordings_total, self.page_size),
            "recordings": [rec.model_dump() for rec in self.recordings],
        }
        if self.watch is not None:
            data.update(self.watch.snapshot())
        return data
