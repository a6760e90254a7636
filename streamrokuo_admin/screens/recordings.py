# streamrokuo_admin/screens/recordings.py
from typing import Optional

from streamrokuo_admin.errors import InputValidationError
from streamrokuo_admin.format_utils import format_datetime, format_duration, is_uuid, status_label, truncate_id
from streamrokuo_admin.schemas import ALL
from streamrokuo_admin.screens.base import ListScreen
from streamrokuo_admin.screens.live_accounts import clean_recording_status
from streamrokuo_admin.screens.watch import WatchAction
from streamrokuo_admin.services import recordings_service

BAD_ACCOUNT_ID = "Live account ID must be a valid UUID."


class RecordingsScreen(ListScreen):
    name = "recordings"
    default_filters = {"status": ALL, "platform": "", "live_account_id": ""}

    def __init__(self, client, watch: Optional[WatchAction] = None):
        self.watch = watch
        super().__init__(client)

    def clean_filters(self, filters):
        return {
            "status": str(filters.get("status") or ALL).strip().lower(),
            "platform": str(filters.get("platform") or "").strip().lower(),
            "live_account_id": str(filters.get("live_account_id") or "").strip(),
        }

    def validate(self, filters):
        clean_recording_status(filters["status"])
        if filters["live_account_id"] and not is_uuid(filters["live_account_id"]):
            raise InputValidationError(BAD_ACCOUNT_ID)

    async def fetch(self, filters, start, end):
        return await recordings_service.list_recordings(
            self.client,
            start=start,
            end=end,
            status=filters["status"],
            platform=filters["platform"],
            live_account_id=filters["live_account_id"],
        )

    def present(self, row):
        data = row.model_dump()
        account = row.live_account
        data["live_account_label"] = ((account.account_id or "").strip() if account else "") or truncate_id(
            row.live_account_id
        )
        data["platform"] = account.platform if account else None
        data["duration"] = format_duration(row.duration_sec)
        data["started"] = format_datetime(row.started_at)
        data["status_label"] = status_label(row.status)
        return data

    def extra_snapshot(self):
        return self.watch.snapshot() if self.watch is not None else {}
