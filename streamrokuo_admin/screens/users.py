# streamrokuo_admin/screens/users.py
from typing import Any, Dict, List, Optional

from streamrokuo_admin.errors import InputValidationError
from streamrokuo_admin.format_utils import format_datetime, is_uuid, truncate_id
from streamrokuo_admin.schemas import FollowRow, RecordingRow, SubscriptionRow
from streamrokuo_admin.screens.base import DetailScreen, ListScreen
from streamrokuo_admin.services import live_accounts_service, recordings_service, users_service

SEARCH_HINT = "Enter a valid user UUID to search."
RECENT_RECORDINGS = 20


class UsersScreen(ListScreen):
    """Users page: optional lookup by user UUID, plus each user's latest subscription."""

    name = "users"
    default_filters = {"query": ""}

    def clean_filters(self, filters):
        return {"query": str(filters.get("query") or "").strip()}

    def validate(self, filters):
        if filters["query"] and not is_uuid(filters["query"]):
            raise InputValidationError(SEARCH_HINT)

    async def fetch(self, filters, start, end):
        return await users_service.list_admin_users(
            self.client,
            limit=self.page_size,
            offset=start,
            user_id=filters["query"] or None,
        )

    def empty_related(self) -> Dict[str, SubscriptionRow]:
        return {}

    async def fetch_related(self, rows):
        return await users_service.latest_subscriptions(self.client, [row.id for row in rows])

    def apply_related(self, related):
        self.subscriptions = related

    def present(self, row):
        data = row.model_dump()
        sub = self.subscriptions.get(row.id)
        data["short_id"] = truncate_id(row.id)
        data["last_sign_in"] = format_datetime(row.last_sign_in_at)
        data["admin_badge"] = "admin" if row.is_admin else "standard"
        data["subscription"] = sub.model_dump() if sub else None
        data["subscription_status"] = sub.status if sub else "none"
        data["plan_name"] = sub.plan.name if sub and sub.plan else None
        return data


class UserDetailScreen(DetailScreen):
    name = "user"
    invalid_id_message = "Invalid user ID."

    def __init__(self, client, user_id: str):
        super().__init__(client, user_id)
        self.subscription: Optional[SubscriptionRow] = None
        self.follows: List[FollowRow] = []
        self.recordings: List[RecordingRow] = []

    async def fetch_entity(self, entity_id):
        rows, _total = await users_service.list_admin_users(self.client, limit=1, offset=0, user_id=entity_id)
        return rows[0] if rows else None

    async def load_related(self, generation):
        await self.related(
            generation,
            users_service.latest_subscription(self.client, self.entity_id),
            self._set_subscription,
        )
        await self.related(
            generation,
            live_accounts_service.follows_for_user(self.client, self.entity_id),
            self._set_follows,
        )

        account_ids = [follow.live_account_id for follow in self.follows]
        if not account_ids:
            self.recordings = []
            return
        await self.related(
            generation,
            recordings_service.recent_recordings_for_accounts(self.client, account_ids, RECENT_RECORDINGS),
            self._set_recordings,
        )

    def _set_subscription(self, value):
        self.subscription = value

    def _set_follows(self, value):
        self.follows = value

    def _set_recordings(self, value):
        self.recordings = value

    def extra_snapshot(self) -> Dict[str, Any]:
        return {
            "subscription": self.subscription.model_dump() if self.subscription else None,
            "follows": [follow.model_dump() for follow in self.follows],
            "recordings": [rec.model_dump() for rec in self.recordings],
        }
