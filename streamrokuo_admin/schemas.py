# streamrokuo_admin/schemas.py

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationError, computed_field, field_validator

from streamrokuo_admin.errors import BackendError
from streamrokuo_admin.format_utils import first_or_none

# =====================================================
# ENUMERATED VALUES
# =====================================================

RECORDING_STATUSES = ("ready", "failed", "uploading", "waiting_upload", "live_recording", "live_end")
TICKET_STATUSES = ("open", "in_progress", "resolved", "closed")
TICKET_CATEGORIES = ("bug", "feature", "question")
ALL = "all"


class Row(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# =====================================================
# USERS / BILLING
# =====================================================

class AdminUserRow(Row):
    id: str
    created_at: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    last_sign_in_at: Optional[str] = None
    last_seen_at: Optional[str] = None
    email_confirmed_at: Optional[str] = None
    is_admin: Optional[bool] = None
    total_count: Optional[int] = None


class PlanSummary(Row):
    id: str
    name: Optional[str] = None
    features: Optional[Any] = None


class SubscriptionRow(Row):
    id: str
    user_id: str
    status: str
    starts_at: Optional[str] = None
    ends_at: Optional[str] = None
    billing_mode: Optional[str] = None
    cancel_at_period_end: Optional[bool] = None
    plan: Optional[PlanSummary] = None

    @field_validator("plan", mode="before")
    @classmethod
    def _one_plan(cls, value):
        return first_or_none(value)


# =====================================================
# LIVE ACCOUNTS / FOLLOWS / RECORDINGS
# =====================================================

class LiveAccountSummary(Row):
    id: Optional[str] = None
    platform: Optional[str] = None
    account_id: Optional[str] = None
    canonical_url: Optional[str] = None
    status: Optional[str] = None


class LiveAccountRow(Row):
    id: str
    platform: str
    account_id: Optional[str] = None
    canonical_url: Optional[str] = None
    status: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @computed_field
    @property
    def label(self) -> str:
        return (self.account_id or "").strip() or self.id


class FollowRow(Row):
    user_id: str
    live_account_id: str
    status: Optional[str] = None
    created_at: Optional[str] = None
    live_account: Optional[LiveAccountSummary] = Field(None, alias="live_accounts")

    @field_validator("live_account", mode="before")
    @classmethod
    def _one_account(cls, value):
        return first_or_none(value)


class RecordingRow(Row):
    id: str
    live_account_id: str
    recording_key: Optional[str] = None
    status: str
    started_at: Optional[str] = None
    ended_at: Optional[str] = None
    duration_sec: Optional[int] = None
    size_bytes: Optional[int] = None
    storage_path: Optional[str] = None
    live_account: Optional[LiveAccountSummary] = Field(None, alias="live_accounts")

    @field_validator("live_account", mode="before")
    @classmethod
    def _one_account(cls, value):
        return first_or_none(value)

    @computed_field
    @property
    def is_watchable(self) -> bool:
        return self.status == "ready" and bool(self.storage_path)


# =====================================================
# SUPPORT
# =====================================================

class SupportTicketRow(Row):
    id: str
    user_id: Optional[str] = None
    email: Optional[str] = None
    category: Optional[str] = None
    subject: Optional[str] = None
    message: Optional[str] = None
    severity: Optional[str] = None
    status: str
    context: Optional[Any] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class TicketStatusIn(BaseModel):
    status: str


# =====================================================
# AUTH / WATCH / DASHBOARD
# =====================================================

class LoginPayload(BaseModel):
    email: EmailStr
    password: str


class WatchUrlGrant(BaseModel):
    recording_id: str
    url: str
    expires_at: str


class AdminStats(BaseModel):
    total_users: int = 0
    active_subscriptions: int = 0
    active_follows: int = 0
    recordings_total: int = 0
    recordings_ready: int = 0
    recordings_failed: int = 0


def row_of(model, data: Dict[str, Any]):
    """A row the backend returned in an unexpected shape is a backend error."""
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise BackendError(f"Unexpected {model.__name__} data from backend: {exc.error_count()} invalid field(s)") from exc


def rows_of(model, data: Optional[List[Dict[str, Any]]]) -> list:
    return [row_of(model, item) for item in (data or [])]
