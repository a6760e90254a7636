import os

os.environ.setdefault("SUPABASE_URL", "http://supabase.test")
os.environ.setdefault("SUPABASE_ANON_KEY", "anon-key")
os.environ.setdefault("BACKEND_BASE_URL", "http://recorder.test")
os.environ.setdefault("SESSION_SECRET", "unit-test-session-secret")

import inspect
import time
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient
from jose import jwt

from streamrokuo_admin.backend import PostgrestClient
from streamrokuo_admin.config import Settings, load_settings

SUPABASE_URL = "http://supabase.test"
ANON_KEY = "anon-key"
RECORDER_URL = "http://recorder.test"
REST = "/rest/v1"

ADMIN_ID = "11111111-1111-4111-8111-111111111111"
MEMBER_ID = "22222222-2222-4222-8222-222222222222"
ACCOUNT_ID = "33333333-3333-4333-8333-333333333333"
RECORDING_ID = "44444444-4444-4444-8444-444444444444"
TICKET_ID = "55555555-5555-4555-8555-555555555555"


# ======================================================
# TOKENS
# ======================================================
def make_token(sub: str, is_admin: bool = True, exp_in: int = 3600, email: str = "ops@streamrokuo.io") -> str:
    claims = {
        "sub": sub,
        "email": email,
        "role": "authenticated",
        "app_metadata": {"is_admin": is_admin},
        "exp": int(time.time()) + exp_in,
    }
    return jwt.encode(claims, "token-signing-key", algorithm="HS256")


def token_response(sub: str = ADMIN_ID, is_admin: bool = True, exp_in: int = 3600) -> Dict[str, Any]:
    return {
        "access_token": make_token(sub, is_admin=is_admin, exp_in=exp_in),
        "refresh_token": f"refresh-{sub}",
        "token_type": "bearer",
        "expires_in": exp_in,
        "user": {
            "id": sub,
            "email": "ops@streamrokuo.io",
            "role": "authenticated",
            "app_metadata": {"is_admin": is_admin},
        },
    }


# ======================================================
# FAKE MANAGED BACKEND
# ======================================================
class FakeBackend:
    """MockTransport handler: routes by (method, path) and records every request."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self._routes: Dict[tuple, Callable[[httpx.Request], Any]] = {}

    def route(self, method: str, path: str, handler: Callable[[httpx.Request], Any]) -> None:
        self._routes[(method, path)] = handler

    def rest(self, method: str, table: str, handler: Callable[[httpx.Request], Any]) -> None:
        self.route(method, f"{REST}/{table}", handler)

    def rpc(self, function: str, handler: Callable[[httpx.Request], Any]) -> None:
        self.route("POST", f"{REST}/rpc/{function}", handler)

    def calls(self, method: Optional[str] = None, path: Optional[str] = None) -> List[httpx.Request]:
        return [
            req
            for req in self.requests
            if (method is None or req.method == method) and (path is None or req.url.path == path)
        ]

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self._routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"message": f"No fake route for {request.method} {request.url.path}"})
        result = handler(request)
        if inspect.isawaitable(result):
            result = await result
        return result


def rows_response(rows: List[Dict[str, Any]], total: Optional[int] = None, offset: int = 0) -> httpx.Response:
    headers = {}
    if total is not None:
        end = offset + len(rows) - 1 if rows else offset
        headers["content-range"] = f"{offset}-{end}/{total}" if rows else f"*/{total}"
    return httpx.Response(200, json=rows, headers=headers)


def count_response(total: int) -> httpx.Response:
    return httpx.Response(200, headers={"content-range": f"*/{total}"})


def ticket_row(ticket_id: str = TICKET_ID, status: str = "open", **extra) -> Dict[str, Any]:
    row = {
        "id": ticket_id,
        "user_id": MEMBER_ID,
        "email": "viewer@streamrokuo.io",
        "category": "bug",
        "subject": "Recording stuck uploading",
        "message": "The upload never finishes",
        "severity": "high",
        "status": status,
        "context": {"app_version": "2.3.1", "device": "roku"},
        "created_at": "2024-05-01T10:00:00Z",
        "updated_at": "2024-05-01T10:00:00Z",
    }
    row.update(extra)
    return row


def recording_row(recording_id: str = RECORDING_ID, status: str = "ready", **extra) -> Dict[str, Any]:
    row = {
        "id": recording_id,
        "live_account_id": ACCOUNT_ID,
        "status": status,
        "started_at": "2024-05-01T10:00:00Z",
        "ended_at": "2024-05-01T10:30:00Z",
        "duration_sec": 1800,
        "storage_path": "recordings/abc.mp4",
        "live_accounts": [{"id": ACCOUNT_ID, "platform": "tiktok", "account_id": "streamer_one"}],
    }
    row.update(extra)
    return row


def account_row(row_id: str = ACCOUNT_ID, **extra) -> Dict[str, Any]:
    row = {
        "id": row_id,
        "platform": "tiktok",
        "account_id": "streamer_one",
        "canonical_url": "https://www.tiktok.com/@streamer_one",
        "status": "active",
        "created_at": "2024-04-01T08:00:00Z",
    }
    row.update(extra)
    return row


def user_row(user_id: str = MEMBER_ID, total_count: int = 1, **extra) -> Dict[str, Any]:
    row = {
        "id": user_id,
        "email": "viewer@streamrokuo.io",
        "role": "authenticated",
        "created_at": "2024-01-01T00:00:00Z",
        "last_sign_in_at": "2024-05-01T09:00:00Z",
        "is_admin": False,
        "total_count": total_count,
    }
    row.update(extra)
    return row


# ======================================================
# FIXTURES
# ======================================================
@pytest.fixture
def settings() -> Settings:
    return load_settings()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def http(backend) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(backend))


@pytest.fixture
def rest(http) -> PostgrestClient:
    return PostgrestClient(http, f"{SUPABASE_URL}{REST}", ANON_KEY, "user-access-token")


@pytest.fixture
def app(settings, backend):
    from streamrokuo_admin.main import create_app

    return create_app(settings, transport=httpx.MockTransport(backend))


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


def sign_in(client: TestClient, backend: FakeBackend, is_admin: bool = True, sub: str = ADMIN_ID):
    backend.route(
        "POST",
        "/auth/v1/token",
        lambda request: httpx.Response(200, json=token_response(sub, is_admin=is_admin)),
    )
    backend.route("POST", "/auth/v1/logout", lambda request: httpx.Response(204))
    return client.post("/login", json={"email": "ops@streamrokuo.io", "password": "hunter22"})


@pytest.fixture
def admin_client(client, backend):
    resp = sign_in(client, backend)
    assert resp.status_code == 200
    return client
