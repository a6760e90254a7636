# streamrokuo_admin/backend.py
"""
Managed backend binding (PostgREST + RPC).

Every listing/detail screen talks to the hosted database through this module.
One declarative request per query; filters, ordering, range and exact count
all travel in the same round trip.

Design rules:
- No caching, no retries
- Errors carry the backend's message verbatim (BackendError)
- Embedded relations are normalized by the screens via first_or_none()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

import httpx

from streamrokuo_admin.config import Settings
from streamrokuo_admin.errors import BackendError
from streamrokuo_admin.format_utils import first_or_none, quote_filter_value

log = logging.getLogger("streamrokuo_admin.backend")

_OBJECT_ACCEPT = "application/vnd.pgrst.object+json"


@dataclass(frozen=True)
class QueryResult:
    data: Any
    count: Optional[int] = None


def _fmt(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


def parse_content_range(header: Optional[str]) -> Optional[int]:
    # "0-19/123", "*/0", "0-19/*"
    if not header or "/" not in header:
        return None
    total = header.rsplit("/", 1)[1].strip()
    if total == "*":
        return None
    try:
        return int(total)
    except ValueError:
        return None


def error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("message", "msg", "error_description", "error"):
            if body.get(key):
                return str(body[key])
    text = (resp.text or "").strip()
    return text or f"Request failed with status {resp.status_code}"


def raise_for_backend(resp: httpx.Response, error_cls=BackendError) -> None:
    if resp.status_code < 400:
        return
    code = None
    try:
        body = resp.json()
        if isinstance(body, dict):
            code = body.get("code") or body.get("error_code")
            code = str(code) if code is not None else None
    except ValueError:
        pass
    message = error_message(resp)
    log.warning("Backend %s %s -> %s: %s", resp.request.method, resp.request.url.path, resp.status_code, message)
    raise error_cls(message, status_code=resp.status_code, code=code)


class QueryBuilder:
    """Chainable PostgREST query. Nothing is sent until ``await execute()``."""

    def __init__(self, client: "PostgrestClient", table: str):
        self._client = client
        self._table = table
        self._method = "GET"
        self._params: List[Tuple[str, str]] = []
        self._prefer: List[str] = []
        self._headers: Dict[str, str] = {}
        self._body: Optional[Dict[str, Any]] = None
        self._maybe_single = False

    # ---- shaping ----
    def select(self, columns: str = "*", count: Optional[str] = None, head: bool = False) -> "QueryBuilder":
        self._params.append(("select", columns))
        if count:
            self._prefer.append(f"count={count}")
        if head and self._method == "GET":
            self._method = "HEAD"
        return self

    def update(self, values: Dict[str, Any]) -> "QueryBuilder":
        self._method = "PATCH"
        self._body = values
        self._prefer.append("return=representation")
        return self

    # ---- filters ----
    def eq(self, column: str, value: Any) -> "QueryBuilder":
        self._params.append((column, f"eq.{_fmt(value)}"))
        return self

    def neq(self, column: str, value: Any) -> "QueryBuilder":
        self._params.append((column, f"neq.{_fmt(value)}"))
        return self

    def ilike(self, column: str, pattern: str) -> "QueryBuilder":
        self._params.append((column, f"ilike.{pattern}"))
        return self

    def in_(self, column: str, values: Iterable[Any]) -> "QueryBuilder":
        joined = ",".join(quote_filter_value(_fmt(v)) for v in values)
        self._params.append((column, f"in.({joined})"))
        return self

    def or_(self, expression: str) -> "QueryBuilder":
        self._params.append(("or", f"({expression})"))
        return self

    # ---- ordering / range ----
    def order(self, column: str, desc: bool = False) -> "QueryBuilder":
        self._params.append(("order", f"{column}.{'desc' if desc else 'asc'}"))
        return self

    def range(self, start: int, end: int) -> "QueryBuilder":
        self._params.append(("offset", str(start)))
        self._params.append(("limit", str(end - start + 1)))
        return self

    def limit(self, count: int) -> "QueryBuilder":
        self._params.append(("limit", str(count)))
        return self

    def single(self) -> "QueryBuilder":
        self._headers["Accept"] = _OBJECT_ACCEPT
        return self

    def maybe_single(self) -> "QueryBuilder":
        self._maybe_single = True
        return self.limit(1)

    @property
    def params(self) -> List[Tuple[str, str]]:
        return list(self._params)

    async def execute(self) -> QueryResult:
        headers = dict(self._headers)
        if self._prefer:
            headers["Prefer"] = ",".join(self._prefer)
        resp = await self._client.request(
            self._method,
            f"/{self._table}",
            params=self._params,
            headers=headers,
            json=self._body,
        )
        count = parse_content_range(resp.headers.get("content-range"))
        if self._method == "HEAD" or not resp.content:
            data = None
        else:
            data = resp.json()
        if self._maybe_single:
            data = first_or_none(data)
        return QueryResult(data=data, count=count)


class PostgrestClient:
    """PostgREST access scoped to one bearer token (row-level security applies)."""

    def __init__(self, http: httpx.AsyncClient, rest_url: str, api_key: str, access_token: Optional[str] = None):
        self._http = http
        self._rest_url = rest_url.rstrip("/")
        self._api_key = api_key
        self._access_token = access_token

    def table(self, name: str) -> QueryBuilder:
        return QueryBuilder(self, name)

    async def rpc(self, function: str, params: Optional[Dict[str, Any]] = None) -> QueryResult:
        resp = await self.request("POST", f"/rpc/{function}", json=params or {})
        data = resp.json() if resp.content else None
        return QueryResult(data=data, count=None)

    async def request(self, method: str, path: str, *, params=None, headers=None, json=None) -> httpx.Response:
        merged = {
            "apikey": self._api_key,
            "Authorization": f"Bearer {self._access_token or self._api_key}",
        }
        merged.update(headers or {})
        try:
            resp = await self._http.request(
                method,
                f"{self._rest_url}{path}",
                params=params,
                headers=merged,
                json=json,
            )
        except httpx.RequestError as exc:
            log.error("Network error contacting backend %s %s: %s", method, path, exc)
            raise BackendError(f"Network error contacting backend: {exc}") from exc
        raise_for_backend(resp)
        return resp


class SupabaseClient:
    """Composition-root handle: one shared httpx client, many token-scoped views."""

    def __init__(self, settings: Settings, http: httpx.AsyncClient):
        self.settings = settings
        self.http = http

    def postgrest(self, access_token: Optional[str] = None) -> PostgrestClient:
        return PostgrestClient(
            self.http,
            self.settings.rest_url,
            self.settings.supabase_anon_key,
            access_token=access_token,
        )
