# streamrokuo_admin/auth.py
"""
Auth provider binding (GoTrue).

The provider owns the session lifecycle and publishes it as an event stream:
  INITIAL_SESSION, SIGNED_IN, TOKEN_REFRESHED, SIGNED_OUT

The session itself is persisted in a dict-like storage (the signed cookie
session in the web app). Tokens are never logged.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, MutableMapping, Optional

import httpx
from jose import JWTError, jwt

from streamrokuo_admin.backend import raise_for_backend
from streamrokuo_admin.config import Settings
from streamrokuo_admin.errors import AuthError

log = logging.getLogger("streamrokuo_admin.auth")

STORAGE_KEY = "sb-session"

INITIAL_SESSION = "INITIAL_SESSION"
SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"
TOKEN_REFRESHED = "TOKEN_REFRESHED"

AuthListener = Callable[[str, Optional["Session"]], None]


@dataclass(frozen=True)
class AuthUser:
    id: str
    email: Optional[str] = None
    role: Optional[str] = None
    app_metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: Optional[str] = None
    last_sign_in_at: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "AuthUser":
        return cls(
            id=str(payload.get("id") or payload.get("sub")),
            email=payload.get("email"),
            role=payload.get("role"),
            app_metadata=dict(payload.get("app_metadata") or {}),
            created_at=payload.get("created_at"),
            last_sign_in_at=payload.get("last_sign_in_at"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "role": self.role,
            "app_metadata": self.app_metadata,
            "created_at": self.created_at,
            "last_sign_in_at": self.last_sign_in_at,
        }


@dataclass(frozen=True)
class Session:
    access_token: str
    refresh_token: Optional[str]
    expires_at: Optional[int]
    user: AuthUser

    def is_expired(self, now: Optional[float] = None) -> bool:
        if self.expires_at is None:
            return False
        return (now if now is not None else time.time()) >= self.expires_at

    def to_dict(self) -> Dict[str, Any]:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "expires_at": self.expires_at,
            "user": self.user.to_dict(),
        }


def read_claims(token: str, jwt_secret: Optional[str] = None) -> Dict[str, Any]:
    """
    Decode access-token claims. With a secret the signature is verified,
    otherwise the claims are read as-is (the backend verifies on every call).
    Raises JWTError on a malformed or badly signed token.
    """
    if jwt_secret:
        return jwt.decode(
            token,
            jwt_secret,
            algorithms=["HS256"],
            options={"verify_aud": False, "verify_exp": False},
        )
    return jwt.get_unverified_claims(token)


def session_from_payload(payload: Dict[str, Any], jwt_secret: Optional[str] = None) -> Session:
    """Build a Session from a GoTrue token response or from stored session data."""
    token = payload.get("access_token")
    if not token:
        raise AuthError("Auth response did not include an access token")
    try:
        claims = read_claims(token, jwt_secret)
    except JWTError as exc:
        raise AuthError(f"Invalid access token: {exc}") from exc

    expires_at = payload.get("expires_at") or claims.get("exp")
    if expires_at is None and payload.get("expires_in"):
        expires_at = int(time.time()) + int(payload["expires_in"])

    user_payload = payload.get("user") or {
        "id": claims.get("sub"),
        "email": claims.get("email"),
        "role": claims.get("role"),
        "app_metadata": claims.get("app_metadata"),
    }
    return Session(
        access_token=token,
        refresh_token=payload.get("refresh_token"),
        expires_at=int(expires_at) if expires_at is not None else None,
        user=AuthUser.from_payload(user_payload),
    )


class AuthClient:
    def __init__(self, http: httpx.AsyncClient, settings: Settings, storage: MutableMapping[str, Any]):
        self._http = http
        self._settings = settings
        self._storage = storage
        self._listeners: List[AuthListener] = []
        self._session: Optional[Session] = None

    @property
    def session(self) -> Optional[Session]:
        return self._session

    # --------------------------------------------------
    # EVENT STREAM
    # --------------------------------------------------
    def on_auth_state_change(self, listener: AuthListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: str, session: Optional[Session]) -> None:
        log.info("auth event %s user=%s", event, session.user.id if session else None)
        for listener in list(self._listeners):
            listener(event, session)

    def _persist(self, session: Optional[Session]) -> None:
        self._session = session
        if session is None:
            self._storage.pop(STORAGE_KEY, None)
        else:
            self._storage[STORAGE_KEY] = session.to_dict()

    # --------------------------------------------------
    # LIFECYCLE
    # --------------------------------------------------
    async def initialize(self) -> Optional[Session]:
        """
        Load the stored session, refreshing once if it has expired.
        Any failure yields a null session; there are no retries.
        """
        stored = self._storage.get(STORAGE_KEY)
        session: Optional[Session] = None
        if stored:
            try:
                session = session_from_payload(stored, self._settings.jwt_secret)
            except AuthError as exc:
                log.warning("Discarding stored session: %s", exc.message)
                session = None

        if session is not None and session.is_expired():
            session = await self._refresh(session.refresh_token)

        self._persist(session)
        self._emit(INITIAL_SESSION, session)
        return session

    async def _refresh(self, refresh_token: Optional[str]) -> Optional[Session]:
        if not refresh_token:
            return None
        try:
            payload = await self._token_request("refresh_token", {"refresh_token": refresh_token})
            return session_from_payload(payload, self._settings.jwt_secret)
        except AuthError as exc:
            log.warning("Session refresh failed: %s", exc.message)
            return None

    async def refresh_session(self) -> Optional[Session]:
        current = self._session
        session = await self._refresh(current.refresh_token if current else None)
        self._persist(session)
        self._emit(TOKEN_REFRESHED if session else SIGNED_OUT, session)
        return session

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        payload = await self._token_request("password", {"email": email, "password": password})
        session = session_from_payload(payload, self._settings.jwt_secret)
        self._persist(session)
        self._emit(SIGNED_IN, session)
        return session

    async def sign_out(self) -> None:
        current = self._session
        if current is not None:
            try:
                resp = await self._http.post(
                    f"{self._settings.auth_url}/logout",
                    headers=self._headers(current.access_token),
                )
                raise_for_backend(resp, AuthError)
            except (AuthError, httpx.RequestError) as exc:
                # the local session is dropped even when the remote call fails
                log.warning("Remote sign-out failed: %s", exc)
        self._persist(None)
        self._emit(SIGNED_OUT, None)

    # --------------------------------------------------
    # HTTP
    # --------------------------------------------------
    def _headers(self, access_token: Optional[str] = None) -> Dict[str, str]:
        return {
            "apikey": self._settings.supabase_anon_key,
            "Authorization": f"Bearer {access_token or self._settings.supabase_anon_key}",
        }

    async def _token_request(self, grant_type: str, body: Dict[str, Any]) -> Dict[str, Any]:
        try:
            resp = await self._http.post(
                f"{self._settings.auth_url}/token",
                params={"grant_type": grant_type},
                json=body,
                headers=self._headers(),
            )
        except httpx.RequestError as exc:
            raise AuthError(f"Network error contacting auth service: {exc}") from exc
        raise_for_backend(resp, AuthError)
        return resp.json()
