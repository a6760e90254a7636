# streamrokuo_admin/deps.py
from dataclasses import dataclass
from typing import AsyncIterator, Callable, Optional

from fastapi import Depends, HTTPException, Request, status
from starlette.requests import HTTPConnection

from streamrokuo_admin.auth import AuthClient, AuthUser, Session
from streamrokuo_admin.backend import PostgrestClient, SupabaseClient
from streamrokuo_admin.config import Settings
from streamrokuo_admin.errors import LoginRequired, NotAuthorized
from streamrokuo_admin.gate import AdminGate, GateState
from streamrokuo_admin.services.watch_url import WatchUrlClient
from streamrokuo_admin.session_store import SessionStore


# ======================================================
# COMPOSITION ROOT HANDLES
# ======================================================
def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_supabase(request: Request) -> SupabaseClient:
    return request.app.state.supabase


def get_watch_client(request: Request) -> WatchUrlClient:
    return request.app.state.watch_client


def build_auth(conn: HTTPConnection) -> AuthClient:
    """Auth provider bound to this connection's signed cookie session."""
    return AuthClient(conn.app.state.http, conn.app.state.settings, conn.session)


async def open_session_store(
    auth: AuthClient,
    on_signed_out: Optional[Callable[[], None]] = None,
) -> SessionStore:
    # subscribe first so the INITIAL_SESSION event is not missed
    store = SessionStore(auth, on_signed_out=on_signed_out).start()
    await auth.initialize()
    return store


# ======================================================
# PER-REQUEST AUTH STATE
# ======================================================
def get_auth(request: Request) -> AuthClient:
    return build_auth(request)


async def get_session_store(
    request: Request,
    auth: AuthClient = Depends(get_auth),
) -> AsyncIterator[SessionStore]:
    """
    Session store for one request. A sign-out during the request clears the
    whole cookie session so nothing server-rendered survives it.
    """
    store = await open_session_store(auth, on_signed_out=request.session.clear)
    try:
        yield store
    finally:
        store.close()


# ======================================================
# ADMIN GATE
# ======================================================
@dataclass
class AdminContext:
    store: SessionStore
    auth: AuthClient
    client: PostgrestClient
    watch_client: WatchUrlClient

    @property
    def session(self) -> Optional[Session]:
        return self.store.session

    @property
    def user(self) -> Optional[AuthUser]:
        return self.store.user


async def check_gate(store: SessionStore, auth: AuthClient) -> GateState:
    gate = AdminGate(store, auth.sign_out)
    try:
        return await gate.check()
    finally:
        gate.close()


async def require_admin(
    store: SessionStore = Depends(get_session_store),
    auth: AuthClient = Depends(get_auth),
    supabase: SupabaseClient = Depends(get_supabase),
    watch_client: WatchUrlClient = Depends(get_watch_client),
) -> AdminContext:
    """
    Every protected route depends on this.
    - no session       -> LoginRequired (redirect to sign-in)
    - session, no admin -> sign out + NotAuthorized
    """
    state = await check_gate(store, auth)
    if state is GateState.UNAUTHENTICATED:
        raise LoginRequired()
    if state is GateState.UNAUTHORIZED:
        raise NotAuthorized()
    if state is GateState.LOADING:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Session is still loading",
        )
    return AdminContext(
        store=store,
        auth=auth,
        client=supabase.postgrest(store.access_token),
        watch_client=watch_client,
    )
