# streamrokuo_admin/api/auth_routes.py
import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from streamrokuo_admin.auth import AuthClient
from streamrokuo_admin.config import Settings
from streamrokuo_admin.deps import check_gate, get_auth, get_session_store, get_settings
from streamrokuo_admin.errors import AuthError
from streamrokuo_admin.gate import GateState
from streamrokuo_admin.schemas import LoginPayload
from streamrokuo_admin.session_store import SessionStore

log = logging.getLogger("streamrokuo_admin.auth_routes")

router = APIRouter(tags=["auth"])

NOT_ADMIN_MESSAGE = "Your account is not authorized for admin access."


@router.get("/login")
async def login_page(settings: Settings = Depends(get_settings)):
    return {"app": settings.app_name, "title": "Admin sign in"}


@router.post("/login")
async def login(
    payload: LoginPayload,
    auth: AuthClient = Depends(get_auth),
    store: SessionStore = Depends(get_session_store),
):
    try:
        await auth.sign_in_with_password(payload.email, payload.password)
    except AuthError as exc:
        log.info("Sign-in rejected for %s: %s", payload.email, exc.message)
        return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"detail": exc.message})

    user = store.user
    state = await check_gate(store, auth)
    if state is GateState.UNAUTHORIZED:
        return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": NOT_ADMIN_MESSAGE})

    return {"ok": True, "user": user.to_dict() if user else None}


@router.post("/logout")
async def logout(
    auth: AuthClient = Depends(get_auth),
    store: SessionStore = Depends(get_session_store),
):
    await auth.sign_out()
    return {"ok": True}


@router.get("/session")
async def current_session(
    auth: AuthClient = Depends(get_auth),
    store: SessionStore = Depends(get_session_store),
):
    user = store.user
    state = await check_gate(store, auth)
    return {
        "state": state.value,
        "user": user.to_dict() if user and state is GateState.AUTHORIZED else None,
        "expires_at": store.session.expires_at if store.session else None,
    }
