# streamrokuo_admin/gate.py
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

from streamrokuo_admin.auth import AuthUser
from streamrokuo_admin.session_store import SessionStore

log = logging.getLogger("streamrokuo_admin.gate")


class GateState(str, Enum):
    LOADING = "loading"
    UNAUTHENTICATED = "unauthenticated"
    UNAUTHORIZED = "unauthorized"
    AUTHORIZED = "authorized"


def is_admin_user(user: Optional[AuthUser]) -> bool:
    if user is None:
        return False
    return bool((user.app_metadata or {}).get("is_admin"))


class AdminGate:
    """
    Guard in front of every protected screen.

    loading -> unauthenticated | unauthorized | authorized
    - unauthorized is terminal and signs the visitor out exactly once
    - any later loss of the session drops authorized back to unauthenticated
    """

    def __init__(self, store: SessionStore, sign_out: Callable[[], Awaitable[None]]):
        self._store = store
        self._sign_out = sign_out
        self._pending_sign_out = False
        self._signed_out = False
        self.state = GateState.LOADING
        self._unsubscribe = store.subscribe(lambda _store: self.evaluate())

    def evaluate(self) -> GateState:
        if self.state is GateState.UNAUTHORIZED:
            return self.state

        store = self._store
        if store.is_loading:
            self.state = GateState.LOADING
        elif store.session is None:
            self.state = GateState.UNAUTHENTICATED
        elif not is_admin_user(store.user):
            log.warning("Non-admin session blocked user=%s", store.user.id if store.user else None)
            self.state = GateState.UNAUTHORIZED
            self._pending_sign_out = True
        else:
            self.state = GateState.AUTHORIZED
        return self.state

    async def check(self) -> GateState:
        state = self.evaluate()
        if self._pending_sign_out and not self._signed_out:
            self._pending_sign_out = False
            self._signed_out = True
            await self._sign_out()
        return state

    def close(self) -> None:
        self._unsubscribe()
