# streamrokuo_admin/session_store.py
import logging
from typing import Callable, List, Optional

from streamrokuo_admin.auth import SIGNED_OUT, AuthClient, AuthUser, Session

log = logging.getLogger("streamrokuo_admin.session_store")

Listener = Callable[["SessionStore"], None]


class SessionStore:
    """
    Current session + user for one browsing context.

    Built at the composition root and handed to whoever needs it; screens only
    read it. It is written exclusively from auth-provider events.
    """

    def __init__(self, auth: AuthClient, on_signed_out: Optional[Callable[[], None]] = None):
        self._auth = auth
        self._on_signed_out = on_signed_out
        self._listeners: List[Listener] = []
        self._unsubscribe: Optional[Callable[[], None]] = None
        self.session: Optional[Session] = None
        self.user: Optional[AuthUser] = None
        self.is_loading = True

    def start(self) -> "SessionStore":
        if self._unsubscribe is None:
            self._unsubscribe = self._auth.on_auth_state_change(self._handle_event)
        return self

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._listeners.clear()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _handle_event(self, event: str, session: Optional[Session]) -> None:
        self.session = session
        self.user = session.user if session else None
        self.is_loading = False

        if event == SIGNED_OUT and self._on_signed_out is not None:
            self._on_signed_out()

        for listener in list(self._listeners):
            listener(self)

    @property
    def access_token(self) -> Optional[str]:
        return self.session.access_token if self.session else None
