# streamrokuo_admin/screens/watch.py
from typing import Any, Callable, Dict, Optional

from streamrokuo_admin.auth import Session
from streamrokuo_admin.errors import WatchUrlError
from streamrokuo_admin.schemas import WatchUrlGrant
from streamrokuo_admin.services.watch_url import WatchUrlClient

NO_SESSION = "No active session for watch URL."

# how a client must open the grant: new, unrelated browsing context
OPEN_TARGET = {"target": "_blank", "rel": "noopener noreferrer"}


class WatchAction:
    """In-flight marker + error for the Watch button of a recordings table."""

    def __init__(self, client: WatchUrlClient, current_session: Callable[[], Optional[Session]]):
        self._client = client
        self._current_session = current_session
        self.watching_id: Optional[str] = None
        self.watch_error: Optional[str] = None

    async def watch(self, recording_id: str) -> Optional[WatchUrlGrant]:
        session = self._current_session()
        if session is None or session.is_expired():
            self.watch_error = NO_SESSION
            return None

        self.watch_error = None
        self.watching_id = recording_id
        try:
            return await self._client.fetch(recording_id, session.access_token)
        except WatchUrlError as exc:
            self.watch_error = exc.message
            return None
        finally:
            self.watching_id = None

    def snapshot(self) -> Dict[str, Any]:
        return {"watching_id": self.watching_id, "watch_error": self.watch_error}
