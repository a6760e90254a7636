# streamrokuo_admin/ws_manager.py
import asyncio
import logging
from typing import Any, Dict, List, Set

from fastapi import WebSocket

from streamrokuo_admin.auth import AuthClient
from streamrokuo_admin.backend import SupabaseClient
from streamrokuo_admin.gate import AdminGate, GateState
from streamrokuo_admin.screens import SupportTicketsScreen
from streamrokuo_admin.screens.watch import OPEN_TARGET
from streamrokuo_admin.session_store import SessionStore

logger = logging.getLogger("streamrokuo_admin.ws")


class LiveScreen:
    """
    One websocket bound to one screen view-model.

    Every client action runs as its own task, so a slow page load can be
    overtaken by a later one; the screen's generation counter keeps only the
    newest result. Outgoing frames are serialized through a lock.
    """

    def __init__(
        self,
        websocket: WebSocket,
        screen: Any,
        gate: AdminGate,
        store: SessionStore,
        auth: AuthClient,
        supabase: SupabaseClient,
    ):
        self.websocket = websocket
        self.screen = screen
        self.gate = gate
        self.store = store
        self.auth = auth
        self.supabase = supabase
        self._send_lock = asyncio.Lock()
        self._tasks: Set[asyncio.Task] = set()

    async def send_json(self, message: Dict[str, Any]) -> None:
        async with self._send_lock:
            await self.websocket.send_json(message)

    async def send_snapshot(self) -> None:
        await self.send_json({"type": "snapshot", **self.screen.snapshot()})

    async def send_error(self, detail: str) -> None:
        await self.send_json({"type": "error", "detail": detail})

    async def ensure_authorized(self) -> GateState:
        """
        Re-check the session before an action. An expired token is refreshed
        once; a failed refresh signs out and the gate drops to unauthenticated.
        """
        session = self.store.session
        if session is not None and session.is_expired():
            await self.auth.refresh_session()
            token = self.store.access_token
            if token and token != session.access_token:
                self.screen.client = self.supabase.postgrest(token)
        return await self.gate.check()

    def spawn(self, message: Dict[str, Any]) -> asyncio.Task:
        task = asyncio.create_task(self._run(message))
        self._tasks.add(task)
        task.add_done_callback(self._finished)
        return task

    def _finished(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning("Live screen %s action failed: %s", self.screen.name, task.exception())

    async def _run(self, message: Dict[str, Any]) -> None:
        try:
            handled = await self.handle(message)
            if self.screen.closed:
                return
            if handled:
                await self.send_snapshot()
            else:
                await self.send_error(f"Unknown action: {message.get('action')}")
        except (ValueError, TypeError) as exc:
            await self.send_error(f"Bad action payload: {exc}")

    async def handle(self, message: Dict[str, Any]) -> bool:
        action = message.get("action")
        screen = self.screen
        params = {k: v for k, v in message.items() if k != "action"}

        if action == "goto":
            await screen.goto(int(params.get("page", 0)))
        elif action == "next":
            await screen.next_page()
        elif action == "prev":
            await screen.prev_page()
        elif action == "filter":
            await screen.set_filters(**params)
        elif action == "clear":
            await screen.clear_filters()
        elif action == "reload":
            await screen.load()
        elif action == "select" and isinstance(screen, SupportTicketsScreen):
            screen.select(params.get("ticket_id"))
        elif action == "update_status" and isinstance(screen, SupportTicketsScreen):
            await screen.update_status(str(params.get("ticket_id") or ""), str(params.get("status") or ""))
        elif action == "watch" and getattr(screen, "watch", None) is not None:
            grant = await screen.watch.watch(str(params.get("recording_id") or ""))
            if grant is not None and not screen.closed:
                await self.send_json({"type": "open", **grant.model_dump(), **OPEN_TARGET})
        else:
            return False
        return True

    async def close(self) -> None:
        self.screen.close()
        pending = list(self._tasks)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self.gate.close()
        self.store.close()


class ConnectionManager:
    def __init__(self):
        self.connections: List[LiveScreen] = []

    async def connect(self, live: LiveScreen) -> None:
        await live.websocket.accept()
        self.connections.append(live)
        logger.info("Live screen %s connected. total=%d", live.screen.name, len(self.connections))

    async def disconnect(self, live: LiveScreen) -> None:
        await live.close()
        try:
            self.connections.remove(live)
        except ValueError:
            pass
        logger.info("Live screen %s disconnected. total=%d", live.screen.name, len(self.connections))


manager = ConnectionManager()
