# streamrokuo_admin/api/ws_routes.py
import json
import logging
from typing import Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from streamrokuo_admin.deps import build_auth, open_session_store
from streamrokuo_admin.gate import AdminGate, GateState
from streamrokuo_admin.screens import LIST_SCREENS, RecordingsScreen, WatchAction
from streamrokuo_admin.ws_manager import LiveScreen, manager

log = logging.getLogger("streamrokuo_admin.ws_routes")

router = APIRouter(tags=["live"])

CLOSE_UNAUTHENTICATED = 4401
CLOSE_UNAUTHORIZED = 4403
CLOSE_UNKNOWN_SCREEN = 4404


@router.websocket("/ws/screens/{name}")
async def ws_screen(websocket: WebSocket, name: str):
    screen_cls = LIST_SCREENS.get(name)
    if screen_cls is None:
        await websocket.close(code=CLOSE_UNKNOWN_SCREEN)
        return

    live: Optional[LiveScreen] = None

    def _signed_out() -> None:
        if live is not None:
            live.screen.close()

    auth = build_auth(websocket)
    store = await open_session_store(auth, on_signed_out=_signed_out)
    gate = AdminGate(store, auth.sign_out)
    state = await gate.check()
    if state is not GateState.AUTHORIZED:
        gate.close()
        store.close()
        code = CLOSE_UNAUTHORIZED if state is GateState.UNAUTHORIZED else CLOSE_UNAUTHENTICATED
        log.info("Live screen %s refused (%s)", name, state.value)
        await websocket.close(code=code)
        return

    client = websocket.app.state.supabase.postgrest(store.access_token)
    if screen_cls is RecordingsScreen:
        screen = RecordingsScreen(client, WatchAction(websocket.app.state.watch_client, lambda: store.session))
    else:
        screen = screen_cls(client)

    live = LiveScreen(websocket, screen, gate, store, auth, websocket.app.state.supabase)
    await manager.connect(live)
    try:
        await screen.load()
        await live.send_snapshot()
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except ValueError:
                await live.send_error("Messages must be JSON objects")
                continue
            if not isinstance(message, dict):
                await live.send_error("Messages must be JSON objects")
                continue
            state = await live.ensure_authorized()
            if state is not GateState.AUTHORIZED:
                code = CLOSE_UNAUTHORIZED if state is GateState.UNAUTHORIZED else CLOSE_UNAUTHENTICATED
                log.info("Live screen %s closed, session %s", name, state.value)
                await websocket.close(code=code)
                break
            live.spawn(message)
    except WebSocketDisconnect:
        log.info("Live screen %s client went away", name)
    finally:
        await manager.disconnect(live)
