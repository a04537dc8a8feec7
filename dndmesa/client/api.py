"""FastAPI endpoints exposing the reconciled combat view to a local UI."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, Field

from .config import load_settings
from .notifier import AudioUnavailableError
from .session import CombatSession
from .transport import SocketIOTransport, create_transport

logger = logging.getLogger(__name__)


class ViewResponse(BaseModel):
    view: dict[str, Any]


class ChatRequest(BaseModel):
    text: str = Field(min_length=1, max_length=1000)


class ChatResponse(BaseModel):
    effect_id: int | None
    view: dict[str, Any]


class RollRequest(BaseModel):
    notation: str = Field(min_length=1, max_length=100)


class ViewWebSocketHub:
    def __init__(self) -> None:
        self._connections: set[WebSocket] = set()
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def has_connections(self) -> bool:
        return bool(self._connections)

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self._connections.add(websocket)

    def disconnect(self, websocket: WebSocket) -> None:
        self._connections.discard(websocket)

    async def send_view(self, websocket: WebSocket, view: dict[str, Any]) -> None:
        await websocket.send_json({"type": "view.full", "view": view})

    async def broadcast(self, message: dict[str, Any]) -> None:
        stale_connections: list[WebSocket] = []
        for websocket in list(self._connections):
            try:
                await websocket.send_json(message)
            except RuntimeError:
                stale_connections.append(websocket)
        for websocket in stale_connections:
            self.disconnect(websocket)

    def publish(self, message: dict[str, Any]) -> None:
        if not self._connections:
            return
        task = asyncio.get_running_loop().create_task(self.broadcast(message))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def publish_view(self, view: dict[str, Any]) -> None:
        self.publish({"type": "view.full", "view": view})


class HubToneSink:
    """Forwards notifier tones to the connected views, which play them."""

    def __init__(self, hub: ViewWebSocketHub) -> None:
        self._hub = hub

    def play(self, frequency_hz: int, duration_ms: int) -> None:
        if not self._hub.has_connections:
            raise AudioUnavailableError("no view connected")
        self._hub.publish({"type": "tone", "frequencyHz": frequency_hz, "durationMs": duration_ms})


def _default_session() -> CombatSession:
    settings = load_settings()
    transport = create_transport(
        server_url=settings.server_url,
        room_id=settings.room_id,
        player_name=settings.player_name,
        role=settings.role,
    )
    return CombatSession(settings=settings, transport=transport)


def create_app(session: CombatSession | None = None) -> FastAPI:
    combat_session = session if session is not None else _default_session()
    view_hub = ViewWebSocketHub()
    if combat_session.notifier.sink is None:
        combat_session.notifier.sink = HubToneSink(view_hub)
    combat_session.add_listener(view_hub.publish_view)

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        transport = combat_session.transport
        try:
            if isinstance(transport, SocketIOTransport):
                await transport.connect()
            combat_session.start()
            logger.info("Combat view started for room %r", combat_session.settings.room_id)
            yield
        finally:
            combat_session.close()
            if isinstance(transport, SocketIOTransport):
                await transport.disconnect()

    app = FastAPI(title="DND Mesa combat view", version="0.1.0", lifespan=lifespan)
    app.state.session = combat_session
    app.state.view_hub = view_hub

    @app.get("/api/view", response_model=ViewResponse)
    async def get_view() -> ViewResponse:
        return ViewResponse(view=combat_session.view())

    @app.post("/api/chat", response_model=ChatResponse)
    async def post_chat(payload: ChatRequest) -> ChatResponse:
        effect_id = combat_session.send_chat(payload.text)
        return ChatResponse(effect_id=effect_id, view=combat_session.view())

    @app.post("/api/rolls", response_model=ViewResponse)
    async def post_roll(payload: RollRequest) -> ViewResponse:
        combat_session.roll(payload.notation)
        return ViewResponse(view=combat_session.view())

    @app.post("/api/turn/finish", response_model=ViewResponse)
    async def post_finish_turn() -> ViewResponse:
        if not combat_session.finish_turn():
            raise HTTPException(status_code=409, detail="No encounter in progress")
        return ViewResponse(view=combat_session.view())

    @app.post("/api/mute", response_model=ViewResponse)
    async def post_mute() -> ViewResponse:
        combat_session.toggle_mute()
        return ViewResponse(view=combat_session.view())

    @app.websocket("/ws/view")
    async def view_ws(websocket: WebSocket) -> None:
        await view_hub.connect(websocket)
        await view_hub.send_view(websocket, combat_session.view())
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            view_hub.disconnect(websocket)

    return app


app = create_app()
