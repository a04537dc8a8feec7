"""Event channel between the client and the tabletop server."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol

logger = logging.getLogger(__name__)

EventHandler = Callable[[str, dict[str, Any]], None]

COMBAT_SNAPSHOT = "combat-snapshot"
CHAT_MESSAGE = "chat-message"
PRESENCE = "presence"
CONNECTED = "connected"
CHAT_CLEARED = "chat-cleared"


class Transport(Protocol):
    def bind(self, handler: EventHandler) -> None:
        """Register the callback receiving inbound events."""

    def request_snapshot(self) -> None:
        """Ask the server for the current encounter snapshot."""

    def request_presence(self) -> None:
        """Ask the server for the players in the room."""

    def finish_turn(self) -> None:
        """Tell the server the local player ended their turn."""

    def send_chat(self, text: str, dm: bool = False) -> None:
        """Send a chat line, addressed to the DM when ``dm`` is set."""

    def roll(self, notation: str) -> None:
        """Ask the server to roll dice in ``notation``."""


@dataclass
class RecordingTransport:
    """Offline transport keeping every outbound action in ``sent``."""

    sent: list[tuple[str, dict[str, Any]]] = field(default_factory=list)

    def __post_init__(self) -> None:
        self._handler: EventHandler | None = None

    def bind(self, handler: EventHandler) -> None:
        self._handler = handler

    def deliver(self, event: str, payload: dict[str, Any] | None = None) -> None:
        if self._handler is not None:
            self._handler(event, payload or {})

    def request_snapshot(self) -> None:
        self.sent.append(("request_snapshot", {}))

    def request_presence(self) -> None:
        self.sent.append(("request_presence", {}))

    def finish_turn(self) -> None:
        self.sent.append(("finish_turn", {}))

    def send_chat(self, text: str, dm: bool = False) -> None:
        self.sent.append(("send_chat", {"text": text, "dm": dm}))

    def roll(self, notation: str) -> None:
        self.sent.append(("roll", {"notation": notation}))


def snapshot_from_wire(payload: Any) -> dict[str, Any]:
    """Translate a ``combat:update`` payload into the abstract snapshot shape."""
    if not isinstance(payload, dict):
        return {}
    raw_list = payload.get("list")
    participants: Any = raw_list
    if isinstance(raw_list, list):
        participants = [
            {
                "id": entry.get("id"),
                "name": entry.get("name"),
                "initiative": entry.get("init"),
                "meta": entry.get("meta"),
            }
            for entry in raw_list
            if isinstance(entry, dict)
        ]
    return {
        "participants": participants,
        "round": payload.get("round"),
        "activeIndex": payload.get("turnIndex"),
        "durationSeconds": payload.get("durationSec"),
        "autoAdvance": payload.get("autoAdvance"),
        "autoAdvanceDelaySeconds": payload.get("autoDelaySec"),
        "running": payload.get("running"),
        "turnEndInstant": payload.get("endAt"),
        "serverNow": payload.get("serverNow"),
    }


def roll_text(payload: dict[str, Any]) -> str:
    rolls = payload.get("rolls")
    rolled = ", ".join(str(value) for value in rolls) if isinstance(rolls, list) else ""
    return f"🎲 {payload.get('detail', '')} → [{rolled}] = {payload.get('total', '')}"


@dataclass
class SocketIOTransport:
    server_url: str
    room_id: str
    player_name: str
    role: str = "player"
    client: Any = None

    def __post_init__(self) -> None:
        self._handler: EventHandler | None = None
        self._pending: set[asyncio.Task[Any]] = set()
        self._ready = False
        if self.client is not None:
            self._register(self.client)

    def _connect_client(self) -> Any:
        if self.client is None:
            import socketio

            self.client = socketio.AsyncClient(reconnection=True, reconnection_delay=0.6)
            self._register(self.client)
        return self.client

    def bind(self, handler: EventHandler) -> None:
        self._handler = handler

    async def connect(self) -> None:
        client = self._connect_client()
        logger.info("Connecting to %s as %s", self.server_url, self.player_name)
        await client.connect(self.server_url, transports=["websocket", "polling"])

    async def disconnect(self) -> None:
        self._ready = False
        for task in list(self._pending):
            task.cancel()
        if self.client is not None:
            await self.client.disconnect()

    def request_snapshot(self) -> None:
        self._emit("combat:get")

    def request_presence(self) -> None:
        self._emit("getPresence")

    def finish_turn(self) -> None:
        self._emit("combat:finishTurn")

    def send_chat(self, text: str, dm: bool = False) -> None:
        self._emit("chat", {"text": text, "dm": dm})

    def roll(self, notation: str) -> None:
        self._emit("roll", {"notation": notation})

    def _emit(self, event: str, data: dict[str, Any] | None = None) -> None:
        if self.client is None or not self._ready:
            logger.debug("Dropping %s, socket not connected", event)
            return
        task = asyncio.get_running_loop().create_task(self.client.emit(event, data))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _deliver(self, event: str, payload: dict[str, Any]) -> None:
        if self._handler is not None:
            self._handler(event, payload)

    def _register(self, client: Any) -> None:
        client.on("connect", self._on_connect)
        client.on("disconnect", self._on_disconnect)
        client.on("combat:update", self._on_combat_update)
        client.on("chat", self._on_chat)
        client.on("dm", self._on_dm)
        client.on("roll", self._on_roll)
        client.on("system", self._on_system)
        client.on("joined", self._on_joined)
        client.on("presence", self._on_presence)
        client.on("chat:cleared", self._on_chat_cleared)

    def _on_connect(self) -> None:
        self._ready = True
        logger.info("Connected to %s", self.server_url)
        self._emit("join", {"roomId": self.room_id, "name": self.player_name, "role": self.role})
        self._deliver(CONNECTED, {})

    def _on_disconnect(self, *args: Any) -> None:
        self._ready = False
        logger.info("Disconnected from %s", self.server_url)

    def _on_combat_update(self, payload: Any) -> None:
        self._deliver(COMBAT_SNAPSHOT, snapshot_from_wire(payload))

    def _on_chat(self, payload: Any) -> None:
        self._deliver(CHAT_MESSAGE, _chat(payload, "other"))

    def _on_dm(self, payload: Any) -> None:
        self._deliver(CHAT_MESSAGE, _chat(payload, "dm", sender="DM"))

    def _on_roll(self, payload: Any) -> None:
        self._deliver(CHAT_MESSAGE, _chat(payload, "roll", text=roll_text(payload) if isinstance(payload, dict) else ""))

    def _on_system(self, text: str) -> None:
        self._deliver(CHAT_MESSAGE, {"kind": "system", "text": str(text), "sender": "System"})

    def _on_joined(self, payload: Any) -> None:
        payload = payload if isinstance(payload, dict) else {}
        text = f'Conectado a la mesa "{payload.get("roomId", "")}" como {payload.get("nickname", "")}'
        self._deliver(CHAT_MESSAGE, {"kind": "system", "text": text, "sender": "System"})

    def _on_presence(self, players: Any) -> None:
        self._deliver(PRESENCE, {"players": players})

    def _on_chat_cleared(self, payload: Any) -> None:
        self._deliver(CHAT_CLEARED, payload if isinstance(payload, dict) else {})


def _chat(payload: Any, kind: str, text: str | None = None, sender: str | None = None) -> dict[str, Any]:
    if not isinstance(payload, dict):
        payload = {}
    return {
        "kind": kind,
        "text": text if text is not None else str(payload.get("text", "")),
        "timestamp": payload.get("ts"),
        "sender": sender if sender is not None else payload.get("from", ""),
    }


def create_transport(server_url: str | None, room_id: str, player_name: str, role: str = "player") -> Transport:
    if server_url:
        return SocketIOTransport(server_url=server_url, room_id=room_id, player_name=player_name, role=role)
    return RecordingTransport()
