"""Combat session reconciler.

Routes inbound server events to the component that owns them and derives the
presentation view. Encounter truth lives on the server: every snapshot replaces
the local state wholesale and nothing here edits it in place.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

from dndmesa.client import transport as events
from dndmesa.client.bus import EffectBus
from dndmesa.client.chat import ChatLog, TypingIndicator, is_dm_request
from dndmesa.client.classifier import classify, has_any_match
from dndmesa.client.clock import ClockSync, is_finite_number, wall_clock_ms
from dndmesa.client.config import ClientSettings
from dndmesa.client.models import ChatMessage, MessageKind, Participant, Player
from dndmesa.client.notifier import ToneSink, TurnChangeNotifier
from dndmesa.client.state import (
    EncounterState,
    ac_label,
    apply_snapshot,
    build_empty_state,
    header_text,
    hp_percent,
    initials,
    next_up,
)
from dndmesa.client.timer import TurnTimer
from dndmesa.client.timers import LoopScheduler, Scheduler, TimerHandle, cancel
from dndmesa.client.transport import Transport

logger = logging.getLogger(__name__)

ViewListener = Callable[[dict[str, Any]], None]


class CombatSession:
    def __init__(
        self,
        settings: ClientSettings,
        transport: Transport,
        loop: Scheduler | None = None,
        tone_sink: ToneSink | None = None,
        now_ms: Callable[[], float] = wall_clock_ms,
    ) -> None:
        self.settings = settings
        self.transport = transport
        self._scheduler = LoopScheduler(loop)
        self.clock = ClockSync(now_ms)
        self._state = build_empty_state(settings.default_duration_seconds)
        self.timer = TurnTimer(lambda: self._state, self.clock)
        self.notifier = TurnChangeNotifier(self._scheduler, sink=tone_sink, muted=settings.muted)
        self.bus = EffectBus(self._scheduler, default_ttl_ms=settings.fx_ttl_ms, crit_ttl_ms=settings.crit_ttl_ms)
        self.chat = ChatLog()
        self.dm_typing = TypingIndicator(self._scheduler)
        self.players: tuple[Player, ...] = ()
        self._listeners: list[ViewListener] = []
        self._tick_handle: TimerHandle | None = None
        transport.bind(self.dispatch)

    @property
    def state(self) -> EncounterState:
        return self._state

    def add_listener(self, listener: ViewListener) -> None:
        self._listeners.append(listener)

    def dispatch(self, event: str, payload: Mapping[str, Any]) -> None:
        """Route one inbound transport event."""
        if event == events.COMBAT_SNAPSHOT:
            self.apply_snapshot(payload)
        elif event == events.CHAT_MESSAGE:
            self.receive_chat(_chat_message(payload))
        elif event == events.PRESENCE:
            self.set_presence(payload.get("players"))
        elif event == events.CONNECTED:
            self.on_connected()
        elif event == events.CHAT_CLEARED:
            self.chat.clear()
        else:
            logger.debug("Ignoring unknown event %s", event)

    def apply_snapshot(self, snapshot: Any) -> EncounterState:
        if isinstance(snapshot, Mapping):
            self.clock.update(snapshot.get("serverNow"))
        self._state = apply_snapshot(snapshot, self.settings.default_duration_seconds)
        if self.notifier.observe(self._state):
            logger.info("Turn passed to %s", getattr(self._state.active(), "name", None))
        self.timer.tick()
        return self._state

    def receive_chat(self, message: ChatMessage) -> int | None:
        """Log an inbound message and emit its effect, if any."""
        self.chat.append(message)
        if message.kind == MessageKind.DM:
            self.dm_typing.stop()
        if message.kind == MessageKind.SYSTEM:
            return None
        classification = classify(message.text, message.kind)
        if classification is None:
            return None
        return self.bus.push_classification(classification)

    def send_chat(self, text: str) -> int | None:
        """Send a chat line and flash its effect before the server echo.

        The echo is classified again when it arrives; the two flashes are not
        merged because the speculative path carries no shared identifier.
        """
        text = text.strip()
        if not text:
            return None
        ask_dm = is_dm_request(text)
        self.transport.send_chat(text, dm=ask_dm)
        if ask_dm:
            self.dm_typing.start()
        if not has_any_match(text):
            return None
        classification = classify(text)
        if classification is None:
            return None
        return self.bus.push_classification(classification)

    def roll(self, notation: str) -> None:
        notation = notation.strip()
        if notation:
            self.transport.roll(notation)

    def finish_turn(self) -> bool:
        if not self._state.in_combat():
            return False
        self.transport.finish_turn()
        return True

    def on_connected(self) -> None:
        self.transport.request_snapshot()
        self.transport.request_presence()

    def set_presence(self, players: Any) -> None:
        if not isinstance(players, list):
            self.players = ()
            return
        self.players = tuple(
            Player(
                id=str(entry.get("id", "")),
                name=str(entry.get("name", "")),
                role=str(entry.get("role") or "player"),
            )
            for entry in players
            if isinstance(entry, Mapping)
        )

    def toggle_mute(self) -> bool:
        self.notifier.muted = not self.notifier.muted
        return self.notifier.muted

    def start(self) -> None:
        if self._tick_handle is None:
            self._tick_handle = self._scheduler.call_later(self.settings.ui_tick_ms / 1000.0, self.tick)

    def tick(self) -> None:
        self.timer.tick()
        view = self.view()
        for listener in list(self._listeners):
            listener(view)
        self._tick_handle = self._scheduler.call_later(self.settings.ui_tick_ms / 1000.0, self.tick)

    def close(self) -> None:
        cancel(self._tick_handle)
        self._tick_handle = None
        self.notifier.close()
        self.dm_typing.stop()
        self.bus.close()

    def view(self) -> dict[str, Any]:
        state = self._state
        active = state.active()
        return {
            "inCombat": state.in_combat(),
            "header": header_text(state),
            "round": state.round,
            "activeIndex": state.active_index,
            "active": _participant_view(active) if active is not None else None,
            "participants": [_participant_view(participant) for participant in state.participants],
            "nextUp": [participant.name for participant in next_up(state)],
            "running": state.running,
            "autoAdvance": state.auto_advance,
            "autoAdvanceDelaySeconds": state.auto_advance_delay_seconds,
            "timer": {
                "remainingMs": int(self.timer.remaining()),
                "progress": self.timer.progress_percent(),
                "label": self.timer.label(),
            },
            "effects": [
                {
                    "id": event.id,
                    "category": event.category.value,
                    "magnitude": event.magnitude,
                    "x": event.position[0],
                    "y": event.position[1],
                    "ttlMs": event.ttl_ms,
                    "color": event.color,
                    "label": event.label,
                }
                for event in self.bus.snapshot()
            ],
            "shake": self.bus.has_crit(),
            "muted": self.notifier.muted,
            "dmTyping": self.dm_typing.active,
            "miniLog": [
                {"kind": message.kind.value, "text": message.text, "ts": message.timestamp}
                for message in self.chat.mini_log()
            ],
            "players": [{"id": player.id, "name": player.name, "role": player.role} for player in self.players],
        }


def _participant_view(participant: Participant) -> dict[str, Any]:
    meta = participant.meta
    return {
        "id": participant.id,
        "name": participant.name,
        "initiative": participant.initiative,
        "initials": initials(participant.name),
        "hpPercent": hp_percent(participant),
        "acLabel": ac_label(participant),
        "conditions": list(meta.conditions) if meta is not None else [],
    }


def _chat_message(payload: Mapping[str, Any]) -> ChatMessage:
    raw_kind = payload.get("kind")
    try:
        kind = MessageKind(raw_kind)
    except ValueError:
        kind = MessageKind.OTHER
    timestamp = payload.get("timestamp")
    return ChatMessage(
        kind=kind,
        text=str(payload.get("text") or ""),
        timestamp=float(timestamp) if is_finite_number(timestamp) else wall_clock_ms(),
        sender=str(payload.get("sender") or ""),
    )
