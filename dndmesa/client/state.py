"""Encounter state reconciled from server snapshots."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Mapping

from dndmesa.client.clock import is_finite_number
from dndmesa.client.models import Participant, ParticipantMeta

logger = logging.getLogger(__name__)

DEFAULT_DURATION_SECONDS = 60.0
DEFAULT_AUTO_ADVANCE_DELAY_SECONDS = 1.0


@dataclass(frozen=True)
class EncounterState:
    participants: tuple[Participant, ...] = ()
    round: int = 1
    active_index: int = 0
    running: bool = False
    turn_end_instant: float | None = None
    duration_seconds: float = DEFAULT_DURATION_SECONDS
    auto_advance: bool = False
    auto_advance_delay_seconds: float = DEFAULT_AUTO_ADVANCE_DELAY_SECONDS

    def in_combat(self) -> bool:
        return len(self.participants) > 0

    def active(self) -> Participant | None:
        if not self.in_combat():
            return None
        return self.participants[self.active_index]


def build_empty_state(default_duration_seconds: float = DEFAULT_DURATION_SECONDS) -> EncounterState:
    """Return the "no encounter" state used before the first snapshot."""
    return EncounterState(duration_seconds=default_duration_seconds)


def apply_snapshot(
    snapshot: Any,
    default_duration_seconds: float = DEFAULT_DURATION_SECONDS,
) -> EncounterState:
    """Build a fresh state from a server snapshot.

    Every field is defaulted on its own so a partial or malformed snapshot
    degrades to a consistent state (at worst "no encounter") instead of raising.
    """
    if not isinstance(snapshot, Mapping):
        logger.debug("Snapshot is not a mapping, falling back to no encounter")
        return build_empty_state(default_duration_seconds)

    raw_participants = snapshot.get("participants")
    participants: list[Participant] = []
    if isinstance(raw_participants, (list, tuple)):
        for entry in raw_participants:
            participant = _parse_participant(entry)
            if participant is not None:
                participants.append(participant)

    round_number = _as_int(snapshot.get("round"), default=1)
    if round_number < 1:
        round_number = 1

    active_index = _as_int(snapshot.get("activeIndex"), default=0)
    if participants:
        active_index = min(max(active_index, 0), len(participants) - 1)
    else:
        active_index = 0

    duration = snapshot.get("durationSeconds")
    if not is_finite_number(duration) or duration <= 0:
        duration = default_duration_seconds

    delay = snapshot.get("autoAdvanceDelaySeconds")
    if not is_finite_number(delay) or delay < 0:
        delay = DEFAULT_AUTO_ADVANCE_DELAY_SECONDS

    turn_end = snapshot.get("turnEndInstant")
    running = snapshot.get("running")

    return EncounterState(
        participants=tuple(participants),
        round=round_number,
        active_index=active_index,
        running=running if isinstance(running, bool) else False,
        turn_end_instant=float(turn_end) if is_finite_number(turn_end) else None,
        duration_seconds=float(duration),
        auto_advance=bool(snapshot.get("autoAdvance")),
        auto_advance_delay_seconds=float(delay),
    )


def next_up(state: EncounterState, count: int = 3) -> list[Participant]:
    """Return the participants acting after the active one, wrapping around."""
    participants = state.participants
    if len(participants) <= 1:
        return []
    upcoming: list[Participant] = []
    for step in range(1, min(count, len(participants) - 1) + 1):
        upcoming.append(participants[(state.active_index + step) % len(participants)])
    return upcoming


def header_text(state: EncounterState) -> str:
    active = state.active()
    name = active.name if active is not None else "—"
    return f"Iniciativa — Ronda {state.round} — Turno: {name}"


def hp_percent(participant: Participant) -> int | None:
    meta = participant.meta
    if meta is None or meta.hp is None or meta.max_hp is None or meta.max_hp <= 0:
        return None
    return max(0, min(100, math.floor(meta.hp / meta.max_hp * 100 + 0.5)))


def ac_label(participant: Participant) -> str | None:
    if participant.meta is None or participant.meta.ac is None:
        return None
    return f"CA {participant.meta.ac}"


def initials(name: str) -> str:
    parts = (name or "").split()
    if not parts:
        return "?"
    if len(parts) == 1:
        return parts[0][:2].upper()
    return (parts[0][0] + parts[1][0]).upper()


def _as_int(value: Any, default: int) -> int:
    if not is_finite_number(value):
        return default
    return int(value)


def _as_optional_int(value: Any) -> int | None:
    return int(value) if is_finite_number(value) else None


def _parse_participant(entry: Any) -> Participant | None:
    if not isinstance(entry, Mapping):
        logger.debug("Dropping malformed participant entry %r", entry)
        return None
    initiative = entry.get("initiative")
    return Participant(
        id=str(entry.get("id", "")),
        name=str(entry.get("name", "")),
        initiative=initiative if is_finite_number(initiative) else 0,
        meta=_parse_meta(entry.get("meta")),
    )


def _parse_meta(raw: Any) -> ParticipantMeta | None:
    if not isinstance(raw, Mapping):
        return None
    conditions = raw.get("conditions")
    note = raw.get("note")
    return ParticipantMeta(
        hp=_as_optional_int(raw.get("hp")),
        max_hp=_as_optional_int(raw.get("maxHp")),
        ac=_as_optional_int(raw.get("ac")),
        conditions=tuple(str(item) for item in conditions) if isinstance(conditions, (list, tuple)) else (),
        is_npc=raw.get("isNPC") is True,
        note=note if isinstance(note, str) else None,
    )
