"""Turn countdown derived from encounter state and the clock offset."""

from __future__ import annotations

import math
from typing import Callable

from dndmesa.client.clock import ClockSync
from dndmesa.client.state import EncounterState


def remaining_ms(state: EncounterState, clock: ClockSync, now_ms: float) -> float:
    if not state.in_combat() or state.turn_end_instant is None:
        return 0.0
    remaining = max(0.0, clock.to_local(state.turn_end_instant) - now_ms)
    return min(remaining, max(0.0, state.duration_seconds * 1000.0))


def progress_percent(remaining: float, duration_seconds: float) -> int:
    total = max(1.0, duration_seconds * 1000.0)
    return max(0, min(100, math.floor(remaining / total * 100 + 0.5)))


def format_label(remaining: float) -> str:
    seconds = math.ceil(max(0.0, remaining) / 1000.0)
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


class TurnTimer:
    """Holds the last computed countdown; ``tick()`` refreshes it."""

    def __init__(self, state: Callable[[], EncounterState], clock: ClockSync) -> None:
        self._state = state
        self._clock = clock
        self._remaining = 0.0

    def tick(self) -> float:
        self._remaining = remaining_ms(self._state(), self._clock, self._clock.now())
        return self._remaining

    def remaining(self) -> float:
        return self._remaining

    def progress_percent(self) -> int:
        return progress_percent(self._remaining, self._state().duration_seconds)

    def label(self) -> str:
        return format_label(self._remaining)
