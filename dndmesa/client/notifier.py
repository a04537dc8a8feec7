"""Turn-change detection with an audible two-tone cue."""

from __future__ import annotations

import logging
from typing import Protocol

from dndmesa.client.state import EncounterState
from dndmesa.client.timers import Scheduler, TimerHandle, cancel

logger = logging.getLogger(__name__)

FIRST_TONE = (740, 110)
SECOND_TONE = (880, 140)
SECOND_TONE_DELAY_MS = 130


class AudioUnavailableError(RuntimeError):
    """Raised by a tone sink that cannot produce sound right now."""


class ToneSink(Protocol):
    def play(self, frequency_hz: int, duration_ms: int) -> None:
        """Emit a single sine tone."""


class TurnChangeNotifier:
    """Fires a cue when the active participant changes between snapshots.

    The first snapshot after entering combat only records the active index, so
    a reconnect or initial load stays silent. Leaving combat forgets the index.
    Muting silences the cue without affecting the tracking.
    """

    def __init__(self, scheduler: Scheduler, sink: ToneSink | None = None, muted: bool = False) -> None:
        self._scheduler = scheduler
        self.sink = sink
        self.muted = muted
        self._last_index: int | None = None
        self._pending: TimerHandle | None = None

    @property
    def tracking(self) -> bool:
        return self._last_index is not None

    @property
    def last_index(self) -> int | None:
        return self._last_index

    def observe(self, state: EncounterState) -> bool:
        """Record ``state`` and return True when it is a new turn."""
        if not state.in_combat():
            self._last_index = None
            return False
        if self._last_index is None:
            self._last_index = state.active_index
            return False
        if state.active_index == self._last_index:
            return False
        self._last_index = state.active_index
        self._cue()
        return True

    def close(self) -> None:
        cancel(self._pending)
        self._pending = None

    def _cue(self) -> None:
        if self.muted or self.sink is None:
            return
        if not self._play(*FIRST_TONE):
            return
        cancel(self._pending)
        self._pending = self._scheduler.call_later(SECOND_TONE_DELAY_MS / 1000.0, self._second_tone)

    def _second_tone(self) -> None:
        self._pending = None
        if not self.muted:
            self._play(*SECOND_TONE)

    def _play(self, frequency_hz: int, duration_ms: int) -> bool:
        if self.sink is None:
            return False
        try:
            self.sink.play(frequency_hz, duration_ms)
        except AudioUnavailableError:
            logger.debug("Audio unavailable, skipping %s Hz tone", frequency_hz)
            return False
        return True
