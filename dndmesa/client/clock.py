"""Client/server clock offset tracking."""

from __future__ import annotations

import logging
import math
import time
from typing import Any, Callable

logger = logging.getLogger(__name__)


def wall_clock_ms() -> float:
    return time.time() * 1000.0


def is_finite_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


class ClockSync:
    """Additive offset between the local clock and the server clock.

    ``offset`` is ``local_now - server_now`` in milliseconds, taken from the
    most recent snapshot. A non-finite server timestamp keeps the previous
    offset.
    """

    def __init__(self, now_ms: Callable[[], float] = wall_clock_ms) -> None:
        self._now_ms = now_ms
        self.offset: float = 0.0

    def now(self) -> float:
        return self._now_ms()

    def update(self, server_now: Any) -> bool:
        if not is_finite_number(server_now):
            logger.debug("Ignoring non-finite server timestamp %r", server_now)
            return False
        self.offset = self._now_ms() - float(server_now)
        return True

    def to_local(self, server_instant: float) -> float:
        return server_instant + self.offset
