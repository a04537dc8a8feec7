"""Short-lived combat effect queue drained by the presentation layer."""

from __future__ import annotations

import logging

from dndmesa.client.models import FX_COLORS, Classification, FxCategory, FxEvent
from dndmesa.client.timers import Scheduler, TimerHandle, cancel

logger = logging.getLogger(__name__)

DEFAULT_TTL_MS = 1200
CRIT_TTL_MS = 1400
CENTER = (50.0, 50.0)


def default_label(category: FxCategory, magnitude: int | None) -> str:
    if magnitude is not None and category == FxCategory.HEAL:
        return f"+{abs(magnitude)}"
    if magnitude is not None and category == FxCategory.DAMAGE:
        return f"-{abs(magnitude)}"
    return category.value.upper()


class EffectBus:
    """Owns the active effect list; each entry removes itself after its TTL."""

    def __init__(
        self,
        scheduler: Scheduler,
        default_ttl_ms: int = DEFAULT_TTL_MS,
        crit_ttl_ms: int = CRIT_TTL_MS,
    ) -> None:
        self._scheduler = scheduler
        self.default_ttl_ms = default_ttl_ms
        self.crit_ttl_ms = crit_ttl_ms
        self._events: tuple[FxEvent, ...] = ()
        self._expiries: dict[int, TimerHandle] = {}
        self._last_id = 0

    def push(
        self,
        category: FxCategory,
        magnitude: int | None = None,
        position: tuple[float, float] = CENTER,
        ttl_ms: int | None = None,
        label: str | None = None,
        color: str | None = None,
    ) -> int:
        category = FxCategory(category)
        if ttl_ms is None or ttl_ms <= 0:
            ttl_ms = self.crit_ttl_ms if category == FxCategory.CRIT else self.default_ttl_ms
        self._last_id += 1
        event = FxEvent(
            id=self._last_id,
            category=category,
            magnitude=magnitude,
            position=position,
            ttl_ms=ttl_ms,
            color=color if color is not None else FX_COLORS[category],
            label=label if label is not None else default_label(category, magnitude),
        )
        self._events = self._events + (event,)
        self._expiries[event.id] = self._scheduler.call_later(ttl_ms / 1000.0, self._expire, event.id)
        return event.id

    def push_classification(self, classification: Classification, **options) -> int:
        return self.push(classification.category, classification.magnitude, **options)

    def remove(self, event_id: int) -> None:
        cancel(self._expiries.pop(event_id, None))
        self._events = tuple(event for event in self._events if event.id != event_id)

    def snapshot(self) -> tuple[FxEvent, ...]:
        return self._events

    def has_crit(self) -> bool:
        return any(event.category == FxCategory.CRIT for event in self._events)

    def close(self) -> None:
        for handle in self._expiries.values():
            handle.cancel()
        self._expiries.clear()
        self._events = ()

    def _expire(self, event_id: int) -> None:
        self._expiries.pop(event_id, None)
        self.remove(event_id)
        logger.debug("Effect %s expired", event_id)
