"""Cancellable timer handles on top of the event loop."""

from __future__ import annotations

import asyncio
from typing import Callable, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None:
        """Stop the callback from running."""


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[..., object], *args: object) -> TimerHandle:
        """Run ``callback`` once after ``delay`` seconds."""


class LoopScheduler:
    """Schedules on ``loop`` or, when none was given, on the running loop."""

    def __init__(self, loop: Scheduler | None = None) -> None:
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[..., object], *args: object) -> TimerHandle:
        loop = self._loop if self._loop is not None else asyncio.get_running_loop()
        return loop.call_later(delay, callback, *args)


def cancel(handle: TimerHandle | None) -> None:
    if handle is not None:
        handle.cancel()
