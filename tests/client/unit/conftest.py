from __future__ import annotations

from typing import Any, Callable

import pytest

from dndmesa.client.config import ClientSettings


class FakeHandle:
    def __init__(self, when: float, callback: Callable[..., Any], args: tuple[Any, ...]) -> None:
        self.when = when
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeLoop:
    """Manually advanced stand-in for ``loop.call_later``."""

    def __init__(self, start_ms: float = 1_000_000.0) -> None:
        self.time = 0.0
        self.start_ms = start_ms
        self._handles: list[FakeHandle] = []

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> FakeHandle:
        handle = FakeHandle(self.time + delay, callback, args)
        self._handles.append(handle)
        return handle

    def now_ms(self) -> float:
        return self.start_ms + self.time * 1000.0

    @property
    def pending(self) -> list[FakeHandle]:
        return [handle for handle in self._handles if not handle.cancelled]

    def advance(self, seconds: float) -> None:
        target = self.time + seconds
        while True:
            due = [handle for handle in self.pending if handle.when <= target]
            if not due:
                break
            handle = min(due, key=lambda item: item.when)
            self._handles.remove(handle)
            self.time = handle.when
            handle.callback(*handle.args)
        self.time = target


class RecordingSink:
    def __init__(self) -> None:
        self.tones: list[tuple[int, int]] = []

    def play(self, frequency_hz: int, duration_ms: int) -> None:
        self.tones.append((frequency_hz, duration_ms))


@pytest.fixture
def fake_loop() -> FakeLoop:
    return FakeLoop()


@pytest.fixture
def tone_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def settings() -> ClientSettings:
    return ClientSettings(
        server_url=None,
        room_id="mesa-1",
        player_name="Aria",
        role="player",
        host="127.0.0.1",
        port=8100,
        default_duration_seconds=60.0,
        ui_tick_ms=150,
        fx_ttl_ms=1200,
        crit_ttl_ms=1400,
        muted=False,
        log_level="INFO",
    )
