"""Chat timeline and the "DM is typing" indicator."""

from __future__ import annotations

from dndmesa.client.models import ChatMessage, MessageKind
from dndmesa.client.timers import Scheduler, TimerHandle, cancel

MAX_MESSAGES = 500
TRIM_COUNT = 100
MINI_LOG_SIZE = 12
MINI_LOG_KINDS = frozenset({MessageKind.SYSTEM, MessageKind.DM, MessageKind.ROLL})
DM_TYPING_TIMEOUT_MS = 10_000
DM_PREFIX = "@dm"


def is_dm_request(text: str) -> bool:
    return text.strip().startswith(DM_PREFIX)


class ChatLog:
    def __init__(self, max_messages: int = MAX_MESSAGES, trim_count: int = TRIM_COUNT) -> None:
        self.max_messages = max_messages
        self.trim_count = trim_count
        self._messages: list[ChatMessage] = []

    def append(self, message: ChatMessage) -> None:
        self._messages.append(message)
        if len(self._messages) > self.max_messages:
            del self._messages[: self.trim_count]

    def clear(self) -> None:
        self._messages.clear()

    def messages(self) -> tuple[ChatMessage, ...]:
        return tuple(self._messages)

    def mini_log(self, size: int = MINI_LOG_SIZE) -> list[ChatMessage]:
        relevant = [message for message in self._messages if message.kind in MINI_LOG_KINDS]
        return relevant[-size:]


class TypingIndicator:
    """On while a DM answer is awaited, off on reply or after the timeout."""

    def __init__(self, scheduler: Scheduler, timeout_ms: int = DM_TYPING_TIMEOUT_MS) -> None:
        self._scheduler = scheduler
        self.timeout_ms = timeout_ms
        self.active = False
        self._timeout: TimerHandle | None = None

    def start(self) -> None:
        self.active = True
        cancel(self._timeout)
        self._timeout = self._scheduler.call_later(self.timeout_ms / 1000.0, self._expire)

    def stop(self) -> None:
        self.active = False
        cancel(self._timeout)
        self._timeout = None

    def _expire(self) -> None:
        self._timeout = None
        self.active = False
