"""Client package for the DND Mesa combat view."""

from .bus import EffectBus
from .classifier import classify, has_any_match, normalize
from .clock import ClockSync
from .config import ClientSettings, load_settings
from .notifier import TurnChangeNotifier
from .session import CombatSession
from .state import EncounterState, apply_snapshot, build_empty_state
from .timer import TurnTimer
from .transport import RecordingTransport, SocketIOTransport, Transport, create_transport

__all__ = [
    "apply_snapshot",
    "build_empty_state",
    "classify",
    "ClientSettings",
    "ClockSync",
    "CombatSession",
    "create_transport",
    "EffectBus",
    "EncounterState",
    "has_any_match",
    "load_settings",
    "normalize",
    "RecordingTransport",
    "SocketIOTransport",
    "Transport",
    "TurnChangeNotifier",
    "TurnTimer",
]
