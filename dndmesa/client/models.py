"""Domain models shared by the reconciler, the effect pipeline and the view server."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class FxCategory(str, Enum):
    HIT = "hit"
    CRIT = "crit"
    MISS = "miss"
    HEAL = "heal"
    DAMAGE = "damage"
    SHIELD = "shield"
    SPELL = "spell"


class MessageKind(str, Enum):
    ROLL = "roll"
    DM = "dm"
    OTHER = "other"
    SYSTEM = "system"


FX_COLORS: dict[FxCategory, str] = {
    FxCategory.HIT: "#ef4444",
    FxCategory.CRIT: "#f59e0b",
    FxCategory.MISS: "#94a3b8",
    FxCategory.HEAL: "#10b981",
    FxCategory.DAMAGE: "#ef4444",
    FxCategory.SHIELD: "#60a5fa",
    FxCategory.SPELL: "#a78bfa",
}


@dataclass(frozen=True)
class ParticipantMeta:
    hp: int | None = None
    max_hp: int | None = None
    ac: int | None = None
    conditions: tuple[str, ...] = ()
    is_npc: bool = False
    note: str | None = None


@dataclass(frozen=True)
class Participant:
    id: str
    name: str
    initiative: float = 0
    meta: ParticipantMeta | None = None


@dataclass(frozen=True)
class Classification:
    category: FxCategory
    magnitude: int | None = None


@dataclass(frozen=True)
class FxEvent:
    id: int
    category: FxCategory
    magnitude: int | None = None
    position: tuple[float, float] = (50.0, 50.0)
    ttl_ms: int = 1200
    color: str | None = None
    label: str | None = None


@dataclass(frozen=True)
class ChatMessage:
    kind: MessageKind
    text: str
    timestamp: float
    sender: str = ""


@dataclass(frozen=True)
class Player:
    id: str
    name: str
    role: str = "player"
