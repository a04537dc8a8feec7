"""Chat text to combat effect classification.

The classifier is a literal ordered table of ``(predicate, extractor)`` rules
evaluated top to bottom; the first predicate that matches decides the effect.
Order matters because ambiguous text can satisfy several rules at once:

1. dice rolls (least ambiguous, must not be shadowed by the loose ``+N`` heal)
2. heals
3. damage, before keyword scans so a stray "vida" in prose does not count
4. miss keyword
5. critical keyword
6. spell keyword, only for DM-authored messages
"""

from __future__ import annotations

import re
import unicodedata
from typing import Any, Callable

from dndmesa.client.models import Classification, FxCategory, MessageKind

TAG_RE = re.compile(r"<[^>]*>")
WHITESPACE_RE = re.compile(r"\s+")

DICE_RE = re.compile(r"\b(\d+)d(\d+)\b")
EQUALS_TOTAL_RE = re.compile(r"=\s*(-?\d+)")
TOTAL_RES = (
    re.compile(r"\btotal\s*:\s*(-?\d+)"),
    re.compile(r"\bresult(?:ado)?\s*:\s*(-?\d+)"),
)

HEAL_RES = (
    re.compile(r"\b(?:curacion|sanacion|cura|heals|heal)\b(?:\s+[^\s\d+-]\S*){0,3}?[\s:=]*([+-]?\d+)"),
    re.compile(r"(?:^|\s)\+(\d+)"),
)

DAMAGE_RES = (
    re.compile(r"\b(?:dano|damage|dmg)\b[\s:=]*([+-]?\d+)"),
    re.compile(r"([+-]?\d+)\s*(?:(?:de|of|pts?)\s+)?(?:dano|damage|dmg)\b"),
    re.compile(r"([+-]?\d+)\s*(?:de\s+)?(?:vida|hp|pv|ps)\b"),
    re.compile(r"(?:^|\s)-(\d+)"),
)

MISS_RE = re.compile(r"\b(?:miss|fallo|falla|failure)\b")
CRIT_RE = re.compile(r"\b(?:crit|critico|critical)\b")
SPELL_RE = re.compile(r"\b(?:spell|conjuro|hechizo)\b")

Predicate = Callable[[str, MessageKind], Any]
Extractor = Callable[[str, Any], Classification]


def normalize(raw_text: str) -> str:
    """Strip tags and diacritics, lowercase and collapse whitespace."""
    text = TAG_RE.sub(" ", raw_text or "").lower()
    decomposed = unicodedata.normalize("NFD", text)
    text = "".join(char for char in decomposed if not unicodedata.combining(char))
    return WHITESPACE_RE.sub(" ", text).strip()


def _first_match(patterns: tuple[re.Pattern[str], ...]) -> Predicate:
    def predicate(text: str, kind: MessageKind) -> re.Match[str] | None:
        for pattern in patterns:
            match = pattern.search(text)
            if match is not None:
                return match
        return None

    return predicate


def _keyword(pattern: re.Pattern[str], only_kind: MessageKind | None = None) -> Predicate:
    def predicate(text: str, kind: MessageKind) -> re.Match[str] | None:
        if only_kind is not None and kind != only_kind:
            return None
        return pattern.search(text)

    return predicate


def _is_roll(text: str, kind: MessageKind) -> bool:
    return kind == MessageKind.ROLL or DICE_RE.search(text) is not None


def _dice_total(text: str) -> int | None:
    total: int | None = None
    for match in EQUALS_TOTAL_RE.finditer(text):
        total = int(match.group(1))
    if total is not None:
        return total
    for pattern in TOTAL_RES:
        match = pattern.search(text)
        if match is not None:
            return int(match.group(1))
    return None


def _roll_outcome(text: str, _: Any) -> Classification:
    dice = DICE_RE.search(text)
    die_size = int(dice.group(2)) if dice is not None else None
    total = _dice_total(text)
    if total is not None and die_size == 20:
        if total == 20:
            return Classification(FxCategory.CRIT)
        if total == 1:
            return Classification(FxCategory.MISS)
    return Classification(FxCategory.HIT)


def _amount(category: FxCategory) -> Extractor:
    def extractor(text: str, match: re.Match[str]) -> Classification:
        return Classification(category, abs(int(match.group(1))))

    return extractor


def _plain(category: FxCategory) -> Extractor:
    return lambda text, match: Classification(category)


RULES: tuple[tuple[Predicate, Extractor], ...] = (
    (_is_roll, _roll_outcome),
    (_first_match(HEAL_RES), _amount(FxCategory.HEAL)),
    (_first_match(DAMAGE_RES), _amount(FxCategory.DAMAGE)),
    (_keyword(MISS_RE), _plain(FxCategory.MISS)),
    (_keyword(CRIT_RE), _plain(FxCategory.CRIT)),
    (_keyword(SPELL_RE, only_kind=MessageKind.DM), _plain(FxCategory.SPELL)),
)


def classify(raw_text: str, declared_kind: MessageKind = MessageKind.OTHER) -> Classification | None:
    text = normalize(raw_text)
    kind = MessageKind(declared_kind)
    for predicate, extractor in RULES:
        match = predicate(text, kind)
        if match:
            return extractor(text, match)
    return None


def has_any_match(raw_text: str, declared_kind: MessageKind = MessageKind.OTHER) -> bool:
    """Whether ``classify`` would produce an effect, without building it."""
    text = normalize(raw_text)
    kind = MessageKind(declared_kind)
    return any(predicate(text, kind) for predicate, _ in RULES)
