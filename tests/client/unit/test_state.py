import pytest

from dndmesa.client.state import (
    ac_label,
    apply_snapshot,
    build_empty_state,
    header_text,
    hp_percent,
    initials,
    next_up,
)

PARTY = [
    {"id": "p1", "name": "Aria Vex", "initiative": 18, "meta": {"hp": 12, "maxHp": 20, "ac": 15, "conditions": ["Prono"]}},
    {"id": "p2", "name": "Goblin", "initiative": 14},
    {"id": "p3", "name": "Borin", "initiative": 9},
    {"id": "p4", "name": "Lyra", "initiative": 3},
]


def test_build_empty_state_is_no_encounter() -> None:
    state = build_empty_state(default_duration_seconds=45)

    assert state.in_combat() is False
    assert state.active() is None
    assert state.round == 1
    assert state.active_index == 0
    assert state.duration_seconds == 45
    assert state.turn_end_instant is None


def test_apply_snapshot_reads_every_field() -> None:
    state = apply_snapshot(
        {
            "participants": PARTY,
            "round": 3,
            "activeIndex": 1,
            "durationSeconds": 30,
            "autoAdvance": True,
            "autoAdvanceDelaySeconds": 2,
            "running": True,
            "turnEndInstant": 1_000_000,
        }
    )

    assert [participant.id for participant in state.participants] == ["p1", "p2", "p3", "p4"]
    assert state.round == 3
    assert state.active().name == "Goblin"
    assert state.duration_seconds == 30
    assert state.auto_advance is True
    assert state.auto_advance_delay_seconds == 2
    assert state.running is True
    assert state.turn_end_instant == 1_000_000
    assert state.participants[0].meta.max_hp == 20
    assert state.participants[0].meta.conditions == ("Prono",)
    assert state.participants[1].meta is None


def test_apply_snapshot_defaults_missing_fields() -> None:
    state = apply_snapshot({"participants": PARTY[:2]}, default_duration_seconds=60)

    assert state.round == 1
    assert state.active_index == 0
    assert state.duration_seconds == 60
    assert state.running is False
    assert state.auto_advance is False
    assert state.turn_end_instant is None


@pytest.mark.parametrize(
    "snapshot",
    [
        None,
        "garbage",
        [],
        {},
        {"participants": "not-a-list", "activeIndex": 3},
        {"participants": None, "round": "x"},
    ],
)
def test_apply_snapshot_degrades_to_no_encounter(snapshot) -> None:
    state = apply_snapshot(snapshot)

    assert state.in_combat() is False
    assert state.active_index == 0
    assert state.round == 1


@pytest.mark.parametrize("raw_index", [-4, 0, 2, 3, 99, 2.7, "1", None, float("nan")])
def test_active_index_is_always_valid(raw_index) -> None:
    state = apply_snapshot({"participants": PARTY, "activeIndex": raw_index})

    assert 0 <= state.active_index < len(state.participants)
    assert state.active() is not None


def test_non_positive_duration_falls_back_to_default() -> None:
    assert apply_snapshot({"participants": PARTY, "durationSeconds": 0}, 50).duration_seconds == 50
    assert apply_snapshot({"participants": PARTY, "durationSeconds": -5}, 50).duration_seconds == 50


def test_round_below_one_is_raised_to_one() -> None:
    assert apply_snapshot({"participants": PARTY, "round": 0}).round == 1


def test_malformed_participant_entries_are_dropped() -> None:
    state = apply_snapshot({"participants": [PARTY[0], "junk", 7, PARTY[1]], "activeIndex": 1})

    assert [participant.id for participant in state.participants] == ["p1", "p2"]


def test_next_up_wraps_around_and_caps_at_three() -> None:
    state = apply_snapshot({"participants": PARTY, "activeIndex": 2})

    assert [participant.id for participant in next_up(state)] == ["p4", "p1", "p2"]
    assert next_up(apply_snapshot({"participants": PARTY[:1]})) == []
    assert [participant.id for participant in next_up(apply_snapshot({"participants": PARTY[:2]}))] == ["p2"]


def test_header_text_names_round_and_active() -> None:
    state = apply_snapshot({"participants": PARTY, "round": 2, "activeIndex": 0})

    assert header_text(state) == "Iniciativa — Ronda 2 — Turno: Aria Vex"
    assert header_text(build_empty_state()) == "Iniciativa — Ronda 1 — Turno: —"


def test_roster_helpers() -> None:
    state = apply_snapshot({"participants": PARTY})
    aria, goblin = state.participants[0], state.participants[1]

    assert hp_percent(aria) == 60
    assert hp_percent(goblin) is None
    assert ac_label(aria) == "CA 15"
    assert ac_label(goblin) is None
    assert initials("Aria Vex") == "AV"
    assert initials("goblin") == "GO"
    assert initials("   ") == "?"


def test_hp_percent_rounds_halves_up() -> None:
    state = apply_snapshot({"participants": [{"id": "k", "name": "Kobold", "meta": {"hp": 1, "maxHp": 8}}]})

    assert hp_percent(state.participants[0]) == 13
