#!/usr/bin/env python3
"""
Tests for raw record coercion.
"""

from datetime import date

import pytest

from src.curate.normalizer import (
    RecordNormalizer,
    as_bool,
    as_id_list,
    as_number,
    as_single_id,
    parse_date,
    parse_team,
)
from src.model.records import Team


@pytest.mark.parametrize("value, expected", [
    (None, []),
    ("rec1", []),
    (["a", "b", "a"], ["a", "b"]),
    (["a", None, "", "c"], ["a", "c"]),
])
def test_as_id_list(value, expected):
    assert as_id_list(value) == expected


def test_as_single_id_takes_first_element():
    assert as_single_id(["x", "y"]) == "x"
    assert as_single_id([]) is None
    assert as_single_id(None) is None


@pytest.mark.parametrize("value, expected", [
    (3, 3),
    ("4", 4),
    ("2.5", 2.5),
    ("", 0),
    (None, 0),
    ("abc", 0),
    (float("nan"), 0),
    (float("inf"), 0),
    ([1], 0),
])
def test_as_number(value, expected):
    assert as_number(value) == expected


def test_as_bool_default_applies_only_when_unset():
    assert as_bool(None, default=True) is True
    assert as_bool(False, default=True) is False
    assert as_bool("no", default=True) is False
    assert as_bool("TRUE") is True
    assert as_bool(1) is True
    assert as_bool(0, default=True) is False


@pytest.mark.parametrize("value, expected", [
    ("2026-03-01", date(2026, 3, 1)),
    ("2026-03-01T10:00:00.000Z", date(2026, 3, 1)),
    ("2026-12-31T23:30:00-02:00", date(2027, 1, 1)),
    ("01/03/2026", None),
    ("", None),
    (None, None),
    (20260301, None),
])
def test_parse_date(value, expected):
    assert parse_date(value) == expected


def test_parse_team_is_case_insensitive():
    assert parse_team("Pink") is Team.PINK
    assert parse_team("blue") is Team.BLUE
    assert parse_team("Draw") is Team.DRAW
    assert parse_team("Green") is None
    assert parse_team(None) is None


def test_normalize_player_defaults(make_player):
    normalizer = RecordNormalizer()
    player = normalizer.normalize_player({"id": "p9", "fields": {}})

    assert player.name == "Unknown"
    assert player.starting_caps == 0
    assert player.excluded is False

    player = normalizer.normalize_player(make_player("p1", "Alice", caps="12", excluded=True, Nicknames="Al"))
    assert player.starting_caps == 12
    assert player.excluded is True
    assert player.meta()['nicknames'] == "Al"


def test_normalize_match(make_match):
    normalizer = RecordNormalizer()
    raw = make_match("m1", "2026-05-02", ["a", "b", "a"], ["c"], winner="Pink",
                     pink_goals="3", pink_gk="b", pink_captain="a")
    match = normalizer.normalize_match(raw)

    assert match.date == date(2026, 5, 2)
    assert match.pink == ["a", "b"]
    assert match.pink_goals == 3
    assert match.winning_team is Team.PINK
    assert match.pink_gk == "b"
    assert match.blue_gk is None
    assert match.counts_for_stats is True


def test_counts_for_stats_explicit_false(make_match):
    match = RecordNormalizer().normalize_match(
        make_match("m1", "2026-05-02", ["a"], ["b"], counts_for_stats=False)
    )
    assert match.counts_for_stats is False


def test_malformed_match_degrades_to_empty_values():
    match = RecordNormalizer().normalize_match({"id": "m1", "fields": {
        "Date Played": "not a date",
        "Pink Team Players": "a",
        "Pink Goals": "lots",
    }})
    assert match.date is None
    assert match.pink == []
    assert match.pink_goals == 0
    assert match.name == "m1"


def test_goal_without_scorer_is_dropped(make_goal):
    normalizer = RecordNormalizer()
    goals = normalizer.normalize_goals([
        make_goal("g1", "m1", "p1", assist="p2"),
        {"id": "g2", "fields": {"Match": ["m1"]}},
        {"id": "g3", "fields": {"Scorer": ["p1"]}},
    ])
    assert [g.id for g in goals] == ["g1"]
    assert goals[0].assist_id == "p2"
    assert goals[0].is_own_goal is False


def test_records_without_id_are_dropped(make_player, make_match):
    normalizer = RecordNormalizer()

    assert normalizer.normalize_match({"fields": {"Name": "x"}}) is None
    assert normalizer.normalize_player({"id": "", "fields": {"Name": "x"}}) is None
    assert normalizer.normalize_goal({"fields": {"Match": ["m1"], "Scorer": ["p1"]}}) is None

    players = normalizer.normalize_players([make_player("p1"), {"fields": {"Name": "x"}}])
    matches = normalizer.normalize_matches([{"fields": {}}, make_match("m1", "2026-01-01", ["p1"], [])])
    assert list(players) == ["p1"]
    assert [m.id for m in matches] == ["m1"]


def test_field_names_can_be_remapped():
    normalizer = RecordNormalizer({"NAME": "Full Name"})
    player = normalizer.normalize_player({"id": "p1", "fields": {"Full Name": "Zed", "Name": "ignored"}})
    assert player.name == "Zed"
