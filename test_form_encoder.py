#!/usr/bin/env python3
"""
Tests for form tokens and the recent-form window.
"""

from datetime import date, timedelta

import pytest

from src.curate.form_encoder import (
    DID_NOT_PLAY,
    FORM_TOKENS,
    DataIntegrityError,
    FormEncoder,
    Result,
    encode_match,
    played_count,
    select_token,
)
from src.model.records import Match, Team


def match(mid="m1", day=1, winner=Team.PINK, pink=("a", "b"), blue=("c", "d"),
          pink_captain=None, blue_captain=None, motm=()):
    return Match(
        id=mid, name=mid, date=date(2026, 1, 1) + timedelta(days=day),
        winning_team=winner, pink=list(pink), blue=list(blue),
        pink_captain=pink_captain, blue_captain=blue_captain, motm=list(motm),
    )


@pytest.mark.parametrize("winner, player, captain, motm, expected", [
    (Team.PINK, "a", False, False, "W"),
    (Team.PINK, "a", True, False, "WC"),
    (Team.PINK, "a", False, True, "WM"),
    (Team.PINK, "a", True, True, "WCM"),
    (Team.DRAW, "a", False, False, "D"),
    (Team.DRAW, "a", True, False, "DC"),
    (Team.DRAW, "a", False, True, "DM"),
    (Team.DRAW, "a", True, True, "DCM"),
    (Team.BLUE, "a", False, False, "L"),
    (Team.BLUE, "a", True, False, "LC"),
    (Team.BLUE, "c", True, True, "WCM"),
])
def test_token_matrix(winner, player, captain, motm, expected):
    m = match(
        winner=winner,
        pink_captain=player if captain and player in ("a", "b") else None,
        blue_captain=player if captain and player in ("c", "d") else None,
        motm=[player] if motm else [],
    )
    assert encode_match(m, player) == expected


@pytest.mark.parametrize("captain", [False, True])
def test_motm_on_losing_side_raises(captain):
    m = match(winner=Team.BLUE, pink_captain="a" if captain else None, motm=["a"])

    with pytest.raises(DataIntegrityError) as excinfo:
        encode_match(m, "a")
    assert excinfo.value.match_id == "m1"
    assert excinfo.value.player_id == "a"


def test_loss_motm_has_no_table_entry():
    assert (Result.LOSS, False, True) not in FORM_TOKENS
    assert (Result.LOSS, True, True) not in FORM_TOKENS
    with pytest.raises(DataIntegrityError):
        select_token(Result.LOSS, False, True)


def test_absent_player_and_missing_result():
    assert encode_match(match(), "z") == DID_NOT_PLAY
    assert encode_match(match(winner=None), "a") == DID_NOT_PLAY


def test_window_is_most_recent_first_and_padded():
    matches = [
        match("m1", day=1, winner=Team.PINK),
        match("m3", day=3, winner=Team.BLUE),
        match("m2", day=2, winner=Team.DRAW),
    ]
    encoder = FormEncoder(matches, length=10)

    form = encoder.encode("a")
    assert form == ["L", "D", "W"] + [DID_NOT_PLAY] * 7
    assert played_count(form) == 3
    assert encoder.encode("z") == [DID_NOT_PLAY] * 10


def test_window_keeps_only_latest_matches():
    matches = [match(f"m{i}", day=i, winner=Team.PINK) for i in range(12)]
    encoder = FormEncoder(matches, length=10)

    assert [m.id for m in encoder.window] == [f"m{i}" for i in range(11, 1, -1)]
    assert len(encoder.encode("a")) == 10


def test_same_day_matches_put_later_record_first():
    matches = [match("early", day=5, winner=Team.PINK), match("late", day=5, winner=Team.BLUE)]
    encoder = FormEncoder(matches, length=2)

    assert [m.id for m in encoder.window] == ["late", "early"]


def test_motm_on_losing_side_raises_from_encoder():
    encoder = FormEncoder([match(winner=Team.PINK, motm=["c"])], length=10)

    with pytest.raises(DataIntegrityError):
        encoder.encode("c")


def test_matches_without_result_stay_out_of_window():
    matches = [
        match("m1", day=1, winner=Team.PINK),
        match("m2", day=2, winner=None),
    ]
    encoder = FormEncoder(matches, length=3)

    assert [m.id for m in encoder.window] == ["m1"]
    assert encoder.encode("a") == ["W", DID_NOT_PLAY, DID_NOT_PLAY]
