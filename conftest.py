"""Shared fixtures: raw Airtable-shaped record factories and a scratch config."""

import pytest

from config.squad_config import SquadConfig


def _player(pid, name=None, caps=0, motm=0, subs=0, subs_added=0, excluded=None, **extra):
    fields = {
        "Name": name or pid,
        "Starting Caps": caps,
        "Starting MOTM": motm,
        "Starting Subs": subs,
        "Subs Added": subs_added,
    }
    if excluded is not None:
        fields["Excluded"] = excluded
    fields.update(extra)
    return {"id": pid, "fields": fields, "createdTime": "2026-01-01T00:00:00.000Z"}


def _match(mid, date, pink, blue, winner=None, pink_goals=0, blue_goals=0,
           clean_pink=(), clean_blue=(), pink_gk=None, blue_gk=None,
           pink_defs=(), blue_defs=(), pink_captain=None, blue_captain=None,
           motm=(), otfs=(), honourable=(), counts_for_stats=None):
    fields = {
        "Name": f"Match {mid}",
        "Date Played": date,
        "Pink Team Players": list(pink),
        "Blue Team Players": list(blue),
        "Pink Goals": pink_goals,
        "Blue Goals": blue_goals,
        "Clean Sheet (Pink)": list(clean_pink),
        "Clean Sheet (Blue)": list(clean_blue),
        "Pink Defenders": list(pink_defs),
        "Blue Defenders": list(blue_defs),
        "Player of the Match": list(motm),
        "OTFs (Over The Fences)": list(otfs),
        "Honourable Mentions": list(honourable),
    }
    if winner is not None:
        fields["Winning Team"] = winner
    if pink_gk:
        fields["Pink Goalkeeper"] = [pink_gk]
    if blue_gk:
        fields["Blue Goalkeeper"] = [blue_gk]
    if pink_captain:
        fields["Pink Captain"] = [pink_captain]
    if blue_captain:
        fields["Blue Captain"] = [blue_captain]
    if counts_for_stats is not None:
        fields["Counts For Stats"] = counts_for_stats
    return {"id": mid, "fields": fields}


def _goal(gid, match_id, scorer, assist=None, own_goal=False):
    fields = {"Match": [match_id], "Scorer": [scorer]}
    if assist:
        fields["Assist"] = [assist]
    if own_goal:
        fields["Is Own Goal"] = True
    return {"id": gid, "fields": fields}


@pytest.fixture
def make_player():
    return _player


@pytest.fixture
def make_match():
    return _match


@pytest.fixture
def make_goal():
    return _goal


@pytest.fixture
def config(tmp_path):
    return SquadConfig({'year': 2026, 'storage_root': str(tmp_path / "storage")})


@pytest.fixture
def season_records():
    """
    Three 2026 stat matches, one non-stat friendly and one 2025 match.

    m1  pink [p1,p2] beat blue [p3,p4] 2-0, pink clean sheet for p1,p2
    m2  pink [p3,p2] draw blue [p1,p4] 1-1, the blue goal is a p2 own goal
    m3  blue [p3,p4] beat pink [p1,p2] 1-0, blue clean sheet for p3,p4
    """
    players = [
        _player("p1", "Alice", caps=10, motm=2, subs=5),
        _player("p2", "Bea", subs=1),
        _player("p3", "Cat", subs=0, subs_added=2),
        _player("p4", "Dee", excluded=True),
    ]
    matches = [
        _match("m1", "2026-03-01", ["p1", "p2"], ["p3", "p4"], winner="Pink",
               pink_goals=2, blue_goals=0, clean_pink=["p1", "p2"],
               pink_defs=["p1", "p2"], pink_gk="p2",
               pink_captain="p1", blue_captain="p3", motm=["p1"]),
        _match("m2", "2026-03-08", ["p3", "p2"], ["p1", "p4"], winner="Draw",
               pink_goals=1, blue_goals=1, pink_captain="p2", blue_captain="p1",
               motm=["p2"], otfs=["p4"]),
        _match("m3", "2026-03-15", ["p1", "p2"], ["p3", "p4"], winner="Blue",
               pink_goals=0, blue_goals=1, clean_blue=["p3", "p4"],
               blue_defs=["p3", "p4"], honourable=["p2"]),
        _match("m4", "2026-03-22", ["p1"], ["p3"], winner="Pink",
               pink_goals=5, counts_for_stats=False),
        _match("m0", "2025-12-20", ["p1"], ["p2"], winner="Pink", pink_goals=1),
    ]
    goals = [
        _goal("g1", "m1", "p1", assist="p2"),
        _goal("g2", "m1", "p1"),
        _goal("g3", "m2", "p3", assist="p2"),
        _goal("g4", "m2", "p2", own_goal=True),
        _goal("g5", "m3", "p4", assist="p3"),
        _goal("g6", "m4", "p1"),
        _goal("g7", "m0", "p1"),
    ]
    return players, matches, goals
