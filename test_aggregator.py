#!/usr/bin/env python3
"""
End-to-end aggregation tests over small synthetic seasons.
"""

from datetime import datetime, timezone

import pytest

from config.squad_config import SquadConfig
from src.curate.aggregator import SeasonAggregator
from src.curate.form_encoder import DataIntegrityError


@pytest.fixture
def aggregate(season_records):
    players, matches, goals = season_records
    aggregator = SeasonAggregator(SquadConfig({'year': 2026}))
    return aggregator.aggregate(
        players, matches, goals,
        generated_at=datetime(2026, 4, 1, tzinfo=timezone.utc),
    )


def test_single_match_scenario(make_player, make_match, make_goal):
    players = [make_player(p) for p in ("P1", "P2", "P3", "P4")]
    matches = [make_match("M1", "2026-02-01", ["P1", "P2"], ["P3", "P4"], winner="Pink",
                          pink_goals=2, clean_pink=["P1", "P2"], pink_defs=["P1", "P2"])]
    goals = [make_goal("G1", "M1", "P1", assist="P2"), make_goal("G2", "M1", "P1")]

    result = SeasonAggregator(SquadConfig({'year': 2026})).aggregate(players, matches, goals)
    stats = {pid: entry['stats'] for pid, entry in result['players'].items()}

    assert stats["P1"]["wins"] == 1
    assert stats["P1"]["goals"] == 2
    assert stats["P1"]["cleanSheets"] == 1
    assert stats["P2"]["wins"] == 1
    assert stats["P2"]["cleanSheets"] == 1
    assert stats["P2"]["assists"] == 1
    assert stats["P3"]["losses"] == 1
    assert stats["P4"]["losses"] == 1
    assert {'playerId1': 'P1', 'playerId2': 'P2', 'count': 1} in result['defensivePartnerships']
    assert {
        'playerId1': 'P1', 'playerId2': 'P2', 'matches': 1, 'goalsAgainst': 0, 'gaPerMatch': 0.0,
    } in result['defensivePartnershipsGoalsAgainst']


def test_output_shape(aggregate):
    assert set(aggregate) == {
        'players', 'goals', 'matches', 'partnerships', 'defensivePartnerships',
        'defensivePartnershipsGoalsAgainst', 'defensiveUnitsGoalsAgainst',
        'seasonSummary', 'meta',
    }
    assert aggregate['meta'] == {
        'generatedAt': '2026-04-01T00:00:00+00:00',
        'year': 2026,
        'matchesInYear': 4,
        'matchesCountForStatsInYear': 3,
        'matchesNonStatInYear': 1,
        'goalsIncluded': 5,
        'matchesProcessed': 5,
        'goalsProcessed': 7,
    }


def test_matches_are_in_year_and_date_ordered(aggregate):
    assert [m['id'] for m in aggregate['matches']] == ["m1", "m2", "m3", "m4"]
    assert aggregate['matches'][0]['date'] == "2026-03-01"
    assert aggregate['matches'][3]['countsForStats'] is False


def test_player_counters(aggregate):
    p1 = aggregate['players']['p1']['stats']
    assert (p1['played'], p1['wins'], p1['draws'], p1['losses']) == (3, 1, 1, 1)
    assert p1['captain'] == 2
    assert p1['winningCaptain'] == 1
    assert p1['motmCaptain'] == 1
    assert p1['goals'] == 2
    assert p1['conceded'] == 2

    p2 = aggregate['players']['p2']['stats']
    assert p2['ogs'] == 1
    assert p2['assists'] == 2
    assert p2['gkCleanSheets'] == 1
    assert p2['honourableMentions'] == 1

    assert aggregate['players']['p4']['stats']['otfs'] == 1


def test_career_balances(aggregate):
    p1 = aggregate['players']['p1']['stats']
    assert p1['capsInYear'] == 4
    assert p1['caps'] == 14
    assert p1['motmInYear'] == 1
    assert p1['motm'] == 3
    assert p1['subs'] == 1

    assert aggregate['players']['p2']['stats']['subs'] == -2
    assert aggregate['players']['p3']['stats']['subs'] == -2
    assert aggregate['players']['p4']['stats']['subs'] == -3


def test_form(aggregate):
    players = aggregate['players']
    assert players['p1']['stats']['form'][:4] == ["L", "DC", "WCM", "-"]
    assert players['p2']['stats']['form'][:3] == ["L", "DCM", "W"]
    assert players['p3']['stats']['form'][:3] == ["W", "D", "LC"]
    assert len(players['p3']['stats']['form']) == 10
    assert players['p1']['stats']['playedLast10'] == 3


def test_ratings(aggregate):
    ovr = {pid: entry['stats']['ovr'] for pid, entry in aggregate['players'].items()}
    assert ovr == {'p1': 100, 'p2': 69, 'p3': 12, 'p4': 0}
    assert aggregate['players']['p1']['stats']['ratingRaw'] == pytest.approx(37.8)
    assert aggregate['players']['p1']['stats']['ratingPenalty'] == 0.0


def test_partnership_tables(aggregate):
    assert aggregate['partnerships'] == [
        {'scorerId': 'p1', 'assistId': 'p2', 'count': 1, 'countExclOG': 1},
        {'scorerId': 'p3', 'assistId': 'p2', 'count': 1, 'countExclOG': 1},
        {'scorerId': 'p4', 'assistId': 'p3', 'count': 1, 'countExclOG': 1},
    ]
    assert aggregate['defensivePartnerships'] == [
        {'playerId1': 'p1', 'playerId2': 'p2', 'count': 1},
        {'playerId1': 'p3', 'playerId2': 'p4', 'count': 1},
    ]
    assert [u['playerIds'] for u in aggregate['defensiveUnitsGoalsAgainst']] == [["p1", "p2"], ["p3", "p4"]]


def test_season_summary(aggregate):
    # p4 is excluded from the totals but still owes subs
    assert aggregate['seasonSummary'] == {
        'gamesPlayed': 3,
        'totalGoals': 4,
        'totalOtfs': 0,
        'totalOgs': 1,
        'goalScorers': 2,
        'cleanSheetGames': 2,
        'subsArrears': 28.0,
    }


def test_meta_block_passes_through(aggregate):
    assert aggregate['players']['p4']['meta']['excluded'] is True
    assert aggregate['players']['p1']['name'] == "Alice"


def test_unknown_player_is_rated(make_player, make_match):
    result = SeasonAggregator(SquadConfig({'year': 2026})).aggregate(
        [make_player("a", "Alice")],
        [make_match("m1", "2026-02-01", ["a"], ["ghost"], winner="Blue")],
        [],
    )
    ghost = result['players']['ghost']
    assert ghost['name'] == "Unknown"
    assert ghost['meta'] == {}
    assert ghost['stats']['ovr'] == 100
    assert result['players']['a']['stats']['ovr'] == 0


def test_runs_do_not_share_state(season_records):
    players, matches, goals = season_records
    aggregator = SeasonAggregator(SquadConfig({'year': 2026}))
    first = aggregator.aggregate(players, matches, goals)
    second = aggregator.aggregate(players, matches, goals)

    assert first['players'] == second['players']


def test_motm_on_losing_side_aborts_run(make_player, make_match):
    with pytest.raises(DataIntegrityError):
        SeasonAggregator(SquadConfig({'year': 2026})).aggregate(
            [make_player("a"), make_player("b")],
            [make_match("m1", "2026-02-01", ["a"], ["b"], winner="Blue", motm=["a"])],
            [],
        )


def test_match_without_result_keeps_form_slots(make_player, make_match):
    result = SeasonAggregator(SquadConfig({'year': 2026, 'form_length': 2})).aggregate(
        [make_player("a"), make_player("b")],
        [
            make_match("m1", "2026-02-01", ["a"], ["b"], winner="Pink"),
            make_match("m2", "2026-02-08", ["a"], ["b"], winner="Pink"),
            make_match("m3", "2026-02-15", ["a"], ["b"]),
        ],
        [],
    )
    stats = result['players']['a']['stats']

    assert stats['played'] == 3
    assert stats['form'] == ["W", "W"]
    assert stats['playedLast10'] == 2

def test_empty_season():
    result = SeasonAggregator(SquadConfig({'year': 2026})).aggregate([], [], [])
    assert result['players'] == {}
    assert result['seasonSummary']['gamesPlayed'] == 0
    assert result['meta']['matchesInYear'] == 0
