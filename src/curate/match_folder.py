#!/usr/bin/env python3
"""
Match Folder

The single pass that turns each in-year match into statistical deltas:
appearances, results, captaincy, clean sheets, goals against, and the
defensive pair and unit tables.
"""

import logging
from typing import Dict, Iterable, List, Set

from src.model.partnerships import GoalsAgainstTally, PairKey, UnitKey, add_pairs, dedupe
from src.model.records import Match, Player, PlayerEntry, PlayerStats, Team

TEAMS = (Team.PINK, Team.BLUE)


class PlayerRegistry:
    """
    Per-run map of player id -> output entry.

    Any id referenced by a match or goal resolves to an entry; ids missing
    from the player table are created on demand as "Unknown".
    """

    def __init__(self, players: Dict[str, Player]):
        self.logger = logging.getLogger('PlayerRegistry')
        self.players = players
        self.entries: Dict[str, PlayerEntry] = {}
        self.synthesized: List[str] = []
        for player in players.values():
            self.entries[player.id] = PlayerEntry(id=player.id, name=player.name, meta=player.meta())

    def ensure(self, player_id: str) -> PlayerEntry:
        entry = self.entries.get(player_id)
        if entry is None:
            self.logger.warning(f"Player {player_id} referenced but not in player table; using 'Unknown'")
            entry = PlayerEntry(id=player_id, name="Unknown")
            self.entries[player_id] = entry
            self.synthesized.append(player_id)
        return entry

    def stats(self, player_id: str) -> PlayerStats:
        return self.ensure(player_id).stats

    def bump(self, ids: Iterable[str], counter: str, amount: int = 1) -> None:
        for pid in ids:
            stats = self.stats(pid)
            setattr(stats, counter, getattr(stats, counter) + amount)


class MatchFolder:
    """Folds matches into player counters and defensive tables."""

    def __init__(self, registry: PlayerRegistry, year: int):
        self.logger = logging.getLogger('MatchFolder')
        self.registry = registry
        self.year = year

        self.defensive_partnership_counts: Dict[PairKey, int] = {}
        self.defensive_partnerships_ga: Dict[PairKey, GoalsAgainstTally] = {}
        self.defensive_units_ga: Dict[UnitKey, GoalsAgainstTally] = {}

        self.matches_in_year: List[Match] = []
        self.stat_matches: List[Match] = []

    def fold_all(self, matches: Iterable[Match]) -> None:
        for match in matches:
            self.fold(match)
        self.logger.info(
            f"Folded {len(self.matches_in_year)} matches in {self.year} "
            f"({len(self.stat_matches)} counting for stats)"
        )

    def fold(self, match: Match) -> bool:
        """Apply one match. Returns False when the match is outside the year."""
        if not match.in_year(self.year):
            return False
        self.matches_in_year.append(match)
        bump = self.registry.bump

        for team in TEAMS:
            bump(match.roster(team), 'caps_in_year')

        if not match.counts_for_stats:
            return True
        self.stat_matches.append(match)

        for team in TEAMS:
            bump(match.roster(team), 'played')
            captain = match.captain(team)
            if captain:
                bump([captain], 'captain')

        self._fold_result(match)

        for team in TEAMS:
            bump(match.roster(team), 'conceded', match.goals_against(team))

        self._fold_captain_bonuses(match)

        bump(match.honourable_mentions, 'honourable_mentions')
        bump(match.clean_pink, 'clean_sheets')
        bump(match.clean_blue, 'clean_sheets')
        for keeper, clean in ((match.pink_gk, match.clean_pink), (match.blue_gk, match.clean_blue)):
            if keeper and keeper in clean:
                bump([keeper], 'gk_clean_sheets')

        for team in TEAMS:
            self._fold_defence(match, team)

        bump(match.otfs, 'otfs')
        bump(match.motm, 'motm_in_year')
        return True

    def _fold_result(self, match: Match) -> None:
        bump = self.registry.bump
        if match.winning_team is Team.DRAW:
            for team in TEAMS:
                bump(match.roster(team), 'draws')
        elif match.winning_team in TEAMS:
            loser = Team.BLUE if match.winning_team is Team.PINK else Team.PINK
            bump(match.roster(match.winning_team), 'wins')
            bump(match.roster(loser), 'losses')

    def _fold_captain_bonuses(self, match: Match) -> None:
        bump = self.registry.bump
        if match.winning_team in TEAMS:
            captain = match.captain(match.winning_team)
            if captain:
                bump([captain], 'winning_captain')
        for team in TEAMS:
            captain = match.captain(team)
            if captain and captain in match.motm:
                bump([captain], 'motm_captain')

    def _fold_defence(self, match: Match, team: Team) -> None:
        if team is Team.PINK:
            defenders, keeper, clean = match.pink_defs, match.pink_gk, match.clean_pink
        else:
            defenders, keeper, clean = match.blue_defs, match.blue_gk, match.clean_blue
        goals_against = match.goals_against(team)

        # Backline credit includes the keeper; the pair table below does not
        backline = dedupe(defenders + ([keeper] if keeper else []))
        if goals_against == 1:
            self.registry.bump(backline, 'conceded_one')

        clean_defenders = dedupe(pid for pid in defenders if pid in clean)
        if len(clean_defenders) == 2:
            key = PairKey.of(*clean_defenders)
            self.defensive_partnership_counts[key] = self.defensive_partnership_counts.get(key, 0) + 1

        def on_pair(key: PairKey) -> None:
            self.defensive_partnerships_ga.setdefault(key, GoalsAgainstTally()).add(goals_against)

        add_pairs(defenders, on_pair)

        unit = UnitKey.of(backline)
        if len(unit) >= 2:
            self.defensive_units_ga.setdefault(unit, GoalsAgainstTally()).add(goals_against)

    @property
    def matches_non_stat(self) -> int:
        return len(self.matches_in_year) - len(self.stat_matches)

    def stat_match_ids(self) -> Set[str]:
        return {m.id for m in self.stat_matches}
