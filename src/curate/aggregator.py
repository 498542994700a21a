#!/usr/bin/env python3
"""
Season Aggregator

Runs one full aggregation pass over already-fetched raw records:

    normalize -> fold matches -> fold goals -> encode form -> rate -> assemble

Every call builds fresh accumulators; nothing is cached between runs.
The only error that escapes is DataIntegrityError from the form encoder.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from config.squad_config import SquadConfig
from src.curate.form_encoder import FormEncoder, played_count
from src.curate.goal_folder import GoalFolder
from src.curate.match_folder import MatchFolder, PlayerRegistry
from src.curate.normalizer import RecordNormalizer
from src.curate.rating_engine import RatingEngine
from src.model.partnerships import (
    assist_tallies_to_rows,
    pair_counts_to_rows,
    pair_tallies_to_rows,
    unit_tallies_to_rows,
)
from src.model.records import Match


class SeasonAggregator:
    """
    Derives per-player season statistics, partnership tables and ratings
    from the three raw record sets.
    """

    def __init__(self, config: SquadConfig = None):
        """
        Initialize the aggregator.

        Args:
            config: Pipeline configuration, or None for defaults
        """
        self.config = config or SquadConfig()
        self.logger = logging.getLogger('SeasonAggregator')
        self.normalizer = RecordNormalizer(self.config.fields)
        self.rating_engine = RatingEngine.from_config(self.config)

    def aggregate(
        self,
        players_raw: List[Dict[str, Any]],
        matches_raw: List[Dict[str, Any]],
        goals_raw: List[Dict[str, Any]],
        generated_at: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """
        Aggregate one season.

        Args:
            players_raw: Raw player records ({id, fields})
            matches_raw: Raw match records
            goals_raw: Raw goal records
            generated_at: Timestamp for the output meta block (defaults to now, UTC)

        Returns:
            The aggregate document (players, goals, matches, partnership tables, meta)

        Raises:
            DataIntegrityError: a MOTM was awarded to a player on a losing side
        """
        year = self.config.year
        self.logger.info(
            f"Aggregating {year}: {len(players_raw)} players, {len(matches_raw)} matches, {len(goals_raw)} goals"
        )

        players = self.normalizer.normalize_players(players_raw)
        matches = self.normalizer.normalize_matches(matches_raw)
        goals = self.normalizer.normalize_goals(goals_raw)

        registry = PlayerRegistry(players)

        match_folder = MatchFolder(registry, year)
        match_folder.fold_all(matches)

        goal_folder = GoalFolder(registry, match_folder.stat_match_ids())
        goal_folder.fold_all(goals)

        self._finalise_balances(registry)

        encoder = FormEncoder(match_folder.stat_matches, self.config.form_length)
        for pid, entry in registry.entries.items():
            entry.stats.form = encoder.encode(pid)
            entry.stats.played_last10 = played_count(entry.stats.form)

        cohort = {pid: entry.stats for pid, entry in registry.entries.items()}
        self.rating_engine.rate(cohort, matches_season=len(match_folder.stat_matches))

        if registry.synthesized:
            self.logger.warning(f"{len(registry.synthesized)} referenced players missing from the player table")

        return self.assemble(
            registry, match_folder, goal_folder,
            matches_processed=len(matches_raw),
            goals_processed=len(goals_raw),
            generated_at=generated_at,
        )

    def _finalise_balances(self, registry: PlayerRegistry) -> None:
        """Career caps, career MOTM and subs balance (which may go negative)."""
        for pid, entry in registry.entries.items():
            player = registry.players.get(pid)
            stats = entry.stats
            starting_caps = player.starting_caps if player else 0
            starting_motm = player.starting_motm if player else 0
            starting_subs = player.starting_subs if player else 0
            subs_added = player.subs_added if player else 0

            stats.caps = starting_caps + stats.caps_in_year
            stats.motm = starting_motm + stats.motm_in_year
            stats.subs = starting_subs + subs_added - stats.caps_in_year

    def assemble(
        self,
        registry: PlayerRegistry,
        match_folder: MatchFolder,
        goal_folder: GoalFolder,
        matches_processed: int,
        goals_processed: int,
        generated_at: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """Merge folded state into the output document."""
        generated_at = generated_at or datetime.now(timezone.utc)

        players_out = {pid: entry.to_output() for pid, entry in registry.entries.items()}
        matches_sorted = sorted(
            enumerate(match_folder.matches_in_year), key=lambda item: (item[1].date, item[0])
        )

        result = {
            'players': players_out,
            'goals': [goal.to_output() for goal in goal_folder.events],
            'matches': [match.to_output() for _, match in matches_sorted],
            'partnerships': assist_tallies_to_rows(goal_folder.partnerships),
            'defensivePartnerships': pair_counts_to_rows(match_folder.defensive_partnership_counts),
            'defensivePartnershipsGoalsAgainst': pair_tallies_to_rows(match_folder.defensive_partnerships_ga),
            'defensiveUnitsGoalsAgainst': unit_tallies_to_rows(match_folder.defensive_units_ga),
            'meta': {
                'generatedAt': generated_at.isoformat(),
                'year': self.config.year,
                'matchesInYear': len(match_folder.matches_in_year),
                'matchesCountForStatsInYear': len(match_folder.stat_matches),
                'matchesNonStatInYear': match_folder.matches_non_stat,
                'goalsIncluded': len(goal_folder.events),
                'matchesProcessed': matches_processed,
                'goalsProcessed': goals_processed,
            },
        }
        result['seasonSummary'] = compute_season_summary(
            players_out, match_folder.stat_matches, self.config.sub_fee
        )
        return result


def compute_season_summary(
    players_out: Dict[str, Dict[str, Any]],
    stat_matches: Sequence[Match],
    sub_fee: float = 4.0,
) -> Dict[str, Any]:
    """Headline season figures over non-excluded players; arrears cover everyone."""
    players = [p for p in players_out.values() if not p['meta'].get('excluded')]

    def total(key: str) -> int:
        return sum(p['stats'][key] for p in players)

    total_ogs = total('ogs')
    # Scoreboard goals include own goals
    return {
        'gamesPlayed': len(stat_matches),
        'totalGoals': total('goals') + total_ogs,
        'totalOtfs': total('otfs'),
        'totalOgs': total_ogs,
        'goalScorers': sum(1 for p in players if p['stats']['goals'] > 0),
        'cleanSheetGames': sum(1 for m in stat_matches if m.clean_pink or m.clean_blue),
        'subsArrears': sum(
            -p['stats']['subs'] * sub_fee for p in players_out.values() if p['stats']['subs'] < 0
        ),
    }
