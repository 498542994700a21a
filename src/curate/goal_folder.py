#!/usr/bin/env python3
"""
Goal Folder

Folds goal events from in-year, stats-counting matches into scorer and
assister totals plus scorer + assister partnership counts.
"""

import logging
from typing import Dict, Iterable, List, Set

from src.curate.match_folder import PlayerRegistry
from src.model.partnerships import AssistTally, ScorerAssistKey
from src.model.records import GoalEvent


class GoalFolder:
    """Accumulates goals, assists, own goals and assist partnerships."""

    def __init__(self, registry: PlayerRegistry, stat_match_ids: Set[str]):
        self.logger = logging.getLogger('GoalFolder')
        self.registry = registry
        self.stat_match_ids = stat_match_ids
        self.partnerships: Dict[ScorerAssistKey, AssistTally] = {}
        self.events: List[GoalEvent] = []
        self.skipped = 0

    def fold_all(self, goals: Iterable[GoalEvent]) -> None:
        for goal in goals:
            self.fold(goal)
        self.logger.info(f"Included {len(self.events)} goal events ({self.skipped} outside the season's stat matches)")

    def fold(self, goal: GoalEvent) -> bool:
        if goal.match_id not in self.stat_match_ids:
            self.skipped += 1
            return False
        self.events.append(goal)

        scorer = self.registry.stats(goal.scorer_id)
        if goal.is_own_goal:
            scorer.ogs += 1
        else:
            scorer.goals += 1

        if goal.assist_id:
            self.registry.stats(goal.assist_id).assists += 1
            tally = self.partnerships.setdefault(
                ScorerAssistKey(goal.scorer_id, goal.assist_id), AssistTally()
            )
            tally.count += 1
            if not goal.is_own_goal:
                tally.count_excl_og += 1
        return True
