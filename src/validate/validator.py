#!/usr/bin/env python3
"""
Aggregate Validator
===================

Consistency checks over an aggregate document: result conservation,
rating range, scorelines against goal events, unresolved players and
dangling goal references.
"""

import logging
from typing import Dict, List, Any
from datetime import datetime
import pandas as pd


class AggregateValidator:
    """
    Validator for the aggregate produced by SeasonAggregator.

    Never raises on bad data; problems are reported in the result dict.
    """

    def __init__(self, config=None):
        """Initialize the validator."""
        self.config = config
        self.logger = logging.getLogger('AggregateValidator')

    def validate(self, aggregate: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate an aggregate document.

        Args:
            aggregate: Aggregate document

        Returns:
            Dictionary containing validation results
        """
        validation_result = {
            'timestamp': datetime.now().isoformat(),
            'overall_valid': True,
            'errors': [],
            'warnings': [],
            'data_quality_score': 0.0,
            'validation_details': {}
        }

        checks = {
            'result_conservation': self._check_result_conservation,
            'ovr_range': self._check_ovr_range,
            'scorelines': self._check_scorelines,
            'unknown_players': self._check_unknown_players,
            'goal_references': self._check_goal_references,
        }

        for name, check in checks.items():
            try:
                result = check(aggregate)
            except (KeyError, TypeError, ValueError) as e:
                result = _result()
                result['valid'] = False
                result['errors'].append(f"{name} check failed: {e}")
                self.logger.error(f"Error running {name} check: {e}")
            validation_result['validation_details'][name] = result

        passed = 0
        for name, result in validation_result['validation_details'].items():
            if not result['valid']:
                validation_result['overall_valid'] = False
                validation_result['errors'].extend(result['errors'])
            if result['valid'] and not result['warnings']:
                passed += 1
            validation_result['warnings'].extend(result['warnings'])

        validation_result['data_quality_score'] = passed / len(checks) * 100

        self.logger.info(
            f"Validation {'passed' if validation_result['overall_valid'] else 'failed'}: "
            f"{len(validation_result['errors'])} errors, {len(validation_result['warnings'])} warnings, "
            f"quality {validation_result['data_quality_score']:.1f}%"
        )
        return validation_result

    def _check_result_conservation(self, aggregate: Dict[str, Any]) -> Dict[str, Any]:
        """W + D + L across players equals roster places in decided stat matches."""
        result = _result()
        stats = _stats_frame(aggregate)

        expected = sum(
            len(m['playersPink']) + len(m['playersBlue'])
            for m in _stat_matches(aggregate)
            if m.get('winningTeam')
        )
        actual = int(stats[['wins', 'draws', 'losses']].to_numpy().sum()) if not stats.empty else 0

        if actual != expected:
            result['valid'] = False
            result['errors'].append(
                f"Result conservation broken: {actual} W/D/L credited, {expected} roster places"
            )
        return result

    def _check_ovr_range(self, aggregate: Dict[str, Any]) -> Dict[str, Any]:
        result = _result()
        for pid, entry in aggregate['players'].items():
            ovr = entry['stats'].get('ovr')
            if not isinstance(ovr, int) or isinstance(ovr, bool) or not 0 <= ovr <= 100:
                result['valid'] = False
                result['errors'].append(f"Player {pid} has OVR {ovr!r} outside 0..100")
        return result

    def _check_scorelines(self, aggregate: Dict[str, Any]) -> Dict[str, Any]:
        """Goal events per side against the recorded scoreline (warnings only)."""
        result = _result()
        goals_by_match: Dict[str, List[Dict[str, Any]]] = {}
        for goal in aggregate['goals']:
            goals_by_match.setdefault(goal['matchId'], []).append(goal)

        for match in _stat_matches(aggregate):
            pink = set(match['playersPink'])
            blue = set(match['playersBlue'])
            counted = {'PINK': 0, 'BLUE': 0}
            for goal in goals_by_match.get(match['id'], []):
                if goal['scorerId'] in pink:
                    side = 'BLUE' if goal['isOwnGoal'] else 'PINK'
                elif goal['scorerId'] in blue:
                    side = 'PINK' if goal['isOwnGoal'] else 'BLUE'
                else:
                    result['warnings'].append(
                        f"Goal {goal['id']} scorer {goal['scorerId']} not on either roster of match {match['id']}"
                    )
                    continue
                counted[side] += 1

            if counted['PINK'] != match['pinkGoals'] or counted['BLUE'] != match['blueGoals']:
                result['warnings'].append(
                    f"Match {match['id']} scoreline {match['pinkGoals']}-{match['blueGoals']} "
                    f"but goal events give {counted['PINK']}-{counted['BLUE']}"
                )
        return result

    def _check_unknown_players(self, aggregate: Dict[str, Any]) -> Dict[str, Any]:
        result = _result()
        for pid, entry in aggregate['players'].items():
            if entry['name'] == "Unknown":
                result['warnings'].append(f"Player {pid} is referenced but missing from the player table")
        return result

    def _check_goal_references(self, aggregate: Dict[str, Any]) -> Dict[str, Any]:
        result = _result()
        match_ids = {m['id'] for m in aggregate['matches']}
        for goal in aggregate['goals']:
            if goal['matchId'] not in match_ids:
                result['valid'] = False
                result['errors'].append(f"Goal {goal['id']} references unknown match {goal['matchId']}")
        return result


def _result() -> Dict[str, Any]:
    return {'valid': True, 'errors': [], 'warnings': []}


def _stat_matches(aggregate: Dict[str, Any]) -> List[Dict[str, Any]]:
    return [m for m in aggregate['matches'] if m.get('countsForStats')]


def _stats_frame(aggregate: Dict[str, Any]) -> pd.DataFrame:
    return pd.DataFrame(
        [entry['stats'] for entry in aggregate['players'].values()],
        columns=['wins', 'draws', 'losses'],
    )
