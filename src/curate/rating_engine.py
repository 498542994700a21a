#!/usr/bin/env python3
"""
Rating Engine

Two-stage overall rating (OVR):
  Stage A  position-neutral raw season score from the folded counters
  Stage B  recent-inactivity penalty for low-attendance players
  Stage C  min-max normalisation of (raw - penalty) across the cohort to 0..100
"""

import math
from typing import Dict, Mapping

from pydantic import BaseModel, ConfigDict, Field

from config.squad_config import DEFAULT_RATING_WEIGHTS
from src.model.records import PlayerStats


def clamp(n: float, low: float, high: float) -> float:
    return max(low, min(high, n))


class RatingWeights(BaseModel):
    """Weight table for the raw season score. Negative weights penalise."""
    model_config = ConfigDict(extra='forbid', populate_by_name=True)

    ppg: float = Field(DEFAULT_RATING_WEIGHTS['PPG'], alias='PPG')
    motm: float = Field(DEFAULT_RATING_WEIGHTS['MOTM'], alias='MOTM')
    motm_captain_bonus: float = Field(DEFAULT_RATING_WEIGHTS['MOTM_CAPTAIN_BONUS'], alias='MOTM_CAPTAIN_BONUS')
    winning_captain: float = Field(DEFAULT_RATING_WEIGHTS['WINNING_CAPTAIN'], alias='WINNING_CAPTAIN')
    goal: float = Field(DEFAULT_RATING_WEIGHTS['GOAL'], alias='GOAL')
    assist: float = Field(DEFAULT_RATING_WEIGHTS['ASSIST'], alias='ASSIST')
    clean_sheet: float = Field(DEFAULT_RATING_WEIGHTS['CLEAN_SHEET'], alias='CLEAN_SHEET')
    conceded_one: float = Field(DEFAULT_RATING_WEIGHTS['CONCEDED_ONE'], alias='CONCEDED_ONE')
    honourable_mention: float = Field(DEFAULT_RATING_WEIGHTS['HONOURABLE_MENTION'], alias='HONOURABLE_MENTION')
    conceded: float = Field(DEFAULT_RATING_WEIGHTS['CONCEDED'], alias='CONCEDED')
    own_goal: float = Field(DEFAULT_RATING_WEIGHTS['OWN_GOAL'], alias='OWN_GOAL')
    otf: float = Field(DEFAULT_RATING_WEIGHTS['OTF'], alias='OTF')

    @classmethod
    def from_config(cls, overrides: Mapping[str, float] = None) -> "RatingWeights":
        """Build from a (possibly partial) mapping of upper-case weight names."""
        overrides = dict(overrides or {})
        unknown = set(overrides) - set(DEFAULT_RATING_WEIGHTS)
        if unknown:
            raise ValueError(f"Unknown rating weights: {', '.join(sorted(unknown))}")
        return cls(**overrides)


def compute_season_raw(stats: PlayerStats, weights: RatingWeights = None) -> float:
    """Stage A. Zero for players without a stats-counting appearance."""
    if stats.played <= 0:
        return 0.0
    w = weights or RatingWeights()

    # Points per game: W=1, D=0.5, L=0
    ppg = (stats.wins + 0.5 * stats.draws) / stats.played

    return (
        w.ppg * ppg
        + w.motm * stats.motm_in_year
        + w.motm_captain_bonus * stats.motm_captain
        + w.winning_captain * stats.winning_captain
        + w.goal * stats.goals
        + w.assist * stats.assists
        + w.clean_sheet * stats.clean_sheets
        + w.conceded_one * stats.conceded_one
        + w.honourable_mention * stats.honourable_mentions
        + w.conceded * stats.conceded
        + w.own_goal * stats.ogs
        + w.otf * stats.otfs
    )


def compute_recent_penalty(
    played_last10: int,
    played_season: int,
    matches_season: int,
    attendance_immunity: float = 0.20,
    penalty_max: float = 12.0,
) -> float:
    """
    Stage B. Only players below the attendance immunity who played at most
    2 of the last 10 are penalised: 2 -> 0, 1 -> half, 0 -> full penaltyMax.
    """
    if matches_season <= 0:
        return 0.0
    if played_season / matches_season >= attendance_immunity:
        return 0.0
    if played_last10 > 2:
        return 0.0
    return clamp((2 - played_last10) / 2, 0, 1) * penalty_max


def normalise_to_100(combined_by_player: Dict[str, float]) -> Dict[str, int]:
    """Stage C. Identical scores across the whole cohort all map to 50."""
    if not combined_by_player:
        return {}
    values = combined_by_player.values()
    low, high = min(values), max(values)
    if high == low:
        return {pid: 50 for pid in combined_by_player}
    return {
        pid: int(math.floor(100 * (value - low) / (high - low) + 0.5))
        for pid, value in combined_by_player.items()
    }


class RatingEngine:
    """Applies all three stages to a cohort of PlayerStats."""

    def __init__(self, weights: RatingWeights = None, attendance_immunity: float = 0.20, penalty_max: float = 12.0):
        self.weights = weights or RatingWeights()
        self.attendance_immunity = attendance_immunity
        self.penalty_max = penalty_max

    @classmethod
    def from_config(cls, config) -> "RatingEngine":
        return cls(
            weights=RatingWeights.from_config(config.rating_weights),
            attendance_immunity=config.attendance_immunity,
            penalty_max=config.penalty_max,
        )

    def rate(self, cohort: Mapping[str, PlayerStats], matches_season: int) -> None:
        """Fill the rating fields of every PlayerStats in place."""
        combined = {}
        for pid, stats in cohort.items():
            stats.rating_raw = compute_season_raw(stats, self.weights)
            stats.rating_penalty = compute_recent_penalty(
                played_last10=stats.played_last10,
                played_season=stats.played,
                matches_season=matches_season,
                attendance_immunity=self.attendance_immunity,
                penalty_max=self.penalty_max,
            )
            stats.rating_combined = stats.rating_raw - stats.rating_penalty
            combined[pid] = stats.rating_combined

        for pid, ovr in normalise_to_100(combined).items():
            cohort[pid].ovr = ovr
