#!/usr/bin/env python3
"""
Squad Record Models
===================

Pydantic models for the three normalized record sets (players, matches,
goal events) and the per-player statistics accumulator.

Every field carries exactly one default, applied when the record is built
by the normalizer; nothing downstream re-checks for missing values.
"""

import datetime as dt
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Team(Enum):
    """Winning-team values of a match."""
    PINK = "PINK"
    BLUE = "BLUE"
    DRAW = "DRAW"


class Player(BaseModel):
    """Player record (identity = source record id)."""
    id: str = Field(..., description="Source record id")
    name: str = Field("Unknown", description="Display name")
    starting_caps: int = Field(0, description="Caps carried in from earlier seasons")
    starting_motm: int = Field(0, description="MOTM awards carried in from earlier seasons")
    starting_subs: int = Field(0, description="Opening subs balance")
    subs_added: int = Field(0, description="Games paid for this season")
    position: Optional[str] = Field(None, description="GK/DEF/MID/FWD or unset")
    dob: Optional[str] = Field(None, description="Date of birth, passed through")
    profile_photo: Optional[Any] = Field(None, description="Opaque attachment reference")
    nicknames: Optional[str] = Field(None, description="Free-text nicknames")
    excluded: bool = Field(False, description="Hidden from presentation")

    def meta(self) -> Dict[str, Any]:
        """Presentation metadata block."""
        return {
            'position': self.position,
            'dob': self.dob,
            'profilePhoto': self.profile_photo,
            'excluded': self.excluded,
            'nicknames': self.nicknames,
        }


class Match(BaseModel):
    """Match record, one per fixture."""
    id: str = Field(..., description="Source record id")
    name: str = Field(..., description="Match name (falls back to the id)")
    date: Optional[dt.date] = Field(None, description="Calendar date played")
    winning_team: Optional[Team] = Field(None, description="PINK, BLUE, DRAW or unset")
    pink: List[str] = Field(default_factory=list, description="Pink roster")
    blue: List[str] = Field(default_factory=list, description="Blue roster")
    clean_pink: List[str] = Field(default_factory=list, description="Pink clean-sheet credits")
    clean_blue: List[str] = Field(default_factory=list, description="Blue clean-sheet credits")
    pink_gk: Optional[str] = Field(None, description="Pink goalkeeper")
    blue_gk: Optional[str] = Field(None, description="Blue goalkeeper")
    pink_defs: List[str] = Field(default_factory=list, description="Pink defenders")
    blue_defs: List[str] = Field(default_factory=list, description="Blue defenders")
    pink_captain: Optional[str] = Field(None, description="Pink captain")
    blue_captain: Optional[str] = Field(None, description="Blue captain")
    otfs: List[str] = Field(default_factory=list, description="OTF credits")
    motm: List[str] = Field(default_factory=list, description="Player(s) of the match")
    honourable_mentions: List[str] = Field(default_factory=list, description="Honourable mentions")
    notes: Optional[str] = Field(None, description="Free-text notes")
    pink_goals: int = Field(0, description="Goals scored by Pink")
    blue_goals: int = Field(0, description="Goals scored by Blue")
    counts_for_stats: bool = Field(True, description="Contributes beyond bare caps")

    def in_year(self, year: int) -> bool:
        return self.date is not None and self.date.year == year

    def roster(self, team: Team) -> List[str]:
        return self.pink if team is Team.PINK else self.blue

    def captain(self, team: Team) -> Optional[str]:
        return self.pink_captain if team is Team.PINK else self.blue_captain

    def goals_against(self, team: Team) -> int:
        # Pink concedes what Blue scores, and vice versa
        return self.blue_goals if team is Team.PINK else self.pink_goals

    def to_output(self) -> Dict[str, Any]:
        """Per-match row of the aggregate output."""
        return {
            'id': self.id,
            'name': self.name,
            'date': self.date.isoformat() if self.date else None,
            'playersPink': list(self.pink),
            'playersBlue': list(self.blue),
            'pinkGoals': self.pink_goals,
            'blueGoals': self.blue_goals,
            'winningTeam': self.winning_team.value if self.winning_team else None,
            'motmIds': list(self.motm),
            'honourableMentionIds': list(self.honourable_mentions),
            'captainPinkId': self.pink_captain,
            'captainBlueId': self.blue_captain,
            'otfIds': list(self.otfs),
            'notes': self.notes,
            'countsForStats': self.counts_for_stats,
        }


class GoalEvent(BaseModel):
    """Single goal event."""
    id: str = Field(..., description="Source record id")
    match_id: str = Field(..., description="Match the goal belongs to")
    scorer_id: str = Field(..., description="Scorer (own-goal conceder for OGs)")
    assist_id: Optional[str] = Field(None, description="Assisting player")
    is_own_goal: bool = Field(False, description="Own goal flag")

    def to_output(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'matchId': self.match_id,
            'scorerId': self.scorer_id,
            'assistId': self.assist_id,
            'isOwnGoal': self.is_own_goal,
        }


class PlayerStats(BaseModel):
    """Per-player accumulator, rebuilt from scratch on every run."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    played: int = 0
    wins: int = 0
    draws: int = 0
    losses: int = 0
    goals: int = 0
    assists: int = 0
    ogs: int = 0
    clean_sheets: int = 0
    gk_clean_sheets: int = 0
    otfs: int = 0
    captain: int = 0
    winning_captain: int = 0
    motm_captain: int = 0
    motm: int = 0
    motm_in_year: int = 0
    honourable_mentions: int = 0
    conceded: int = 0
    conceded_one: int = 0
    caps: int = 0
    caps_in_year: int = 0
    subs: int = 0
    form: List[str] = Field(default_factory=list)
    played_last10: int = 0
    rating_raw: float = 0.0
    rating_penalty: float = 0.0
    rating_combined: float = 0.0
    ovr: int = 0


class PlayerEntry(BaseModel):
    """Player row of the aggregate output."""
    id: str
    name: str
    stats: PlayerStats = Field(default_factory=PlayerStats)
    meta: Dict[str, Any] = Field(default_factory=dict)

    def to_output(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'stats': self.stats.model_dump(by_alias=True),
            'meta': dict(self.meta),
        }
