#!/usr/bin/env python3
"""
Form Encoder

Builds each player's form: a fixed-length, most-recent-first sequence of
single-token outcome codes over the season's latest stats-counting matches.

Tokens come from a decision table keyed on (result, is_captain, is_motm)
with precedence captain+MOTM > MOTM > captain > plain result. A MOTM on
the losing side has no token; meeting one raises DataIntegrityError.
"""

import logging
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from src.model.records import Match, Team

DID_NOT_PLAY = "-"


class DataIntegrityError(ValueError):
    """Source data contradicts itself (e.g. MOTM awarded on a losing side)."""

    def __init__(self, message: str, match_id: str = None, player_id: str = None):
        super().__init__(message)
        self.match_id = match_id
        self.player_id = player_id


class Result(Enum):
    WIN = "W"
    DRAW = "D"
    LOSS = "L"


# (result, is_captain, is_motm) -> token
FORM_TOKENS: Dict[Tuple[Result, bool, bool], str] = {
    (Result.WIN, False, False): "W",
    (Result.WIN, True, False): "WC",
    (Result.WIN, False, True): "WM",
    (Result.WIN, True, True): "WCM",
    (Result.DRAW, False, False): "D",
    (Result.DRAW, True, False): "DC",
    (Result.DRAW, False, True): "DM",
    (Result.DRAW, True, True): "DCM",
    (Result.LOSS, False, False): "L",
    (Result.LOSS, True, False): "LC",
}


def team_of(match: Match, player_id: str) -> Optional[Team]:
    if player_id in match.pink:
        return Team.PINK
    if player_id in match.blue:
        return Team.BLUE
    return None


def result_for(match: Match, team: Team) -> Optional[Result]:
    if match.winning_team is Team.DRAW:
        return Result.DRAW
    if match.winning_team is None:
        return None
    return Result.WIN if match.winning_team is team else Result.LOSS


def select_token(result: Result, is_captain: bool, is_motm: bool) -> str:
    token = FORM_TOKENS.get((result, is_captain, is_motm))
    if token is None:
        raise DataIntegrityError(f"No form token for {result.name} with MOTM")
    return token


def encode_match(match: Match, player_id: str) -> str:
    """Token for one (player, match)."""
    team = team_of(match, player_id)
    if team is None:
        return DID_NOT_PLAY
    is_motm = player_id in match.motm
    result = result_for(match, team)
    if result is Result.LOSS and is_motm:
        raise DataIntegrityError(
            f"Player {player_id} is MOTM of match {match.id} but was on the losing team",
            match_id=match.id,
            player_id=player_id,
        )
    if result is None:
        return DID_NOT_PLAY
    return select_token(result, match.captain(team) == player_id, is_motm)


def played_count(form: Sequence[str]) -> int:
    return sum(1 for token in form if token != DID_NOT_PLAY)


class FormEncoder:
    """Encodes the recent-form window for every player in a run."""

    def __init__(self, stat_matches: Sequence[Match], length: int = 10):
        self.logger = logging.getLogger('FormEncoder')
        self.length = length
        self.window = self.recent_matches(stat_matches, length)
        self.logger.debug(f"Form window: {[m.id for m in self.window]}")

    @staticmethod
    def recent_matches(stat_matches: Sequence[Match], length: int) -> List[Match]:
        """Most recent first; equal dates put the later source record first.

        Matches without a recorded result are left out of the window.
        """
        dated = [
            (m.date, idx, m) for idx, m in enumerate(stat_matches)
            if m.date is not None and m.winning_team is not None
        ]
        dated.sort(key=lambda item: (item[0], item[1]), reverse=True)
        return [m for _, _, m in dated[:length]]

    def encode(self, player_id: str) -> List[str]:
        form = [encode_match(match, player_id) for match in self.window]
        form.extend([DID_NOT_PLAY] * (self.length - len(form)))
        return form
