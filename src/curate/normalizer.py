#!/usr/bin/env python3
"""
Record Normalizer

Converts raw Airtable field bags into typed Player, Match and GoalEvent
records. This is the only place that reads raw fields; the FIELDS table in
config/squad_config.py maps external field names onto internal ones.

Coercion rules:
- single-reference fields (goalkeeper, captain, scorer, assist) -> first id or None
- multi-reference fields (rosters, clean sheets, defenders, MOTM, ...) -> de-duplicated list
- numeric fields -> finite number, 0 on absence or parse failure
- date fields -> calendar date, None when unparseable

Nothing here raises on malformed input.
"""

import logging
import math
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from config.squad_config import FIELDS
from src.model.partnerships import dedupe
from src.model.records import GoalEvent, Match, Player, Team

logger = logging.getLogger('RecordNormalizer')

TRUTHY = {'1', 'true', 'yes', 'y', 'checked'}
FALSY = {'0', 'false', 'no', 'n', ''}


def as_array(value: Any) -> List[Any]:
    return list(value) if isinstance(value, (list, tuple)) else []


def as_id_list(value: Any) -> List[str]:
    """Multi-reference field -> de-duplicated list of string ids."""
    return dedupe(str(v) for v in as_array(value) if v is not None)


def as_single_id(value: Any) -> Optional[str]:
    """Single-reference field -> first element or None."""
    ids = as_id_list(value)
    return ids[0] if ids else None


def as_number(value: Any) -> float:
    if value is None or value == "" or isinstance(value, (list, dict)):
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    return number if math.isfinite(number) else 0


def as_int(value: Any) -> int:
    return int(as_number(value))


def as_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    if isinstance(value, str):
        text = value.strip().lower()
        if text in TRUTHY:
            return True
        if text in FALSY:
            return False
    return default


def as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_date(value: Any) -> Optional[date]:
    """Parse an ISO date or datetime string into a calendar (UTC) date."""
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    try:
        if len(text) == 10:
            return date.fromisoformat(text)
        parsed = datetime.fromisoformat(text.replace('Z', '+00:00'))
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.date()


def parse_team(value: Any) -> Optional[Team]:
    text = as_text(value)
    if text is None:
        return None
    try:
        return Team(text.upper())
    except ValueError:
        return None


def _fields(record: Dict[str, Any]) -> Dict[str, Any]:
    fields = record.get('fields') if isinstance(record, dict) else None
    return fields if isinstance(fields, dict) else {}


def _record_id(record: Dict[str, Any]) -> Optional[str]:
    record_id = record.get('id') if isinstance(record, dict) else None
    if record_id is None or record_id == "":
        return None
    return str(record_id)


class RecordNormalizer:
    """Maps raw records onto typed records using a field-name table."""

    def __init__(self, fields: Dict[str, str] = None):
        self.fields = dict(FIELDS)
        if fields:
            self.fields.update(fields)

    def _get(self, bag: Dict[str, Any], key: str) -> Any:
        return bag.get(self.fields[key])

    def normalize_player(self, record: Dict[str, Any]) -> Optional[Player]:
        """Returns None for records without an id."""
        player_id = _record_id(record)
        if player_id is None:
            logger.debug("Dropping player record without an id")
            return None
        f = _fields(record)
        return Player(
            id=player_id,
            name=as_text(self._get(f, 'NAME')) or "Unknown",
            starting_caps=as_int(self._get(f, 'STARTING_CAPS')),
            starting_motm=as_int(self._get(f, 'STARTING_MOTM')),
            starting_subs=as_int(self._get(f, 'STARTING_SUBS')),
            subs_added=as_int(self._get(f, 'SUBS_ADDED')),
            position=as_text(self._get(f, 'POSITION')),
            dob=as_text(self._get(f, 'DOB')),
            profile_photo=self._get(f, 'PROFILE_PHOTO') or None,
            nicknames=as_text(self._get(f, 'NICKNAMES')),
            excluded=as_bool(self._get(f, 'EXCLUDED')),
        )

    def normalize_match(self, record: Dict[str, Any]) -> Optional[Match]:
        """Returns None for records without an id."""
        match_id = _record_id(record)
        if match_id is None:
            logger.debug("Dropping match record without an id")
            return None
        f = _fields(record)
        match = Match(
            id=match_id,
            name=as_text(self._get(f, 'MATCH_NAME')) or match_id,
            date=parse_date(self._get(f, 'DATE_PLAYED')),
            winning_team=parse_team(self._get(f, 'WINNING_TEAM')),
            pink=as_id_list(self._get(f, 'PINK_PLAYERS')),
            blue=as_id_list(self._get(f, 'BLUE_PLAYERS')),
            clean_pink=as_id_list(self._get(f, 'CLEAN_PINK')),
            clean_blue=as_id_list(self._get(f, 'CLEAN_BLUE')),
            pink_gk=as_single_id(self._get(f, 'PINK_GK')),
            blue_gk=as_single_id(self._get(f, 'BLUE_GK')),
            pink_defs=as_id_list(self._get(f, 'PINK_DEFS')),
            blue_defs=as_id_list(self._get(f, 'BLUE_DEFS')),
            pink_captain=as_single_id(self._get(f, 'PINK_CAPTAIN')),
            blue_captain=as_single_id(self._get(f, 'BLUE_CAPTAIN')),
            otfs=as_id_list(self._get(f, 'OTFS')),
            motm=as_id_list(self._get(f, 'MOTM')),
            honourable_mentions=as_id_list(self._get(f, 'HONOURABLE_MENTIONS')),
            notes=as_text(self._get(f, 'NOTES')),
            pink_goals=as_int(self._get(f, 'PINK_GOALS')),
            blue_goals=as_int(self._get(f, 'BLUE_GOALS')),
            counts_for_stats=as_bool(self._get(f, 'COUNTS_FOR_STATS'), default=True),
        )
        if match.date is None:
            logger.debug(f"Match {match_id} has no parseable date; it will be skipped")
        return match

    def normalize_goal(self, record: Dict[str, Any]) -> Optional[GoalEvent]:
        """Returns None for events without an id, a match or a scorer."""
        goal_id = _record_id(record)
        f = _fields(record)
        match_id = as_single_id(self._get(f, 'GOAL_MATCH'))
        scorer_id = as_single_id(self._get(f, 'GOAL_SCORER'))
        if goal_id is None or not match_id or not scorer_id:
            logger.debug(f"Dropping goal {goal_id}: missing id, match or scorer")
            return None
        return GoalEvent(
            id=goal_id,
            match_id=match_id,
            scorer_id=scorer_id,
            assist_id=as_single_id(self._get(f, 'GOAL_ASSIST')),
            is_own_goal=as_bool(self._get(f, 'GOAL_IS_OWN')),
        )

    def normalize_players(self, records: List[Dict[str, Any]]) -> Dict[str, Player]:
        players = {}
        for record in records:
            player = self.normalize_player(record)
            if player is not None:
                players[player.id] = player
        return players

    def normalize_matches(self, records: List[Dict[str, Any]]) -> List[Match]:
        matches = [self.normalize_match(record) for record in records]
        return [match for match in matches if match is not None]

    def normalize_goals(self, records: List[Dict[str, Any]]) -> List[GoalEvent]:
        goals = []
        for record in records:
            goal = self.normalize_goal(record)
            if goal is not None:
                goals.append(goal)
        return goals
