#!/usr/bin/env python3
"""
Squad Stats Configuration
=========================

This module provides the configuration system for the season statistics
pipeline: record-source endpoints and table ids, the external field-name
table, storage paths and the rating policy.
"""

import os
from typing import Dict, Any


class ConfigError(KeyError):
    """Raised when a required setting (usually a credential) is missing."""


# Airtable table ids for the three record sets
TABLES = {
    "players": "tbl58HHS5mKXWlAby",
    "goals": "tblOF43XjjpmpkY2Q",
    "matches": "tbl4EwCT6YXa1TyWs",
}

# If Airtable field names change, update these in one place.
FIELDS = {
    # Players
    "NAME": "Name",
    "STARTING_CAPS": "Starting Caps",
    "STARTING_MOTM": "Starting MOTM",
    "STARTING_SUBS": "Starting Subs",
    "SUBS_ADDED": "Subs Added",
    "POSITION": "Position",
    "DOB": "Date of Birth",
    "PROFILE_PHOTO": "Profile Photo",
    "NICKNAMES": "Nicknames",
    "EXCLUDED": "Excluded",

    # Matches
    "MATCH_NAME": "Name",
    "DATE_PLAYED": "Date Played",
    "WINNING_TEAM": "Winning Team",
    "PINK_PLAYERS": "Pink Team Players",
    "BLUE_PLAYERS": "Blue Team Players",
    "CLEAN_PINK": "Clean Sheet (Pink)",
    "CLEAN_BLUE": "Clean Sheet (Blue)",
    "PINK_GK": "Pink Goalkeeper",
    "BLUE_GK": "Blue Goalkeeper",
    "PINK_DEFS": "Pink Defenders",
    "BLUE_DEFS": "Blue Defenders",
    "PINK_CAPTAIN": "Pink Captain",
    "BLUE_CAPTAIN": "Blue Captain",
    "OTFS": "OTFs (Over The Fences)",
    "MOTM": "Player of the Match",
    "HONOURABLE_MENTIONS": "Honourable Mentions",
    "NOTES": "Notes",
    "PINK_GOALS": "Pink Goals",
    "BLUE_GOALS": "Blue Goals",
    "COUNTS_FOR_STATS": "Counts For Stats",

    # Goals
    "GOAL_MATCH": "Match",
    "GOAL_SCORER": "Scorer",
    "GOAL_ASSIST": "Assist",
    "GOAL_IS_OWN": "Is Own Goal",
}

DEFAULT_RATING_WEIGHTS = {
    "PPG": 25.0,
    "MOTM": 8.0,
    "MOTM_CAPTAIN_BONUS": 3.0,  # on top of MOTM
    "WINNING_CAPTAIN": 4.0,
    "GOAL": 2.0,
    "ASSIST": 2.0,
    "CLEAN_SHEET": 7.0,
    "CONCEDED_ONE": 1.5,
    "HONOURABLE_MENTION": 1.0,
    "CONCEDED": -0.35,
    "OWN_GOAL": -2.5,
    "OTF": -0.15,
}


class SquadConfig:
    """
    Configuration for the season statistics pipeline.

    Built from a plain dictionary; any key that is absent falls back to
    the value from create_default_config().
    """

    def __init__(self, config_dict: Dict[str, Any] = None):
        """Initialize the configuration."""
        defaults = create_default_config()
        if config_dict:
            defaults.update(config_dict)
        config_dict = defaults

        # Basic settings
        self.verbose = config_dict['verbose']

        # Season policy
        self.year = int(config_dict['year'])
        self.form_length = int(config_dict['form_length'])
        self.attendance_immunity = float(config_dict['attendance_immunity'])
        self.penalty_max = float(config_dict['penalty_max'])
        self.rating_weights = dict(config_dict.get('rating_weights') or {})
        self.sub_fee = float(config_dict['sub_fee'])

        # Record source
        self.api_url = config_dict['api_url']
        self.tables = dict(TABLES)
        self.fields = dict(FIELDS)
        self.page_size = int(config_dict['page_size'])
        self.rate_limit_delay = float(config_dict['rate_limit_delay'])
        self.max_retries = int(config_dict['max_retries'])
        self.timeout = int(config_dict['timeout'])

        # File paths setup
        self.storage_root = config_dict['storage_root']
        self.file_paths = {
            "raw": os.path.join(self.storage_root, "raw"),
            "processed": os.path.join(self.storage_root, "processed"),
            "exports": os.path.join(self.storage_root, "exports"),
            "logs": os.path.join(self.storage_root, "logs"),
        }
        self.aggregate_path = os.path.join(self.file_paths["processed"], "aggregated.json")

    def get_table_url(self, table: str, base_id: str) -> str:
        """
        Construct the list endpoint for a record table.

        Args:
            table: Table key ('players', 'matches' or 'goals')
            base_id: Airtable base id

        Returns:
            Full URL for the table's list endpoint
        """
        return f"{self.api_url}/{base_id}/{self.tables[table]}"

    def get_credentials(self) -> Dict[str, str]:
        """Read record-source credentials from the environment."""
        return {
            'token': require_env('AIRTABLE_TOKEN'),
            'base_id': require_env('AIRTABLE_BASE_ID'),
        }

    def get_raw_file_path(self, table: str) -> str:
        """Path of the raw JSON dump for a record table."""
        return os.path.join(self.file_paths["raw"], f"{table}.json")

    def get_export_file_path(self, name: str) -> str:
        """Path of a CSV export."""
        return os.path.join(self.file_paths["exports"], f"{name}.csv")

    def create_storage_directories(self) -> None:
        """Create the storage directories."""
        for directory in [self.storage_root, *self.file_paths.values()]:
            os.makedirs(directory, exist_ok=True)


def require_env(name: str) -> str:
    """Return an environment variable or raise ConfigError."""
    value = os.environ.get(name)
    if not value:
        raise ConfigError(f"Missing env var: {name}")
    return value


def create_default_config() -> Dict[str, Any]:
    """Create default configuration dictionary."""
    return {
        'verbose': False,
        'year': 2026,
        'form_length': 10,
        'attendance_immunity': 0.20,
        'penalty_max': 12.0,
        'rating_weights': {},
        'sub_fee': 4.0,

        # Record source
        'api_url': "https://api.airtable.com/v0",
        'page_size': 100,
        'rate_limit_delay': 0.12,  # be polite to Airtable
        'max_retries': 3,
        'timeout': 30,

        'storage_root': os.path.join(os.getcwd(), "storage"),
    }
