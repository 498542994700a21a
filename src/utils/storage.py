#!/usr/bin/env python3
"""
Storage Manager for the Season Statistics Pipeline
==================================================

Raw record dumps and the aggregate document are kept as JSON; the
aggregate's tables are also exported as CSV for spreadsheets.

    storage/raw/{players,matches,goals}.json
    storage/processed/aggregated.json
    storage/exports/*.csv
"""

import json
import os
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Any
import pandas as pd
import logging

from config.squad_config import SquadConfig

RAW_TABLES = ("players", "matches", "goals")

# export name -> aggregate key
TABLE_EXPORTS = {
    'partnerships': 'partnerships',
    'defensive_partnerships': 'defensivePartnerships',
    'defensive_partnerships_ga': 'defensivePartnershipsGoalsAgainst',
    'defensive_units_ga': 'defensiveUnitsGoalsAgainst',
}


class StorageManager:
    """Manages raw, processed and exported files under the storage root."""

    def __init__(self, config: SquadConfig):
        """Initialize the storage manager."""
        self.config = config
        self.logger = logging.getLogger('StorageManager')

    def _write_json(self, data: Any, filepath: str) -> None:
        os.makedirs(os.path.dirname(filepath), exist_ok=True)
        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

    def _read_json(self, filepath: str) -> Any:
        with open(filepath, 'r', encoding='utf-8') as f:
            return json.load(f)

    def save_raw_records(self, table: str, records: List[Dict[str, Any]]) -> str:
        """Save one table's raw records and return the file path."""
        filepath = self.config.get_raw_file_path(table)
        self._write_json(records, filepath)
        self.logger.info(f"Saved {len(records)} raw {table} records to {filepath}")
        return filepath

    def load_raw_records(self, table: str) -> List[Dict[str, Any]]:
        """
        Load one table's raw records.

        Raises:
            FileNotFoundError: the table has not been collected yet
        """
        filepath = self.config.get_raw_file_path(table)
        if not os.path.exists(filepath):
            raise FileNotFoundError(f"Raw {table} records not found at {filepath}")
        return self._read_json(filepath)

    def has_raw_records(self) -> bool:
        return all(os.path.exists(self.config.get_raw_file_path(t)) for t in RAW_TABLES)

    def save_aggregate(self, aggregate: Dict[str, Any]) -> str:
        filepath = self.config.aggregate_path
        self._write_json(aggregate, filepath)
        self.logger.info(f"Wrote {filepath}")
        return filepath

    def load_aggregate(self) -> Dict[str, Any]:
        filepath = self.config.aggregate_path
        if not os.path.exists(filepath):
            raise FileNotFoundError(f"Aggregate not found at {filepath}")
        return self._read_json(filepath)

    def export_csv(self, aggregate: Dict[str, Any]) -> Dict[str, str]:
        """
        Export the aggregate's tables as CSV files.

        Args:
            aggregate: Aggregate document

        Returns:
            Mapping of export name -> written file path
        """
        os.makedirs(self.config.file_paths['exports'], exist_ok=True)
        frames = {
            'players': players_frame(aggregate['players']),
            'matches': matches_frame(aggregate['matches']),
        }
        for name, key in TABLE_EXPORTS.items():
            frames[name] = pd.DataFrame(aggregate.get(key, []))

        if 'playerIds' in frames['defensive_units_ga'].columns:
            frames['defensive_units_ga']['playerIds'] = frames['defensive_units_ga']['playerIds'].apply('|'.join)

        written = {}
        for name, df in frames.items():
            filepath = self.config.get_export_file_path(name)
            df.to_csv(filepath, index=False)
            written[name] = filepath
            self.logger.info(f"Exported {len(df)} rows to {filepath}")
        return written

    def get_status(self) -> Dict[str, Any]:
        """Which raw and processed files exist, with their modification times."""
        paths = {f"raw/{t}": Path(self.config.get_raw_file_path(t)) for t in RAW_TABLES}
        paths['processed/aggregated'] = Path(self.config.aggregate_path)

        status = {'files': {}, 'last_updated': None}
        for name, path in paths.items():
            if path.exists():
                mtime = datetime.fromtimestamp(path.stat().st_mtime)
                status['files'][name] = mtime.isoformat()
                if status['last_updated'] is None or mtime.isoformat() > status['last_updated']:
                    status['last_updated'] = mtime.isoformat()
            else:
                status['files'][name] = None
        return status


def players_frame(players: Dict[str, Dict[str, Any]]) -> pd.DataFrame:
    """One row per player with stats and meta flattened into columns."""
    rows = []
    for entry in players.values():
        row = {'id': entry['id'], 'name': entry['name']}
        for key, value in entry['stats'].items():
            row[key] = ' '.join(value) if key == 'form' else value
        for key, value in entry.get('meta', {}).items():
            row[f"meta_{key}"] = ', '.join(map(str, value)) if isinstance(value, list) else value
        rows.append(row)
    return pd.DataFrame(rows)


def matches_frame(matches: List[Dict[str, Any]]) -> pd.DataFrame:
    rows = []
    for match in matches:
        rows.append({
            key: '|'.join(map(str, value)) if isinstance(value, list) else value
            for key, value in match.items()
        })
    return pd.DataFrame(rows)
