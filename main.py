#!/usr/bin/env python3
"""
Squad Season Statistics - Step-Based Processing
===============================================

Builds the season aggregate for a casual football squad from the
Airtable base that records players, matches and goals.

Processing Steps:
- step_01_collect: Fetch the players, matches and goals tables into storage/raw
- step_02_aggregate: Fold the raw records into storage/processed/aggregated.json
- step_03_validate: Consistency checks over the aggregate
- step_04_export: Export the aggregate's tables to CSV

step_02_aggregate also runs on its own when raw records are already stored,
so the aggregate can be rebuilt offline.
"""

import argparse
import logging
import os
import sys
from datetime import datetime
from typing import Dict, Any, Optional

from config.squad_config import SquadConfig, create_default_config
from src.collect.airtable_collector import AirtableCollector
from src.curate.aggregator import SeasonAggregator
from src.curate.form_encoder import DataIntegrityError
from src.utils.storage import RAW_TABLES, StorageManager
from src.validate.validator import AggregateValidator


class SquadStatsSystem:
    """
    Season statistics pipeline with step-based processing.

    Each step records its result in step_results; steps refuse to run
    until their dependencies have completed in the same session.
    """

    # Define processing steps
    PROCESSING_STEPS = [
        'step_01_collect',
        'step_02_aggregate',
        'step_03_validate',
        'step_04_export',
    ]

    # Define step dependencies
    STEP_DEPENDENCIES = {
        'step_01_collect': [],
        'step_02_aggregate': ['step_01_collect'],  # or raw records already in storage
        'step_03_validate': ['step_02_aggregate'],
        'step_04_export': ['step_02_aggregate'],
    }

    def __init__(self, config: Dict[str, Any] = None, collector: AirtableCollector = None):
        """
        Initialize the system.

        Args:
            config: Configuration dictionary, or None for default
            collector: Optional collector (tests inject one backed by a fake session)
        """
        if config is None:
            self.config_dict = create_default_config()
        else:
            self.config_dict = config

        self.config = SquadConfig(self.config_dict)
        self.logger = logging.getLogger('SquadStats')

        # Initialize components
        self.storage_manager = StorageManager(self.config)
        self.collector = collector
        self.aggregator = SeasonAggregator(self.config)
        self.validator = AggregateValidator(self.config)

        # Create storage directories
        self.config.create_storage_directories()

        # Track completed steps for dependency management
        self.completed_steps = set()
        self.step_results = {}
        self.aggregate: Optional[Dict[str, Any]] = None

    def full_update(self) -> None:
        """Run every step in order."""
        self.logger.info(f"Starting full update for {self.config.year}")

        for step in self.PROCESSING_STEPS:
            try:
                self.execute_step(step)
            except Exception as e:
                self.logger.error(f"Error in {step}: {e}")
                raise

        self.logger.info("Full update completed successfully")

    def execute_step(self, step_name: str) -> Dict[str, Any]:
        """
        Execute a specific processing step.

        Args:
            step_name: Name of the step to execute

        Returns:
            Dictionary containing step results
        """
        if step_name not in self.STEP_DEPENDENCIES:
            raise ValueError(f"Unknown step: {step_name}")

        if not self._check_step_dependencies(step_name):
            missing_deps = [dep for dep in self.STEP_DEPENDENCIES[step_name] if dep not in self.completed_steps]
            raise ValueError(f"Step {step_name} missing dependencies: {missing_deps}")

        self.logger.info(f"Executing {step_name} for {self.config.year}")

        step_method = getattr(self, step_name)
        result = step_method()

        self.completed_steps.add(step_name)
        self.step_results[step_name] = result

        self.logger.info(f"Completed {step_name}")
        return result

    def _check_step_dependencies(self, step_name: str) -> bool:
        """
        Check if all dependencies for a step are satisfied.

        Args:
            step_name: Name of the step to check

        Returns:
            True if all dependencies are satisfied
        """
        required_deps = self.STEP_DEPENDENCIES.get(step_name, [])

        # Special case: aggregation can run offline from stored raw records
        if step_name == 'step_02_aggregate' and self.storage_manager.has_raw_records():
            return True

        return all(dep in self.completed_steps for dep in required_deps)

    def step_01_collect(self) -> Dict[str, Any]:
        """
        Step 1: Fetch the three record tables and store them as raw JSON.

        Returns:
            Record count per table
        """
        self.logger.info("Step 1: Collecting records from Airtable...")

        try:
            if self.collector is None:
                self.collector = AirtableCollector(self.config)
            collected = self.collector.collect_all()

            results = {}
            for table, records in collected.items():
                self.storage_manager.save_raw_records(table, records)
                results[table] = len(records)

            self.logger.info(f"Step 1: Collection completed: {results}")

        except Exception as e:
            self.logger.error(f"Error in step_01_collect: {e}")
            raise

        return results

    def step_02_aggregate(self) -> Dict[str, Any]:
        """
        Step 2: Aggregate the stored raw records.

        Returns:
            The aggregate's meta block plus the output path
        """
        self.logger.info("Step 2: Aggregating season statistics...")

        try:
            try:
                raw = {table: self.storage_manager.load_raw_records(table) for table in RAW_TABLES}
            except FileNotFoundError as e:
                raise FileNotFoundError(f"{e}. Run step_01_collect first") from e

            self.aggregate = self.aggregator.aggregate(raw['players'], raw['matches'], raw['goals'])
            path = self.storage_manager.save_aggregate(self.aggregate)

            results = dict(self.aggregate['meta'])
            results['output_path'] = path
            self.logger.info(
                f"Step 2: {results['matchesInYear']} matches in {self.config.year} "
                f"({results['matchesCountForStatsInYear']} for stats), {results['goalsIncluded']} goals"
            )

        except Exception as e:
            self.logger.error(f"Error in step_02_aggregate: {e}")
            raise

        return results

    def step_03_validate(self) -> Dict[str, Any]:
        """Step 3: Validate the aggregate."""
        self.logger.info("Step 3: Validating aggregate...")

        results = self.validator.validate(self._current_aggregate())
        for warning in results['warnings']:
            self.logger.warning(warning)
        for error in results['errors']:
            self.logger.error(error)
        return results

    def step_04_export(self) -> Dict[str, Any]:
        """Step 4: Export CSV tables."""
        self.logger.info("Step 4: Exporting CSV tables...")

        try:
            results = self.storage_manager.export_csv(self._current_aggregate())
        except Exception as e:
            self.logger.error(f"Error in step_04_export: {e}")
            raise

        return results

    def _current_aggregate(self) -> Dict[str, Any]:
        if self.aggregate is None:
            self.aggregate = self.storage_manager.load_aggregate()
        return self.aggregate

    def get_data_status(self) -> Dict[str, Any]:
        """Stored files and completed steps."""
        status = self.storage_manager.get_status()
        status['year'] = self.config.year
        status['completed_steps'] = sorted(self.completed_steps)
        return status


def setup_logging(config: SquadConfig, verbose: bool = False) -> logging.Logger:
    """Console and timestamped file logging for a command-line run."""
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else logging.INFO)

    console_handler = logging.StreamHandler(sys.stdout)
    file_handler = logging.FileHandler(
        os.path.join(config.file_paths['logs'], f'squad_stats_{datetime.now().strftime("%Y%m%d_%H%M%S")}.log')
    )

    log_format = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    console_handler.setFormatter(log_format)
    file_handler.setFormatter(log_format)

    root.addHandler(console_handler)
    root.addHandler(file_handler)

    return logging.getLogger('SquadStats')


def main():
    """Main entry point for the squad statistics pipeline."""
    parser = argparse.ArgumentParser(
        description="Squad season statistics - collect, aggregate, validate and export"
    )

    parser.add_argument(
        '--mode',
        choices=['full', 'step', 'status'],
        default='full',
        help='Operation mode (default: full)'
    )

    parser.add_argument(
        '--step',
        choices=SquadStatsSystem.PROCESSING_STEPS,
        help='Specific step to execute (only used with --mode step)'
    )

    parser.add_argument(
        '--steps',
        nargs='+',
        choices=SquadStatsSystem.PROCESSING_STEPS,
        help='Multiple specific steps to execute in sequence (only used with --mode step)'
    )

    parser.add_argument(
        '--year',
        type=int,
        help='Season year to aggregate (default: 2026)'
    )

    parser.add_argument(
        '--storage-root',
        help='Root directory for raw, processed and exported files (default: ./storage)'
    )

    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )

    args = parser.parse_args()

    # Build configuration
    config = create_default_config()
    config['verbose'] = args.verbose
    if args.year is not None:
        config['year'] = args.year
    if args.storage_root:
        config['storage_root'] = args.storage_root

    system = SquadStatsSystem(config)
    setup_logging(system.config, args.verbose)

    try:
        if args.mode == 'full':
            system.full_update()
        elif args.mode == 'step':
            steps = args.steps or ([args.step] if args.step else [])
            if not steps:
                print("Error: --step or --steps must be specified when using --mode step")
                sys.exit(1)
            for step in steps:
                result = system.execute_step(step)
                print(f"Step {step} completed successfully")
                if args.verbose:
                    print(f"  Result: {result}")
        elif args.mode == 'status':
            status = system.get_data_status()
            print(f"Data Status ({status['year']}):")
            for name, mtime in status['files'].items():
                print(f"  {name}: {mtime or 'missing'}")
            print(f"  Last updated: {status['last_updated'] or 'never'}")

    except KeyboardInterrupt:
        system.logger.info("Operation cancelled by user")
        sys.exit(1)
    except DataIntegrityError as e:
        system.logger.error(f"Data integrity error (match {e.match_id}, player {e.player_id}): {e}")
        sys.exit(1)
    except Exception as e:
        system.logger.error(f"Operation failed: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
