#!/usr/bin/env python3
"""
Airtable Record Collector
=========================

Step 1 of the season statistics pipeline.
Pages through the players, matches and goals tables of the Airtable base
and returns the raw records ({id, fields, createdTime}) untouched.

Any failure raises AirtableError; a partial record set is never returned.
"""

import json
import time
import requests
from typing import Dict, List, Any, Optional
import logging

from config.squad_config import SquadConfig


class AirtableError(RuntimeError):
    """Record source request failed (non-retryable status or retries exhausted)."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class AirtableCollector:
    """Collector for Airtable list endpoints."""

    def __init__(self, config: SquadConfig, session: requests.Session = None,
                 credentials: Dict[str, str] = None):
        """
        Initialize the collector.

        Args:
            config: Pipeline configuration
            session: Optional pre-built session (tests inject a fake one)
            credentials: Optional {'token', 'base_id'}; read from the environment on first use otherwise
        """
        self.config = config
        self.session = session or requests.Session()
        self._credentials = None
        if credentials is not None:
            self._authorize(credentials)

        # Rate limiting
        self.request_delay = config.rate_limit_delay
        self.last_request_time = 0
        self.max_retries = config.max_retries
        self.retry_backoff = 2.0
        self.timeout = config.timeout

        # Progress tracking
        self.total_requests = 0
        self.successful_requests = 0
        self.failed_requests = 0

        self.logger = logging.getLogger('AirtableCollector')

    @property
    def credentials(self) -> Dict[str, str]:
        if self._credentials is None:
            self._authorize(self.config.get_credentials())
        return self._credentials

    def _authorize(self, credentials: Dict[str, str]) -> None:
        self._credentials = credentials
        self.session.headers.update({
            "Authorization": f"Bearer {credentials['token']}",
        })

    def _make_request(self, url: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """Make a rate-limited request for one page of records."""
        for attempt in range(self.max_retries + 1):
            # Rate limiting
            time_since_last = time.time() - self.last_request_time
            if time_since_last < self.request_delay:
                time.sleep(self.request_delay - time_since_last)

            try:
                self.total_requests += 1
                response = self.session.get(url, params=params, timeout=self.timeout)
                self.last_request_time = time.time()

                if response.status_code == 429:
                    if attempt < self.max_retries:
                        retry_after = _retry_after(response, self.retry_backoff * (2 ** attempt))
                        self.logger.warning(f"Rate limited - waiting {retry_after}s")
                        time.sleep(retry_after)
                        continue
                    self.failed_requests += 1
                    raise AirtableError(
                        f"Rate limited after {self.max_retries} retries", 429, response.text
                    )

                if response.status_code >= 500:
                    if attempt < self.max_retries:
                        wait_time = self.retry_backoff * (1.5 ** attempt)
                        self.logger.warning(f"Server error {response.status_code}, retrying in {wait_time:.1f}s (attempt {attempt + 1}/{self.max_retries})")
                        time.sleep(wait_time)
                        continue
                    self.failed_requests += 1
                    raise AirtableError(
                        f"Airtable error {response.status_code} after {self.max_retries} retries",
                        response.status_code, response.text,
                    )

                if response.status_code >= 400:
                    self.failed_requests += 1
                    raise AirtableError(
                        f"Airtable error {response.status_code}: {response.text}",
                        response.status_code, response.text,
                    )

                data = response.json()
                self.successful_requests += 1
                return data

            except requests.exceptions.Timeout:
                if attempt < self.max_retries:
                    wait_time = self.retry_backoff * (1.5 ** attempt)
                    self.logger.warning(f"Request timeout, retrying in {wait_time:.1f}s (attempt {attempt + 1}/{self.max_retries})")
                    time.sleep(wait_time)
                    continue
                self.failed_requests += 1
                raise AirtableError(f"Request timeout after {self.max_retries} retries")

            except requests.exceptions.ConnectionError:
                if attempt < self.max_retries:
                    wait_time = self.retry_backoff * (1.5 ** attempt)
                    self.logger.warning(f"Connection error, retrying in {wait_time:.1f}s (attempt {attempt + 1}/{self.max_retries})")
                    time.sleep(wait_time)
                    continue
                self.failed_requests += 1
                raise AirtableError(f"Connection error after {self.max_retries} retries")

            except requests.exceptions.RequestException as e:
                self.failed_requests += 1
                raise AirtableError(f"Request failed: {e}") from e

            except json.JSONDecodeError as e:
                self.failed_requests += 1
                raise AirtableError(f"JSON decode error: {e}") from e

        raise AirtableError(f"Request to {url} failed")

    def fetch_all_records(self, table: str) -> List[Dict[str, Any]]:
        """
        Fetch every record of a table, following Airtable's offset cursor.

        Args:
            table: Table key ('players', 'matches' or 'goals')

        Returns:
            List of raw records in source order
        """
        url = self.config.get_table_url(table, self.credentials['base_id'])
        records: List[Dict[str, Any]] = []
        offset = None
        pages = 0

        while True:
            params: Dict[str, Any] = {"pageSize": self.config.page_size}
            if offset:
                params["offset"] = offset

            data = self._make_request(url, params)
            records.extend(data.get("records") or [])
            pages += 1

            offset = data.get("offset")
            if not offset:
                break

        self.logger.info(f"Fetched {len(records)} {table} records ({pages} pages)")
        return records

    def collect_all(self) -> Dict[str, List[Dict[str, Any]]]:
        """Fetch the players, matches and goals tables."""
        collected = {}
        for table in ("players", "matches", "goals"):
            collected[table] = self.fetch_all_records(table)

        self.logger.info(
            f"Requests: {self.total_requests} total, {self.successful_requests} ok, {self.failed_requests} failed"
        )
        return collected

    def get_api_success_rate(self) -> float:
        """Share of requests that succeeded, as a percentage."""
        if self.total_requests == 0:
            return 0.0
        return (self.successful_requests / self.total_requests) * 100


def _retry_after(response, fallback: float) -> float:
    try:
        return float(response.headers.get('Retry-After', fallback))
    except (TypeError, ValueError):
        return fallback
