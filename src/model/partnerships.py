#!/usr/bin/env python3
"""
Partnership Keys and Accumulators
=================================

Value types used as map keys for pair and unit tables. Keys compare by
structure, so (a, b) and (b, a) always land in the same bucket.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple


@dataclass(frozen=True)
class PairKey:
    """Unordered pair of player ids, stored in sorted order."""
    first: str
    second: str

    @classmethod
    def of(cls, a: str, b: str) -> "PairKey":
        if b < a:
            a, b = b, a
        return cls(a, b)


@dataclass(frozen=True)
class UnitKey:
    """Sorted, de-duplicated set of player ids forming a defensive unit."""
    members: Tuple[str, ...]

    @classmethod
    def of(cls, ids: Iterable[str]) -> "UnitKey":
        return cls(tuple(sorted(set(ids))))

    def __len__(self) -> int:
        return len(self.members)


@dataclass(frozen=True)
class ScorerAssistKey:
    """Ordered scorer + assister pair."""
    scorer_id: str
    assist_id: str


@dataclass
class GoalsAgainstTally:
    """Match count and goals conceded for a pair or unit."""
    matches: int = 0
    goals_against: int = 0

    def add(self, goals_against: int) -> None:
        self.matches += 1
        self.goals_against += goals_against

    @property
    def ga_per_match(self) -> Optional[float]:
        return self.goals_against / self.matches if self.matches else None


@dataclass
class AssistTally:
    """Scorer + assister counts; own goals excluded from count_excl_og."""
    count: int = 0
    count_excl_og: int = 0


def dedupe(ids: Iterable[str]) -> List[str]:
    """Drop duplicates and empties while keeping first-seen order."""
    seen = set()
    out = []
    for pid in ids or []:
        if pid and pid not in seen:
            seen.add(pid)
            out.append(pid)
    return out


def iter_pairs(ids: Iterable[str]) -> Iterator[PairKey]:
    """Visit every unordered 2-combination of the de-duplicated ids once."""
    unique = dedupe(ids)
    for i in range(len(unique)):
        for j in range(i + 1, len(unique)):
            yield PairKey.of(unique[i], unique[j])


def add_pairs(ids: Iterable[str], on_pair: Callable[[PairKey], None]) -> None:
    for key in iter_pairs(ids):
        on_pair(key)


def _ga_sort_key(tally: GoalsAgainstTally) -> float:
    ga = tally.ga_per_match
    return float('inf') if ga is None else ga


def pair_counts_to_rows(counts: Dict[PairKey, int]) -> List[Dict]:
    """Clean-sheet partnership rows, count descending (stable)."""
    rows = [
        {'playerId1': key.first, 'playerId2': key.second, 'count': count}
        for key, count in counts.items()
    ]
    return sorted(rows, key=lambda r: -r['count'])


def pair_tallies_to_rows(tallies: Dict[PairKey, GoalsAgainstTally]) -> List[Dict]:
    """Goals-against pair rows, gaPerMatch ascending with null last."""
    ordered = sorted(tallies.items(), key=lambda kv: _ga_sort_key(kv[1]))
    return [
        {
            'playerId1': key.first,
            'playerId2': key.second,
            'matches': tally.matches,
            'goalsAgainst': tally.goals_against,
            'gaPerMatch': tally.ga_per_match,
        }
        for key, tally in ordered
    ]


def unit_tallies_to_rows(tallies: Dict[UnitKey, GoalsAgainstTally]) -> List[Dict]:
    """Goals-against unit rows, same ordering as pair rows."""
    ordered = sorted(tallies.items(), key=lambda kv: _ga_sort_key(kv[1]))
    return [
        {
            'playerIds': list(key.members),
            'matches': tally.matches,
            'goalsAgainst': tally.goals_against,
            'gaPerMatch': tally.ga_per_match,
        }
        for key, tally in ordered
    ]


def assist_tallies_to_rows(tallies: Dict[ScorerAssistKey, AssistTally]) -> List[Dict]:
    """Scorer + assister rows, count descending (stable)."""
    rows = [
        {
            'scorerId': key.scorer_id,
            'assistId': key.assist_id,
            'count': tally.count,
            'countExclOG': tally.count_excl_og,
        }
        for key, tally in tallies.items()
    ]
    return sorted(rows, key=lambda r: -r['count'])
