"""
Transposition table for caching minimax search results.

The transposition table stores the values of previously searched positions
so that a position reached through a different move order is not searched
again.

Key concepts:
- Bound types: EXACT (full window), LOWER (fail-high/beta cutoff), UPPER (fail-low)
- Entries are only trusted for queries no deeper than the search that produced them
- Bounded capacity: when full, the least relevant entry makes room, where
  relevance ranks EXACT above one-sided bounds, then deeper above shallower,
  then recently used above stale
- Aging: entries not referenced for more than `max_age` turns are dropped
"""

import threading
from collections import OrderedDict
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from hidden_game_player.config import (
    TRANSPOSITION_TABLE_CONFIG, merge_config, validate_positive_int
)
from hidden_game_player.instrumentation import SearchObserver


class BoundType(Enum):
    """Type of bound stored in transposition table entry."""
    EXACT = 0   # Exact value (searched with the full window)
    LOWER = 1   # Lower bound (beta cutoff, actual value >= stored value)
    UPPER = 2   # Upper bound (alpha cutoff, actual value <= stored value)

    @property
    def rank(self) -> int:
        """Trustworthiness used for relevance ranking."""
        return 1 if self is BoundType.EXACT else 0


@dataclass
class TTEntry:
    """
    Transposition table entry storing a cached search result.

    Attributes:
        fingerprint: Fingerprint of the position
        score: Evaluation score (or bound), ALICE's perspective
        depth: Remaining search depth when this entry was stored
        bound: Type of bound (EXACT/LOWER/UPPER)
        age: Number of age() calls since the entry was last referenced
    """
    fingerprint: int
    score: float
    depth: int
    bound: BoundType
    age: int = 0

    @property
    def quality(self) -> tuple:
        return (self.bound.rank, self.depth)

    def cutoff_score(self, alpha: float, beta: float) -> Optional[float]:
        """The score if it settles the [alpha, beta] window on its own, else None."""
        if self.bound == BoundType.EXACT:
            return self.score
        if self.bound == BoundType.LOWER and self.score >= beta:
            return self.score
        if self.bound == BoundType.UPPER and self.score <= alpha:
            return self.score
        return None

    def narrow(self, alpha: float, beta: float) -> tuple:
        """Tighten [alpha, beta] with this entry's bound."""
        if self.bound == BoundType.LOWER:
            return max(alpha, self.score), beta
        if self.bound == BoundType.UPPER:
            return alpha, min(beta, self.score)
        return alpha, beta


class TranspositionTable:
    """
    Bounded transposition table with relevance-based eviction.

    Entries are grouped by quality (bound rank, depth); each group keeps its
    fingerprints in least-recently-used order, so the eviction victim is the
    oldest entry of the lowest non-empty group.

    All operations hold a lock, so several searches may share one table.
    """

    def __init__(self, capacity: int, max_age: int = 10, observer: SearchObserver = None):
        """
        Initialize transposition table.

        Args:
            capacity: Maximum number of entries
            max_age: Entries not referenced for more than this many calls to
                age() are dropped
            observer: Notified when an entry is evicted
        """
        self.capacity = validate_positive_int('capacity', capacity)
        self.max_age = validate_positive_int('max_age', max_age)
        self.observer = observer or SearchObserver()

        self._entries: dict[int, TTEntry] = {}
        self._groups: dict[tuple, OrderedDict] = {}
        self._lock = threading.RLock()

        # Statistics
        self.hits = 0
        self.misses = 0
        self.stores = 0
        self.rejections = 0
        self.evictions = 0
        self.expirations = 0

    @classmethod
    def from_config(cls, config: dict = None, observer: SearchObserver = None):
        config = merge_config(TRANSPOSITION_TABLE_CONFIG, config)
        return cls(config['capacity'], config['max_age'], observer=observer)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, fingerprint: int) -> bool:
        return fingerprint in self._entries

    def lookup(self, fingerprint: int, required_depth: int) -> Optional[TTEntry]:
        """
        Return the cached entry for a position if it is deep enough.

        Args:
            fingerprint: Position fingerprint
            required_depth: Depth the caller is about to search

        Returns:
            The entry if its depth >= required_depth, None otherwise
        """
        with self._lock:
            entry = self._entries.get(fingerprint)
            if entry is None or entry.depth < required_depth:
                self.misses += 1
                return None

            # Referenced: reset age and refresh recency
            entry.age = 0
            self._touch(entry)
            self.hits += 1
            return entry

    def probe(self, fingerprint: int, depth: int, alpha: float, beta: float) -> Optional[float]:
        """
        Score usable for an immediate cutoff, if any.

        Returns the cached score if the entry is deep enough and either exact
        or a bound that already falls outside [alpha, beta].
        """
        entry = self.lookup(fingerprint, depth)
        if entry is None:
            return None
        return entry.cutoff_score(alpha, beta)

    def store(
        self,
        fingerprint: int,
        score: float,
        depth: int,
        bound: BoundType = BoundType.EXACT,
        force: bool = False
    ) -> bool:
        """
        Store a search result.

        Replacement policy:
        - Same position: replace unless the stored entry has strictly better
          quality (bound rank, then depth). `force` always replaces.
        - New position, table full: evict the least relevant entry if the new
          entry's quality is at least as good; otherwise reject the new entry.

        Returns:
            True if the entry was stored
        """
        if depth < 0:
            raise ValueError(f"depth must be non-negative, got {depth}")

        new_quality = (bound.rank, depth)
        with self._lock:
            existing = self._entries.get(fingerprint)
            if existing is not None:
                if not force and existing.quality > new_quality:
                    self.rejections += 1
                    return False
                self._remove(existing)
            elif len(self._entries) >= self.capacity:
                victim = self._least_relevant()
                if not force and victim.quality > new_quality:
                    self.rejections += 1
                    return False
                self._remove(victim)
                self.evictions += 1
                self.observer.on_entry_evicted(victim)

            entry = TTEntry(fingerprint=fingerprint, score=score, depth=depth, bound=bound)
            self._entries[fingerprint] = entry
            self._touch(entry)
            self.stores += 1
            return True

    def age(self):
        """
        Age every entry by one turn, dropping the ones older than max_age.

        Call once per turn; lookups reset an entry's age.
        """
        with self._lock:
            expired = []
            for entry in self._entries.values():
                entry.age += 1
                if entry.age > self.max_age:
                    expired.append(entry)
            for entry in expired:
                self._remove(entry)
            self.expirations += len(expired)

    def clear(self):
        """Clear all entries (use between games)."""
        with self._lock:
            self._entries.clear()
            self._groups.clear()
            self._reset_stats()

    def _touch(self, entry: TTEntry):
        group = self._groups.setdefault(entry.quality, OrderedDict())
        group[entry.fingerprint] = None
        group.move_to_end(entry.fingerprint)

    def _remove(self, entry: TTEntry):
        del self._entries[entry.fingerprint]
        group = self._groups[entry.quality]
        del group[entry.fingerprint]
        if not group:
            del self._groups[entry.quality]

    def _least_relevant(self) -> TTEntry:
        lowest = min(self._groups)
        fingerprint = next(iter(self._groups[lowest]))
        return self._entries[fingerprint]

    def _reset_stats(self):
        """Reset statistics counters."""
        self.hits = 0
        self.misses = 0
        self.stores = 0
        self.rejections = 0
        self.evictions = 0
        self.expirations = 0

    def get_stats(self) -> dict:
        """
        Get transposition table statistics.

        Returns:
            Dictionary with hits, misses, hit rate, stores and eviction counts
        """
        with self._lock:
            total_queries = self.hits + self.misses
            hit_rate = self.hits / total_queries if total_queries > 0 else 0.0

            return {
                'hits': self.hits,
                'misses': self.misses,
                'hit_rate': hit_rate,
                'stores': self.stores,
                'rejections': self.rejections,
                'evictions': self.evictions,
                'expirations': self.expirations,
                'size': len(self._entries),
                'capacity': self.capacity,
            }

    def get_fill_rate(self) -> float:
        """
        Calculate percentage of capacity in use.

        Returns:
            Fill rate as percentage (0-100)
        """
        return (len(self._entries) / self.capacity) * 100.0
