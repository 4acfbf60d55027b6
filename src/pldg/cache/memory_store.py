"""Time-boxed in-memory cache of processed cohort results.

Entries are keyed by (cohort_id, source_type) so a result loaded from one
source is never served while another source is active. Staleness is checked
lazily on read; there is no background eviction. Nothing survives the
process.

Storage structure:
    {("2", SourceType.CSV): CacheEntry(value=<DataFrame>, written_at=1234.5)}
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from pldg.sources.base import SourceType

logger = logging.getLogger(__name__)

CacheKey = tuple[str, SourceType]


def monotonic_ms() -> float:
    """Milliseconds from a monotonic clock."""
    return time.monotonic() * 1000.0


@dataclass(frozen=True)
class CacheEntry:
    """A cached result and the clock reading when it was written."""

    value: Any
    written_at: float


class MemoryStore:
    """TTL cache for processed results.

    An entry is fresh while ``clock() - written_at < ttl_ms``.

    Args:
        ttl_ms: Time-to-live in milliseconds (default: 5 minutes)
        clock: Millisecond clock, injectable for tests
    """

    def __init__(
        self,
        ttl_ms: float = 300_000,
        clock: Callable[[], float] = monotonic_ms,
    ) -> None:
        self.ttl_ms = ttl_ms
        self._clock = clock
        self._entries: dict[CacheKey, CacheEntry] = {}

    def now(self) -> float:
        """Current clock reading in milliseconds."""
        return self._clock()

    def is_fresh(self, entry: CacheEntry) -> bool:
        """Whether an entry is still inside its TTL."""
        return self.now() - entry.written_at < self.ttl_ms

    def get(self, key: CacheKey) -> CacheEntry | None:
        """Return the entry for ``key`` if it exists and is fresh.

        Stale entries stay in place until overwritten or cleared.
        """
        entry = self._entries.get(key)
        if entry is None:
            return None
        if not self.is_fresh(entry):
            logger.debug("Cache entry for %s is stale", key)
            return None
        return entry

    def set(self, key: CacheKey, value: Any) -> CacheEntry:
        """Store ``value`` at ``key`` stamped with the current time."""
        entry = CacheEntry(value=value, written_at=self.now())
        self._entries[key] = entry
        return entry

    def clear(self) -> int:
        """Drop every entry. Returns how many were removed."""
        count = len(self._entries)
        self._entries = {}
        return count

    def keys(self) -> list[CacheKey]:
        """All stored keys, fresh or stale."""
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
