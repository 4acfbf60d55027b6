"""In-process result cache for the PLDG data layer.

Time-boxed storage of processed cohort results, keyed by (cohort, source).
"""

from pldg.cache.memory_store import CacheEntry, CacheKey, MemoryStore, monotonic_ms

__all__ = ["CacheEntry", "CacheKey", "MemoryStore", "monotonic_ms"]
