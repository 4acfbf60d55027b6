"""Data source adapter contract and error taxonomy.

Every backing store (static CSV files, MongoDB, Storacha) is wrapped in an
adapter that resolves a cohort id to one raw CSV text blob. The orchestrator
only ever talks to this interface, so new stores can be added without
touching failover or caching.

Usage:
    class MyAdapter(DataAdapter):
        name = SourceType.MONGODB
        supports_health_check = True

        async def load_cohort_data(self, cohort_id: str) -> str:
            rows = await fetch_rows(cohort_id)
            return records_to_csv(rows)

        async def validate_connection(self) -> bool:
            return await ping()
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any, ClassVar

import pandas as pd


class SourceType(str, Enum):
    """Backing-store identifiers, used as registry keys."""

    CSV = "csv"
    MONGODB = "mongodb"
    STORACHA = "storacha"


class SourceError(Exception):
    """Base exception for data source errors."""


class NotFoundError(SourceError):
    """Cohort has no known resource mapping in a source."""

    def __init__(self, cohort_id: str, source: SourceType | None = None) -> None:
        where = f" in {source.value} source" if source else ""
        super().__init__(f"No data mapping for cohort {cohort_id}{where}")
        self.cohort_id = cohort_id
        self.source = source


class FetchError(SourceError):
    """Retrieval was attempted but did not succeed."""

    def __init__(
        self,
        message: str,
        cohort_id: str,
        status_code: int | None = None,
        reason: str | None = None,
    ) -> None:
        super().__init__(message)
        self.cohort_id = cohort_id
        self.status_code = status_code
        self.reason = reason


class SourceNotImplementedError(SourceError, NotImplementedError):
    """Source is declared but has no working implementation yet."""

    def __init__(self, source: SourceType) -> None:
        super().__init__(f"{source.value} adapter not yet implemented")
        self.source = source


class UnknownAdapterError(SourceError):
    """Requested source type is not registered."""

    def __init__(self, source: SourceType | str) -> None:
        value = source.value if isinstance(source, SourceType) else source
        super().__init__(f"Adapter not available: {value}")
        self.source = source


class AggregateSourceFailureError(SourceError):
    """Current source and every fallback failed for a cohort.

    Attributes:
        cohort_id: Cohort that could not be loaded
        attempts: Per-source outcomes, in the order they were tried
    """

    def __init__(self, cohort_id: str, attempts: Iterable[Any] = ()) -> None:
        super().__init__(f"All data adapters failed for cohort {cohort_id}")
        self.cohort_id = cohort_id
        self.attempts = list(attempts)


class DataAdapter(ABC):
    """Retrieval contract for one backing store.

    Subclasses set ``name`` and implement ``load_cohort_data``. Adapters that
    can probe their store set ``supports_health_check = True`` and override
    ``validate_connection``; the default reports healthy.
    """

    name: ClassVar[SourceType]
    supports_health_check: ClassVar[bool] = False

    @abstractmethod
    async def load_cohort_data(self, cohort_id: str) -> str:
        """Return the cohort dataset as header-plus-rows CSV text.

        Raises:
            NotFoundError: If the cohort has no resource mapping
            FetchError: If retrieval fails
        """

    async def validate_connection(self) -> bool:
        """Probe the backing store. Must not raise."""
        return True

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name.value!r})"


def records_to_csv(records: Iterable[Mapping[str, Any]]) -> str:
    """Render row mappings as CSV text with a header line.

    Non-file sources use this to return the same payload shape as the CSV
    source. Values are written as given (no numeric coercion), missing
    values become empty cells, and fields containing commas or quotes are
    quoted.

    Args:
        records: Row dictionaries; the header is the union of their keys

    Returns:
        CSV text, or an empty string when there are no records
    """
    rows = list(records)
    if not rows:
        return ""
    # object dtype keeps ints as ints when a column has gaps
    frame = pd.DataFrame(rows, dtype=object)
    return frame.to_csv(index=False, lineterminator="\n")
