"""Source Orchestrator — adapter registry, failover and health checks.

Load path:
  1. Try the current source
  2. On failure walk the fallback order (skipping the current source):
     unregistered → skip, unhealthy probe → skip, else load
  3. First success wins; if nothing succeeds raise AggregateSourceFailureError

Attempts run one after another, never in parallel, and each is bounded by
``attempt_timeout``. Every attempt is recorded so callers can see why a
source was or wasn't used.

Usage:
    orchestrator = SourceOrchestrator(
        [CSVDataAdapter("http://localhost:3000"), StorachaDataAdapter()],
        default_source=SourceType.CSV,
    )
    result = await orchestrator.load_cohort_data("2")
    print(result.source, len(result.text), [a.status for a in result.attempts])
"""

import asyncio
import logging
from collections.abc import Awaitable, Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Literal, TypeVar

from pldg.sources import (
    AggregateSourceFailureError,
    CSVDataAdapter,
    DataAdapter,
    LocalCSVDataAdapter,
    MongoDBDataAdapter,
    SourceType,
    StorachaDataAdapter,
    UnknownAdapterError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_FALLBACK_ORDER: tuple[SourceType, ...] = (
    SourceType.CSV,
    SourceType.MONGODB,
    SourceType.STORACHA,
)

AttemptStatus = Literal[
    "loaded",
    "failed",
    "timeout",
    "skipped_unhealthy",
    "skipped_unregistered",
]


@dataclass(frozen=True)
class AttemptOutcome:
    """What happened when one source was considered for a load."""

    source: SourceType
    status: AttemptStatus
    error: str | None = None
    elapsed_ms: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.status == "loaded"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "source": self.source.value,
            "status": self.status,
            "error": self.error,
            "elapsed_ms": round(self.elapsed_ms, 1),
        }


@dataclass(frozen=True)
class LoadResult:
    """Raw cohort payload plus the attempt history that produced it."""

    cohort_id: str
    source: SourceType
    text: str
    attempts: tuple[AttemptOutcome, ...]

    @property
    def used_fallback(self) -> bool:
        """True if a source other than the first one tried served the data."""
        return bool(self.attempts) and self.attempts[0].source != self.source

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization (payload omitted)."""
        return {
            "cohort_id": self.cohort_id,
            "source": self.source.value,
            "used_fallback": self.used_fallback,
            "bytes": len(self.text.encode("utf-8")),
            "attempts": [a.to_dict() for a in self.attempts],
        }


class SourceOrchestrator:
    """Owns the registered adapters and decides which one serves a load.

    Args:
        adapters: Adapters to register; source types must be unique
        default_source: Initial current source; must be registered
        fallback_order: Order of sources tried after the current one fails.
            Must list every registered source; may list unregistered ones.
        attempt_timeout: Seconds allowed per load or probe (None = unbounded)

    Raises:
        ValueError: On duplicate sources, a fallback order missing a
            registered source, or an unregistered default
    """

    def __init__(
        self,
        adapters: Iterable[DataAdapter],
        default_source: SourceType = SourceType.CSV,
        fallback_order: Iterable[SourceType] = DEFAULT_FALLBACK_ORDER,
        attempt_timeout: float | None = 10.0,
    ) -> None:
        order = tuple(SourceType(s) for s in fallback_order)
        if len(set(order)) != len(order):
            raise ValueError(f"fallback_order contains duplicates: {[s.value for s in order]}")

        self.fallback_order = order
        self.attempt_timeout = attempt_timeout
        self._adapters: dict[SourceType, DataAdapter] = {}

        for adapter in adapters:
            self.register(adapter)

        default_source = SourceType(default_source)
        if default_source not in self._adapters:
            raise ValueError(f"Default source {default_source.value!r} is not registered")
        self._current = default_source

    @classmethod
    def from_settings(cls, config: Any) -> "SourceOrchestrator":
        """Build the standard registry (csv + placeholders) from Settings.

        Uses the local-directory CSV adapter when ``config.data_dir`` is set,
        otherwise the HTTP one against ``config.data_base_url``.
        """
        csv_adapter: DataAdapter
        if config.data_dir:
            csv_adapter = LocalCSVDataAdapter(config.data_dir)
        else:
            csv_adapter = CSVDataAdapter(config.data_base_url, timeout=config.request_timeout)

        return cls(
            [csv_adapter, MongoDBDataAdapter(), StorachaDataAdapter()],
            default_source=config.default_source,
            fallback_order=config.fallback_order,
            attempt_timeout=config.attempt_timeout,
        )

    def register(self, adapter: DataAdapter) -> None:
        """Add an adapter to the registry.

        Raises:
            ValueError: If its source is already registered or missing from
                the fallback order
        """
        source = adapter.name
        if source in self._adapters:
            raise ValueError(f"Duplicate adapter registered for source: {source.value!r}")
        if source not in self.fallback_order:
            raise ValueError(f"Source {source.value!r} is missing from fallback_order")
        self._adapters[source] = adapter

    @property
    def adapters(self) -> Mapping[SourceType, DataAdapter]:
        """Read-only view of the registry."""
        return MappingProxyType(self._adapters)

    @property
    def current_type(self) -> SourceType:
        return self._current

    def get_current_type(self) -> SourceType:
        """Source currently tried first."""
        return self._current

    def switch_adapter(self, source: SourceType | str) -> None:
        """Make ``source`` the current source. Does not reload anything.

        Raises:
            UnknownAdapterError: If ``source`` is not registered (state unchanged)
        """
        try:
            target = SourceType(source)
        except ValueError:
            raise UnknownAdapterError(source) from None
        if target not in self._adapters:
            raise UnknownAdapterError(target)

        logger.info("Switching from %s to %s", self._current.value, target.value)
        self._current = target

    async def _bounded(self, aw: Awaitable[T]) -> T:
        if self.attempt_timeout is None:
            return await aw
        return await asyncio.wait_for(aw, timeout=self.attempt_timeout)

    async def _probe(self, adapter: DataAdapter) -> bool:
        """Run an adapter's health probe, collapsing any failure to False."""
        if not adapter.supports_health_check:
            return True
        try:
            return bool(await self._bounded(adapter.validate_connection()))
        except TimeoutError:
            logger.warning("Health probe for %s timed out", adapter.name.value)
            return False
        except Exception as e:
            logger.warning("Health probe for %s failed: %s", adapter.name.value, e)
            return False

    async def _attempt_load(
        self,
        adapter: DataAdapter,
        cohort_id: str,
    ) -> tuple[str | None, AttemptOutcome]:
        loop = asyncio.get_running_loop()
        started = loop.time()

        def _elapsed() -> float:
            return (loop.time() - started) * 1000.0

        try:
            text = await self._bounded(adapter.load_cohort_data(cohort_id))
        except TimeoutError:
            return None, AttemptOutcome(
                adapter.name, "timeout",
                error=f"Timed out after {self.attempt_timeout}s",
                elapsed_ms=_elapsed(),
            )
        except Exception as e:
            return None, AttemptOutcome(
                adapter.name, "failed",
                error=f"{type(e).__name__}: {e}",
                elapsed_ms=_elapsed(),
            )
        return text, AttemptOutcome(adapter.name, "loaded", elapsed_ms=_elapsed())

    async def load_cohort_data(self, cohort_id: str) -> LoadResult:
        """Load a cohort's raw CSV text, failing over across sources.

        Args:
            cohort_id: Cohort identifier (e.g. "2")

        Returns:
            LoadResult with the payload, serving source and attempt history

        Raises:
            AggregateSourceFailureError: If the current source and every
                fallback failed or were skipped
        """
        current = self._current
        attempts: list[AttemptOutcome] = []

        logger.info("Using %s adapter for cohort %s", current.value, cohort_id)
        text, outcome = await self._attempt_load(self._adapters[current], cohort_id)
        attempts.append(outcome)
        if outcome.succeeded:
            return LoadResult(cohort_id, current, text or "", tuple(attempts))

        logger.warning("Primary adapter %s failed: %s", current.value, outcome.error)

        for source in self.fallback_order:
            if source == current:
                continue

            adapter = self._adapters.get(source)
            if adapter is None:
                attempts.append(AttemptOutcome(source, "skipped_unregistered"))
                continue

            logger.info("Trying fallback adapter %s for cohort %s", source.value, cohort_id)

            if adapter.supports_health_check and not await self._probe(adapter):
                logger.warning("Fallback adapter %s validation failed", source.value)
                attempts.append(AttemptOutcome(source, "skipped_unhealthy"))
                continue

            text, outcome = await self._attempt_load(adapter, cohort_id)
            attempts.append(outcome)
            if outcome.succeeded:
                logger.info(
                    "Loaded cohort %s using fallback adapter %s", cohort_id, source.value,
                )
                return LoadResult(cohort_id, source, text or "", tuple(attempts))

            logger.warning("Fallback adapter %s failed: %s", source.value, outcome.error)

        logger.error(
            "All data adapters failed for cohort %s: %s",
            cohort_id, [f"{a.source.value}={a.status}" for a in attempts],
        )
        raise AggregateSourceFailureError(cohort_id, attempts)

    async def check_health(self) -> dict[SourceType, bool]:
        """Probe every registered adapter. Never raises.

        Adapters without a health check are assumed healthy. Probes are
        side-effect free, so they run concurrently.

        Returns:
            Mapping with one entry per registered source
        """
        registered = list(self._adapters.items())
        results = await asyncio.gather(*(self._probe(adapter) for _, adapter in registered))
        health = {source: ok for (source, _), ok in zip(registered, results)}
        logger.info("Adapter health check: %s", {s.value: ok for s, ok in health.items()})
        return health
