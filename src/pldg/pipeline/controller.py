"""Refresh Controller — cached cohort loading with cohort/source switching.

Sits between the dashboard and the SourceOrchestrator:
- refresh(cohort) serves a fresh cached result or loads, transforms and caches
- set_cohort / switch_adapter change the selection and reload
- check_health republishes the orchestrator's health map
- observers receive a ControllerState snapshot after every change

Cache keys are (cohort_id, current source). Switching sources clears the
whole cache. Overlapping refreshes for the same key share one load.

Usage:
    controller = RefreshController.from_settings(settings)
    controller.subscribe(lambda state: print(state.is_loading, state.error))

    state = await controller.set_cohort("2")
    state = await controller.switch_adapter(SourceType.CSV)
    health = await controller.check_health()
"""

import asyncio
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any

from pldg.cache import CacheKey, MemoryStore, monotonic_ms
from pldg.pipeline.orchestrator import AttemptOutcome, SourceOrchestrator
from pldg.pipeline.transform import parse_engagement_csv
from pldg.sources import AggregateSourceFailureError, SourceType

logger = logging.getLogger(__name__)

# (raw_text, cohort_id) -> processed result
Transformer = Callable[[str, str], Any]


@dataclass(frozen=True)
class ControllerState:
    """Everything a dashboard needs to render the data panel."""

    selected_cohort: str
    current_source: SourceType
    data: Any = None
    is_loading: bool = False
    is_fetching: bool = False
    is_error: bool = False
    error: str | None = None
    last_updated: datetime | None = None
    source_health: Mapping[SourceType, bool] = field(default_factory=dict)
    last_attempts: tuple[AttemptOutcome, ...] = ()


StateObserver = Callable[[ControllerState], None]


class RefreshController:
    """Caches processed cohort results in front of a SourceOrchestrator.

    Args:
        orchestrator: Explicitly constructed orchestrator, owned by this controller
        transform: Turns raw CSV text into the cached result
        ttl_ms: Cache time-to-live in milliseconds (default: 5 minutes)
        clock: Millisecond clock for cache stamps, injectable for tests
        initial_cohort: Cohort selected before any set_cohort call
    """

    def __init__(
        self,
        orchestrator: SourceOrchestrator,
        transform: Transformer = parse_engagement_csv,
        ttl_ms: float = 300_000,
        clock: Callable[[], float] = monotonic_ms,
        initial_cohort: str = "2",
    ) -> None:
        self.orchestrator = orchestrator
        self.transform = transform
        self.cache = MemoryStore(ttl_ms=ttl_ms, clock=clock)
        self._in_flight: dict[CacheKey, asyncio.Task] = {}
        self._generation = 0
        self._fetching = 0
        self._observers: list[StateObserver] = []
        self._state = ControllerState(
            selected_cohort=initial_cohort,
            current_source=orchestrator.current_type,
        )

    @classmethod
    def from_settings(
        cls,
        config: Any,
        transform: Transformer = parse_engagement_csv,
    ) -> "RefreshController":
        """Build a controller and its orchestrator from Settings."""
        return cls(
            SourceOrchestrator.from_settings(config),
            transform=transform,
            ttl_ms=config.cache_ttl_ms,
            initial_cohort=config.default_cohort,
        )

    # --- State + observers ---

    @property
    def state(self) -> ControllerState:
        return self._state

    def subscribe(self, observer: StateObserver) -> Callable[[], None]:
        """Call ``observer`` with a snapshot after every state change.

        Returns:
            A function that removes the observer
        """
        self._observers.append(observer)

        def _unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return _unsubscribe

    def _update(self, **changes: Any) -> None:
        self._state = replace(self._state, **changes)
        for observer in list(self._observers):
            try:
                observer(self._state)
            except Exception:
                logger.exception("State observer %r raised", observer)

    # --- Loading ---

    async def refresh(self, cohort_id: str) -> Any:
        """Return the processed result for a cohort, loading on cache miss.

        A fresh cache hit does no I/O. Concurrent calls for the same
        (cohort, source) await the same load.

        Raises:
            AggregateSourceFailureError: Propagated from the orchestrator
        """
        key: CacheKey = (cohort_id, self.orchestrator.current_type)

        entry = self.cache.get(key)
        if entry is not None:
            logger.debug("Using cached data for cohort %s (%s)", cohort_id, key[1].value)
            return entry.value

        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.create_task(self._load(key, self._generation))
            self._in_flight[key] = task
            task.add_done_callback(lambda t, k=key: self._forget(k, t))
        else:
            logger.debug("Joining in-flight load for cohort %s (%s)", cohort_id, key[1].value)

        return await asyncio.shield(task)

    def _forget(self, key: CacheKey, task: asyncio.Task) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]
        # Every waiter may have been cancelled; mark the failure as retrieved
        if not task.cancelled():
            task.exception()

    async def _load(self, key: CacheKey, generation: int) -> Any:
        cohort_id = key[0]
        self._fetching += 1
        self._update(is_fetching=True)
        try:
            try:
                result = await self.orchestrator.load_cohort_data(cohort_id)
            except AggregateSourceFailureError as e:
                self._update(last_attempts=tuple(e.attempts))
                raise

            self._update(last_attempts=result.attempts)
            value = self.transform(result.text, cohort_id)
        finally:
            self._fetching -= 1
            self._update(is_fetching=self._fetching > 0)

        # A source switch during the load invalidated this result
        if generation == self._generation:
            self.cache.set(key, value)
        else:
            logger.debug("Discarding result for %s loaded before cache invalidation", key)
        return value

    def invalidate(self) -> int:
        """Drop every cached result and detach in-flight loads.

        Returns:
            Number of cache entries removed
        """
        self._generation += 1
        self._in_flight.clear()
        dropped = self.cache.clear()
        logger.debug("Cache cleared (%d entries)", dropped)
        return dropped

    async def reload(self) -> ControllerState:
        """Refresh the selected cohort and record the outcome in state.

        This is the user-facing retry action: failures become ``is_error``
        and ``error`` instead of propagating.
        """
        cohort_id = self._state.selected_cohort
        source = self.orchestrator.current_type
        self._update(is_loading=True, error=None)

        try:
            data = await self.refresh(cohort_id)
        except Exception as e:
            logger.error("Error refreshing data for cohort %s: %s", cohort_id, e)
            if self._is_current(cohort_id, source):
                self._update(
                    is_loading=False,
                    is_error=True,
                    error=str(e) or "Failed to refresh data",
                )
            return self._state

        # A newer selection owns the panel now
        if self._is_current(cohort_id, source):
            self._update(
                data=data,
                is_loading=False,
                is_error=False,
                error=None,
                last_updated=datetime.now(timezone.utc),
            )
        return self._state

    def _is_current(self, cohort_id: str, source: SourceType) -> bool:
        return (
            self._state.selected_cohort == cohort_id
            and self.orchestrator.current_type == source
        )

    async def set_cohort(self, cohort_id: str) -> ControllerState:
        """Select a cohort and load it."""
        logger.info("Selecting cohort %s", cohort_id)
        self._update(selected_cohort=cohort_id)
        return await self.reload()

    async def switch_adapter(self, source: SourceType | str) -> ControllerState:
        """Switch the current source, clear the cache and reload.

        The whole cache is dropped, not just the new source's entries.

        Raises:
            UnknownAdapterError: If ``source`` is not registered
        """
        self.invalidate()
        self.orchestrator.switch_adapter(source)
        self._update(current_source=self.orchestrator.current_type)
        return await self.reload()

    # --- Health ---

    async def check_health(self) -> dict[SourceType, bool]:
        """Probe every source and publish the map to observers."""
        health = await self.orchestrator.check_health()
        self._update(source_health=dict(health))
        return health

    async def monitor_health(
        self,
        interval: float,
        iterations: int | None = None,
        on_report: Callable[[dict[SourceType, bool]], None] | None = None,
    ) -> None:
        """Run check_health every ``interval`` seconds.

        Args:
            interval: Seconds between checks
            iterations: Stop after this many checks (None = run until cancelled)
            on_report: Optional callback for each health map
        """
        count = 0
        while iterations is None or count < iterations:
            health = await self.check_health()
            if on_report is not None:
                on_report(health)
            count += 1
            if iterations is None or count < iterations:
                await asyncio.sleep(interval)
