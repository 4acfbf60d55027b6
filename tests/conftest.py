"""Shared test doubles for the PLDG data layer."""

import asyncio

import pytest

from pldg.sources import DataAdapter, SourceType


class FakeAdapter(DataAdapter):
    """Scriptable adapter that records how it was used."""

    name = SourceType.CSV

    def __init__(
        self,
        source: SourceType,
        text: str = "name,score\nada,3\n",
        error: Exception | None = None,
        healthy: bool | Exception = True,
        health_check: bool = True,
        delay: float = 0.0,
        calls: list | None = None,
    ) -> None:
        self.name = source
        self.supports_health_check = health_check
        self.text = text
        self.error = error
        self.healthy = healthy
        self.delay = delay
        self.load_calls: list[str] = []
        self.probe_calls = 0
        # Shared across adapters to check ordering
        self.calls = calls if calls is not None else []

    async def load_cohort_data(self, cohort_id: str) -> str:
        self.load_calls.append(cohort_id)
        self.calls.append(("load", self.name, cohort_id))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.text

    async def validate_connection(self) -> bool:
        self.probe_calls += 1
        self.calls.append(("probe", self.name))
        if isinstance(self.healthy, Exception):
            raise self.healthy
        return self.healthy


class FakeClock:
    """Millisecond clock the test moves by hand."""

    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def make_adapter():
    """Factory for FakeAdapter instances."""
    return FakeAdapter


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
