"""MongoDB source — declared, not yet implemented.

Registering this adapter is legal so the failover chain and health map can
already list it. Loading always raises and the health probe always reports
unhealthy, so the orchestrator skips it during failover.

A working version should query the cohort collection and hand the rows to
``records_to_csv`` so callers keep receiving CSV text.
"""

from pldg.sources.base import DataAdapter, SourceNotImplementedError, SourceType


class MongoDBDataAdapter(DataAdapter):
    """Placeholder adapter for a MongoDB-backed cohort store."""

    name = SourceType.MONGODB
    supports_health_check = True

    async def load_cohort_data(self, cohort_id: str) -> str:
        raise SourceNotImplementedError(self.name)

    async def validate_connection(self) -> bool:
        return False
