"""Storacha source — declared, not yet implemented.

Same contract as the MongoDB placeholder: ``load_cohort_data`` raises
SourceNotImplementedError and ``validate_connection`` returns False.
"""

from pldg.sources.base import DataAdapter, SourceNotImplementedError, SourceType


class StorachaDataAdapter(DataAdapter):
    """Placeholder adapter for cohort exports stored on Storacha."""

    name = SourceType.STORACHA
    supports_health_check = True

    async def load_cohort_data(self, cohort_id: str) -> str:
        raise SourceNotImplementedError(self.name)

    async def validate_connection(self) -> bool:
        return False
