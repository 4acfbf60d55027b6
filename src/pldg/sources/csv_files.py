"""CSV file adapters — the implemented ``csv`` source.

Cohort datasets are published as static CSV exports, one folder per cohort:

    /data/cohort-{cohort_id}/{filename}

The filename differs per cohort (they are raw survey exports), so it is
looked up in COHORT_FILES. Two transports share that convention:

- CSVDataAdapter reads over HTTP from the dashboard's file server
- LocalCSVDataAdapter reads from a directory on disk

Both use the ``csv`` source type; a process registers one or the other.
"""

import asyncio
import logging
from collections.abc import Mapping
from pathlib import Path

from pldg.sources.base import (
    DataAdapter,
    FetchError,
    NotFoundError,
    SourceType,
)
from pldg.sources.http import FileServerClient, FileServerError

logger = logging.getLogger(__name__)

# Raw survey export per cohort
COHORT_FILES: dict[str, str] = {
    "1": "Weekly Engagement Survey Breakdown (4).csv",
    "2": "Cohort 2 Weekly Engagement Survey Raw Dataset.csv",
}

# Cohort probed by validate_connection (the dashboard's default cohort)
DEFAULT_PROBE_COHORT = "2"


class _CohortFileAdapter(DataAdapter):
    """Shared cohort → filename resolution."""

    name = SourceType.CSV
    supports_health_check = True

    def __init__(self, files: Mapping[str, str] | None = None) -> None:
        self.files = dict(COHORT_FILES if files is None else files)

    def filename_for(self, cohort_id: str) -> str:
        """Look up the export filename for a cohort.

        Raises:
            NotFoundError: If the cohort is not in the table
        """
        try:
            return self.files[cohort_id]
        except KeyError:
            raise NotFoundError(cohort_id, self.name) from None

    def locator_for(self, cohort_id: str) -> str:
        """Resource path for a cohort, e.g. /data/cohort-2/<file>.csv."""
        return f"/data/cohort-{cohort_id}/{self.filename_for(cohort_id)}"


class CSVDataAdapter(_CohortFileAdapter):
    """Reads cohort CSVs from the dashboard file server.

    A new pooled client is opened per call; adapters hold no connections
    between loads.

    Args:
        base_url: Server root; locators are resolved against it
        timeout: HTTP timeout in seconds (default: 30)
        files: Cohort → filename table (default: COHORT_FILES)
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        files: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(files)
        self.base_url = base_url
        self.timeout = timeout

    async def load_cohort_data(self, cohort_id: str) -> str:
        """GET the cohort export.

        Raises:
            NotFoundError: Unmapped cohort (no request is made)
            FetchError: Non-2xx response or transport failure
        """
        path = self.locator_for(cohort_id)
        logger.info("CSV adapter: loading cohort %s from %s", cohort_id, path)

        try:
            async with FileServerClient(self.base_url, timeout=self.timeout) as client:
                return await client.get_text(path)
        except FileServerError as e:
            logger.warning("CSV adapter error for cohort %s: %s", cohort_id, e)
            raise FetchError(
                f"Failed to fetch CSV for cohort {cohort_id}: {e}",
                cohort_id=cohort_id,
                status_code=e.status_code,
                reason=e.reason,
            ) from e

    async def validate_connection(self) -> bool:
        """HEAD the default cohort's export; no body is transferred."""
        try:
            path = self.locator_for(DEFAULT_PROBE_COHORT)
            async with FileServerClient(self.base_url, timeout=self.timeout) as client:
                return await client.head(path)
        except Exception as e:
            logger.debug("CSV adapter health probe failed: %s", e)
            return False


class LocalCSVDataAdapter(_CohortFileAdapter):
    """Reads cohort CSVs from a local directory.

    ``root`` plays the role of the server's /data folder, so the file for
    cohort 2 is ``root / "cohort-2" / COHORT_FILES["2"]``. File I/O runs in
    a worker thread via asyncio.to_thread.

    Args:
        root: Directory holding cohort-N/ folders
        files: Cohort → filename table (default: COHORT_FILES)
    """

    def __init__(self, root: str | Path, files: Mapping[str, str] | None = None) -> None:
        super().__init__(files)
        self.root = Path(root)

    def _file_path(self, cohort_id: str) -> Path:
        return self.root / f"cohort-{cohort_id}" / self.filename_for(cohort_id)

    async def load_cohort_data(self, cohort_id: str) -> str:
        """Read the cohort export from disk.

        Raises:
            NotFoundError: Unmapped cohort
            FetchError: File missing (status 404) or unreadable
        """
        file_path = self._file_path(cohort_id)
        logger.info("CSV adapter: loading cohort %s from %s", cohort_id, file_path)

        try:
            return await asyncio.to_thread(file_path.read_text, encoding="utf-8")
        except FileNotFoundError as e:
            raise FetchError(
                f"Failed to fetch CSV for cohort {cohort_id}: 404 Not Found",
                cohort_id=cohort_id,
                status_code=404,
                reason="Not Found",
            ) from e
        except (OSError, UnicodeDecodeError) as e:
            raise FetchError(
                f"Failed to fetch CSV for cohort {cohort_id}: {e}",
                cohort_id=cohort_id,
                reason=str(e),
            ) from e

    async def validate_connection(self) -> bool:
        """Check the default cohort's export exists without reading it."""
        try:
            return await asyncio.to_thread(self._file_path(DEFAULT_PROBE_COHORT).is_file)
        except Exception as e:
            logger.debug("Local CSV health probe failed: %s", e)
            return False
