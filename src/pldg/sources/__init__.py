"""Data source layer for the PLDG dashboard.

Adapters that resolve a cohort id to raw CSV text:
- CSV files: published cohort exports, over HTTP or from a local directory
- MongoDB: placeholder, always fails
- Storacha: placeholder, always fails
"""

from pldg.sources.base import (
    AggregateSourceFailureError,
    DataAdapter,
    FetchError,
    NotFoundError,
    SourceError,
    SourceNotImplementedError,
    SourceType,
    UnknownAdapterError,
    records_to_csv,
)
from pldg.sources.csv_files import COHORT_FILES, CSVDataAdapter, LocalCSVDataAdapter
from pldg.sources.mongodb import MongoDBDataAdapter
from pldg.sources.storacha import StorachaDataAdapter

__all__ = [
    "AggregateSourceFailureError",
    "DataAdapter",
    "FetchError",
    "NotFoundError",
    "SourceError",
    "SourceNotImplementedError",
    "SourceType",
    "UnknownAdapterError",
    "records_to_csv",
    "COHORT_FILES",
    "CSVDataAdapter",
    "LocalCSVDataAdapter",
    "MongoDBDataAdapter",
    "StorachaDataAdapter",
]
