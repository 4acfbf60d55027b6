"""Retrieval pipeline — Controller → Orchestrator → Adapter → Transformer.

The pipeline coordinates the data flow for one dashboard session:
1. RefreshController serves cached results or asks for a load
2. SourceOrchestrator picks a source, failing over when one breaks
3. The adapter returns raw CSV text
4. The transformer parses it into the cached result

Components:
- RefreshController: cache, selection state, observers
- SourceOrchestrator: registry, failover, health
- parse_engagement_csv: default transformer
"""

from pldg.pipeline.controller import ControllerState, RefreshController
from pldg.pipeline.orchestrator import (
    DEFAULT_FALLBACK_ORDER,
    AttemptOutcome,
    LoadResult,
    SourceOrchestrator,
)
from pldg.pipeline.transform import parse_engagement_csv

__all__ = [
    "ControllerState",
    "RefreshController",
    "DEFAULT_FALLBACK_ORDER",
    "AttemptOutcome",
    "LoadResult",
    "SourceOrchestrator",
    "parse_engagement_csv",
]
