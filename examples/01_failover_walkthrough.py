"""Example 1: Failover Walkthrough

This example shows the retrieval layer end to end:
writing a cohort export to a temporary directory, loading it through
the controller, switching to a placeholder source, and checking health.

No server is needed; the csv source reads from the local directory.
"""

import asyncio
import tempfile
from pathlib import Path

from pldg.pipeline import RefreshController, SourceOrchestrator
from pldg.sources import (
    COHORT_FILES,
    LocalCSVDataAdapter,
    MongoDBDataAdapter,
    SourceType,
    StorachaDataAdapter,
)


def write_sample_export(root: Path) -> None:
    """Write a tiny cohort 2 export in the published layout."""
    folder = root / "cohort-2"
    folder.mkdir(parents=True, exist_ok=True)
    (folder / COHORT_FILES["2"]).write_text(
        "Name,Program Week,Engagement Participation \n"
        "ada,Week 1,3 - Highly engaged\n"
        "grace,Week 1,2 - Engaged\n",
        encoding="utf-8",
    )


async def run(root: Path) -> None:
    orchestrator = SourceOrchestrator(
        [LocalCSVDataAdapter(root), MongoDBDataAdapter(), StorachaDataAdapter()],
        default_source=SourceType.CSV,
    )
    controller = RefreshController(orchestrator)

    # Step 1: Load the default cohort
    print("Step 1: Loading cohort 2 from csv...")
    state = await controller.reload()
    print(f"  ✓ {len(state.data)} rows, columns: {list(state.data.columns)}")
    print()

    # Step 2: Same cohort again is served from cache
    print("Step 2: Refreshing again (cache hit)...")
    again = await controller.refresh("2")
    print(f"  ✓ Same object returned: {again is state.data}")
    print()

    # Step 3: Switch to a placeholder; the orchestrator falls back to csv
    print("Step 3: Switching to mongodb...")
    state = await controller.switch_adapter(SourceType.MONGODB)
    for attempt in state.last_attempts:
        print(f"  {attempt.source.value:<9} {attempt.status}")
    print()

    # Step 4: Health map
    print("Step 4: Checking source health...")
    health = await controller.check_health()
    for source, ok in health.items():
        print(f"  {source.value:<9} {'healthy' if ok else 'unavailable'}")


def main():
    """Run failover walkthrough."""
    print("=" * 60)
    print("PLDG data layer — Example 1: Failover Walkthrough")
    print("=" * 60)
    print()

    with tempfile.TemporaryDirectory() as tmp:
        root = Path(tmp)
        write_sample_export(root)
        asyncio.run(run(root))


if __name__ == "__main__":
    main()
