"""Default transformer — raw cohort CSV → DataFrame.

The controller hands every freshly loaded payload to a transformer before
caching it. This one only parses: header row, blank lines skipped, header
names trimmed, every cell kept as a string. Metric aggregation is left to
the caller, who can pass their own transformer to RefreshController.
"""

import io

import pandas as pd


def parse_engagement_csv(text: str, cohort_id: str) -> pd.DataFrame:
    """Parse a cohort engagement export.

    Args:
        text: Header-plus-rows CSV text as returned by an adapter
        cohort_id: Cohort the payload belongs to (stored in ``df.attrs``)

    Returns:
        DataFrame of string columns. Empty if the payload has no header.
    """
    if not text.strip():
        df = pd.DataFrame()
    else:
        df = pd.read_csv(
            io.StringIO(text),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
        df.columns = [str(c).strip() for c in df.columns]

    df.attrs["cohort_id"] = cohort_id
    return df
