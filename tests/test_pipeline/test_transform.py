"""Tests for the default CSV transformer."""

import pandas as pd

from pldg.pipeline.transform import parse_engagement_csv

RAW_EXPORT = (
    " Name ,Program Week,Engagement Participation \n"
    "ada,Week 1,3 - Highly engaged\n"
    "\n"
    "grace,Week 1,\n"
)


def test_header_names_trimmed():
    """Whitespace around header names is removed."""
    df = parse_engagement_csv(RAW_EXPORT, "2")
    assert list(df.columns) == ["Name", "Program Week", "Engagement Participation"]


def test_blank_lines_skipped():
    """Empty lines do not become rows."""
    df = parse_engagement_csv(RAW_EXPORT, "2")
    assert df["Name"].tolist() == ["ada", "grace"]


def test_cells_kept_as_strings():
    """Values are not coerced; empty cells stay empty strings."""
    df = parse_engagement_csv("Week,Score\n1,\n2,7\n", "1")
    assert df["Week"].tolist() == ["1", "2"]
    assert df["Score"].tolist() == ["", "7"]


def test_cohort_recorded():
    """The cohort id travels with the frame."""
    assert parse_engagement_csv(RAW_EXPORT, "2").attrs["cohort_id"] == "2"


def test_empty_payload():
    """An empty payload parses to an empty frame."""
    df = parse_engagement_csv("  \n", "1")
    assert isinstance(df, pd.DataFrame)
    assert df.empty
    assert df.attrs["cohort_id"] == "1"
