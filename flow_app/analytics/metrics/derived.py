"""Shared frame helpers for the aggregation modules."""

from __future__ import annotations

import pandas as pd

from flow_app.core.config import METRIC_FRAME_COLUMNS


def require_frame(df: pd.DataFrame | None) -> pd.DataFrame:
    """Return ``df`` with every metrics column present.

    A missing collection is a caller error and fails immediately rather than
    producing an empty statistic.

    Parameters
    ----------
    df : pd.DataFrame
        Metrics frame, usually from ``records_to_frame``. Missing columns are
        added as NaN/NaT so hand-built frames with a subset of columns work.

    Raises
    ------
    TypeError
        If ``df`` is None or not a DataFrame.
    """
    if df is None:
        raise TypeError("issue collection must not be None")
    if not isinstance(df, pd.DataFrame):
        raise TypeError(f"expected a DataFrame, got {type(df).__name__}")
    missing = [c for c in METRIC_FRAME_COLUMNS if c not in df.columns]
    if not missing:
        return df
    out = df.copy()
    for col in missing:
        if col in ("blockers", "review_churn", "qa_churn", "sub_issue_count"):
            out[col] = 0
        elif col in ("created", "resolved") or col.startswith("ts_"):
            out[col] = pd.NaT
        else:
            out[col] = None
    return out


def resolved_mask(df: pd.DataFrame) -> pd.Series:
    return df["resolved"].notna()


def resolved_issues(df: pd.DataFrame) -> pd.DataFrame:
    return df[resolved_mask(df)]


def numeric(df: pd.DataFrame, col: str) -> pd.Series:
    """Column coerced to float, NaN where missing or non-numeric."""
    return pd.to_numeric(df[col], errors="coerce").astype(float)
