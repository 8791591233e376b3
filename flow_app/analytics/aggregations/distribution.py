"""Size and cycle-time distributions."""

from __future__ import annotations

import pandas as pd

from flow_app.analytics.metrics.derived import numeric, require_frame, resolved_mask
from flow_app.core.config import CYCLE_TIME_BUCKETS, NO_DATA_BUCKET, SIZE_BUCKET_ORDER

from .stats import median_or_zero

SIZE_MEDIAN_COLUMNS: dict[str, str] = {
    "median_lead_time": "lead_time",
    "median_grooming_time": "grooming_cycle_time",
    "median_dev_time": "dev_cycle_time",
    "median_qa_time": "qa_cycle_time",
}


def size_bucket(points) -> str:
    """Map story points to Unestimated (0/None), Small (1), Medium (2-3), Large (4+)."""
    value = pd.to_numeric(points, errors="coerce")
    if value is None or pd.isna(value) or value <= 0:
        return "Unestimated"
    if value <= 1:
        return "Small"
    if value <= 3:
        return "Medium"
    return "Large"


def size_distribution(df: pd.DataFrame) -> pd.DataFrame:
    """Per size bucket: issue count, completion rate and resolved-only medians.

    Returns
    -------
    pd.DataFrame
        One row per bucket in ``SIZE_BUCKET_ORDER`` with columns: size, count,
        resolved, completion_rate (0-100), median_lead_time,
        median_grooming_time, median_dev_time, median_qa_time. Medians are 0
        when the bucket has no resolved samples.
    """
    work = require_frame(df)
    buckets = work["story_points"].apply(size_bucket) if not work.empty else pd.Series(dtype=object)
    resolved = resolved_mask(work)
    rows = []
    for bucket in SIZE_BUCKET_ORDER:
        in_bucket = buckets == bucket
        total = int(in_bucket.sum())
        done = work[in_bucket & resolved]
        row = {
            "size": bucket,
            "count": total,
            "resolved": len(done),
            "completion_rate": len(done) / total * 100.0 if total else 0.0,
        }
        for out_col, src in SIZE_MEDIAN_COLUMNS.items():
            row[out_col] = median_or_zero(numeric(done, src))
        rows.append(row)
    return pd.DataFrame(rows)


def cycle_time_bucket(days) -> str:
    """Bucket label for a cycle time; upper bounds are inclusive."""
    value = pd.to_numeric(days, errors="coerce")
    if value is None or pd.isna(value):
        return NO_DATA_BUCKET
    for label, upper in CYCLE_TIME_BUCKETS:
        if value <= upper:
            return label
    return CYCLE_TIME_BUCKETS[-1][0]


def cycle_time_distribution(df: pd.DataFrame, column: str = "cycle_time") -> pd.DataFrame:
    """Count and percentage of issues per cycle-time bucket.

    Resolved and unresolved issues are both counted; issues without a value
    fall in "No Data", so counts always sum to ``len(df)``.
    """
    work = require_frame(df)
    order = [NO_DATA_BUCKET, *(label for label, _ in CYCLE_TIME_BUCKETS)]
    labels = work[column].apply(cycle_time_bucket) if not work.empty else pd.Series(dtype=object)
    counts = labels.value_counts().reindex(order, fill_value=0).astype(int)
    total = len(work)
    out = pd.DataFrame({"range": order, "count": counts.values})
    out["percentage"] = out["count"] / total * 100.0 if total else 0.0
    return out
