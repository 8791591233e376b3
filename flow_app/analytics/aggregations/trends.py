"""Time-bucketed trends: weekly metric trends and per-period throughput."""

from __future__ import annotations

from collections.abc import Callable

import pandas as pd
import pytz

from flow_app.analytics.metrics.derived import numeric, require_frame
from flow_app.core.config import MOVING_AVERAGE_WEEKS, SETTINGS

from .flow import first_time_through, flow_efficiency

MetricSelector = str | Callable[[pd.Series], float | None]

PERIODS = ("week", "month", "quarter")


def _localize(values: pd.Series, tz) -> pd.Series:
    return pd.to_datetime(values, utc=True, errors="coerce").dt.tz_convert(tz)


def week_start(ts: pd.Series) -> pd.Series:
    """Monday of the week containing each timestamp, as ``datetime.date``."""
    # Work on local wall-clock time so DST shifts cannot move the day
    local = ts.dt.tz_localize(None) if ts.dt.tz is not None else ts
    midnight = local.dt.normalize()
    return (midnight - pd.to_timedelta(local.dt.weekday, unit="D")).dt.date


def period_key(ts: pd.Series, period: str) -> pd.Series:
    """Label each timestamp with its week (Monday ISO date), month or quarter."""
    if period == "week":
        return week_start(ts).astype(str)
    if period == "month":
        return ts.dt.strftime("%Y-%m")
    if period == "quarter":
        return ts.dt.year.astype(str) + "-Q" + ts.dt.quarter.astype(str)
    raise ValueError(f"Unknown period {period!r}; expected one of {PERIODS}")


def _metric_values(df: pd.DataFrame, metric: MetricSelector) -> pd.Series:
    if callable(metric):
        if df.empty:
            return pd.Series(dtype=float)
        return pd.to_numeric(df.apply(metric, axis=1), errors="coerce").astype(float)
    return numeric(df, metric)


def weekly_trend(
    df: pd.DataFrame,
    metric: MetricSelector,
    *,
    window: int = MOVING_AVERAGE_WEEKS,
    tz=None,
) -> pd.DataFrame:
    """Weekly mean/median of a metric with a trailing moving average.

    Only resolved issues with a positive metric value are used; they are
    grouped by the Monday-start week of their resolution date.

    Parameters
    ----------
    df : pd.DataFrame
        Metrics frame.
    metric : str or callable
        Column name, or a function of one frame row returning a value.
    window : int
        Moving-average length in weeks (default 4). The first ``window - 1``
        weeks use the weekly mean itself instead of a partial average.
    tz : timezone, optional
        Zone used to find week boundaries (default ``SETTINGS.timezone``).

    Returns
    -------
    pd.DataFrame
        Columns: week_start, count, mean, median, moving_average; one row
        per week with data, oldest first.
    """
    work = require_frame(df)
    columns = ["week_start", "count", "mean", "median", "moving_average"]
    tz = tz or pytz.timezone(SETTINGS.timezone)
    resolved = _localize(work["resolved"], tz)
    values = _metric_values(work, metric)
    mask = resolved.notna() & (values > 0)
    if not mask.any():
        return pd.DataFrame(columns=columns)
    frame = pd.DataFrame({"week_start": week_start(resolved[mask]), "value": values[mask]})
    grouped = frame.groupby("week_start", sort=True)["value"]
    out = pd.DataFrame(
        {
            "count": grouped.size(),
            "mean": grouped.mean(),
            "median": grouped.median(),
        }
    ).reset_index()
    rolling = out["mean"].rolling(window=window, min_periods=window).mean()
    out["moving_average"] = rolling.where(rolling.notna(), out["mean"])
    out["count"] = out["count"].astype(int)
    return out[columns]


def period_trend(df: pd.DataFrame, period: str = "week", *, tz=None) -> pd.DataFrame:
    """Issues created and resolved per period, sorted by period label."""
    work = require_frame(df)
    tz = tz or pytz.timezone(SETTINGS.timezone)
    created = _localize(work["created"], tz).dropna()
    resolved = _localize(work["resolved"], tz).dropna()
    created_counts = period_key(created, period).value_counts() if not created.empty else pd.Series(dtype=int)
    resolved_counts = period_key(resolved, period).value_counts() if not resolved.empty else pd.Series(dtype=int)
    labels = sorted(set(created_counts.index) | set(resolved_counts.index))
    return pd.DataFrame(
        {
            "period": labels,
            "created": [int(created_counts.get(label, 0)) for label in labels],
            "resolved": [int(resolved_counts.get(label, 0)) for label in labels],
        },
        columns=["period", "created", "resolved"],
    )


def flow_metrics_trend(df: pd.DataFrame, period: str = "month", *, tz=None) -> pd.DataFrame:
    """Per resolution period: average cycle/lead time, throughput, flow efficiency, FTT.

    Averages are None for periods without samples. Newest period first.
    """
    work = require_frame(df)
    columns = [
        "period",
        "average_cycle_time",
        "average_lead_time",
        "throughput",
        "flow_efficiency",
        "first_time_through",
    ]
    tz = tz or pytz.timezone(SETTINGS.timezone)
    resolved = _localize(work["resolved"], tz)
    done = work[resolved.notna()]
    if done.empty:
        return pd.DataFrame(columns=columns)
    keys = period_key(resolved[resolved.notna()], period)
    rows = []
    for label in sorted(keys.unique(), reverse=True):
        group = done[keys == label]
        cycle = numeric(group, "cycle_time").dropna()
        lead = numeric(group, "lead_time").dropna()
        rows.append(
            {
                "period": label,
                "average_cycle_time": float(cycle.mean()) if not cycle.empty else None,
                "average_lead_time": float(lead.mean()) if not lead.empty else None,
                "throughput": len(group),
                "flow_efficiency": flow_efficiency(group).efficiency,
                "first_time_through": first_time_through(group).percentage,
            }
        )
    return pd.DataFrame(rows, columns=columns)
