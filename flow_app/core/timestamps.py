"""Timestamp parsing and day-delta helpers."""

from __future__ import annotations

import pandas as pd
import pytz

from .config import SECONDS_PER_DAY


def normalize_timestamp(value, target_tz=pytz.UTC) -> pd.Timestamp | None:
    """Parse a timestamp-like value into a tz-aware ``pd.Timestamp``.

    Naive values are assumed to be UTC. Returns None when the input cannot be
    parsed.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        ts = pd.to_datetime(value, errors="coerce")
    except (TypeError, ValueError):
        return None
    # NaT and array-likes are not Timestamps
    if not isinstance(ts, pd.Timestamp):
        return None
    try:
        if ts.tzinfo is None:
            ts = ts.tz_localize(pytz.UTC)
        return ts.tz_convert(target_tz)
    except (TypeError, ValueError):
        return None


def days_between(start, end) -> float | None:
    """Elapsed days from ``start`` to ``end``.

    None unless both exist and ``end`` is strictly later than ``start``.
    """
    if start is None or end is None:
        return None
    if not end > start:
        return None
    return (end - start).total_seconds() / SECONDS_PER_DAY
