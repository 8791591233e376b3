"""Descriptive statistics and correlation over day-count samples."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

import pandas as pd


@dataclass(frozen=True, slots=True)
class StatsResult:
    median: float = 0.0
    mean: float = 0.0
    min: float = 0.0
    max: float = 0.0
    std_dev: float = 0.0
    count: int = 0


@dataclass(frozen=True, slots=True)
class CorrelationResult:
    correlation: float = 0.0
    count: int = 0


def clean_values(values: Iterable[float | None]) -> pd.Series:
    """Numeric series with None/NaN (and non-numeric values) removed."""
    if values is None:
        raise TypeError("values must be an iterable, not None")
    series = pd.to_numeric(pd.Series(list(values), dtype=object), errors="coerce")
    return series.dropna().astype(float)


def stats(values: Iterable[float | None]) -> StatsResult:
    """Median, mean, min, max, population standard deviation and count.

    Null and NaN entries are ignored; an input with no usable values yields
    an all-zero result with ``count == 0``.

    Examples
    --------
    >>> stats([1, 2, None, 3, 4]).median
    2.5
    """
    series = clean_values(values)
    if series.empty:
        return StatsResult()
    return StatsResult(
        median=float(series.median()),
        mean=float(series.mean()),
        min=float(series.min()),
        max=float(series.max()),
        std_dev=float(series.std(ddof=0)),
        count=int(series.size),
    )


def median_or_zero(values: Iterable[float | None]) -> float:
    series = clean_values(values)
    return float(series.median()) if not series.empty else 0.0


def correlation(xs: Iterable[float | None], ys: Iterable[float | None]) -> CorrelationResult:
    """Pearson correlation of paired samples.

    Pairs where either side is missing or non-numeric are dropped. Fewer than
    two complete pairs, or sequences of different length, give ``r = 0`` with
    ``count = 0``. A zero-variance side gives ``r = 0`` with the pair count
    kept.
    """
    x = pd.to_numeric(pd.Series(list(xs), dtype=object), errors="coerce").astype(float)
    y = pd.to_numeric(pd.Series(list(ys), dtype=object), errors="coerce").astype(float)
    if len(x) != len(y):
        return CorrelationResult()
    pairs = pd.DataFrame({"x": x, "y": y}).dropna()
    if len(pairs) < 2:
        return CorrelationResult()
    r = pairs["x"].corr(pairs["y"])
    return CorrelationResult(correlation=0.0 if pd.isna(r) else float(r), count=len(pairs))
