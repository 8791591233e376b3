"""Issue population filters applied before aggregation."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta

import pandas as pd
import pytz

from flow_app.analytics.metrics.derived import require_frame
from flow_app.core.config import DEFAULT_SPRINT_NAME
from flow_app.core.timestamps import normalize_timestamp


@dataclass(slots=True)
class IssueFilters:
    """Selection criteria; empty/None fields do not restrict anything.

    Date bounds are inclusive; a date-only upper bound covers the whole day.
    """

    project_keys: Sequence[str] = field(default_factory=tuple)
    issue_types: Sequence[str] = field(default_factory=tuple)
    sprints: Sequence[str] = field(default_factory=tuple)
    story_points: Sequence[float] = field(default_factory=tuple)
    created_from: datetime | str | None = None
    created_to: datetime | str | None = None
    resolved_from: datetime | str | None = None
    resolved_to: datetime | str | None = None

    def is_empty(self) -> bool:
        return not (
            self.project_keys
            or self.issue_types
            or self.sprints
            or self.story_points
            or self.created_from
            or self.created_to
            or self.resolved_from
            or self.resolved_to
        )


def _upper_bound(value) -> pd.Timestamp | None:
    ts = normalize_timestamp(value)
    if ts is None:
        return None
    # Date-only bounds include the whole day
    if isinstance(value, str) and len(value.strip()) <= 10:
        return ts + timedelta(days=1) - timedelta(microseconds=1)
    return ts


def _within(series: pd.Series, start, end) -> pd.Series:
    ts = pd.to_datetime(series, utc=True, errors="coerce").dt.tz_convert(pytz.UTC)
    mask = pd.Series(True, index=series.index)
    lower = normalize_timestamp(start)
    upper = _upper_bound(end)
    if lower is not None:
        mask &= ts >= lower
    if upper is not None:
        mask &= ts <= upper
    return mask


def apply_filters(df: pd.DataFrame, filters: IssueFilters | None) -> pd.DataFrame:
    """Return the rows of ``df`` matching every populated criterion.

    Issues without a sprint match the "No Sprint" label; unestimated issues
    match story points 0.
    """
    work = require_frame(df)
    if filters is None or filters.is_empty() or work.empty:
        return work
    mask = pd.Series(True, index=work.index)
    if filters.project_keys:
        mask &= work["project_key"].isin(list(filters.project_keys))
    if filters.issue_types:
        mask &= work["issue_type"].isin(list(filters.issue_types))
    if filters.sprints:
        mask &= work["sprint"].fillna(DEFAULT_SPRINT_NAME).isin(list(filters.sprints))
    if filters.story_points:
        points = pd.to_numeric(work["story_points"], errors="coerce").fillna(0)
        mask &= points.isin([float(p) for p in filters.story_points])
    if filters.created_from or filters.created_to:
        mask &= _within(work["created"], filters.created_from, filters.created_to)
    if filters.resolved_from or filters.resolved_to:
        mask &= _within(work["resolved"], filters.resolved_from, filters.resolved_to)
    return work[mask]
