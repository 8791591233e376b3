"""Pure helpers to build per-project and portfolio metric summaries."""

from __future__ import annotations

from dataclasses import dataclass, field

import pandas as pd

from flow_app.analytics.aggregations.flow import blocked_time_impact, first_time_through, flow_efficiency
from flow_app.analytics.metrics.derived import numeric, require_frame, resolved_issues
from flow_app.core.config import DISPLAY_PRECISION, SETTINGS, AppSettings

LEAD_TIME_COLUMNS: dict[str, str] = {
    "stages": "lead_time",
    "record": "resolution_lead_time",
}


@dataclass(slots=True)
class ProjectMetrics:
    project_key: str | None
    total_issues: int = 0
    resolved_issues: int = 0
    avg_lead_time: float | None = None
    avg_cycle_time: float | None = None
    median_lead_time: float | None = None
    median_cycle_time: float | None = None
    flow_efficiency: float = 0.0
    first_time_through: float = 0.0
    blocked_time_ratio: float = 0.0


@dataclass(slots=True)
class PortfolioSummary:
    projects: list[ProjectMetrics] = field(default_factory=list)
    total_issues: int = 0
    resolved_issues: int = 0
    median_lead_time: float | None = None
    median_cycle_time: float | None = None


def lead_time_column(settings: AppSettings = SETTINGS) -> str:
    try:
        return LEAD_TIME_COLUMNS[settings.lead_time_definition]
    except KeyError:
        raise ValueError(
            f"Unknown lead_time_definition {settings.lead_time_definition!r}; "
            f"expected one of {sorted(LEAD_TIME_COLUMNS)}"
        ) from None


def _round(value: float | None) -> float | None:
    if value is None:
        return None
    return round(float(value), DISPLAY_PRECISION)


def _mean(values: pd.Series) -> float | None:
    values = values.dropna()
    return _round(values.mean()) if not values.empty else None


def _median(values: pd.Series) -> float | None:
    values = values.dropna()
    return _round(values.median()) if not values.empty else None


def build_project_summary(
    df: pd.DataFrame,
    project_key: str | None,
    *,
    settings: AppSettings = SETTINGS,
) -> ProjectMetrics:
    """Summarize one project's issues.

    Parameters
    ----------
    df : pd.DataFrame
        Metrics frame. Rows for other projects are ignored when
        ``project_key`` is given; ``None`` summarizes every row.
    project_key : str or None
        Project to summarize.
    settings : AppSettings
        ``lead_time_definition`` picks the stage-based lead time
        (``"stages"``) or the created-to-resolved one (``"record"``).

    Returns
    -------
    ProjectMetrics
        Averages and medians are None without resolved samples; flow
        efficiency and first-time-through are 0 in that case. Values are
        rounded to one decimal. The blocked-time ratio covers every issue of
        the project and uses ``settings.days_per_blocker``.
    """
    work = require_frame(df)
    if project_key is not None:
        work = work[work["project_key"] == project_key]
    if work.empty:
        return ProjectMetrics(project_key=project_key)
    lead_col = lead_time_column(settings)
    done = resolved_issues(work)
    lead = numeric(done, lead_col)
    cycle = numeric(done, "cycle_time")
    return ProjectMetrics(
        project_key=project_key,
        total_issues=len(work),
        resolved_issues=len(done),
        avg_lead_time=_mean(lead),
        avg_cycle_time=_mean(cycle),
        median_lead_time=_median(lead),
        median_cycle_time=_median(cycle),
        flow_efficiency=_round(flow_efficiency(done, lead_col).efficiency),
        first_time_through=_round(first_time_through(done).percentage),
        blocked_time_ratio=_round(
            blocked_time_impact(work, settings.days_per_blocker, lead_col).blocked_time_ratio
        ),
    )


def build_portfolio_summary(df: pd.DataFrame, *, settings: AppSettings = SETTINGS) -> PortfolioSummary:
    """Per-project summaries (sorted by key) plus portfolio-wide totals and medians."""
    work = require_frame(df)
    if work.empty:
        return PortfolioSummary()
    keys = sorted(work["project_key"].dropna().unique())
    projects = [build_project_summary(work, key, settings=settings) for key in keys]
    done = resolved_issues(work)
    return PortfolioSummary(
        projects=projects,
        total_issues=len(work),
        resolved_issues=len(done),
        median_lead_time=_median(numeric(done, lead_time_column(settings))),
        median_cycle_time=_median(numeric(done, "cycle_time")),
    )
