"""Flow and process-health aggregations over a metrics frame.

Every function takes the per-issue frame produced by
``flow_app.core.mappers.records_to_frame`` and returns a small result record.
Insufficient data never raises; it yields zero-valued results that carry the
sample count.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

import pandas as pd

from flow_app.analytics.metrics.derived import numeric, require_frame, resolved_issues
from flow_app.core.config import DAYS_PER_BLOCKER, DEFECT_ISSUE_TYPES

from .stats import CorrelationResult, StatsResult, correlation, stats

STAGE_DURATION_COLUMNS: dict[str, str] = {
    "grooming": "grooming_cycle_time",
    "dev": "dev_cycle_time",
    "qa": "qa_cycle_time",
}


@dataclass(frozen=True, slots=True)
class FlowEfficiencyResult:
    efficiency: float = 0.0
    active_time: float = 0.0
    wait_time: float = 0.0
    count: int = 0


@dataclass(frozen=True, slots=True)
class VariabilityResult:
    stage: str
    stats: StatsResult
    coefficient: float = 0.0


@dataclass(frozen=True, slots=True)
class FirstTimeThroughResult:
    percentage: float = 0.0
    first_time_count: int = 0
    total: int = 0


@dataclass(frozen=True, slots=True)
class StageSkipResult:
    grooming_skip_rate: float = 0.0
    review_skip_rate: float = 0.0
    skipped_grooming: int = 0
    skipped_review: int = 0
    total: int = 0

    @property
    def grooming_skip_percentage(self) -> float:
        return self.grooming_skip_rate * 100.0

    @property
    def review_skip_percentage(self) -> float:
        return self.review_skip_rate * 100.0


@dataclass(frozen=True, slots=True)
class BlockedTimeResult:
    """Blocked-time estimate.

    This is an approximation: blocked duration is not measured. Each entry
    into BLOCKED is assumed to cost ``days_per_blocker`` days.
    """

    blocked_time_ratio: float = 0.0
    avg_blocked_days: float = 0.0
    estimated_blocked_days: float = 0.0
    issues_blocked: int = 0
    total: int = 0
    days_per_blocker: float = DAYS_PER_BLOCKER


# ------------------ Correlations ------------------
def story_points_correlation(df: pd.DataFrame) -> CorrelationResult:
    """Story points vs development cycle time over resolved issues."""
    work = resolved_issues(require_frame(df))
    points = numeric(work, "story_points")
    dev = numeric(work, "dev_cycle_time")
    mask = (points > 0) & (dev > 0)
    return correlation(points[mask], dev[mask])


def qa_churn_correlation(df: pd.DataFrame) -> CorrelationResult:
    """QA churn vs QA cycle time over resolved issues."""
    work = resolved_issues(require_frame(df))
    churn = numeric(work, "qa_churn")
    qa = numeric(work, "qa_cycle_time")
    mask = (churn >= 0) & (qa > 0)
    return correlation(churn[mask], qa[mask])


# ------------------ Flow ------------------
def flow_efficiency(df: pd.DataFrame, lead_column: str = "lead_time") -> FlowEfficiencyResult:
    """Share of lead time spent in active stages, as a 0-100 percentage.

    Averages the per-issue ratio ``(grooming + dev + qa) / lead`` over
    resolved issues with a positive lead time. Each ratio is clamped to
    [0, 100] because stage windows can start before the lead-time start.
    ``lead_column`` selects the lead-time definition (``"lead_time"`` or
    ``"resolution_lead_time"``).
    """
    work = resolved_issues(require_frame(df))
    lead = numeric(work, lead_column)
    mask = lead > 0
    if not mask.any():
        return FlowEfficiencyResult()
    work = work[mask]
    lead = lead[mask]
    active = sum(numeric(work, col).fillna(0) for col in STAGE_DURATION_COLUMNS.values())
    ratios = (active / lead * 100.0).clip(lower=0.0, upper=100.0)
    return FlowEfficiencyResult(
        efficiency=float(ratios.mean()),
        active_time=float(active.sum()),
        wait_time=float(lead.sum() - active.sum()),
        count=int(mask.sum()),
    )


def stage_variability(df: pd.DataFrame, stage: str) -> VariabilityResult:
    """Coefficient of variation (std_dev / mean) of one stage's duration.

    ``stage`` is ``"grooming"``, ``"dev"``, ``"qa"`` or a duration column
    name. Needs at least two positive samples from resolved issues.
    """
    column = STAGE_DURATION_COLUMNS.get(stage, stage)
    work = resolved_issues(require_frame(df))
    if column not in work.columns:
        raise KeyError(f"Unknown stage duration: {stage!r}")
    values = numeric(work, column)
    summary = stats(values[values > 0])
    cv = summary.std_dev / summary.mean if summary.count >= 2 and summary.mean > 0 else 0.0
    return VariabilityResult(stage=stage, stats=summary, coefficient=cv)


def all_stage_variability(df: pd.DataFrame) -> list[VariabilityResult]:
    return [stage_variability(df, stage) for stage in STAGE_DURATION_COLUMNS]


def first_time_through(df: pd.DataFrame) -> FirstTimeThroughResult:
    """Percentage of resolved issues with no review or QA churn.

    Churn counts every entry into review/QA, so any issue that visited
    either stage is not first-time-through.
    """
    work = resolved_issues(require_frame(df))
    total = len(work)
    if total == 0:
        return FirstTimeThroughResult()
    clean = int(((numeric(work, "review_churn") == 0) & (numeric(work, "qa_churn") == 0)).sum())
    return FirstTimeThroughResult(percentage=clean / total * 100.0, first_time_count=clean, total=total)


def stage_skips(df: pd.DataFrame) -> StageSkipResult:
    work = resolved_issues(require_frame(df))
    total = len(work)
    if total == 0:
        return StageSkipResult()
    has = {name: work[f"ts_{name}"].notna() for name in ("ready_for_grooming", "in_progress", "in_review", "in_qa")}
    skipped_grooming = int((~has["ready_for_grooming"] & has["in_progress"]).sum())
    skipped_review = int((~has["in_review"] & has["in_progress"] & has["in_qa"]).sum())
    return StageSkipResult(
        grooming_skip_rate=skipped_grooming / total,
        review_skip_rate=skipped_review / total,
        skipped_grooming=skipped_grooming,
        skipped_review=skipped_review,
        total=total,
    )


def blocked_time_impact(
    df: pd.DataFrame,
    days_per_blocker: float = DAYS_PER_BLOCKER,
    lead_column: str = "lead_time",
) -> BlockedTimeResult:
    """Estimate time lost to blockers (approximation, see ``BlockedTimeResult``).

    ratio = sum(blockers * days_per_blocker) / sum(lead time of blocked issues) * 100
    average = sum(blockers * days_per_blocker) / number of blocked issues

    ``lead_column`` selects the lead-time definition, as in ``flow_efficiency``.
    """
    work = require_frame(df)
    blockers = numeric(work, "blockers").fillna(0)
    blocked = work[blockers > 0]
    if blocked.empty:
        return BlockedTimeResult(total=len(work), days_per_blocker=days_per_blocker)
    estimated = float((blockers[blockers > 0] * days_per_blocker).sum())
    total_lead = float(numeric(blocked, lead_column).fillna(0).sum())
    ratio = estimated / total_lead * 100.0 if total_lead > 0 else 0.0
    return BlockedTimeResult(
        blocked_time_ratio=ratio,
        avg_blocked_days=estimated / len(blocked),
        estimated_blocked_days=estimated,
        issues_blocked=len(blocked),
        total=len(work),
        days_per_blocker=days_per_blocker,
    )


# ------------------ Defects ------------------
def _priority_sort_key(priority: str):
    match = re.fullmatch(r"p(\d+)", priority.lower())
    if match:
        return (0, int(match.group(1)), "")
    return (1, 0, priority.lower())


def defect_resolution_by_priority(df: pd.DataFrame) -> pd.DataFrame:
    """Resolution-time statistics for resolved defects, grouped by priority.

    Defects are issues whose type contains one of ``DEFECT_ISSUE_TYPES``.
    Resolution time is ``resolved - created`` in days. P-numbered priorities
    sort first, by number; others follow alphabetically.
    """
    work = resolved_issues(require_frame(df))
    columns = ["priority", "count", "median", "mean", "min", "max", "std_dev"]
    if work.empty:
        return pd.DataFrame(columns=columns)
    types = work["issue_type"].fillna("").astype(str).str.lower()
    is_defect = types.apply(lambda t: any(d in t for d in DEFECT_ISSUE_TYPES))
    defects = work[is_defect]
    if defects.empty:
        return pd.DataFrame(columns=columns)
    priorities = defects["priority"].fillna("Unassigned").astype(str)
    rows = []
    for priority in sorted(priorities.unique(), key=_priority_sort_key):
        group = defects[priorities == priority]
        summary = stats(numeric(group, "resolution_lead_time"))
        rows.append(
            {
                "priority": priority,
                "count": len(group),
                "median": summary.median,
                "mean": summary.mean,
                "min": summary.min,
                "max": summary.max,
                "std_dev": summary.std_dev,
            }
        )
    return pd.DataFrame(rows, columns=columns)
