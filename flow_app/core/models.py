"""Domain data models for status events, per-issue metrics, and issue records."""

from __future__ import annotations

from dataclasses import dataclass, field, fields

import pandas as pd

from .config import DISPLAY_PRECISION


@dataclass(frozen=True, slots=True)
class StatusChangeEvent:
    timestamp: pd.Timestamp
    from_status: str | None
    to_status: str


@dataclass(frozen=True, slots=True)
class StageTimestamps:
    """First-seen timestamp per stage; ``done`` holds the last-seen one."""

    draft: pd.Timestamp | None = None
    ready_for_grooming: pd.Timestamp | None = None
    ready_for_dev: pd.Timestamp | None = None
    in_progress: pd.Timestamp | None = None
    in_review: pd.Timestamp | None = None
    in_qa: pd.Timestamp | None = None
    ready_for_release: pd.Timestamp | None = None
    done: pd.Timestamp | None = None

    def as_dict(self) -> dict[str, pd.Timestamp | None]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True, slots=True)
class IssueMetrics:
    lead_time: float | None = None
    cycle_time: float | None = None
    grooming_cycle_time: float | None = None
    dev_cycle_time: float | None = None
    qa_cycle_time: float | None = None
    blockers: int = 0
    review_churn: int = 0
    qa_churn: int = 0
    stage_timestamps: StageTimestamps = field(default_factory=StageTimestamps)

    def rounded(self, precision: int = DISPLAY_PRECISION) -> dict[str, float | int | None]:
        """Display-grade copy of the duration and counter fields."""

        def _round(value):
            return None if value is None else round(value, precision)

        return {
            "lead_time": _round(self.lead_time),
            "cycle_time": _round(self.cycle_time),
            "grooming_cycle_time": _round(self.grooming_cycle_time),
            "dev_cycle_time": _round(self.dev_cycle_time),
            "qa_cycle_time": _round(self.qa_cycle_time),
            "blockers": self.blockers,
            "review_churn": self.review_churn,
            "qa_churn": self.qa_churn,
        }


@dataclass(frozen=True, slots=True)
class IssueRecord:
    key: str
    project_key: str | None
    summary: str | None
    issue_type: str | None
    priority: str | None
    sprint: str | None
    story_points: float | None
    created: pd.Timestamp | None
    resolved: pd.Timestamp | None
    metrics: IssueMetrics
    # Alternate lead-time definition (resolved - created); kept separate
    # from the stage-based metrics.lead_time.
    resolution_lead_time: float | None = None
    sub_issue_count: int = 0
    parent_key: str | None = None

    @property
    def is_resolved(self) -> bool:
        return self.resolved is not None
