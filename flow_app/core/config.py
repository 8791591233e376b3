"""Central configuration, constants, tuning knobs, and shared column definitions."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

# =============================================================================
# Time Settings
# =============================================================================
TIMEZONE = "UTC"
SECONDS_PER_DAY = 86400.0
DISPLAY_PRECISION: int = 1  # Decimal places for display-grade day values

# =============================================================================
# Workflow Status Configuration
# =============================================================================
# Literal status strings recognised without a per-project mapping table.
# Keys are matched exactly (after whitespace trimming); values are
# CanonicalStage names.
LITERAL_STATUS_STAGES: dict[str, str] = {
    "Draft": "DRAFT",
    "Ready for Grooming": "READY_FOR_GROOMING",
    "Ready for Dev": "READY_FOR_DEV",
    "In Progress": "IN_PROGRESS",
    "In Review": "IN_REVIEW",
    "In QA": "IN_QA",
    "Ready For Release": "READY_FOR_RELEASE",
    "Done": "DONE",
    "Blocked": "BLOCKED",
    "Blocked / On Hold": "BLOCKED",
}

# Fallback table used when workflow.yaml is missing or unreadable
DEFAULT_STATUS_STAGES: dict[str, str] = {
    # Backlog
    "To Do": "BACKLOG",
    "Backlog": "BACKLOG",
    "Open": "BACKLOG",
    "New": "BACKLOG",
    # Grooming / refinement
    "Ready for Grooming": "READY_FOR_GROOMING",
    "Ready for Dev": "READY_FOR_DEV",
    "Selected for Development": "READY_FOR_DEV",
    # Active development
    "In Progress": "IN_PROGRESS",
    "In Development": "IN_PROGRESS",
    "Development": "IN_PROGRESS",
    "Coding": "IN_PROGRESS",
    # Review / QA
    "In Review": "IN_REVIEW",
    "Code Review": "IN_REVIEW",
    "In QA": "IN_QA",
    "Testing": "IN_QA",
    "QA": "IN_QA",
    # Release
    "Ready for Release": "READY_FOR_RELEASE",
    "Ready For Release": "READY_FOR_RELEASE",
    "Ready to Deploy": "READY_FOR_RELEASE",
    # Terminal
    "Done": "DONE",
    "Resolved": "DONE",
    "Closed": "DONE",
    # Impediments
    "Blocked": "BLOCKED",
    "Blocked / On Hold": "BLOCKED",
    "On Hold": "BLOCKED",
}

# =============================================================================
# Heuristics
# =============================================================================
# Blocked duration is not tracked per transition; each entry into BLOCKED is
# assumed to cost this many elapsed days. Override per call where a team has
# a better estimate.
DAYS_PER_BLOCKER: float = 2.0

# Trailing window (in weeks) for trend moving averages
MOVING_AVERAGE_WEEKS: int = 4

# Issue types treated as defects by the resolution-time breakdown
DEFECT_ISSUE_TYPES: Sequence[str] = ("bug", "defect", "issue", "incident")

# =============================================================================
# Distribution Buckets
# =============================================================================
NO_DATA_BUCKET = "No Data"

# (label, inclusive upper bound in days); the last bucket is open ended
CYCLE_TIME_BUCKETS: Sequence[tuple[str, float]] = (
    ("0-1", 1.0),
    ("1-3", 3.0),
    ("3-7", 7.0),
    ("7-14", 14.0),
    ("14-30", 30.0),
    ("30+", float("inf")),
)

SIZE_BUCKET_ORDER: Sequence[str] = ("Unestimated", "Small", "Medium", "Large")

# =============================================================================
# Raw Issue Field IDs
# =============================================================================
STORY_POINT_FIELDS: Sequence[str] = (
    "customfield_10016",
    "customfield_10002",
    "customfield_10004",
    "storyPoints",
)
SPRINT_FIELDS: Sequence[str] = ("sprint", "customfield_10020")
DEFAULT_SPRINT_NAME = "No Sprint"

# =============================================================================
# Metrics Frame Columns
# =============================================================================
STAGE_TIMESTAMP_FIELDS: Sequence[str] = (
    "draft",
    "ready_for_grooming",
    "ready_for_dev",
    "in_progress",
    "in_review",
    "in_qa",
    "ready_for_release",
    "done",
)

DURATION_COLUMNS: Sequence[str] = (
    "lead_time",
    "cycle_time",
    "grooming_cycle_time",
    "dev_cycle_time",
    "qa_cycle_time",
    "resolution_lead_time",
)

METRIC_FRAME_COLUMNS: Sequence[str] = (
    "key",
    "project_key",
    "summary",
    "issue_type",
    "priority",
    "sprint",
    "story_points",
    "sub_issue_count",
    "created",
    "resolved",
    *DURATION_COLUMNS,
    "blockers",
    "review_churn",
    "qa_churn",
    *(f"ts_{name}" for name in STAGE_TIMESTAMP_FIELDS),
)


@dataclass(slots=True)
class AppSettings:
    # "stages" -> done - draft, "record" -> resolved - created
    lead_time_definition: str = "stages"
    days_per_blocker: float = DAYS_PER_BLOCKER
    timezone: str = TIMEZONE


SETTINGS = AppSettings()
