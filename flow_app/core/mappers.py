"""Mapping raw issue JSON into IssueRecord instances and metric frames."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from typing import Any

import pandas as pd

from flow_app.analytics.metrics.cycle_time import extract_issue_metrics, resolution_lead_time

from .changelog import status_events_for_issue
from .config import (
    DEFAULT_SPRINT_NAME,
    DURATION_COLUMNS,
    METRIC_FRAME_COLUMNS,
    SPRINT_FIELDS,
    STAGE_TIMESTAMP_FIELDS,
    STORY_POINT_FIELDS,
)
from .mapping import StageMapper
from .models import IssueRecord
from .timestamps import normalize_timestamp


def _name(value: Any) -> str | None:
    if isinstance(value, dict):
        value = value.get("name") or value.get("key")
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def extract_project_key(raw: dict[str, Any]) -> str | None:
    fields = raw.get("fields") or {}
    project = fields.get("project") or raw.get("project") or {}
    if isinstance(project, dict) and project.get("key"):
        return str(project["key"])
    key = raw.get("key")
    if not key:
        return None
    return str(key).split("-")[0]


def extract_story_points(raw: dict[str, Any]) -> float | None:
    fields = raw.get("fields") or {}
    for field_id in STORY_POINT_FIELDS:
        if fields.get(field_id):
            return _to_points(fields[field_id])
    for key in ("story_points", "storyPoints"):
        if raw.get(key):
            return _to_points(raw[key])
    return None


def _to_points(value: Any) -> float | None:
    points = pd.to_numeric(value, errors="coerce")
    if points is None or pd.isna(points):
        return None
    return float(points)


def extract_sprint(raw: dict[str, Any]) -> str:
    """Most recent sprint name, falling back to single-sprint fields."""
    sprints = [s for s in raw.get("sprint_info") or [] if isinstance(s, dict) and s.get("name")]
    if sprints:
        # Sprints without a start date sort as the oldest
        def _start(sprint):
            ts = normalize_timestamp(sprint.get("start_date"))
            return (ts is not None, ts.value if ts is not None else 0)

        return str(max(sprints, key=_start)["name"])
    fields = raw.get("fields") or {}
    for field_id in SPRINT_FIELDS:
        value = fields.get(field_id)
        # Jira returns every sprint the issue passed through; the last is current
        if isinstance(value, list):
            value = value[-1] if value else None
        name = _name(value)
        if name:
            return name
    return _name(raw.get("sprint")) or DEFAULT_SPRINT_NAME


def map_issue(raw: dict[str, Any], mapper: StageMapper, *, sub_issue_count: int = 0) -> IssueRecord:
    """Build an IssueRecord from either the flat upload or Jira API shape."""
    fields = raw.get("fields") or {}
    project_key = extract_project_key(raw)
    created = normalize_timestamp(fields.get("created") or raw.get("created"))
    resolved = normalize_timestamp(
        fields.get("resolutiondate") or raw.get("resolved") or raw.get("resolution_date")
    )
    events = status_events_for_issue(raw)
    metrics = extract_issue_metrics(events, mapper, project_key, resolved=resolved)
    return IssueRecord(
        key=str(raw.get("key") or "Unknown"),
        project_key=project_key,
        summary=fields.get("summary") or raw.get("summary"),
        issue_type=_name(fields.get("issuetype")) or _name(raw.get("issue_type")) or "Unknown",
        priority=_name(fields.get("priority")) or _name(raw.get("priority")),
        sprint=extract_sprint(raw),
        story_points=extract_story_points(raw),
        created=created,
        resolved=resolved,
        metrics=metrics,
        resolution_lead_time=resolution_lead_time(created, resolved),
        sub_issue_count=sub_issue_count,
        parent_key=raw.get("parent_key") or _name((fields.get("parent") or {}).get("key")),
    )


def count_sub_issues(raw_issues: Iterable[dict[str, Any]]) -> Counter:
    counts: Counter = Counter()
    for raw in raw_issues:
        if not isinstance(raw, dict):
            continue
        parent = raw.get("parent_key") or ((raw.get("fields") or {}).get("parent") or {}).get("key")
        if parent:
            counts[parent] += 1
    return counts


def records_to_frame(records: Iterable[IssueRecord]) -> pd.DataFrame:
    """One row per issue with the columns in ``METRIC_FRAME_COLUMNS``."""
    rows = []
    for r in records:
        m = r.metrics
        row = {
            "key": r.key,
            "project_key": r.project_key,
            "summary": r.summary,
            "issue_type": r.issue_type,
            "priority": r.priority,
            "sprint": r.sprint,
            "story_points": r.story_points,
            "sub_issue_count": r.sub_issue_count,
            "created": r.created,
            "resolved": r.resolved,
            "lead_time": m.lead_time,
            "cycle_time": m.cycle_time,
            "grooming_cycle_time": m.grooming_cycle_time,
            "dev_cycle_time": m.dev_cycle_time,
            "qa_cycle_time": m.qa_cycle_time,
            "resolution_lead_time": r.resolution_lead_time,
            "blockers": m.blockers,
            "review_churn": m.review_churn,
            "qa_churn": m.qa_churn,
        }
        stamps = m.stage_timestamps.as_dict()
        for name in STAGE_TIMESTAMP_FIELDS:
            row[f"ts_{name}"] = stamps[name]
        rows.append(row)
    df = pd.DataFrame(rows, columns=list(METRIC_FRAME_COLUMNS))
    for col in ("created", "resolved", *(f"ts_{n}" for n in STAGE_TIMESTAMP_FIELDS)):
        df[col] = pd.to_datetime(df[col], utc=True, errors="coerce")
    for col in ("story_points", *DURATION_COLUMNS):
        df[col] = pd.to_numeric(df[col], errors="coerce").astype(float)
    for col in ("blockers", "review_churn", "qa_churn", "sub_issue_count"):
        df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0).astype(int)
    return df
