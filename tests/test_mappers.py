import pandas as pd
import pytest

from flow_app.core.config import METRIC_FRAME_COLUMNS
from flow_app.core.mappers import (
    count_sub_issues,
    extract_project_key,
    extract_sprint,
    extract_story_points,
    map_issue,
    records_to_frame,
)
from flow_app.core.mapping import StageMapper


def _api_issue():
    return {
        "key": "WEB-12",
        "fields": {
            "summary": "Checkout button",
            "created": "2024-04-01T08:00:00.000+0000",
            "resolutiondate": "2024-04-06T08:00:00.000+0000",
            "issuetype": {"name": "Story"},
            "priority": {"name": "High"},
            "project": {"key": "WEB"},
            "customfield_10016": 2,
            "customfield_10020": [{"name": "Sprint 9"}],
            "parent": {"key": "WEB-1"},
        },
        "changelog": {
            "histories": [
                {
                    "created": "2024-04-02T08:00:00.000+0000",
                    "items": [{"field": "status", "fromString": "To Do", "toString": "In Progress"}],
                },
                {
                    "created": "2024-04-05T08:00:00.000+0000",
                    "items": [{"field": "status", "fromString": "In Progress", "toString": "Done"}],
                },
            ]
        },
    }


def test_map_api_issue():
    record = map_issue(_api_issue(), StageMapper.from_config())
    assert record.key == "WEB-12"
    assert record.project_key == "WEB"
    assert record.issue_type == "Story"
    assert record.priority == "High"
    assert record.story_points == 2.0
    assert record.sprint == "Sprint 9"
    assert record.parent_key == "WEB-1"
    assert record.is_resolved
    # Cycle time ends at the resolution date, not the Done transition
    assert record.metrics.cycle_time == pytest.approx(4.0)
    assert record.resolution_lead_time == pytest.approx(5.0)


def test_map_flat_issue(reference_issues):
    record = map_issue(reference_issues[0], StageMapper.literal(), sub_issue_count=2)
    assert record.project_key == "TEST"
    assert record.sprint == "No Sprint"
    assert record.sub_issue_count == 2
    assert record.metrics.review_churn == 1
    assert record.resolution_lead_time == pytest.approx(19 + 8 / 24)


def test_open_issue_is_not_resolved(reference_issues):
    record = map_issue(reference_issues[3], StageMapper.literal())
    assert not record.is_resolved
    assert record.story_points is None
    assert record.resolution_lead_time is None


def test_project_key_falls_back_to_issue_key():
    assert extract_project_key({"key": "OPS-7"}) == "OPS"
    assert extract_project_key({}) is None


def test_story_points_sources():
    assert extract_story_points({"fields": {"customfield_10002": "3"}}) == 3.0
    assert extract_story_points({"storyPoints": 8}) == 8.0
    assert extract_story_points({"fields": {"customfield_10016": "n/a"}}) is None


def test_latest_sprint_wins():
    raw = {
        "sprint_info": [
            {"name": "Sprint 3", "start_date": "2024-03-01"},
            {"name": "Sprint 5", "start_date": "2024-04-01"},
            {"name": "Sprint 4", "start_date": None},
        ]
    }
    assert extract_sprint(raw) == "Sprint 5"
    assert extract_sprint({"sprint": {"name": "Sprint 1"}}) == "Sprint 1"
    assert extract_sprint({}) == "No Sprint"


def test_count_sub_issues():
    issues = [
        {"key": "P-1"},
        {"key": "P-2", "parent_key": "P-1"},
        {"key": "P-3", "fields": {"parent": {"key": "P-1"}}},
        "junk",
    ]
    assert count_sub_issues(issues) == {"P-1": 2}


def test_records_to_frame_columns_and_types(reference_issues):
    mapper = StageMapper.literal()
    df = records_to_frame(map_issue(raw, mapper) for raw in reference_issues)
    assert list(df.columns) == list(METRIC_FRAME_COLUMNS)
    assert len(df) == 4
    assert str(df["resolved"].dt.tz) == "UTC"
    assert df["resolved"].isna().sum() == 1
    assert df["review_churn"].dtype.kind == "i"
    assert df.loc[df["key"] == "TEST-003", "blockers"].iloc[0] == 1
    assert pd.isna(df.loc[df["key"] == "TEST-004", "cycle_time"].iloc[0])


def test_records_to_frame_empty():
    df = records_to_frame([])
    assert df.empty
    assert list(df.columns) == list(METRIC_FRAME_COLUMNS)
