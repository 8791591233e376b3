import logging

import pytest

from flow_app.core.config import AppSettings
from flow_app.core.mapping import StageMapper
from flow_app.core.service import MetricsService


def test_build_records_counts_sub_issues(reference_issues):
    child = {"key": "TEST-010", "parent_key": "TEST-001", "created": "2024-01-02T00:00:00Z"}
    svc = MetricsService(StageMapper.literal())
    records = svc.build_records([*reference_issues, child])
    by_key = {r.key: r for r in records}
    assert by_key["TEST-001"].sub_issue_count == 1
    assert by_key["TEST-002"].sub_issue_count == 0
    assert by_key["TEST-010"].parent_key == "TEST-001"


def test_non_object_entries_are_skipped(reference_issues, caplog):
    svc = MetricsService(StageMapper.literal())
    with caplog.at_level(logging.WARNING):
        records = svc.build_records([reference_issues[0], "oops", 42, None])
    assert [r.key for r in records] == ["TEST-001"]
    assert "Skipped 3" in caplog.text


def test_none_collection_is_rejected():
    with pytest.raises(TypeError):
        MetricsService(StageMapper.literal()).build_records(None)


def test_build_frame_is_recomputed_each_call(reference_issues):
    svc = MetricsService(StageMapper.literal())
    first = svc.build_frame(reference_issues)
    second = svc.build_frame(reference_issues[:1])
    assert len(first) == 4
    assert len(second) == 1


def test_default_mapper_reads_packaged_table(reference_issues):
    svc = MetricsService()
    # The packaged table has no Draft status, so lead time is resolved - created
    assert svc.settings.lead_time_definition == "record"
    summary = svc.project_summary(reference_issues, "TEST")
    assert summary.resolved_issues == 3
    assert summary.avg_cycle_time == 14.3
    assert summary.avg_lead_time == 16.7
    assert summary.median_lead_time == 15.3
    assert summary.flow_efficiency == 29.2
    assert summary.blocked_time_ratio == 13.0


def test_literal_mapper_keeps_stage_lead_time():
    assert MetricsService(StageMapper.literal()).settings.lead_time_definition == "stages"


def test_explicit_settings_are_not_overridden(reference_issues):
    svc = MetricsService(settings=AppSettings(lead_time_definition="stages"))
    summary = svc.project_summary(reference_issues, "TEST")
    assert summary.avg_lead_time is None
    assert summary.flow_efficiency == 0.0


def test_malformed_changelogs_do_not_stop_the_batch(reference_issues):
    broken = [
        {"key": "BAD-1", "changelog": [{"field": "status"}]},
        {"key": "BAD-2", "changelog": {"histories": [{"created": "2024-01-01", "items": 5}, "junk"]}},
        {"key": "BAD-3", "changelogs": "not a list"},
    ]
    frame = MetricsService().build_frame([*reference_issues, *broken])
    assert len(frame) == 7
    assert frame.loc[frame["key"] == "BAD-1", "cycle_time"].isna().all()


def test_settings_select_lead_time(reference_issues):
    svc = MetricsService(StageMapper.literal(), AppSettings(lead_time_definition="record"))
    portfolio = svc.portfolio_summary(reference_issues)
    assert [p.project_key for p in portfolio.projects] == ["TEST"]
    assert portfolio.median_lead_time == 15.3
