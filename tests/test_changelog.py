import pandas as pd

from flow_app.core.changelog import (
    FlatChangelogEntry,
    NestedHistoryEntry,
    normalize_status_events,
    parse_changelog,
    status_events_for_issue,
)


def _nested_issue():
    return {
        "key": "API-1",
        "changelog": {
            "histories": [
                {
                    "created": "2024-03-05T10:00:00.000+0000",
                    "items": [{"field": "status", "fromString": "In Progress", "toString": "Done"}],
                },
                {
                    "created": "2024-03-01T10:00:00.000+0000",
                    "items": [
                        {"field": "Status", "fromString": "To Do", "toString": "In Progress"},
                        {"field": "assignee", "fromString": None, "toString": "Alice"},
                    ],
                },
            ]
        },
    }


def test_parse_nested_histories():
    entries = parse_changelog(_nested_issue())
    assert len(entries) == 3
    assert all(isinstance(e, NestedHistoryEntry) for e in entries)


def test_parse_flat_records_with_either_key_style():
    issue = {
        "changelogs": [
            {"field_name": "status", "from_string": "To Do", "to_string": "In Progress", "created": "2024-01-02"},
            {"fieldName": "status", "fromString": "In Progress", "toString": "Done", "created": "2024-01-03"},
        ]
    }
    entries = parse_changelog(issue)
    assert [e.to_string for e in entries] == ["In Progress", "Done"]
    assert all(isinstance(e, FlatChangelogEntry) for e in entries)


def test_bare_list_is_classified_per_element():
    raw = [
        {"created": "2024-01-01", "items": [{"field": "status", "toString": "In Progress"}]},
        {"field_name": "status", "to_string": "Done", "created": "2024-01-02"},
    ]
    entries = parse_changelog(raw)
    assert isinstance(entries[0], NestedHistoryEntry)
    assert isinstance(entries[1], FlatChangelogEntry)


def test_events_are_status_only_and_sorted():
    events = status_events_for_issue(_nested_issue())
    assert [e.to_status for e in events] == ["In Progress", "Done"]
    assert events[0].timestamp == pd.Timestamp("2024-03-01T10:00:00Z")
    assert events[0].from_status == "To Do"


def test_malformed_entries_are_dropped():
    entries = [
        FlatChangelogEntry(created="2024-01-01T00:00:00Z", field_name="status", from_string=None, to_string=None),
        FlatChangelogEntry(created="not a date", field_name="status", from_string=None, to_string="Done"),
        FlatChangelogEntry(created=None, field_name="status", from_string=None, to_string="Done"),
        FlatChangelogEntry(created="2024-01-02T00:00:00Z", field_name="status", from_string="", to_string="Done"),
    ]
    events = normalize_status_events(entries)
    assert len(events) == 1
    assert events[0].from_status is None


def test_sort_is_stable_for_equal_timestamps():
    same = "2024-01-01T12:00:00Z"
    entries = [
        FlatChangelogEntry(created=same, field_name="status", from_string=None, to_string="In Progress"),
        FlatChangelogEntry(created="2024-01-01T11:00:00Z", field_name="status", from_string=None, to_string="Draft"),
        FlatChangelogEntry(created=same, field_name="status", from_string=None, to_string="In Review"),
    ]
    events = normalize_status_events(entries)
    assert [e.to_status for e in events] == ["Draft", "In Progress", "In Review"]


def test_missing_changelog_yields_no_events():
    assert status_events_for_issue({"key": "X-1"}) == []
    assert status_events_for_issue(None) == []


def test_malformed_changelog_containers_yield_nothing():
    assert parse_changelog({"changelog": [{"field": "status"}]}) == []
    assert parse_changelog({"changelog": {"histories": "oops"}}) == []
    assert parse_changelog({"changelogs": {"field_name": "status"}}) == []
    histories = [{"created": "2024-01-01", "items": 5}, "junk", {"created": "2024-01-02", "items": ["x"]}]
    assert parse_changelog({"changelog": {"histories": histories}}) == []
