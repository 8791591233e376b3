"""Shared pytest setup for the flow_app suite.

Puts the repository root on sys.path so the namespace package imports without an
install, and provides the reference raw issues (flat changelog shape) that the
extraction, summary and service tests compute against.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def _flat(created, from_status, to_status):
    return {"field_name": "status", "from_string": from_status, "to_string": to_status, "created": created}


def _transitions(*steps):
    """Flat changelog records from ``(timestamp, status)`` steps, starting at To Do."""
    records = []
    previous = "To Do"
    for created, status in steps:
        records.append(_flat(created, previous, status))
        previous = status
    return records


@pytest.fixture
def reference_issues():
    """Four issues covering a clean run, review rework, a blocker and an open issue."""
    return [
        {
            "key": "TEST-001",
            "project": {"key": "TEST"},
            "summary": "Clean flow",
            "issue_type": "Story",
            "priority": "P2",
            "story_points": 3,
            "created": "2024-01-01T09:00:00Z",
            "resolved": "2024-01-20T17:00:00Z",
            "changelogs": _transitions(
                ("2024-01-02T10:00:00Z", "Ready for Grooming"),
                ("2024-01-03T11:00:00Z", "Ready for Dev"),
                ("2024-01-05T09:00:00Z", "In Progress"),
                ("2024-01-12T17:00:00Z", "In Review"),
                ("2024-01-15T14:00:00Z", "In QA"),
                ("2024-01-19T09:00:00Z", "Done"),
            ),
        },
        {
            "key": "TEST-002",
            "project": {"key": "TEST"},
            "summary": "Review rework",
            "issue_type": "Bug",
            "priority": "P1",
            "story_points": 1,
            "created": "2024-01-10T09:00:00Z",
            "resolved": "2024-01-25T17:00:00Z",
            "changelogs": _transitions(
                ("2024-01-12T09:00:00Z", "In Progress"),
                ("2024-01-15T17:00:00Z", "In Review"),
                ("2024-01-17T10:00:00Z", "In Progress"),
                ("2024-01-20T14:00:00Z", "In Review"),
                ("2024-01-25T17:00:00Z", "Done"),
            ),
        },
        {
            "key": "TEST-003",
            "project": {"key": "TEST"},
            "summary": "Blocked once",
            "issue_type": "Story",
            "priority": "P3",
            "story_points": 5,
            "created": "2024-01-15T09:00:00Z",
            "resolved": "2024-01-30T17:00:00Z",
            "changelogs": _transitions(
                ("2024-01-16T09:00:00Z", "In Progress"),
                ("2024-01-18T15:00:00Z", "Blocked"),
                ("2024-01-22T10:00:00Z", "In Progress"),
                ("2024-01-30T17:00:00Z", "Done"),
            ),
        },
        {
            "key": "TEST-004",
            "project": {"key": "TEST"},
            "summary": "Still open",
            "issue_type": "Task",
            "priority": "P2",
            "created": "2024-01-20T09:00:00Z",
            "changelogs": _transitions(("2024-01-22T09:00:00Z", "In Progress")),
        },
    ]
