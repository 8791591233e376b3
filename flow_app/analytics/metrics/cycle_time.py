"""Per-issue cycle time extraction.

Folds an ordered list of status change events into stage timestamps, stage
durations and rework counters. Event order is taken as given; callers sort
with ``normalize_status_events`` first.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, replace
from functools import reduce

from flow_app.core.mapping import StageMapper
from flow_app.core.models import IssueMetrics, StageTimestamps, StatusChangeEvent
from flow_app.core.stages import CanonicalStage
from flow_app.core.timestamps import days_between, normalize_timestamp

logger = logging.getLogger(__name__)

# Stages whose timestamp is recorded on first entry only
FIRST_SEEN_FIELDS: dict[CanonicalStage, str] = {
    CanonicalStage.DRAFT: "draft",
    CanonicalStage.READY_FOR_GROOMING: "ready_for_grooming",
    CanonicalStage.READY_FOR_DEV: "ready_for_dev",
    CanonicalStage.IN_PROGRESS: "in_progress",
    CanonicalStage.IN_REVIEW: "in_review",
    CanonicalStage.IN_QA: "in_qa",
    CanonicalStage.READY_FOR_RELEASE: "ready_for_release",
}

# Stages whose every entry bumps a counter (first entry included)
COUNTER_FIELDS: dict[CanonicalStage, str] = {
    CanonicalStage.IN_REVIEW: "review_churn",
    CanonicalStage.IN_QA: "qa_churn",
    CanonicalStage.BLOCKED: "blockers",
}


@dataclass(frozen=True, slots=True)
class _FoldState:
    timestamps: StageTimestamps = StageTimestamps()
    blockers: int = 0
    review_churn: int = 0
    qa_churn: int = 0


def _step(mapper: StageMapper, project_id):
    def apply(state: _FoldState, event: StatusChangeEvent) -> _FoldState:
        try:
            stage = mapper.resolve(project_id, event.to_status)
            timestamp = normalize_timestamp(event.timestamp)
        except AttributeError:
            logger.debug("Skipping malformed status event: %r", event)
            return state
        if stage is None or timestamp is None:
            return state

        timestamps = state.timestamps
        if stage is CanonicalStage.DONE:
            timestamps = replace(timestamps, done=timestamp)
        else:
            name = FIRST_SEEN_FIELDS.get(stage)
            if name is not None and getattr(timestamps, name) is None:
                timestamps = replace(timestamps, **{name: timestamp})

        counter = COUNTER_FIELDS.get(stage)
        if counter is not None:
            state = replace(state, **{counter: getattr(state, counter) + 1})
        if timestamps is not state.timestamps:
            state = replace(state, timestamps=timestamps)
        return state

    return apply


def extract_issue_metrics(
    events: Iterable[StatusChangeEvent],
    mapper: StageMapper,
    project_id=None,
    *,
    resolved=None,
) -> IssueMetrics:
    """Compute timing metrics for one issue.

    Parameters
    ----------
    events : iterable of StatusChangeEvent
        Status changes, already sorted ascending by timestamp.
    mapper : StageMapper
        Resolves raw status names; unmapped names are ignored.
    project_id : optional
        Project whose mapping rows apply.
    resolved : datetime-like, optional
        Issue resolution timestamp. Used as the end of ``cycle_time``; when
        absent the last ``done`` timestamp is used instead.

    Returns
    -------
    IssueMetrics
        Durations are full-precision day counts, None unless both boundary
        timestamps exist and the end is strictly later than the start.
    """
    final = reduce(_step(mapper, project_id), events or (), _FoldState())
    ts = final.timestamps

    resolved_ts = normalize_timestamp(resolved) if resolved is not None else None
    cycle_end = resolved_ts if resolved_ts is not None else ts.done

    return IssueMetrics(
        lead_time=days_between(ts.draft, ts.done),
        cycle_time=days_between(ts.in_progress, cycle_end),
        grooming_cycle_time=days_between(ts.ready_for_grooming, ts.in_progress),
        dev_cycle_time=days_between(ts.in_progress, ts.in_qa),
        qa_cycle_time=days_between(ts.in_qa, ts.done),
        blockers=final.blockers,
        review_churn=final.review_churn,
        qa_churn=final.qa_churn,
        stage_timestamps=ts,
    )


def resolution_lead_time(created, resolved) -> float | None:
    """Lead time from the issue record: ``resolved - created`` in days.

    This is a separate definition from the stage-based
    ``IssueMetrics.lead_time`` and is reported under its own name.
    """
    return days_between(normalize_timestamp(created), normalize_timestamp(resolved))
