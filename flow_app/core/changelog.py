"""Status event normalization.

Changelog data arrives in two shapes:

* nested Jira API histories: ``{"created": ..., "items": [{"field",
  "fromString", "toString"}, ...]}``
* flat upload records: ``{"field_name", "from_string", "to_string",
  "created"}`` (camelCase ``fieldName`` is tolerated)

Both are parsed once into ``ChangelogEntry`` values; everything downstream
only sees ``StatusChangeEvent`` lists.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Union

from .models import StatusChangeEvent
from .timestamps import normalize_timestamp

logger = logging.getLogger(__name__)

STATUS_FIELD = "status"


@dataclass(frozen=True, slots=True)
class NestedHistoryEntry:
    created: Any
    field: str | None
    from_string: str | None
    to_string: str | None


@dataclass(frozen=True, slots=True)
class FlatChangelogEntry:
    created: Any
    field_name: str | None
    from_string: str | None
    to_string: str | None


ChangelogEntry = Union[NestedHistoryEntry, FlatChangelogEntry]


def _nested_entries(histories: Iterable[Any]) -> list[ChangelogEntry]:
    entries: list[ChangelogEntry] = []
    for history in histories:
        if not isinstance(history, Mapping):
            continue
        created = history.get("created")
        items = history.get("items")
        if not isinstance(items, list):
            continue
        for item in items:
            if not isinstance(item, Mapping):
                continue
            entries.append(
                NestedHistoryEntry(
                    created=created,
                    field=item.get("field"),
                    from_string=item.get("fromString"),
                    to_string=item.get("toString"),
                )
            )
    return entries


def _flat_entries(records: Iterable[Any]) -> list[ChangelogEntry]:
    entries: list[ChangelogEntry] = []
    for record in records:
        if not isinstance(record, Mapping):
            continue
        entries.append(
            FlatChangelogEntry(
                created=record.get("created"),
                field_name=record.get("field_name", record.get("fieldName")),
                from_string=record.get("from_string", record.get("fromString")),
                to_string=record.get("to_string", record.get("toString")),
            )
        )
    return entries


def parse_changelog(raw: Mapping[str, Any] | Iterable[Any] | None) -> list[ChangelogEntry]:
    """Resolve a raw issue (or bare entry list) into typed changelog entries.

    An issue with ``changelog.histories`` is read as nested; one with a
    ``changelogs`` list as flat. A bare list is classified per element by the
    presence of an ``items`` key.
    """
    if raw is None:
        return []
    if isinstance(raw, Mapping):
        changelog = raw.get("changelog")
        histories = changelog.get("histories") if isinstance(changelog, Mapping) else None
        if isinstance(histories, list) and histories:
            return _nested_entries(histories)
        records = raw.get("changelogs")
        return _flat_entries(records) if isinstance(records, list) else []
    entries: list[ChangelogEntry] = []
    for element in raw:
        if isinstance(element, Mapping) and "items" in element:
            entries.extend(_nested_entries([element]))
        else:
            entries.extend(_flat_entries([element]))
    return entries


def is_status_change(entry: ChangelogEntry) -> bool:
    name = entry.field if isinstance(entry, NestedHistoryEntry) else entry.field_name
    return str(name or "").lower() == STATUS_FIELD


def normalize_status_events(entries: Iterable[ChangelogEntry]) -> list[StatusChangeEvent]:
    """Filter to status changes and sort them ascending by timestamp.

    Entries without a target status or with an unparsable timestamp are
    dropped. The sort is stable, so events sharing a timestamp keep their
    input order.
    """
    events: list[StatusChangeEvent] = []
    dropped = 0
    for entry in entries:
        if not is_status_change(entry):
            continue
        to_status = entry.to_string
        ts = normalize_timestamp(entry.created)
        if not to_status or ts is None:
            dropped += 1
            continue
        events.append(
            StatusChangeEvent(timestamp=ts, from_status=entry.from_string or None, to_status=str(to_status))
        )
    if dropped:
        logger.debug("Dropped %s malformed status change entries", dropped)
    events.sort(key=lambda ev: ev.timestamp)
    return events


def status_events_for_issue(raw_issue: Mapping[str, Any] | Iterable[Any] | None) -> list[StatusChangeEvent]:
    return normalize_status_events(parse_changelog(raw_issue))
