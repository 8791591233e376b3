"""Resolve tracker status names to canonical workflow stages.

A ``StageMapper`` holds the per-project mapping table. Rows whose
``project_id`` is ``None`` apply to every project and are consulted only when
the project has no row of its own for that status name.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from .changelog import is_status_change, parse_changelog
from .config import LITERAL_STATUS_STAGES
from .stages import CanonicalStage, InvalidStageError, parse_canonical_stage
from .workflow_config import load_status_stages


@dataclass(frozen=True, slots=True)
class WorkflowMapping:
    project_id: str | int | None
    jira_status_name: str
    canonical_stage: CanonicalStage

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> WorkflowMapping:
        """Build a mapping from a camelCase or snake_case row.

        Raises ``InvalidStageError`` for an unknown stage or an empty status
        name.
        """
        project_id = row.get("projectId", row.get("project_id"))
        name = row.get("jiraStatusName", row.get("jira_status_name"))
        stage = row.get("canonicalStage", row.get("canonical_stage"))
        if not name or not str(name).strip():
            raise InvalidStageError(f"Mapping row without a status name: {dict(row)!r}")
        return cls(
            project_id=project_id,
            jira_status_name=str(name).strip(),
            canonical_stage=parse_canonical_stage(stage),
        )


class StageMapper:
    def __init__(self, mappings: Iterable[WorkflowMapping] = ()):
        self._table: dict[tuple[Any, str], CanonicalStage] = {}
        for mapping in mappings:
            self._add(mapping)

    def _add(self, mapping: WorkflowMapping) -> None:
        key = (mapping.project_id, mapping.jira_status_name.strip())
        existing = self._table.get(key)
        if existing is not None and existing is not mapping.canonical_stage:
            raise InvalidStageError(
                f"Conflicting mapping for {key[1]!r} in project {key[0]!r}: "
                f"{existing.value} vs {mapping.canonical_stage.value}"
            )
        self._table[key] = mapping.canonical_stage

    # ------------------ Constructors ------------------
    @classmethod
    def from_rows(cls, rows: Iterable[Mapping[str, Any]]) -> StageMapper:
        return cls(WorkflowMapping.from_row(row) for row in rows)

    @classmethod
    def from_config(cls, base_path=None) -> StageMapper:
        """Project-agnostic mapper built from ``workflow.yaml``."""
        table = load_status_stages(base_path)
        return cls(
            WorkflowMapping(None, name, parse_canonical_stage(stage)) for name, stage in table.items()
        )

    @classmethod
    def literal(cls) -> StageMapper:
        """Mapper for literal canonical-looking status strings, including Draft."""
        mapper = cls()
        for name, stage in LITERAL_STATUS_STAGES.items():
            mapper._table[(None, name)] = parse_canonical_stage(stage, allow_draft=True)
        return mapper

    # ------------------ Lookup ------------------
    def resolve(self, project_id, raw_status: str | None) -> CanonicalStage | None:
        """Return the canonical stage for ``raw_status`` or ``None`` if unmapped."""
        if not raw_status:
            return None
        name = str(raw_status).strip()
        stage = self._table.get((project_id, name))
        if stage is None and project_id is not None:
            stage = self._table.get((None, name))
        return stage

    def yields(self, stage: CanonicalStage) -> bool:
        """Whether any row resolves to ``stage``."""
        return stage in self._table.values()

    def unmapped(self, project_id, names: Iterable[str]) -> list[str]:
        return sorted({n for n in names if n and self.resolve(project_id, n) is None})

    def mappings(self) -> list[WorkflowMapping]:
        return [WorkflowMapping(pid, name, stage) for (pid, name), stage in self._table.items()]

    def __len__(self) -> int:
        return len(self._table)


def extract_status_names(raw_issues: Iterable[Mapping[str, Any]]) -> list[str]:
    """Collect the distinct raw status names seen in issue changelogs.

    Handles both the Jira API shape (``changelog.histories[].items``) and the
    flat upload shape (``changelogs``, camelCase or snake_case keys).
    Malformed issues and entries are skipped.
    """
    names: set[str] = set()
    for issue in raw_issues:
        if not isinstance(issue, Mapping):
            continue
        for entry in parse_changelog(issue):
            if is_status_change(entry):
                names.update(str(v) for v in (entry.from_string, entry.to_string) if v)
    return sorted(names)
