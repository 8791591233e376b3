"""Canonical workflow stages and validation at the configuration boundary."""

from __future__ import annotations

from enum import Enum


class InvalidStageError(ValueError):
    """Raised when configuration names a stage outside the canonical set."""


class CanonicalStage(str, Enum):
    BACKLOG = "BACKLOG"
    READY_FOR_GROOMING = "READY_FOR_GROOMING"
    READY_FOR_DEV = "READY_FOR_DEV"
    IN_PROGRESS = "IN_PROGRESS"
    IN_REVIEW = "IN_REVIEW"
    IN_QA = "IN_QA"
    READY_FOR_RELEASE = "READY_FOR_RELEASE"
    DONE = "DONE"
    BLOCKED = "BLOCKED"
    # Pseudo-stage: only produced by the literal status table and only used
    # as the start of the stage-based lead time.
    DRAFT = "DRAFT"


MAPPABLE_STAGES: frozenset[CanonicalStage] = frozenset(
    stage for stage in CanonicalStage if stage is not CanonicalStage.DRAFT
)


def parse_canonical_stage(value, *, allow_draft: bool = False) -> CanonicalStage:
    """Validate a configured stage value and return the enum member.

    Parameters
    ----------
    value : CanonicalStage | str
        Stage member or its name; matching ignores case and surrounding
        whitespace.
    allow_draft : bool
        Accept the ``DRAFT`` pseudo-stage (only the built-in literal table
        does this).

    Returns
    -------
    CanonicalStage

    Raises
    ------
    InvalidStageError
        If the value does not name a canonical stage.

    Examples
    --------
    >>> parse_canonical_stage("in_qa")
    <CanonicalStage.IN_QA: 'IN_QA'>
    """
    if isinstance(value, CanonicalStage):
        stage = value
    else:
        text = str(value or "").strip().upper()
        try:
            stage = CanonicalStage(text)
        except ValueError:
            raise InvalidStageError(f"Unknown canonical stage: {value!r}") from None
    if stage is CanonicalStage.DRAFT and not allow_draft:
        raise InvalidStageError("DRAFT is a pseudo-stage and cannot be mapped")
    return stage
