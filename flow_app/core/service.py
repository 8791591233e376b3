"""MetricsService: orchestrates mapping raw issues into metric frames and summaries."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import replace
from typing import Any

import pandas as pd

from flow_app.features.project_summary.context import (
    PortfolioSummary,
    ProjectMetrics,
    build_portfolio_summary,
    build_project_summary,
)

from .config import SETTINGS, AppSettings
from .mappers import count_sub_issues, map_issue, records_to_frame
from .mapping import StageMapper, extract_status_names
from .models import IssueRecord
from .stages import CanonicalStage

logger = logging.getLogger(__name__)


class MetricsService:
    """Stateless pipeline: every call recomputes from the issues it is given."""

    def __init__(self, mapper: StageMapper | None = None, settings: AppSettings | None = None):
        self.mapper = mapper if mapper is not None else StageMapper.from_config()
        if settings is None:
            settings = SETTINGS
            # Stage-based lead time starts at DRAFT; fall back to resolved - created
            if settings.lead_time_definition == "stages" and not self.mapper.yields(CanonicalStage.DRAFT):
                settings = replace(settings, lead_time_definition="record")
        self.settings = settings

    # ------------------ Mapping ------------------
    def build_records(self, raw_issues: Iterable[Any]) -> list[IssueRecord]:
        if raw_issues is None:
            raise TypeError("issue collection must not be None")
        issues = list(raw_issues)
        sub_counts = count_sub_issues(issues)
        records: list[IssueRecord] = []
        skipped = 0
        for raw in issues:
            if not isinstance(raw, dict):
                skipped += 1
                continue
            key = str(raw.get("key") or "")
            records.append(map_issue(raw, self.mapper, sub_issue_count=sub_counts.get(key, 0)))
        if skipped:
            logger.warning("Skipped %d issue entries that were not objects", skipped)
        unmapped = self._unmapped_statuses(issues, records)
        if unmapped:
            logger.info("Statuses without a stage mapping: %s", ", ".join(unmapped))
        logger.debug("Mapped %d issues", len(records))
        return records

    def _unmapped_statuses(self, issues: list[Any], records: list[IssueRecord]) -> list[str]:
        projects = {r.project_key for r in records}
        names = extract_status_names(issues)
        return sorted({n for pid in projects for n in self.mapper.unmapped(pid, names)})

    def build_frame(self, raw_issues: Iterable[Any]) -> pd.DataFrame:
        return records_to_frame(self.build_records(raw_issues))

    # ------------------ Summaries ------------------
    def project_summary(self, raw_issues: Iterable[Any], project_key: str | None) -> ProjectMetrics:
        return build_project_summary(self.build_frame(raw_issues), project_key, settings=self.settings)

    def portfolio_summary(self, raw_issues: Iterable[Any]) -> PortfolioSummary:
        return build_portfolio_summary(self.build_frame(raw_issues), settings=self.settings)
