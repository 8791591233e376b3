"""Project summary feature module for per-project and portfolio metrics."""

from flow_app.features.project_summary.context import (
    PortfolioSummary,
    ProjectMetrics,
    build_portfolio_summary,
    build_project_summary,
    lead_time_column,
)

__all__ = [
    "PortfolioSummary",
    "ProjectMetrics",
    "build_portfolio_summary",
    "build_project_summary",
    "lead_time_column",
]
