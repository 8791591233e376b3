"""Load the default status-to-stage table from YAML (with fallbacks)."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from .config import DEFAULT_STATUS_STAGES

logger = logging.getLogger(__name__)

_CACHE: dict[str, str] | None = None


def load_status_stages(base_path: str | Path | None = None) -> dict[str, str]:
    """Return ``{raw status name: stage name}`` from ``workflow.yaml``.

    The default location is the package root. When the file is missing,
    unreadable, or has no ``statuses`` section, ``DEFAULT_STATUS_STAGES`` is
    used instead. Stage names are returned as written; validation happens
    when the table is turned into mapping rows.
    """
    global _CACHE
    if base_path is None and _CACHE is not None:
        return _CACHE
    base = Path(base_path or Path(__file__).resolve().parent.parent)
    yaml_path = base / "workflow.yaml"
    table = dict(DEFAULT_STATUS_STAGES)
    if yaml_path.exists():
        try:
            data = yaml.safe_load(yaml_path.read_text()) or {}
            statuses = data.get("statuses") or {}
            if statuses:
                table = {str(k).strip(): str(v).strip() for k, v in statuses.items()}
        except (OSError, yaml.YAMLError, AttributeError) as exc:
            logger.warning("Could not read %s, using built-in table: %s", yaml_path, exc)
    if base_path is None:
        _CACHE = table
    return table


def clear_cache() -> None:
    global _CACHE
    _CACHE = None
