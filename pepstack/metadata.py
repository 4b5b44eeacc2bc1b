"""Display metadata for interaction types and severity levels."""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from pepstack.sources import DataHealthTracker

logger = logging.getLogger(__name__)

INTERACTION_TYPES: Dict[str, Dict[str, str]] = {
    "synergy": {
        "label": "Synergy",
        "color": "#10b981",
        "bg_color": "#10b98120",
        "icon": "✓",
        "description": "These compounds work well together and may enhance effects",
    },
    "neutral": {
        "label": "Neutral",
        "color": "#6b7280",
        "bg_color": "#6b728020",
        "icon": "•",
        "description": "No significant interaction known",
    },
    "caution": {
        "label": "Caution",
        "color": "#f59e0b",
        "bg_color": "#f59e0b20",
        "icon": "!",
        "description": "Use with care - monitor for adverse effects",
    },
    "avoid": {
        "label": "Avoid",
        "color": "#ef4444",
        "bg_color": "#ef444420",
        "icon": "✕",
        "description": "Do not combine - significant risk of adverse effects",
    },
}

SEVERITY_LEVELS: Dict[str, Dict[str, str]] = {
    "low": {"label": "Low", "color": "#10b981"},
    "medium": {"label": "Medium", "color": "#f59e0b"},
    "high": {"label": "High", "color": "#ef4444"},
}

DEFAULT_RULES_FILENAME = "interaction_types.yaml"


def _defaults() -> Dict[str, Dict[str, Dict[str, str]]]:
    return {
        "types": copy.deepcopy(INTERACTION_TYPES),
        "severities": copy.deepcopy(SEVERITY_LEVELS),
    }


def _merge_section(target: Dict[str, Dict[str, str]], overrides: Any, section: str) -> None:
    if overrides is None:
        return
    if not isinstance(overrides, dict):
        raise ValueError(f"'{section}' must be a mapping")
    for key, values in overrides.items():
        # Only known keys can be restyled; the type/severity vocabulary is fixed.
        if key not in target:
            logger.warning("Ignoring unknown %s entry %r in display rules", section, key)
            continue
        if not isinstance(values, dict):
            raise ValueError(f"'{section}.{key}' must be a mapping")
        target[key].update({str(k): str(v) for k, v in values.items() if v is not None})


def load_display_metadata(
    path: Optional[str | Path] = None,
    data_dir: Optional[str | Path] = None,
    health: Optional[DataHealthTracker] = None,
) -> Dict[str, Dict[str, Dict[str, str]]]:
    """Return type/severity display metadata with optional YAML overrides.

    An explicit ``path`` that is missing or invalid is recorded as a health
    issue; the implicit ``<data_dir>/interaction_types.yaml`` is optional.
    """

    metadata = _defaults()
    explicit = path is not None
    if explicit:
        config_path = Path(path)
    elif data_dir is not None:
        config_path = Path(data_dir) / DEFAULT_RULES_FILENAME
    else:
        return metadata

    if not config_path.exists():
        if explicit and health is not None:
            health.record_failure(config_path.name, f"Missing display rules at {config_path}")
        return metadata

    try:
        with open(config_path, encoding="utf-8") as fh:
            content = yaml.safe_load(fh) or {}
        if not isinstance(content, dict):
            raise ValueError("top level must be a mapping")
        _merge_section(metadata["types"], content.get("types"), "types")
        _merge_section(metadata["severities"], content.get("severities"), "severities")
    except (OSError, yaml.YAMLError, ValueError) as exc:
        logger.error("Invalid display rules %s: %s", config_path, exc)
        if health is not None:
            health.record_failure(config_path.name, f"Invalid display rules {config_path.name}: {exc}")
        return _defaults()

    if health is not None:
        health.record_success(config_path.name)
    return metadata
