"""Configuration loading from environment variables."""

from __future__ import annotations

import os
import re

from resourcemap.graph.grouping import GroupBy
from resourcemap.models.config import GraphConfig, LogConfig, ResourceMapConfig

_RE_WEIGHT_OVERRIDE = re.compile(r"^\s*([A-Za-z][A-Za-z0-9]*|default)\s*=\s*(-?[0-9]+)\s*$")


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"RESOURCEMAP_{key}", default)


def _env_bool(key: str, default: bool = False) -> bool:
    val = _env(key, str(default).lower())
    return val.lower() in ("true", "1", "yes")


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def _validate_group_by(value: str) -> str | None:
    if not value:
        return None
    valid = {g.value for g in GroupBy}
    if value.lower() not in valid:
        raise ValueError(f"Invalid group by: {value}. Must be one of {valid} or empty")
    return value.lower()


def _parse_weight_overrides(value: str) -> dict[str, int]:
    """Parse ``Kind=weight`` pairs separated by commas."""
    overrides: dict[str, int] = {}
    for item in value.split(","):
        if not item.strip():
            continue
        match = _RE_WEIGHT_OVERRIDE.match(item)
        if match is None:
            raise ValueError(f"Invalid weight override: {item.strip()}")
        overrides[match.group(1)] = int(match.group(2))
    return overrides


def load_config() -> ResourceMapConfig:
    """Load configuration from RESOURCEMAP_* environment variables."""
    return ResourceMapConfig(
        graph=GraphConfig(
            group_by=_validate_group_by(_env("GROUP_BY", "")),
            grouping_enabled=_env_bool("GROUPING_ENABLED", True),
            weight_overrides=_parse_weight_overrides(_env("WEIGHT_OVERRIDES", "")),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "info")),
        ),
    )
