"""Configuration data structures."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from resourcemap.graph.models import DEFAULT_NODE_WEIGHTS


@dataclass
class GraphConfig:
    """Graph view configuration."""

    group_by: str | None = None
    grouping_enabled: bool = True
    weight_overrides: dict[str, int] = field(default_factory=dict)

    def node_weights(self) -> Mapping[str, int]:
        """Return the default weight table with overrides applied."""
        if not self.weight_overrides:
            return DEFAULT_NODE_WEIGHTS
        return MappingProxyType({**DEFAULT_NODE_WEIGHTS, **self.weight_overrides})


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"


@dataclass
class ResourceMapConfig:
    """Top-level resourcemap configuration."""

    graph: GraphConfig = field(default_factory=GraphConfig)
    log: LogConfig = field(default_factory=LogConfig)
