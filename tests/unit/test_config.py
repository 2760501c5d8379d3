"""Tests for environment configuration loading."""

from __future__ import annotations

import pytest

from resourcemap.config import load_config
from resourcemap.graph.models import DEFAULT_NODE_WEIGHTS
from resourcemap.models.config import GraphConfig


class TestLoadConfig:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for key in ("LOG_LEVEL", "GROUP_BY", "GROUPING_ENABLED", "WEIGHT_OVERRIDES"):
            monkeypatch.delenv(f"RESOURCEMAP_{key}", raising=False)
        config = load_config()
        assert config.log.level == "info"
        assert config.graph.group_by is None
        assert config.graph.grouping_enabled is True
        assert config.graph.node_weights() is DEFAULT_NODE_WEIGHTS

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RESOURCEMAP_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("RESOURCEMAP_GROUP_BY", "Namespace")
        monkeypatch.setenv("RESOURCEMAP_GROUPING_ENABLED", "false")
        monkeypatch.setenv("RESOURCEMAP_WEIGHT_OVERRIDES", "Pod=900, Widget=700,")
        config = load_config()
        assert config.log.level == "debug"
        assert config.graph.group_by == "namespace"
        assert config.graph.grouping_enabled is False
        assert config.graph.weight_overrides == {"Pod": 900, "Widget": 700}

    @pytest.mark.parametrize(
        ("key", "value"),
        [
            ("LOG_LEVEL", "verbose"),
            ("GROUP_BY", "cluster"),
            ("WEIGHT_OVERRIDES", "Pod:900"),
            ("WEIGHT_OVERRIDES", "Pod=heavy"),
        ],
    )
    def test_invalid_values_raise(self, monkeypatch: pytest.MonkeyPatch, key: str, value: str) -> None:
        monkeypatch.setenv(f"RESOURCEMAP_{key}", value)
        with pytest.raises(ValueError):
            load_config()


class TestGraphConfig:
    def test_overrides_are_merged_over_defaults(self) -> None:
        weights = GraphConfig(weight_overrides={"Pod": 10, "Widget": 700}).node_weights()
        assert weights["Pod"] == 10
        assert weights["Widget"] == 700
        assert weights["Deployment"] == DEFAULT_NODE_WEIGHTS["Deployment"]
        assert DEFAULT_NODE_WEIGHTS["Pod"] == 800
