"""Tests for worker configuration.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

import json

import pytest

from roadoffline_core.config import WorkerConfig, load_config
from roadoffline_core.exceptions import ConfigError
from roadoffline_core.lifecycle.precache import DEFAULT_PRECACHE
from roadoffline_core.routing.router import RouteClass, StrategyName


class TestWorkerConfig:
    """Tests for WorkerConfig."""

    def test_defaults(self):
        """Defaults describe the stock application."""
        config = WorkerConfig()
        assert config.generation_name == "hadiye-v1.0.0"
        assert config.precache == list(DEFAULT_PRECACHE)
        assert config.skip_waiting_on_install
        assert config.strategy.offline_url == "/offline.html"

    def test_bare_tag_without_prefix(self):
        """An empty prefix names generations by tag alone."""
        assert WorkerConfig(version_tag="v2", cache_prefix="").generation_name == "v2"

    @pytest.mark.parametrize("kwargs,field", [
        ({"version_tag": ""}, "version_tag"),
        ({"precache_concurrency": 0}, "precache_concurrency"),
        ({"network_timeout": 0}, "network_timeout"),
    ])
    def test_validation(self, kwargs, field):
        """Invalid values are rejected."""
        with pytest.raises(ConfigError) as exc_info:
            WorkerConfig(**kwargs)
        assert exc_info.value.field == field


class TestFromDict:
    """Tests for WorkerConfig.from_dict."""

    def test_nested_sections(self):
        """Router, strategy and storage sections are parsed."""
        config = WorkerConfig.from_dict({
            "version_tag": "v3",
            "precache": ["/"],
            "router": {
                "safe_methods": ["get", "head"],
                "external_hosts": ["cdn.test"],
                "strategies": {"document": "cache-first"},
            },
            "strategy": {"cache_error_responses": True},
            "storage": {"serializer": "json", "compression": "gzip"},
        })

        assert config.generation_name == "hadiye-v3"
        assert config.router.safe_methods == frozenset({"GET", "HEAD"})
        assert config.router.external_hosts == ("cdn.test",)
        assert config.router.strategies[RouteClass.DOCUMENT] == StrategyName.CACHE_FIRST
        assert config.router.strategies[RouteClass.STATIC_ASSET] == StrategyName.STALE_WHILE_REVALIDATE
        assert config.strategy.cache_error_responses
        assert config.storage.serializer == "json"

    def test_unknown_keys_ignored(self):
        """Unknown keys are warned about, not fatal."""
        config = WorkerConfig.from_dict({"version_tag": "v1", "colour": "blue", "router": {"speed": 3}})
        assert config.version_tag == "v1"

    def test_invalid_strategy(self):
        """Unknown strategy names are rejected."""
        with pytest.raises(ConfigError):
            WorkerConfig.from_dict({"router": {"strategies": {"document": "cache-only"}}})


class TestLoadConfig:
    """Tests for load_config."""

    def test_load(self, tmp_path):
        """JSON files load into WorkerConfig."""
        path = tmp_path / "offline.json"
        path.write_text(json.dumps({"version_tag": "v9", "cache_prefix": "app"}))

        assert load_config(path).generation_name == "app-v9"

    def test_missing_file(self, tmp_path):
        """A missing file is a ConfigError."""
        with pytest.raises(ConfigError):
            load_config(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        """Malformed JSON is a ConfigError."""
        path = tmp_path / "offline.json"
        path.write_text("{not json")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_non_object_root(self, tmp_path):
        """The root must be an object."""
        path = tmp_path / "offline.json"
        path.write_text("[]")
        with pytest.raises(ConfigError):
            load_config(path)
