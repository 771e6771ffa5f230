"""Tests for configuration models and YAML loading."""

from pathlib import Path
from textwrap import dedent

import pytest
from pydantic import ValidationError

from src.core.config import (
    AdapterConfig,
    BrowserConfig,
    PublisherConfig,
    QueueConfig,
    Settings,
    StorageConfig,
)


class TestQueueConfig:
    def test_defaults(self) -> None:
        q = QueueConfig()
        assert q.history_limit == 10
        assert q.stale_after_minutes == 30
        assert q.top_k == 3

    def test_history_limit_min(self) -> None:
        with pytest.raises(ValidationError):
            QueueConfig(history_limit=0)


class TestAdapterConfig:
    def test_defaults(self) -> None:
        a = AdapterConfig()
        assert a.timeout_seconds == 60.0
        assert a.max_results == 12
        assert a.enabled == ["reverb", "ebay", "craigslist"]

    def test_unknown_source_raises(self) -> None:
        with pytest.raises(ValidationError, match="unknown sources"):
            AdapterConfig(enabled=["reverb", "myspace"])

    def test_timeout_positive(self) -> None:
        with pytest.raises(ValidationError):
            AdapterConfig(timeout_seconds=0)

    def test_max_results_bounds(self) -> None:
        with pytest.raises(ValidationError):
            AdapterConfig(max_results=101)


class TestBrowserConfig:
    def test_defaults(self) -> None:
        b = BrowserConfig()
        assert b.headless is True
        assert b.timeout_ms == 30000
        assert "Chrome" in b.user_agent

    def test_timeout_min(self) -> None:
        with pytest.raises(ValidationError):
            BrowserConfig(timeout_ms=500)


class TestStorageAndPublisher:
    def test_storage_defaults(self) -> None:
        s = StorageConfig()
        assert s.queue_path == "data/search-queue.json"
        assert s.results_path == "data/gear.json"

    def test_publisher_disabled_by_default(self) -> None:
        p = PublisherConfig()
        assert p.enabled is False
        assert p.remote == "origin"
        assert p.branch == "main"


class TestSettings:
    def test_defaults(self) -> None:
        s = Settings()
        assert s.mode == "gear"
        assert s.housing.criteria.postal_codes == []

    def test_load_from_yaml(self, tmp_path: Path) -> None:
        yaml_content = dedent("""\
            mode: housing
            storage:
              queue_path: data/q.json
              results_path: data/listings.json
            queue:
              history_limit: 5
            adapters:
              timeout_seconds: 10
              enabled: [feed]
            housing:
              feed_path: data/feed.json
              criteria:
                postal_codes: ["29710", "29745"]
                price_min: 300000
                price_max: 400000
                baths_min: 2.5
        """)
        config_file = tmp_path / "settings.yaml"
        config_file.write_text(yaml_content)

        settings = Settings.from_yaml(config_file)

        assert settings.mode == "housing"
        assert settings.storage.results_path == "data/listings.json"
        assert settings.queue.history_limit == 5
        assert settings.adapters.enabled == ["feed"]
        assert settings.housing.criteria.postal_codes == ["29710", "29745"]
        assert settings.housing.criteria.price_max == 400000
        assert settings.housing.criteria.beds_min is None

    def test_camel_case_criteria_accepted(self, tmp_path: Path) -> None:
        config_file = tmp_path / "settings.yaml"
        config_file.write_text("housing:\n  criteria:\n    priceMin: 1000\n")
        assert Settings.from_yaml(config_file).housing.criteria.price_min == 1000

    def test_unknown_mode_raises(self, tmp_path: Path) -> None:
        config_file = tmp_path / "settings.yaml"
        config_file.write_text("mode: cars\n")
        with pytest.raises(ValidationError):
            Settings.from_yaml(config_file)

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        config_file = tmp_path / "settings.yaml"
        config_file.write_text("")
        assert Settings.from_yaml(config_file) == Settings()

    def test_file_not_found(self) -> None:
        with pytest.raises(FileNotFoundError):
            Settings.from_yaml("/nonexistent/path.yaml")

    def test_load_example_settings(self) -> None:
        """The shipped config/settings.yaml must be valid."""
        settings = Settings.from_yaml("config/settings.yaml")
        assert settings.mode == "gear"
        assert "29710" in settings.housing.criteria.postal_codes
