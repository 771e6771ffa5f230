"""Configuration models and YAML loader for the acquisition queue."""

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator

from src.core.schemas import KNOWN_SOURCES, SearchCriteria


class StorageConfig(BaseModel):
    """Where the queue and result documents live."""

    queue_path: str = "data/search-queue.json"
    results_path: str = "data/gear.json"


class QueueConfig(BaseModel):
    """Queue bookkeeping limits."""

    history_limit: int = Field(default=10, ge=1)
    stale_after_minutes: int = Field(default=30, ge=1)
    top_k: int = Field(default=3, ge=1)


class AdapterConfig(BaseModel):
    """Source adapter behaviour."""

    timeout_seconds: float = Field(default=60.0, gt=0)
    max_results: int = Field(default=12, ge=1, le=100)
    enabled: list[str] = Field(default_factory=lambda: ["reverb", "ebay", "craigslist"])

    @field_validator("enabled")
    @classmethod
    def enabled_sources_known(cls, v: list[str]) -> list[str]:
        unknown = [name for name in v if name not in KNOWN_SOURCES]
        if unknown:
            msg = f"unknown sources: {unknown}. Known: {list(KNOWN_SOURCES)}"
            raise ValueError(msg)
        return v


class BrowserConfig(BaseModel):
    """Browser used by the marketplace adapters."""

    headless: bool = True
    timeout_ms: int = Field(default=30000, ge=1000)
    user_agent: str = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )
    viewport_width: int = Field(default=1920, ge=320)
    viewport_height: int = Field(default=1080, ge=240)


class PublisherConfig(BaseModel):
    """Git publishing of the queue and result documents."""

    enabled: bool = False
    repo_path: str = "."
    remote: str = "origin"
    branch: str = "main"


class HousingConfig(BaseModel):
    """Housing variant: inventory feed and match criteria."""

    feed_path: str = "data/housing-feed.json"
    criteria: SearchCriteria = Field(default_factory=SearchCriteria)


class Settings(BaseModel):
    """Top-level settings loaded from YAML."""

    mode: Literal["gear", "housing"] = "gear"
    storage: StorageConfig = Field(default_factory=StorageConfig)
    queue: QueueConfig = Field(default_factory=QueueConfig)
    adapters: AdapterConfig = Field(default_factory=AdapterConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    publisher: PublisherConfig = Field(default_factory=PublisherConfig)
    housing: HousingConfig = Field(default_factory=HousingConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)
