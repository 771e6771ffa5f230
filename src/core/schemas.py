"""Core data models for the acquisition queue.

JSON documents use camelCase keys (they are read by the site's display
layer); Python attributes stay snake_case. Both spellings are accepted on
input.
"""

import math
from datetime import datetime, timezone
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
)
from pydantic.alias_generators import to_camel

from src.pipeline.sanitizer import (
    sanitize_postal_code,
    sanitize_term,
    validate_request_id,
)

UNTRACKED_PRICE = math.inf

KNOWN_SOURCES: tuple[str, ...] = ("reverb", "ebay", "craigslist", "feed")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _Document(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SearchRequest(_Document):
    """A sanitized search request. Frozen: consumed once, never mutated."""

    model_config = ConfigDict(frozen=True)

    id: str
    term: str
    postal_code: str
    sources: list[str] = Field(default_factory=lambda: ["reverb", "ebay", "craigslist"])
    requested_at: datetime = Field(default_factory=utcnow)

    @field_validator("id")
    @classmethod
    def id_alphanumeric(cls, v: str) -> str:
        return validate_request_id(v)

    @field_validator("term")
    @classmethod
    def term_sanitized(cls, v: str) -> str:
        return sanitize_term(v)

    @field_validator("postal_code")
    @classmethod
    def postal_code_sanitized(cls, v: str) -> str:
        return sanitize_postal_code(v)

    @field_validator("sources")
    @classmethod
    def sources_known(cls, v: list[str]) -> list[str]:
        names: list[str] = []
        for name in v:
            key = name.lower().strip()
            if key not in KNOWN_SOURCES:
                msg = f"unknown source '{name}'. Known: {', '.join(KNOWN_SOURCES)}"
                raise ValueError(msg)
            if key not in names:
                names.append(key)
        if not names:
            msg = "at least one source must be selected"
            raise ValueError(msg)
        return names


class CompletedSearch(SearchRequest):
    """History entry: the request plus how it ended."""

    completed_at: datetime = Field(default_factory=utcnow)
    result_count: int = Field(default=0, ge=0)
    success: bool
    message: str = ""


class QueueState(_Document):
    """Snapshot of the queue, persisted after every transition."""

    pending_searches: list[SearchRequest] = Field(default_factory=list)
    processing: SearchRequest | None = None
    processing_started_at: datetime | None = None
    current_progress: int = Field(default=0, ge=0, le=100)
    status_message: str = ""
    completed_searches: list[CompletedSearch] = Field(default_factory=list)
    last_checked: datetime | None = None


class Listing(_Document):
    """A normalized listing from any source.

    price_value is math.inf when the price could not be read; it is written
    to JSON as null and read back as math.inf.
    """

    id: str
    title: str
    price_text: str
    price_value: float = UNTRACKED_PRICE
    source: str
    location: str
    url: str | None = None
    image: str | None = None
    condition: str
    beds: float | None = None
    baths: float | None = None
    sqft: float | None = None
    is_new: bool = False

    @field_validator("price_value", mode="before")
    @classmethod
    def null_price_is_untracked(cls, v: Any) -> Any:
        return UNTRACKED_PRICE if v is None else v

    @field_serializer("price_value")
    def untracked_price_as_null(self, v: float) -> float | None:
        return None if math.isinf(v) else v

    @property
    def is_price_tracked(self) -> bool:
        return not math.isinf(self.price_value)


class SearchCriteria(_Document):
    """Housing filter bounds. A bound set to None is not applied."""

    postal_codes: list[str] = Field(default_factory=list)
    price_min: float | None = None
    price_max: float | None = None
    beds_min: float | None = None
    beds_max: float | None = None
    baths_min: float | None = None
    sqft_min: float | None = None
    sqft_max: float | None = None


class LastSearch(_Document):
    """Gear variant: which request produced the current result set."""

    term: str
    postal_code: str
    timestamp: datetime = Field(default_factory=utcnow)


class ResultDocument(_Document):
    """The published result set. Overwritten wholesale on every successful job."""

    last_updated: datetime = Field(default_factory=utcnow)
    last_checked: datetime = Field(default_factory=utcnow)
    search_criteria: SearchCriteria | None = None
    last_search: LastSearch | None = None
    listings: list[Listing] = Field(default_factory=list)
