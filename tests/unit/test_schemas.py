"""Tests for core schemas: SearchRequest, Listing, QueueState, ResultDocument."""

import json
import math
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from src.core.schemas import (
    CompletedSearch,
    LastSearch,
    Listing,
    QueueState,
    ResultDocument,
    SearchRequest,
)


def _request(**overrides: object) -> SearchRequest:
    defaults: dict[str, object] = {
        "id": "abc123",
        "term": "Fender Stratocaster",
        "postal_code": "29710",
    }
    defaults.update(overrides)
    return SearchRequest(**defaults)  # type: ignore[arg-type]


class TestSearchRequest:
    def test_defaults(self) -> None:
        r = _request()
        assert r.sources == ["reverb", "ebay", "craigslist"]
        assert r.requested_at.tzinfo is not None

    def test_frozen(self) -> None:
        r = _request()
        with pytest.raises(ValidationError):
            r.term = "Other"  # type: ignore[misc]

    def test_term_is_sanitized(self) -> None:
        assert _request(term="  Boss   DS-1 ").term == "Boss DS-1"

    def test_hostile_term_rejected(self) -> None:
        with pytest.raises(ValidationError):
            _request(term="<script>alert(1)</script>")

    def test_postal_code_is_sanitized(self) -> None:
        assert _request(postal_code="29710-1234").postal_code == "29710"

    def test_bad_id_rejected(self) -> None:
        with pytest.raises(ValidationError):
            _request(id="abc-123")

    def test_sources_deduplicated_and_lowercased(self) -> None:
        r = _request(sources=["eBay", "ebay", "reverb"])
        assert r.sources == ["ebay", "reverb"]

    def test_unknown_source_rejected(self) -> None:
        with pytest.raises(ValidationError, match="unknown source"):
            _request(sources=["myspace"])

    def test_empty_sources_rejected(self) -> None:
        with pytest.raises(ValidationError):
            _request(sources=[])

    def test_camel_case_json(self) -> None:
        data = _request().model_dump(mode="json", by_alias=True)
        assert data["postalCode"] == "29710"
        assert "requestedAt" in data

    def test_accepts_camel_case_input(self) -> None:
        r = SearchRequest.model_validate({"id": "x1", "term": "amp", "postalCode": "10001"})
        assert r.postal_code == "10001"


class TestCompletedSearch:
    def test_extends_request(self) -> None:
        c = CompletedSearch(**_request().model_dump(), result_count=3, success=True)
        assert c.term == "Fender Stratocaster"
        assert c.result_count == 3
        assert c.message == ""


class TestListing:
    def test_untracked_price_serialized_as_null(self) -> None:
        listing = Listing(
            id="1", title="Amp", price_text="Price not shown",
            source="eBay", location="Local", condition="Used",
        )
        data = listing.model_dump(mode="json", by_alias=True)
        assert data["priceValue"] is None
        assert data["priceText"] == "Price not shown"
        assert data["isNew"] is False

    def test_null_price_reads_back_as_untracked(self) -> None:
        listing = Listing.model_validate({
            "id": "1", "title": "Amp", "priceText": "?", "priceValue": None,
            "source": "eBay", "location": "Local", "condition": "Used",
        })
        assert math.isinf(listing.price_value)
        assert listing.is_price_tracked is False

    def test_json_is_strict_json(self) -> None:
        listing = Listing(
            id="1", title="Amp", price_text="?", source="eBay", location="Local", condition="Used",
        )
        json.loads(listing.model_dump_json(by_alias=True))


class TestResultDocument:
    def test_round_trip_with_null_optional_field(self) -> None:
        listings = [
            Listing(
                id="a", title="Strat", price_text="$500", price_value=500.0, source="Reverb",
                location="Ships nationwide", url="https://reverb.com/item/a", image=None,
                condition="Used", is_new=True,
            ),
            Listing(
                id="b", title="Tele", price_text="Price not shown", source="eBay",
                location="Ships nationwide", url=None, condition="Varies",
            ),
        ]
        doc = ResultDocument(
            last_search=LastSearch(term="guitar", postal_code="29710"),
            listings=listings,
        )
        restored = ResultDocument.model_validate_json(doc.model_dump_json(by_alias=True))
        assert restored.listings == listings
        assert restored.last_search == doc.last_search


class TestQueueState:
    def test_empty_defaults(self) -> None:
        s = QueueState()
        assert s.pending_searches == []
        assert s.processing is None
        assert s.current_progress == 0

    def test_progress_bounds(self) -> None:
        with pytest.raises(ValidationError):
            QueueState(current_progress=101)

    def test_json_keys(self) -> None:
        s = QueueState(last_checked=datetime(2026, 1, 1, tzinfo=timezone.utc))
        data = s.model_dump(mode="json", by_alias=True)
        assert set(data) >= {
            "pendingSearches", "processing", "currentProgress",
            "statusMessage", "completedSearches", "lastChecked",
        }
