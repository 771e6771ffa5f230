"""Normalizer: raw adapter records → canonical Listing.

Rules:
  - Never raises. The worst case is a Listing with placeholders and the
    untracked price sentinel.
  - Every text field is present (placeholder if the source omitted it).
  - price_value is derived only from the price text.
"""

import hashlib
import logging
import re
from collections.abc import Callable, Mapping
from typing import Any

from src.core.schemas import UNTRACKED_PRICE, Listing

logger = logging.getLogger(__name__)

PRICE_PATTERN = re.compile(r"\d[\d,]*(?:\.\d+)?")

PLACEHOLDER_TITLE = "Untitled listing"
PLACEHOLDER_PRICE = "Price not shown"
PLACEHOLDER_LOCATION = "Unknown location"
PLACEHOLDER_CONDITION = "Unknown"

_SAFE_ID = re.compile(r"^[A-Za-z0-9_-]{1,64}$")

# Canonical fields produced by an extraction rule, before defaulting.
Fields = dict[str, Any]


def extract_price(text: object) -> float:
    """Return the first number in ``text`` (commas dropped), or the sentinel."""
    if not isinstance(text, str) or not text:
        return UNTRACKED_PRICE
    match = PRICE_PATTERN.search(text)
    if match is None:
        return UNTRACKED_PRICE
    try:
        return float(match.group(0).replace(",", ""))
    except ValueError:
        return UNTRACKED_PRICE


def normalize(raw: Mapping[str, Any], source: str) -> Listing:
    """Convert one raw candidate into a Listing, whatever shape it arrives in."""
    if not isinstance(raw, Mapping):
        logger.debug("Normalization anomaly: %s record is %s, not a mapping", source, type(raw).__name__)
        raw = {}

    rule = _RULES.get(source, _marketplace_fields)
    try:
        fields = rule(raw)
    except Exception:
        logger.debug("Normalization anomaly in %s record, using placeholders", source, exc_info=True)
        fields = {}

    title = _text(fields.get("title"), PLACEHOLDER_TITLE)
    price_text = _text(fields.get("price"), PLACEHOLDER_PRICE)
    url = _text(fields.get("url"), "") or None

    return Listing(
        id=_listing_id(raw.get("id"), source, url, title),
        title=title,
        price_text=price_text,
        price_value=extract_price(price_text),
        source=_text(fields.get("source"), source),
        location=_text(fields.get("location"), PLACEHOLDER_LOCATION),
        url=url,
        image=_text(fields.get("image"), "") or None,
        condition=_text(fields.get("condition"), PLACEHOLDER_CONDITION),
        beds=_number(fields.get("beds")),
        baths=_number(fields.get("baths")),
        sqft=_number(fields.get("sqft")),
    )


def normalize_all(raws: list[Mapping[str, Any]], source: str) -> list[Listing]:
    return [normalize(raw, source) for raw in raws]


# --- Per-source extraction rules ---


def _marketplace_fields(raw: Mapping[str, Any]) -> Fields:
    return {
        "title": raw.get("title"),
        "price": raw.get("price"),
        "url": raw.get("url"),
        "image": raw.get("image"),
        "source": raw.get("source"),
        "location": raw.get("location"),
        "condition": raw.get("condition"),
    }


def _housing_fields(raw: Mapping[str, Any]) -> Fields:
    city = _text(raw.get("city"), "")
    state_zip = " ".join(p for p in (_text(raw.get("state"), ""), _text(raw.get("zip"), "")) if p)
    location = ", ".join(p for p in (city, state_zip) if p)
    return {
        "title": raw.get("address") or raw.get("title"),
        "price": raw.get("price"),
        "url": raw.get("url"),
        "image": raw.get("image"),
        "source": raw.get("source"),
        "location": location or raw.get("location"),
        "condition": raw.get("status"),
        "beds": raw.get("beds"),
        "baths": raw.get("baths"),
        "sqft": raw.get("sqft"),
    }


_RULES: dict[str, Callable[[Mapping[str, Any]], Fields]] = {
    "reverb": _marketplace_fields,
    "ebay": _marketplace_fields,
    "craigslist": _marketplace_fields,
    "feed": _housing_fields,
    "realtor": _housing_fields,
}


# --- Coercion helpers ---


def _text(value: object, placeholder: str) -> str:
    if value is None:
        return placeholder
    text = " ".join(str(value).split())
    return text or placeholder


def _number(value: object) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        price = extract_price(value)
        return None if price == UNTRACKED_PRICE else price
    return None


def _listing_id(raw_id: object, source: str, url: str | None, title: str) -> str:
    if raw_id is not None:
        candidate = str(raw_id).strip()
        if _SAFE_ID.match(candidate):
            return candidate
    digest = hashlib.sha1(f"{source}|{url or ''}|{title}".encode()).hexdigest()
    return digest[:12]
