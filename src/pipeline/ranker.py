"""Ranking policies.

Gear variant: top-K cheapest with a tracked price.
Housing variant: criteria filter, then merge with the previous result set,
  flagging entries whose id was not seen before.
"""

import logging

from src.core.schemas import Listing, SearchCriteria

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 3

UNAVAILABLE_PRICE_MARKERS = frozenset({"price not shown", "contact for price"})


def is_priced(listing: Listing) -> bool:
    """True if the listing has a usable numeric price."""
    if listing.price_text.strip().lower() in UNAVAILABLE_PRICE_MARKERS:
        return False
    return listing.is_price_tracked


def top_k_cheapest(listings: list[Listing], k: int = DEFAULT_TOP_K) -> list[Listing]:
    """Return the k cheapest priced listings, ascending.

    sorted() is stable, so equal prices keep adapter arrival order.
    """
    priced = [listing for listing in listings if is_priced(listing)]
    dropped = len(listings) - len(priced)
    if dropped:
        logger.debug("Ranker: excluded %d listings without a price", dropped)
    return sorted(priced, key=lambda listing: listing.price_value)[:k]


def matches_criteria(listing: Listing, criteria: SearchCriteria) -> bool:
    """Check a housing listing against the configured bounds."""
    if criteria.postal_codes and not any(code in listing.location for code in criteria.postal_codes):
        return False
    checks = (
        (listing.price_value if listing.is_price_tracked else None, criteria.price_min, criteria.price_max),
        (listing.beds, criteria.beds_min, criteria.beds_max),
        (listing.baths, criteria.baths_min, None),
        (listing.sqft, criteria.sqft_min, criteria.sqft_max),
    )
    for value, low, high in checks:
        if low is None and high is None:
            continue
        if value is None:
            return False
        if low is not None and value < low:
            return False
        if high is not None and value > high:
            return False
    return True


def filter_by_criteria(listings: list[Listing], criteria: SearchCriteria) -> list[Listing]:
    matched = [listing for listing in listings if matches_criteria(listing, criteria)]
    removed = len(listings) - len(matched)
    if removed:
        logger.debug("Ranker: %d listings outside search criteria", removed)
    return matched


def flag_new(listings: list[Listing], previous: list[Listing]) -> list[Listing]:
    """Return copies with is_new set by id membership in the previous snapshot."""
    previous_ids = {listing.id for listing in previous}
    flagged: list[Listing] = []
    for listing in listings:
        is_new = listing.id not in previous_ids
        if is_new:
            logger.info("New listing: %s - %s", listing.title, listing.price_text)
        flagged.append(listing.model_copy(update={"is_new": is_new}))
    return flagged


def merge_with_previous(candidates: list[Listing], previous: list[Listing]) -> list[Listing]:
    """Flag new listings against the previous snapshot and sort by price.

    The merged set is exactly the new pull (first occurrence of each id):
    previously known listings that the sources no longer return are dropped.
    """
    unique: dict[str, Listing] = {}
    for listing in candidates:
        unique.setdefault(listing.id, listing)

    dropped = {listing.id for listing in previous} - unique.keys()
    if dropped:
        logger.info("Dropped %d listings no longer returned by sources", len(dropped))

    merged = flag_new(list(unique.values()), previous)
    return sorted(merged, key=lambda listing: listing.price_value)
