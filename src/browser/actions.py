"""Page helpers shared by the marketplace adapters: jittered waits and lazy-load scrolling."""

import asyncio
import logging
import random
from typing import Any

logger = logging.getLogger(__name__)

MAX_SCROLL_ROUNDS = 3
SETTLE_FLOOR = 0.5


async def settle(min_s: float, max_s: float) -> float:
    """Wait a random duration in [min_s, max_s], never less than SETTLE_FLOOR.

    Returns the duration waited.
    """
    low = max(min_s, SETTLE_FLOOR)
    high = max(max_s, low)
    duration = random.uniform(low, high)
    await asyncio.sleep(duration)
    return duration


async def find_cards(page: Any, selectors: tuple[str, ...]) -> list[Any]:
    """Return elements for the first selector that matches anything."""
    for selector in selectors:
        cards = await page.query_selector_all(selector)
        if cards:
            logger.debug("Found %d cards with selector '%s'", len(cards), selector)
            return list(cards)
    return []


async def scroll_to_load(
    page: Any,
    selectors: tuple[str, ...],
    *,
    want: int,
    max_rounds: int = MAX_SCROLL_ROUNDS,
) -> int:
    """Scroll until at least ``want`` cards are present or the count stops growing.

    Returns the last card count seen.
    """
    count = len(await find_cards(page, selectors))
    for _ in range(max_rounds):
        if count >= want:
            break
        await page.evaluate("window.scrollBy(0, document.body.scrollHeight)")
        await settle(0.5, 1.5)
        new_count = len(await find_cards(page, selectors))
        if new_count <= count:
            break
        count = new_count
    return count
