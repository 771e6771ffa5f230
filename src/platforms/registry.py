"""Builds the configured set of source adapters, in configured order."""

import logging

from src.browser.session import BrowserSession
from src.core.config import Settings
from src.platforms.base import SourceAdapter
from src.platforms.feed import FeedAdapter
from src.platforms.marketplace.adapter import CraigslistAdapter, EbayAdapter, ReverbAdapter

logger = logging.getLogger(__name__)

_MARKETPLACE = {
    "reverb": ReverbAdapter,
    "ebay": EbayAdapter,
    "craigslist": CraigslistAdapter,
}


def build_adapters(settings: Settings, session: BrowserSession) -> list[SourceAdapter]:
    """Instantiate one adapter per enabled source.

    Browser adapters share ``session``; it only launches if one of them runs.
    """
    adapters: list[SourceAdapter] = []
    for name in settings.adapters.enabled:
        if name == "feed":
            adapters.append(FeedAdapter(settings.housing.feed_path))
        else:
            adapters.append(_MARKETPLACE[name](session, settings.adapters.max_results))
    logger.debug("Enabled sources: %s", [a.source_id for a in adapters])
    return adapters
