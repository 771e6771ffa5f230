"""Marketplace adapters (Reverb, eBay, Craigslist) on a shared browser page flow.

Rules:
  - Every selector lookup walks a fallback tuple.
  - A card without a title is skipped; any other missing field is left out
    of the raw record and defaulted later by the normalizer.
  - fetch() never raises for navigation or markup problems: it logs and
    returns whatever it has (usually []).
"""

import logging
from abc import abstractmethod
from typing import Any, Protocol, runtime_checkable
from urllib.parse import quote_plus, urljoin

from src.browser.actions import find_cards, scroll_to_load, settle
from src.browser.session import BrowserSession
from src.platforms.base import RawCandidate, SourceAdapter
from src.platforms.marketplace import selectors as sel
from src.platforms.marketplace.regions import craigslist_subdomain

logger = logging.getLogger(__name__)

DEFAULT_MAX_RESULTS = 12

# eBay category 619 = Musical Instruments & Gear
EBAY_CATEGORY = "619"


@runtime_checkable
class ElementLike(Protocol):
    """Minimal element interface so tests can use AsyncMock instead of patchright."""

    async def query_selector(self, selector: str) -> "ElementLike | None": ...
    async def get_attribute(self, name: str) -> str | None: ...
    async def text_content(self) -> str | None: ...


class MarketplaceAdapter(SourceAdapter):
    """Opens a page, loads the search URL and parses result cards.

    Subclasses provide the URL, the card selectors and ``parse_card``.
    """

    display_name = ""
    base_url = ""
    card_selectors: tuple[str, ...] = ()

    def __init__(self, session: BrowserSession, max_results: int = DEFAULT_MAX_RESULTS) -> None:
        self._session = session
        self._max_results = max_results
        self._page_url = self.base_url

    @abstractmethod
    def build_url(self, term: str, region: str) -> str:
        """Search page URL for an already sanitized term and postal code."""

    @abstractmethod
    async def parse_card(self, card: ElementLike) -> RawCandidate | None:
        """Raw record for one result card, or None to skip it."""

    async def fetch(self, term: str, region: str, timeout: float) -> list[RawCandidate]:
        url = self.build_url(term, region)
        self._page_url = url
        page = None
        try:
            page = await self._session.new_page()
            logger.info("Loading %s: %s", self.display_name, url)
            await page.goto(url, wait_until="domcontentloaded", timeout=int(timeout * 1000))
            await settle(1.0, 2.0)
            await scroll_to_load(page, self.card_selectors, want=self._max_results)
            cards = await find_cards(page, self.card_selectors)
            if not cards:
                logger.warning("%s: no cards found with any selector", self.display_name)
            results = await self.parse_cards(cards)
        except Exception:
            logger.warning("%s search failed", self.display_name, exc_info=True)
            return []
        finally:
            if page is not None:
                await _close_quietly(page)
        logger.info("Found %d on %s", len(results), self.display_name)
        return results

    async def parse_cards(self, cards: list[Any]) -> list[RawCandidate]:
        """Parse cards in order, skipping any that fail, up to max_results."""
        results: list[RawCandidate] = []
        for card in cards:
            if len(results) >= self._max_results:
                break
            try:
                raw = await self.parse_card(card)
            except Exception:
                logger.debug("Failed to parse %s card, skipping", self.display_name, exc_info=True)
                continue
            if raw is not None:
                results.append(raw)
        return results

    # --- Element helpers ---

    async def _text(self, parent: ElementLike, selectors: tuple[str, ...]) -> str:
        el = await _find_first(parent, selectors)
        if el is None:
            return ""
        text = await el.text_content()
        return " ".join(text.split()) if text else ""

    async def _href(self, parent: ElementLike, selectors: tuple[str, ...]) -> str | None:
        el = await _find_first(parent, selectors)
        if el is None:
            return None
        href = await el.get_attribute("href")
        if not href:
            return None
        return urljoin(self._page_url, href.strip())

    async def _image(self, parent: ElementLike) -> str | None:
        el = await _find_first(parent, sel.IMAGE)
        if el is None:
            return None
        src = await el.get_attribute("src")
        return src.strip() if src and src.strip() else None


class ReverbAdapter(MarketplaceAdapter):
    display_name = "Reverb"
    base_url = "https://reverb.com"
    card_selectors = sel.REVERB_CARDS

    @property
    def source_id(self) -> str:
        return "reverb"

    def build_url(self, term: str, region: str) -> str:
        return f"{self.base_url}/marketplace?query={quote_plus(term)}"

    async def parse_card(self, card: ElementLike) -> RawCandidate | None:
        title = await self._text(card, sel.REVERB_TITLE)
        url = await self._href(card, sel.REVERB_LINK)
        if not title or url is None:
            return None
        raw: RawCandidate = {
            "title": title,
            "url": url,
            "image": await self._image(card),
            "source": self.display_name,
            "condition": "Used",
            "location": "Ships nationwide",
        }
        price = await self._text(card, sel.REVERB_PRICE)
        if price:
            raw["price"] = price
        return raw


class EbayAdapter(MarketplaceAdapter):
    display_name = "eBay"
    base_url = "https://www.ebay.com"
    card_selectors = sel.EBAY_CARDS

    @property
    def source_id(self) -> str:
        return "ebay"

    def build_url(self, term: str, region: str) -> str:
        return (
            f"{self.base_url}/sch/i.html?_nkw={quote_plus(term)}"
            f"&_sacat={EBAY_CATEGORY}&_stpos={region}"
        )

    async def parse_card(self, card: ElementLike) -> RawCandidate | None:
        title = await self._text(card, sel.EBAY_TITLE)
        if not title or sel.EBAY_PROMO_TITLE in title:
            return None
        raw: RawCandidate = {
            "title": title,
            "url": await self._href(card, sel.EBAY_LINK),
            "image": await self._image(card),
            "source": self.display_name,
            "condition": "Varies",
            "location": "Ships nationwide",
        }
        price = await self._text(card, sel.EBAY_PRICE)
        if price:
            raw["price"] = price
        return raw


class CraigslistAdapter(MarketplaceAdapter):
    display_name = "Craigslist"
    card_selectors = sel.CRAIGSLIST_CARDS

    @property
    def source_id(self) -> str:
        return "craigslist"

    def build_url(self, term: str, region: str) -> str:
        site = f"https://{craigslist_subdomain(region)}.craigslist.org"
        return f"{site}/search/sss?query={quote_plus(term)}"

    async def parse_card(self, card: ElementLike) -> RawCandidate | None:
        title = await self._text(card, sel.CRAIGSLIST_TITLE)
        if not title:
            return None
        return {
            "title": title,
            "price": await self._text(card, sel.CRAIGSLIST_PRICE) or "Contact for price",
            "url": await self._href(card, sel.CRAIGSLIST_LINK),
            "image": await self._image(card),
            "source": self.display_name,
            "condition": "Used",
            "location": await self._text(card, sel.CRAIGSLIST_LOCATION) or "Local",
        }


async def _find_first(parent: ElementLike, selectors: tuple[str, ...]) -> ElementLike | None:
    """Return the first element matching any selector in order."""
    for selector in selectors:
        try:
            el = await parent.query_selector(selector)
            if el is not None:
                return el
        except Exception:
            logger.debug("Selector '%s' raised, trying next", selector, exc_info=True)
    return None


async def _close_quietly(page: Any) -> None:
    try:
        await page.close()
    except Exception:
        logger.debug("Failed to close page", exc_info=True)
