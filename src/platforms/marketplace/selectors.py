"""DOM selector tables per marketplace, each a fallback tuple tried in order."""

# --- Reverb ---
REVERB_CARDS: tuple[str, ...] = (
    '[data-testid="grid-tile"]',
    '[data-testid="listing-card"]',
    '[role="listitem"]',
    ".grid-card",
    ".listing-card",
)
REVERB_LINK: tuple[str, ...] = ('a[href*="/item/"]', 'a[href^="/p/"]', ".grid-card__title a")
REVERB_TITLE: tuple[str, ...] = ('[data-testid="title"]', ".grid-card__title", "h4", "h3", "h2", ".title")
REVERB_PRICE: tuple[str, ...] = (
    '[data-testid="price"]',
    ".price-display",
    ".grid-card__price",
    'span[class*="price"]',
    ".price",
)

# --- eBay ---
EBAY_CARDS: tuple[str, ...] = ("li.s-item", ".s-item", "li.s-card")
EBAY_LINK: tuple[str, ...] = ("a.s-item__link", ".s-item__link", "a.su-link")
EBAY_TITLE: tuple[str, ...] = (".s-item__title span", ".s-item__title", ".s-card__title")
EBAY_PRICE: tuple[str, ...] = (".s-item__price", ".s-card__price")

# Promo tile eBay renders as the first result
EBAY_PROMO_TITLE = "Shop on eBay"

# --- Craigslist ---
CRAIGSLIST_CARDS: tuple[str, ...] = (".cl-search-result", "li.cl-static-search-result", ".result-row")
CRAIGSLIST_LINK: tuple[str, ...] = ("a.posting-title", "a.titlestring", "a")
CRAIGSLIST_TITLE: tuple[str, ...] = (".result-title", ".title", ".titlestring", ".label")
CRAIGSLIST_PRICE: tuple[str, ...] = (".result-price", ".priceinfo", ".price")
CRAIGSLIST_LOCATION: tuple[str, ...] = (".result-hood", ".location", ".meta .location")

IMAGE: tuple[str, ...] = ("img",)
