"""Page extraction: navigation, waits, and structured-data parsing.

A single extraction runs as a fixed sequence:

    navigate → anti-bot wait (stealth stores) → content-readiness wait
      → cookie dismissal → structured data + meta fallbacks
      → adapter DOM fallback (only if fields are missing) → post-process

Every wait is a bounded poll. Timeouts and navigation errors are logged and
the sequence continues with whatever the page yielded.
"""

import json
import re
import time
from typing import Any, Iterator, Optional

import structlog
from bs4 import BeautifulSoup
from playwright.async_api import Error as PlaywrightError, Page

from fashion.config import settings
from fashion.scrapers.base import (
    DESCRIPTION_MAX_LENGTH,
    BaseStoreAdapter,
    NormalizedProduct,
    RawExtraction,
    StoreConfig,
)

logger = structlog.get_logger(__name__)

CHALLENGE_TITLES = ("Just a moment...", "Attention Required")
CHALLENGE_TITLE_FRAGMENTS = ("Attention", "Access Denied")
# Interstitial-only markup. Cleared pages on Cloudflare sites still load
# /cdn-cgi/challenge-platform/ scripts, so that path is not a signal.
CHALLENGE_CONTENT_MARKERS = ('id="challenge-form"', 'id="cf-challenge-running"')

JSONLD_SELECTOR = 'script[type="application/ld+json"]'
PRICE_SELECTORS = (
    '[itemprop="price"]',
    '[class*="price"]',
    '[class*="Price"]',
    '[data-testid*="price"]',
)

COOKIE_SELECTORS = (
    "#onetrust-accept-btn-handler",
    'button[id*="accept"]',
    'button[id*="cookie"]',
    'button[id*="consent"]',
    'button[class*="accept"]',
    'button[class*="consent"]',
    '[data-testid*="accept"]',
    '[data-testid*="cookie"]',
)

# Variant names end in " - <size>"
_SIZE_SUFFIX = re.compile(r"\s*-\s*(XXS|XS|S|M|L|XL|XXL|\d{1,2}(\.5)?)\s*$", re.IGNORECASE)
_VARIANT_SIZE = re.compile(r"\s-\s(.+)$")
_SKU_STYLE_CODE = re.compile(r"^(.+)-\d+(\.5)?$")


# ===== STRUCTURED DATA =====

def _has_type(node: dict, type_name: str) -> bool:
    node_type = node.get("@type")
    if isinstance(node_type, list):
        return type_name in node_type
    return node_type == type_name


def _iter_nodes(data: Any) -> Iterator[dict]:
    """Flatten top-level lists and ``@graph`` containers."""
    if isinstance(data, list):
        for item in data:
            yield from _iter_nodes(item)
    elif isinstance(data, dict):
        if "@graph" in data:
            yield from _iter_nodes(data["@graph"])
        else:
            yield data


def _as_list(value: Any) -> list:
    if value is None:
        return []
    return value if isinstance(value, list) else [value]


def _image_url(value: Any) -> str:
    img = _as_list(value)[0] if _as_list(value) else ""
    if isinstance(img, dict):
        return img.get("url") or img.get("contentUrl") or ""
    return img if isinstance(img, str) else ""


def _brand_name(value: Any) -> str:
    if isinstance(value, dict):
        return value.get("name") or ""
    return value if isinstance(value, str) else ""


def _in_stock(offer: Any) -> bool:
    if not isinstance(offer, dict):
        return False
    return "InStock" in str(offer.get("availability") or "")


def _price_text(value: Any) -> str:
    return "" if value is None else str(value)


def _variant_size(variant: dict) -> str:
    name = variant.get("name") or ""
    match = _VARIANT_SIZE.search(name)
    if match:
        return match.group(1).strip()
    sku = variant.get("sku") or ""
    if sku:
        return sku.split("-")[-1]
    return str(variant.get("size") or "")


def _parse_product_group(ld: dict, result: RawExtraction) -> None:
    variants = [v for v in _as_list(ld.get("hasVariant")) if isinstance(v, dict)]
    first = variants[0] if variants else {}

    result.name = _SIZE_SUFFIX.sub("", first.get("name") or ld.get("name") or "").strip()
    brand = _brand_name(ld.get("brand"))
    if brand:
        result.brand = brand
    if ld.get("productGroupID") or ld.get("productGroupId"):
        result.style_code = str(ld.get("productGroupID") or ld.get("productGroupId"))
    if ld.get("description"):
        result.description = str(ld["description"])[:DESCRIPTION_MAX_LENGTH]
    image = _image_url(first.get("image") or ld.get("image"))
    if image:
        result.image = image
    color = first.get("color") or ""
    if color:
        result.colorway = color[:1].upper() + color[1:]

    in_stock = [v for v in variants if _in_stock(v.get("offers"))]
    result.sizes = [s for s in (_variant_size(v) for v in in_stock) if s]

    if not result.style_code and first.get("sku"):
        match = _SKU_STYLE_CODE.match(first["sku"])
        if match:
            result.style_code = match.group(1)

    price_variant = in_stock[0] if in_stock else first
    offers = price_variant.get("offers") if price_variant else None
    if isinstance(offers, list):
        offers = offers[0] if offers else None
    if not isinstance(offers, dict):
        return

    specs = _as_list(offers.get("priceSpecification"))
    if specs:
        for spec in specs:
            if not isinstance(spec, dict):
                continue
            if spec.get("priceCurrency"):
                result.currency = spec["priceCurrency"]
            price_type = str(spec.get("priceType") or "")
            if "StrikethroughPrice" in price_type:
                result.retail_price = _price_text(spec.get("price"))
            elif not price_type:
                result.sale_price = _price_text(spec.get("price"))
    elif offers.get("price") is not None:
        result.sale_price = _price_text(offers["price"])
        if offers.get("priceCurrency"):
            result.currency = offers["priceCurrency"]


def _parse_product(ld: dict, result: RawExtraction) -> None:
    if not result.name and ld.get("name"):
        result.name = str(ld["name"]).strip()
    brand = _brand_name(ld.get("brand"))
    if brand:
        result.brand = brand
    if ld.get("sku"):
        result.style_code = str(ld["sku"])
    image = _image_url(ld.get("image"))
    if image:
        result.image = image
    if ld.get("description"):
        result.description = str(ld["description"])[:DESCRIPTION_MAX_LENGTH]

    offers = [o for o in _as_list(ld.get("offers")) if isinstance(o, dict)]
    if not offers:
        return
    if offers[0].get("price") is not None:
        result.sale_price = _price_text(offers[0]["price"])
    if offers[0].get("priceCurrency"):
        result.currency = offers[0]["priceCurrency"]

    # One offer per size, size is the SKU suffix ("314217718304-39.5")
    if len(offers) > 1:
        sizes = []
        for offer in offers:
            size = (offer.get("sku") or "").split("-")[-1]
            if size and _in_stock(offer):
                sizes.append(size)
        if sizes:
            result.sizes = sizes


def parse_structured_data(html: str) -> RawExtraction:
    """Extract product fields from JSON-LD blocks and meta tags.

    A ProductGroup wins outright; Product blocks are merged in document
    order. Malformed JSON-LD blocks are skipped.
    """
    soup = BeautifulSoup(html or "", "html.parser")
    result = RawExtraction()

    found_group = False
    for script in soup.select(JSONLD_SELECTOR):
        try:
            data = json.loads(script.string or script.get_text() or "")
        except ValueError as e:
            logger.debug("jsonld_parse_failed", error=str(e))
            continue

        for node in _iter_nodes(data):
            if _has_type(node, "ProductGroup") and node.get("hasVariant"):
                _parse_product_group(node, result)
                found_group = True
                break
            if _has_type(node, "Product"):
                _parse_product(node, result)
        if found_group:
            break

    _apply_meta_fallbacks(soup, result)
    return result


def _meta_content(soup: BeautifulSoup, **attrs) -> str:
    tag = soup.find("meta", attrs=attrs)
    return (tag.get("content") or "").strip() if tag else ""


def _apply_meta_fallbacks(soup: BeautifulSoup, result: RawExtraction) -> None:
    h1 = soup.find("h1")
    if h1:
        result.h1_text = h1.get_text(" ", strip=True)

    if not result.name:
        title_tag = soup.find("title")
        result.name = (
            result.h1_text
            or _meta_content(soup, property="og:title")
            or (title_tag.get_text(strip=True) if title_tag else "")
        )
    if not result.image:
        result.image = _meta_content(soup, property="og:image")
    if not result.description:
        result.description = (
            _meta_content(soup, name="description")
            or _meta_content(soup, property="og:description")
        )[:DESCRIPTION_MAX_LENGTH]


def colorway_from_h1(h1_text: str, product_name: str) -> str:
    """Colorway is whatever follows the product name in the H1.

    "adidas Tahiti Marine SneakerNight Sky" with name
    "adidas Tahiti Marine Sneaker" → "Night Sky".
    """
    if not h1_text or not product_name:
        return ""
    idx = h1_text.find(product_name)
    if idx == -1:
        return ""
    after = h1_text[idx + len(product_name):].strip()
    return after.lstrip("-| ").strip()


# ===== PAGE WAITS =====

def is_challenge_page(title: str, content: str = "") -> bool:
    """Whether the page still shows an anti-bot interstitial."""
    title = title or ""
    if title in CHALLENGE_TITLES or any(f in title for f in CHALLENGE_TITLE_FRAGMENTS):
        return True
    return any(marker in (content or "") for marker in CHALLENGE_CONTENT_MARKERS)


class PageExtractor:
    """Drives one page through the extraction sequence."""

    def __init__(
        self,
        navigation_timeout_ms: Optional[int] = None,
        antibot_timeout_ms: Optional[int] = None,
        content_timeout_ms: Optional[int] = None,
        settle_delay_ms: Optional[int] = None,
        poll_interval_ms: int = 1000,
    ):
        self.navigation_timeout_ms = navigation_timeout_ms or settings.NAVIGATION_TIMEOUT_MS
        self.antibot_timeout_ms = antibot_timeout_ms or settings.ANTIBOT_TIMEOUT_MS
        self.content_timeout_ms = content_timeout_ms or settings.CONTENT_TIMEOUT_MS
        self.settle_delay_ms = settle_delay_ms if settle_delay_ms is not None else settings.SETTLE_DELAY_MS
        self.poll_interval_ms = poll_interval_ms

    async def navigate(self, page: Page, url: str) -> bool:
        try:
            await page.goto(url, wait_until="domcontentloaded", timeout=self.navigation_timeout_ms)
            return True
        except PlaywrightError as e:
            logger.warning("page_load_timeout", url=url, error=str(e))
            return False

    async def wait_for_antibot(self, page: Page) -> bool:
        """Poll until the challenge interstitial is gone, bounded by a timeout."""
        start = time.monotonic()
        deadline = start + self.antibot_timeout_ms / 1000
        while time.monotonic() < deadline:
            try:
                title = await page.title()
                content = await page.content()
            except PlaywrightError as e:
                logger.debug("antibot_poll_failed", error=str(e))
                title, content = "", ""
            else:
                if not is_challenge_page(title, content):
                    logger.info("antibot_bypassed", seconds=round(time.monotonic() - start, 1))
                    await page.wait_for_timeout(self.settle_delay_ms)
                    return True
            await page.wait_for_timeout(self.poll_interval_ms)

        logger.warning("antibot_timeout", timeout_ms=self.antibot_timeout_ms)
        return False

    async def wait_for_content(self, page: Page, store: StoreConfig) -> bool:
        """Poll for a JSON-LD block or a price-shaped element.

        Anti-bot bypass and client-side hydration can race, so structured
        data may appear some time after the challenge clears.
        """
        selectors = [JSONLD_SELECTOR, *PRICE_SELECTORS]
        if store.selectors.get("price"):
            selectors.insert(1, store.selectors["price"])

        deadline = time.monotonic() + self.content_timeout_ms / 1000
        while time.monotonic() < deadline:
            for selector in selectors:
                try:
                    if await page.query_selector(selector):
                        return True
                except PlaywrightError:
                    continue
            await page.wait_for_timeout(self.poll_interval_ms)

        logger.warning("content_wait_timeout", timeout_ms=self.content_timeout_ms)
        return False

    async def dismiss_cookies(self, page: Page) -> bool:
        for selector in COOKIE_SELECTORS:
            try:
                button = await page.query_selector(selector)
                if button:
                    await button.click()
                    await page.wait_for_timeout(1000)
                    return True
            except PlaywrightError as e:
                logger.debug("cookie_dismiss_failed", selector=selector, error=str(e))
        return False

    async def extract_raw(
        self,
        page: Page,
        store: StoreConfig,
        adapter: BaseStoreAdapter,
    ) -> RawExtraction:
        """Structured extraction, then the adapter's DOM fallback for gaps."""
        try:
            html = await page.content()
        except PlaywrightError as e:
            logger.warning("page_content_failed", error=str(e))
            html = ""
        raw = parse_structured_data(html)

        if adapter.has_dom_fallback and raw.needs_dom_fallback():
            logger.info("dom_fallback_used", adapter=adapter.shop_slug)
            try:
                dom = await adapter.extract_from_dom(page, store)
            except PlaywrightError as e:
                logger.warning("dom_fallback_failed", adapter=adapter.shop_slug, error=str(e))
            else:
                raw = raw.fill_gaps(dom)

        return raw

    async def extract(
        self,
        page: Page,
        url: str,
        store: StoreConfig,
        adapter: BaseStoreAdapter,
    ) -> NormalizedProduct:
        """Run the full sequence against an open page."""
        logger.info("scraping_url", url=url, store=store.slug, method=store.scrape_method)
        await self.navigate(page, url)

        if store.uses_antibot_bypass:
            if not await self.wait_for_antibot(page):
                logger.warning("antibot_not_bypassed", url=url)
        else:
            await page.wait_for_timeout(store.wait_time_ms or settings.DEFAULT_WAIT_MS)

        await self.wait_for_content(page, store)
        await self.dismiss_cookies(page)

        raw = await self.extract_raw(page, store, adapter)
        product = adapter.post_process(raw, store)
        product.url = url
        return product
