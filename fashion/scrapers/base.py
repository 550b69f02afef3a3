"""Base store adapter interface and the scrape-time data structures.

Every store adapter inherits from BaseStoreAdapter. The base class owns the
generic normalization path; store adapters override only what their pages
need: an optional DOM fallback for fields the structured data omits, and
post-processing (name clean-up, size system, image canonicalization).
"""

from abc import ABC
from dataclasses import dataclass, field, fields, replace
from typing import Dict, List, Optional, Tuple

import structlog
from bs4 import BeautifulSoup
from playwright.async_api import Page

from fashion.schemas.catalog import Price
from fashion.scrapers.utils.classifier import ProductClassifier
from fashion.scrapers.utils.normalizer import PriceNormalizer
from fashion.scrapers.utils.sizes import clean_sizes

UNKNOWN_PRODUCT_NAME = "Unknown Product"
DESCRIPTION_MAX_LENGTH = 300


@dataclass
class RawExtraction:
    """Raw product fields as scraped from one page load.

    Every field is always present; "not found" is the empty string or an
    empty list.
    """

    name: str = ""
    brand: str = ""
    image: str = ""
    description: str = ""
    colorway: str = ""
    sale_price: str = ""
    retail_price: str = ""
    currency: str = ""
    sizes: List[str] = field(default_factory=list)
    style_code: str = ""
    h1_text: str = ""

    def needs_dom_fallback(self) -> bool:
        """True when a required field is still missing after structured extraction."""
        return not self.name or not self.sale_price or not self.sizes or not self.retail_price

    def fill_gaps(self, other: "RawExtraction") -> "RawExtraction":
        """Return a copy where empty fields are taken from ``other``.

        Non-empty values on ``self`` are never overwritten.
        """
        updates = {}
        for f in fields(self):
            mine = getattr(self, f.name)
            theirs = getattr(other, f.name)
            if not mine and theirs:
                updates[f.name] = list(theirs) if isinstance(theirs, list) else theirs
        return replace(self, **updates)


@dataclass
class NormalizedProduct:
    """One normalized product from a single store-scrape event."""

    name: str
    brand: str = ""
    style_code: str = ""
    colorway: str = ""
    category: str = "Sneakers"
    tags: List[str] = field(default_factory=list)
    image: str = ""
    description: str = ""
    retail_price: Optional[Price] = None
    sale_price: Optional[Price] = None
    discount: int = 0
    sizes: List[str] = field(default_factory=list)
    # Listing context, filled in by the scraper service
    url: str = ""
    store: str = ""
    original_image: str = ""
    image_status: str = "missing"


@dataclass
class StoreConfig:
    """Store metadata plus its scraping configuration."""

    name: str
    slug: str
    domain: str = ""
    flag: str = "🌐"
    country: str = "Unknown"
    currency: str = "EUR"
    scrape_method: str = "browser"  # 'browser' or 'stealth' (anti-bot bypass)
    wait_time_ms: Optional[int] = None
    selectors: Dict[str, str] = field(default_factory=dict)

    @property
    def uses_antibot_bypass(self) -> bool:
        return self.scrape_method == "stealth"


class BaseStoreAdapter(ABC):
    """Base class for store adapters.

    Subclasses set ``shop_slug``/``shop_name``/``domains`` and may override
    ``parse_dom`` (extra DOM step) and ``post_process``.
    """

    shop_slug: str = "generic"
    shop_name: str = ""
    domains: Tuple[str, ...] = ()
    default_currency: str = "EUR"
    # Store name passed to the size normalizer; picks the bare-number system
    size_store_name: str = ""

    def __init__(self):
        self.logger = structlog.get_logger(adapter=self.shop_slug)

    @property
    def has_dom_fallback(self) -> bool:
        return type(self).parse_dom is not BaseStoreAdapter.parse_dom

    def matches(self, domain: str) -> bool:
        """Whether this adapter handles ``domain``."""
        domain = (domain or "").lower()
        return any(domain == d or domain.endswith("." + d) for d in self.domains)

    def parse_dom(self, soup: BeautifulSoup, store: StoreConfig) -> RawExtraction:
        """Store-specific DOM extraction. Base adapters have none."""
        return RawExtraction()

    async def extract_from_dom(self, page: Page, store: StoreConfig) -> RawExtraction:
        """Snapshot the hydrated page and run ``parse_dom`` over it."""
        html = await page.content()
        return self.parse_dom(BeautifulSoup(html, "html.parser"), store)

    def post_process(self, raw: RawExtraction, store: StoreConfig) -> NormalizedProduct:
        """Generic normalization; adapters override to add store quirks."""
        return self.build_product(raw, store)

    def build_product(
        self,
        raw: RawExtraction,
        store: StoreConfig,
        name: Optional[str] = None,
        brand: Optional[str] = None,
        image: Optional[str] = None,
        style_code: Optional[str] = None,
        currency: Optional[str] = None,
        sizes: Optional[List[str]] = None,
    ) -> NormalizedProduct:
        """Shared normalization used by all adapters.

        Keyword overrides replace the corresponding raw value after the
        adapter's own clean-up.
        """
        name = (name if name is not None else raw.name).strip()
        brand = brand if brand is not None else (raw.brand or ProductClassifier.detect_brand(name))
        currency = currency or raw.currency or store.currency or self.default_currency

        sale = PriceNormalizer.parse_price(raw.sale_price)
        retail = PriceNormalizer.parse_price(raw.retail_price)

        tags = ProductClassifier.detect_tags(name, brand)
        category = ProductClassifier.detect_category(name, tags)

        if sizes is None:
            sizes = clean_sizes(
                raw.sizes,
                self.size_store_name or store.name,
                name,
                tags,
            )

        return NormalizedProduct(
            name=name or UNKNOWN_PRODUCT_NAME,
            brand=brand,
            style_code=style_code if style_code is not None else raw.style_code,
            colorway=raw.colorway,
            category=category,
            tags=tags,
            image=image if image is not None else raw.image,
            description=(raw.description or "")[:DESCRIPTION_MAX_LENGTH],
            retail_price=PriceNormalizer.build_price(retail, currency),
            sale_price=PriceNormalizer.build_price(sale, currency),
            discount=PriceNormalizer.calc_discount(retail, sale),
            sizes=sizes,
            store=store.slug,
        )
