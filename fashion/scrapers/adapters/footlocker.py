"""Foot Locker adapter (footlocker.nl, .co.uk, .de, .fr, .com).

The Product block has one offer per size with the size as SKU suffix
("314217718304-39.5"), already in EU. Retail price is DOM-only, rendered
with Tailwind utility classes:

    <span class="font-caption line-through">€ 129,99</span>
"""

import re
from typing import List

from bs4 import BeautifulSoup

from fashion.scrapers.base import BaseStoreAdapter, NormalizedProduct, RawExtraction, StoreConfig

_CURRENCY_SYMBOLS = ("€", "£", "$")
_DOM_SIZE = re.compile(r"^\d{2,3}(\.5)?$")


def _inside_product_card(tag) -> bool:
    for parent in tag.parents:
        classes = " ".join(parent.get("class") or []) if hasattr(parent, "get") else ""
        if "ProductCard" in classes:
            return True
    return False


def prefix_eu_sizes(sizes: List[str]) -> List[str]:
    """Bare numbers of 35 and up are EU sizes; label them as such."""
    prefixed = []
    for size in sizes:
        try:
            number = float(size)
        except (TypeError, ValueError):
            prefixed.append(size)
            continue
        prefixed.append(f"EU {size}" if number >= 35 else size)
    return prefixed


class FootLockerAdapter(BaseStoreAdapter):
    """Foot Locker product page adapter."""

    shop_slug = "footlocker"
    shop_name = "Foot Locker"
    domains = (
        "footlocker.nl",
        "footlocker.co.uk",
        "footlocker.com",
        "footlocker.de",
        "footlocker.fr",
    )
    default_currency = "EUR"
    size_store_name = "Foot Locker"

    def parse_dom(self, soup: BeautifulSoup, store: StoreConfig) -> RawExtraction:
        result = RawExtraction()

        # Recommended products further down also render struck-through prices
        for span in soup.select("span.line-through"):
            text = span.get_text(strip=True)
            if any(sym in text for sym in _CURRENCY_SYMBOLS) and not _inside_product_card(span):
                result.retail_price = text
                break

        sale = soup.select_one('span.text-sale_red, [class*="text-sale"]')
        if sale:
            result.sale_price = sale.get_text(strip=True)

        color = soup.select_one('[class*="ProductColor"], [data-testid="product-color"]')
        if color:
            result.colorway = color.get_text(strip=True)

        for link in soup.select("a.size-box"):
            text = link.get_text(strip=True)
            if _DOM_SIZE.match(text):
                result.sizes.append(text)

        return result

    def post_process(self, raw: RawExtraction, store: StoreConfig) -> NormalizedProduct:
        raw.sizes = prefix_eu_sizes(raw.sizes)
        return self.build_product(
            raw,
            store,
            currency=raw.currency or store.currency or self.default_currency,
        )
