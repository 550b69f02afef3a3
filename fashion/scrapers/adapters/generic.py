"""Generic adapter for stores without a dedicated module.

Uses the per-domain CSS selectors from the store configuration (name,
price, retail, size, image) as its DOM fallback.
"""

from bs4 import BeautifulSoup

from fashion.scrapers.base import BaseStoreAdapter, RawExtraction, StoreConfig


class GenericAdapter(BaseStoreAdapter):
    """Structured data plus configured selectors."""

    shop_slug = "generic"
    shop_name = "Generic"

    def parse_dom(self, soup: BeautifulSoup, store: StoreConfig) -> RawExtraction:
        result = RawExtraction()
        selectors = store.selectors or {}

        def text_of(key: str) -> str:
            selector = selectors.get(key)
            if not selector:
                return ""
            tag = soup.select_one(selector)
            return tag.get_text(" ", strip=True) if tag else ""

        result.name = text_of("name")
        result.sale_price = text_of("price")
        result.retail_price = text_of("retail")

        if selectors.get("size"):
            for tag in soup.select(selectors["size"]):
                text = tag.get_text(strip=True)
                if text:
                    result.sizes.append(text)

        if selectors.get("image"):
            img = soup.select_one(selectors["image"])
            if img:
                result.image = img.get("src") or img.get("data-src") or ""

        return result
