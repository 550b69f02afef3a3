"""MR PORTER / NET-A-PORTER adapter.

Product names sometimes repeat the brand and carry a size suffix from the
variant; brands come through all-caps. Clothing uses letter sizes.
"""

import re

from fashion.scrapers.base import BaseStoreAdapter, NormalizedProduct, RawExtraction, StoreConfig
from fashion.scrapers.utils.classifier import ProductClassifier

_SIZE_SUFFIX = re.compile(r"\s*-\s*(XXS|XS|S|M|L|XL|XXL|\d{1,2}(\.5)?)\s*$", re.IGNORECASE)


def clean_name(name: str, brand: str) -> str:
    cleaned = (name or "").strip()
    if brand and cleaned.upper().startswith(brand.upper() + " "):
        cleaned = cleaned[len(brand):].strip()
    return _SIZE_SUFFIX.sub("", cleaned).strip()


def fix_brand_case(brand: str) -> str:
    """"STONE ISLAND" → "Stone island"; short acronyms stay as-is."""
    if brand and brand == brand.upper() and len(brand) > 3:
        return brand[0] + brand[1:].lower()
    return brand


def upgrade_image(image: str) -> str:
    if "mrporter.com" in image or "net-a-porter.com" in image:
        image = image.replace("_in_pp.jpg", "_in_xl.jpg")
        image = re.sub(r"\?.*$", "", image)
    return image


class MrPorterAdapter(BaseStoreAdapter):
    """MR PORTER and NET-A-PORTER product page adapter."""

    shop_slug = "mrporter"
    shop_name = "MR PORTER"
    domains = ("mrporter.com", "net-a-porter.com")
    default_currency = "GBP"
    size_store_name = "MR PORTER"

    def post_process(self, raw: RawExtraction, store: StoreConfig) -> NormalizedProduct:
        brand = fix_brand_case(raw.brand or ProductClassifier.detect_brand(raw.name))
        name = clean_name(raw.name, brand) or raw.name
        return self.build_product(
            raw,
            store,
            name=name,
            brand=brand,
            image=upgrade_image(raw.image),
            currency=raw.currency or store.currency or self.default_currency,
        )
