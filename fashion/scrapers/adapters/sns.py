"""Sneakersnstuff (SNS) adapter.

SNS pages carry a ProductGroup with per-size variants, so the structured
data alone covers prices and sizes. Style codes live in the product name
after " - " (e.g. "Puma Speedcat OG - 398846-56"), and bare sizes are US.
"""

import re

from fashion.scrapers.base import BaseStoreAdapter, NormalizedProduct, RawExtraction, StoreConfig

_STYLE_CODE = re.compile(r"\s-\s([A-Za-z0-9][-A-Za-z0-9]+)$")
_STYLE_CODE_SUFFIX = re.compile(r"\s*-\s*[A-Za-z0-9][-A-Za-z0-9]+$")


def extract_style_code(name: str) -> str:
    """"Puma Speedcat OG - 398846-56" → "398846-56"."""
    match = _STYLE_CODE.search(name or "")
    return match.group(1) if match else ""


def clean_name(name: str) -> str:
    """Remove the trailing style-code suffix."""
    return _STYLE_CODE_SUFFIX.sub("", name or "").strip()


class SneakersnstuffAdapter(BaseStoreAdapter):
    """SNS product page adapter."""

    shop_slug = "sns"
    shop_name = "SNS"
    domains = ("sneakersnstuff.com",)
    default_currency = "EUR"
    size_store_name = "SNS"

    def post_process(self, raw: RawExtraction, store: StoreConfig) -> NormalizedProduct:
        style_code = raw.style_code or extract_style_code(raw.name)
        return self.build_product(
            raw,
            store,
            name=clean_name(raw.name),
            style_code=style_code,
            currency=raw.currency or self.default_currency,
        )
