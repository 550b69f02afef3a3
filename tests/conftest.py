"""Pytest configuration and shared fixtures."""

import json

import pytest
from bs4 import BeautifulSoup

from fashion.scrapers.base import StoreConfig


class FakeElement:
    """Stands in for a Playwright ElementHandle."""

    def __init__(self, page: "FakePage", selector: str):
        self.page = page
        self.selector = selector

    async def click(self):
        self.page.clicked.append(self.selector)


class FakePage:
    """In-memory stand-in for a Playwright Page.

    ``titles`` is consumed one entry per ``title()`` call (the last entry
    repeats), which lets tests script an anti-bot interstitial clearing.
    """

    def __init__(self, html: str = "", titles=None):
        self.html = html
        self.titles = list(titles or ["Product"])
        self.visited = []
        self.clicked = []
        self.waits = []
        self.closed = False

    async def goto(self, url, **kwargs):
        self.visited.append(url)

    async def title(self):
        if len(self.titles) > 1:
            return self.titles.pop(0)
        return self.titles[0]

    async def content(self):
        return self.html

    async def query_selector(self, selector):
        soup = BeautifulSoup(self.html, "html.parser")
        return FakeElement(self, selector) if soup.select_one(selector) else None

    async def wait_for_timeout(self, ms):
        self.waits.append(ms)

    async def close(self):
        self.closed = True


def jsonld_page(*blocks, body: str = "") -> str:
    """HTML page with the given JSON-LD blocks and extra body markup."""
    scripts = "".join(
        f'<script type="application/ld+json">{b if isinstance(b, str) else json.dumps(b)}</script>'
        for b in blocks
    )
    return f"<html><head><title>Product</title>{scripts}</head><body>{body}</body></html>"


@pytest.fixture
def fake_page():
    return FakePage


@pytest.fixture
def generic_store():
    return StoreConfig(name="Example", slug="example", domain="example.com", currency="EUR")


@pytest.fixture
def sns_store():
    return StoreConfig(name="SNS", slug="sns", domain="sneakersnstuff.com", flag="🇸🇪", country="Sweden")


@pytest.fixture
def end_store():
    return StoreConfig(
        name="END. Clothing",
        slug="end-clothing",
        domain="endclothing.com",
        flag="🇬🇧",
        country="UK",
        currency="GBP",
        scrape_method="stealth",
    )


@pytest.fixture
def footlocker_store():
    return StoreConfig(
        name="Foot Locker",
        slug="foot-locker",
        domain="footlocker.nl",
        flag="🇪🇺",
        country="Netherlands",
        currency="EUR",
        scrape_method="stealth",
    )


@pytest.fixture
def product_group_ld():
    """ProductGroup with one in-stock and one sold-out variant."""
    return {
        "@context": "https://schema.org",
        "@type": "ProductGroup",
        "name": "Shoe",
        "productGroupID": "",
        "hasVariant": [
            {
                "@type": "Product",
                "name": "Shoe - 42",
                "sku": "SHOE01-42",
                "offers": {
                    "@type": "Offer",
                    "availability": "https://schema.org/InStock",
                    "priceSpecification": [
                        {"price": 100, "priceType": "https://schema.org/StrikethroughPrice"},
                        {"price": 60},
                    ],
                },
            },
            {
                "@type": "Product",
                "name": "Shoe - 43",
                "sku": "SHOE01-43",
                "offers": {
                    "@type": "Offer",
                    "availability": "https://schema.org/OutOfStock",
                    "priceSpecification": [
                        {"price": 100, "priceType": "https://schema.org/StrikethroughPrice"},
                        {"price": 60},
                    ],
                },
            },
        ],
    }


@pytest.fixture
def jsonld_html():
    return jsonld_page
