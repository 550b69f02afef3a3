"""END. Clothing adapter.

END. sits behind Cloudflare Turnstile and embeds a plain Product block
whose single offer is the sale price. Retail price and sizes are only in
the DOM:

    <span class="DetailsPriceSaleWasSC...">£100</span>
    <div data-test-id="Size__Button">UK 4.5</div>

The colorway is the H1 text after the product name.
"""

import re

from bs4 import BeautifulSoup

from fashion.scrapers.base import BaseStoreAdapter, NormalizedProduct, RawExtraction, StoreConfig
from fashion.scrapers.extractor import colorway_from_h1

_QUERY = re.compile(r"\?.*$")


class EndClothingAdapter(BaseStoreAdapter):
    """END. product page adapter."""

    shop_slug = "end"
    shop_name = "END. Clothing"
    domains = ("endclothing.com",)
    default_currency = "GBP"
    size_store_name = "END. Clothing"

    def parse_dom(self, soup: BeautifulSoup, store: StoreConfig) -> RawExtraction:
        result = RawExtraction()

        was_price = soup.select_one('[class*="DetailsPriceSaleWas"]')
        if was_price:
            result.retail_price = was_price.get_text(strip=True)
        else:
            # Two spans in the price container: first is retail
            container = soup.select_one('[class*="PriceContainer"]')
            if container:
                spans = container.find_all("span")
                if len(spans) >= 2:
                    result.retail_price = spans[0].get_text(strip=True)

        for button in soup.select('[data-test-id="Size__Button"]'):
            text = button.get_text(strip=True)
            if text:
                result.sizes.append(text)

        h1 = soup.find("h1")
        if h1:
            result.h1_text = h1.get_text(strip=True)

        return result

    def post_process(self, raw: RawExtraction, store: StoreConfig) -> NormalizedProduct:
        brand = raw.brand
        if brand.lower() == "adidas":
            brand = "adidas"

        image = raw.image
        if "endclothing.com" in image:
            image = _QUERY.sub("", image)

        if not raw.colorway and raw.h1_text:
            raw.colorway = colorway_from_h1(raw.h1_text, raw.name)

        return self.build_product(
            raw,
            store,
            brand=brand or None,
            image=image,
            currency=raw.currency or store.currency or self.default_currency,
        )
