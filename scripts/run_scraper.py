"""Manual scraper runner for testing and debugging adapters.

Scrapes a single product URL and prints the normalized result without
touching the catalog.

Usage:
    python scripts/run_scraper.py https://www.sneakersnstuff.com/en-eu/products/...
    python scripts/run_scraper.py https://www.endclothing.com/gb/... --headful
"""

import argparse
import asyncio

from fashion.logging_config import configure_logging
from fashion.scrapers.extractor import PageExtractor
from fashion.scrapers.factory import get_adapter_factory
from fashion.scrapers.stores import StoreRegistry
from fashion.scrapers.utils.browser_manager import BrowserManager
from fashion.scrapers.utils.normalizer import PriceNormalizer, extract_domain


def _format(price) -> str:
    if price is None:
        return "-"
    return PriceNormalizer.format_price(price.amount, price.currency)


async def run_scraper(url: str, headless: bool = True):
    """Scrape one URL and display the normalized product.

    Args:
        url: Product page URL
        headless: Run the browser without a window
    """
    domain = extract_domain(url)
    store = StoreRegistry.from_settings().match_store(domain)
    adapter = get_adapter_factory().get_adapter(domain)

    print(f"\n{'='*70}")
    print(f"  {store.flag} {store.name} ({store.scrape_method}) → {adapter.shop_slug} adapter")
    print(f"{'='*70}\n")

    async with BrowserManager(headless=headless) as browser:
        page = await browser.new_page(store)
        try:
            product = await PageExtractor().extract(page, url, store, adapter)
        finally:
            await page.close()

    print(f"  Name:      {product.name}")
    print(f"  Brand:     {product.brand or '-'}")
    print(f"  Style:     {product.style_code or '-'}")
    print(f"  Colorway:  {product.colorway or '-'}")
    print(f"  Category:  {product.category}  Tags: {', '.join(product.tags)}")
    print(f"  Price:     {_format(product.retail_price)} → {_format(product.sale_price)} ({product.discount}%)")
    print(f"  Sizes:     {', '.join(product.sizes) or 'none'}")
    print(f"  Image:     {product.image or '-'}")
    print(f"{'='*70}\n")


def main():
    parser = argparse.ArgumentParser(description="Scrape one product URL and print the result")
    parser.add_argument("url", help="Product page URL")
    parser.add_argument("--headful", action="store_true", help="Show the browser window")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    args = parser.parse_args()

    configure_logging(verbose=args.verbose)
    asyncio.run(run_scraper(args.url, headless=not args.headful))


if __name__ == "__main__":
    main()
