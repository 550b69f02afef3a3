"""Scrape pipeline orchestration.

One URL at a time: resolve store and adapter, extract, process the image,
merge into the catalog, save. A single browser handle is shared by the
whole batch. Per-item failures are recorded and the batch moves on.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import List, Optional

import structlog
from playwright.async_api import Error as PlaywrightError

from fashion.core.exceptions import FashionException, IdentityError, ScraperError
from fashion.schemas.catalog import CatalogProduct, Listing
from fashion.scrapers.base import NormalizedProduct, StoreConfig
from fashion.scrapers.extractor import PageExtractor, is_challenge_page
from fashion.scrapers.factory import AdapterFactory, get_adapter_factory
from fashion.scrapers.stores import StoreRegistry
from fashion.scrapers.utils.browser_manager import BrowserManager
from fashion.scrapers.utils.normalizer import PriceNormalizer, extract_domain, normalize_url
from fashion.services.catalog_service import (
    find_duplicate,
    merge_group,
    merge_into,
    resolve_product_id,
)
from fashion.services.catalog_writer import CatalogWriter
from fashion.services.image_service import IMAGE_OK, ImageService

logger = structlog.get_logger(__name__)

STATUS_SUCCESS = "success"
STATUS_FAILED = "failed"


@dataclass
class ItemResult:
    url: str
    status: str
    product_id: str = ""
    error: str = ""
    updated: bool = False


@dataclass
class BatchResult:
    items: List[ItemResult] = field(default_factory=list)

    @property
    def success(self) -> int:
        return sum(1 for i in self.items if i.status == STATUS_SUCCESS)

    @property
    def failed(self) -> int:
        return sum(1 for i in self.items if i.status == STATUS_FAILED)

    @property
    def processed_urls(self) -> List[str]:
        return [i.url for i in self.items if i.status == STATUS_SUCCESS]

    @property
    def failed_urls(self) -> List[str]:
        return [i.url for i in self.items if i.status == STATUS_FAILED]


class ScraperService:
    """Runs product URLs through extraction and into the catalog.

    All collaborators are injected; the browser is owned by the caller,
    which is responsible for closing it.
    """

    def __init__(
        self,
        browser: BrowserManager,
        writer: CatalogWriter,
        image_service: Optional[ImageService] = None,
        stores: Optional[StoreRegistry] = None,
        adapter_factory: Optional[AdapterFactory] = None,
        extractor: Optional[PageExtractor] = None,
        dry_run: bool = False,
    ):
        self.browser = browser
        self.writer = writer
        self.image_service = image_service or ImageService()
        self.stores = stores or StoreRegistry.from_settings()
        self.adapter_factory = adapter_factory or get_adapter_factory()
        self.extractor = extractor or PageExtractor()
        self.dry_run = dry_run
        self.logger = logger.bind(service="scraper_service")

    async def extract_with_adapter(self, url: str, domain: str, store: StoreConfig) -> NormalizedProduct:
        """Extract one product page with the adapter for ``domain``.

        Raises:
            ScraperError: If no page could be opened
        """
        adapter = self.adapter_factory.get_adapter(domain)
        try:
            page = await self.browser.new_page(store)
        except PlaywrightError as e:
            raise ScraperError(store.name, f"could not open page: {e}") from e

        try:
            return await self.extractor.extract(page, url, store, adapter)
        finally:
            try:
                await page.close()
            except PlaywrightError as e:
                self.logger.debug("page_close_failed", error=str(e))

    async def process_url(self, url: str) -> ItemResult:
        """Scrape one URL and merge it into the catalog.

        Raises:
            IdentityError: If the URL, its domain or the product is missing,
                or the page never got past an anti-bot check
            ScraperError: If the browser could not open a page
        """
        url = (url or "").strip()
        if not url:
            raise IdentityError(url, "no URL")
        domain = extract_domain(url)
        if not domain:
            raise IdentityError(url, "no domain")

        store = self.stores.match_store(domain)
        # A known URL keeps its product even if the resolved id has changed
        known = find_duplicate(url, self.writer.iter_products())

        scraped = await self.extract_with_adapter(url, domain, store)
        if is_challenge_page(scraped.name):
            raise IdentityError(url, f"blocked by anti-bot page ({scraped.name})")

        if known is not None:
            existing = known
            product_id = known.product_id
        else:
            product_id = resolve_product_id(scraped.style_code, scraped.name)
            if not product_id:
                raise IdentityError(url, "no style code or name")
            existing = self.writer.load_product(product_id)

        image = await self.image_service.process_image(
            scraped.image,
            product_id,
            name=scraped.name,
            brand=scraped.brand,
            style_code=scraped.style_code,
        )
        record = replace(
            scraped,
            url=url,
            store=store.slug,
            image=image.image,
            original_image=image.original_image,
            image_status=image.image_status,
        )

        scraped_at = datetime.now(timezone.utc)
        if existing is not None:
            product = merge_into(existing, record, scraped_at)
            # A verified image replaces an unverified one
            if image.image_status == IMAGE_OK and product.image_status != IMAGE_OK:
                product.image = image.image
                product.original_image = image.original_image
                product.image_status = image.image_status
        else:
            product = merge_group(product_id, [record], scraped_at)

        listing = self._listing_for(product, url, store)
        if not self.dry_run:
            self.writer.save_product(product)
            self.writer.save_to_inventory(store, product, listing)

        self.logger.info(
            "product_scraped",
            product_id=product_id,
            store=store.slug,
            name=product.name,
            sale=PriceNormalizer.format_price(
                listing.sale_price.amount if listing.sale_price else None,
                listing.sale_price.currency if listing.sale_price else "EUR",
            ),
            discount=listing.discount,
            sizes=len(listing.sizes),
            image_status=product.image_status,
            updated=existing is not None,
            dry_run=self.dry_run,
        )
        return ItemResult(url=url, status=STATUS_SUCCESS, product_id=product_id, updated=existing is not None)

    @staticmethod
    def _listing_for(product: CatalogProduct, url: str, store: StoreConfig) -> Listing:
        key = (store.slug, normalize_url(url))
        return next(listing for listing in product.listings if (listing.store, normalize_url(listing.url)) == key)

    async def run_batch(self, urls: List[str]) -> BatchResult:
        """Process URLs sequentially; one failure never stops the batch."""
        result = BatchResult()

        for i, url in enumerate(urls, start=1):
            self.logger.info("batch_item_started", position=i, total=len(urls), url=url)
            try:
                item = await self.process_url(url)
            except FashionException as e:
                self.logger.warning("batch_item_failed", url=url, error=e.message)
                item = ItemResult(url=url, status=STATUS_FAILED, error=e.message)
            except Exception as e:
                self.logger.error("batch_item_failed", url=url, error=str(e), exc_info=True)
                item = ItemResult(url=url, status=STATUS_FAILED, error=str(e))
            result.items.append(item)

        if not self.dry_run and result.success > 0:
            self.writer.rebuild_index()

        self.logger.info("batch_complete", success=result.success, failed=result.failed)
        return result
