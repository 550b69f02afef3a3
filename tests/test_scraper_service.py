"""Tests for the scrape pipeline orchestration."""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from playwright.async_api import Error as PlaywrightError

from fashion.core.exceptions import IdentityError, ScraperError
from fashion.schemas.catalog import Price
from fashion.scrapers.base import NormalizedProduct
from fashion.scrapers.scraper_service import STATUS_FAILED, STATUS_SUCCESS, ScraperService
from fashion.scrapers.stores import StoreRegistry
from fashion.services.catalog_writer import CatalogWriter
from fashion.services.image_service import ImageResult

SNS_URL = "https://www.sneakersnstuff.com/en/product/12345/air-jordan-1-low"
END_URL = "https://www.endclothing.com/gb/air-jordan-1-low-dz5485-612.html"


def scraped_product(**overrides) -> NormalizedProduct:
    values = dict(
        name="Air Jordan 1 Low",
        brand="Jordan",
        style_code="DZ5485-612",
        colorway="Gym Red",
        tags=["Sneakers", "Jordan", "Sale"],
        image="https://cdn.example/aj1.jpg",
        retail_price=Price(amount=Decimal("120"), currency="EUR"),
        sale_price=Price(amount=Decimal("84"), currency="EUR"),
        discount=30,
        sizes=["EU 42", "EU 43"],
    )
    values.update(overrides)
    return NormalizedProduct(**values)


class FakeBrowser:
    def __init__(self, page_class, fail: bool = False):
        self.page_class = page_class
        self.fail = fail
        self.pages = []

    async def new_page(self, store):
        if self.fail:
            raise PlaywrightError("browser has been closed")
        page = self.page_class()
        self.pages.append(page)
        return page


@pytest.fixture
def image_service():
    service = AsyncMock()
    service.process_image.return_value = ImageResult(
        image="https://res.cloudinary.com/demo/image/upload/picks/dz5485-612",
        original_image="https://cdn.example/aj1.jpg",
        image_status="ok",
    )
    return service


@pytest.fixture
def extractor():
    extractor = AsyncMock()
    extractor.extract.return_value = scraped_product()
    return extractor


@pytest.fixture
def writer(tmp_path):
    return CatalogWriter(tmp_path)


@pytest.fixture
def browser(fake_page):
    return FakeBrowser(fake_page)


@pytest.fixture
def broken_browser(fake_page):
    return FakeBrowser(fake_page, fail=True)


def make_service(writer, image_service, extractor, browser, dry_run=False):
    return ScraperService(
        browser=browser,
        writer=writer,
        image_service=image_service,
        stores=StoreRegistry(),
        extractor=extractor,
        dry_run=dry_run,
    )


# ============================================================================
# Single URL
# ============================================================================


class TestProcessUrl:

    async def test_new_product_is_saved(self, writer, image_service, extractor, browser):
        service = make_service(writer, image_service, extractor, browser)

        item = await service.process_url(SNS_URL)

        assert item.status == STATUS_SUCCESS
        assert item.product_id == "DZ5485-612"
        assert not item.updated
        assert browser.pages[0].closed

        product = writer.load_product("DZ5485-612")
        assert product.image_status == "ok"
        assert product.original_image == "https://cdn.example/aj1.jpg"
        assert [listing.store for listing in product.listings] == ["sns"]
        assert product.listings[0].url == SNS_URL
        assert (writer.inventory_dir / "sns.json").exists()

    async def test_second_store_adds_listing(self, writer, image_service, extractor, browser):
        service = make_service(writer, image_service, extractor, browser)

        await service.process_url(SNS_URL)
        item = await service.process_url(END_URL)

        assert item.updated
        product = writer.load_product("DZ5485-612")
        assert [listing.store for listing in product.listings] == ["sns", "end-clothing"]

    async def test_rescrape_updates_listing(self, writer, image_service, extractor, browser):
        service = make_service(writer, image_service, extractor, browser)
        await service.process_url(SNS_URL)

        extractor.extract.return_value = scraped_product(
            sale_price=Price(amount=Decimal("72"), currency="EUR"), sizes=["EU 44"]
        )
        await service.process_url(SNS_URL)

        product = writer.load_product("DZ5485-612")
        assert len(product.listings) == 1
        assert product.listings[0].sale_price.amount == 72
        assert product.listings[0].sizes == ["EU 44"]

    async def test_dry_run_writes_nothing(self, writer, image_service, extractor, browser):
        service = make_service(writer, image_service, extractor, browser, dry_run=True)

        item = await service.process_url(SNS_URL)

        assert item.status == STATUS_SUCCESS
        assert writer.load_product("DZ5485-612") is None

    async def test_missing_domain(self, writer, image_service, extractor, browser):
        service = make_service(writer, image_service, extractor, browser)

        with pytest.raises(IdentityError):
            await service.process_url("not a url")
        extractor.extract.assert_not_awaited()

    async def test_browser_failure(self, writer, image_service, extractor, broken_browser):
        service = make_service(writer, image_service, extractor, broken_browser)

        with pytest.raises(ScraperError):
            await service.process_url(SNS_URL)

    async def test_known_url_keeps_product_when_style_code_appears(
        self, writer, image_service, extractor, browser
    ):
        service = make_service(writer, image_service, extractor, browser)
        extractor.extract.return_value = scraped_product(name="Puma Speedcat OG", style_code="")
        first = await service.process_url(SNS_URL)

        extractor.extract.return_value = scraped_product(name="Puma Speedcat OG", style_code="398846-56")
        second = await service.process_url(SNS_URL)

        assert first.product_id == "puma-speedcat-og"
        assert second.product_id == first.product_id
        assert second.updated
        assert [p.name for p in writer.products_dir.glob("*.json")] == ["puma-speedcat-og.json"]
        assert writer.load_product("398846-56") is None

        product = writer.load_product("puma-speedcat-og")
        assert product.style_code == "398846-56"
        assert [listing.url for listing in product.listings] == [SNS_URL]

    @pytest.mark.parametrize("title", ["Access Denied", "Just a moment..."])
    async def test_challenge_title_is_not_saved(self, writer, image_service, extractor, browser, title):
        extractor.extract.return_value = scraped_product(name=title, style_code="")
        service = make_service(writer, image_service, extractor, browser)

        with pytest.raises(IdentityError):
            await service.process_url(SNS_URL)

        image_service.process_image.assert_not_awaited()
        assert list(writer.products_dir.glob("*.json")) == []


# ============================================================================
# Batch
# ============================================================================


class TestRunBatch:

    async def test_failure_does_not_stop_batch(self, writer, image_service, extractor, browser):
        service = make_service(writer, image_service, extractor, browser)

        result = await service.run_batch(["", SNS_URL])

        assert [i.status for i in result.items] == [STATUS_FAILED, STATUS_SUCCESS]
        assert result.success == 1
        assert result.failed == 1
        assert result.processed_urls == [SNS_URL]
        assert writer.index_path.exists()

    async def test_unexpected_error_is_recorded(self, writer, image_service, extractor, browser):
        extractor.extract.side_effect = [RuntimeError("boom"), scraped_product()]
        service = make_service(writer, image_service, extractor, browser)

        result = await service.run_batch([END_URL, SNS_URL])

        assert result.items[0].error == "boom"
        assert result.failed_urls == [END_URL]
        assert result.success == 1

    async def test_blocked_page_is_recorded_as_failure(self, writer, image_service, extractor, browser):
        extractor.extract.side_effect = [scraped_product(name="Access Denied"), scraped_product()]
        service = make_service(writer, image_service, extractor, browser)

        result = await service.run_batch([END_URL, SNS_URL])

        assert result.failed_urls == [END_URL]
        assert "anti-bot" in result.items[0].error
        assert result.processed_urls == [SNS_URL]

    async def test_no_index_when_everything_fails(self, writer, image_service, extractor, broken_browser):
        service = make_service(writer, image_service, extractor, broken_browser)

        result = await service.run_batch([SNS_URL])

        assert result.failed == 1
        assert not writer.index_path.exists()
