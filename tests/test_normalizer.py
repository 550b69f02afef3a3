"""Tests for price parsing, currency detection and URL helpers."""

from decimal import Decimal

import pytest

from fashion.scrapers.utils.normalizer import (
    PriceNormalizer,
    extract_domain,
    extract_sku_from_url,
    normalize_url,
    slugify,
    store_slug,
)


# ============================================================================
# TESTS: PRICE PARSING
# ============================================================================

class TestParsePrice:
    """Tests for PriceNormalizer.parse_price."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("€126", Decimal("126")),
            ("£100", Decimal("100")),
            ("€ 129,99", Decimal("129.99")),
            ("60.00", Decimal("60.00")),
            ("$1,5", Decimal("1.5")),
        ],
    )
    def test_parses_store_price_text(self, text, expected):
        """Test parsing the formats store pages render."""
        assert PriceNormalizer.parse_price(text) == expected

    @pytest.mark.parametrize("text", ["", None, "Sold out", "€"])
    def test_non_numeric_returns_none(self, text):
        """Test that empty or digit-free input yields None, never raises."""
        assert PriceNormalizer.parse_price(text) is None

    def test_accepts_numbers(self):
        """Test that numeric JSON-LD values parse too."""
        assert PriceNormalizer.parse_price(60) == Decimal("60")


class TestCalcDiscount:
    """Tests for PriceNormalizer.calc_discount."""

    def test_typical_discount(self):
        assert PriceNormalizer.calc_discount(210, 126) == 40

    def test_sale_above_retail_is_zero(self):
        assert PriceNormalizer.calc_discount(100, 150) == 0

    def test_missing_retail_is_zero(self):
        assert PriceNormalizer.calc_discount(None, 126) == 0

    def test_zero_sale_is_zero(self):
        assert PriceNormalizer.calc_discount(100, 0) == 0

    def test_rounds_half_up(self):
        """Test 12.5% rounds to 13, not banker's 12."""
        assert PriceNormalizer.calc_discount(80, 70) == 13


class TestFormatPrice:
    """Tests for PriceNormalizer.format_price."""

    def test_whole_amount_has_no_decimals(self):
        assert PriceNormalizer.format_price(100, "GBP") == "£100"

    def test_fractional_amount(self):
        assert PriceNormalizer.format_price(Decimal("12.5"), "USD") == "$12.50"

    def test_unknown_currency_defaults_to_euro(self):
        assert PriceNormalizer.format_price(60, "SEK") == "€60"

    def test_empty_amount(self):
        assert PriceNormalizer.format_price(None) == ""


class TestBuildPrice:
    """Tests for PriceNormalizer.build_price."""

    def test_builds_price(self):
        price = PriceNormalizer.build_price(Decimal("60"), "GBP")
        assert price.amount == 60
        assert price.currency == "GBP"

    def test_empty_amount_is_none(self):
        assert PriceNormalizer.build_price(None, "EUR") is None

    def test_serializes_whole_amount_as_int(self):
        price = PriceNormalizer.build_price(Decimal("100"), "EUR")
        assert price.to_document() == {"amount": 100, "currency": "EUR"}


class TestDetectCurrency:
    """Tests for PriceNormalizer.detect_currency."""

    @pytest.mark.parametrize(
        "domain,currency",
        [
            ("footlocker.co.uk", "GBP"),
            ("shop.uk", "GBP"),
            ("nike.com", "USD"),
            ("footlocker.nl", "EUR"),
            ("example.de", "EUR"),
        ],
    )
    def test_detects_from_domain(self, domain, currency):
        assert PriceNormalizer.detect_currency(domain) == currency


# ============================================================================
# TESTS: URL HELPERS
# ============================================================================

class TestUrlHelpers:
    """Tests for domain, slug and URL normalization helpers."""

    def test_extract_domain_strips_www(self):
        assert extract_domain("https://www.endclothing.com/gb/foo.html") == "endclothing.com"

    def test_extract_domain_of_garbage(self):
        assert extract_domain("not a url") == ""

    def test_normalize_url_drops_query_and_trailing_slash(self):
        assert (
            normalize_url("https://www.SneakersNStuff.com/en-eu/products/Foo/?utm_source=x#top")
            == "https://www.sneakersnstuff.com/en-eu/products/foo"
        )

    def test_extract_sku_foot_locker(self):
        url = "https://www.footlocker.nl/nl/product/nike-air-max/314217718304.html"
        assert extract_sku_from_url(url) == "314217718304"

    def test_extract_sku_none(self):
        assert extract_sku_from_url("https://example.com/product") is None

    def test_slugify(self):
        assert slugify("Air Jordan 1 Retro High OG 'Chicago'") == "air-jordan-1-retro-high-og-chicago"

    def test_store_slug(self):
        assert store_slug("END. Clothing") == "end-clothing"
        assert store_slug("Foot Locker") == "foot-locker"
