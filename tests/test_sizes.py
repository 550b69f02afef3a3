"""Tests for store-aware size normalization."""

import pytest

from fashion.scrapers.utils.sizes import (
    UK_M_TO_EU,
    US_KIDS_TO_EU,
    US_M_TO_EU,
    US_W_TO_EU,
    clean_sizes,
    format_eu,
    is_valid_size,
    normalize_size,
    store_size_system,
)


class TestNormalizeSize:
    """Tests for normalize_size in priority order."""

    @pytest.mark.parametrize("token", ["M", "XXL", "OS", "W32", "ONE SIZE"])
    def test_passthrough(self, token):
        assert normalize_size(token, "SNS", "Hoodie") == token

    def test_kids_table(self):
        assert normalize_size("2C", "SNS", "Air Max 90 (TD)") == "EU 17"

    def test_youth_table(self):
        assert normalize_size("4Y", "Anything", "Dunk Low (GS)") == "EU 36"

    def test_unmapped_kids_size_unchanged(self):
        assert normalize_size("14C", "SNS", "Dunk") == "14C"

    def test_eu_prefix(self):
        assert normalize_size("EU 42.0", "END. Clothing", "Samba") == "EU 42"

    def test_uk_prefix_uses_table(self):
        assert normalize_size("UK 8.5", "END. Clothing", "Samba") == "EU 42.5"

    def test_uk_prefix_formula_fallback(self):
        """Test untabulated UK sizes use round((UK + 33.5) * 2) / 2."""
        assert normalize_size("UK 15", "END. Clothing", "Samba") == "EU 48.5"

    def test_us_store_mens_table(self):
        assert normalize_size("7", "SNS", "Air Max") == "EU 40"

    def test_us_store_womens_table(self):
        assert normalize_size("8", "SNS", "Wmns Air Max 90") == "EU 39"

    def test_us_store_womens_formula_fallback(self):
        assert normalize_size("13", "SNS", "Women's Samba") == "EU 46"

    def test_us_store_kids(self):
        assert normalize_size("5", "SNS", "Air Jordan 1 Mid (GS)") == "EU 37.5"

    def test_us_store_mens_formula_fallback(self):
        assert normalize_size("16", "SNS", "Air Max") == "EU 49"

    def test_eu_store_bare_number(self):
        assert normalize_size("43", "Foot Locker", "Nike Air Max Plus") == "EU 43"

    def test_unknown_store_large_number_is_eu(self):
        assert normalize_size("41", "Some Shop", "Runner") == "EU 41"

    def test_unknown_store_small_number_is_us(self):
        assert normalize_size("9", "Some Shop", "Runner") == "EU 42.5"

    def test_unrecognised_token_unchanged(self):
        assert normalize_size("Select size", "SNS", "Air Max") == "Select size"

    @pytest.mark.parametrize("token", ["EU 42", "EU 42.5", "EU 36"])
    def test_idempotent_on_eu_tokens(self, token):
        once = normalize_size(token, "SNS", "Air Max")
        assert normalize_size(once, "SNS", "Air Max") == once

    def test_tables_win_over_formula(self):
        """Test that every tabulated size returns the table value."""
        for us, eu in US_M_TO_EU.items():
            assert normalize_size(f"US {us:g}", "", "Runner") == format_eu(eu)
        for uk, eu in UK_M_TO_EU.items():
            assert normalize_size(f"UK {uk:g}", "", "Runner") == format_eu(eu)
        for us, eu in US_W_TO_EU.items():
            assert normalize_size(f"{us:g}", "SNS", "Wmns Runner") == format_eu(eu)
        for key, eu in US_KIDS_TO_EU.items():
            assert normalize_size(key, "SNS", "Runner") == format_eu(eu)


class TestSizeHelpers:
    """Tests for size validation and store systems."""

    @pytest.mark.parametrize("token", ["42", "EU 42.5", "UK 4.5", "US 10", "2C", "XL", "W32", "ONE SIZE"])
    def test_valid_sizes(self, token):
        assert is_valid_size(token)

    @pytest.mark.parametrize("token", ["", "Add to bag", "€129,99", "Size guide and fit notes"])
    def test_invalid_sizes(self, token):
        assert not is_valid_size(token)

    def test_clean_sizes_filters_then_normalizes(self):
        assert clean_sizes(["7", "Notify me", "8.5"], "SNS", "Air Max") == ["EU 40", "EU 42"]

    def test_store_size_system(self):
        assert store_size_system("Foot Locker UK") == "EU"
        assert store_size_system("SNS") == "US"
        assert store_size_system("END. Clothing") == "UNKNOWN"

    def test_format_eu(self):
        assert format_eu(42.0) == "EU 42"
        assert format_eu(42.5) == "EU 42.5"
