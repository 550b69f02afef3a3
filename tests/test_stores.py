"""Tests for the store registry and per-domain overrides."""

import json

from fashion.scrapers.stores import StoreRegistry, load_store_overrides


class TestMatchStore:

    def test_exact_match(self):
        store = StoreRegistry().match_store("footlocker.co.uk")

        assert store.name == "Foot Locker UK"
        assert store.slug == "foot-locker-uk"
        assert store.currency == "GBP"
        assert store.uses_antibot_bypass

    def test_www_prefix(self):
        store = StoreRegistry().match_store("www.sneakersnstuff.com")
        assert store.slug == "sns"
        assert not store.uses_antibot_bypass

    def test_partial_match(self):
        assert StoreRegistry().match_store("shop.endclothing.com").name == "END. Clothing"

    def test_unknown_store_is_synthesized(self):
        store = StoreRegistry().match_store("kith.co.uk")

        assert store.name == "Kith"
        assert store.slug == "kith"
        assert store.flag == "🌐"
        assert store.currency == "GBP"
        assert store.scrape_method == "browser"


class TestStoreOverrides:

    def test_inherit_and_selectors(self):
        registry = StoreRegistry(
            overrides={
                "footlocker.nl": {"scrapeMethod": "stealth", "waitTime": 6000, "selectors": {"price": ".price"}},
                "footlocker.de": {"_inherit": "footlocker.nl", "waitTime": 8000},
            }
        )
        config = registry.load_store_config("footlocker.de")

        assert config == {"scrapeMethod": "stealth", "waitTime": 8000, "selectors": {"price": ".price"}}
        store = registry.match_store("footlocker.de")
        assert store.wait_time_ms == 8000
        assert store.selectors == {"price": ".price"}

    def test_base_domain_match(self):
        registry = StoreRegistry(overrides={"footlocker.nl": {"waitTime": 6000}})
        assert registry.load_store_config("footlocker.be") == {"waitTime": 6000}

    def test_default_fallback(self):
        registry = StoreRegistry(overrides={"_default": {"waitTime": 3000, "scrapeMethod": "stealth"}})
        store = registry.match_store("someshop.nl")

        assert store.wait_time_ms == 3000
        assert store.scrape_method == "stealth"

    def test_load_overrides_from_file(self, tmp_path):
        path = tmp_path / "store-configs.json"
        path.write_text(json.dumps({"stores": {"_default": {"waitTime": 4000}}}), encoding="utf-8")
        assert load_store_overrides(path) == {"_default": {"waitTime": 4000}}

    def test_missing_or_invalid_file(self, tmp_path):
        assert load_store_overrides(tmp_path / "missing.json") == {}
        bad = tmp_path / "bad.json"
        bad.write_text("{", encoding="utf-8")
        assert load_store_overrides(bad) == {}
