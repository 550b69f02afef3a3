"""Store registry: domain → store metadata and scraping configuration.

Built-in stores cover the supported retailers. An optional JSON file
(``STORE_CONFIG_FILE``) adds per-domain scraping overrides:

    {
      "stores": {
        "_default": {"waitTime": 4000, "scrapeMethod": "browser"},
        "footlocker.nl": {"scrapeMethod": "stealth", "selectors": {...}},
        "footlocker.de": {"_inherit": "footlocker.nl"}
      }
    }
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional

import structlog

from fashion.config import settings
from fashion.scrapers.base import StoreConfig
from fashion.scrapers.utils.normalizer import PriceNormalizer, store_slug

logger = structlog.get_logger(__name__)

# 'stealth' stores sit behind an anti-bot wall (Cloudflare and similar)
STORE_MAP: Dict[str, Dict[str, str]] = {
    "endclothing.com": {"name": "END. Clothing", "flag": "🇬🇧", "country": "UK", "currency": "GBP", "scrape_method": "stealth"},
    "sneakersnstuff.com": {"name": "SNS", "flag": "🇸🇪", "country": "Sweden", "currency": "EUR", "scrape_method": "browser"},
    "footlocker.nl": {"name": "Foot Locker", "flag": "🇪🇺", "country": "Netherlands", "currency": "EUR", "scrape_method": "stealth"},
    "footlocker.co.uk": {"name": "Foot Locker UK", "flag": "🇬🇧", "country": "UK", "currency": "GBP", "scrape_method": "stealth"},
    "footlocker.com": {"name": "Foot Locker US", "flag": "🇺🇸", "country": "US", "currency": "USD", "scrape_method": "stealth"},
    "footlocker.de": {"name": "Foot Locker DE", "flag": "🇩🇪", "country": "Germany", "currency": "EUR", "scrape_method": "stealth"},
    "footlocker.fr": {"name": "Foot Locker FR", "flag": "🇫🇷", "country": "France", "currency": "EUR", "scrape_method": "stealth"},
    "mrporter.com": {"name": "MR PORTER", "flag": "🇬🇧", "country": "UK", "currency": "GBP", "scrape_method": "stealth"},
    "net-a-porter.com": {"name": "NET-A-PORTER", "flag": "🇬🇧", "country": "UK", "currency": "GBP", "scrape_method": "stealth"},
    "nike.com": {"name": "Nike", "flag": "🇺🇸", "country": "US", "currency": "USD", "scrape_method": "browser"},
    "adidas.com": {"name": "adidas", "flag": "🇩🇪", "country": "Germany", "currency": "EUR", "scrape_method": "browser"},
    "newbalance.com": {"name": "New Balance", "flag": "🇺🇸", "country": "US", "currency": "USD", "scrape_method": "browser"},
}

_SCRAPE_METHODS = {"browser", "stealth"}


def _base_label(domain: str) -> str:
    """Label before the public suffix ("footlocker.co.uk" → "footlocker")."""
    parts = domain.split(".")
    if len(parts) >= 3 and parts[-2] in ("co", "com"):
        return parts[-3]
    return parts[-2] if len(parts) >= 2 else domain


class StoreRegistry:
    """Resolves domains to StoreConfig records."""

    def __init__(
        self,
        store_map: Optional[Dict[str, Dict[str, str]]] = None,
        overrides: Optional[Dict[str, Dict[str, Any]]] = None,
    ):
        self._stores = dict(store_map if store_map is not None else STORE_MAP)
        self._overrides = dict(overrides or {})

    @classmethod
    def from_settings(cls) -> "StoreRegistry":
        overrides = {}
        if settings.STORE_CONFIG_FILE:
            overrides = load_store_overrides(settings.STORE_CONFIG_FILE)
        return cls(overrides=overrides)

    def match_store(self, domain: str) -> StoreConfig:
        """Store metadata plus scraping config for ``domain``.

        Exact match, then partial match on a known key's first label,
        otherwise a store synthesized from the domain itself.
        """
        domain = (domain or "").lower()
        if domain.startswith("www."):
            domain = domain[4:]

        key = domain if domain in self._stores else None
        if key is None:
            key = next((k for k in self._stores if k.split(".")[0] in domain), None)

        if key is not None:
            meta = self._stores[key]
            store = StoreConfig(
                name=meta["name"],
                slug=store_slug(meta["name"]),
                domain=key,
                flag=meta.get("flag", "🌐"),
                country=meta.get("country", "Unknown"),
                currency=meta.get("currency", "EUR"),
                scrape_method=meta.get("scrape_method", "browser"),
            )
        else:
            label = domain.split(".")[0] if domain else "unknown"
            store = StoreConfig(
                name=label[:1].upper() + label[1:],
                slug=store_slug(label),
                domain=domain,
                currency=PriceNormalizer.detect_currency(domain),
            )

        return self._apply_overrides(store, domain)

    def load_store_config(self, domain: str) -> Dict[str, Any]:
        """Resolved override record for ``domain`` (may be empty).

        Direct match with ``_inherit`` resolution, then base-domain match
        ("footlocker.be" → "footlocker.*"), then ``_default``.
        """
        if not self._overrides:
            return {}

        if domain in self._overrides:
            return self._resolve_inherit(self._overrides[domain])

        base = _base_label(domain)
        for key, config in self._overrides.items():
            if key == "_default":
                continue
            if key.startswith(base + "."):
                return self._resolve_inherit(config)

        return dict(self._overrides.get("_default") or {})

    def _resolve_inherit(self, config: Dict[str, Any]) -> Dict[str, Any]:
        resolved = dict(config)
        parent_key = resolved.pop("_inherit", None)
        if parent_key:
            parent = self._overrides.get(parent_key) or {}
            resolved = {**parent, **resolved}
            resolved.pop("_inherit", None)
        return resolved

    def _apply_overrides(self, store: StoreConfig, domain: str) -> StoreConfig:
        config = self.load_store_config(domain)
        if not config:
            return store

        method = config.get("scrapeMethod")
        if method in _SCRAPE_METHODS:
            store.scrape_method = method
        elif method:
            logger.warning("unknown_scrape_method", domain=domain, method=method)

        if isinstance(config.get("waitTime"), int):
            store.wait_time_ms = config["waitTime"]
        if isinstance(config.get("selectors"), dict):
            store.selectors = {k: v for k, v in config["selectors"].items() if isinstance(v, str)}
        if config.get("currency"):
            store.currency = config["currency"]
        return store


def load_store_overrides(path: Path) -> Dict[str, Dict[str, Any]]:
    """Read the ``stores`` mapping from a store-config JSON file.

    A missing or malformed file yields no overrides.
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        logger.warning("store_config_missing", path=str(path))
        return {}
    except ValueError as e:
        logger.warning("store_config_invalid", path=str(path), error=str(e))
        return {}

    stores = data.get("stores") if isinstance(data, dict) else None
    return stores if isinstance(stores, dict) else {}
