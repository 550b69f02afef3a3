"""JSON persistence for the catalog.

Layout under the data directory:

    products/<productId>.json    one CatalogProduct per file
    inventory/<store-slug>.json  per-store inventory
    index.json                   browse/search index for the front end
"""

import json
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Dict, Iterator, List, Optional

import structlog
from pydantic import ValidationError

from fashion.config import settings
from fashion.schemas.catalog import (
    BrandCount,
    CatalogIndex,
    CatalogProduct,
    CategoryCount,
    IndexEntry,
    Listing,
    Price,
    StoreSummary,
)
from fashion.scrapers.base import StoreConfig

logger = structlog.get_logger(__name__)

CATEGORY_ICONS = {
    "Sneakers": "👟",
    "Clothing": "👕",
    "Footwear": "🥾",
    "Accessories": "👜",
}
DEFAULT_CATEGORY_ICON = "🏷️"


def _write_json(path: Path, document: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(document, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")


def best_price(listings: List[Listing]) -> Optional[Price]:
    """Lowest sale price among available listings."""
    prices = [listing.sale_price for listing in listings if listing.available and listing.sale_price is not None]
    return min(prices, key=lambda p: p.amount, default=None)


class CatalogWriter:
    """Reads and writes catalog documents under ``data_dir``."""

    def __init__(self, data_dir: Optional[Path] = None):
        self.data_dir = Path(data_dir) if data_dir is not None else settings.DATA_DIR
        self.products_dir = self.data_dir / "products"
        self.inventory_dir = self.data_dir / "inventory"
        self.index_path = self.data_dir / "index.json"

    def product_path(self, product_id: str) -> Path:
        return self.products_dir / f"{product_id}.json"

    def save_product(self, product: CatalogProduct) -> Path:
        path = self.product_path(product.product_id)
        _write_json(path, product.to_document())
        logger.info("product_saved", product_id=product.product_id, listings=len(product.listings))
        return path

    def load_product(self, product_id: str) -> Optional[CatalogProduct]:
        path = self.product_path(product_id)
        if not path.exists():
            return None
        return CatalogProduct.model_validate_json(path.read_text(encoding="utf-8"))

    def iter_products(self) -> Iterator[CatalogProduct]:
        """All readable product files; unreadable ones are logged and skipped."""
        if not self.products_dir.exists():
            return
        for path in sorted(self.products_dir.glob("*.json")):
            try:
                yield CatalogProduct.model_validate_json(path.read_text(encoding="utf-8"))
            except (OSError, ValidationError) as e:
                logger.warning("product_file_unreadable", path=str(path), error=str(e))

    def save_to_inventory(self, store: StoreConfig, product: CatalogProduct, listing: Listing) -> Path:
        """Add or replace ``product`` in the store's inventory file."""
        path = self.inventory_dir / f"{store.slug}.json"
        today = date.today().isoformat()

        if path.exists():
            inventory = json.loads(path.read_text(encoding="utf-8"))
        else:
            inventory = {
                "store": store.name,
                "slug": store.slug,
                "flag": store.flag,
                "country": store.country,
                "currency": store.currency,
                "lastUpdated": "",
                "totalProducts": 0,
                "products": [],
            }

        listing_doc = listing.to_document()
        entry = {
            "productId": product.product_id,
            "name": product.name,
            "brand": product.brand,
            "category": product.category,
            "image": product.image,
            "url": listing.url,
            "retailPrice": listing_doc["retailPrice"],
            "salePrice": listing_doc["salePrice"],
            "discount": listing.discount,
            "sizes": listing.sizes,
            "addedDate": today,
            "lastChecked": today,
            "status": listing.status,
        }

        products = inventory.setdefault("products", [])
        for i, existing in enumerate(products):
            if existing.get("productId") == product.product_id:
                entry["addedDate"] = existing.get("addedDate") or today
                products[i] = entry
                break
        else:
            products.append(entry)

        inventory["totalProducts"] = len(products)
        inventory["lastUpdated"] = today
        _write_json(path, inventory)
        logger.debug("inventory_updated", store=store.slug, product_id=product.product_id)
        return path

    def _store_summaries(self) -> List[StoreSummary]:
        stores = []
        if not self.inventory_dir.exists():
            return stores
        for path in sorted(self.inventory_dir.glob("*.json")):
            try:
                inventory = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as e:
                logger.warning("inventory_file_unreadable", path=str(path), error=str(e))
                continue
            active = [p for p in inventory.get("products", []) if p.get("status") == "active"]
            stores.append(
                StoreSummary(
                    slug=inventory.get("slug") or path.stem,
                    name=inventory.get("store") or path.stem,
                    flag=inventory.get("flag") or "",
                    count=len(active),
                )
            )
        stores.sort(key=lambda s: -s.count)
        return stores

    def build_index(self) -> CatalogIndex:
        """Build the index document from all product files."""
        entries: List[IndexEntry] = []
        brand_counts: Dict[str, int] = {}
        category_counts: Dict[str, int] = {}

        for product in self.iter_products():
            available = [listing for listing in product.listings if listing.available]
            entries.append(
                IndexEntry(
                    product_id=product.product_id,
                    name=product.name,
                    brand=product.brand,
                    category=product.category,
                    image=product.image,
                    image_status=product.image_status,
                    best_price=best_price(product.listings),
                    store_count=len(available),
                    tags=product.tags,
                )
            )
            if product.brand:
                brand_counts[product.brand] = brand_counts.get(product.brand, 0) + 1
            if product.category:
                category_counts[product.category] = category_counts.get(product.category, 0) + 1

        entries.sort(key=lambda e: (e.brand.lower(), e.name.lower()))

        # sorted() is stable, so equal counts keep first-seen order
        brands = [
            BrandCount(name=name, count=count)
            for name, count in sorted(brand_counts.items(), key=lambda kv: -kv[1])
        ]
        categories = [
            CategoryCount(name=name, count=count, icon=CATEGORY_ICONS.get(name, DEFAULT_CATEGORY_ICON))
            for name, count in sorted(category_counts.items(), key=lambda kv: -kv[1])
        ]

        return CatalogIndex(
            generated_at=datetime.now(timezone.utc),
            total_products=len(entries),
            products=entries,
            brands=brands,
            categories=categories,
            stores=self._store_summaries(),
        )

    def rebuild_index(self) -> CatalogIndex:
        """Regenerate ``index.json`` from the product files."""
        index = self.build_index()
        _write_json(self.index_path, index.to_document())
        logger.info(
            "index_rebuilt",
            products=index.total_products,
            brands=len(index.brands),
            stores=len(index.stores),
        )
        return index
