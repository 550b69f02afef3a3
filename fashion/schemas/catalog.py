"""Catalog document schemas.

These mirror the JSON files consumed by the static front end:
``data/products/<productId>.json`` and ``data/index.json``. Field names are
camelCase on disk and snake_case in Python.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_document(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class Price(CamelModel):
    """Monetary amount with an ISO 4217 currency code."""

    amount: Decimal
    currency: str = "EUR"

    @field_serializer("amount")
    def _amount_as_number(self, amount: Decimal):
        # Whole amounts stay integers in JSON ("126", not "126.0")
        if amount == amount.to_integral_value():
            return int(amount)
        return float(amount)


class Listing(CamelModel):
    """One store's sale offer for a catalog product."""

    store: str
    url: str
    retail_price: Optional[Price] = None
    sale_price: Optional[Price] = None
    discount: int = 0
    sizes: List[str] = Field(default_factory=list)
    available: bool = True
    status: str = "active"
    last_scraped: Optional[datetime] = None


class CatalogProduct(CamelModel):
    """Durable record for one physical product across stores."""

    product_id: str
    name: str
    brand: str = ""
    style_code: str = ""
    colorway: str = ""
    category: str = "Sneakers"
    tags: List[str] = Field(default_factory=list)
    image: str = ""
    original_image: str = ""
    image_status: str = "missing"
    description: str = ""
    listings: List[Listing] = Field(default_factory=list)


class IndexEntry(CamelModel):
    """Lightweight product row for the browse/search index."""

    product_id: str
    name: str
    brand: str = ""
    category: str = ""
    image: str = ""
    image_status: str = "missing"
    best_price: Optional[Price] = None
    store_count: int = 0
    tags: List[str] = Field(default_factory=list)


class BrandCount(CamelModel):
    name: str
    count: int


class CategoryCount(CamelModel):
    name: str
    count: int
    icon: str = ""


class StoreSummary(CamelModel):
    slug: str
    name: str
    flag: str = ""
    count: int = 0


class CatalogIndex(CamelModel):
    """The regenerated ``index.json`` document."""

    generated_at: datetime
    total_products: int
    products: List[IndexEntry] = Field(default_factory=list)
    brands: List[BrandCount] = Field(default_factory=list)
    categories: List[CategoryCount] = Field(default_factory=list)
    stores: List[StoreSummary] = Field(default_factory=list)
