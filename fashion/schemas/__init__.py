"""Pydantic schemas for the persisted catalog documents."""

from .catalog import (
    Price,
    Listing,
    CatalogProduct,
    IndexEntry,
    BrandCount,
    CategoryCount,
    StoreSummary,
    CatalogIndex,
)

__all__ = [
    "Price",
    "Listing",
    "CatalogProduct",
    "IndexEntry",
    "BrandCount",
    "CategoryCount",
    "StoreSummary",
    "CatalogIndex",
]
