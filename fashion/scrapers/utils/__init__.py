"""Scraper utilities: normalization, sizes, classification, images."""

from fashion.scrapers.utils.classifier import ProductClassifier
from fashion.scrapers.utils.images import brand_cdn_url, upgrade_image_url
from fashion.scrapers.utils.normalizer import (
    PriceNormalizer,
    extract_domain,
    extract_sku_from_url,
    normalize_url,
    slugify,
    store_slug,
)
from fashion.scrapers.utils.sizes import clean_sizes, is_valid_size, normalize_size, normalize_sizes

__all__ = [
    "PriceNormalizer",
    "ProductClassifier",
    "brand_cdn_url",
    "clean_sizes",
    "extract_domain",
    "extract_sku_from_url",
    "is_valid_size",
    "normalize_size",
    "normalize_sizes",
    "normalize_url",
    "slugify",
    "store_slug",
    "upgrade_image_url",
]
