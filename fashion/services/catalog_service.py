"""Duplicate detection and merging of scrape results into catalog products.

Stores report the same physical product with uneven completeness, so a
merge never trusts one source wholesale. The richest record seeds the
identity fields and every other field takes the best value found anywhere
in the group.
"""

import html
import re
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence

import structlog

from fashion.schemas.catalog import CatalogProduct, Listing, Price
from fashion.scrapers.base import DESCRIPTION_MAX_LENGTH, NormalizedProduct
from fashion.scrapers.utils.classifier import ProductClassifier
from fashion.scrapers.utils.normalizer import (
    PriceNormalizer,
    extract_sku_from_url,
    normalize_url,
    slugify,
    store_slug,
)

logger = structlog.get_logger(__name__)

# Richness weights: only their relative ordering matters
WEIGHT_DESCRIPTION = 3
WEIGHT_DESCRIPTION_PER_100_CHARS = 1
WEIGHT_COLORWAY = 2
WEIGHT_ORIGINAL_IMAGE = 2
WEIGHT_NAME_PER_20_CHARS = 1
WEIGHT_PER_TAG = 1

PLACEHOLDER_COLORWAYS = {"", "tbd"}
PLACEHOLDER_COLORWAY_PREFIXES = ("kies een model",)
PLACEHOLDER_DESCRIPTIONS = ("Find your new favourite pair",)

LEGACY_STORE_SLUGS = {
    "END. Clothing": "end-clothing",
    "Foot Locker": "foot-locker",
    "SNS (Sneakersnstuff)": "sns",
    "MR PORTER": "mr-porter",
}

_STYLE_CODE_SUFFIX = re.compile(r"\s*-\s*([A-Za-z0-9][\w-]+)$")
_ID_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")
_HTML_TAG = re.compile(r"<[^>]+>")
_DUPLICATE_BRAND = re.compile(r"^(Jordan|Nike|adidas|Puma|New Balance)\s+\1\s+", re.IGNORECASE)
_SUB_BRAND = re.compile(r"^(adidas|Nike)\s+(Originals|Sportswear|Basketball|Running)\s+", re.IGNORECASE)
_WMNS = re.compile(r"\bWmns\s+")


# ===== FIELD CLEAN-UP =====

def is_placeholder_colorway(colorway: Optional[str]) -> bool:
    value = (colorway or "").strip().lower()
    return value in PLACEHOLDER_COLORWAYS or value.startswith(PLACEHOLDER_COLORWAY_PREFIXES)


def clean_description(description: Optional[str]) -> str:
    """Strip HTML, collapse whitespace, drop store boilerplate, cap length."""
    if not description:
        return ""
    text = re.sub(r"\s+", " ", _HTML_TAG.sub("", description)).strip()
    if text.startswith(PLACEHOLDER_DESCRIPTIONS):
        return ""
    if len(text) > DESCRIPTION_MAX_LENGTH:
        return text[: DESCRIPTION_MAX_LENGTH - 3] + "..."
    return text


def clean_name(name: Optional[str]) -> str:
    """Normalize a product name for display.

    "Jordan Jordan Air Jordan 1 - DZ5485-612" → "Jordan Air Jordan 1"
    """
    n = html.unescape(name or "")
    n = _STYLE_CODE_SUFFIX.sub("", n).strip()
    n = _DUPLICATE_BRAND.sub(r"\1 ", n)
    n = _SUB_BRAND.sub(r"\1 ", n)
    n = _WMNS.sub("", n)
    return n.strip()


def extract_style_code(name: Optional[str]) -> Optional[str]:
    """Style code from a trailing " - CODE" when it looks like one.

    Codes are at least five characters and contain a digit, which keeps
    colour suffixes like " - Black" out.
    """
    match = _STYLE_CODE_SUFFIX.search(name or "")
    if match and len(match.group(1)) >= 5 and re.search(r"\d", match.group(1)):
        return match.group(1).strip()
    return None


def resolve_product_id(style_code: Optional[str], name: Optional[str]) -> str:
    """Stable catalog id: style code, else a code from the name, else a name slug.

    The name-slug fallback can collapse distinct products that share a
    name (e.g. two colorways listed without codes).
    """
    code = (style_code or "").strip() or extract_style_code(name) or ""
    if code:
        return _ID_UNSAFE.sub("-", code).strip("-")
    return slugify(name or "")


# ===== SCORING =====

def richness_score(record: NormalizedProduct) -> int:
    """Heuristic metadata completeness of one scrape record."""
    score = 0
    description = clean_description(record.description)
    if description:
        score += WEIGHT_DESCRIPTION + WEIGHT_DESCRIPTION_PER_100_CHARS * (len(description) // 100)
    if not is_placeholder_colorway(record.colorway):
        score += WEIGHT_COLORWAY
    if record.original_image:
        score += WEIGHT_ORIGINAL_IMAGE
    score += WEIGHT_NAME_PER_20_CHARS * (len(record.name or "") // 20)
    score += WEIGHT_PER_TAG * len(record.tags or [])
    return score


# ===== LISTINGS =====

def _amount(price: Optional[Price]) -> Optional[Decimal]:
    return price.amount if price is not None else None


def build_listing(record: NormalizedProduct, scraped_at: Optional[datetime] = None) -> Listing:
    """One Listing from a scrape record.

    A retail price below the sale price is treated as swapped fields and
    corrected before the discount is computed.
    """
    retail, sale = record.retail_price, record.sale_price
    if retail is not None and sale is not None and retail.amount < sale.amount:
        retail, sale = sale, retail

    return Listing(
        store=record.store,
        url=record.url,
        retail_price=retail,
        sale_price=sale,
        discount=PriceNormalizer.calc_discount(_amount(retail), _amount(sale)),
        sizes=list(record.sizes),
        available=bool(record.sizes),
        last_scraped=scraped_at or datetime.now(timezone.utc),
    )


def listing_key(listing: Listing) -> tuple:
    return listing.store, normalize_url(listing.url)


def upsert_listing(listings: List[Listing], listing: Listing) -> List[Listing]:
    """Replace the listing with the same (store, URL), or append."""
    key = listing_key(listing)
    for i, existing in enumerate(listings):
        if listing_key(existing) == key:
            listings[i] = listing
            return listings
    listings.append(listing)
    return listings


# ===== MERGING =====

def group_records(records: Iterable[NormalizedProduct]) -> Dict[str, List[NormalizedProduct]]:
    """Group scrape records by resolved product id, preserving first-seen order."""
    groups: Dict[str, List[NormalizedProduct]] = {}
    for record in records:
        product_id = resolve_product_id(record.style_code, record.name)
        if not product_id:
            logger.warning("product_id_unresolved", name=record.name, url=record.url)
            continue
        groups.setdefault(product_id, []).append(record)
    return groups


def _first_colorway(records: Sequence[NormalizedProduct]) -> str:
    return next((r.colorway for r in records if not is_placeholder_colorway(r.colorway)), "")


def _richest_description(records: Sequence[NormalizedProduct]) -> str:
    return max((clean_description(r.description) for r in records), key=len, default="")


def _longest_name(records: Sequence[NormalizedProduct]) -> str:
    return max((clean_name(r.name) for r in records), key=len, default="")


def merge_group(
    product_id: str,
    records: Sequence[NormalizedProduct],
    scraped_at: Optional[datetime] = None,
) -> CatalogProduct:
    """Merge records believed to be the same product into one CatalogProduct.

    Args:
        product_id: Resolved catalog id for the group
        records: Scrape records for the same physical product
        scraped_at: Timestamp for the listings (defaults to now)

    Returns:
        CatalogProduct with one listing per distinct (store, URL)
    """
    if not records:
        raise ValueError(f"Cannot merge an empty group for {product_id}")

    # max() keeps the first of equal scores
    base = max(records, key=richness_score)
    image_source = base if base.image else next((r for r in records if r.image), None)

    listings: List[Listing] = []
    for record in records:
        upsert_listing(listings, build_listing(record, scraped_at))
    name = _longest_name(records) or base.name

    return CatalogProduct(
        product_id=product_id,
        name=name,
        brand=base.brand or next((r.brand for r in records if r.brand), ""),
        style_code=base.style_code or next((r.style_code for r in records if r.style_code), ""),
        colorway=_first_colorway(records),
        category=base.category or ProductClassifier.detect_category(name),
        tags=list(dict.fromkeys(tag for r in records for tag in (r.tags or []))),
        image=image_source.image if image_source else "",
        original_image=next((r.original_image for r in records if r.original_image), ""),
        image_status=image_source.image_status if image_source else "missing",
        description=_richest_description(records),
        listings=listings,
    )


def merge_records(
    records: Iterable[NormalizedProduct],
    scraped_at: Optional[datetime] = None,
) -> List[CatalogProduct]:
    """Group and merge a batch of scrape records."""
    groups = group_records(records)
    products = [merge_group(pid, group, scraped_at) for pid, group in groups.items()]
    logger.info("records_merged", products=len(products))
    return products


def merge_into(
    existing: CatalogProduct,
    record: NormalizedProduct,
    scraped_at: Optional[datetime] = None,
) -> CatalogProduct:
    """Fold one new scrape record into an existing catalog product.

    Re-scraping a known (store, URL) updates that listing in place.
    Descriptive fields are only replaced by richer values.
    """
    product = existing.model_copy(deep=True)

    name = clean_name(record.name)
    if len(name) > len(product.name):
        product.name = name
    if not product.brand and record.brand:
        product.brand = record.brand
    if not product.style_code and record.style_code:
        product.style_code = record.style_code
    if is_placeholder_colorway(product.colorway) and not is_placeholder_colorway(record.colorway):
        product.colorway = record.colorway

    description = clean_description(record.description)
    if len(description) > len(product.description):
        product.description = description

    if not product.image and record.image:
        product.image = record.image
        product.image_status = record.image_status
    if not product.original_image and record.original_image:
        product.original_image = record.original_image

    product.tags = list(dict.fromkeys([*product.tags, *(record.tags or [])]))
    product.listings = upsert_listing(list(product.listings), build_listing(record, scraped_at))
    return product


# ===== DUPLICATE LOOKUP =====

def find_duplicate(url: str, products: Iterable[CatalogProduct]) -> Optional[CatalogProduct]:
    """Find a known product for a new URL.

    Checks, in order per product: same normalized listing URL, same SKU
    embedded in a listing URL, style code equal to the URL's SKU.
    """
    normalized = normalize_url(url)
    sku = extract_sku_from_url(url)

    for product in products:
        for listing in product.listings:
            if normalize_url(listing.url) == normalized:
                return product
            if sku and listing.url and extract_sku_from_url(listing.url) == sku:
                return product
        if sku and product.style_code and product.style_code.lower() == sku.lower():
            return product
    return None


# ===== FLAT-LIST MIGRATION =====

def _legacy_price(text: Optional[str]) -> Optional[Price]:
    text = (text or "").strip()
    currency = {"€": "EUR", "£": "GBP", "$": "USD"}.get(text[:1])
    if not currency:
        return None
    return PriceNormalizer.build_price(PriceNormalizer.parse_price(text), currency)


def from_flat_pick(pick: dict) -> NormalizedProduct:
    """Convert one entry of the legacy flat ``picks.json`` list."""
    store_name = pick.get("store") or ""
    name = pick.get("name") or ""
    brand = pick.get("brand") or ProductClassifier.detect_brand(name)
    tags = pick.get("tags") or ProductClassifier.detect_tags(name, brand)
    return NormalizedProduct(
        name=name,
        brand=brand,
        style_code=pick.get("styleCode") or "",
        colorway=pick.get("colorway") or "",
        category=ProductClassifier.detect_category(name, tags),
        tags=list(tags),
        image=pick.get("image") or "",
        description=pick.get("description") or "",
        retail_price=_legacy_price(pick.get("retailPrice")),
        sale_price=_legacy_price(pick.get("salePrice")),
        sizes=list(pick.get("sizes") or []),
        url=pick.get("url") or "",
        store=LEGACY_STORE_SLUGS.get(store_name) or store_slug(store_name),
        original_image=pick.get("_originalImage") or "",
        image_status="ok" if pick.get("image") else "missing",
    )


def migrate_flat_list(picks: Iterable[dict], scraped_at: Optional[datetime] = None) -> List[CatalogProduct]:
    """Group a flat pick list into catalog products.

    Entries captured from an "Access Denied" interstitial are dropped.
    """
    records = [from_flat_pick(p) for p in picks if (p.get("name") or "") != "Access Denied"]
    products = merge_records(records, scraped_at)
    logger.info(
        "flat_list_migrated",
        records=len(records),
        products=len(products),
        merged=len(records) - len(products),
    )
    return products
