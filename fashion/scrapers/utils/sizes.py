"""Shoe and clothing size normalization.

Footwear has no single universal scale and each source store reports its
own system: Foot Locker reports bare EU numbers, SNS reports bare US
numbers, END. prefixes UK or EU. Normalization is therefore store-aware.

Canonical form is ``"EU <n>"`` (half-size granularity) for footwear;
letter, waist and one-size values pass through unchanged. Anything not
recognised is returned as-is rather than discarded.
"""

import re
from typing import Iterable, List, Optional

import structlog

logger = structlog.get_logger(__name__)


# Men's US → EU (half-size accurate)
US_M_TO_EU = {
    3.5: 35.5, 4: 36, 4.5: 36.5, 5: 37.5, 5.5: 38,
    6: 38.5, 6.5: 39, 7: 40, 7.5: 40.5, 8: 41,
    8.5: 42, 9: 42.5, 9.5: 43, 10: 44, 10.5: 44.5,
    11: 45, 11.5: 45.5, 12: 46, 12.5: 47, 13: 47.5,
    14: 48.5, 15: 49.5,
}

# Men's UK → EU
UK_M_TO_EU = {
    3: 35.5, 3.5: 36, 4: 36.5, 4.5: 37.5, 5: 38,
    5.5: 38.5, 6: 39, 6.5: 40, 7: 40.5, 7.5: 41,
    8: 42, 8.5: 42.5, 9: 43, 9.5: 44, 10: 44.5,
    10.5: 45, 11: 45.5, 11.5: 46, 12: 47, 12.5: 47.5,
    13: 48.5, 14: 49.5,
}

# Women's US → EU (shifted ~1.5 from men's)
US_W_TO_EU = {
    5: 35.5, 5.5: 36, 6: 36.5, 6.5: 37.5, 7: 38,
    7.5: 38.5, 8: 39, 8.5: 40, 9: 40.5, 9.5: 41,
    10: 42, 10.5: 42.5, 11: 43, 11.5: 44, 12: 44.5,
}

# Kids: C = toddler/child, Y = youth
US_KIDS_TO_EU = {
    "1C": 16, "1.5C": 16.5, "2C": 17, "2.5C": 18, "3C": 18.5,
    "3.5C": 19, "4C": 19.5, "4.5C": 20, "5C": 21, "5.5C": 21.5,
    "6C": 22, "6.5C": 22.5, "7C": 23.5, "7.5C": 24, "8C": 25,
    "8.5C": 25.5, "9C": 26, "9.5C": 26.5, "10C": 27, "10.5C": 27.5,
    "11C": 28, "11.5C": 28.5, "12C": 29.5, "12.5C": 30, "13C": 31,
    "13.5C": 31.5,
    "1Y": 32, "1.5Y": 33, "2Y": 33.5, "2.5Y": 34, "3Y": 35,
    "3.5Y": 35.5, "4Y": 36, "4.5Y": 36.5, "5Y": 37.5, "5.5Y": 38,
    "6Y": 38.5, "6.5Y": 39, "7Y": 40,
}

UK_KIDS_TO_EU = {
    "0.5C": 16, "1C": 17, "1.5C": 17.5, "2C": 18, "2.5C": 18.5,
    "2Y": 33.5, "11.5C": 29.5,
}

PASSTHROUGH_SIZES = frozenset({
    "XXS", "XS", "S", "M", "L", "XL", "XXL", "2XL", "3XL", "XXXL",
    "OS", "ONE SIZE",
})

# Store-name keywords by native size system
EU_SIZE_STORES = ("foot locker", "footlocker")
US_SIZE_STORES = ("sns", "sneakersnstuff")

WOMENS_MARKERS = ("wmns", "women", "wmn")
KIDS_MARKERS = ("(td)", "(ps)", "(gs)", "baby", "toddler", "kids")

_KIDS_TOKEN = re.compile(r"^(\d+(?:\.5)?)([CY])$", re.IGNORECASE)
_EU_TOKEN = re.compile(r"^EU\s*(\d+(?:\.\d+)?)$", re.IGNORECASE)
_UK_TOKEN = re.compile(r"^UK\s*(\d+(?:\.\d+)?)([CY])?$", re.IGNORECASE)
_US_TOKEN = re.compile(r"^US\s*(\d+(?:\.\d+)?)$", re.IGNORECASE)
_BARE_NUMBER = re.compile(r"^\d+(?:\.\d+)?$")
_WAIST = re.compile(r"^W\d+", re.IGNORECASE)


def format_eu(value: float) -> str:
    """Render an EU number the way the front end expects ("EU 42", "EU 42.5")."""
    value = float(value)
    if value.is_integer():
        return f"EU {int(value)}"
    return f"EU {value:g}"


def _round_half(value: float) -> float:
    # Math.round semantics (half rounds up), at half-size steps
    return int(value * 2 + 0.5) / 2


def us_to_eu(us_size: float) -> float:
    """Men's US → EU, table first, then the linear approximation."""
    eu = US_M_TO_EU.get(us_size)
    if eu is not None:
        return eu
    return _round_half(us_size + 33)


def uk_to_eu(uk_size: float) -> float:
    """Men's UK → EU, table first, then the linear approximation."""
    eu = UK_M_TO_EU.get(uk_size)
    if eu is not None:
        return eu
    return _round_half(uk_size + 33.5)


def is_womens(product_name: str) -> bool:
    lower = (product_name or "").lower()
    return any(marker in lower for marker in WOMENS_MARKERS)


def is_kids(product_name: str, tags: Optional[Iterable[str]] = None) -> bool:
    lower = (product_name or "").lower()
    if any(marker in lower for marker in KIDS_MARKERS):
        return True
    return "kids" in {t.lower() for t in (tags or [])}


def store_size_system(store_name: str) -> str:
    """Return ``"EU"``, ``"US"`` or ``"UNKNOWN"`` for a store name."""
    store = (store_name or "").lower()
    if any(keyword in store for keyword in EU_SIZE_STORES):
        return "EU"
    if any(keyword in store for keyword in US_SIZE_STORES):
        return "US"
    return "UNKNOWN"


def _kids_key(number: str, suffix: str) -> str:
    # "2.0C" and "2C" must hit the same table key
    value = float(number)
    return f"{value:g}{suffix.upper()}"


def normalize_size(
    raw: str,
    store_name: str = "",
    product_name: str = "",
    tags: Optional[Iterable[str]] = None,
) -> str:
    """Convert one store-native size token into its canonical form.

    Args:
        raw: Size token as scraped ("7", "UK 8.5", "EU 42", "2C", "M")
        store_name: Originating store name, decides the bare-number system
        product_name: Used for women's/kids detection
        tags: Optional product tags (a "Kids" tag marks kids products)

    Returns:
        Canonical size token; unrecognised input is returned unchanged
    """
    s = (raw or "").strip()
    if not s:
        return s

    if s.upper() in PASSTHROUGH_SIZES or _WAIST.match(s):
        return s

    kids_match = _KIDS_TOKEN.match(s)
    if kids_match:
        key = _kids_key(kids_match.group(1), kids_match.group(2))
        eu = US_KIDS_TO_EU.get(key)
        if eu is None:
            eu = UK_KIDS_TO_EU.get(key)
        return format_eu(eu) if eu is not None else s

    eu_match = _EU_TOKEN.match(s)
    if eu_match:
        return format_eu(float(eu_match.group(1)))

    uk_match = _UK_TOKEN.match(s)
    if uk_match:
        if uk_match.group(2):
            key = _kids_key(uk_match.group(1), uk_match.group(2))
            eu = UK_KIDS_TO_EU.get(key, US_KIDS_TO_EU.get(key))
            return format_eu(eu) if eu is not None else s
        return format_eu(uk_to_eu(float(uk_match.group(1))))

    us_match = _US_TOKEN.match(s)
    if us_match:
        return format_eu(us_to_eu(float(us_match.group(1))))

    if _BARE_NUMBER.match(s):
        return format_eu(_bare_to_eu(float(s), store_name, product_name, tags))

    return s


def _bare_to_eu(
    number: float,
    store_name: str,
    product_name: str,
    tags: Optional[Iterable[str]],
) -> float:
    system = store_size_system(store_name)

    if system == "EU":
        return number

    if system == "US":
        if is_womens(product_name):
            eu = US_W_TO_EU.get(number)
            return eu if eu is not None else _round_half(number + 33)
        if is_kids(product_name, tags):
            eu = US_KIDS_TO_EU.get(_kids_key(str(number), "Y"))
            if eu is not None:
                return eu
        return us_to_eu(number)

    # Unknown origin: large numbers are already EU
    if number >= 35:
        return number
    return us_to_eu(number)


def normalize_sizes(
    sizes: Iterable[str],
    store_name: str = "",
    product_name: str = "",
    tags: Optional[Iterable[str]] = None,
) -> List[str]:
    """Normalize a list of size tokens, preserving order."""
    tags = list(tags or [])
    return [normalize_size(s, store_name, product_name, tags) for s in (sizes or [])]


_VALID_SIZE_PATTERNS = [
    re.compile(r"^(EU\s?)?\d{2}(\.5)?$", re.IGNORECASE),
    re.compile(r"^(US|UK)?\s?\d{1,2}(\.5)?$", re.IGNORECASE),
    re.compile(r"^(UK\s?)?\d{1,2}(\.5)?[CY]$", re.IGNORECASE),
    re.compile(r"^(XXS|XS|S|M|L|XL|XXL|2XL|3XL|XXXL)$", re.IGNORECASE),
    re.compile(r"^W\d{2,3}$", re.IGNORECASE),
    re.compile(r"^(OS|ONE SIZE)$", re.IGNORECASE),
]


def is_valid_size(text: str) -> bool:
    """Reject implausible size tokens (button labels, prices, long text)."""
    if not text or len(text) > 15:
        return False
    t = text.strip()
    return any(pattern.match(t) for pattern in _VALID_SIZE_PATTERNS)


def clean_sizes(
    sizes: Iterable[str],
    store_name: str = "",
    product_name: str = "",
    tags: Optional[Iterable[str]] = None,
) -> List[str]:
    """Drop invalid tokens, then normalize the rest."""
    raw = list(sizes or [])
    valid = [s for s in raw if is_valid_size(s)]
    if len(valid) != len(raw):
        logger.debug("invalid_sizes_dropped", dropped=len(raw) - len(valid))
    return normalize_sizes(valid, store_name, product_name, tags)
