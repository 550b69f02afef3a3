"""Price parsing, currency detection, and URL/slug normalization."""

import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union
from urllib.parse import urlparse, urlunparse

import structlog

from fashion.schemas.catalog import Price

logger = structlog.get_logger(__name__)

Number = Union[Decimal, int, float, str, None]

CURRENCY_SYMBOLS = {
    "GBP": "£",
    "USD": "$",
    "EUR": "€",
}

_LEADING_NUMBER = re.compile(r"\d+(?:\.\d*)?|\.\d+")


def _to_decimal(value: Number) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None


class PriceNormalizer:
    """Price parsing and formatting utilities.

    Store pages render prices as free text ("€ 129,99", "£100", "60.00").
    Parsing is deliberately lenient and never raises.
    """

    @staticmethod
    def parse_price(text: Number) -> Optional[Decimal]:
        """Parse a price string into a Decimal amount.

        Everything except digits, ``.`` and ``,`` is stripped and the first
        ``,`` is read as a decimal separator. The leading numeric run is
        used, so ``"1.234,56"`` yields ``1.234`` (thousands grouping is not
        disambiguated).

        Args:
            text: Raw price text (or a number)

        Returns:
            Decimal amount, or None for empty/non-numeric input
        """
        if text is None or text == "":
            return None

        cleaned = re.sub(r"[^\d.,]", "", str(text)).replace(",", ".", 1)
        match = _LEADING_NUMBER.match(cleaned)
        if not match:
            return None

        try:
            return Decimal(match.group(0))
        except InvalidOperation:
            return None

    @staticmethod
    def calc_discount(retail: Number, sale: Number) -> int:
        """Whole-percent discount of ``sale`` against ``retail``.

        Returns 0 unless both prices are positive and retail > sale.
        """
        retail_dec = _to_decimal(retail)
        sale_dec = _to_decimal(sale)
        if not retail_dec or not sale_dec:
            return 0
        if sale_dec <= 0 or retail_dec <= sale_dec:
            return 0
        pct = (1 - sale_dec / retail_dec) * 100
        return int(pct.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    @staticmethod
    def build_price(amount: Number, currency: str) -> Optional[Price]:
        """Wrap an amount as a Price rounded to cents, or None if empty/zero."""
        amount_dec = _to_decimal(amount)
        if not amount_dec:
            return None
        return Price(
            amount=amount_dec.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP),
            currency=currency or "EUR",
        )

    @staticmethod
    def format_price(amount: Number, currency: str = "EUR") -> str:
        """Render ``£100`` / ``$12.50`` / ``€60`` style price strings."""
        amount_dec = _to_decimal(amount)
        if not amount_dec:
            return ""
        symbol = CURRENCY_SYMBOLS.get((currency or "").upper(), "€")
        if amount_dec == amount_dec.to_integral_value():
            return f"{symbol}{int(amount_dec)}"
        return f"{symbol}{amount_dec.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)}"

    @staticmethod
    def detect_currency(domain: str) -> str:
        """Infer a store's currency from its domain.

        ``.co.uk``/``.uk`` → GBP, bare ``.com`` (not a ``.co*`` domain) → USD,
        anything else → EUR.
        """
        domain = (domain or "").lower()
        if domain.endswith(".co.uk") or domain.endswith(".uk"):
            return "GBP"
        if domain.endswith(".com") and ".co" not in domain[:-4]:
            return "USD"
        return "EUR"


def extract_domain(url: str) -> str:
    """Hostname of ``url`` without a leading ``www.``; empty if unparsable."""
    try:
        host = urlparse(url or "").hostname or ""
    except ValueError:
        return ""
    return host[4:] if host.startswith("www.") else host


def slugify(text: str, max_length: int = 60) -> str:
    """Lower-case ASCII slug used for file names and fallback product ids."""
    slug = re.sub(r"[^a-z0-9]+", "-", (text or "").lower()).strip("-")
    return slug[:max_length].rstrip("-")


def store_slug(name: str) -> str:
    """Slug for a store name ("END. Clothing" → "end-clothing")."""
    slug = re.sub(r"[^a-z0-9]+", "-", (name or "").lower().replace(".", ""))
    return slug.strip("-")


def normalize_url(url: str) -> str:
    """Normalize a product URL for listing de-duplication.

    Drops the query string and fragment, trailing slashes, and case.
    """
    if not url:
        return ""
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return url.strip().lower().rstrip("/")
    if not parsed.scheme or not parsed.netloc:
        return url.strip().lower().rstrip("/")
    cleaned = urlunparse((parsed.scheme, parsed.netloc, parsed.path, "", "", ""))
    return cleaned.rstrip("/").lower()


def extract_sku_from_url(url: str) -> Optional[str]:
    """Pull a store article number or style code out of a product URL.

    Foot Locker URLs end in a 10-15 digit SKU; END. URLs carry the style
    code before ``.html``.
    """
    if not url:
        return None
    match = re.search(r"(\d{10,15})\.html", url)
    if match:
        return match.group(1)
    match = re.search(r"[/\-](\d{10,15})(?:\?|$)", url)
    if match:
        return match.group(1)
    match = re.search(r"([a-zA-Z0-9]+-[a-zA-Z0-9]+)\.html", url)
    if match:
        return match.group(1).lower()
    return None
