"""Keyword-based brand, tag and category detection for product names.

All lookups are ordered scans over the lower-cased name; the first match
wins. Jordan is checked before Nike on purpose: "Air Jordan" names would
otherwise be claimed by Nike-family keywords such as "air".
"""

from typing import Iterable, List, Optional

# (keywords, brand) in precedence order
BRAND_KEYWORDS = [
    (["jordan", "air jordan"], "Jordan"),
    (["nike", "air max", "air force", "dunk", "blazer", "vapormax", "air tn"], "Nike"),
    (["adidas", "yeezy", "ultraboost", "nmd", "stan smith", "superstar", "samba", "gazelle"], "adidas"),
    (["new balance", "nb ", "990", "991", "992", "993", "550", "2002r", "1906r", "1906", "9060"], "New Balance"),
    (["asics", "gel-", "gel lyte"], "ASICS"),
    (["puma", "suede", "rs-x", "speedcat"], "Puma"),
    (["converse", "chuck taylor"], "Converse"),
    (["vans", "old skool"], "Vans"),
    (["reebok", "club c"], "Reebok"),
    (["salomon", "xt-6", "xt-4", "speedcross"], "Salomon"),
    (["on running", "on cloud", "cloudmonster", "cloudsurfer", "cloudboom"], "On"),
    (["hoka", "bondi", "clifton"], "HOKA"),
    (["timberland"], "Timberland"),
    (["dr. martens", "dr martens"], "Dr. Martens"),
    (["north face"], "The North Face"),
    (["carhartt"], "Carhartt WIP"),
    (["stussy", "stüssy"], "Stüssy"),
    (["stone island"], "Stone Island"),
    (["c.p. company", "cp company"], "C.P. Company"),
    (["moncler"], "Moncler"),
    (["off-white", "off white"], "Off-White"),
    (["fear of god", "essentials"], "Fear of God"),
    (["arc'teryx", "arcteryx"], "Arc'teryx"),
]

SNEAKER_WORDS = [
    "shoe", "sneaker", "trainer", "runner", "air max", "dunk", "retro", "air force",
]

CLOTHING_WORDS = [
    "hoodie", "jacket", "shirt", "pants", "shorts", "coat", "sweatshirt",
    "jogger", "fleece", "sweater", "cardigan", "parka", "windbreaker",
]

ACCESSORY_WORDS = [
    "hat", "cap", "bag", "backpack", "wallet", "belt", "watch",
    "sunglasses", "scarf", "gloves", "socks", "beanie",
]

# Category rules, checked in order; anything else is a sneaker
CATEGORY_RULES = [
    ("Clothing", ["jacket", "coat", "parka", "waxed"]),
    ("Clothing", ["hoodie", "sweatshirt", "pullover"]),
    ("Clothing", ["shirt", "t-shirt", "pants", "trousers", "shorts", "jogger", "sweater", "fleece"]),
    ("Footwear", ["boot", "6 inch", "sandal", "slipper", "loafer", "clog", "mule", "boat shoe"]),
    ("Accessories", ["bag", "hat", "cap", "belt", "wallet", "scarf", "glove", "beanie", "socks"]),
]

CATEGORIES = ("Sneakers", "Clothing", "Footwear", "Accessories")
DEFAULT_CATEGORY = "Sneakers"


class ProductClassifier:
    """Brand/tag/category detection from product names."""

    @staticmethod
    def detect_brand(name: Optional[str]) -> str:
        """Detect a brand from a product name, or "" if nothing matches."""
        lower = (name or "").lower()
        if not lower:
            return ""

        if "jordan" in lower and ("air jordan" in lower or "jordan " in lower):
            return "Jordan"

        for keywords, brand in BRAND_KEYWORDS:
            if any(kw in lower for kw in keywords):
                return brand
        return ""

    @staticmethod
    def detect_tags(name: Optional[str], brand: Optional[str]) -> List[str]:
        """Build the tag list for a product.

        Always contains "Sale" and the brand (when known), plus at most one
        type tag: "Sneakers" or the capitalized first clothing/accessory
        keyword found in the name.
        """
        tags: List[str] = []
        lower = (name or "").lower()

        if any(w in lower for w in SNEAKER_WORDS):
            tags.append("Sneakers")
        else:
            for words in (CLOTHING_WORDS, ACCESSORY_WORDS):
                match = next((w for w in words if w in lower), None)
                if match:
                    tags.append(match.capitalize())
                    break

        if brand:
            tags.append(brand)
        tags.append("Sale")

        # dict preserves first-seen order
        return list(dict.fromkeys(tags))

    @staticmethod
    def detect_category(name: Optional[str], tags: Optional[Iterable[str]] = None) -> str:
        """Map a product name to Sneakers/Clothing/Footwear/Accessories."""
        lower = (name or "").lower()
        for category, words in CATEGORY_RULES:
            if any(w in lower for w in words):
                return category
        for tag in tags or []:
            if tag in CATEGORIES:
                return tag
        return DEFAULT_CATEGORY
