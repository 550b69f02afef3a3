"""Store adapters.

Each adapter differs only in where it sources the fields the structured
data misses, and in its post-processing quirks.
"""

from fashion.scrapers.adapters.end import EndClothingAdapter
from fashion.scrapers.adapters.footlocker import FootLockerAdapter
from fashion.scrapers.adapters.generic import GenericAdapter
from fashion.scrapers.adapters.mrporter import MrPorterAdapter
from fashion.scrapers.adapters.sns import SneakersnstuffAdapter

__all__ = [
    "EndClothingAdapter",
    "FootLockerAdapter",
    "GenericAdapter",
    "MrPorterAdapter",
    "SneakersnstuffAdapter",
]
