"""FASHION. sale listing scraper and catalog builder."""

__version__ = "0.1.0"
