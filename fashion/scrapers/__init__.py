"""Store scrapers: page extraction, adapters, dispatch."""
