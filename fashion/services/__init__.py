"""Catalog-side services: images, merging, persistence, queue."""
