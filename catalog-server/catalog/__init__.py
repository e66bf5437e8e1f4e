"""Catalog server: product listings, image uploads and cache-consistent reads."""

__version__ = "0.1.0"
