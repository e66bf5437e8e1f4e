"""In-process query cache."""

from .query_cache import LISTING_PREFIX, QueryCache, listing_key, product_key

__all__ = ["LISTING_PREFIX", "QueryCache", "listing_key", "product_key"]
