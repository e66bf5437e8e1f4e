"""Feature modules and their public exports."""

from . import media, products

__all__ = [
    "media",
    "products",
]
