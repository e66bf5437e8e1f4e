"""Public exports for the product catalog services."""

from .exceptions import ProductNotFoundError
from .models import MutationResult, Product, ProductForm
from .service import CatalogService

__all__ = [
    "CatalogService",
    "MutationResult",
    "Product",
    "ProductForm",
    "ProductNotFoundError",
]
