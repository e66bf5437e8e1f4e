"""Product domain specific exceptions."""

from catalog.core.exceptions import CatalogError, StoreError, ValidationError

__all__ = ["CatalogError", "ProductNotFoundError", "StoreError", "ValidationError"]


class ProductNotFoundError(CatalogError):
    """Raised when the requested product cannot be found."""

    def __init__(self, product_id: int) -> None:
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id
