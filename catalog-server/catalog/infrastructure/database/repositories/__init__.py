"""SQLAlchemy-backed repository implementations."""

from .product_repository import SqlProductRepository

__all__ = [
    "SqlProductRepository",
]
