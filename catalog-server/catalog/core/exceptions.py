"""Base exceptions shared by the catalog modules."""


class CatalogError(Exception):
    """Base class for catalog domain errors."""


class ValidationError(CatalogError):
    """Raised when a request is missing required fields or carries invalid values."""


class StoreError(CatalogError):
    """Raised when the backing record store is unavailable or a query fails."""
