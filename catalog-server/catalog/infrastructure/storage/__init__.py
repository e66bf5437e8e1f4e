"""Blob storage backends."""

from .blob_store import DeleteOutcome, LocalBlobStore

__all__ = ["DeleteOutcome", "LocalBlobStore"]
