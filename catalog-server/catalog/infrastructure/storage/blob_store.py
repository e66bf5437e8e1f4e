"""Local directory blob store holding product images."""

from __future__ import annotations

import enum
import logging
import os
import secrets
import shutil
import time
from pathlib import Path
from typing import BinaryIO

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


class DeleteOutcome(str, enum.Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    IO_ERROR = "io_error"


def generate_blob_name(suggested_name: str) -> str:
    """Build a unique file name keeping the suggested extension."""
    suffix = Path(os.path.basename(suggested_name or "")).suffix.lower()
    return f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{suffix}"


class LocalBlobStore:
    """Blob store keyed by bare file names inside a single directory.

    References never contain path separators; anything else is treated as a
    blob that does not exist so client-supplied values cannot escape the root.
    """

    def __init__(self, root: Path, public_url_prefix: str = "/photo") -> None:
        self.root = Path(root).resolve()
        self.public_url_prefix = public_url_prefix.rstrip("/")
        self.root.mkdir(parents=True, exist_ok=True)

    def _path_for(self, reference: str) -> Path | None:
        if not reference or reference in {".", ".."}:
            return None
        if os.path.basename(reference) != reference or "\0" in reference:
            return None
        return self.root / reference

    def save(self, stream: BinaryIO, suggested_name: str) -> str:
        reference = generate_blob_name(suggested_name)
        target_path = self.root / reference
        try:
            with target_path.open("wb") as buffer:
                shutil.copyfileobj(stream, buffer, CHUNK_SIZE)
        except OSError:
            target_path.unlink(missing_ok=True)
            raise
        return reference

    def promote(self, staged_path: Path, suggested_name: str) -> str:
        """Move a staged file into the store under a fresh reference."""
        reference = generate_blob_name(suggested_name)
        shutil.move(str(staged_path), str(self.root / reference))
        return reference

    def exists(self, reference: str) -> bool:
        path = self._path_for(reference)
        return path is not None and path.is_file()

    def read(self, reference: str) -> bytes:
        path = self._path_for(reference)
        if path is None:
            raise FileNotFoundError(reference)
        return path.read_bytes()

    def delete(self, reference: str) -> DeleteOutcome:
        path = self._path_for(reference)
        if path is None:
            return DeleteOutcome.NOT_FOUND
        try:
            path.unlink()
        except FileNotFoundError:
            return DeleteOutcome.NOT_FOUND
        except OSError as exc:
            logger.error("Failed to delete blob %s: %s", reference, exc)
            return DeleteOutcome.IO_ERROR
        return DeleteOutcome.OK

    def public_url_for(self, reference: str) -> str:
        return f"{self.public_url_prefix}/{reference}"


__all__ = ["DeleteOutcome", "LocalBlobStore", "generate_blob_name"]
