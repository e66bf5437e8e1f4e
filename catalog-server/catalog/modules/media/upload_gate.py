"""Two-layer admission check for uploaded images."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from .exceptions import (
    DeclaredTypeRejection,
    MediaError,
    SignatureRejection,
    TooManyFilesError,
)
from .models import UploadedFile
from .signatures import ACCEPTED_IMAGE_TYPES, ImageType, classify_file
from .staging import UploadStager

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class DeclaredTypeFilter:
    """Cheap check against what the client claims the file is."""

    extensions: frozenset[str]
    mime_types: frozenset[str]

    @classmethod
    def from_lists(cls, extensions: Iterable[str], mime_types: Iterable[str]) -> "DeclaredTypeFilter":
        return cls(
            extensions=frozenset(ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in extensions),
            mime_types=frozenset(mime.lower() for mime in mime_types),
        )

    def allows(self, item: UploadedFile) -> bool:
        declared_mime = (item.content_type or "").split(";", 1)[0].strip().lower()
        return item.extension in self.extensions and declared_mime in self.mime_types


@dataclass(slots=True)
class UploadGate:
    stager: UploadStager
    declared_filter: DeclaredTypeFilter
    max_files: int = 10
    accepted_types: frozenset[ImageType] = field(default=ACCEPTED_IMAGE_TYPES)

    async def admit(self, files: Sequence[UploadedFile]) -> list[UploadedFile]:
        """Admit every file of the batch or reject the whole batch.

        Files are checked in submission order. The first failure deletes every
        staged file of the batch, accepted ones included, and then propagates.
        """
        if not files:
            return []
        try:
            if len(files) > self.max_files:
                raise TooManyFilesError(f"At most {self.max_files} images per request")
            for item in files:
                await self._check(item)
        except (MediaError, TooManyFilesError) as exc:
            logger.warning("Rejecting upload batch of %d file(s): %s", len(files), exc)
            await self.stager.discard(files)
            raise
        return list(files)

    async def _check(self, item: UploadedFile) -> None:
        if not self.declared_filter.allows(item):
            raise DeclaredTypeRejection("Only image files (jpeg, jpg, png, gif, webp) are accepted", item.file_name)

        detected = await asyncio.to_thread(classify_file, item.staged_path)
        if detected is None or detected not in self.accepted_types:
            raise SignatureRejection("File content is not a valid image", item.file_name)
        item.detected_type = detected


__all__ = ["DeclaredTypeFilter", "UploadGate"]
