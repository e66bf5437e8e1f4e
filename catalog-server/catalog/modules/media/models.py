"""Domain models for uploaded media."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .signatures import ImageType


@dataclass(slots=True)
class UploadedFile:
    """A file received for the current request, staged on local disk.

    Never outlives the request: it is either promoted into the blob store or
    deleted from staging.
    """

    staged_path: Path
    file_name: str
    content_type: Optional[str]
    size_bytes: int = 0
    detected_type: Optional[ImageType] = None

    @property
    def extension(self) -> str:
        return Path(self.file_name).suffix.lower()
