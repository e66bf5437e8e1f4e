"""Staging of incoming uploads onto local disk."""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from fastapi import UploadFile

from .exceptions import FileTooLargeError
from .models import UploadedFile

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


@dataclass(slots=True)
class UploadStager:
    staging_root: Path
    max_file_bytes: int = 10 * 1024 * 1024

    def __post_init__(self) -> None:
        self.staging_root = Path(self.staging_root).resolve()
        self.staging_root.mkdir(parents=True, exist_ok=True)

    async def stage(self, upload: UploadFile) -> UploadedFile:
        file_name = sanitize_filename(upload.filename) or "upload"
        suffix = Path(file_name).suffix.lower()
        target_path = self.staging_root / f"{os.urandom(16).hex()}{suffix}"

        total_size = 0
        try:
            with target_path.open("wb") as buffer:
                while True:
                    chunk = await upload.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    total_size += len(chunk)
                    if total_size > self.max_file_bytes:
                        raise FileTooLargeError(
                            f"File {file_name} exceeds {self.max_file_bytes} bytes"
                        )
                    buffer.write(chunk)
        except BaseException:
            target_path.unlink(missing_ok=True)
            raise
        finally:
            await upload.close()

        return UploadedFile(
            staged_path=target_path,
            file_name=file_name,
            content_type=upload.content_type,
            size_bytes=total_size,
        )

    async def stage_all(self, uploads: Iterable[UploadFile]) -> list[UploadedFile]:
        """Stage every upload, removing already staged files if one fails."""
        staged: list[UploadedFile] = []
        try:
            for upload in uploads:
                staged.append(await self.stage(upload))
        except BaseException:
            await self.discard(staged)
            raise
        return staged

    async def discard(self, files: Iterable[UploadedFile]) -> None:
        paths = [item.staged_path for item in files]
        if paths:
            await asyncio.to_thread(_unlink_all, paths)


def _unlink_all(paths: list[Path]) -> None:
    for path in paths:
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.error("Failed to remove staged upload %s: %s", path, exc)


def sanitize_filename(filename: str | None) -> str | None:
    if not filename:
        return None
    name = os.path.basename(filename.replace("\\", "/"))
    return name.replace("\0", "").strip() or None


__all__ = ["UploadStager", "sanitize_filename"]
