"""Content sniffing for accepted image formats.

Classification only looks at the leading bytes of the content; the
client-declared file name and MIME type play no part in it.
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import BinaryIO, Optional, Union

from .exceptions import SignatureReadError

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
JPEG_SIGNATURE = b"\xff\xd8\xff"
GIF_SIGNATURES = (b"GIF87a", b"GIF89a")
RIFF_SIGNATURE = b"RIFF"
WEBP_SIGNATURE = b"WEBP"

HEADER_SIZE = 12


class ImageType(str, enum.Enum):
    JPEG = "jpeg"
    PNG = "png"
    GIF = "gif"
    WEBP = "webp"

    @property
    def mime_type(self) -> str:
        return f"image/{self.value}"

    @property
    def extension(self) -> str:
        return ".jpg" if self is ImageType.JPEG else f".{self.value}"


ACCEPTED_IMAGE_TYPES = frozenset(ImageType)


def classify_header(header: bytes) -> Optional[ImageType]:
    if header.startswith(PNG_SIGNATURE):
        return ImageType.PNG
    if header.startswith(JPEG_SIGNATURE):
        return ImageType.JPEG
    if header.startswith(GIF_SIGNATURES):
        return ImageType.GIF
    if header[:4] == RIFF_SIGNATURE and header[8:12] == WEBP_SIGNATURE:
        return ImageType.WEBP
    return None


def classify(source: Union[bytes, bytearray, BinaryIO]) -> Optional[ImageType]:
    """Return the true image type of ``source`` or ``None`` if unrecognized.

    Streams are read from their current position and rewound afterwards when
    they support seeking.
    """
    if isinstance(source, (bytes, bytearray)):
        return classify_header(bytes(source[:HEADER_SIZE]))

    try:
        start = source.tell() if source.seekable() else None
        header = source.read(HEADER_SIZE) or b""
        if start is not None:
            source.seek(start)
    except (OSError, ValueError) as exc:
        raise SignatureReadError(f"Unable to read file content: {exc}") from exc
    return classify_header(header)


def classify_file(path: Path) -> Optional[ImageType]:
    try:
        with Path(path).open("rb") as stream:
            header = stream.read(HEADER_SIZE)
    except OSError as exc:
        raise SignatureReadError(f"Unable to read {path}: {exc}") from exc
    return classify_header(header)


__all__ = [
    "ACCEPTED_IMAGE_TYPES",
    "HEADER_SIZE",
    "ImageType",
    "classify",
    "classify_file",
    "classify_header",
]
