"""Media pipeline exceptions."""

from catalog.core.exceptions import CatalogError, ValidationError


class MediaError(CatalogError):
    """Base class for upload and blob handling errors."""


class UploadRejectedError(MediaError):
    """Raised when an uploaded file is refused by the upload gate."""

    def __init__(self, reason: str, file_name: str | None) -> None:
        super().__init__(f"{reason}: {file_name}" if file_name else reason)
        self.reason = reason
        self.file_name = file_name


class DeclaredTypeRejection(UploadRejectedError):
    """The client-declared extension or MIME type is not an accepted image type."""


class SignatureRejection(UploadRejectedError):
    """The file content does not carry the signature of an accepted image type."""


class SignatureReadError(MediaError):
    """Raised when file content cannot be read for signature inspection."""


class TooManyFilesError(ValidationError):
    """Raised when a request carries more files than allowed."""


class FileTooLargeError(ValidationError):
    """Raised when a single upload exceeds the configured size limit."""


class UnknownImageReferenceError(ValidationError):
    """Raised in strict mode when a kept image is not owned by the product."""

    def __init__(self, references: list[str]) -> None:
        super().__init__(f"Unknown image references: {', '.join(references)}")
        self.references = references


class BlobStoreError(MediaError):
    """Raised when accepted uploads cannot be moved into the blob store."""
