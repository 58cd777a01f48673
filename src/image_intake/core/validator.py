"""Type and size gatekeeping for incoming byte sources."""

from pathlib import PurePath
from typing import List, Optional

from .models import (
    MAX_FILE_SIZE,
    MIME_TYPE_FORMATS,
    SUFFIX_FORMATS,
    SUPPORTED_MIME_TYPES,
    ImageFormat,
    ValidationErrorKind,
    ValidationOutcome,
)
from .protocols import ByteSourceProtocol

UNSUPPORTED_TYPE_MESSAGE = "Unsupported file type. Please use JPG, PNG, or WebP."


def oversized_message(max_size: int) -> str:
    return f"File too large. Maximum size is {max_size // (1024 * 1024)}MB."


def resolve_format(content_type: str, name: str) -> Optional[ImageFormat]:
    """
    Work out which accepted image kind a source is.

    The declared content type wins; the filename suffix is only consulted
    when the type is missing or not one we recognize.

    Args:
        content_type: Declared MIME type, possibly empty.
        name: File name, used for its suffix.

    Returns:
        The matching ImageFormat, or None for anything unsupported.
    """
    declared = str(content_type or "").split(";")[0].strip().lower()
    fmt = MIME_TYPE_FORMATS.get(declared)
    if fmt is not None:
        return fmt
    return SUFFIX_FORMATS.get(PurePath(str(name or "")).suffix.lower())


class FileValidator:
    """Stateless validator; ``validate`` never raises."""

    def __init__(self, max_file_size: int = MAX_FILE_SIZE) -> None:
        self.max_file_size = max_file_size

    def validate(self, source: ByteSourceProtocol) -> ValidationOutcome:
        content_type = getattr(source, "content_type", "") or ""
        size = getattr(source, "size", 0) or 0

        if not self.is_valid_image_type(source):
            return ValidationOutcome(
                valid=False,
                error_kind=ValidationErrorKind.UNSUPPORTED_TYPE,
                content_type=content_type,
                size=size,
                error=UNSUPPORTED_TYPE_MESSAGE,
            )

        if not self.is_valid_size(source, self.max_file_size):
            return ValidationOutcome(
                valid=False,
                error_kind=ValidationErrorKind.OVERSIZED,
                content_type=content_type,
                size=size,
                error=oversized_message(self.max_file_size),
            )

        return ValidationOutcome(valid=True, content_type=content_type, size=size)

    @staticmethod
    def is_valid_image_type(source: ByteSourceProtocol) -> bool:
        return (
            resolve_format(
                getattr(source, "content_type", ""), getattr(source, "name", "")
            )
            is not None
        )

    @staticmethod
    def is_valid_size(source: ByteSourceProtocol, max_size: int = MAX_FILE_SIZE) -> bool:
        size = getattr(source, "size", None)
        if not isinstance(size, int) or size < 0:
            return False
        return size <= max_size

    @staticmethod
    def supported_formats() -> List[str]:
        """Accepted MIME types; a new list on every call."""
        return list(SUPPORTED_MIME_TYPES)
