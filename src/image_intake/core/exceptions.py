"""Custom exceptions and error handling utilities for the image intake pipeline."""

from __future__ import annotations

from contextlib import contextmanager
from functools import wraps
from typing import Any, Callable, Optional, TypeVar

from .logging_config import get_logger


class ImageIntakeError(Exception):
    """Base exception for all image intake errors."""


class ConfigurationError(ImageIntakeError):
    """Error raised for invalid configuration options."""


class BatchSizeExceeded(ImageIntakeError):
    """Raised before any item is touched when a batch holds too many sources."""

    def __init__(self, count: int, limit: int) -> None:
        self.count = count
        self.limit = limit
        super().__init__(f"Too many files. Maximum {limit} files per upload.")


class ImageProcessingError(ImageIntakeError):
    """Error raised when processing a single image fails."""


class DecodeError(ImageProcessingError):
    """The bytes of one item could not be decoded into a pixel surface."""

    default_message = "Unable to read image file. Please try another file."

    def __init__(self, detail: Optional[str] = None) -> None:
        self.detail = detail
        message = self.default_message
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class EncodeError(ImageProcessingError):
    """A pixel surface could not be encoded back into bytes."""


class OrientationError(ImageProcessingError):
    """Applying an orientation transform to a surface failed."""


F = TypeVar("F", bound=Callable[..., Any])


def with_error_handling(func: F) -> F:
    """Wrap a function with standardized error handling."""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:  # type: ignore[override]
        logger = get_logger("processor")
        try:
            return func(*args, **kwargs)
        except ImageIntakeError:
            logger.error("Pipeline error", exc_info=True)
            raise
        except Exception as exc:  # noqa: BLE001
            logger.error(f"Unhandled error in {func.__name__}: {exc}", exc_info=True)
            raise ImageProcessingError(str(exc)) from exc

    return wrapper  # type: ignore[return-value]


@contextmanager
def item_error_boundary() -> Any:
    """Normalise anything raised while processing one item to ImageProcessingError."""
    try:
        yield
    except ImageIntakeError:
        raise
    except Exception as exc:  # noqa: BLE001
        raise ImageProcessingError(str(exc) or type(exc).__name__) from exc
