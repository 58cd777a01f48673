# src/image_intake/core/error_handling.py

import functools
import logging

from PIL import Image, UnidentifiedImageError as PILUnidentifiedImageError

from .exceptions import (
    DecodeError,
    EncodeError,
    ImageIntakeError,
    ImageProcessingError,
    OrientationError,
)

# Errors Pillow raises for unreadable, truncated or hostile input.
PIL_DECODE_ERRORS = (
    PILUnidentifiedImageError,
    Image.DecompressionBombError,
    OSError,
    SyntaxError,
    ValueError,
)


def translate_pillow_errors(stage):
    """
    A decorator that maps Pillow exceptions raised inside a codec stage onto
    the pipeline's own error types.

    Args:
        stage: One of "decode", "encode", "transform" or "resize".
    """
    error_types = {
        "decode": DecodeError,
        "encode": EncodeError,
        "transform": OrientationError,
        "resize": ImageProcessingError,
    }
    if stage not in error_types:
        raise ValueError(f"Unknown codec stage: {stage}")
    target = error_types[stage]

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            logger = logging.getLogger(func.__module__ + '.' + func.__name__)
            try:
                return func(*args, **kwargs)
            except ImageIntakeError:
                raise
            except PIL_DECODE_ERRORS as e:
                logger.debug(f"{stage} failed in '{func.__name__}': {e}")
                if target is DecodeError:
                    raise DecodeError(str(e) or type(e).__name__) from e
                raise target(f"Image {stage} error in {func.__name__}: {e}") from e
        return wrapper
    return decorator


def format_file_size(size):
    """Render a byte count the way upload errors show it, e.g. "15.0 MB"."""
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


class BatchOperationContextManager:
    """
    Context manager for batch operations to collect and summarize errors.
    """
    def __init__(self, operation_name="Batch Operation", logger=None):
        self.operation_name = operation_name
        self.errors = []
        self.logger = logger or logging.getLogger(
            self.__class__.__module__ + '.' + self.__class__.__name__
        )

    def __enter__(self):
        self.logger.info(f"Starting {self.operation_name}.")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            self.logger.error(
                f"{self.operation_name} aborted: {exc_val}"
            )
        elif self.errors:
            self.logger.warning(
                f"{self.operation_name} completed with {len(self.errors)} error(s)."
            )
            for i, error_detail in enumerate(self.errors):
                item_identifier = error_detail.get('item', 'Unknown item')
                error_message = error_detail.get('error', 'Unknown error')
                self.logger.warning(
                    f"  Error {i+1}/{len(self.errors)} for item '{item_identifier}': {error_message}"
                )
        else:
            self.logger.info(f"{self.operation_name} completed successfully.")

        # Never suppress: a batch-level exception must reach the caller.
        return False

    def add_error(self, error_message: str, item_identifier: str = "Unknown item"):
        """
        Call this method within the 'with' block to report an error for a specific item.

        Args:
            error_message (str): The error message or exception string.
            item_identifier (str): A string identifying the item that failed (e.g., filename).
        """
        self.errors.append({"item": item_identifier, "error": str(error_message)})
        self.logger.debug(f"Error added for item '{item_identifier}' in {self.operation_name}: {error_message}")
