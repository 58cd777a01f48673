"""Aspect-preserving resize and re-encode of decoded images."""

from typing import Optional, Tuple

from .codec import PillowImageCodec
from .logging_config import get_logger
from .models import (
    DEFAULT_MAX_DIMENSION,
    DEFAULT_QUALITY,
    EncodedResult,
    ImageFormat,
    OptimizationOptions,
    PixelSurface,
)
from .protocols import ByteSourceProtocol, ImageCodecProtocol
from .validator import resolve_format


def fit_within(width: int, height: int, max_dimension: int) -> Tuple[int, int]:
    """
    Scale (width, height) so the longer side is at most ``max_dimension``.

    Args:
        width: Source width in pixels
        height: Source height in pixels
        max_dimension: Upper bound for the longer side

    Returns:
        The target (width, height); unchanged when already small enough.
        The shorter side is rounded and never drops below 1.
    """
    if max_dimension < 1:
        raise ValueError(f"max_dimension must be positive, got {max_dimension}")
    longer = max(width, height)
    if longer <= max_dimension:
        return width, height

    if width >= height:
        return max_dimension, max(1, round(height * max_dimension / width))
    return max(1, round(width * max_dimension / height)), max_dimension


def format_for_source(source: ByteSourceProtocol) -> ImageFormat:
    """Output format matching what the source declared; JPEG when unknown."""
    fmt = resolve_format(
        getattr(source, "content_type", ""), getattr(source, "name", "")
    )
    return fmt or ImageFormat.JPEG


class ImageOptimizer:
    """Resizes and re-encodes images through an injected codec."""

    def __init__(self, codec: Optional[ImageCodecProtocol] = None) -> None:
        self._codec = codec or PillowImageCodec()
        self._logger = get_logger("optimizer")

    def resize(
        self, surface: PixelSurface, max_dimension: int = DEFAULT_MAX_DIMENSION
    ) -> PixelSurface:
        width, height = fit_within(surface.width, surface.height, max_dimension)
        if (width, height) == (surface.width, surface.height):
            return surface
        self._logger.debug(
            f"Resizing {surface.width}x{surface.height} -> {width}x{height}"
        )
        return self._codec.resample(surface, width, height)

    def encode(
        self,
        surface: PixelSurface,
        quality: float = DEFAULT_QUALITY,
        image_format: ImageFormat = ImageFormat.JPEG,
    ) -> bytes:
        """Encode a surface; raises EncodeError on failure."""
        return self._codec.encode(surface, ImageFormat(image_format), quality).unwrap()

    def optimize(
        self,
        source: ByteSourceProtocol,
        options: Optional[OptimizationOptions] = None,
    ) -> EncodedResult:
        """
        Decode, resize and re-encode one source.

        Raises:
            DecodeError: the source bytes are not a readable image
            EncodeError: the resized surface could not be encoded
        """
        options = options or OptimizationOptions()
        image_format = options.format or format_for_source(source)
        data = source.read_bytes()

        surface = self._codec.decode(data).unwrap()
        surface = self.resize(surface, options.max_dimension)
        encoded = self.encode(surface, options.quality, image_format)

        result = EncodedResult(
            data=encoded,
            original_size=len(data),
            encoded_size=len(encoded),
            width=surface.width,
            height=surface.height,
            format=image_format,
        )
        self._logger.debug(
            f"Optimized {getattr(source, 'name', '<source>')}: "
            f"{result.original_size} -> {result.encoded_size} bytes "
            f"({result.width}x{result.height} {image_format.value})"
        )
        return result
