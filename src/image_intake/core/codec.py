"""Pillow-backed decode/encode surface.

Decode and encode never raise for bad input: they return a ``CodecResult``
holding either the value or the ``DecodeError``/``EncodeError`` that explains
the failure, so callers branch on the result instead of catching.
"""

import io
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from PIL import Image

from .error_handling import translate_pillow_errors
from .exceptions import DecodeError, EncodeError, ImageProcessingError
from .logging_config import get_logger
from .models import ImageFormat, PixelSurface

T = TypeVar("T")

# Modes every output format can be produced from without surprises.
_WORKING_MODES = ("RGB", "RGBA", "L", "LA")
_JPEG_MODES = ("RGB", "L")


@dataclass(frozen=True)
class CodecResult(Generic[T]):
    """Success-or-error value returned by codec operations."""

    value: Optional[T] = None
    error: Optional[ImageProcessingError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value, raising the stored error on failure."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

    @classmethod
    def success(cls, value: T) -> "CodecResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: ImageProcessingError) -> "CodecResult[T]":
        return cls(error=error)


def quality_to_pillow(quality: float) -> int:
    """Map a 0..1 quality onto Pillow's 1..100 lossy quality scale."""
    return max(1, min(100, int(round(quality * 100))))


@translate_pillow_errors("decode")
def _open_image(data: bytes) -> Image.Image:
    if not data:
        raise DecodeError("empty image data")
    image = Image.open(io.BytesIO(data))
    image.load()
    # Orientation is applied to the pixels downstream; the tag must not be re-emitted.
    image.info.pop("exif", None)
    if image.mode not in _WORKING_MODES:
        has_alpha = "A" in image.getbands() or "transparency" in image.info
        image = image.convert("RGBA" if has_alpha else "RGB")
    return image


@translate_pillow_errors("encode")
def _save_image(image: Image.Image, image_format: ImageFormat, quality: float) -> bytes:
    if image.width < 1 or image.height < 1:
        raise EncodeError("cannot encode an empty surface")

    if image_format is ImageFormat.JPEG and image.mode not in _JPEG_MODES:
        image = image.convert("RGB")

    if not image_format.is_lossy:
        params = {"optimize": True}
    elif image_format is ImageFormat.WEBP:
        params = {"quality": quality_to_pillow(quality), "method": 4}
    else:
        params = {"quality": quality_to_pillow(quality), "optimize": True}

    output_stream = io.BytesIO()
    image.save(output_stream, format=image_format.pil_format, **params)
    return output_stream.getvalue()


class PillowImageCodec:
    """Decode/encode surface implemented with Pillow."""

    def __init__(self) -> None:
        self._logger = get_logger("codec")

    def decode(self, data: bytes) -> CodecResult[PixelSurface]:
        try:
            image = _open_image(data)
        except DecodeError as exc:
            self._logger.debug(f"Decode failed: {exc}")
            return CodecResult.failure(exc)
        self._logger.debug(f"Decoded {image.format or 'image'} {image.width}x{image.height} ({image.mode})")
        return CodecResult.success(PixelSurface(image))

    def encode(
        self, surface: PixelSurface, image_format: ImageFormat, quality: float
    ) -> CodecResult[bytes]:
        try:
            data = _save_image(surface.image, image_format, quality)
        except EncodeError as exc:
            self._logger.debug(f"Encode to {image_format.value} failed: {exc}")
            return CodecResult.failure(exc)
        return CodecResult.success(data)

    @translate_pillow_errors("resize")
    def resample(self, surface: PixelSurface, width: int, height: int) -> PixelSurface:
        if (width, height) == surface.size:
            return PixelSurface(surface.image.copy())
        resized = surface.image.resize((width, height), Image.Resampling.LANCZOS)
        return PixelSurface(resized)
