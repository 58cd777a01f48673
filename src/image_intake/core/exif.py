"""EXIF orientation handling for JPEG data.

Three operations live here:

* ``read_orientation`` walks the JPEG marker segments, finds the APP1/Exif
  block and reads orientation, camera make/model and capture time from IFD0.
* ``correct_orientation`` turns a decoded surface upright for a given code.
* ``strip_metadata`` rewrites a JPEG without its APP1 segments.

Parsing is defensive: malformed or hostile input yields ``None`` (or the
original bytes, for stripping) and never an exception.
"""

import struct
from typing import Dict, Optional

from PIL import Image

from .error_handling import translate_pillow_errors
from .logging_config import get_logger
from .models import OrientationMetadata, PixelSurface

JPEG_SOI = b"\xff\xd8"
MARKER_PREFIX = 0xFF
APP1_MARKER = 0xE1
SOS_MARKER = 0xDA
EXIF_SIGNATURE = b"Exif\x00\x00"
TIFF_MAGIC = 0x002A
IFD_ENTRY_SIZE = 12

TAG_ORIENTATION = 0x0112
TAG_MAKE = 0x010F
TAG_MODEL = 0x0110
TAG_DATETIME = 0x0132

STRING_TAGS = {
    TAG_MAKE: "make",
    TAG_MODEL: "model",
    TAG_DATETIME: "captured_at",
}

# EXIF orientation code -> transform that makes the image upright.
ORIENTATION_TRANSFORMS = {
    2: Image.Transpose.FLIP_LEFT_RIGHT,
    3: Image.Transpose.ROTATE_180,
    4: Image.Transpose.FLIP_TOP_BOTTOM,
    5: Image.Transpose.TRANSPOSE,
    6: Image.Transpose.ROTATE_270,
    7: Image.Transpose.TRANSVERSE,
    8: Image.Transpose.ROTATE_90,
}

SWAPPED_ORIENTATIONS = frozenset({5, 6, 7, 8})

logger = get_logger("exif")


class _MalformedExif(Exception):
    """Internal signal: the data does not hold a well-formed EXIF block."""


class _Reader:
    """Bounds-checked integer reads over an immutable buffer."""

    def __init__(self, data: bytes, byte_order: str = ">") -> None:
        self.data = data
        self.byte_order = byte_order

    def _unpack(self, fmt: str, offset: int, width: int) -> int:
        if offset < 0 or offset + width > len(self.data):
            raise _MalformedExif(f"read of {width} bytes at {offset} past end of data")
        return struct.unpack_from(self.byte_order + fmt, self.data, offset)[0]

    def u16(self, offset: int) -> int:
        return self._unpack("H", offset, 2)

    def u32(self, offset: int) -> int:
        return self._unpack("I", offset, 4)

    def c_string(self, offset: int, limit: Optional[int] = None) -> str:
        if offset < 0 or offset >= len(self.data):
            raise _MalformedExif(f"string offset {offset} outside data")
        end = len(self.data) if limit is None else min(len(self.data), offset + limit)
        terminator = self.data.find(b"\x00", offset, end)
        if terminator != -1:
            end = terminator
        return self.data[offset:end].decode("latin-1")


def _find_app1(data: bytes) -> Optional[int]:
    """Return the offset of the APP1 payload (just past its length field)."""
    reader = _Reader(data)
    offset = 2
    while offset < len(data):
        if data[offset] != MARKER_PREFIX:
            return None
        if offset + 4 > len(data):
            return None
        marker = data[offset + 1]
        if marker == SOS_MARKER:
            # Compressed scan data follows; no APP1 can appear after it.
            return None
        length = reader.u16(offset + 2)
        if length < 2 or offset + 2 + length > len(data):
            return None
        if marker == APP1_MARKER:
            return offset + 4
        offset += 2 + length
    return None


def _parse_exif(data: bytes, start: int) -> Optional[OrientationMetadata]:
    if data[start : start + len(EXIF_SIGNATURE)] != EXIF_SIGNATURE:
        return None

    tiff_start = start + len(EXIF_SIGNATURE)
    byte_order_mark = data[tiff_start : tiff_start + 2]
    if byte_order_mark == b"II":
        reader = _Reader(data, "<")
    elif byte_order_mark == b"MM":
        reader = _Reader(data, ">")
    else:
        return None

    if reader.u16(tiff_start + 2) != TIFF_MAGIC:
        return None

    ifd_start = tiff_start + reader.u32(tiff_start + 4)
    entry_count = reader.u16(ifd_start)

    fields: Dict[str, object] = {}
    for index in range(entry_count):
        entry = ifd_start + 2 + index * IFD_ENTRY_SIZE
        tag = reader.u16(entry)
        if tag == TAG_ORIENTATION:
            fields["orientation"] = reader.u16(entry + 8)
        elif tag in STRING_TAGS:
            count = reader.u32(entry + 4)
            if count <= 4:
                # Short ASCII values are stored inline in the value field.
                value = reader.c_string(entry + 8, limit=count)
            else:
                value = reader.c_string(tiff_start + reader.u32(entry + 8))
            fields[STRING_TAGS[tag]] = value

    return OrientationMetadata(**fields)


def read_orientation(data: bytes) -> Optional[OrientationMetadata]:
    """
    Read orientation and camera metadata from JPEG bytes.

    Args:
        data: Raw file bytes; anything that is not a JPEG is ignored.

    Returns:
        OrientationMetadata (orientation defaults to 1) or None when no
        well-formed EXIF block is present.
    """
    data = bytes(data or b"")
    if not data.startswith(JPEG_SOI):
        return None
    try:
        app1 = _find_app1(data)
        if app1 is None:
            return None
        return _parse_exif(data, app1)
    except _MalformedExif as exc:
        logger.debug(f"Ignoring malformed EXIF block: {exc}")
        return None


def oriented_size(width: int, height: int, orientation: int) -> tuple:
    """Dimensions of a width x height image once ``orientation`` is applied."""
    if orientation in SWAPPED_ORIENTATIONS:
        return height, width
    return width, height


@translate_pillow_errors("transform")
def _transpose(image: Image.Image, method: Image.Transpose) -> Image.Image:
    return image.transpose(method)


def correct_orientation(surface: PixelSurface, orientation: int) -> PixelSurface:
    """
    Return a new surface with the EXIF orientation applied.

    Codes outside 1..8 are treated as 1 (identity).
    """
    method = ORIENTATION_TRANSFORMS.get(orientation)
    if method is None:
        return PixelSurface(surface.image.copy())
    logger.debug(f"Applying orientation {orientation} ({method.name}) to {surface.width}x{surface.height}")
    return PixelSurface(_transpose(surface.image, method))


def strip_metadata(data: bytes) -> bytes:
    """
    Remove APP1 (EXIF) segments from JPEG bytes.

    Non-JPEG input and streams that do not reach a start-of-scan marker
    cleanly are returned unchanged.
    """
    data = bytes(data or b"")
    if not data.startswith(JPEG_SOI):
        return data

    reader = _Reader(data)
    stripped = bytearray(JPEG_SOI)
    offset = 2
    removed = 0
    try:
        while offset < len(data):
            if data[offset] != MARKER_PREFIX or offset + 4 > len(data):
                break
            marker = data[offset + 1]
            length = reader.u16(offset + 2)
            end = offset + 2 + length
            if length < 2 or end > len(data):
                break

            if marker == APP1_MARKER:
                removed += 1
            else:
                stripped += data[offset:end]

            if marker == SOS_MARKER:
                # Entropy-coded data is copied verbatim, never parsed.
                stripped += data[end:]
                logger.debug(f"Stripped {removed} APP1 segment(s)")
                return bytes(stripped)
            offset = end
    except _MalformedExif as exc:
        logger.debug(f"Leaving malformed JPEG untouched: {exc}")
        return data

    logger.debug("No start-of-scan marker reached; returning original bytes")
    return data


class ExifCodec:
    """Object facade over the EXIF functions, for injection into services."""

    def read_orientation(self, data: bytes) -> Optional[OrientationMetadata]:
        return read_orientation(data)

    def correct_orientation(self, surface: PixelSurface, orientation: int) -> PixelSurface:
        return correct_orientation(surface, orientation)

    def strip_metadata(self, data: bytes) -> bytes:
        return strip_metadata(data)
