"""Tests for the Pillow codec and its result type."""

import io

import pytest
from PIL import Image

from image_intake.core.codec import CodecResult, PillowImageCodec, quality_to_pillow
from image_intake.core.exceptions import DecodeError, EncodeError
from image_intake.core.models import ImageFormat, PixelSurface
from image_intake.testing.fakes import create_exif_jpeg, create_noise_image, create_test_image


class TestCodecResult:
    """Tests for CodecResult."""

    def test_success(self):
        result = CodecResult.success(42)

        assert result.ok
        assert result.error is None
        assert result.unwrap() == 42

    def test_failure_unwrap_raises_stored_error(self):
        error = EncodeError("no encoder")
        result = CodecResult.failure(error)

        assert not result.ok
        with pytest.raises(EncodeError) as exc_info:
            result.unwrap()
        assert exc_info.value is error


@pytest.mark.parametrize(
    "quality,expected",
    [(0.0, 1), (0.005, 1), (0.85, 85), (0.92, 92), (1.0, 100), (1.7, 100)],
)
def test_quality_to_pillow(quality, expected):
    assert quality_to_pillow(quality) == expected


class TestPillowImageCodec:
    """Tests for PillowImageCodec."""

    @pytest.mark.parametrize("fmt", ["JPEG", "PNG", "WEBP"])
    def test_decode_supported_formats(self, fmt):
        data = create_test_image(40, 30, fmt)

        result = PillowImageCodec().decode(data)

        assert result.ok
        assert result.value.size == (40, 30)

    @pytest.mark.parametrize(
        "data",
        [b"", b"garbage bytes", b"\xff\xd8\xff\xe0 truncated"],
    )
    def test_decode_failure_is_a_value(self, data):
        result = PillowImageCodec().decode(data)

        assert not result.ok
        assert isinstance(result.error, DecodeError)
        assert str(result.error).startswith(
            "Unable to read image file. Please try another file."
        )

    def test_decode_truncated_jpeg(self):
        data = create_test_image(64, 64, "JPEG")[:200]

        result = PillowImageCodec().decode(data)

        assert not result.ok

    def test_decode_drops_exif(self):
        result = PillowImageCodec().decode(create_exif_jpeg(orientation=6))

        assert "exif" not in result.value.image.info

    def test_decode_normalises_palette_images(self):
        image = Image.new("P", (10, 10))
        buffer = io.BytesIO()
        image.save(buffer, format="PNG")

        result = PillowImageCodec().decode(buffer.getvalue())

        assert result.value.image.mode in ("RGB", "RGBA")

    @pytest.mark.parametrize("fmt", list(ImageFormat))
    def test_encode_each_format(self, fmt):
        surface = PixelSurface(Image.new("RGB", (20, 10), (10, 200, 30)))

        result = PillowImageCodec().encode(surface, fmt, 0.8)

        assert result.ok
        with Image.open(io.BytesIO(result.value)) as decoded:
            assert decoded.format == fmt.pil_format
            assert decoded.size == (20, 10)

    @pytest.mark.parametrize("fmt", list(ImageFormat))
    def test_quality_only_affects_lossy_formats(self, fmt):
        codec = PillowImageCodec()
        surface = codec.decode(create_noise_image(64, 64)).value

        low = codec.encode(surface, fmt, 0.2).value
        high = codec.encode(surface, fmt, 0.95).value

        if fmt.is_lossy:
            assert len(low) < len(high)
        else:
            assert low == high

    def test_encode_rgba_as_jpeg(self):
        surface = PixelSurface(Image.new("RGBA", (8, 8), (0, 0, 255, 128)))

        result = PillowImageCodec().encode(surface, ImageFormat.JPEG, 0.9)

        assert result.ok

    def test_encode_empty_surface_fails(self):
        surface = PixelSurface(Image.new("RGB", (0, 0)))

        result = PillowImageCodec().encode(surface, ImageFormat.PNG, 0.9)

        assert not result.ok
        assert isinstance(result.error, EncodeError)

    def test_resample(self):
        surface = PixelSurface(Image.new("RGB", (40, 20)))

        resized = PillowImageCodec().resample(surface, 20, 10)

        assert resized.size == (20, 10)
        assert surface.size == (40, 20)

    def test_resample_same_size_copies(self):
        surface = PixelSurface(Image.new("RGB", (4, 4)))

        resized = PillowImageCodec().resample(surface, 4, 4)

        assert resized.image is not surface.image
        assert resized.size == surface.size
