"""Tests for models.py."""

import pytest
from pydantic import ValidationError

from image_intake.core.exceptions import ConfigurationError
from image_intake.core.models import (
    DEFAULT_MAX_DIMENSION,
    DEFAULT_QUALITY,
    MAX_BATCH_SIZE,
    MAX_FILE_SIZE,
    BatchReport,
    EncodedResult,
    FileByteSource,
    ImageFormat,
    IntakeConfig,
    ItemOutcome,
    MemoryByteSource,
    OptimizationOptions,
    content_type_for_name,
)
from image_intake.testing.fakes import create_test_image


class TestImageFormat:
    """Tests for ImageFormat."""

    @pytest.mark.parametrize(
        "fmt,mime,pil,lossy",
        [
            (ImageFormat.JPEG, "image/jpeg", "JPEG", True),
            (ImageFormat.PNG, "image/png", "PNG", False),
            (ImageFormat.WEBP, "image/webp", "WEBP", True),
        ],
    )
    def test_properties(self, fmt, mime, pil, lossy):
        assert fmt.mime_type == mime
        assert fmt.pil_format == pil
        assert fmt.is_lossy is lossy

    def test_content_type_for_name(self):
        assert content_type_for_name("IMG_001.JPG") == "image/jpeg"
        assert content_type_for_name("scan.webp") == "image/webp"
        assert content_type_for_name("anim.gif") == ""


class TestByteSources:
    """Tests for MemoryByteSource and FileByteSource."""

    def test_memory_source_defaults_size_to_data_length(self):
        source = MemoryByteSource(name="a.jpg", data=b"12345", content_type="image/jpeg")

        assert source.size == 5
        assert source.read_bytes() == b"12345"

    def test_memory_source_keeps_declared_size(self):
        source = MemoryByteSource(name="a.jpg", data=b"123", size=99)

        assert source.size == 99

    def test_memory_source_is_frozen(self):
        source = MemoryByteSource(name="a.jpg", data=b"123")

        with pytest.raises(ValidationError):
            source.name = "b.jpg"

    def test_file_source_fills_from_path(self, tmp_path):
        data = create_test_image(20, 20, "PNG")
        path = tmp_path / "tile.png"
        path.write_bytes(data)

        source = FileByteSource(path=path)

        assert source.name == "tile.png"
        assert source.content_type == "image/png"
        assert source.size == len(data)
        assert source.read_bytes() == data

    def test_file_source_missing_file_raises_os_error(self, tmp_path):
        with pytest.raises(OSError):
            FileByteSource(path=tmp_path / "missing.jpg")


class TestEncodedResult:
    """Tests for EncodedResult."""

    def test_compression_ratio(self):
        result = EncodedResult(
            data=b"x" * 25, original_size=100, encoded_size=25, width=1, height=1
        )
        assert result.compression_ratio == 0.25

    def test_compression_ratio_with_empty_original(self):
        result = EncodedResult(
            data=b"", original_size=0, encoded_size=0, width=1, height=1
        )
        assert result.compression_ratio == 0.0


class TestBatchReport:
    """Tests for BatchReport count invariants."""

    def test_from_outcomes_counts(self):
        outcomes = [
            ItemOutcome(index=0, name="a.jpg", success=True),
            ItemOutcome(index=1, name="b.gif", success=False, error="bad"),
            ItemOutcome(index=2, name="c.png", success=True),
        ]

        report = BatchReport.from_outcomes(outcomes)

        assert report.total_count == 3
        assert report.success_count == 2
        assert report.failure_count == 1
        assert [o.name for o in report.failures] == ["b.gif"]

    def test_empty_report(self):
        report = BatchReport.from_outcomes([])

        assert report.total_count == 0
        assert report.outcomes == []

    def test_inconsistent_counts_rejected(self):
        with pytest.raises(ValidationError):
            BatchReport(
                outcomes=[ItemOutcome(index=0, name="a.jpg", success=True)],
                success_count=1,
                failure_count=1,
                total_count=2,
            )

    def test_source_excluded_from_dump(self):
        outcome = ItemOutcome(index=0, name="a.jpg", source=object(), success=True)

        assert "source" not in outcome.model_dump()


class TestIntakeConfig:
    """Tests for IntakeConfig."""

    def test_defaults(self):
        config = IntakeConfig()

        assert config.max_batch_size == MAX_BATCH_SIZE == 10
        assert config.max_file_size == MAX_FILE_SIZE == 10 * 1024 * 1024
        assert config.max_dimension == DEFAULT_MAX_DIMENSION == 2000
        assert config.quality == DEFAULT_QUALITY == 0.85
        assert config.output_format is None

    def test_create_ignores_none_overrides(self):
        config = IntakeConfig.create(max_dimension=None, quality=0.5, output_format="webp")

        assert config.max_dimension == DEFAULT_MAX_DIMENSION
        assert config.quality == 0.5
        assert config.output_format is ImageFormat.WEBP

    @pytest.mark.parametrize(
        "overrides",
        [
            {"quality": 1.5},
            {"quality": -0.1},
            {"max_dimension": 0},
            {"max_batch_size": 0},
            {"output_format": "gif"},
        ],
    )
    def test_create_rejects_bad_values(self, overrides):
        with pytest.raises(ConfigurationError):
            IntakeConfig.create(**overrides)

    def test_optimization_options(self):
        config = IntakeConfig(max_dimension=800, quality=0.6, output_format=ImageFormat.PNG)

        options = config.optimization_options()

        assert options == OptimizationOptions(
            max_dimension=800, quality=0.6, format=ImageFormat.PNG
        )
