"""Shared data models for the image intake pipeline."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional, Sequence

from PIL import Image
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .exceptions import ConfigurationError

MAX_BATCH_SIZE = 10
MAX_FILE_SIZE = 10 * 1024 * 1024
DEFAULT_MAX_DIMENSION = 2000
DEFAULT_QUALITY = 0.85
# Quality used for the orientation-corrected intermediate buffer.
INTERMEDIATE_QUALITY = 0.92


class ImageFormat(str, Enum):
    """Image kinds accepted and produced by the pipeline."""

    JPEG = "jpeg"
    PNG = "png"
    WEBP = "webp"

    @property
    def mime_type(self) -> str:
        return f"image/{self.value}"

    @property
    def pil_format(self) -> str:
        return self.value.upper()

    @property
    def is_lossy(self) -> bool:
        return self is not ImageFormat.PNG


SUPPORTED_MIME_TYPES = tuple(fmt.mime_type for fmt in ImageFormat)

MIME_TYPE_FORMATS = {
    "image/jpeg": ImageFormat.JPEG,
    "image/jpg": ImageFormat.JPEG,
    "image/png": ImageFormat.PNG,
    "image/webp": ImageFormat.WEBP,
}

SUFFIX_FORMATS = {
    ".jpg": ImageFormat.JPEG,
    ".jpeg": ImageFormat.JPEG,
    ".png": ImageFormat.PNG,
    ".webp": ImageFormat.WEBP,
}


def content_type_for_name(name: str) -> str:
    """Guess the declared content type a file picker would report for a name."""
    fmt = SUFFIX_FORMATS.get(Path(name).suffix.lower())
    if fmt is None:
        return ""
    return fmt.mime_type


class MemoryByteSource(BaseModel):
    """A byte source whose bytes are already in memory."""

    model_config = ConfigDict(frozen=True)

    name: str
    data: bytes = Field(repr=False)
    content_type: str = ""
    size: int = Field(default=0, ge=0)

    @model_validator(mode="before")
    @classmethod
    def _default_size(cls, values: Any) -> Any:
        if isinstance(values, dict) and values.get("size") is None:
            values = {**values, "size": len(values.get("data") or b"")}
        return values

    def read_bytes(self) -> bytes:
        return self.data


class FileByteSource(BaseModel):
    """A byte source backed by a file on disk, read lazily."""

    model_config = ConfigDict(frozen=True)

    path: Path
    name: str = ""
    content_type: str = ""
    size: int = Field(default=0, ge=0)

    @model_validator(mode="before")
    @classmethod
    def _fill_from_path(cls, values: Any) -> Any:
        if not isinstance(values, dict) or "path" not in values:
            return values
        path = Path(values["path"])
        name = values.get("name") or path.name
        filled = {**values, "path": path, "name": name}
        if not values.get("content_type"):
            filled["content_type"] = content_type_for_name(name)
        if values.get("size") is None:
            filled["size"] = path.stat().st_size
        return filled

    def read_bytes(self) -> bytes:
        return self.path.read_bytes()


class ValidationErrorKind(str, Enum):
    """Why a source was rejected by the validator."""

    NONE = "none"
    UNSUPPORTED_TYPE = "unsupported_type"
    OVERSIZED = "oversized"


class ValidationOutcome(BaseModel):
    """Result of validating a single byte source."""

    model_config = ConfigDict(frozen=True)

    valid: bool
    error_kind: ValidationErrorKind = ValidationErrorKind.NONE
    content_type: str = ""
    size: int = 0
    error: Optional[str] = None


class OrientationMetadata(BaseModel):
    """Camera metadata read from a JPEG's EXIF block."""

    model_config = ConfigDict(frozen=True)

    orientation: int = 1
    make: Optional[str] = None
    model: Optional[str] = None
    captured_at: Optional[str] = None


@dataclass(frozen=True)
class PixelSurface:
    """A decoded bitmap. Stages never mutate a surface; they return a new one."""

    image: Image.Image

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    @property
    def size(self) -> tuple:
        return self.image.size

    def pixel(self, x: int, y: int) -> Any:
        return self.image.getpixel((x, y))


class EncodedResult(BaseModel):
    """Final optimized artifact for one item."""

    model_config = ConfigDict(frozen=True)

    data: bytes = Field(repr=False)
    original_size: int
    encoded_size: int
    width: int
    height: int
    format: ImageFormat = ImageFormat.JPEG

    @property
    def compression_ratio(self) -> float:
        if self.original_size <= 0:
            return 0.0
        return self.encoded_size / self.original_size


class ItemOutcome(BaseModel):
    """Result of running one source through the pipeline."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    index: int
    name: str
    source: Any = Field(default=None, exclude=True, repr=False)
    success: bool = False
    error: Optional[str] = None
    validation: Optional[ValidationOutcome] = None
    encoded: Optional[EncodedResult] = Field(default=None, repr=False)
    processing_time: float = 0.0


class BatchReport(BaseModel):
    """Aggregate result of one batch invocation."""

    model_config = ConfigDict(frozen=True)

    outcomes: List[ItemOutcome] = Field(default_factory=list)
    success_count: int = 0
    failure_count: int = 0
    total_count: int = 0

    @model_validator(mode="after")
    def _check_counts(self) -> "BatchReport":
        if not (
            len(self.outcomes)
            == self.total_count
            == self.success_count + self.failure_count
        ):
            raise ValueError(
                "outcome count, total count and success + failure must agree"
            )
        return self

    @classmethod
    def from_outcomes(cls, outcomes: Sequence[ItemOutcome]) -> "BatchReport":
        successes = sum(1 for outcome in outcomes if outcome.success)
        return cls(
            outcomes=list(outcomes),
            success_count=successes,
            failure_count=len(outcomes) - successes,
            total_count=len(outcomes),
        )

    @property
    def failures(self) -> List[ItemOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.success]


class ProgressPhase(str, Enum):
    """Per-item phase reported to progress callbacks."""

    VALIDATING = "validating"
    PROCESSING = "processing"
    OPTIMIZING = "optimizing"
    COMPLETE = "complete"
    ERROR = "error"


class ProgressEvent(BaseModel):
    """One progress notification for one item of a batch."""

    model_config = ConfigDict(frozen=True)

    index: int
    total: int
    phase: ProgressPhase
    name: str = ""


class OptimizationOptions(BaseModel):
    """Options for resizing and re-encoding one image."""

    model_config = ConfigDict(frozen=True)

    max_dimension: int = Field(default=DEFAULT_MAX_DIMENSION, ge=1)
    quality: float = Field(default=DEFAULT_QUALITY, ge=0.0, le=1.0)
    format: Optional[ImageFormat] = None


class IntakeConfig(BaseModel):
    """Configuration for the intake pipeline."""

    model_config = ConfigDict(frozen=True)

    max_batch_size: int = Field(default=MAX_BATCH_SIZE, ge=1)
    max_file_size: int = Field(default=MAX_FILE_SIZE, ge=1)
    max_dimension: int = Field(default=DEFAULT_MAX_DIMENSION, ge=1)
    quality: float = Field(default=DEFAULT_QUALITY, ge=0.0, le=1.0)
    intermediate_quality: float = Field(default=INTERMEDIATE_QUALITY, ge=0.0, le=1.0)
    output_format: Optional[ImageFormat] = None
    debug: bool = False

    @classmethod
    def create(cls, **overrides: Any) -> "IntakeConfig":
        """Build a config, reporting bad values as ConfigurationError."""
        values = {key: value for key, value in overrides.items() if value is not None}
        try:
            return cls(**values)
        except ValidationError as exc:
            raise ConfigurationError(str(exc)) from exc

    def optimization_options(self) -> OptimizationOptions:
        return OptimizationOptions(
            max_dimension=self.max_dimension,
            quality=self.quality,
            format=self.output_format,
        )
