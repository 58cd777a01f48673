"""Core components of the image intake pipeline."""

from .codec import CodecResult, PillowImageCodec
from .drop import DropExtractor, DropZoneHandle, attach, extract_sources, sources_from_paths
from .exif import ExifCodec, correct_orientation, read_orientation, strip_metadata
from .logging_config import get_logger, setup_logger
from .exceptions import (
    ImageIntakeError,
    ConfigurationError,
    BatchSizeExceeded,
    ImageProcessingError,
    DecodeError,
    EncodeError,
    OrientationError,
    with_error_handling,
)
from .factories import PipelineFactory
from .models import (
    DEFAULT_MAX_DIMENSION,
    DEFAULT_QUALITY,
    MAX_BATCH_SIZE,
    MAX_FILE_SIZE,
    SUPPORTED_MIME_TYPES,
    BatchReport,
    EncodedResult,
    FileByteSource,
    ImageFormat,
    IntakeConfig,
    ItemOutcome,
    MemoryByteSource,
    OptimizationOptions,
    OrientationMetadata,
    PixelSurface,
    ProgressEvent,
    ProgressPhase,
    ValidationErrorKind,
    ValidationOutcome,
)
from .optimizer import ImageOptimizer
from .services import BatchOrchestrator, ImageProcessingService
from .validator import FileValidator

__all__ = [
    "BatchOrchestrator",
    "BatchReport",
    "BatchSizeExceeded",
    "CodecResult",
    "ConfigurationError",
    "DecodeError",
    "DEFAULT_MAX_DIMENSION",
    "DEFAULT_QUALITY",
    "DropExtractor",
    "DropZoneHandle",
    "EncodeError",
    "EncodedResult",
    "ExifCodec",
    "FileByteSource",
    "FileValidator",
    "ImageFormat",
    "ImageIntakeError",
    "ImageOptimizer",
    "ImageProcessingError",
    "ImageProcessingService",
    "IntakeConfig",
    "ItemOutcome",
    "MAX_BATCH_SIZE",
    "MAX_FILE_SIZE",
    "MemoryByteSource",
    "OptimizationOptions",
    "OrientationError",
    "OrientationMetadata",
    "PillowImageCodec",
    "PipelineFactory",
    "PixelSurface",
    "ProgressEvent",
    "ProgressPhase",
    "SUPPORTED_MIME_TYPES",
    "ValidationErrorKind",
    "ValidationOutcome",
    "attach",
    "correct_orientation",
    "extract_sources",
    "get_logger",
    "read_orientation",
    "setup_logger",
    "sources_from_paths",
    "strip_metadata",
    "with_error_handling",
]
