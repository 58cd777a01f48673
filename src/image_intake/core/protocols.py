"""Protocol definitions for dependency injection and testability."""

from typing import Any, Callable, Optional, Protocol, Sequence

from .models import ImageFormat, PixelSurface, ProgressEvent


class ByteSourceProtocol(Protocol):
    """What the pipeline needs from "a file", whether picked or dropped."""

    name: str
    content_type: str
    size: int

    def read_bytes(self) -> bytes:
        """Return the raw bytes of the source."""
        ...


class ImageCodecProtocol(Protocol):
    """Decode/encode surface the pipeline drives; results are CodecResult values."""

    def decode(self, data: bytes) -> Any:
        """Decode raw bytes into a pixel surface."""
        ...

    def encode(
        self, surface: PixelSurface, image_format: ImageFormat, quality: float
    ) -> Any:
        """Encode a pixel surface into bytes."""
        ...

    def resample(self, surface: PixelSurface, width: int, height: int) -> PixelSurface:
        """Draw a surface onto a new surface of the given dimensions."""
        ...


class LoggerProtocol(Protocol):
    """Protocol for logging operations."""

    def debug(self, message: str, *args: Any, **kwargs: Any) -> None:
        """Log debug message."""
        ...

    def info(self, message: str, *args: Any, **kwargs: Any) -> None:
        """Log info message."""
        ...

    def warning(self, message: str, *args: Any, **kwargs: Any) -> None:
        """Log warning message."""
        ...

    def error(self, message: str, *args: Any, **kwargs: Any) -> None:
        """Log error message."""
        ...


ProgressCallback = Callable[[ProgressEvent], None]


class DataTransferItemProtocol(Protocol):
    """One entry of a structured drop item list."""

    kind: str
    type: str

    def get_as_file(self) -> Optional[ByteSourceProtocol]:
        ...


class DataTransferProtocol(Protocol):
    """Payload of a drop event; ``items`` may be None on hosts without it."""

    items: Optional[Sequence[DataTransferItemProtocol]]
    files: Sequence[ByteSourceProtocol]


class DragEventProtocol(Protocol):
    """A host drag/drop event."""

    type: str
    data_transfer: Optional[DataTransferProtocol]

    def prevent_default(self) -> None:
        ...

    def stop_propagation(self) -> None:
        ...


class EventTargetProtocol(Protocol):
    """An element that drag events can be listened for on."""

    def add_event_listener(
        self, event_type: str, listener: Callable[[Any], None]
    ) -> None:
        ...

    def remove_event_listener(
        self, event_type: str, listener: Callable[[Any], None]
    ) -> None:
        ...
