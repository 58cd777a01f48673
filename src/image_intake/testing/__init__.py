"""Testing utilities and fakes for the image intake pipeline."""

from .fakes import (
    FakeDataTransfer,
    FakeDataTransferItem,
    FakeDragEvent,
    FakeImageCodec,
    FakeLogger,
    app1_segment,
    build_exif_payload,
    create_exif_jpeg,
    create_noise_image,
    create_test_image,
    make_source,
)

__all__ = [
    "FakeDataTransfer",
    "FakeDataTransferItem",
    "FakeDragEvent",
    "FakeImageCodec",
    "FakeLogger",
    "app1_segment",
    "build_exif_payload",
    "create_exif_jpeg",
    "create_noise_image",
    "create_test_image",
    "make_source",
]
