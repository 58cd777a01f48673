import logging
from unittest.mock import patch

import pytest

from image_intake.core.exceptions import (
    BatchSizeExceeded,
    ConfigurationError,
    DecodeError,
    EncodeError,
    ImageIntakeError,
    ImageProcessingError,
    OrientationError,
    item_error_boundary,
    with_error_handling,
)


@with_error_handling
def _fail_func() -> None:
    raise ValueError("boom")


@with_error_handling
def _intake_fail_func() -> None:
    raise DecodeError("bad header")


def test_with_error_handling_raises_image_processing_error() -> None:
    with pytest.raises(ImageProcessingError, match="boom"):
        _fail_func()


def test_with_error_handling_passes_intake_errors_through() -> None:
    with pytest.raises(DecodeError):
        _intake_fail_func()


def test_with_error_handling_logs_error() -> None:
    with patch("image_intake.core.exceptions.get_logger") as mock_get_logger:
        mock_logger = logging.getLogger("test")
        mock_get_logger.return_value = mock_logger
        with pytest.raises(ImageProcessingError):
            _fail_func()
        assert mock_get_logger.called


@pytest.mark.parametrize(
    "error_type",
    [ConfigurationError, BatchSizeExceeded, ImageProcessingError, DecodeError, EncodeError, OrientationError],
)
def test_hierarchy(error_type) -> None:
    assert issubclass(error_type, ImageIntakeError)


def test_batch_size_exceeded_message() -> None:
    error = BatchSizeExceeded(11, 10)

    assert str(error) == "Too many files. Maximum 10 files per upload."
    assert (error.count, error.limit) == (11, 10)


def test_decode_error_message() -> None:
    assert str(DecodeError()) == "Unable to read image file. Please try another file."
    error = DecodeError("cannot identify image file")
    assert str(error) == (
        "Unable to read image file. Please try another file. (cannot identify image file)"
    )
    assert error.detail == "cannot identify image file"


def test_item_error_boundary_normalises_foreign_errors() -> None:
    with pytest.raises(ImageProcessingError) as exc_info:
        with item_error_boundary():
            raise KeyError("missing")
    assert isinstance(exc_info.value.__cause__, KeyError)


def test_item_error_boundary_keeps_intake_errors() -> None:
    with pytest.raises(EncodeError):
        with item_error_boundary():
            raise EncodeError("no encoder")
