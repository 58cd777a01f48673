"""Tests for validator.py."""

import pytest

from image_intake.core.models import MAX_FILE_SIZE, ValidationErrorKind
from image_intake.core.validator import (
    UNSUPPORTED_TYPE_MESSAGE,
    FileValidator,
    oversized_message,
    resolve_format,
)
from image_intake.core.models import ImageFormat
from image_intake.testing.fakes import make_source


class TestResolveFormat:
    """Tests for resolve_format."""

    @pytest.mark.parametrize(
        "content_type,name,expected",
        [
            ("image/jpeg", "a.bin", ImageFormat.JPEG),
            ("image/jpg", "a", ImageFormat.JPEG),
            ("image/PNG", "a", ImageFormat.PNG),
            ("image/webp; charset=binary", "a", ImageFormat.WEBP),
            ("", "photo.JPEG", ImageFormat.JPEG),
            ("application/octet-stream", "photo.png", ImageFormat.PNG),
            ("image/gif", "anim.gif", None),
            ("", "notes.txt", None),
            ("", "", None),
        ],
    )
    def test_resolve(self, content_type, name, expected):
        assert resolve_format(content_type, name) is expected

    def test_declared_type_wins_over_suffix(self):
        assert resolve_format("image/png", "photo.jpg") is ImageFormat.PNG


class TestFileValidator:
    """Tests for FileValidator."""

    def test_valid_source(self):
        source = make_source("photo.jpg", size=1024)

        outcome = FileValidator().validate(source)

        assert outcome.valid
        assert outcome.error_kind is ValidationErrorKind.NONE
        assert outcome.error is None
        assert outcome.content_type == "image/jpeg"
        assert outcome.size == 1024

    def test_unsupported_type(self):
        source = make_source("anim.gif", data=b"GIF89a", content_type="image/gif")

        outcome = FileValidator().validate(source)

        assert not outcome.valid
        assert outcome.error_kind is ValidationErrorKind.UNSUPPORTED_TYPE
        assert outcome.error == "Unsupported file type. Please use JPG, PNG, or WebP."
        assert outcome.error == UNSUPPORTED_TYPE_MESSAGE

    def test_oversized(self):
        source = make_source("big.jpg", size=15 * 1024 * 1024)

        outcome = FileValidator().validate(source)

        assert not outcome.valid
        assert outcome.error_kind is ValidationErrorKind.OVERSIZED
        assert outcome.error == "File too large. Maximum size is 10MB."
        assert outcome.size == 15 * 1024 * 1024

    def test_exact_limit_is_accepted(self):
        source = make_source("edge.jpg", size=MAX_FILE_SIZE)

        assert FileValidator().validate(source).valid

    def test_type_checked_before_size(self):
        source = make_source("huge.gif", data=b"GIF89a", content_type="image/gif", size=MAX_FILE_SIZE + 1)

        outcome = FileValidator().validate(source)

        assert outcome.error_kind is ValidationErrorKind.UNSUPPORTED_TYPE

    def test_custom_limit(self):
        validator = FileValidator(max_file_size=2 * 1024 * 1024)
        source = make_source("photo.jpg", size=3 * 1024 * 1024)

        outcome = validator.validate(source)

        assert outcome.error == oversized_message(2 * 1024 * 1024)
        assert outcome.error == "File too large. Maximum size is 2MB."

    def test_validate_never_raises_on_odd_sources(self):
        class Odd:
            name = None
            content_type = None
            size = None

        outcome = FileValidator().validate(Odd())

        assert not outcome.valid
        assert outcome.error_kind is ValidationErrorKind.UNSUPPORTED_TYPE

    def test_is_valid_size_rejects_non_integer(self):
        class NoSize:
            size = "12"

        assert not FileValidator.is_valid_size(NoSize())

    def test_supported_formats_returns_fresh_list(self):
        formats = FileValidator.supported_formats()
        formats.append("image/gif")

        assert FileValidator.supported_formats() == ["image/jpeg", "image/png", "image/webp"]
