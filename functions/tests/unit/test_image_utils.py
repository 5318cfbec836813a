"""Unit tests for photo helpers."""

import base64
import io

import pytest
from PIL import Image

from config.errors import ValidationError
from services.image_utils import decode_image, prepare_photo, resize_image, strip_data_url


def _png(width, height) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGBA", (width, height), color=(255, 0, 0, 128)).save(buffer, format="PNG")
    return buffer.getvalue()


class TestStripDataUrl:
    """Tests for strip_data_url()."""

    def test_data_url(self):
        assert strip_data_url("data:image/png;base64,AAAA") == ("AAAA", "image/png")

    def test_plain_base64(self):
        assert strip_data_url("AAAA") == ("AAAA", None)


class TestDecodeImage:
    """Tests for decode_image()."""

    def test_decodes_data_url(self):
        raw = _png(4, 4)
        encoded = "data:image/png;base64," + base64.b64encode(raw).decode("ascii")

        assert decode_image(encoded) == raw

    def test_invalid_base64(self):
        with pytest.raises(ValidationError) as exc_info:
            decode_image("%%%not-base64%%%")

        assert exc_info.value.details["field"] == "photo"


class TestResizeImage:
    """Tests for resize_image()."""

    def test_long_side_bounded(self):
        resized = Image.open(io.BytesIO(resize_image(_png(3000, 1500), 1568)))

        assert resized.size == (1568, 784)
        assert resized.format == "JPEG"

    def test_small_image_keeps_size(self):
        resized = Image.open(io.BytesIO(resize_image(_png(64, 48), 1568)))

        assert resized.size == (64, 48)
        assert resized.mode == "RGB"

    def test_unreadable_bytes(self):
        with pytest.raises(ValidationError):
            resize_image(b"definitely not an image", 1568)


class TestPreparePhoto:
    """Tests for prepare_photo()."""

    def test_round_trip_to_jpeg(self, sample_photo_base64):
        prepared = prepare_photo(sample_photo_base64, 32)
        image = Image.open(io.BytesIO(base64.b64decode(prepared)))

        assert image.format == "JPEG"
        assert image.size == (32, 24)
