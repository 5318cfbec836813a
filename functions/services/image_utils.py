"""Photo helpers for DesignFlow.

Decodes base64/data-URL photos and resizes them to a bounded maximum
dimension before they are sent to either inference service.
"""

import base64
import binascii
import io
from typing import Optional, Tuple

import structlog
from PIL import Image, UnidentifiedImageError

from config.errors import ErrorCode, ValidationError

logger = structlog.get_logger(__name__)

JPEG_QUALITY = 90


def strip_data_url(data: str) -> Tuple[str, Optional[str]]:
    """Split 'data:image/png;base64,....' into (payload, mime type).

    Plain base64 is returned unchanged with a None mime type.
    """
    if data.startswith("data:") and "," in data:
        header, payload = data.split(",", 1)
        mime = header[5:].split(";", 1)[0] or None
        return payload, mime
    return data, None


def decode_image(data: str) -> bytes:
    """Decode a base64 photo (optionally a data URL) to raw bytes.

    Raises:
        ValidationError: If the payload is not valid base64.
    """
    payload, _ = strip_data_url(data.strip())
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError(
            message="Photo is not valid base64",
            field="photo",
            details={"code": ErrorCode.INVALID_FIELD, "error": str(e)}
        )


def encode_image(image_bytes: bytes) -> str:
    return base64.b64encode(image_bytes).decode("ascii")


def resize_image(image_bytes: bytes, max_dimension: int) -> bytes:
    """Resize so the longest side is at most max_dimension.

    Aspect ratio is preserved and the result is re-encoded as JPEG. Photos
    already within bounds are only re-encoded.

    Raises:
        ValidationError: If the bytes are not a readable image.
    """
    try:
        with Image.open(io.BytesIO(image_bytes)) as image:
            image = image.convert("RGB")
            original_size = image.size
            if max(image.size) > max_dimension:
                image.thumbnail((max_dimension, max_dimension), Image.LANCZOS)
            buffer = io.BytesIO()
            image.save(buffer, format="JPEG", quality=JPEG_QUALITY)
    except (UnidentifiedImageError, OSError) as e:
        raise ValidationError(
            message="Photo could not be read as an image",
            field="photo",
            details={"code": ErrorCode.INVALID_FIELD, "error": str(e)}
        )

    logger.debug(
        "image_resized",
        original_size=original_size,
        resized_size=image.size,
        bytes_out=buffer.tell()
    )
    return buffer.getvalue()


def prepare_photo(photo: str, max_dimension: int) -> str:
    """Decode, bound and re-encode a base64 photo as base64 JPEG."""
    return encode_image(resize_image(decode_image(photo), max_dimension))
