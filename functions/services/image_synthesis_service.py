"""Image synthesis service for DesignFlow.

Posts the narrative prompt and the source photo to the image generation
endpoint and returns the rendered previews.

No retry: a failed call surfaces immediately as a typed
ExternalServiceError and any retry is started by the caller.
"""

import base64
import binascii
import time
import uuid
from typing import Any, Dict, List, Optional, Tuple

import httpx
import structlog

from config.errors import ErrorCode, ExternalServiceError
from config.settings import settings
from models.pipeline import Render
from services.image_utils import strip_data_url

logger = structlog.get_logger(__name__)

SERVICE_NAME = "image_synthesis"
EDITS_ENDPOINT = "/images/edits"
DEFAULT_PHOTO_MIME = "image/jpeg"


class ImageSynthesisService:
    """Prompt + photo -> rendered images."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        size: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """Initialize ImageSynthesisService.

        Args:
            api_key: Image API key (default from settings).
            base_url: API base URL (default from settings).
            model: Image model (default from settings).
            size: Output size, e.g. "1536x1024" (default from settings).
            timeout_seconds: Request timeout (default from settings).
            transport: Optional httpx transport, used by tests.
        """
        self.api_key = api_key or settings.image_api_key
        self.base_url = (base_url or settings.image_api_base_url).rstrip("/")
        self.model = model or settings.image_model
        self.size = size or settings.image_size
        self.timeout_seconds = timeout_seconds or settings.image_timeout_seconds
        self._transport = transport

    async def generate(
        self,
        prompt: str,
        photo_base64: str,
        count: int = 1,
        mime_type: Optional[str] = None
    ) -> List[Render]:
        """Generate rendered previews.

        Args:
            prompt: Narrative prompt.
            photo_base64: Source photo, base64 or a data URL.
            count: Number of images to request.
            mime_type: Photo mime type; taken from the data URL when
                omitted, JPEG otherwise.

        Returns:
            Usable renders. May be empty when the call succeeded but produced
            nothing usable; the caller decides whether that is fatal.

        Raises:
            ExternalServiceError: Auth failure, rate limit, timeout,
                undecodable photo, transport error or a malformed response.
        """
        if not self.api_key:
            raise ExternalServiceError(
                code=ErrorCode.IMAGE_SYNTHESIS_AUTH_FAILED,
                message="Image synthesis API key not configured",
                service=SERVICE_NAME,
                retryable=False
            )

        start = time.monotonic()
        url = f"{self.base_url}{EDITS_ENDPOINT}"
        files = {"image": _photo_upload(photo_base64, mime_type)}
        data = {
            "model": self.model,
            "prompt": prompt,
            "size": self.size,
            "n": str(count),
        }

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds,
                transport=self._transport
            ) as client:
                response = await client.post(
                    url,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    data=data,
                    files=files
                )
        except httpx.TimeoutException as e:
            raise ExternalServiceError(
                code=ErrorCode.IMAGE_SYNTHESIS_TIMEOUT,
                message="Image synthesis timed out",
                service=SERVICE_NAME,
                details={"timeout_seconds": self.timeout_seconds}
            ) from e
        except httpx.HTTPError as e:
            raise ExternalServiceError(
                code=ErrorCode.IMAGE_SYNTHESIS_FAILED,
                message=f"Image synthesis request failed: {e}",
                service=SERVICE_NAME
            ) from e

        _raise_for_status(response)
        renders = parse_renders(response)

        logger.info(
            "image_synthesis_complete",
            model=self.model,
            requested=count,
            renders=len(renders),
            duration_ms=int((time.monotonic() - start) * 1000)
        )
        return renders


def _photo_upload(photo_base64: str, mime_type: Optional[str]) -> Tuple[str, bytes, str]:
    """Multipart (filename, bytes, content type) for the source photo."""
    payload, embedded_mime = strip_data_url(photo_base64.strip())
    mime = mime_type or embedded_mime or DEFAULT_PHOTO_MIME
    try:
        content = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ExternalServiceError(
            code=ErrorCode.IMAGE_SYNTHESIS_FAILED,
            message="Source photo is not valid base64",
            service=SERVICE_NAME,
            retryable=False,
            details={"error": str(e)}
        ) from e

    extension = mime.split("/")[-1].replace("jpeg", "jpg")
    return f"photo.{extension}", content, mime


def _raise_for_status(response: httpx.Response) -> None:
    status = response.status_code
    if status < 400:
        return

    body = response.text[:500]
    if status in (401, 403):
        raise ExternalServiceError(
            code=ErrorCode.IMAGE_SYNTHESIS_AUTH_FAILED,
            message="Image synthesis authentication failed",
            service=SERVICE_NAME,
            retryable=False,
            status_code=status,
            details={"body": body}
        )
    if status == 429:
        raise ExternalServiceError(
            code=ErrorCode.IMAGE_SYNTHESIS_RATE_LIMIT,
            message="Image synthesis rate limit exceeded",
            service=SERVICE_NAME,
            status_code=status,
            details={"body": body}
        )
    if status in (408, 504):
        raise ExternalServiceError(
            code=ErrorCode.IMAGE_SYNTHESIS_TIMEOUT,
            message="Image synthesis timed out upstream",
            service=SERVICE_NAME,
            status_code=status,
            details={"body": body}
        )
    raise ExternalServiceError(
        code=ErrorCode.IMAGE_SYNTHESIS_FAILED,
        message=f"Image synthesis failed with HTTP {status}",
        service=SERVICE_NAME,
        status_code=status,
        details={"body": body}
    )


def parse_renders(response: httpx.Response) -> List[Render]:
    """Extract base64 images from an images API response.

    Raises:
        ExternalServiceError: If the body is not JSON or lacks a data list.
    """
    try:
        payload: Dict[str, Any] = response.json()
    except ValueError as e:
        raise ExternalServiceError(
            code=ErrorCode.IMAGE_SYNTHESIS_INVALID_RESPONSE,
            message="Image synthesis returned a non-JSON response",
            service=SERVICE_NAME,
            status_code=response.status_code,
            details={"body": response.text[:500]}
        ) from e

    items = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(items, list):
        raise ExternalServiceError(
            code=ErrorCode.IMAGE_SYNTHESIS_INVALID_RESPONSE,
            message="Image synthesis response is missing image data",
            service=SERVICE_NAME,
            status_code=response.status_code
        )

    output_format = payload.get("output_format", "png")
    renders = []
    for item in items:
        image = item.get("b64_json") if isinstance(item, dict) else None
        if not image:
            continue
        renders.append(Render(
            id=f"render_{uuid.uuid4().hex[:12]}",
            image_base64=image,
            mime_type=f"image/{'jpeg' if output_format == 'jpeg' else output_format}"
        ))
    return renders
