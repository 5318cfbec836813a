"""Unit tests for the image synthesis service."""

import base64

import httpx
import pytest

from config.errors import ErrorCode, ExternalServiceError
from services.image_synthesis_service import ImageSynthesisService, parse_renders


PHOTO = base64.b64encode(b"\xff\xd8\xff fake jpeg bytes").decode("ascii")


def _service(handler, **kwargs) -> ImageSynthesisService:
    return ImageSynthesisService(transport=httpx.MockTransport(handler), **kwargs)


def _json_handler(status_code, payload):
    def handler(request):
        return httpx.Response(status_code, json=payload)
    return handler


class TestGenerate:
    """Tests for ImageSynthesisService.generate()."""

    @pytest.mark.asyncio
    async def test_success(self):
        captured = {}

        def handler(request):
            captured["request"] = request
            return httpx.Response(200, json={
                "data": [{"b64_json": "aW1hZ2Ux"}, {"b64_json": "aW1hZ2Uy"}],
                "output_format": "jpeg",
            })

        renders = await _service(handler).generate("Transform this kitchen", PHOTO, count=2)

        assert [r.image_base64 for r in renders] == ["aW1hZ2Ux", "aW1hZ2Uy"]
        assert all(r.mime_type == "image/jpeg" for r in renders)
        assert renders[0].id != renders[1].id

        request = captured["request"]
        assert str(request.url) == "https://images.test/v1/images/edits"
        assert request.headers["Authorization"] == "Bearer test-api-key"
        body = request.read()
        assert b"Transform this kitchen" in body
        assert b"fake jpeg bytes" in body

    @pytest.mark.asyncio
    async def test_jpeg_upload_by_default(self):
        captured = {}

        def handler(request):
            captured["body"] = request.read()
            return httpx.Response(200, json={"data": [{"b64_json": "abc"}]})

        await _service(handler).generate("prompt", PHOTO)

        assert b'filename="photo.jpg"' in captured["body"]
        assert b"Content-Type: image/jpeg" in captured["body"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("photo,mime_type", [
        (f"data:image/png;base64,{PHOTO}", None),
        (PHOTO, "image/png"),
    ])
    async def test_upload_keeps_photo_mime_type(self, photo, mime_type):
        captured = {}

        def handler(request):
            captured["body"] = request.read()
            return httpx.Response(200, json={"data": [{"b64_json": "abc"}]})

        await _service(handler).generate("prompt", photo, mime_type=mime_type)

        assert b'filename="photo.png"' in captured["body"]
        assert b"Content-Type: image/png" in captured["body"]
        assert b"fake jpeg bytes" in captured["body"]

    @pytest.mark.asyncio
    async def test_undecodable_photo(self):
        calls = []

        with pytest.raises(ExternalServiceError) as exc_info:
            await _service(lambda request: calls.append(request)).generate("prompt", "not base64!")

        assert exc_info.value.code == ErrorCode.IMAGE_SYNTHESIS_FAILED
        assert exc_info.value.retryable is False
        assert calls == []

    @pytest.mark.asyncio
    async def test_entries_without_image_are_skipped(self):
        handler = _json_handler(200, {"data": [{"url": "https://x"}, {"b64_json": ""}, "junk"]})

        assert await _service(handler).generate("prompt", PHOTO) == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status,code,retryable", [
        (401, ErrorCode.IMAGE_SYNTHESIS_AUTH_FAILED, False),
        (403, ErrorCode.IMAGE_SYNTHESIS_AUTH_FAILED, False),
        (429, ErrorCode.IMAGE_SYNTHESIS_RATE_LIMIT, True),
        (504, ErrorCode.IMAGE_SYNTHESIS_TIMEOUT, True),
        (500, ErrorCode.IMAGE_SYNTHESIS_FAILED, True),
    ])
    async def test_http_errors(self, status, code, retryable):
        handler = _json_handler(status, {"error": {"message": "nope"}})

        with pytest.raises(ExternalServiceError) as exc_info:
            await _service(handler).generate("prompt", PHOTO)

        assert exc_info.value.code == code
        assert exc_info.value.retryable is retryable
        assert exc_info.value.status_code == status
        assert exc_info.value.service == "image_synthesis"

    @pytest.mark.asyncio
    async def test_client_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("read timed out", request=request)

        with pytest.raises(ExternalServiceError) as exc_info:
            await _service(handler, timeout_seconds=5).generate("prompt", PHOTO)

        assert exc_info.value.code == ErrorCode.IMAGE_SYNTHESIS_TIMEOUT
        assert exc_info.value.details["timeout_seconds"] == 5

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ExternalServiceError) as exc_info:
            await _service(handler).generate("prompt", PHOTO)

        assert exc_info.value.code == ErrorCode.IMAGE_SYNTHESIS_FAILED

    @pytest.mark.asyncio
    async def test_missing_api_key(self, monkeypatch, mock_settings):
        monkeypatch.setattr(mock_settings, "_image_api_key", "")
        calls = []

        with pytest.raises(ExternalServiceError) as exc_info:
            await _service(lambda request: calls.append(request)).generate("prompt", PHOTO)

        assert exc_info.value.code == ErrorCode.IMAGE_SYNTHESIS_AUTH_FAILED
        assert exc_info.value.retryable is False
        assert calls == []


class TestParseRenders:
    """Tests for parse_renders()."""

    def test_non_json_body(self):
        response = httpx.Response(200, text="<html>gateway</html>")

        with pytest.raises(ExternalServiceError) as exc_info:
            parse_renders(response)

        assert exc_info.value.code == ErrorCode.IMAGE_SYNTHESIS_INVALID_RESPONSE

    @pytest.mark.parametrize("payload", [{}, {"data": None}, {"data": "x"}, []])
    def test_missing_data_list(self, payload):
        with pytest.raises(ExternalServiceError) as exc_info:
            parse_renders(httpx.Response(200, json=payload))

        assert exc_info.value.code == ErrorCode.IMAGE_SYNTHESIS_INVALID_RESPONSE

    def test_default_format_is_png(self):
        renders = parse_renders(httpx.Response(200, json={"data": [{"b64_json": "abc"}]}))

        assert renders[0].mime_type == "image/png"
        assert renders[0].data_url == "data:image/png;base64,abc"
