"""Unit tests for the scene analysis service."""

import base64
import io

import pytest
from unittest.mock import AsyncMock, MagicMock
from PIL import Image

from config.errors import DesignFlowError, ErrorCode, ExternalServiceError, ValidationError
from models.space_analysis import LightingCondition, RoomType, StyleAesthetic
from services.scene_analysis_service import (
    SCENE_ANALYSIS_PROMPT,
    SYSTEM_PROMPT,
    SceneAnalysisService,
    parse_space_analysis,
)


@pytest.fixture
def mock_llm(sample_analysis_data):
    """LLMService double whose generate_json returns the sample kitchen."""
    mock = MagicMock()
    mock.generate_json = AsyncMock(return_value={
        "content": sample_analysis_data,
        "tokens_used": 250
    })
    return mock


class TestSceneAnalysisService:
    """Tests for SceneAnalysisService.analyze()."""

    @pytest.mark.asyncio
    async def test_analyze(self, mock_llm, sample_photo_base64):
        service = SceneAnalysisService(llm_service=mock_llm)

        analysis = await service.analyze(sample_photo_base64)

        assert analysis.room_type == RoomType.KITCHEN
        assert analysis.estimated_width == 3200
        assert analysis.style_aesthetic == StyleAesthetic.COASTAL
        assert analysis.features == ["window above sink", "power points"]

    @pytest.mark.asyncio
    async def test_sends_resized_jpeg(self, mock_llm):
        buffer = io.BytesIO()
        Image.new("RGB", (400, 200), color=(10, 20, 30)).save(buffer, format="PNG")
        photo = "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")
        service = SceneAnalysisService(llm_service=mock_llm, max_image_dimension=100)

        await service.analyze(photo)

        args = mock_llm.generate_json.call_args
        assert args.args == (SYSTEM_PROMPT, SCENE_ANALYSIS_PROMPT)
        assert args.kwargs["image_mime_type"] == "image/jpeg"
        sent = Image.open(io.BytesIO(base64.b64decode(args.kwargs["image_base64"])))
        assert sent.format == "JPEG"
        assert sent.size == (100, 50)

    @pytest.mark.asyncio
    async def test_invalid_photo_never_reaches_model(self, mock_llm):
        service = SceneAnalysisService(llm_service=mock_llm)

        with pytest.raises(ValidationError):
            await service.analyze("not base64!!")

        mock_llm.generate_json.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("llm_code,code,retryable", [
        (ErrorCode.LLM_AUTH_FAILED, ErrorCode.SCENE_ANALYSIS_AUTH_FAILED, False),
        (ErrorCode.LLM_CONTEXT_TOO_LONG, ErrorCode.SCENE_ANALYSIS_FAILED, False),
        (ErrorCode.LLM_RATE_LIMIT, ErrorCode.SCENE_ANALYSIS_RATE_LIMIT, True),
        (ErrorCode.LLM_ERROR, ErrorCode.SCENE_ANALYSIS_FAILED, True),
    ])
    async def test_llm_errors_are_typed(self, mock_llm, sample_photo_base64, llm_code, code, retryable):
        mock_llm.generate_json.side_effect = DesignFlowError(code=llm_code, message="failed")
        service = SceneAnalysisService(llm_service=mock_llm)

        with pytest.raises(ExternalServiceError) as exc_info:
            await service.analyze(sample_photo_base64)

        assert exc_info.value.code == code
        assert exc_info.value.retryable is retryable
        assert exc_info.value.service == "scene_analysis"
        assert exc_info.value.details["cause"] == llm_code

    @pytest.mark.asyncio
    async def test_non_json_reply_is_invalid_response(self, mock_llm, sample_photo_base64):
        mock_llm.generate_json.side_effect = DesignFlowError(
            code=ErrorCode.LLM_ERROR,
            message="LLM did not return valid JSON",
            details={"raw_content": "Sorry, I can't help"}
        )
        service = SceneAnalysisService(llm_service=mock_llm)

        with pytest.raises(ExternalServiceError) as exc_info:
            await service.analyze(sample_photo_base64)

        assert exc_info.value.code == ErrorCode.SCENE_ANALYSIS_INVALID_RESPONSE


class TestParseSpaceAnalysis:
    """Tests for parse_space_analysis()."""

    def test_unknown_room_type_becomes_other(self, sample_analysis_data):
        sample_analysis_data["roomType"] = "Bathroom"

        assert parse_space_analysis(sample_analysis_data).room_type == RoomType.OTHER

    def test_enum_values_are_normalised(self, sample_analysis_data):
        sample_analysis_data["roomType"] = " Kitchen "
        sample_analysis_data["styleAesthetic"] = "Coastal"
        sample_analysis_data["lightingConditions"] = "MIXED"

        analysis = parse_space_analysis(sample_analysis_data)

        assert analysis.room_type == RoomType.KITCHEN
        assert analysis.lighting_conditions == LightingCondition.MIXED

    def test_optional_fields_default(self):
        analysis = parse_space_analysis({
            "roomType": "laundry",
            "estimatedWidth": 1800,
            "estimatedDepth": 1200,
            "estimatedHeight": 2400,
            "styleAesthetic": "modern",
            "lightingConditions": "artificial",
        })

        assert analysis.features == []
        assert analysis.flooring == ""

    def test_missing_dimension_is_invalid(self, sample_analysis_data):
        del sample_analysis_data["estimatedWidth"]

        with pytest.raises(ExternalServiceError) as exc_info:
            parse_space_analysis(sample_analysis_data)

        assert exc_info.value.code == ErrorCode.SCENE_ANALYSIS_INVALID_RESPONSE

    def test_unknown_style_is_invalid(self, sample_analysis_data):
        sample_analysis_data["styleAesthetic"] = "baroque"

        with pytest.raises(ExternalServiceError):
            parse_space_analysis(sample_analysis_data)

    @pytest.mark.parametrize("content", [None, [], "kitchen"])
    def test_non_object_is_invalid(self, content):
        with pytest.raises(ExternalServiceError) as exc_info:
            parse_space_analysis(content)

        assert exc_info.value.details["content_type"] == type(content).__name__
