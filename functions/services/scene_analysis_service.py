"""Scene analysis service for DesignFlow.

Sends the room photo to the vision model and validates the reply into a
SpaceAnalysis. Every failure leaves as an ExternalServiceError so the
orchestrator can tag it with the analyzing stage.
"""

import time
from typing import Any, Dict, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from config.errors import DesignFlowError, ErrorCode, ExternalServiceError
from config.settings import settings
from models.space_analysis import RoomType, SpaceAnalysis
from services.image_utils import prepare_photo
from services.llm_service import LLMService

logger = structlog.get_logger(__name__)

SERVICE_NAME = "scene_analysis"

SCENE_ANALYSIS_PROMPT = """Analyze this space for joinery/cabinetry installation. You are helping a custom joinery company understand this room.

Extract and return ONLY a JSON object with these exact fields:
{
  "roomType": "kitchen/bedroom/living/office/laundry/garage/other",
  "estimatedWidth": <width in millimeters, estimate based on typical room proportions>,
  "estimatedDepth": <depth in millimeters>,
  "estimatedHeight": <ceiling height in millimeters, typically 2400-2700mm>,
  "features": ["list", "of", "features like windows, doors, alcoves, power points"],
  "styleAesthetic": "modern/traditional/industrial/coastal/scandinavian",
  "lightingConditions": "natural/artificial/mixed",
  "flooring": "description of floor type and color",
  "wallFinishes": "description of wall color/texture"
}

For dimensions:
- Standard Australian ceiling height is 2400mm
- Use reference objects (doors ~2100mm, switches ~1200mm from floor) to estimate
- If uncertain, provide reasonable estimates for the room type"""

SYSTEM_PROMPT = "You are a spatial analyst for a custom cabinetry company."

# LLM error code -> (scene analysis code, retryable).
_LLM_ERROR_MAP = {
    ErrorCode.LLM_AUTH_FAILED: (ErrorCode.SCENE_ANALYSIS_AUTH_FAILED, False),
    ErrorCode.LLM_RATE_LIMIT: (ErrorCode.SCENE_ANALYSIS_RATE_LIMIT, True),
    ErrorCode.LLM_CONTEXT_TOO_LONG: (ErrorCode.SCENE_ANALYSIS_FAILED, False),
}


class SceneAnalysisService:
    """Photo -> SpaceAnalysis via the vision model."""

    def __init__(
        self,
        llm_service: Optional[LLMService] = None,
        max_image_dimension: Optional[int] = None
    ):
        self._llm = llm_service
        self.max_image_dimension = max_image_dimension or settings.max_image_dimension

    @property
    def llm(self) -> LLMService:
        if self._llm is None:
            self._llm = LLMService()
        return self._llm

    async def analyze(self, photo_base64: str) -> SpaceAnalysis:
        """Analyze a room photo.

        Args:
            photo_base64: Base64 photo or data URL.

        Returns:
            Validated SpaceAnalysis.

        Raises:
            ExternalServiceError: Auth failure, rate limit, or a reply that
                is not the expected JSON schema.
        """
        start = time.monotonic()
        image = prepare_photo(photo_base64, self.max_image_dimension)

        try:
            result = await self.llm.generate_json(
                SYSTEM_PROMPT,
                SCENE_ANALYSIS_PROMPT,
                image_base64=image,
                image_mime_type="image/jpeg"
            )
        except DesignFlowError as e:
            raise _to_service_error(e) from e

        analysis = parse_space_analysis(result["content"])
        logger.info(
            "scene_analysis_complete",
            room_type=analysis.room_type.value,
            style=analysis.style_aesthetic.value,
            tokens_used=result.get("tokens_used", 0),
            duration_ms=int((time.monotonic() - start) * 1000)
        )
        return analysis


def parse_space_analysis(content: Any) -> SpaceAnalysis:
    """Validate the model's JSON into a SpaceAnalysis.

    An unrecognised room type is recorded as 'other'; any other schema
    violation is a malformed response.

    Raises:
        ExternalServiceError: If the content does not match the schema.
    """
    if not isinstance(content, dict):
        raise ExternalServiceError(
            code=ErrorCode.SCENE_ANALYSIS_INVALID_RESPONSE,
            message="Scene analysis did not return a JSON object",
            service=SERVICE_NAME,
            details={"content_type": type(content).__name__}
        )

    data: Dict[str, Any] = dict(content)
    room_type = str(data.get("roomType", "")).strip().lower()
    data["roomType"] = room_type if room_type in {r.value for r in RoomType} else RoomType.OTHER.value
    for key in ("styleAesthetic", "lightingConditions"):
        if isinstance(data.get(key), str):
            data[key] = data[key].strip().lower()

    try:
        return SpaceAnalysis.model_validate(data)
    except PydanticValidationError as e:
        raise ExternalServiceError(
            code=ErrorCode.SCENE_ANALYSIS_INVALID_RESPONSE,
            message="Scene analysis response did not match the expected schema",
            service=SERVICE_NAME,
            details={"errors": e.errors(include_url=False, include_context=False)}
        ) from e


def _to_service_error(error: DesignFlowError) -> ExternalServiceError:
    if error.code in _LLM_ERROR_MAP:
        code, retryable = _LLM_ERROR_MAP[error.code]
    elif error.code == ErrorCode.LLM_ERROR and "raw_content" in error.details:
        code = ErrorCode.SCENE_ANALYSIS_INVALID_RESPONSE
        retryable = True
    else:
        code = ErrorCode.SCENE_ANALYSIS_FAILED
        retryable = True
    return ExternalServiceError(
        code=code,
        message=error.message,
        service=SERVICE_NAME,
        retryable=retryable,
        details={"cause": error.code}
    )
