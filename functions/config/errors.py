"""DesignFlow error handling.

Custom exceptions and error codes for the design synthesis pipeline.
"""

from typing import Optional, Dict, Any


# Error Codes
class ErrorCode:
    """Error code constants."""

    # Validation Errors (1xxx)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    MISSING_FIELD = "MISSING_FIELD"
    INVALID_FIELD = "INVALID_FIELD"

    # Pipeline Errors (3xxx)
    PIPELINE_FAILED = "PIPELINE_FAILED"
    PIPELINE_BUSY = "PIPELINE_BUSY"
    PIPELINE_INVALID_STATE = "PIPELINE_INVALID_STATE"

    # Scene Analysis Errors (4xxx)
    SCENE_ANALYSIS_FAILED = "SCENE_ANALYSIS_FAILED"
    SCENE_ANALYSIS_INVALID_RESPONSE = "SCENE_ANALYSIS_INVALID_RESPONSE"
    SCENE_ANALYSIS_AUTH_FAILED = "SCENE_ANALYSIS_AUTH_FAILED"
    SCENE_ANALYSIS_RATE_LIMIT = "SCENE_ANALYSIS_RATE_LIMIT"

    # Firestore Errors (5xxx)
    FIRESTORE_ERROR = "FIRESTORE_ERROR"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    FIRESTORE_WRITE_FAILED = "FIRESTORE_WRITE_FAILED"
    CATALOG_LOAD_FAILED = "CATALOG_LOAD_FAILED"

    # LLM Errors (6xxx)
    LLM_ERROR = "LLM_ERROR"
    LLM_RATE_LIMIT = "LLM_RATE_LIMIT"
    LLM_AUTH_FAILED = "LLM_AUTH_FAILED"
    LLM_CONTEXT_TOO_LONG = "LLM_CONTEXT_TOO_LONG"

    # Image Synthesis Errors (7xxx)
    IMAGE_SYNTHESIS_FAILED = "IMAGE_SYNTHESIS_FAILED"
    IMAGE_SYNTHESIS_AUTH_FAILED = "IMAGE_SYNTHESIS_AUTH_FAILED"
    IMAGE_SYNTHESIS_RATE_LIMIT = "IMAGE_SYNTHESIS_RATE_LIMIT"
    IMAGE_SYNTHESIS_TIMEOUT = "IMAGE_SYNTHESIS_TIMEOUT"
    IMAGE_SYNTHESIS_INVALID_RESPONSE = "IMAGE_SYNTHESIS_INVALID_RESPONSE"
    IMAGE_SYNTHESIS_NO_OUTPUT = "IMAGE_SYNTHESIS_NO_OUTPUT"


class DesignFlowError(Exception):
    """Base exception for DesignFlow errors.

    Provides structured error information for API responses.

    Attributes:
        code: Error code from ErrorCode constants
        message: Human-readable error message
        details: Additional error context
    """

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        """Initialize DesignFlowError.

        Args:
            code: Error code from ErrorCode constants
            message: Human-readable error message
            details: Additional error context
        """
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for API response.

        Returns:
            Dictionary with code, message, and details.
        """
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class ValidationError(DesignFlowError):
    """Validation-specific error."""

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict] = None):
        super().__init__(
            code=ErrorCode.VALIDATION_ERROR,
            message=message,
            details={**(details or {}), "field": field} if field else details
        )


class ExternalServiceError(DesignFlowError):
    """Typed failure from one of the inference collaborators.

    Raised by the scene analysis and image synthesis services for auth
    failures, rate limits, timeouts and unparseable responses.
    """

    def __init__(
        self,
        code: str,
        message: str,
        service: str,
        retryable: bool = True,
        status_code: Optional[int] = None,
        details: Optional[Dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            details={
                **(details or {}),
                "service": service,
                "retryable": retryable,
                "status_code": status_code
            }
        )
        self.service = service
        self.retryable = retryable
        self.status_code = status_code


class PipelineError(DesignFlowError):
    """Stage-tagged pipeline failure surfaced to the caller."""

    def __init__(
        self,
        code: str,
        message: str,
        session_id: str,
        stage: Optional[str] = None,
        retryable: bool = True,
        details: Optional[Dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            details={
                **(details or {}),
                "session_id": session_id,
                "stage": stage,
                "retryable": retryable
            }
        )
        self.session_id = session_id
        self.stage = stage
        self.retryable = retryable


class PipelineBusyError(DesignFlowError):
    """A pipeline run is already in flight for this session."""

    def __init__(self, session_id: str):
        super().__init__(
            code=ErrorCode.PIPELINE_BUSY,
            message=f"A design is already being generated for session {session_id}",
            details={"session_id": session_id}
        )
        self.session_id = session_id
