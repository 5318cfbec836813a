"""Cloud Function entry points for the DesignFlow design pipeline.

Provides HTTP endpoints for:
- Running the design synthesis pipeline for a room photo
- Getting pipeline status for a design session
"""

import asyncio
import json
from typing import Dict, Any
from datetime import datetime, date

import structlog
from firebase_functions import https_fn, options
from firebase_admin import initialize_app

from config.errors import (
    DesignFlowError,
    ErrorCode,
    PipelineBusyError,
    PipelineError,
    ValidationError,
)
from models.pipeline import UserContext
from pipeline.guard import session_guard
from pipeline.orchestrator import DesignPipelineOrchestrator
from services.catalog_service import CatalogService
from services.firestore_service import FirestoreService
from validators.design_request_validator import validate_design_request

# Initialize Firebase Admin SDK
try:
    initialize_app()
except ValueError:
    # Already initialized
    pass

logger = structlog.get_logger()

# ============================================================================
# Helper Functions
# ============================================================================


def success_response(data: Dict[str, Any]) -> Dict[str, Any]:
    """Build success response."""
    return {"success": True, "data": data}


def error_response(code: str, message: str, details: Dict[str, Any] = None) -> Dict[str, Any]:
    """Build error response."""
    return {
        "success": False,
        "error": {
            "code": code,
            "message": message,
            "details": details or {}
        }
    }


def get_request_json(req: https_fn.Request) -> Dict[str, Any]:
    """Extract JSON from request body.

    Args:
        req: HTTP request object.

    Returns:
        Parsed JSON data.

    Raises:
        ValidationError: If JSON is invalid.
    """
    try:
        return req.get_json(force=True) or {}
    except Exception as e:
        raise ValidationError(
            message=f"Invalid JSON in request body: {str(e)}"
        )


# ============================================================================
# Pipeline Entry Points
# ============================================================================


@https_fn.on_request(
    timeout_sec=300,  # scene analysis + image synthesis
    memory=options.MemoryOption.GB_1,
    region="australia-southeast1"
)
def start_design_pipeline(req: https_fn.Request) -> https_fn.Response:
    """Run the design pipeline for one room photo.

    Runs to completion and returns the design. The client watches
    designSessions/{sessionId}/pipeline/status for stage progress while
    the request is in flight.

    Request body:
    {
        "sessionId": "sess-xxx",
        "userId": "user-123",
        "photo": "<base64 or data URL>",
        "purpose": "kitchen",
        "styleSummary": "light, warm, coastal",
        "priorities": ["storage"],
        "specificRequests": ["bin pull-out"],
        "freeText": "",
        "walls": [{"label": "Long wall", "lengthMm": 3000}],
        "budgetTier": "mid",
        "budgetRange": "8-15k"
    }

    Response:
    {
        "success": true,
        "data": {
            "sessionId": "sess-xxx",
            "renders": ["data:image/png;base64,..."],
            "priceRange": [950000, 1350000],
            ...
        }
    }

    A failed run returns the stage it failed in and retryable=true, so the
    client can offer "try again".
    """
    if req.method == "OPTIONS":
        return _cors_response()

    try:
        data = get_request_json(req)

        validation_result = validate_design_request(data)
        if not validation_result.is_valid:
            return _json_response(
                error_response(
                    ErrorCode.VALIDATION_ERROR,
                    "Invalid design request",
                    {"errors": validation_result.errors}
                ),
                status=400
            )

        user_context = validation_result.parsed
        logger.info(
            "design_request_received",
            session_id=user_context.session_id,
            user_id=user_context.user_id,
            purpose=user_context.purpose.value,
            walls=len(user_context.walls)
        )

        with session_guard.hold(user_context.session_id):
            result = asyncio.run(_run_pipeline_async(
                photo=validation_result.photo,
                user_context=user_context
            ))

        return _json_response(success_response(result))

    except ValidationError as e:
        return _json_response(
            error_response(e.code, e.message, e.details),
            status=400
        )
    except PipelineBusyError as e:
        return _json_response(
            error_response(e.code, e.message, e.details),
            status=409
        )
    except PipelineError as e:
        logger.error(
            "design_pipeline_error",
            code=e.code,
            stage=e.stage,
            error=e.message
        )
        return _json_response(
            error_response(e.code, e.message, e.details),
            status=502
        )
    except DesignFlowError as e:
        logger.error("design_pipeline_start_error", error=e.message, code=e.code)
        return _json_response(
            error_response(e.code, e.message, e.details),
            status=500
        )
    except Exception as e:
        logger.exception("design_pipeline_exception", error=str(e))
        return _json_response(
            error_response(
                ErrorCode.PIPELINE_FAILED,
                f"Failed to run design pipeline: {str(e)}"
            ),
            status=500
        )


async def _run_pipeline_async(photo: str, user_context: UserContext) -> Dict[str, Any]:
    """Load the catalog snapshot and run the pipeline to completion."""
    firestore_service = FirestoreService()
    catalog = await CatalogService().load_snapshot()

    orchestrator = DesignPipelineOrchestrator(firestore_service=firestore_service)
    result = await orchestrator.run(photo, user_context, catalog)
    if result is None:
        raise DesignFlowError(
            code=ErrorCode.PIPELINE_FAILED,
            message="Design pipeline was cancelled",
            details={"session_id": user_context.session_id}
        )
    return result.to_dict()


@https_fn.on_request(
    timeout_sec=30,
    memory=options.MemoryOption.MB_256,
    region="australia-southeast1"
)
def get_design_status(req: https_fn.Request) -> https_fn.Response:
    """Get current pipeline status for a design session.

    Request body:
    {
        "sessionId": "sess-xxx"
    }

    Response:
    {
        "success": true,
        "data": {
            "sessionId": "sess-xxx",
            "status": "running",
            "currentStage": "styling",
            "completedStages": ["analyzing", "measuring"],
            "progress": 50,
            "inFlight": true
        }
    }
    """
    if req.method == "OPTIONS":
        return _cors_response()

    try:
        data = get_request_json(req)
        session_id = data.get("sessionId")

        if not session_id:
            return _json_response(
                error_response(
                    ErrorCode.MISSING_FIELD,
                    "Missing sessionId in request"
                ),
                status=400
            )

        result = asyncio.run(_get_status_async(session_id))

        return _json_response(success_response(result))

    except ValidationError as e:
        return _json_response(
            error_response(e.code, e.message, e.details),
            status=400
        )
    except DesignFlowError as e:
        return _json_response(
            error_response(e.code, e.message, e.details),
            status=404 if e.code == ErrorCode.SESSION_NOT_FOUND else 500
        )
    except Exception as e:
        logger.exception("get_status_error", error=str(e))
        return _json_response(
            error_response(
                ErrorCode.FIRESTORE_ERROR,
                f"Failed to get status: {str(e)}"
            ),
            status=500
        )


async def _get_status_async(session_id: str) -> Dict[str, Any]:
    """Get pipeline status from Firestore."""
    firestore_service = FirestoreService()
    status = await firestore_service.get_pipeline_status(session_id)

    if status is None:
        session = await firestore_service.get_session(session_id)
        if not session:
            raise DesignFlowError(
                code=ErrorCode.SESSION_NOT_FOUND,
                message=f"Design session not found: {session_id}",
                details={"sessionId": session_id}
            )
        status = {"status": "idle", "currentStage": None, "completedStages": [], "progress": 0}

    return {
        "sessionId": session_id,
        "status": status.get("status", "unknown"),
        "currentStage": status.get("currentStage"),
        "completedStages": status.get("completedStages", []),
        "progress": status.get("progress", 0),
        "errorStage": status.get("errorStage"),
        "error": status.get("error"),
        "startedAt": status.get("startedAt"),
        "completedAt": status.get("completedAt"),
        "inFlight": session_guard.is_active(session_id),
    }


CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
    "Access-Control-Max-Age": "3600"
}


def _cors_response() -> https_fn.Response:
    """Return CORS preflight response."""
    return https_fn.Response(
        "",
        status=204,
        headers=CORS_HEADERS
    )


def _json_response(data: dict, status: int = 200) -> https_fn.Response:
    """Return JSON response with CORS headers."""

    def _json_default(o: Any):
        """JSON serializer for Firestore timestamps and dates."""
        if isinstance(o, (datetime, date)):
            return o.isoformat()
        if hasattr(o, "isoformat"):
            return o.isoformat()
        return str(o)

    return https_fn.Response(
        json.dumps(data, default=_json_default),
        status=status,
        mimetype="application/json",
        headers=CORS_HEADERS
    )
