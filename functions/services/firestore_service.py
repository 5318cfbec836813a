"""Firestore service for DesignFlow.

Session persistence for the design pipeline. The three durable artifacts
(layout config, render references, price estimate) are idempotent merge
writes keyed by session id, committed together in a single batch.
"""

from typing import Dict, Any, Optional, List
import inspect
import time

import structlog
from firebase_admin import firestore
from google.api_core import exceptions as google_exceptions
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from config.errors import DesignFlowError, ErrorCode
from models.pipeline import PipelineProgress, Render

logger = structlog.get_logger()

# Transient Firestore failures worth retrying on idempotent calls.
TRANSIENT_ERRORS = (
    google_exceptions.ServiceUnavailable,
    google_exceptions.DeadlineExceeded,
    google_exceptions.Aborted,
    google_exceptions.InternalServerError,
)

idempotent_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
    retry=retry_if_exception_type(TRANSIENT_ERRORS),
    reraise=True,
)


class FirestoreService:
    """Service for design session persistence.

    Note: Firebase Admin SDK for Python is synchronous. Methods are
    marked async for interface compatibility but operations are sync.
    """

    COLLECTION_SESSIONS = "designSessions"
    SUBCOLLECTION_RENDERS = "renders"
    SUBCOLLECTION_PIPELINE = "pipeline"
    STATUS_DOCUMENT = "status"

    def __init__(self, db=None):
        """Initialize FirestoreService.

        Args:
            db: Optional Firestore client. If not provided, uses default.
        """
        self._db = db

    @property
    def db(self):
        """Get Firestore client (lazy initialization)."""
        if self._db is None:
            self._db = firestore.client()
        return self._db

    async def _maybe_await(self, result: Any) -> Any:
        """Await result if it is awaitable (supports AsyncMock in unit tests)."""
        if inspect.isawaitable(result):
            return await result
        return result

    def _session_ref(self, session_id: str):
        return self.db.collection(self.COLLECTION_SESSIONS).document(session_id)

    @idempotent_retry
    async def _merge(self, doc_ref, data: Dict[str, Any]) -> None:
        await self._maybe_await(doc_ref.set(data, merge=True))

    @idempotent_retry
    async def _get(self, doc_ref):
        return await self._maybe_await(doc_ref.get())

    # =========================================================================
    # Reads
    # =========================================================================

    async def get_session(self, session_id: str) -> Optional[Dict[str, Any]]:
        """Fetch a design session document.

        Returns:
            Session data with its id, or None if not found.

        Raises:
            DesignFlowError: If Firestore operation fails.
        """
        try:
            doc = await self._get(self._session_ref(session_id))
        except Exception as e:
            logger.error("firestore_get_failed", session_id=session_id, error=str(e))
            raise DesignFlowError(
                code=ErrorCode.FIRESTORE_ERROR,
                message=f"Failed to get session: {str(e)}",
                details={"session_id": session_id}
            )

        if doc.exists:
            return {"id": doc.id, **(doc.to_dict() or {})}
        return None

    async def get_pipeline_status(self, session_id: str) -> Optional[Dict[str, Any]]:
        """Fetch the stored pipeline status for a session."""
        doc_ref = (
            self._session_ref(session_id)
            .collection(self.SUBCOLLECTION_PIPELINE)
            .document(self.STATUS_DOCUMENT)
        )
        try:
            doc = await self._get(doc_ref)
        except Exception as e:
            logger.error("pipeline_status_get_failed", session_id=session_id, error=str(e))
            raise DesignFlowError(
                code=ErrorCode.FIRESTORE_ERROR,
                message=f"Failed to get pipeline status: {str(e)}",
                details={"session_id": session_id}
            )
        return doc.to_dict() if doc.exists else None

    # =========================================================================
    # Artifact writes
    # =========================================================================

    async def save_design(
        self,
        session_id: str,
        layout_config: Dict[str, Any],
        layout_description: str,
        layout_shape: str,
        renders: List[Render],
        price_estimate: Dict[str, Any],
        design_result: Dict[str, Any]
    ) -> None:
        """Commit the durable artifacts of a completed design in one batch.

        Layout config, render references, price estimate and the display
        summary land together or not at all. Each is a merge overwrite, so a
        retried commit is idempotent.

        Raises:
            DesignFlowError: If the batch cannot be committed.
        """
        session_data = {
            "layoutConfig": layout_config,
            "layoutDescription": layout_description,
            "layoutShape": layout_shape,
            "renders": [render.to_reference() for render in renders],
            "priceEstimate": price_estimate,
            "designResult": {k: v for k, v in design_result.items() if k != "renders"},
            "status": "complete",
            "updatedAt": firestore.SERVER_TIMESTAMP,
        }

        try:
            await self._commit_design(session_id, renders, session_data)
        except Exception as e:
            logger.error("design_save_failed", session_id=session_id, error=str(e))
            raise DesignFlowError(
                code=ErrorCode.FIRESTORE_WRITE_FAILED,
                message=f"Failed to save design: {str(e)}",
                details={"session_id": session_id}
            )

        logger.info("design_saved", session_id=session_id, renders=len(renders))

    @idempotent_retry
    async def _commit_design(
        self,
        session_id: str,
        renders: List[Render],
        session_data: Dict[str, Any]
    ) -> None:
        # Fresh batch per attempt; a committed batch cannot be reused.
        session_ref = self._session_ref(session_id)
        coll_ref = session_ref.collection(self.SUBCOLLECTION_RENDERS)
        batch = self.db.batch()

        for render in renders:
            batch.set(coll_ref.document(render.id), {
                "imageBase64": render.image_base64,
                "mimeType": render.mime_type,
                "createdAt": firestore.SERVER_TIMESTAMP,
            }, merge=True)
        batch.set(session_ref, session_data, merge=True)

        await self._maybe_await(batch.commit())

    # =========================================================================
    # Status
    # =========================================================================

    async def update_pipeline_status(
        self,
        session_id: str,
        progress: PipelineProgress,
        status: str,
        error: Optional[Dict[str, Any]] = None,
        user_id: Optional[str] = None,
        started_at: Optional[int] = None
    ) -> None:
        """Write the pipeline status document watched by the client.

        Status writes are best effort: a failure is logged and never fails
        the pipeline.

        Args:
            session_id: Design session id.
            progress: Current progress snapshot.
            status: 'running', 'complete', 'error' or 'idle'.
            error: Optional error dict (code, message, stage).
            user_id: User who triggered the pipeline.
            started_at: Pipeline start timestamp (ms since epoch).
        """
        status_data = {
            "status": status,
            "currentStage": progress.stage.value if progress.stage else None,
            "completedStages": [s.value for s in progress.completed_stages],
            "progress": progress.percent,
            "errorStage": progress.error_stage.value if progress.error_stage else None,
            "error": error,
            "sessionId": session_id,
            "updatedAt": firestore.SERVER_TIMESTAMP,
        }
        if user_id:
            status_data["triggeredBy"] = user_id
        if started_at:
            status_data["startedAt"] = started_at
        if status == "complete":
            status_data["completedAt"] = int(time.time() * 1000)

        doc_ref = (
            self._session_ref(session_id)
            .collection(self.SUBCOLLECTION_PIPELINE)
            .document(self.STATUS_DOCUMENT)
        )
        try:
            await self._merge(doc_ref, status_data)
        except Exception as e:
            logger.warning(
                "pipeline_status_sync_failed",
                session_id=session_id,
                status=status,
                error=str(e)
            )
            return

        logger.info(
            "pipeline_status_synced",
            session_id=session_id,
            status=status,
            progress=progress.percent,
            current_stage=status_data["currentStage"]
        )
