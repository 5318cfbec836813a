"""Stage tracking for the design pipeline.

StageTracker is the single observation point for pipeline progress. It only
moves forward through STAGE_ORDER; reset() is the only way back to idle.
"""

from typing import Callable, List, Optional

import structlog

from config.errors import ErrorCode, PipelineError
from models.pipeline import (
    STAGE_ORDER,
    STAGE_PROGRESS,
    PipelineProgress,
    PipelineStage,
)

logger = structlog.get_logger()

ProgressObserver = Callable[[PipelineProgress], None]


class CancellationToken:
    """Liveness flag owned by the caller.

    The orchestrator checks it after every suspension point and drops its
    results once it is set.
    """

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled


class StageTracker:
    """Forward-only finite-state machine over PipelineStage."""

    def __init__(self, session_id: str = ""):
        self.session_id = session_id
        self._stage: Optional[PipelineStage] = None
        self._completed: List[PipelineStage] = []
        self._error_stage: Optional[PipelineStage] = None
        self._observers: List[ProgressObserver] = []

    @property
    def stage(self) -> Optional[PipelineStage]:
        return self._stage

    @property
    def completed_stages(self) -> List[PipelineStage]:
        return list(self._completed)

    @property
    def is_idle(self) -> bool:
        return self._stage is None

    def subscribe(self, observer: ProgressObserver) -> None:
        self._observers.append(observer)

    def snapshot(self) -> PipelineProgress:
        """Current progress, safe to hand to observers."""
        percent = STAGE_PROGRESS[self._completed[-1]] if self._completed else 0
        return PipelineProgress(
            stage=self._stage,
            completed_stages=tuple(self._completed),
            percent=percent,
            error_stage=self._error_stage,
        )

    def start(self) -> PipelineProgress:
        """Enter the first stage from idle."""
        if not self.is_idle:
            self._reject(PipelineStage.ANALYZING)
        return self._enter(PipelineStage.ANALYZING)

    def advance(self, stage: PipelineStage) -> PipelineProgress:
        """Complete the active stage and enter the next one.

        Args:
            stage: The stage to enter. Must be the one directly after the
                active stage.

        Raises:
            PipelineError: On any backward, skipping or post-terminal move.
        """
        current = self._stage
        if current is None or current.is_terminal or stage == PipelineStage.ERROR:
            self._reject(stage)
        if stage.order != current.order + 1:
            self._reject(stage)

        self._completed.append(current)
        return self._enter(stage)

    def fail(self) -> PipelineProgress:
        """Move the active stage to error, remembering where it failed."""
        current = self._stage
        if current is None or current.is_terminal:
            self._reject(PipelineStage.ERROR)
        self._error_stage = current
        return self._enter(PipelineStage.ERROR)

    def reset(self) -> PipelineProgress:
        """Return to idle. The only backward transition."""
        self._stage = None
        self._completed = []
        self._error_stage = None
        return self._publish()

    def _enter(self, stage: PipelineStage) -> PipelineProgress:
        self._stage = stage
        logger.debug(
            "pipeline_stage_entered",
            session_id=self.session_id,
            stage=stage.value,
            completed=[s.value for s in self._completed]
        )
        return self._publish()

    def _publish(self) -> PipelineProgress:
        progress = self.snapshot()
        for observer in self._observers:
            observer(progress)
        return progress

    def _reject(self, target: PipelineStage) -> None:
        current = self._stage.value if self._stage else "idle"
        raise PipelineError(
            code=ErrorCode.PIPELINE_INVALID_STATE,
            message=f"Illegal stage transition {current} -> {target.value}",
            session_id=self.session_id,
            stage=current,
            retryable=False,
        )
