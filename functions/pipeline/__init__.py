"""Design pipeline: stage tracking, single-flight guard and orchestration."""

from pipeline.guard import SessionRunGuard, session_guard
from pipeline.orchestrator import DesignPipelineOrchestrator, run_design_pipeline
from pipeline.progress import CancellationToken, StageTracker

__all__ = [
    "CancellationToken",
    "DesignPipelineOrchestrator",
    "SessionRunGuard",
    "StageTracker",
    "run_design_pipeline",
    "session_guard",
]
