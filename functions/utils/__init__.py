"""Utility modules for DesignFlow functions."""

from utils.pipeline_logger import (
    log_pipeline_start,
    log_stage_start,
    log_stage_output,
    log_pipeline_complete,
    log_pipeline_failed,
    log_pipeline_cancelled,
)

__all__ = [
    "log_pipeline_start",
    "log_stage_start",
    "log_stage_output",
    "log_pipeline_complete",
    "log_pipeline_failed",
    "log_pipeline_cancelled",
]
