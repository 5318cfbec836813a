"""Pipeline Logger for DesignFlow.

Provides highly visible, formatted logging for design pipeline runs
with distinctive visual markers that stand out in log streams.
Every banner is mirrored to structlog for log aggregation.
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

import structlog

logger = structlog.get_logger()

# Visual markers for different log types
BANNER_WIDTH = 80
STAGE_BANNER_CHAR = "═"
PIPELINE_BANNER_CHAR = "█"
ERROR_BANNER_CHAR = "!"
CANCEL_BANNER_CHAR = "~"


def _create_banner(char: str, text: str, width: int = BANNER_WIDTH) -> str:
    """Create a centered banner with given character."""
    text_with_spaces = f" {text} "
    padding = (width - len(text_with_spaces)) // 2
    return char * padding + text_with_spaces + char * (width - padding - len(text_with_spaces))


def _format_json(data: Dict[str, Any], indent: int = 2) -> str:
    """Format dictionary as pretty JSON string."""
    try:
        return json.dumps(data, indent=indent, default=str, ensure_ascii=False)
    except (TypeError, ValueError):
        return str(data)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _names(stages: Iterable[Any]) -> str:
    names = [getattr(s, "value", str(s)) for s in stages]
    return ", ".join(names) if names else "None"


def log_pipeline_start(session_id: str, user_id: Optional[str] = None) -> None:
    """Log pipeline start with prominent banner."""
    print("\n")
    print(PIPELINE_BANNER_CHAR * BANNER_WIDTH)
    print(_create_banner(PIPELINE_BANNER_CHAR, "DESIGNFLOW PIPELINE STARTED"))
    print(PIPELINE_BANNER_CHAR * BANNER_WIDTH)
    print(f"║ Session ID : {session_id}")
    print(f"║ User ID    : {user_id or 'unknown'}")
    print(f"║ Timestamp  : {_timestamp()}")
    print(PIPELINE_BANNER_CHAR * BANNER_WIDTH)
    print("\n")

    logger.info("pipeline_start_logged", session_id=session_id, user_id=user_id)


def log_stage_start(session_id: str, stage: Any, percent: int) -> None:
    """Log when a stage becomes active."""
    name = getattr(stage, "value", str(stage))

    print(STAGE_BANNER_CHAR * BANNER_WIDTH)
    print(_create_banner(STAGE_BANNER_CHAR, f"▶ STAGE: {name.upper()}"))
    print(f"║ Session ID : {session_id}")
    print(f"║ Progress   : {percent}%")
    print(STAGE_BANNER_CHAR * BANNER_WIDTH)

    logger.info("stage_start_logged", session_id=session_id, stage=name, percent=percent)


def log_stage_output(
    session_id: str,
    stage: Any,
    output: Dict[str, Any],
    duration_ms: int = 0
) -> None:
    """Log the summary a stage produced."""
    name = getattr(stage, "value", str(stage))

    print(STAGE_BANNER_CHAR * BANNER_WIDTH)
    print(_create_banner(STAGE_BANNER_CHAR, f"✓ STAGE OUTPUT: {name.upper()}"))
    print(f"║ Session ID : {session_id}")
    print(f"║ Duration   : {duration_ms:,} ms")
    print(STAGE_BANNER_CHAR * BANNER_WIDTH)
    for line in _format_json(output).split("\n"):
        print(f"  {line}")
    print(STAGE_BANNER_CHAR * BANNER_WIDTH)

    logger.info(
        "stage_output_logged",
        session_id=session_id,
        stage=name,
        duration_ms=duration_ms,
        output_keys=list(output.keys())
    )


def log_pipeline_complete(
    session_id: str,
    completed_stages: Iterable[Any],
    duration_ms: int,
    render_count: int
) -> None:
    """Log pipeline completion with summary."""
    print("\n")
    print(PIPELINE_BANNER_CHAR * BANNER_WIDTH)
    print(_create_banner(PIPELINE_BANNER_CHAR, "✓ PIPELINE COMPLETED SUCCESSFULLY"))
    print(PIPELINE_BANNER_CHAR * BANNER_WIDTH)
    print(f"║ Session ID       : {session_id}")
    print(f"║ Timestamp        : {_timestamp()}")
    print(f"║ Duration         : {duration_ms:,} ms ({duration_ms / 1000:.2f}s)")
    print(f"║ Renders          : {render_count}")
    print(f"║ Completed Stages : {_names(completed_stages)}")
    print(PIPELINE_BANNER_CHAR * BANNER_WIDTH)
    print("\n")

    logger.info(
        "pipeline_complete_logged",
        session_id=session_id,
        duration_ms=duration_ms,
        render_count=render_count
    )


def log_pipeline_failed(
    session_id: str,
    failed_stage: Any,
    error: str,
    completed_stages: Iterable[Any]
) -> None:
    """Log pipeline failure with details."""
    stage = getattr(failed_stage, "value", str(failed_stage))

    print("\n")
    print(ERROR_BANNER_CHAR * BANNER_WIDTH)
    print(_create_banner(ERROR_BANNER_CHAR, "✗ PIPELINE FAILED"))
    print(ERROR_BANNER_CHAR * BANNER_WIDTH)
    print(f"║ Session ID       : {session_id}")
    print(f"║ Timestamp        : {_timestamp()}")
    print(f"║ Failed Stage     : {stage}")
    print(f"║ Error            : {error}")
    print(f"║ Completed Before : {_names(completed_stages)}")
    print(ERROR_BANNER_CHAR * BANNER_WIDTH)
    print("\n")

    logger.error(
        "pipeline_failed_logged",
        session_id=session_id,
        failed_stage=stage,
        error=error
    )


def log_pipeline_cancelled(session_id: str, stage: Any) -> None:
    """Log a run whose caller went away mid-flight."""
    name = getattr(stage, "value", str(stage))

    print(CANCEL_BANNER_CHAR * BANNER_WIDTH)
    print(_create_banner(CANCEL_BANNER_CHAR, "PIPELINE CANCELLED"))
    print(f"~ Session ID : {session_id}")
    print(f"~ Stage      : {name}")
    print("~ Action     : Results dropped")
    print(CANCEL_BANNER_CHAR * BANNER_WIDTH)

    logger.info("pipeline_cancelled_logged", session_id=session_id, stage=name)
