"""Single-flight guard for pipeline runs.

Held by the caller, not the pipeline: a session may have at most one run in
flight until that run reaches done or error.
"""

import threading
from contextlib import contextmanager
from typing import Iterator, Set

import structlog

from config.errors import PipelineBusyError

logger = structlog.get_logger()


class SessionRunGuard:
    """Tracks which sessions have a run in flight."""

    def __init__(self):
        self._lock = threading.Lock()
        self._active: Set[str] = set()

    def acquire(self, session_id: str) -> None:
        """Claim the session.

        Raises:
            PipelineBusyError: If a run is already in flight for the session.
        """
        with self._lock:
            if session_id in self._active:
                logger.warning("pipeline_run_rejected_busy", session_id=session_id)
                raise PipelineBusyError(session_id)
            self._active.add(session_id)

    def release(self, session_id: str) -> None:
        with self._lock:
            self._active.discard(session_id)

    def is_active(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._active

    @contextmanager
    def hold(self, session_id: str) -> Iterator[None]:
        """Hold the session for the duration of a run."""
        self.acquire(session_id)
        try:
            yield
        finally:
            self.release(session_id)


# Process-wide guard used by the HTTP entry points
session_guard = SessionRunGuard()
