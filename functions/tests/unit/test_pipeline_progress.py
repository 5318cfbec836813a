"""Unit tests for stage tracking and the session run guard."""

import pytest

from config.errors import ErrorCode, PipelineBusyError, PipelineError
from models.pipeline import PipelineStage
from pipeline.guard import SessionRunGuard
from pipeline.progress import CancellationToken, StageTracker


FORWARD = [
    PipelineStage.MEASURING,
    PipelineStage.STYLING,
    PipelineStage.CREATING,
    PipelineStage.DONE,
]


class TestStageTracker:
    """Tests for StageTracker transitions."""

    def test_starts_idle(self):
        tracker = StageTracker("sess-1")

        assert tracker.is_idle
        assert tracker.snapshot().percent == 0
        assert tracker.snapshot().stage is None

    def test_forward_run(self):
        tracker = StageTracker("sess-1")
        tracker.start()
        percents = []
        for stage in FORWARD:
            percents.append(tracker.advance(stage).percent)

        assert tracker.stage == PipelineStage.DONE
        assert percents == [25, 50, 75, 100]
        assert tracker.completed_stages == [
            PipelineStage.ANALYZING,
            PipelineStage.MEASURING,
            PipelineStage.STYLING,
            PipelineStage.CREATING,
        ]

    def test_completed_stages_is_a_copy(self):
        tracker = StageTracker()
        tracker.start()
        tracker.completed_stages.append(PipelineStage.DONE)

        assert tracker.completed_stages == []

    def test_skipping_a_stage_is_rejected(self):
        tracker = StageTracker("sess-1")
        tracker.start()

        with pytest.raises(PipelineError) as exc_info:
            tracker.advance(PipelineStage.STYLING)

        assert exc_info.value.code == ErrorCode.PIPELINE_INVALID_STATE
        assert exc_info.value.retryable is False
        assert tracker.stage == PipelineStage.ANALYZING

    def test_moving_backward_is_rejected(self):
        tracker = StageTracker()
        tracker.start()
        tracker.advance(PipelineStage.MEASURING)

        with pytest.raises(PipelineError):
            tracker.advance(PipelineStage.ANALYZING)

    def test_advance_from_idle_is_rejected(self):
        with pytest.raises(PipelineError):
            StageTracker().advance(PipelineStage.MEASURING)

    def test_start_twice_is_rejected(self):
        tracker = StageTracker()
        tracker.start()

        with pytest.raises(PipelineError):
            tracker.start()

    def test_no_moves_after_done(self):
        tracker = StageTracker()
        tracker.start()
        for stage in FORWARD:
            tracker.advance(stage)

        with pytest.raises(PipelineError):
            tracker.fail()
        with pytest.raises(PipelineError):
            tracker.advance(PipelineStage.ERROR)

    def test_fail_records_stage(self):
        tracker = StageTracker()
        tracker.start()
        tracker.advance(PipelineStage.MEASURING)

        progress = tracker.fail()

        assert progress.stage == PipelineStage.ERROR
        assert progress.error_stage == PipelineStage.MEASURING
        assert progress.percent == 25

        with pytest.raises(PipelineError):
            tracker.advance(PipelineStage.STYLING)

    def test_fail_from_idle_is_rejected(self):
        with pytest.raises(PipelineError):
            StageTracker().fail()

    def test_reset_returns_to_idle(self):
        tracker = StageTracker()
        tracker.start()
        tracker.fail()

        progress = tracker.reset()

        assert tracker.is_idle
        assert progress.error_stage is None
        assert progress.completed_stages == ()
        tracker.start()
        assert tracker.stage == PipelineStage.ANALYZING

    def test_observers_see_every_change(self):
        tracker = StageTracker()
        seen = []
        tracker.subscribe(lambda progress: seen.append(progress.stage))

        tracker.start()
        tracker.advance(PipelineStage.MEASURING)
        tracker.fail()

        assert seen == [PipelineStage.ANALYZING, PipelineStage.MEASURING, PipelineStage.ERROR]

    def test_progress_to_dict(self):
        tracker = StageTracker()
        tracker.start()
        tracker.advance(PipelineStage.MEASURING)

        assert tracker.snapshot().to_dict() == {
            "stage": "measuring",
            "completedStages": ["analyzing"],
            "percent": 25,
            "errorStage": None,
        }


class TestCancellationToken:
    """Tests for CancellationToken."""

    def test_cancel(self):
        token = CancellationToken()
        assert not token.is_cancelled

        token.cancel()

        assert token.is_cancelled


class TestSessionRunGuard:
    """Tests for SessionRunGuard."""

    def test_second_acquire_is_busy(self):
        guard = SessionRunGuard()
        guard.acquire("sess-1")

        with pytest.raises(PipelineBusyError) as exc_info:
            guard.acquire("sess-1")

        assert exc_info.value.code == ErrorCode.PIPELINE_BUSY
        assert exc_info.value.session_id == "sess-1"

    def test_sessions_are_independent(self):
        guard = SessionRunGuard()
        guard.acquire("sess-1")
        guard.acquire("sess-2")

        assert guard.is_active("sess-1")
        assert guard.is_active("sess-2")

    def test_hold_releases_on_error(self):
        guard = SessionRunGuard()

        with pytest.raises(RuntimeError):
            with guard.hold("sess-1"):
                assert guard.is_active("sess-1")
                raise RuntimeError("boom")

        assert not guard.is_active("sess-1")
        with guard.hold("sess-1"):
            pass

    def test_release_unknown_session_is_noop(self):
        SessionRunGuard().release("never-held")
