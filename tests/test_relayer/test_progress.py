"""
Tests for ProgressTracker and the RelayerProgress snapshot.
"""

import threading

import pytest
from pydantic import ValidationError

from walrelay.errors import (
    CancellationRejectedError,
    InvalidStateTransitionError,
    RelayerBusyError,
    RequestCancelledError,
    SwapFailedError,
)
from walrelay.models import RelayerPhase, RelayerProgress, RelayerStatus
from walrelay.relayer import ALLOWED_TRANSITIONS, STATUS_TRANSITIONS, ProgressTracker

PHASES = [
    RelayerPhase.COST_CALCULATED,
    RelayerPhase.BRIDGE_COMPLETED,
    RelayerPhase.SWAP_COMPLETED,
    RelayerPhase.STORAGE_COMPLETED,
]


@pytest.fixture
def tracker() -> ProgressTracker:
    return ProgressTracker()


class TestTransitionTables:
    """Tests for the declared transition tables."""

    def test_phases_advance_one_step(self) -> None:
        for current, following in zip([RelayerPhase.IDLE] + PHASES, PHASES):
            assert ALLOWED_TRANSITIONS[current] == {following}
        assert ALLOWED_TRANSITIONS[RelayerPhase.STORAGE_COMPLETED] == set()

    def test_terminal_statuses(self) -> None:
        assert STATUS_TRANSITIONS[RelayerStatus.SUCCEEDED] == {RelayerStatus.IDLE}
        assert RelayerStatus.RUNNING in STATUS_TRANSITIONS[RelayerStatus.FAILED]


class TestSnapshot:
    """Tests for RelayerProgress."""

    def test_initial_state(self) -> None:
        progress = RelayerProgress()

        assert progress.status == RelayerStatus.IDLE
        assert progress.steps() == {
            "calculateCost": False,
            "transferStable": False,
            "swapToToken": False,
            "storeData": False,
        }

    def test_flags_follow_phase(self) -> None:
        progress = RelayerProgress(phase=RelayerPhase.SWAP_COMPLETED)

        assert list(progress.steps().values()) == [True, True, True, False]

    def test_frozen(self) -> None:
        progress = RelayerProgress()
        with pytest.raises(ValidationError):
            progress.status = RelayerStatus.RUNNING

    def test_camel_case_alias(self) -> None:
        assert RelayerProgress(in_flight=True).model_dump(by_alias=True)["inFlight"] is True


class TestLifecycle:
    """Tests for begin/advance/fail/resume/reset."""

    def test_full_run(self, tracker: ProgressTracker) -> None:
        tracker.begin()
        for phase in PHASES:
            snapshot = tracker.advance(phase)

        assert snapshot.status == RelayerStatus.SUCCEEDED
        assert snapshot.store_data is True

    def test_skipping_a_phase_rejected(self, tracker: ProgressTracker) -> None:
        tracker.begin()

        with pytest.raises(InvalidStateTransitionError):
            tracker.advance(RelayerPhase.BRIDGE_COMPLETED)

        assert tracker.snapshot.phase == RelayerPhase.IDLE

    def test_advance_requires_running(self, tracker: ProgressTracker) -> None:
        with pytest.raises(InvalidStateTransitionError):
            tracker.advance(RelayerPhase.COST_CALCULATED)

    def test_begin_while_running_is_busy(self, tracker: ProgressTracker) -> None:
        tracker.begin()
        with pytest.raises(RelayerBusyError):
            tracker.begin()

    def test_reset_while_running_is_busy(self, tracker: ProgressTracker) -> None:
        tracker.begin()
        with pytest.raises(RelayerBusyError):
            tracker.reset()

    def test_fail_keeps_completed_flags(self, tracker: ProgressTracker) -> None:
        tracker.begin()
        tracker.advance(RelayerPhase.COST_CALCULATED)
        tracker.advance(RelayerPhase.BRIDGE_COMPLETED)

        snapshot = tracker.fail(SwapFailedError("MoveAbort", tx_hash="9x"), in_flight=True)

        assert snapshot.status == RelayerStatus.FAILED
        assert snapshot.transfer_stable is True
        assert snapshot.swap_to_token is False
        assert snapshot.in_flight is True
        assert snapshot.error.code == "SWAP_FAILED"
        assert snapshot.error.kind == "SwapFailed"
        assert snapshot.error.tx_hash == "9x"

    def test_fail_twice_rejected(self, tracker: ProgressTracker) -> None:
        tracker.begin()
        tracker.fail(SwapFailedError())
        with pytest.raises(InvalidStateTransitionError):
            tracker.fail(SwapFailedError())

    def test_resume_from_failed(self, tracker: ProgressTracker) -> None:
        tracker.begin()
        tracker.advance(RelayerPhase.COST_CALCULATED)
        tracker.fail(SwapFailedError())

        snapshot = tracker.resume()

        assert snapshot.status == RelayerStatus.RUNNING
        assert snapshot.phase == RelayerPhase.COST_CALCULATED
        assert snapshot.error is None

    def test_resume_requires_failed(self, tracker: ProgressTracker) -> None:
        with pytest.raises(InvalidStateTransitionError):
            tracker.resume()

    def test_reset_is_idempotent(self, tracker: ProgressTracker) -> None:
        tracker.begin()
        tracker.fail(SwapFailedError())

        assert tracker.reset() == tracker.reset() == RelayerProgress()

    def test_old_snapshot_unchanged(self, tracker: ProgressTracker) -> None:
        """Test readers holding a snapshot never see it mutate."""
        before = tracker.begin()
        tracker.advance(RelayerPhase.COST_CALCULATED)

        assert before.calculate_cost is False
        assert tracker.snapshot.calculate_cost is True


class TestCancellation:
    """Tests for the cancel flag and the in-flight commit."""

    def test_cancel_then_checkpoint(self, tracker: ProgressTracker) -> None:
        tracker.begin()
        tracker.request_cancel()

        with pytest.raises(RequestCancelledError):
            tracker.check_cancelled()

    def test_cancel_beats_broadcast(self, tracker: ProgressTracker) -> None:
        tracker.begin()
        tracker.request_cancel()

        with pytest.raises(RequestCancelledError):
            tracker.mark_in_flight()

        assert tracker.snapshot.in_flight is False

    def test_broadcast_beats_cancel(self, tracker: ProgressTracker) -> None:
        tracker.begin()
        tracker.mark_in_flight()

        with pytest.raises(CancellationRejectedError) as exc_info:
            tracker.request_cancel(tx_hash="0xabc")

        assert exc_info.value.tx_hash == "0xabc"
        tracker.check_cancelled()

    def test_cancel_requires_running(self, tracker: ProgressTracker) -> None:
        with pytest.raises(InvalidStateTransitionError):
            tracker.request_cancel()

    def test_begin_clears_cancel(self, tracker: ProgressTracker) -> None:
        tracker.begin()
        tracker.request_cancel()
        tracker.fail(RequestCancelledError())

        tracker.begin()
        tracker.check_cancelled()

    def test_exactly_one_side_wins(self) -> None:
        """Test concurrent cancel and broadcast never both succeed."""
        for _ in range(50):
            tracker = ProgressTracker()
            tracker.begin()
            outcomes = []
            barrier = threading.Barrier(2)

            def cancel() -> None:
                barrier.wait()
                try:
                    tracker.request_cancel()
                    outcomes.append("cancelled")
                except CancellationRejectedError:
                    outcomes.append("rejected")

            def broadcast() -> None:
                barrier.wait()
                try:
                    tracker.mark_in_flight()
                    outcomes.append("broadcast")
                except RequestCancelledError:
                    outcomes.append("aborted")

            threads = [threading.Thread(target=cancel), threading.Thread(target=broadcast)]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join()

            assert sorted(outcomes) in (["aborted", "cancelled"], ["broadcast", "rejected"])
