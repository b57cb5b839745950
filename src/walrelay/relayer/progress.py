"""
Relayer progress tracking.

One writer (the orchestrator driving a request) and any number of readers
(status pollers, possibly on other threads). Every change builds a new
immutable RelayerProgress and swaps it in under a lock, so a reader
always sees a consistent snapshot and never sees a flag go back to false
mid-request.
"""

from __future__ import annotations

import threading
from typing import Dict, Optional, Set

from walrelay.errors.base import RelayerError
from walrelay.errors.relayer import (
    CancellationRejectedError,
    InvalidStateTransitionError,
    RelayerBusyError,
    RequestCancelledError,
)
from walrelay.models import ErrorInfo, RelayerPhase, RelayerProgress, RelayerStatus

# Phases advance one step at a time; there is no way back except reset.
ALLOWED_TRANSITIONS: Dict[RelayerPhase, Set[RelayerPhase]] = {
    RelayerPhase.IDLE: {RelayerPhase.COST_CALCULATED},
    RelayerPhase.COST_CALCULATED: {RelayerPhase.BRIDGE_COMPLETED},
    RelayerPhase.BRIDGE_COMPLETED: {RelayerPhase.SWAP_COMPLETED},
    RelayerPhase.SWAP_COMPLETED: {RelayerPhase.STORAGE_COMPLETED},
    RelayerPhase.STORAGE_COMPLETED: set(),
}

STATUS_TRANSITIONS: Dict[RelayerStatus, Set[RelayerStatus]] = {
    RelayerStatus.IDLE: {RelayerStatus.RUNNING},
    RelayerStatus.RUNNING: {RelayerStatus.SUCCEEDED, RelayerStatus.FAILED},
    RelayerStatus.SUCCEEDED: {RelayerStatus.IDLE},
    RelayerStatus.FAILED: {RelayerStatus.RUNNING, RelayerStatus.IDLE},
}


class ProgressTracker:
    """
    Thread-safe holder of the current RelayerProgress snapshot.

    Also owns the cancellation flag, because "cancel" and "about to
    broadcast" must be decided atomically against each other.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._snapshot = RelayerProgress()
        self._cancel_requested = False

    @property
    def snapshot(self) -> RelayerProgress:
        """Current snapshot. Immutable, safe to hand to any reader."""
        with self._lock:
            return self._snapshot

    def _set(self, **changes) -> RelayerProgress:
        self._snapshot = self._snapshot.model_copy(update=changes)
        return self._snapshot

    def _check_status(self, requested: RelayerStatus) -> None:
        current = self._snapshot.status
        if requested not in STATUS_TRANSITIONS[current]:
            raise InvalidStateTransitionError(current.value, requested.value)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def begin(self) -> RelayerProgress:
        """
        Start a new request from a fresh Idle state.

        A finished (succeeded or failed) previous request is discarded.

        Raises:
            RelayerBusyError: If a request is already running
        """
        with self._lock:
            if self._snapshot.status == RelayerStatus.RUNNING:
                raise RelayerBusyError()
            self._cancel_requested = False
            self._snapshot = RelayerProgress(status=RelayerStatus.RUNNING)
            return self._snapshot

    def reset(self) -> RelayerProgress:
        """
        Return to Idle with all flags false.

        Raises:
            RelayerBusyError: If a request is running
        """
        with self._lock:
            if self._snapshot.status == RelayerStatus.RUNNING:
                raise RelayerBusyError("Cannot reset while a request is running")
            self._cancel_requested = False
            self._snapshot = RelayerProgress()
            return self._snapshot

    def advance(self, phase: RelayerPhase) -> RelayerProgress:
        """
        Mark ``phase`` complete. Completing the final phase ends the request.

        Raises:
            InvalidStateTransitionError: If not running, or ``phase`` is not
                the immediate successor of the current phase
        """
        with self._lock:
            current = self._snapshot
            if current.status != RelayerStatus.RUNNING:
                raise InvalidStateTransitionError(current.status.value, phase.value)
            if phase not in ALLOWED_TRANSITIONS[current.phase]:
                raise InvalidStateTransitionError(current.phase.value, phase.value)

            if phase == RelayerPhase.STORAGE_COMPLETED:
                return self._set(phase=phase, status=RelayerStatus.SUCCEEDED)
            return self._set(phase=phase)

    def fail(self, error: RelayerError, *, in_flight: Optional[bool] = None) -> RelayerProgress:
        """Move a running request to Failed, keeping completed flags."""
        with self._lock:
            self._check_status(RelayerStatus.FAILED)
            changes = {"status": RelayerStatus.FAILED, "error": ErrorInfo.from_error(error)}
            if in_flight is not None:
                changes["in_flight"] = in_flight
            return self._set(**changes)

    def resume(self) -> RelayerProgress:
        """Failed -> Running, for a retry from the failed phase."""
        with self._lock:
            if self._snapshot.status != RelayerStatus.FAILED:
                raise InvalidStateTransitionError(
                    self._snapshot.status.value, RelayerStatus.RUNNING.value
                )
            self._cancel_requested = False
            return self._set(status=RelayerStatus.RUNNING, error=None)

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------

    def request_cancel(self, *, tx_hash: Optional[str] = None) -> None:
        """
        Ask the running request to stop at its next checkpoint.

        Raises:
            InvalidStateTransitionError: If no request is running
            CancellationRejectedError: If the burn is already being broadcast
        """
        with self._lock:
            if self._snapshot.status != RelayerStatus.RUNNING:
                raise InvalidStateTransitionError(self._snapshot.status.value, "cancelled")
            if self._snapshot.in_flight:
                raise CancellationRejectedError(tx_hash=tx_hash)
            self._cancel_requested = True

    def check_cancelled(self) -> None:
        """Raise RequestCancelledError if cancellation was requested."""
        with self._lock:
            if self._cancel_requested:
                raise RequestCancelledError()

    def mark_in_flight(self) -> None:
        """
        Commit to broadcasting the burn. From here on, cancel is rejected.

        Raises:
            RequestCancelledError: If cancellation won the race
        """
        with self._lock:
            if self._cancel_requested:
                raise RequestCancelledError()
            self._set(in_flight=True)
