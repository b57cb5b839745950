"""
Orchestrator lifecycle exceptions.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from walrelay.errors.base import RelayerError


class InvalidStateTransitionError(RelayerError):
    """Raised when a requested relayer state transition is not allowed."""

    def __init__(
        self,
        current: str,
        requested: str,
        *,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        details["current"] = current
        details["requested"] = requested

        super().__init__(
            f"Cannot transition from {current} to {requested}",
            code="INVALID_STATE_TRANSITION",
            details=details,
        )
        self.current = current
        self.requested = requested


class RelayerBusyError(RelayerError):
    """Raised when an orchestrator already running a request is asked to start or reset."""

    def __init__(self, message: str = "Relayer is already processing a request") -> None:
        super().__init__(message, code="RELAYER_BUSY")


class RequestCancelledError(RelayerError):
    """Raised inside a request that the caller cancelled before the burn was broadcast."""

    def __init__(self, message: str = "Request cancelled before any funds moved") -> None:
        super().__init__(message, code="REQUEST_CANCELLED")


class RequestInterruptedError(RelayerError):
    """
    Raised when a request stops unexpectedly after its burn was broadcast.

    Retryable: the funds are already moving, so the request resumes from
    the recorded transfer instead of ending here.
    """

    retryable = True

    def __init__(
        self,
        message: str = "Request interrupted after the burn was broadcast",
        *,
        code: str = "REQUEST_INTERRUPTED",
        tx_hash: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code=code, tx_hash=tx_hash, details=details)


class CancellationRejectedError(RelayerError):
    """
    Raised when cancellation is requested after the burn was broadcast.

    The request is in flight and must reach a terminal outcome.
    """

    def __init__(
        self,
        message: str = "Burn already broadcast; request is in flight and cannot be cancelled",
        *,
        tx_hash: Optional[str] = None,
    ) -> None:
        super().__init__(message, code="CANCELLATION_REJECTED", tx_hash=tx_hash)
