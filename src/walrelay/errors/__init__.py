"""
Exception hierarchy for walrelay.

Every error carries a machine-readable code and a ``retryable`` flag that
the orchestrator uses to decide whether a failed phase may be resumed.
"""

from walrelay.errors.base import InvalidInputError, RelayerError
from walrelay.errors.chain import (
    AttestationTimeoutError,
    BurnRejectedError,
    ChainRpcError,
    MintRejectedError,
    SlippageExceededError,
    SwapFailedError,
)
from walrelay.errors.pricing import LiquidityUnavailableError, PriceUnavailableError
from walrelay.errors.relayer import (
    CancellationRejectedError,
    InvalidStateTransitionError,
    RelayerBusyError,
    RequestCancelledError,
    RequestInterruptedError,
)
from walrelay.errors.storage import (
    BlobNotFoundError,
    BlobTooLargeError,
    CircuitBreakerOpenError,
    StorageError,
    StorageRejectedError,
    StorageUnavailableError,
)

__all__ = [
    "RelayerError",
    "InvalidInputError",
    # Pricing
    "PriceUnavailableError",
    "LiquidityUnavailableError",
    # Chain
    "ChainRpcError",
    "BurnRejectedError",
    "AttestationTimeoutError",
    "MintRejectedError",
    "SlippageExceededError",
    "SwapFailedError",
    # Storage
    "StorageError",
    "StorageRejectedError",
    "BlobTooLargeError",
    "StorageUnavailableError",
    "BlobNotFoundError",
    "CircuitBreakerOpenError",
    # Orchestrator
    "InvalidStateTransitionError",
    "RelayerBusyError",
    "RequestCancelledError",
    "RequestInterruptedError",
    "CancellationRejectedError",
]
