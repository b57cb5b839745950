"""
walrelay - pay for decentralized blob storage with a bridged stablecoin.

The relayer burns USDC on the source chain, waits for the bridge
attestation, mints on the destination chain, swaps into the storage
token and stores the payload on Walrus.

Quick Start:
    >>> from walrelay import Payload, RelayerConfig, RelayerOrchestrator, StorageRequest
    >>> import asyncio
    >>>
    >>> async def main():
    ...     relayer = RelayerOrchestrator.from_config(RelayerConfig.from_env(), signer=my_signer)
    ...     quote = await relayer.estimate(Payload.from_text("hello"), 200)
    ...     print(quote.display())
    ...     result = await relayer.submit_storage_request(StorageRequest(
    ...         payload=Payload.from_text("hello"),
    ...         source_address=relayer.source_address,
    ...         destination_address="0x" + "ab" * 32,
    ...         retention_epochs=200,
    ...     ))
    ...     print(result.blob_id or result.error)
    ...
    >>> asyncio.run(main())

Modules:
- `pricing`: PriceOracle implementations and CostEstimator
- `bridge`: burn-and-mint BridgeClient and attestation polling
- `swap`: SwapClient for stablecoin -> storage token
- `storage`: StorageClient for the publisher/aggregator API
- `relayer`: RelayerOrchestrator state machine
- `errors`: Exception hierarchy
- `utils`: logging, retry, circuit breaker and validation helpers
"""

from walrelay.version import __version__, __version_info__

# Configuration
from walrelay.config import (
    AttestationConfig,
    CircuitBreakerConfig,
    DestinationChainConfig,
    OrchestratorConfig,
    PricingConfig,
    RelayerConfig,
    SourceChainConfig,
    WalrusConfig,
)

# Models
from walrelay.models import (
    BridgeTransfer,
    BridgeTransferStatus,
    CostQuote,
    ErrorInfo,
    GasFees,
    Payload,
    PayloadKind,
    RelayerCost,
    RelayerPhase,
    RelayerProgress,
    RelayerResult,
    RelayerStatus,
    StorageRequest,
    StoredBlob,
    SwapResult,
    SwapStatus,
)

# Components
from walrelay.pricing import CostEstimator, HttpPriceOracle, PriceOracle, StaticPriceOracle, StorageCostModel
from walrelay.bridge import AttestationService, BridgeClient
from walrelay.sui import SignedTransaction, SuiRpcClient, TransactionSigner
from walrelay.swap import SwapClient
from walrelay.storage import StorageClient
from walrelay.relayer import RelayerOrchestrator

# Errors
from walrelay.errors import (
    AttestationTimeoutError,
    BlobNotFoundError,
    BlobTooLargeError,
    BurnRejectedError,
    CancellationRejectedError,
    ChainRpcError,
    CircuitBreakerOpenError,
    InvalidInputError,
    InvalidStateTransitionError,
    LiquidityUnavailableError,
    MintRejectedError,
    PriceUnavailableError,
    RelayerBusyError,
    RelayerError,
    RequestCancelledError,
    RequestInterruptedError,
    SlippageExceededError,
    StorageError,
    StorageRejectedError,
    StorageUnavailableError,
    SwapFailedError,
)

# Logging
from walrelay.utils.logging import configure_logging, get_logger

__all__ = [
    "__version__",
    "__version_info__",
    # Configuration
    "RelayerConfig",
    "SourceChainConfig",
    "DestinationChainConfig",
    "AttestationConfig",
    "PricingConfig",
    "WalrusConfig",
    "CircuitBreakerConfig",
    "OrchestratorConfig",
    # Models
    "Payload",
    "PayloadKind",
    "StorageRequest",
    "CostQuote",
    "BridgeTransfer",
    "BridgeTransferStatus",
    "SwapResult",
    "SwapStatus",
    "StoredBlob",
    "RelayerStatus",
    "RelayerPhase",
    "RelayerProgress",
    "ErrorInfo",
    "GasFees",
    "RelayerCost",
    "RelayerResult",
    # Components
    "PriceOracle",
    "StaticPriceOracle",
    "HttpPriceOracle",
    "StorageCostModel",
    "CostEstimator",
    "AttestationService",
    "BridgeClient",
    "SuiRpcClient",
    "TransactionSigner",
    "SignedTransaction",
    "SwapClient",
    "StorageClient",
    "RelayerOrchestrator",
    # Errors
    "RelayerError",
    "InvalidInputError",
    "PriceUnavailableError",
    "LiquidityUnavailableError",
    "ChainRpcError",
    "BurnRejectedError",
    "AttestationTimeoutError",
    "MintRejectedError",
    "SlippageExceededError",
    "SwapFailedError",
    "StorageError",
    "StorageRejectedError",
    "BlobTooLargeError",
    "StorageUnavailableError",
    "BlobNotFoundError",
    "CircuitBreakerOpenError",
    "InvalidStateTransitionError",
    "RelayerBusyError",
    "RequestCancelledError",
    "RequestInterruptedError",
    "CancellationRejectedError",
    # Logging
    "configure_logging",
    "get_logger",
]
