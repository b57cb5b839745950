"""
Configuration for walrelay.

All configuration objects are frozen pydantic models: they are read once
at startup and shared, read-only, by every request the process serves.
``RelayerConfig.from_env`` builds the full tree from environment
variables (a ``.env`` file is loaded first when present).
"""

from __future__ import annotations

import os
from decimal import Decimal
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

from walrelay.constants import (
    ARBITRUM_CHAIN_ID,
    ARBITRUM_MESSAGE_TRANSMITTER,
    ARBITRUM_RPC_URL,
    ARBITRUM_TOKEN_MESSENGER,
    ARBITRUM_USDC,
    ATTESTATION_API_URL,
    CCTP_DOMAIN_ARBITRUM,
    CCTP_DOMAIN_SUI,
    DEFAULT_ATTESTATION_POLL_INTERVAL,
    DEFAULT_ATTESTATION_TIMEOUT,
    DEFAULT_PER_BYTE_PER_EPOCH_RATE,
    DEFAULT_RETENTION_EPOCHS,
    DEFAULT_SLIPPAGE_BUFFER_PCT,
    DEFAULT_TX_WAIT_TIMEOUT,
    MAX_BLOB_SIZE,
    STABLECOIN_DECIMALS,
    STORAGE_TOKEN_DECIMALS,
    SUI_RPC_URL,
    WALRUS_AGGREGATOR_URL,
    WALRUS_PUBLISHER_URL,
)


# ============================================================================
# Circuit Breaker Configuration
# ============================================================================

class CircuitBreakerConfig(BaseModel):
    """
    Circuit breaker configuration for endpoint health tracking.
    """

    model_config = ConfigDict(frozen=True)

    enabled: bool = Field(default=True, description="Enable circuit breaker")
    failure_threshold: int = Field(
        default=5,
        ge=1,
        description="Number of failures before opening circuit",
    )
    reset_timeout_ms: int = Field(
        default=60000,
        ge=0,
        description="Cooldown period in ms before attempting reset",
    )
    failure_window_ms: int = Field(
        default=300000,
        ge=1000,
        description="Time window in ms for counting failures",
    )
    success_threshold: int = Field(
        default=2,
        ge=1,
        description="Number of successes in half-open to close circuit",
    )


# ============================================================================
# Chains
# ============================================================================

class SourceChainConfig(BaseModel):
    """
    EVM chain the stablecoin is burned on.

    Example:
        ```python
        config = SourceChainConfig(private_key=os.environ["WALRELAY_SOURCE_PRIVATE_KEY"])
        ```
    """

    model_config = ConfigDict(frozen=True)

    rpc_url: str = Field(default=ARBITRUM_RPC_URL, description="Source chain JSON-RPC endpoint")
    chain_id: int = Field(default=ARBITRUM_CHAIN_ID)
    cctp_domain: int = Field(default=CCTP_DOMAIN_ARBITRUM, ge=0)
    usdc_address: str = Field(default=ARBITRUM_USDC)
    token_messenger_address: str = Field(default=ARBITRUM_TOKEN_MESSENGER)
    message_transmitter_address: str = Field(default=ARBITRUM_MESSAGE_TRANSMITTER)
    private_key: str = Field(
        ...,
        repr=False,
        description="Relayer hot-wallet key. SECURITY: Store in environment variable",
    )
    confirmation_timeout: float = Field(
        default=DEFAULT_TX_WAIT_TIMEOUT,
        gt=0,
        description="Seconds to wait for a transaction receipt",
    )


class DestinationChainConfig(BaseModel):
    """Chain the stablecoin is minted on and swapped into the storage token."""

    model_config = ConfigDict(frozen=True)

    rpc_url: str = Field(default=SUI_RPC_URL)
    cctp_domain: int = Field(default=CCTP_DOMAIN_SUI, ge=0)
    usdc_coin_type: str = Field(
        default="0xa1ec7fc00a6f40db9693ad1415d0c193ad3906494428cf252621037bd7117e29::usdc::USDC",
        description="Fully qualified coin type of the bridged stablecoin",
    )
    token_coin_type: str = Field(
        default="0x8270feb7375eee355e64fdb69c50abb6b5f9393a722883c1cf45f8e26048810a::wal::WAL",
        description="Fully qualified coin type of the storage token",
    )
    dex_pool_id: str = Field(
        default="",
        description="Object id of the stablecoin/storage-token pool",
    )
    stablecoin_decimals: int = Field(default=STABLECOIN_DECIMALS, ge=0)
    token_decimals: int = Field(default=STORAGE_TOKEN_DECIMALS, ge=0)
    timeout: float = Field(default=60.0, gt=0, description="RPC request timeout in seconds")


# ============================================================================
# Attestation
# ============================================================================

class AttestationConfig(BaseModel):
    """
    Attestation polling policy. Process-wide and read-only after startup.
    """

    model_config = ConfigDict(frozen=True)

    base_url: str = Field(default=ATTESTATION_API_URL)
    poll_interval: float = Field(
        default=DEFAULT_ATTESTATION_POLL_INTERVAL,
        gt=0,
        description="Seconds between attestation polls",
    )
    timeout: float = Field(
        default=DEFAULT_ATTESTATION_TIMEOUT,
        gt=0,
        description="Overall seconds before AttestationTimeoutError",
    )
    request_timeout: float = Field(default=15.0, gt=0)


# ============================================================================
# Pricing
# ============================================================================

class PricingConfig(BaseModel):
    """
    Storage pricing and the slippage policy.

    ``slippage_buffer_pct`` is the single source of truth for both the
    quoted stablecoin amount and the swap's minimum output.
    """

    model_config = ConfigDict(frozen=True)

    per_byte_per_epoch_rate: Decimal = Field(
        default=DEFAULT_PER_BYTE_PER_EPOCH_RATE,
        gt=0,
        description="Storage tokens charged per byte per epoch",
    )
    slippage_buffer_pct: Decimal = Field(
        default=DEFAULT_SLIPPAGE_BUFFER_PCT,
        ge=0,
        lt=1,
    )
    price_api_url: Optional[str] = Field(
        default=None,
        description="HTTP quote endpoint; when unset a static rate must be given",
    )
    static_exchange_rate: Optional[Decimal] = Field(
        default=None,
        gt=0,
        description="Storage tokens per stablecoin, for development and tests",
    )
    timeout: float = Field(default=10.0, gt=0)


# ============================================================================
# Storage
# ============================================================================

class WalrusConfig(BaseModel):
    """
    Storage network publisher/aggregator configuration.

    Example:
        ```python
        config = WalrusConfig(
            publisher_url="https://publisher.walrus-testnet.walrus.space",
            aggregator_url="https://aggregator.walrus-testnet.walrus.space",
        )
        ```
    """

    model_config = ConfigDict(frozen=True)

    publisher_url: str = Field(default=WALRUS_PUBLISHER_URL)
    aggregator_url: str = Field(default=WALRUS_AGGREGATOR_URL)
    timeout_ms: int = Field(default=120000, ge=1000, description="Request timeout in milliseconds")
    max_attempts: int = Field(default=4, ge=1, description="Upload attempts on transient failure")
    base_delay_ms: int = Field(default=1000, ge=0)
    max_delay_ms: int = Field(default=30000, ge=0)
    max_blob_size: int = Field(default=MAX_BLOB_SIZE, ge=1)
    stream_chunk_size: int = Field(default=64 * 1024, ge=1024)
    circuit_breaker: Optional[CircuitBreakerConfig] = None


# ============================================================================
# Orchestrator
# ============================================================================

class OrchestratorConfig(BaseModel):
    """Retry policy for the relayer state machine."""

    model_config = ConfigDict(frozen=True)

    default_retention_epochs: int = Field(default=DEFAULT_RETENTION_EPOCHS, ge=1)
    swap_attempts: int = Field(
        default=2,
        ge=1,
        description="Swap attempts, each with a fresh quote, before failing",
    )


class RelayerConfig(BaseModel):
    """Complete relayer configuration."""

    model_config = ConfigDict(frozen=True)

    source: SourceChainConfig
    destination: DestinationChainConfig = Field(default_factory=DestinationChainConfig)
    attestation: AttestationConfig = Field(default_factory=AttestationConfig)
    pricing: PricingConfig = Field(default_factory=PricingConfig)
    walrus: WalrusConfig = Field(default_factory=WalrusConfig)
    orchestrator: OrchestratorConfig = Field(default_factory=OrchestratorConfig)

    @classmethod
    def from_env(cls, prefix: str = "WALRELAY_") -> RelayerConfig:
        """
        Build configuration from environment variables.

        Recognized variables (all prefixed):
            SOURCE_PRIVATE_KEY (required), SOURCE_RPC_URL, SOURCE_CHAIN_ID,
            SOURCE_CCTP_DOMAIN, USDC_ADDRESS, TOKEN_MESSENGER_ADDRESS,
            MESSAGE_TRANSMITTER_ADDRESS, DESTINATION_RPC_URL,
            DESTINATION_CCTP_DOMAIN, USDC_COIN_TYPE, TOKEN_COIN_TYPE,
            DEX_POOL_ID, ATTESTATION_URL, ATTESTATION_POLL_INTERVAL,
            ATTESTATION_TIMEOUT, PRICE_API_URL, EXCHANGE_RATE,
            PER_BYTE_PER_EPOCH_RATE, SLIPPAGE_BUFFER_PCT, PUBLISHER_URL,
            AGGREGATOR_URL

        Raises:
            KeyError: If the source private key is missing
        """
        load_dotenv()

        def env(name: str) -> Optional[str]:
            value = os.getenv(prefix + name)
            return value if value else None

        def pick(**values: Optional[str]) -> dict:
            return {k: v for k, v in values.items() if v is not None}

        private_key = env("SOURCE_PRIVATE_KEY")
        if private_key is None:
            raise KeyError(f"{prefix}SOURCE_PRIVATE_KEY is not set")

        return cls(
            source=SourceChainConfig(
                private_key=private_key,
                **pick(
                    rpc_url=env("SOURCE_RPC_URL"),
                    chain_id=env("SOURCE_CHAIN_ID"),
                    cctp_domain=env("SOURCE_CCTP_DOMAIN"),
                    usdc_address=env("USDC_ADDRESS"),
                    token_messenger_address=env("TOKEN_MESSENGER_ADDRESS"),
                    message_transmitter_address=env("MESSAGE_TRANSMITTER_ADDRESS"),
                ),
            ),
            destination=DestinationChainConfig(
                **pick(
                    rpc_url=env("DESTINATION_RPC_URL"),
                    cctp_domain=env("DESTINATION_CCTP_DOMAIN"),
                    usdc_coin_type=env("USDC_COIN_TYPE"),
                    token_coin_type=env("TOKEN_COIN_TYPE"),
                    dex_pool_id=env("DEX_POOL_ID"),
                ),
            ),
            attestation=AttestationConfig(
                **pick(
                    base_url=env("ATTESTATION_URL"),
                    poll_interval=env("ATTESTATION_POLL_INTERVAL"),
                    timeout=env("ATTESTATION_TIMEOUT"),
                ),
            ),
            pricing=PricingConfig(
                **pick(
                    price_api_url=env("PRICE_API_URL"),
                    static_exchange_rate=env("EXCHANGE_RATE"),
                    per_byte_per_epoch_rate=env("PER_BYTE_PER_EPOCH_RATE"),
                    slippage_buffer_pct=env("SLIPPAGE_BUFFER_PCT"),
                ),
            ),
            walrus=WalrusConfig(
                **pick(
                    publisher_url=env("PUBLISHER_URL"),
                    aggregator_url=env("AGGREGATOR_URL"),
                ),
            ),
        )
