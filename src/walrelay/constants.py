"""Constants for walrelay.

Contract addresses, bridge domain identifiers, token decimals and
protocol defaults used across the package.
"""

from decimal import Decimal

# Source chain (Arbitrum One) CCTP deployment
ARBITRUM_CHAIN_ID = 42161
ARBITRUM_RPC_URL = "https://arb1.arbitrum.io/rpc"
ARBITRUM_USDC = "0xaf88d065e77c8cC2239327C5EDb3A432268e5831"
ARBITRUM_TOKEN_MESSENGER = "0x19330d10D9Cc8751218eaf51E8885D058642E08A"
ARBITRUM_MESSAGE_TRANSMITTER = "0xC30362313FBBA5cf9163F0bb16a0e01f01A896ca"

# CCTP domain identifiers
CCTP_DOMAIN_ARBITRUM = 3
CCTP_DOMAIN_SUI = 8

# Attestation service
ATTESTATION_API_URL = "https://iris-api.circle.com"
ATTESTATION_API_SANDBOX_URL = "https://iris-api-sandbox.circle.com"
ATTESTATION_STATUS_COMPLETE = "complete"
DEFAULT_ATTESTATION_POLL_INTERVAL = 5.0  # seconds
DEFAULT_ATTESTATION_TIMEOUT = 30 * 60.0  # seconds

# Destination chain (Sui)
SUI_RPC_URL = "https://fullnode.testnet.sui.io:443"
SUI_GAS_DECIMALS = 9  # MIST per SUI

# Storage network (Walrus)
WALRUS_PUBLISHER_URL = "https://publisher.walrus-testnet.walrus.space"
WALRUS_AGGREGATOR_URL = "https://aggregator.walrus-testnet.walrus.space"
WALRUS_API_PREFIX = "/v1"
MAX_BLOB_SIZE = 13_600_000_000  # bytes, network maximum for a single blob

# Token decimals
STABLECOIN_DECIMALS = 6
STORAGE_TOKEN_DECIMALS = 9  # FROST per WAL
EVM_NATIVE_DECIMALS = 18

# Pricing defaults
DEFAULT_PER_BYTE_PER_EPOCH_RATE = Decimal("0.001")
DEFAULT_SLIPPAGE_BUFFER_PCT = Decimal("0.05")
DEFAULT_RETENTION_EPOCHS = 200
DISPLAY_PRECISION = Decimal("0.000001")  # 6 fractional digits

# Transaction defaults
GAS_ESTIMATION_BUFFER = 1.2
DEFAULT_TX_WAIT_TIMEOUT = 300.0  # seconds
PROVIDER_TIMEOUT_SECONDS = 30
