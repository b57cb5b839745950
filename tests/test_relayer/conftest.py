"""
Shared fixtures for relayer tests.

The leaf clients are mocks; the cost estimator is real, on a mockable
oracle, so quotes and minimum outputs carry real values.
"""

from decimal import Decimal
from typing import List
from unittest.mock import AsyncMock, MagicMock

import pytest

from walrelay.config import OrchestratorConfig
from walrelay.models import (
    BridgeTransfer,
    BridgeTransferStatus,
    Payload,
    StorageRequest,
    StoredBlob,
    SwapResult,
    SwapStatus,
)
from walrelay.pricing import CostEstimator, StorageCostModel
from walrelay.relayer import RelayerOrchestrator


# =============================================================================
# Test Constants
# =============================================================================

SOURCE_ADDRESS = "0x" + "12" * 20
DESTINATION_ADDRESS = "0x" + "ab" * 32
BURN_TX_HASH = "0x" + "c" * 64
MINT_DIGEST = "8vJz3Wq1mintDigest"
SWAP_DIGEST = "3kSwapDigest"
BLOB_ID = "M4hsZGQ1oCktdzegB6HnI6Mi28S2nqOPHxK-W7_4BUk"

# 1024 bytes for 200 epochs at 0.001/byte/epoch and 0.5 tokens per stablecoin:
# 204.8 tokens, 430.08 stablecoin with a 5% buffer.
QUOTED_TOKENS = Decimal("204.8")
QUOTED_STABLECOIN = Decimal("430.08")


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def request_1k() -> StorageRequest:
    return StorageRequest(
        payload=Payload.from_bytes(b"x" * 1024),
        source_address=SOURCE_ADDRESS,
        destination_address=DESTINATION_ADDRESS,
        retention_epochs=200,
    )


@pytest.fixture
def oracle() -> AsyncMock:
    oracle = AsyncMock()
    oracle.get_exchange_rate.return_value = Decimal("0.5")
    return oracle


@pytest.fixture
def estimator(oracle: AsyncMock) -> CostEstimator:
    return CostEstimator(StorageCostModel(Decimal("0.001")), oracle, Decimal("0.05"))


@pytest.fixture
def broadcasts() -> List[str]:
    """Burn hashes broadcast by the fake bridge, in order."""
    return []


@pytest.fixture
def bridge(broadcasts: List[str]) -> MagicMock:
    """Bridge whose burn_and_mint honors the broadcast hook and never re-burns."""
    bridge = MagicMock()
    bridge.address = SOURCE_ADDRESS
    bridge.new_transfer.side_effect = lambda amount, source, destination: BridgeTransfer(
        amount=amount,
        source_address=source,
        destination_address=destination,
    )

    async def burn_and_mint(amount, source, destination, *, transfer, before_broadcast=None):
        if not transfer.is_burned:
            if before_broadcast is not None:
                await before_broadcast()
            transfer.source_tx_hash = BURN_TX_HASH
            transfer.source_gas_fee = Decimal("0.00001")
            transfer.status = BridgeTransferStatus.BURNED
            broadcasts.append(BURN_TX_HASH)
        transfer.destination_mint_tx_hash = MINT_DIGEST
        transfer.destination_gas_fee = Decimal("0.002")
        transfer.status = BridgeTransferStatus.MINTED
        return transfer

    bridge.burn_and_mint = AsyncMock(side_effect=burn_and_mint)
    return bridge


@pytest.fixture
def swap() -> MagicMock:
    swap = MagicMock()
    swap.swap = AsyncMock(
        return_value=SwapResult(
            input_amount=QUOTED_STABLECOIN,
            output_amount=Decimal("215.04"),
            destination_tx_digest=SWAP_DIGEST,
            status=SwapStatus.EXECUTED,
            gas_fee=Decimal("0.003"),
        )
    )
    return swap


@pytest.fixture
def storage() -> MagicMock:
    storage = MagicMock()
    storage.store = AsyncMock(return_value=StoredBlob(blob_id=BLOB_ID, size_bytes=1024, certified=True))
    return storage


@pytest.fixture
def orchestrator(
    estimator: CostEstimator,
    bridge: MagicMock,
    swap: MagicMock,
    storage: MagicMock,
) -> RelayerOrchestrator:
    return RelayerOrchestrator(
        estimator,
        bridge,
        swap,
        storage,
        OrchestratorConfig(default_retention_epochs=200, swap_attempts=2),
    )
