"""
Shared fixtures for bridge tests.
"""

import asyncio
from decimal import Decimal
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from eth_account import Account
from web3.exceptions import ContractLogicError

from walrelay.bridge import AttestationService, BridgeClient
from walrelay.config import AttestationConfig, SourceChainConfig
from walrelay.sui.rpc import TransactionOutcome
from walrelay.sui.signer import SignedTransaction


# =============================================================================
# Test Constants
# =============================================================================

TEST_PRIVATE_KEY = "0x" + "1" * 64
SIGNER_ADDRESS = Account.from_key(TEST_PRIVATE_KEY).address
SUI_RECIPIENT = "0x" + "ab" * 32
BURN_TX_HASH = "0x" + "c" * 64
MINT_DIGEST = "8vJz3Wq1mintDigest"
MESSAGE = b"\x00\x00\x00\x00cctp-message-body"
ATTESTATION = b"\x12" * 65

BURN_RECEIPT: Dict[str, Any] = {
    "status": 1,
    "transactionHash": BURN_TX_HASH,
    "gasUsed": 100_000,
    "effectiveGasPrice": 100_000_000,
    "logs": [],
}


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def source_config() -> SourceChainConfig:
    return SourceChainConfig(private_key=TEST_PRIVATE_KEY, confirmation_timeout=5)


@pytest.fixture
def attestation_config() -> AttestationConfig:
    """Fast polling for tests."""
    return AttestationConfig(
        base_url="https://iris-api-sandbox.circle.com",
        poll_interval=0.01,
        timeout=0.05,
    )


@pytest.fixture
def attestation_service() -> AsyncMock:
    service = AsyncMock(spec=AttestationService)
    service.poll.return_value = ATTESTATION
    return service


@pytest.fixture
def destination_rpc() -> AsyncMock:
    rpc = AsyncMock()
    rpc.execute_transaction.return_value = TransactionOutcome(
        digest=MINT_DIGEST,
        success=True,
        gas_fee=Decimal("0.002"),
    )
    return rpc


@pytest.fixture
def signer() -> AsyncMock:
    signer = AsyncMock()
    signer.sign_mint.return_value = SignedTransaction(tx_bytes="AAAB", signatures=["sig"])
    signer.sign_swap.return_value = SignedTransaction(tx_bytes="AAAC", signatures=["sig"])
    return signer


@pytest.fixture
def bridge(
    source_config: SourceChainConfig,
    attestation_service: AsyncMock,
    destination_rpc: AsyncMock,
    signer: AsyncMock,
) -> BridgeClient:
    """BridgeClient on a mocked web3 with MessageSent decoding stubbed."""
    client = build_bridge(source_config, attestation_service, destination_rpc, signer)
    client._ensure_allowance = AsyncMock()
    return client


@pytest.fixture
def source_chain() -> "FakeSourceChain":
    return FakeSourceChain()


@pytest.fixture
def chain_bridge(
    source_config: SourceChainConfig,
    attestation_service: AsyncMock,
    destination_rpc: AsyncMock,
    signer: AsyncMock,
    source_chain: "FakeSourceChain",
) -> BridgeClient:
    """BridgeClient whose allowance, approve and burn run against a FakeSourceChain."""
    client = build_bridge(source_config, attestation_service, destination_rpc, signer)
    source_chain.attach(client)
    return client


def build_bridge(
    source_config: SourceChainConfig,
    attestation_service: AsyncMock,
    destination_rpc: AsyncMock,
    signer: AsyncMock,
) -> BridgeClient:
    client = BridgeClient(
        source_config,
        attestation=attestation_service,
        destination_rpc=destination_rpc,
        signer=signer,
        destination_domain=8,
        web3=MagicMock(),
    )
    client._message_transmitter = MagicMock()
    client._message_transmitter.events.MessageSent.return_value.process_receipt.return_value = [
        {"args": {"message": MESSAGE}}
    ]
    return client


class FakeSourceChain:
    """
    Single stablecoin allowance shared by every transaction from the signer.

    ``approve`` overwrites the allowance and a burn spends it, reverting
    when it is short. Each send yields to the event loop before it lands,
    like a transaction waiting to be mined.
    """

    def __init__(self, allowance: int = 0) -> None:
        self.allowance = allowance
        self.approvals: List[int] = []
        self.burns: List[int] = []
        self._sent = 0

    def attach(self, client: BridgeClient) -> None:
        client._usdc = MagicMock()
        client._usdc.functions.allowance.return_value.call = AsyncMock(
            side_effect=lambda: self.allowance
        )
        client._usdc.functions.approve.side_effect = lambda spender, amount: ("approve", amount)
        client._token_messenger = MagicMock()
        client._token_messenger.functions.depositForBurn.side_effect = (
            lambda amount, domain, recipient, token: ("burn", amount)
        )
        client._send_transaction = AsyncMock(side_effect=self.send)

    async def send(self, func, *, on_broadcast=None, before_broadcast=None):
        kind, amount = func
        if before_broadcast is not None:
            await before_broadcast()
        self._sent += 1
        tx_hash = "0x" + format(self._sent, "064x")
        if on_broadcast is not None:
            on_broadcast(tx_hash)
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        if kind == "approve":
            self.allowance = amount
            self.approvals.append(amount)
        else:
            if self.allowance < amount:
                raise ContractLogicError("execution reverted: ERC20: insufficient allowance")
            self.allowance -= amount
            self.burns.append(amount)
        return {**BURN_RECEIPT, "transactionHash": tx_hash}


def fake_send(receipt: Optional[Dict[str, Any]] = None, tx_hash: str = BURN_TX_HASH) -> AsyncMock:
    """Stand-in for BridgeClient._send_transaction that honors both hooks."""

    async def send(func, *, on_broadcast=None, before_broadcast=None):
        if before_broadcast is not None:
            await before_broadcast()
        if on_broadcast is not None:
            on_broadcast(tx_hash)
        return receipt if receipt is not None else BURN_RECEIPT

    return AsyncMock(side_effect=send)


def create_mock_response(status_code: int = 200, json_data: Any = None) -> MagicMock:
    """Create a mock httpx Response."""
    response = MagicMock(spec=httpx.Response)
    response.status_code = status_code
    if json_data is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = json_data
    return response


def create_mock_httpx_client(mock_http: AsyncMock) -> MagicMock:
    """Create a mock httpx.AsyncClient class yielding ``mock_http``."""

    class _Context:
        async def __aenter__(self):
            return mock_http

        async def __aexit__(self, exc_type, exc_val, exc_tb):
            return None

    return MagicMock(side_effect=lambda *args, **kwargs: _Context())
