"""
Burn-and-mint bridge client (CCTP).

Moves the stablecoin from the EVM source chain to the destination chain in
three independently awaitable steps:

1. ``initiate_burn``: ``depositForBurn`` on the source TokenMessenger.
2. ``await_attestation``: poll the attestation service for the burn message.
3. ``mint_on_destination``: submit the attested message on the destination.

The burn is final once broadcast. Every step records its outcome on the
request's BridgeTransfer, and each step is skipped when already done, so
resuming a transfer can never burn twice.
"""

from __future__ import annotations

import asyncio
from decimal import Decimal
from typing import Any, Awaitable, Callable, Dict, Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import AsyncWeb3, Web3
from web3.contract import AsyncContract
from web3.exceptions import ContractLogicError
from web3.logs import DISCARD

from walrelay.config import SourceChainConfig
from walrelay.constants import (
    EVM_NATIVE_DECIMALS,
    GAS_ESTIMATION_BUFFER,
    PROVIDER_TIMEOUT_SECONDS,
    STABLECOIN_DECIMALS,
)
from walrelay.errors.base import InvalidInputError
from walrelay.errors.chain import BurnRejectedError, ChainRpcError, MintRejectedError
from walrelay.models import BridgeTransfer, BridgeTransferStatus
from walrelay.bridge.attestation import AttestationService
from walrelay.sui.rpc import SuiRpcClient
from walrelay.sui.signer import MintIntent, TransactionSigner
from walrelay.utils.logging import get_logger
from walrelay.utils.validation import (
    from_base_units,
    to_base_units,
    validate_evm_address,
    validate_positive_amount,
    validate_sui_address,
)

_logger = get_logger(__name__)

BeforeBroadcast = Callable[[], Awaitable[None]]

TOKEN_MESSENGER_ABI = [
    {
        "inputs": [
            {"name": "amount", "type": "uint256"},
            {"name": "destinationDomain", "type": "uint32"},
            {"name": "mintRecipient", "type": "bytes32"},
            {"name": "burnToken", "type": "address"},
        ],
        "name": "depositForBurn",
        "outputs": [{"name": "_nonce", "type": "uint64"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]

MESSAGE_TRANSMITTER_ABI = [
    {
        "anonymous": False,
        "inputs": [{"indexed": False, "name": "message", "type": "bytes"}],
        "name": "MessageSent",
        "type": "event",
    },
]

ERC20_ABI = [
    {
        "inputs": [
            {"name": "owner", "type": "address"},
            {"name": "spender", "type": "address"},
        ],
        "name": "allowance",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [
            {"name": "spender", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "name": "approve",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]


def recipient_to_bytes32(recipient: str) -> bytes:
    """Left-pad a hex address to 32 bytes."""
    raw = bytes.fromhex(recipient[2:] if recipient.startswith("0x") else recipient)
    if len(raw) > 32:
        raise InvalidInputError("recipient longer than 32 bytes", field="destination_address")
    return raw.rjust(32, b"\x00")


class BridgeClient:
    """
    CCTP burn-and-mint client.

    Shared by concurrent requests: all per-request state lives on the
    BridgeTransfer passed in.

    Example:
        ```python
        bridge = BridgeClient(
            config.source,
            attestation=AttestationService(config.attestation),
            destination_rpc=SuiRpcClient(config.destination.rpc_url),
            signer=wallet_signer,
            destination_domain=config.destination.cctp_domain,
        )
        transfer = await bridge.burn_and_mint(Decimal("430.08"), user_evm, user_sui)
        ```
    """

    def __init__(
        self,
        config: SourceChainConfig,
        *,
        attestation: AttestationService,
        destination_rpc: SuiRpcClient,
        signer: TransactionSigner,
        destination_domain: int,
        web3: Optional[AsyncWeb3] = None,
        auto_approve: bool = True,
    ) -> None:
        self._config = config
        self._attestation = attestation
        self._destination_rpc = destination_rpc
        self._signer = signer
        self._destination_domain = destination_domain
        self._auto_approve = auto_approve
        self._w3 = web3 or AsyncWeb3(
            AsyncWeb3.AsyncHTTPProvider(
                config.rpc_url,
                request_kwargs={"timeout": PROVIDER_TIMEOUT_SECONDS},
            )
        )
        try:
            self._account: LocalAccount = Account.from_key(config.private_key)
        except Exception:
            raise InvalidInputError(
                "Invalid private key format (key not shown for security)",
                field="private_key",
            ) from None

        self._token_messenger: AsyncContract = self._w3.eth.contract(
            address=Web3.to_checksum_address(config.token_messenger_address),
            abi=TOKEN_MESSENGER_ABI,
        )
        self._message_transmitter: AsyncContract = self._w3.eth.contract(
            address=Web3.to_checksum_address(config.message_transmitter_address),
            abi=MESSAGE_TRANSMITTER_ABI,
        )
        self._usdc: AsyncContract = self._w3.eth.contract(
            address=Web3.to_checksum_address(config.usdc_address),
            abi=ERC20_ABI,
        )
        # Nonce allocation must be serialized across concurrent requests.
        self._send_lock = asyncio.Lock()
        # Held from the allowance check until the burn is mined, so one
        # request's burn never spends the allowance another one approved.
        self._burn_lock = asyncio.Lock()

    @property
    def address(self) -> str:
        """Address whose stablecoin is burned."""
        return self._account.address

    # ------------------------------------------------------------------
    # Composite
    # ------------------------------------------------------------------

    def new_transfer(
        self,
        amount: Decimal,
        source_account: str,
        destination_recipient: str,
    ) -> BridgeTransfer:
        """Validate inputs and create a fresh transfer record."""
        amount = validate_positive_amount(amount)
        validate_evm_address(source_account, "source_address")
        destination_recipient = validate_sui_address(destination_recipient, "destination_address")
        if source_account.lower() != self.address.lower():
            raise InvalidInputError(
                "source_address is not controlled by the configured signer",
                field="source_address",
            )
        if to_base_units(amount, STABLECOIN_DECIMALS) <= 0:
            raise InvalidInputError("amount is below the stablecoin's smallest unit", field="amount")
        return BridgeTransfer(
            amount=amount,
            source_address=source_account,
            destination_address=destination_recipient,
        )

    async def burn_and_mint(
        self,
        amount: Decimal,
        source_account: str,
        destination_recipient: str,
        *,
        transfer: Optional[BridgeTransfer] = None,
        before_broadcast: Optional[BeforeBroadcast] = None,
    ) -> BridgeTransfer:
        """
        Run (or resume) the full transfer.

        Steps already recorded on ``transfer`` are skipped; in particular a
        transfer with a ``source_tx_hash`` is never burned again.

        Args:
            amount: Stablecoin amount to bridge
            source_account: Source-chain address holding the stablecoin
            destination_recipient: Destination-chain mint recipient
            transfer: Existing transfer to resume
            before_broadcast: Awaited right before the burn is broadcast;
                may raise to abort while nothing is on-chain yet

        Returns:
            The transfer, with status MINTED
        """
        if transfer is None:
            transfer = self.new_transfer(amount, source_account, destination_recipient)

        if not transfer.is_burned:
            await self.initiate_burn(transfer, before_broadcast=before_broadcast)
        if transfer.attestation is None:
            await self.await_attestation(transfer)
        if transfer.status != BridgeTransferStatus.MINTED:
            await self.mint_on_destination(transfer)
        return transfer

    # ------------------------------------------------------------------
    # Step 1: burn
    # ------------------------------------------------------------------

    async def initiate_burn(
        self,
        transfer: BridgeTransfer,
        *,
        before_broadcast: Optional[BeforeBroadcast] = None,
    ) -> BridgeTransfer:
        """
        Burn the stablecoin on the source chain.

        Returns once the burn is included in a block; ``source_tx_hash`` is
        recorded on the transfer as soon as the transaction is broadcast.

        Raises:
            BurnRejectedError: If the chain reverts the burn (terminal)
            ChainRpcError: If the RPC fails before or while waiting
        """
        if transfer.is_burned:
            _logger.warning(
                "Burn already broadcast, not burning again",
                extra={"tx_hash": transfer.source_tx_hash},
            )
            return transfer

        amount_units = to_base_units(transfer.amount, STABLECOIN_DECIMALS)
        func = self._token_messenger.functions.depositForBurn(
            amount_units,
            self._destination_domain,
            recipient_to_bytes32(transfer.destination_address),
            Web3.to_checksum_address(self._config.usdc_address),
        )

        async with self._burn_lock:
            if self._auto_approve:
                await self._ensure_allowance(amount_units)
            try:
                receipt = await self._send_transaction(
                    func,
                    on_broadcast=lambda tx_hash: setattr(transfer, "source_tx_hash", tx_hash),
                    before_broadcast=before_broadcast,
                )
            except ContractLogicError as e:
                transfer.status = BridgeTransferStatus.FAILED
                transfer.failure = str(e)
                raise BurnRejectedError(
                    f"Burn reverted: {e}",
                    tx_hash=transfer.source_tx_hash,
                    reason=str(e),
                ) from e

        transfer.source_gas_fee = _receipt_fee(receipt)
        if receipt["status"] != 1:
            transfer.status = BridgeTransferStatus.FAILED
            transfer.failure = "burn transaction reverted"
            raise BurnRejectedError("Burn transaction reverted", tx_hash=transfer.source_tx_hash)

        self._record_message(transfer, receipt)
        transfer.status = BridgeTransferStatus.BURNED
        _logger.info(
            "Burn confirmed",
            extra={
                "tx_hash": transfer.source_tx_hash,
                "amount": str(transfer.amount),
                "message_hash": transfer.message_hash,
            },
        )
        return transfer

    # ------------------------------------------------------------------
    # Step 2: attestation
    # ------------------------------------------------------------------

    async def await_attestation(self, transfer: BridgeTransfer) -> BridgeTransfer:
        """
        Wait for the attestation of a confirmed burn.

        Safe to call again after a timeout; it only polls.

        Raises:
            AttestationTimeoutError: If the attestation does not arrive in time;
                the transfer stays BURNED
        """
        if not transfer.is_burned:
            raise InvalidInputError("Transfer has not been burned yet", field="transfer")

        if transfer.message is None:
            # Broadcast succeeded but the receipt was never read (e.g. wait timed out).
            receipt = await self._get_receipt(transfer.source_tx_hash)  # type: ignore[arg-type]
            if receipt["status"] != 1:
                transfer.status = BridgeTransferStatus.FAILED
                raise BurnRejectedError("Burn transaction reverted", tx_hash=transfer.source_tx_hash)
            transfer.source_gas_fee = _receipt_fee(receipt)
            self._record_message(transfer, receipt)
            transfer.status = BridgeTransferStatus.BURNED

        transfer.attestation = await self._attestation.poll(
            transfer.message_hash,  # type: ignore[arg-type]
            tx_hash=transfer.source_tx_hash,
        )
        transfer.status = BridgeTransferStatus.ATTESTATION_RECEIVED
        return transfer

    # ------------------------------------------------------------------
    # Step 3: mint
    # ------------------------------------------------------------------

    async def mint_on_destination(self, transfer: BridgeTransfer) -> BridgeTransfer:
        """
        Submit the attested message on the destination chain.

        Raises:
            MintRejectedError: If the destination rejects the mint (terminal)
            ChainRpcError: If the destination RPC fails
        """
        if transfer.attestation is None or transfer.message is None:
            raise InvalidInputError("Transfer has no attestation yet", field="transfer")

        intent = MintIntent(
            message=transfer.message,
            attestation=transfer.attestation,
            recipient=transfer.destination_address,
            source_domain=self._config.cctp_domain,
            destination_domain=self._destination_domain,
        )
        signed = await self._signer.sign_mint(intent)
        outcome = await self._destination_rpc.execute_transaction(signed)

        transfer.destination_gas_fee = outcome.gas_fee
        if not outcome.success:
            transfer.status = BridgeTransferStatus.FAILED
            transfer.failure = outcome.error
            raise MintRejectedError(
                f"Mint rejected: {outcome.error or 'unknown error'}",
                tx_hash=outcome.digest,
            )

        transfer.destination_mint_tx_hash = outcome.digest
        transfer.status = BridgeTransferStatus.MINTED
        _logger.info(
            "Mint confirmed",
            extra={"digest": outcome.digest, "source_tx_hash": transfer.source_tx_hash},
        )
        return transfer

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _ensure_allowance(self, amount_units: int) -> None:
        """Approve the TokenMessenger to pull ``amount_units`` if needed. Called under the burn lock."""
        spender = Web3.to_checksum_address(self._config.token_messenger_address)
        try:
            allowance = await self._usdc.functions.allowance(self.address, spender).call()
        except Exception as e:
            raise ChainRpcError(f"allowance query failed: {e}", rpc_url=self._config.rpc_url) from e

        if allowance >= amount_units:
            return

        _logger.info("Approving stablecoin spend", extra={"amount_units": amount_units})
        func = self._usdc.functions.approve(spender, amount_units)
        try:
            receipt = await self._send_transaction(func)
        except ContractLogicError as e:
            raise BurnRejectedError(f"Approval reverted: {e}", reason=str(e)) from e
        if receipt["status"] != 1:
            raise BurnRejectedError("Approval transaction reverted")

    async def _send_transaction(
        self,
        func: Any,
        *,
        on_broadcast: Optional[Callable[[str], None]] = None,
        before_broadcast: Optional[BeforeBroadcast] = None,
    ) -> Dict[str, Any]:
        """
        Build, sign, broadcast and wait for a transaction.

        Raises:
            ContractLogicError: If gas estimation reverts
            ChainRpcError: On any other RPC failure
        """
        async with self._send_lock:
            try:
                nonce = await self._w3.eth.get_transaction_count(self.address, "pending")
                gas_price = await self._w3.eth.gas_price
                tx_params = {
                    "from": self.address,
                    "nonce": nonce,
                    "gasPrice": gas_price,
                    "chainId": self._config.chain_id,
                }
                gas = await func.estimate_gas(tx_params)
                tx_params["gas"] = int(gas * GAS_ESTIMATION_BUFFER)
                tx = await func.build_transaction(tx_params)
            except ContractLogicError:
                raise
            except Exception as e:
                raise ChainRpcError(f"Failed to build transaction: {e}", rpc_url=self._config.rpc_url) from e

            if before_broadcast is not None:
                await before_broadcast()

            signed = self._account.sign_transaction(tx)
            try:
                raw_hash = await self._w3.eth.send_raw_transaction(signed.raw_transaction)
            except ContractLogicError:
                raise
            except Exception as e:
                raise ChainRpcError(f"Broadcast failed: {e}", rpc_url=self._config.rpc_url) from e

        tx_hash = Web3.to_hex(raw_hash)
        if on_broadcast is not None:
            on_broadcast(tx_hash)
        _logger.debug("Transaction broadcast", extra={"tx_hash": tx_hash})
        return await self._get_receipt(tx_hash)

    async def _get_receipt(self, tx_hash: str) -> Dict[str, Any]:
        try:
            return await asyncio.wait_for(
                self._w3.eth.wait_for_transaction_receipt(tx_hash),
                timeout=self._config.confirmation_timeout,
            )
        except asyncio.TimeoutError as e:
            raise ChainRpcError(
                f"Receipt not available after {self._config.confirmation_timeout:g}s",
                rpc_url=self._config.rpc_url,
                tx_hash=tx_hash,
            ) from e
        except Exception as e:
            raise ChainRpcError(
                f"Receipt lookup failed: {e}",
                rpc_url=self._config.rpc_url,
                tx_hash=tx_hash,
            ) from e

    def _record_message(self, transfer: BridgeTransfer, receipt: Dict[str, Any]) -> None:
        """Extract the MessageSent payload and its hash from a burn receipt."""
        events = self._message_transmitter.events.MessageSent().process_receipt(
            receipt, errors=DISCARD
        )
        if not events:
            raise ChainRpcError(
                "MessageSent event not found in burn receipt",
                rpc_url=self._config.rpc_url,
                tx_hash=transfer.source_tx_hash,
            )
        message = bytes(events[0]["args"]["message"])
        transfer.message = message
        transfer.message_hash = Web3.to_hex(Web3.keccak(message))


def _receipt_fee(receipt: Dict[str, Any]) -> Decimal:
    gas_used = receipt.get("gasUsed", 0) or 0
    price = receipt.get("effectiveGasPrice", 0) or 0
    return from_base_units(int(gas_used) * int(price), EVM_NATIVE_DECIMALS)
