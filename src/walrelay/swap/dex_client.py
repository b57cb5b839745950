"""
DEX swap client for the destination chain.

Swaps the bridged stablecoin into the storage token through a single
configured pool. The minimum output is enforced twice: before submission
against the oracle's expected fill, and on-chain by the pool's own guard.
A fill below the minimum is always an error, never a silent partial.
"""

from __future__ import annotations

from decimal import Decimal

from walrelay.config import DestinationChainConfig
from walrelay.errors.base import InvalidInputError
from walrelay.errors.chain import SlippageExceededError, SwapFailedError
from walrelay.errors.pricing import LiquidityUnavailableError
from walrelay.models import SwapResult, SwapStatus
from walrelay.pricing.oracle import PriceOracle
from walrelay.sui.rpc import SuiRpcClient
from walrelay.sui.signer import SwapIntent, TransactionSigner
from walrelay.utils.logging import get_logger
from walrelay.utils.validation import (
    from_base_units,
    to_base_units,
    to_decimal,
    validate_positive_amount,
    validate_sui_address,
)

_logger = get_logger(__name__)

# Substrings of a Move abort raised by the pool's minimum-output guard.
SLIPPAGE_ABORT_MARKERS = ("slippage", "min_out", "minimum_out", "insufficient_output")


class SwapClient:
    """
    Stablecoin -> storage token swaps.

    Holds no per-request state and is safe to share between requests.

    Example:
        ```python
        swaps = SwapClient(config.destination, rpc=rpc, oracle=oracle, signer=wallet_signer)
        result = await swaps.swap(Decimal("430.08"), Decimal("204.8"), user_sui_address)
        print(result.output_amount, result.destination_tx_digest)
        ```
    """

    def __init__(
        self,
        config: DestinationChainConfig,
        *,
        rpc: SuiRpcClient,
        oracle: PriceOracle,
        signer: TransactionSigner,
    ) -> None:
        self._config = config
        self._rpc = rpc
        self._oracle = oracle
        self._signer = signer

    @property
    def oracle(self) -> PriceOracle:
        return self._oracle

    async def swap(
        self,
        input_amount: Decimal,
        min_output_amount: Decimal,
        account: str,
    ) -> SwapResult:
        """
        Swap ``input_amount`` stablecoin for at least ``min_output_amount`` tokens.

        Args:
            input_amount: Stablecoin to sell
            min_output_amount: Lowest acceptable storage-token fill
            account: Destination-chain address that holds the stablecoin

        Returns:
            SwapResult with status EXECUTED and the realized output

        Raises:
            LiquidityUnavailableError: If the pool is not configured or missing
            SlippageExceededError: If the fill is, or would be, below the minimum
            SwapFailedError: If the swap aborts for any other reason
            ChainRpcError: If the destination RPC fails
        """
        input_amount = validate_positive_amount(input_amount, "input_amount")
        min_output_amount = to_decimal(min_output_amount, "min_output_amount")
        if min_output_amount < 0:
            raise InvalidInputError("min_output_amount must not be negative", field="min_output_amount")
        account = validate_sui_address(account, "account")

        await self._ensure_pool()

        rate = await self._oracle.get_exchange_rate()
        expected_output = input_amount * rate
        if expected_output < min_output_amount:
            _logger.warning(
                "Expected fill below minimum, not submitting",
                extra={
                    "expected_output": str(expected_output),
                    "min_output": str(min_output_amount),
                    "rate": str(rate),
                },
            )
            raise SlippageExceededError(expected_output, min_output_amount)

        intent = SwapIntent(
            pool_id=self._config.dex_pool_id,
            input_coin_type=self._config.usdc_coin_type,
            output_coin_type=self._config.token_coin_type,
            input_amount=to_base_units(input_amount, self._config.stablecoin_decimals),
            min_output_amount=to_base_units(min_output_amount, self._config.token_decimals),
            sender=account,
        )
        signed = await self._signer.sign_swap(intent)
        outcome = await self._rpc.execute_transaction(signed)

        if not outcome.success:
            error = outcome.error or "unknown abort"
            if any(marker in error.lower() for marker in SLIPPAGE_ABORT_MARKERS):
                raise SlippageExceededError(
                    Decimal(0),
                    min_output_amount,
                    tx_hash=outcome.digest,
                    details={"abort": error},
                )
            raise SwapFailedError(f"Swap aborted: {error}", tx_hash=outcome.digest)

        output_units = outcome.balance_change(account, self._config.token_coin_type)
        output_amount = from_base_units(max(output_units, 0), self._config.token_decimals)
        if output_amount < min_output_amount:
            raise SlippageExceededError(output_amount, min_output_amount, tx_hash=outcome.digest)

        _logger.info(
            "Swap executed",
            extra={
                "digest": outcome.digest,
                "input_amount": str(input_amount),
                "output_amount": str(output_amount),
            },
        )
        return SwapResult(
            input_amount=input_amount,
            output_amount=output_amount,
            destination_tx_digest=outcome.digest,
            status=SwapStatus.EXECUTED,
            gas_fee=outcome.gas_fee,
        )

    async def _ensure_pool(self) -> None:
        pool_id = self._config.dex_pool_id
        if not pool_id:
            raise LiquidityUnavailableError("No swap pool configured")
        if await self._rpc.get_object(pool_id) is None:
            raise LiquidityUnavailableError(f"Swap pool {pool_id} not found", pool_id=pool_id)
