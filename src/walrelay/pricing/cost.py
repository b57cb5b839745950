"""
Storage cost estimation.

StorageCostModel prices bytes in storage tokens; CostEstimator converts
that to the stablecoin amount a user must bridge, including the slippage
buffer. All math is Decimal and unrounded; rounding happens only when a
quote is displayed.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from walrelay.config import PricingConfig
from walrelay.constants import DEFAULT_SLIPPAGE_BUFFER_PCT
from walrelay.errors.base import InvalidInputError
from walrelay.models import CostQuote, Payload
from walrelay.pricing.oracle import PriceOracle
from walrelay.utils.logging import get_logger

_logger = get_logger(__name__)


class StorageCostModel:
    """
    Linear storage pricing: bytes x rate x epochs.

    Example:
        >>> StorageCostModel(Decimal("0.001")).token_amount(1024, 200)
        Decimal('204.800')
    """

    def __init__(self, per_byte_per_epoch_rate: Decimal) -> None:
        rate = Decimal(per_byte_per_epoch_rate)
        if rate <= 0:
            raise ValueError("per_byte_per_epoch_rate must be positive")
        self._rate = rate

    @property
    def per_byte_per_epoch_rate(self) -> Decimal:
        return self._rate

    def token_amount(self, byte_size: int, retention_epochs: int) -> Decimal:
        return Decimal(byte_size) * self._rate * Decimal(retention_epochs)


class CostEstimator:
    """
    Produces user-facing quotes from a cost model and a price oracle.

    Quotes are never cached: every call reads a fresh exchange rate.

    Example:
        ```python
        estimator = CostEstimator(
            StorageCostModel(Decimal("0.001")),
            StaticPriceOracle(Decimal("0.5")),
        )
        quote = await estimator.estimate(1024, 200)
        assert quote.stablecoin_amount == Decimal("430.08")
        ```
    """

    def __init__(
        self,
        cost_model: StorageCostModel,
        oracle: PriceOracle,
        slippage_buffer_pct: Decimal = DEFAULT_SLIPPAGE_BUFFER_PCT,
    ) -> None:
        buffer = Decimal(slippage_buffer_pct)
        if buffer < 0 or buffer >= 1:
            raise ValueError("slippage_buffer_pct must be in [0, 1)")
        self._cost_model = cost_model
        self._oracle = oracle
        self._buffer = buffer

    @classmethod
    def from_config(cls, config: PricingConfig, oracle: PriceOracle) -> CostEstimator:
        return cls(
            StorageCostModel(config.per_byte_per_epoch_rate),
            oracle,
            config.slippage_buffer_pct,
        )

    @property
    def slippage_buffer_pct(self) -> Decimal:
        return self._buffer

    @property
    def oracle(self) -> PriceOracle:
        return self._oracle

    async def estimate(self, byte_size: int, retention_epochs: int) -> CostQuote:
        """
        Quote the cost of storing ``byte_size`` bytes for ``retention_epochs``.

        Raises:
            InvalidInputError: If byte_size is 0 or retention_epochs <= 0
            PriceUnavailableError: If the price oracle cannot be reached
        """
        _validate_quote_input(byte_size, retention_epochs)

        token_amount = self._cost_model.token_amount(byte_size, retention_epochs)
        exchange_rate = await self._oracle.get_exchange_rate()
        stablecoin_amount = (token_amount / exchange_rate) * (Decimal(1) + self._buffer)

        _logger.debug(
            "Computed storage quote",
            extra={
                "byte_size": byte_size,
                "retention_epochs": retention_epochs,
                "token_amount": str(token_amount),
                "stablecoin_amount": str(stablecoin_amount),
                "exchange_rate": str(exchange_rate),
            },
        )
        return CostQuote(
            byte_size=byte_size,
            retention_epochs=retention_epochs,
            token_amount=token_amount,
            stablecoin_amount=stablecoin_amount,
            slippage_buffer_pct=self._buffer,
            exchange_rate=exchange_rate,
        )

    async def estimate_for_payload(
        self,
        payload: Payload,
        retention_epochs: int,
    ) -> CostQuote:
        """Quote a payload by its byte size."""
        return await self.estimate(payload.size, retention_epochs)

    def min_swap_output(self, quote: CostQuote, input_amount: Optional[Decimal] = None) -> Decimal:
        """
        Minimum storage tokens a swap must return.

        This is the quote's token amount: the bridged input carries the
        buffer, so a fill is acceptable while the rate has not moved
        against us by more than the buffer.
        """
        if input_amount is not None and input_amount < quote.stablecoin_amount:
            # Less than quoted was bridged; scale the floor down with it.
            return input_amount * quote.exchange_rate / (Decimal(1) + quote.slippage_buffer_pct)
        return quote.token_amount


def _validate_quote_input(byte_size: int, retention_epochs: int) -> None:
    if isinstance(byte_size, bool) or not isinstance(byte_size, int):
        raise InvalidInputError("byte_size must be an integer", field="byte_size")
    if isinstance(retention_epochs, bool) or not isinstance(retention_epochs, int):
        raise InvalidInputError("retention_epochs must be an integer", field="retention_epochs")
    if byte_size <= 0:
        raise InvalidInputError("byte_size must be positive", field="byte_size")
    if retention_epochs <= 0:
        raise InvalidInputError("retention_epochs must be positive", field="retention_epochs")
