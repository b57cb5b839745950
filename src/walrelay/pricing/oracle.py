"""
Price sources for the stablecoin -> storage token exchange rate.

The rate is expressed as storage tokens received per one stablecoin. The
oracle is pluggable: any object with an async ``get_exchange_rate`` works.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional, Protocol, runtime_checkable

import httpx

from walrelay.errors.pricing import LiquidityUnavailableError, PriceUnavailableError
from walrelay.utils.logging import get_logger
from walrelay.utils.retry import RetryConfig, retry_async

_logger = get_logger(__name__)


@runtime_checkable
class PriceOracle(Protocol):
    """Anything that can quote storage tokens per stablecoin."""

    async def get_exchange_rate(self) -> Decimal:
        """
        Raises:
            PriceUnavailableError: If the source cannot be reached
            LiquidityUnavailableError: If no route exists
        """
        ...


class StaticPriceOracle:
    """
    Fixed exchange rate, for development and tests.

    Example:
        >>> oracle = StaticPriceOracle(Decimal("0.5"))
    """

    def __init__(self, rate: Decimal) -> None:
        rate = Decimal(rate)
        if rate <= 0:
            raise ValueError("rate must be positive")
        self._rate = rate

    async def get_exchange_rate(self) -> Decimal:
        return self._rate


class HttpPriceOracle:
    """
    Exchange rate from an HTTP quote endpoint.

    Sends ``GET {url}?from=<stablecoin>&to=<token>`` and expects a JSON
    body ``{"price": "<tokens per stablecoin>"}``. A 404, or a body with
    ``"route": null``, means no route exists between the two tokens.

    Example:
        ```python
        oracle = HttpPriceOracle(
            "https://quotes.example.com/v1/price",
            from_token=config.destination.usdc_coin_type,
            to_token=config.destination.token_coin_type,
        )
        rate = await oracle.get_exchange_rate()
        ```
    """

    def __init__(
        self,
        url: str,
        *,
        from_token: str,
        to_token: str,
        timeout: float = 10.0,
        retry_config: Optional[RetryConfig] = None,
    ) -> None:
        self._url = url
        self._params = {"from": from_token, "to": to_token}
        self._timeout = timeout
        self._retry_config = retry_config or RetryConfig(
            max_attempts=3,
            base_delay_ms=500,
            retryable_errors=(PriceUnavailableError,),
        )

    @property
    def url(self) -> str:
        return self._url

    async def get_exchange_rate(self) -> Decimal:
        return await retry_async(self._fetch_rate, self._retry_config, operation="price_quote")

    async def _fetch_rate(self) -> Decimal:
        try:
            async with httpx.AsyncClient(timeout=httpx.Timeout(self._timeout)) as client:
                response = await client.get(self._url, params=self._params)
        except httpx.HTTPError as e:
            raise PriceUnavailableError(f"Price request failed: {e}", source=self._url) from e

        if response.status_code == 404:
            raise LiquidityUnavailableError(
                f"No route from {self._params['from']} to {self._params['to']}"
            )
        if response.status_code != 200:
            raise PriceUnavailableError(
                f"Price API returned HTTP {response.status_code}",
                source=self._url,
            )

        try:
            body: Dict[str, Any] = response.json()
        except ValueError as e:
            raise PriceUnavailableError("Price API returned invalid JSON", source=self._url) from e
        if not isinstance(body, dict):
            raise PriceUnavailableError("Price API response is not a JSON object", source=self._url)

        if "route" in body and body["route"] is None:
            raise LiquidityUnavailableError(
                f"No route from {self._params['from']} to {self._params['to']}"
            )

        try:
            rate = Decimal(str(body["price"]))
        except (KeyError, InvalidOperation) as e:
            raise PriceUnavailableError("Price API response has no usable price", source=self._url) from e

        if not rate.is_finite() or rate <= 0:
            raise PriceUnavailableError(f"Price API returned non-positive price {rate}", source=self._url)

        _logger.debug("Fetched exchange rate", extra={"rate": str(rate), "source": self._url})
        return rate
