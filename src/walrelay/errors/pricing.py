"""
Pricing exceptions.

Raised when an upstream data source cannot produce an exchange rate or a
route between the bridged stablecoin and the storage token.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from walrelay.errors.base import RelayerError


class PriceUnavailableError(RelayerError):
    """
    Raised when the price oracle cannot be reached or returns garbage.

    Example:
        >>> raise PriceUnavailableError("Price API returned HTTP 503", source="https://...")
    """

    retryable = True

    def __init__(
        self,
        message: str = "Exchange rate unavailable",
        *,
        source: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        if source:
            details["source"] = source

        super().__init__(message, code="PRICE_UNAVAILABLE", details=details)
        self.source = source


class LiquidityUnavailableError(RelayerError):
    """
    Raised when no swap route exists between the two tokens.

    Example:
        >>> raise LiquidityUnavailableError("Pool 0xabc... not found", pool_id="0xabc...")
    """

    retryable = True

    def __init__(
        self,
        message: str = "No liquidity route between stablecoin and storage token",
        *,
        pool_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        if pool_id:
            details["pool_id"] = pool_id

        super().__init__(message, code="LIQUIDITY_UNAVAILABLE", details=details)
        self.pool_id = pool_id
