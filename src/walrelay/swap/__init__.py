"""
Stablecoin to storage-token swaps on the destination chain.
"""

from walrelay.swap.dex_client import SLIPPAGE_ABORT_MARKERS, SwapClient

__all__ = [
    "SwapClient",
    "SLIPPAGE_ABORT_MARKERS",
]
