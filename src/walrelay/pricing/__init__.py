"""
Pricing: exchange-rate sources and storage cost estimation.
"""

from walrelay.pricing.cost import CostEstimator, StorageCostModel
from walrelay.pricing.oracle import HttpPriceOracle, PriceOracle, StaticPriceOracle

__all__ = [
    "CostEstimator",
    "StorageCostModel",
    "PriceOracle",
    "StaticPriceOracle",
    "HttpPriceOracle",
]
