#!/usr/bin/env python3
"""
Estimate Cost Example

Quotes how much stablecoin a payload needs to be bridged so that, after
the swap, it buys enough storage tokens for the requested retention.

Uses a fixed exchange rate, so no network access is needed.

Run with: python examples/estimate_cost.py [FILE] [EPOCHS]
"""

import asyncio
import sys
from decimal import Decimal

from walrelay import CostEstimator, Payload, StaticPriceOracle, StorageCostModel


async def main() -> None:
    print("=" * 60)
    print("walrelay - Storage Cost Estimate")
    print("=" * 60)
    print()

    if len(sys.argv) > 1:
        payload = Payload.from_file(sys.argv[1])
    else:
        payload = Payload.from_text("hello walrus " * 80)
    epochs = int(sys.argv[2]) if len(sys.argv) > 2 else 200

    estimator = CostEstimator(
        StorageCostModel(Decimal("0.001")),
        StaticPriceOracle(Decimal("0.5")),
        slippage_buffer_pct=Decimal("0.05"),
    )

    quote = await estimator.estimate_for_payload(payload, epochs)
    display = quote.display()

    print(f"Payload:           {payload.upload_name} ({display['byteSize']} bytes)")
    print(f"Retention:         {quote.retention_epochs} epochs")
    print(f"Exchange rate:     {quote.exchange_rate} tokens per stablecoin")
    print(f"Storage tokens:    {display['tokenAmount']}")
    print(f"Stablecoin to send: {display['stablecoinAmount']} (incl. {quote.slippage_buffer_pct:%} buffer)")
    print(f"Minimum swap out:  {estimator.min_swap_output(quote)}")


if __name__ == "__main__":
    asyncio.run(main())
