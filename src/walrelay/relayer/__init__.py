"""
Relayer state machine: sequences quote, bridge, swap and store for one request.
"""

from walrelay.relayer.orchestrator import (
    RelayerOrchestrator,
    build_price_oracle,
    partial_cost,
)
from walrelay.relayer.progress import (
    ALLOWED_TRANSITIONS,
    STATUS_TRANSITIONS,
    ProgressTracker,
)

__all__ = [
    "RelayerOrchestrator",
    "build_price_oracle",
    "partial_cost",
    "ProgressTracker",
    "ALLOWED_TRANSITIONS",
    "STATUS_TRANSITIONS",
]
