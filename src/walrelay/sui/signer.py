"""
Signing seam for destination-chain transactions.

Key management and signing UX belong to the wallet layer. The relayer
describes what it needs signed (a bridge mint or a swap) and receives
serialized, signed transaction bytes ready for submission.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Protocol, runtime_checkable


@dataclass(frozen=True)
class SignedTransaction:
    """Base64 transaction bytes plus the signatures authorizing them."""

    tx_bytes: str
    signatures: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class MintIntent:
    """Consume a bridge attestation and mint to ``recipient``."""

    message: bytes
    attestation: bytes
    recipient: str
    source_domain: int
    destination_domain: int


@dataclass(frozen=True)
class SwapIntent:
    """
    Swap ``input_amount`` of one coin for at least ``min_output_amount`` of another.

    Amounts are integer base units. The pool's swap entry point must abort
    when the fill would be below ``min_output_amount``.
    """

    pool_id: str
    input_coin_type: str
    output_coin_type: str
    input_amount: int
    min_output_amount: int
    sender: str


@runtime_checkable
class TransactionSigner(Protocol):
    """Builds and signs destination-chain transactions on the wallet's behalf."""

    async def sign_mint(self, intent: MintIntent) -> SignedTransaction:
        ...

    async def sign_swap(self, intent: SwapIntent) -> SignedTransaction:
        ...
