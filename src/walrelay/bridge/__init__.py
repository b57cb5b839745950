"""
Cross-chain stablecoin transfer: burn on the source chain, attest, mint on
the destination chain.
"""

from walrelay.bridge.attestation import AttestationResponse, AttestationService
from walrelay.bridge.cctp_client import BridgeClient, recipient_to_bytes32

__all__ = [
    "AttestationService",
    "AttestationResponse",
    "BridgeClient",
    "recipient_to_bytes32",
]
