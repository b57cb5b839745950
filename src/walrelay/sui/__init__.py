"""
Destination-chain access: JSON-RPC client and the signing seam.
"""

from walrelay.sui.rpc import SuiRpcClient, TransactionOutcome, parse_transaction_response
from walrelay.sui.signer import MintIntent, SignedTransaction, SwapIntent, TransactionSigner

__all__ = [
    "SuiRpcClient",
    "TransactionOutcome",
    "parse_transaction_response",
    "TransactionSigner",
    "SignedTransaction",
    "MintIntent",
    "SwapIntent",
]
