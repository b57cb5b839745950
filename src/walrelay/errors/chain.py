"""
Chain-level exceptions for the bridge and swap steps.

Burn and mint rejections are final on-chain outcomes and are never retried.
Attestation timeouts may be retried by polling again, never by burning again.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Optional

from walrelay.errors.base import RelayerError


class ChainRpcError(RelayerError):
    """
    Raised when a chain RPC request fails at the transport or protocol level.

    Example:
        >>> raise ChainRpcError("sui_executeTransactionBlock failed", rpc_url="https://...")
    """

    retryable = True

    def __init__(
        self,
        message: str,
        *,
        rpc_url: Optional[str] = None,
        tx_hash: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        if rpc_url:
            details["rpc_url"] = rpc_url

        super().__init__(message, code="CHAIN_RPC_ERROR", tx_hash=tx_hash, details=details)
        self.rpc_url = rpc_url


class BurnRejectedError(RelayerError):
    """
    Raised when the source chain rejects or reverts the burn transaction.

    Example:
        >>> raise BurnRejectedError("execution reverted: insufficient allowance")
    """

    def __init__(
        self,
        message: str = "Burn transaction rejected",
        *,
        tx_hash: Optional[str] = None,
        reason: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        if reason:
            details["reason"] = reason

        super().__init__(message, code="BURN_REJECTED", tx_hash=tx_hash, details=details)
        self.reason = reason


class AttestationTimeoutError(RelayerError):
    """
    Raised when the attestation service does not attest a burn in time.

    The burn is already final; callers may poll again but must not burn again.

    Example:
        >>> raise AttestationTimeoutError("0xmsg...", 900.0, tx_hash="0xburn...")
    """

    retryable = True

    def __init__(
        self,
        message_hash: str,
        timeout: float,
        *,
        tx_hash: Optional[str] = None,
        last_status: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        details["message_hash"] = message_hash
        details["timeout_seconds"] = timeout
        if last_status:
            details["last_status"] = last_status

        super().__init__(
            f"Attestation not available after {timeout:g}s for message {message_hash}",
            code="ATTESTATION_TIMEOUT",
            tx_hash=tx_hash,
            details=details,
        )
        self.message_hash = message_hash
        self.timeout = timeout
        self.last_status = last_status


class MintRejectedError(RelayerError):
    """
    Raised when the destination chain refuses the mint.

    Typical causes: attestation already consumed, domain mismatch.

    Example:
        >>> raise MintRejectedError("MoveAbort: nonce already used", tx_hash="9xZ...")
    """

    def __init__(
        self,
        message: str = "Mint transaction rejected",
        *,
        tx_hash: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code="MINT_REJECTED", tx_hash=tx_hash, details=details)


class SlippageExceededError(RelayerError):
    """
    Raised when a swap would fill below the minimum acceptable output.

    Retried with a fresh quote, never as a raw resubmission.

    Example:
        >>> raise SlippageExceededError(Decimal("200"), Decimal("204.8"))
    """

    retryable = True

    def __init__(
        self,
        output_amount: Decimal,
        min_output_amount: Decimal,
        *,
        tx_hash: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        details["output_amount"] = str(output_amount)
        details["min_output_amount"] = str(min_output_amount)

        super().__init__(
            f"Swap output {output_amount} below minimum {min_output_amount}",
            code="SLIPPAGE_EXCEEDED",
            tx_hash=tx_hash,
            details=details,
        )
        self.output_amount = output_amount
        self.min_output_amount = min_output_amount


class SwapFailedError(RelayerError):
    """
    Raised when a swap transaction aborts for a reason other than slippage.

    Example:
        >>> raise SwapFailedError("MoveAbort in pool::swap, code 7", tx_hash="9xZ...")
    """

    def __init__(
        self,
        message: str = "Swap transaction failed",
        *,
        tx_hash: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code="SWAP_FAILED", tx_hash=tx_hash, details=details)
