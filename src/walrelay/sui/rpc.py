"""
Minimal JSON-RPC client for the destination chain (Sui).

Covers what the relayer needs: executing a signed transaction, looking a
transaction up by digest, and reading an object. Responses are reduced to
a TransactionOutcome carrying status, gas and balance changes.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional

import httpx

from walrelay.constants import SUI_GAS_DECIMALS
from walrelay.errors.chain import ChainRpcError
from walrelay.sui.signer import SignedTransaction
from walrelay.utils.logging import get_logger
from walrelay.utils.validation import from_base_units

_logger = get_logger(__name__)

TX_RESPONSE_OPTIONS = {
    "showEffects": True,
    "showEvents": True,
    "showBalanceChanges": True,
}


@dataclass
class TransactionOutcome:
    """Parsed effects of an executed transaction."""

    digest: str
    success: bool
    error: Optional[str] = None
    gas_fee: Decimal = Decimal(0)
    balance_changes: List[Dict[str, Any]] = field(default_factory=list)
    events: List[Dict[str, Any]] = field(default_factory=list)

    def balance_change(self, owner: str, coin_type: str) -> int:
        """Net change, in base units, of ``coin_type`` held by ``owner``."""
        total = 0
        for change in self.balance_changes:
            change_owner = change.get("owner") or {}
            if isinstance(change_owner, dict):
                change_owner = change_owner.get("AddressOwner")
            if (
                isinstance(change_owner, str)
                and change_owner.lower() == owner.lower()
                and change.get("coinType") == coin_type
            ):
                total += int(change.get("amount", 0))
        return total


def parse_transaction_response(result: Dict[str, Any]) -> TransactionOutcome:
    """Reduce a transaction block response to a TransactionOutcome."""
    effects = result.get("effects") or {}
    status = effects.get("status") or {}
    gas = effects.get("gasUsed") or {}

    gas_mist = (
        int(gas.get("computationCost", 0))
        + int(gas.get("storageCost", 0))
        - int(gas.get("storageRebate", 0))
    )

    return TransactionOutcome(
        digest=result.get("digest", ""),
        success=status.get("status") == "success",
        error=status.get("error"),
        gas_fee=from_base_units(max(gas_mist, 0), SUI_GAS_DECIMALS),
        balance_changes=list(result.get("balanceChanges") or []),
        events=list(result.get("events") or []),
    )


class SuiRpcClient:
    """
    JSON-RPC 2.0 client over httpx.

    Example:
        ```python
        rpc = SuiRpcClient("https://fullnode.testnet.sui.io:443")
        outcome = await rpc.execute_transaction(signed)
        if not outcome.success:
            print(outcome.error)
        ```
    """

    def __init__(self, rpc_url: str, timeout: float = 60.0) -> None:
        self._rpc_url = rpc_url
        self._timeout = timeout
        self._ids = itertools.count(1)

    @property
    def rpc_url(self) -> str:
        return self._rpc_url

    async def call(self, method: str, params: List[Any]) -> Any:
        """
        Perform one JSON-RPC call.

        Raises:
            ChainRpcError: On transport failure, non-200 status or an error member
        """
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        try:
            async with httpx.AsyncClient(timeout=httpx.Timeout(self._timeout)) as client:
                response = await client.post(self._rpc_url, json=payload)
        except httpx.HTTPError as e:
            raise ChainRpcError(f"{method} request failed: {e}", rpc_url=self._rpc_url) from e

        if response.status_code != 200:
            raise ChainRpcError(
                f"{method} returned HTTP {response.status_code}",
                rpc_url=self._rpc_url,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise ChainRpcError(f"{method} returned invalid JSON", rpc_url=self._rpc_url) from e

        if body.get("error"):
            error = body["error"]
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise ChainRpcError(
                f"{method} failed: {message}",
                rpc_url=self._rpc_url,
                details={"rpc_error": error},
            )
        return body.get("result")

    async def execute_transaction(self, signed: SignedTransaction) -> TransactionOutcome:
        """Submit a signed transaction and wait for local execution."""
        result = await self.call(
            "sui_executeTransactionBlock",
            [signed.tx_bytes, signed.signatures, TX_RESPONSE_OPTIONS, "WaitForLocalExecution"],
        )
        outcome = parse_transaction_response(result or {})
        _logger.info(
            "Executed destination transaction",
            extra={"digest": outcome.digest, "success": outcome.success},
        )
        return outcome

    async def get_transaction(self, digest: str) -> TransactionOutcome:
        result = await self.call("sui_getTransactionBlock", [digest, TX_RESPONSE_OPTIONS])
        return parse_transaction_response(result or {})

    async def get_object(self, object_id: str) -> Optional[Dict[str, Any]]:
        """
        Read an object with its content.

        Returns:
            Object data, or None if the object does not exist or was deleted
        """
        result = await self.call(
            "sui_getObject",
            [object_id, {"showContent": True, "showType": True}],
        )
        if not result or result.get("error"):
            return None
        return result.get("data")
