"""
Tests for SuiRpcClient and transaction response parsing.
"""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from walrelay.errors import ChainRpcError
from walrelay.sui.rpc import SuiRpcClient, parse_transaction_response
from walrelay.sui.signer import SignedTransaction

RPC_URL = "https://fullnode.testnet.sui.io:443"
OWNER = "0x" + "ab" * 32
WAL = "0x8270::wal::WAL"


def mock_client(response=None, side_effect=None) -> tuple:
    mock_http = AsyncMock()
    mock_http.post = AsyncMock(return_value=response, side_effect=side_effect)

    class _Context:
        async def __aenter__(self):
            return mock_http

        async def __aexit__(self, *args):
            return None

    return mock_http, MagicMock(side_effect=lambda *args, **kwargs: _Context())


def json_response(body, status_code: int = 200) -> MagicMock:
    response = MagicMock(spec=httpx.Response)
    response.status_code = status_code
    response.json.return_value = body
    return response


class TestParseTransactionResponse:
    """Tests for reducing transaction effects."""

    def test_success_with_gas_and_balances(self) -> None:
        outcome = parse_transaction_response(
            {
                "digest": "9xDigest",
                "effects": {
                    "status": {"status": "success"},
                    "gasUsed": {
                        "computationCost": "1000000",
                        "storageCost": "2000000",
                        "storageRebate": "500000",
                    },
                },
                "balanceChanges": [
                    {"owner": {"AddressOwner": OWNER}, "coinType": WAL, "amount": "5"},
                    {"owner": {"AddressOwner": OWNER}, "coinType": WAL, "amount": "7"},
                    {"owner": {"AddressOwner": "0x" + "cd" * 32}, "coinType": WAL, "amount": "100"},
                ],
            }
        )

        assert outcome.success is True
        assert outcome.digest == "9xDigest"
        assert outcome.gas_fee == Decimal("0.0025")
        assert outcome.balance_change(OWNER.upper().replace("0X", "0x"), WAL) == 12

    def test_failure_carries_error(self) -> None:
        outcome = parse_transaction_response(
            {
                "digest": "9xDigest",
                "effects": {"status": {"status": "failure", "error": "MoveAbort(...)"}},
            }
        )

        assert outcome.success is False
        assert outcome.error == "MoveAbort(...)"
        assert outcome.gas_fee == Decimal(0)


class TestSuiRpcClient:
    """Tests for JSON-RPC calls."""

    @pytest.mark.asyncio
    async def test_execute_transaction(self) -> None:
        mock_http, factory = mock_client(
            json_response(
                {"jsonrpc": "2.0", "id": 1, "result": {"digest": "9x", "effects": {"status": {"status": "success"}}}}
            )
        )

        with patch("httpx.AsyncClient", factory):
            outcome = await SuiRpcClient(RPC_URL).execute_transaction(
                SignedTransaction(tx_bytes="AAAB", signatures=["sig"])
            )

        assert outcome.success is True
        payload = mock_http.post.call_args.kwargs["json"]
        assert payload["method"] == "sui_executeTransactionBlock"
        assert payload["params"][0] == "AAAB"
        assert payload["params"][1] == ["sig"]
        assert payload["params"][3] == "WaitForLocalExecution"

    @pytest.mark.asyncio
    async def test_rpc_error_member(self) -> None:
        _, factory = mock_client(
            json_response({"jsonrpc": "2.0", "id": 1, "error": {"code": -32602, "message": "Invalid params"}})
        )

        with patch("httpx.AsyncClient", factory):
            with pytest.raises(ChainRpcError) as exc_info:
                await SuiRpcClient(RPC_URL).call("sui_getObject", ["0x1"])

        assert "Invalid params" in exc_info.value.message
        assert exc_info.value.retryable is True

    @pytest.mark.asyncio
    async def test_http_error_status(self) -> None:
        _, factory = mock_client(json_response({}, status_code=502))

        with patch("httpx.AsyncClient", factory):
            with pytest.raises(ChainRpcError):
                await SuiRpcClient(RPC_URL).call("sui_getObject", ["0x1"])

    @pytest.mark.asyncio
    async def test_transport_error(self) -> None:
        _, factory = mock_client(side_effect=httpx.ConnectError("refused"))

        with patch("httpx.AsyncClient", factory):
            with pytest.raises(ChainRpcError) as exc_info:
                await SuiRpcClient(RPC_URL).call("sui_getObject", ["0x1"])

        assert exc_info.value.rpc_url == RPC_URL

    @pytest.mark.asyncio
    async def test_get_object_missing(self) -> None:
        _, factory = mock_client(
            json_response({"jsonrpc": "2.0", "id": 1, "result": {"error": {"code": "notExists"}}})
        )

        with patch("httpx.AsyncClient", factory):
            assert await SuiRpcClient(RPC_URL).get_object("0x1") is None
