"""
Shared fixtures for storage module tests.
"""

from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from walrelay.config import CircuitBreakerConfig, WalrusConfig


# =============================================================================
# Test Constants
# =============================================================================

PUBLISHER_URL = "https://publisher.walrus-testnet.walrus.space"
AGGREGATOR_URL = "https://aggregator.walrus-testnet.walrus.space"

VALID_BLOB_ID = "M4hsZGQ1oCktdzegB6HnI6Mi28S2nqOPHxK-W7_4BUk"
VALID_OBJECT_ID = "0x" + "4e" * 32

NEWLY_CREATED_RESPONSE: Dict[str, Any] = {
    "newlyCreated": {
        "blobObject": {
            "id": VALID_OBJECT_ID,
            "registeredEpoch": 34,
            "blobId": VALID_BLOB_ID,
            "size": 17,
            "encodingType": "RS2",
            "certifiedEpoch": 34,
            "storage": {
                "id": "0x" + "5f" * 32,
                "startEpoch": 34,
                "endEpoch": 39,
                "storageSize": 66034000,
            },
            "deletable": False,
        },
        "resourceOperation": {"registerFromScratch": {"encodedLength": 66034000, "epochsAhead": 5}},
        "cost": 132300,
    }
}

ALREADY_CERTIFIED_RESPONSE: Dict[str, Any] = {
    "alreadyCertified": {
        "blobId": VALID_BLOB_ID,
        "event": {"txDigest": "4XQHFa9S324wTzYHF3vsBSwpmwzHenWmgSL2Ao7ZdX5a", "eventSeq": "0"},
        "endEpoch": 40,
    }
}


# =============================================================================
# Fixtures - Configurations
# =============================================================================


@pytest.fixture
def walrus_config() -> WalrusConfig:
    """Create a test WalrusConfig with fast retries."""
    return WalrusConfig(
        publisher_url=PUBLISHER_URL,
        aggregator_url=AGGREGATOR_URL,
        timeout_ms=5000,
        max_attempts=3,
        base_delay_ms=1,
        max_delay_ms=5,
        max_blob_size=1024,
        stream_chunk_size=1024,
        circuit_breaker=CircuitBreakerConfig(
            enabled=True,
            failure_threshold=2,
            reset_timeout_ms=60000,
        ),
    )


# =============================================================================
# Helpers - httpx mocks
# =============================================================================


def create_mock_response(
    status_code: int = 200,
    json_data: Any = None,
    text: str = "",
) -> MagicMock:
    """Create a mock httpx Response."""
    response = MagicMock(spec=httpx.Response)
    response.status_code = status_code
    response.text = text
    if json_data is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = json_data
    return response


class MockAsyncContextManager:
    """Mock async context manager for httpx.AsyncClient and streams."""

    def __init__(self, value: Any):
        self.value = value

    async def __aenter__(self):
        return self.value

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None


def create_mock_httpx_client(mock_http: AsyncMock) -> MagicMock:
    """Create a mock httpx.AsyncClient class yielding ``mock_http``."""
    return MagicMock(side_effect=lambda *args, **kwargs: MockAsyncContextManager(mock_http))


def create_stream_response(status_code: int = 200, chunks: Optional[List[bytes]] = None) -> MagicMock:
    """Create a mock streamed response whose ``aiter_bytes`` yields ``chunks``."""
    response = MagicMock()
    response.status_code = status_code
    response.text = ""
    response.aread = AsyncMock(return_value=b"")

    async def aiter_bytes(chunk_size: Optional[int] = None):
        for chunk in chunks or []:
            yield chunk

    response.aiter_bytes = aiter_bytes
    return response
