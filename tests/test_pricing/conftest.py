"""
Shared helpers for pricing tests.
"""

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx


def create_mock_response(status_code: int = 200, json_data: Any = None) -> MagicMock:
    """Create a mock httpx Response."""
    response = MagicMock(spec=httpx.Response)
    response.status_code = status_code
    if json_data is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = json_data
    return response


class MockAsyncContextManager:
    """Mock async context manager for httpx.AsyncClient."""

    def __init__(self, mock_client: AsyncMock):
        self.mock_client = mock_client

    async def __aenter__(self):
        return self.mock_client

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None


def create_mock_httpx_client(mock_http: AsyncMock) -> MagicMock:
    """Create a mock httpx.AsyncClient class yielding ``mock_http``."""

    def factory(*args, **kwargs):
        return MockAsyncContextManager(mock_http)

    return MagicMock(side_effect=factory)
