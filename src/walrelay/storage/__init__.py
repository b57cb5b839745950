"""
Storage network access (Walrus publisher/aggregator).
"""

from walrelay.storage.walrus_client import (
    StorageClient,
    parse_info_response,
    parse_store_response,
)

__all__ = [
    "StorageClient",
    "parse_store_response",
    "parse_info_response",
]
