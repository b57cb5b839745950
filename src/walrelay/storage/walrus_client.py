"""
Walrus Client - blob storage via publisher/aggregator HTTP API

Uploads go to the publisher as multipart PUTs; reads go to the aggregator.
File-backed payloads are streamed from disk and reopened on every attempt,
so a retried upload always starts from the first byte.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, AsyncIterator, Dict, Optional, Union

import httpx

from walrelay.config import CircuitBreakerConfig, WalrusConfig
from walrelay.constants import WALRUS_API_PREFIX
from walrelay.errors.base import InvalidInputError
from walrelay.errors.storage import (
    BlobNotFoundError,
    BlobTooLargeError,
    StorageRejectedError,
    StorageUnavailableError,
)
from walrelay.models import Payload, StoredBlob
from walrelay.utils.circuit_breaker import CircuitBreaker
from walrelay.utils.logging import get_logger
from walrelay.utils.retry import RetryConfig, retry_async

_logger = get_logger(__name__)


class StorageClient:
    """
    Blob storage client for a Walrus publisher and aggregator.

    Features:
    - Multipart upload with bounded exponential-backoff retries
    - Streaming upload and download for large files
    - Circuit breaker for publisher health
    - Blob metadata lookup

    Example:
        ```python
        from walrelay.storage import StorageClient
        from walrelay.config import WalrusConfig

        client = StorageClient(WalrusConfig())

        blob = await client.store_text("hello", retention_epochs=5)
        print(f"Stored: {blob.blob_id}")

        async for chunk in client.retrieve(blob.blob_id):
            sink.write(chunk)
        ```
    """

    def __init__(self, config: Optional[WalrusConfig] = None) -> None:
        self._config = config or WalrusConfig()
        self._publisher_url = self._config.publisher_url.rstrip("/")
        self._aggregator_url = self._config.aggregator_url.rstrip("/")
        self._circuit_breaker = CircuitBreaker(
            self._config.circuit_breaker or CircuitBreakerConfig(),
            name=self._publisher_url,
            counted_errors=(StorageUnavailableError,),
        )
        self._retry_config = RetryConfig(
            max_attempts=self._config.max_attempts,
            base_delay_ms=self._config.base_delay_ms,
            max_delay_ms=self._config.max_delay_ms,
            retryable_errors=(StorageUnavailableError,),
        )

    @property
    def publisher_url(self) -> str:
        return self._publisher_url

    @property
    def aggregator_url(self) -> str:
        return self._aggregator_url

    @property
    def circuit_breaker_state(self) -> str:
        """Get current publisher circuit breaker state."""
        return self._circuit_breaker.state.value

    def _timeout(self) -> httpx.Timeout:
        return httpx.Timeout(self._config.timeout_ms / 1000)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def store(self, payload: Payload, retention_epochs: int) -> StoredBlob:
        """
        Store a payload for ``retention_epochs`` epochs.

        Args:
            payload: In-memory or file-backed payload
            retention_epochs: Storage duration in epochs

        Returns:
            StoredBlob reference

        Raises:
            BlobTooLargeError: If the payload exceeds the network maximum
            StorageRejectedError: If the publisher rejects the upload (4xx)
            StorageUnavailableError: If the publisher stays unreachable
                after all retries (5xx, 429, transport errors)
            CircuitBreakerOpenError: If the publisher is marked unhealthy
        """
        if isinstance(retention_epochs, bool) or not isinstance(retention_epochs, int) or retention_epochs <= 0:
            raise InvalidInputError("retention_epochs must be a positive integer", field="retention_epochs")

        size = payload.size
        if size == 0:
            raise InvalidInputError("payload is empty", field="payload")
        if size > self._config.max_blob_size:
            raise BlobTooLargeError(size, self._config.max_blob_size, endpoint=self._publisher_url)

        url = f"{self._publisher_url}{WALRUS_API_PREFIX}/store"

        async def do_store() -> StoredBlob:
            with payload.open() as stream:
                files = {"file": (payload.upload_name, stream, payload.mime_type)}
                data = {"epochs": str(retention_epochs)}
                try:
                    async with httpx.AsyncClient(timeout=self._timeout()) as client:
                        response = await client.put(url, files=files, data=data)
                except httpx.HTTPError as e:
                    raise StorageUnavailableError(
                        f"Upload failed: {e}",
                        endpoint=self._publisher_url,
                    ) from e

            _raise_for_status(response, self._publisher_url, "Upload")

            try:
                body = response.json()
            except ValueError as e:
                raise StorageRejectedError(
                    "Publisher returned invalid JSON",
                    status_code=response.status_code,
                    endpoint=self._publisher_url,
                ) from e
            return parse_store_response(body, size)

        blob = await self._circuit_breaker.execute(
            lambda: retry_async(do_store, self._retry_config, operation="walrus_store")
        )
        _logger.info(
            "Blob stored",
            extra={
                "blob_id": blob.blob_id,
                "size_bytes": size,
                "epochs": retention_epochs,
                "already_certified": blob.already_certified,
            },
        )
        return blob

    async def store_text(self, text: str, retention_epochs: int) -> StoredBlob:
        """Store a UTF-8 text payload."""
        return await self.store(Payload.from_text(text), retention_epochs)

    async def store_file(self, path: Union[str, Path], retention_epochs: int) -> StoredBlob:
        """Stream a file from disk to the publisher."""
        return await self.store(Payload.from_file(path), retention_epochs)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def retrieve(self, blob_id: str) -> AsyncIterator[bytes]:
        """
        Stream blob content from the aggregator.

        Args:
            blob_id: Blob identifier

        Yields:
            Content chunks

        Raises:
            BlobNotFoundError: If the aggregator does not know the blob
            StorageUnavailableError: On transport or server errors
        """
        _require_blob_id(blob_id)
        url = f"{self._aggregator_url}{WALRUS_API_PREFIX}/{blob_id}"

        try:
            async with httpx.AsyncClient(timeout=self._timeout(), follow_redirects=True) as client:
                async with client.stream("GET", url) as response:
                    if response.status_code == 404:
                        raise BlobNotFoundError(blob_id, endpoint=self._aggregator_url)
                    if response.status_code != 200:
                        await response.aread()
                    _raise_for_status(response, self._aggregator_url, "Retrieve")
                    async for chunk in response.aiter_bytes(self._config.stream_chunk_size):
                        yield chunk
        except httpx.HTTPError as e:
            raise StorageUnavailableError(
                f"Retrieve failed: {e}",
                endpoint=self._aggregator_url,
            ) from e

    async def read(self, blob_id: str) -> bytes:
        """Retrieve a whole blob into memory. Use ``retrieve`` for large blobs."""
        chunks = [chunk async for chunk in self.retrieve(blob_id)]
        return b"".join(chunks)

    async def info(self, blob_id: str) -> StoredBlob:
        """
        Fetch blob metadata from the aggregator.

        Raises:
            BlobNotFoundError: If the blob is unknown
            StorageUnavailableError: If the aggregator stays unreachable
        """
        _require_blob_id(blob_id)
        url = f"{self._aggregator_url}{WALRUS_API_PREFIX}/info/{blob_id}"

        async def do_info() -> StoredBlob:
            try:
                async with httpx.AsyncClient(timeout=self._timeout()) as client:
                    response = await client.get(url)
            except httpx.HTTPError as e:
                raise StorageUnavailableError(
                    f"Info request failed: {e}",
                    endpoint=self._aggregator_url,
                ) from e

            if response.status_code == 404:
                raise BlobNotFoundError(blob_id, endpoint=self._aggregator_url)
            _raise_for_status(response, self._aggregator_url, "Info")

            try:
                body = response.json()
            except ValueError as e:
                raise StorageUnavailableError(
                    "Aggregator returned invalid JSON",
                    endpoint=self._aggregator_url,
                ) from e
            if not isinstance(body, dict):
                raise StorageUnavailableError(
                    "Aggregator info response is not a JSON object",
                    endpoint=self._aggregator_url,
                )
            return parse_info_response(body, blob_id)

        return await retry_async(do_info, self._retry_config, operation="walrus_info")


# ============================================================================
# Response parsing
# ============================================================================

def _raise_for_status(response: httpx.Response, endpoint: str, action: str) -> None:
    status = response.status_code
    if 200 <= status < 300:
        return
    if status == 429 or status >= 500:
        raise StorageUnavailableError(
            f"{action} failed: HTTP {status}",
            status_code=status,
            endpoint=endpoint,
        )
    raise StorageRejectedError(
        f"{action} rejected: HTTP {status}: {response.text[:200]}",
        status_code=status,
        endpoint=endpoint,
    )


def _require_blob_id(blob_id: str) -> None:
    if not blob_id or not isinstance(blob_id, str) or "/" in blob_id:
        raise InvalidInputError("blob_id must be a non-empty identifier", field="blob_id")


def parse_store_response(body: Dict[str, Any], size_bytes: Optional[int] = None) -> StoredBlob:
    """
    Map a publisher store response to a StoredBlob.

    Exactly one of ``newlyCreated`` or ``alreadyCertified`` must be present.

    Raises:
        StorageRejectedError: If the body has neither or both
    """
    newly_created = body.get("newlyCreated") if isinstance(body, dict) else None
    already_certified = body.get("alreadyCertified") if isinstance(body, dict) else None

    if (newly_created is None) == (already_certified is None):
        raise StorageRejectedError(
            "Store response must contain exactly one of newlyCreated or alreadyCertified",
        )

    if newly_created is not None:
        blob_object = newly_created.get("blobObject") or {}
        storage = blob_object.get("storage") or {}
        blob_id = blob_object.get("blobId")
        if not blob_id:
            raise StorageRejectedError("Store response has no blobId")
        return StoredBlob(
            blob_id=blob_id,
            size_bytes=blob_object.get("size", size_bytes),
            storage_start_epoch=storage.get("startEpoch"),
            storage_end_epoch=storage.get("endEpoch"),
            certified=blob_object.get("certifiedEpoch") is not None,
            object_id=blob_object.get("id"),
        )

    blob_id = already_certified.get("blobId")
    if not blob_id:
        raise StorageRejectedError("Store response has no blobId")
    return StoredBlob(
        blob_id=blob_id,
        size_bytes=size_bytes,
        storage_end_epoch=already_certified.get("endEpoch"),
        certified=True,
        already_certified=True,
    )


def parse_info_response(body: Dict[str, Any], blob_id: str) -> StoredBlob:
    """Map an aggregator info response to a StoredBlob; missing fields stay unset."""
    storage = body.get("storage") or {}
    certified_epoch = body.get("certifiedEpoch")
    return StoredBlob(
        blob_id=body.get("blobId") or blob_id,
        size_bytes=body.get("size", body.get("unencodedSize")),
        storage_start_epoch=storage.get("startEpoch", body.get("startEpoch")),
        storage_end_epoch=storage.get("endEpoch", body.get("endEpoch")),
        certified=bool(body.get("certified", certified_epoch is not None)),
        object_id=body.get("id"),
    )
