"""
Storage-related exceptions.

Raised during interactions with the storage network's publisher and
aggregator endpoints.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from walrelay.errors.base import RelayerError


class StorageError(RelayerError):
    """
    Base exception for storage operations.

    Example:
        >>> raise StorageError("Failed to reach publisher")
    """

    def __init__(
        self,
        message: str,
        *,
        blob_id: Optional[str] = None,
        endpoint: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        if blob_id:
            details["blob_id"] = blob_id
        if endpoint:
            details["endpoint"] = endpoint

        super().__init__(message, code="STORAGE_ERROR", details=details)
        self.blob_id = blob_id
        self.endpoint = endpoint


class StorageRejectedError(StorageError):
    """
    Raised when the publisher rejects a blob (validation error). Terminal.

    Example:
        >>> raise StorageRejectedError("HTTP 400: invalid epochs", status_code=400)
    """

    def __init__(
        self,
        message: str = "Storage request rejected",
        *,
        status_code: Optional[int] = None,
        endpoint: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        if status_code is not None:
            details["status_code"] = status_code

        super().__init__(message, endpoint=endpoint, details=details)
        self.code = "STORAGE_REJECTED"
        self.status_code = status_code


class BlobTooLargeError(StorageRejectedError):
    """
    Raised when a payload exceeds the network's maximum blob size.

    Example:
        >>> raise BlobTooLargeError(20_000_000_000, 13_600_000_000)
    """

    def __init__(
        self,
        size_bytes: int,
        max_size: int,
        *,
        endpoint: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        details["size_bytes"] = size_bytes
        details["max_size_bytes"] = max_size
        details["excess_bytes"] = size_bytes - max_size

        super().__init__(
            f"Blob size ({size_bytes} bytes) exceeds limit ({max_size} bytes)",
            status_code=413,
            endpoint=endpoint,
            details=details,
        )
        self.size_bytes = size_bytes
        self.max_size = max_size


class StorageUnavailableError(StorageError):
    """
    Raised on transient storage network failures (5xx, 429, transport errors).

    Example:
        >>> raise StorageUnavailableError("HTTP 503", status_code=503)
    """

    retryable = True

    def __init__(
        self,
        message: str = "Storage network unavailable",
        *,
        status_code: Optional[int] = None,
        endpoint: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        if status_code is not None:
            details["status_code"] = status_code

        super().__init__(message, endpoint=endpoint, details=details)
        self.code = "STORAGE_UNAVAILABLE"
        self.status_code = status_code


class BlobNotFoundError(StorageError):
    """
    Raised when a blob cannot be found on the aggregator.

    Example:
        >>> raise BlobNotFoundError("M4hsZGQ1oCktdzegB6HnI6Mi28S2nqOPHxK-W7_4BUk")
    """

    def __init__(
        self,
        blob_id: str,
        *,
        endpoint: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            f"Blob not found: {blob_id}",
            blob_id=blob_id,
            endpoint=endpoint,
            details=details,
        )
        self.code = "BLOB_NOT_FOUND"


class CircuitBreakerOpenError(StorageError):
    """
    Raised when circuit breaker is open and blocking requests.

    Example:
        >>> raise CircuitBreakerOpenError("Publisher unhealthy")
    """

    retryable = True

    def __init__(
        self,
        message: str = "Circuit breaker is open",
        *,
        endpoint: Optional[str] = None,
        reset_at: Optional[float] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        if reset_at is not None:
            details["reset_at"] = reset_at

        super().__init__(message, endpoint=endpoint, details=details)
        self.code = "CIRCUIT_BREAKER_OPEN"
        self.reset_at = reset_at
