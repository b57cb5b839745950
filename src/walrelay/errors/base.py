"""
Base exception class for the walrelay package.

All relayer exceptions inherit from RelayerError, which carries a
machine-readable code, an optional transaction hash, a retryability flag
and additional context details.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class RelayerError(Exception):
    """
    Base exception for all relayer errors.

    Provides structured error information that can be serialized, logged
    and returned verbatim in a RelayerResult.

    Attributes:
        message: Human-readable error description.
        code: Machine-readable error code (e.g., "BURN_REJECTED").
        tx_hash: Optional transaction hash or digest related to the error.
        details: Optional dictionary with additional error context.
        retryable: Whether the failed operation may be attempted again.

    Example:
        >>> raise RelayerError(
        ...     "Unexpected receipt",
        ...     code="UNEXPECTED_ERROR",
        ...     tx_hash="0x123...",
        ...     details={"gas_used": 21000}
        ... )
    """

    retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        code: str = "RELAYER_ERROR",
        tx_hash: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.tx_hash = tx_hash
        self.details = details or {}

    @property
    def kind(self) -> str:
        """Error kind, the class name without the ``Error`` suffix."""
        name = self.__class__.__name__
        return name[: -len("Error")] if name.endswith("Error") else name

    def __str__(self) -> str:
        """Return formatted error message."""
        parts = [f"[{self.code}] {self.message}"]
        if self.tx_hash:
            parts.append(f"(tx: {self.tx_hash[:10]}...)")
        return " ".join(parts)

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r}, "
            f"tx_hash={self.tx_hash!r}, "
            f"details={self.details!r})"
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to a dictionary for JSON serialization.

        Returns:
            Dictionary representation of the error.
        """
        return {
            "error": self.__class__.__name__,
            "kind": self.kind,
            "code": self.code,
            "message": self.message,
            "retryable": self.retryable,
            "tx_hash": self.tx_hash,
            "details": self.details,
        }


class InvalidInputError(RelayerError):
    """
    Raised when caller-supplied input is invalid. Never retried.

    Example:
        >>> raise InvalidInputError("byte_size must be positive", field="byte_size")
    """

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        if field:
            details["field"] = field

        super().__init__(message, code="INVALID_INPUT", details=details)
        self.field = field
