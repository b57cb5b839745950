"""
Data model for the relayer.

Immutable request/result records are frozen pydantic models or frozen
dataclasses; the per-request BridgeTransfer is a mutable dataclass owned by
exactly one request. All currency amounts are Decimal.
"""

from __future__ import annotations

import io
import mimetypes
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from pathlib import Path
from typing import Any, BinaryIO, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from walrelay.constants import DISPLAY_PRECISION
from walrelay.errors.base import InvalidInputError, RelayerError


def round_display(amount: Decimal) -> Decimal:
    """Round half-up to display precision (6 fractional digits)."""
    return amount.quantize(DISPLAY_PRECISION, rounding=ROUND_HALF_UP)


# ============================================================================
# Payload and request
# ============================================================================

class PayloadKind(str, Enum):
    """Payload kind. Only affects the content-type tag sent to storage."""

    TEXT = "text"
    IMAGE = "image"
    FILE = "file"


_DEFAULT_CONTENT_TYPES = {
    PayloadKind.TEXT: "text/plain; charset=utf-8",
    PayloadKind.IMAGE: "image/png",
    PayloadKind.FILE: "application/octet-stream",
}


@dataclass(frozen=True)
class Payload:
    """
    Bytes to store, either held in memory or streamed from disk.

    Exactly one of ``data`` or ``path`` is set. File-backed payloads are
    never read fully into memory; ``open()`` returns a fresh handle each
    time so an upload can be retried from the start.

    Example:
        >>> Payload.from_text("hello").size
        5
    """

    kind: PayloadKind
    data: Optional[bytes] = None
    path: Optional[Path] = None
    content_type: Optional[str] = None
    filename: Optional[str] = None

    def __post_init__(self) -> None:
        if (self.data is None) == (self.path is None):
            raise InvalidInputError("Payload needs exactly one of data or path", field="payload")

    @classmethod
    def from_text(cls, text: str) -> Payload:
        return cls(kind=PayloadKind.TEXT, data=text.encode("utf-8"), filename="data.txt")

    @classmethod
    def from_bytes(
        cls,
        data: bytes,
        kind: PayloadKind = PayloadKind.FILE,
        *,
        content_type: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> Payload:
        return cls(kind=kind, data=bytes(data), content_type=content_type, filename=filename)

    @classmethod
    def from_file(
        cls,
        path: Union[str, Path],
        kind: Optional[PayloadKind] = None,
    ) -> Payload:
        """Create a streamed payload; kind and content type are guessed from the name."""
        path = Path(path)
        if not path.is_file():
            raise InvalidInputError(f"Not a file: {path}", field="path")
        guessed, _ = mimetypes.guess_type(path.name)
        if kind is None:
            kind = PayloadKind.IMAGE if guessed and guessed.startswith("image/") else PayloadKind.FILE
        return cls(kind=kind, path=path, content_type=guessed, filename=path.name)

    @property
    def is_streamed(self) -> bool:
        return self.path is not None

    @property
    def size(self) -> int:
        if self.data is not None:
            return len(self.data)
        return self.path.stat().st_size  # type: ignore[union-attr]

    @property
    def mime_type(self) -> str:
        return self.content_type or _DEFAULT_CONTENT_TYPES[self.kind]

    @property
    def upload_name(self) -> str:
        return self.filename or f"blob.{self.kind.value}"

    def open(self) -> BinaryIO:
        """Open a fresh binary reader positioned at the start."""
        if self.data is not None:
            return io.BytesIO(self.data)
        return open(self.path, "rb")  # type: ignore[arg-type]


@dataclass(frozen=True)
class StorageRequest:
    """A caller's request to pay for and store one payload. Consumed once."""

    payload: Payload
    source_address: str
    destination_address: str
    retention_epochs: int


# ============================================================================
# Quote
# ============================================================================

class CostQuote(BaseModel):
    """
    A point-in-time price for storing ``byte_size`` bytes.

    Amounts are exact; use ``display()`` for presentation.
    """

    model_config = ConfigDict(frozen=True)

    byte_size: int = Field(..., gt=0)
    retention_epochs: int = Field(..., gt=0)
    token_amount: Decimal = Field(..., description="Storage tokens required")
    stablecoin_amount: Decimal = Field(..., description="Stablecoin to bridge, including buffer")
    slippage_buffer_pct: Decimal
    exchange_rate: Decimal = Field(..., description="Storage tokens per stablecoin")
    quoted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def display(self) -> Dict[str, str]:
        """Amounts rounded half-up to 6 fractional digits."""
        return {
            "byteSize": str(self.byte_size),
            "tokenAmount": str(round_display(self.token_amount)),
            "stablecoinAmount": str(round_display(self.stablecoin_amount)),
            "slippageBufferPct": str(self.slippage_buffer_pct),
        }


# ============================================================================
# Bridge and swap records
# ============================================================================

class BridgeTransferStatus(str, Enum):
    INITIATED = "initiated"
    BURNED = "burned"
    ATTESTATION_RECEIVED = "attestation_received"
    MINTED = "minted"
    FAILED = "failed"


@dataclass
class BridgeTransfer:
    """
    Progress of one burn-and-mint transfer.

    Mutated in place by BridgeClient as sub-steps complete, so the owner
    always knows whether the burn has happened. Never shared across requests.
    """

    amount: Decimal
    source_address: str
    destination_address: str
    status: BridgeTransferStatus = BridgeTransferStatus.INITIATED
    source_tx_hash: Optional[str] = None
    message: Optional[bytes] = None
    message_hash: Optional[str] = None
    attestation: Optional[bytes] = None
    destination_mint_tx_hash: Optional[str] = None
    source_gas_fee: Decimal = Decimal(0)
    destination_gas_fee: Decimal = Decimal(0)
    failure: Optional[str] = None

    @property
    def is_burned(self) -> bool:
        """True once the burn is on-chain and must never be repeated."""
        return self.source_tx_hash is not None


class SwapStatus(str, Enum):
    PENDING = "pending"
    EXECUTED = "executed"
    FAILED = "failed"


@dataclass
class SwapResult:
    input_amount: Decimal
    output_amount: Decimal
    destination_tx_digest: Optional[str] = None
    status: SwapStatus = SwapStatus.PENDING
    gas_fee: Decimal = Decimal(0)


# ============================================================================
# Storage
# ============================================================================

class StoredBlob(BaseModel):
    """Reference to a blob persisted on the storage network."""

    model_config = ConfigDict(frozen=True)

    blob_id: str = Field(..., min_length=1)
    size_bytes: Optional[int] = Field(default=None, ge=0)
    storage_start_epoch: Optional[int] = None
    storage_end_epoch: Optional[int] = None
    certified: bool = False
    object_id: Optional[str] = None
    already_certified: bool = False


# ============================================================================
# Progress and result
# ============================================================================

class RelayerStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class RelayerPhase(str, Enum):
    """Completed phases, in strict order."""

    IDLE = "idle"
    COST_CALCULATED = "cost_calculated"
    BRIDGE_COMPLETED = "bridge_completed"
    SWAP_COMPLETED = "swap_completed"
    STORAGE_COMPLETED = "storage_completed"

    @property
    def rank(self) -> int:
        return _PHASE_ORDER.index(self)


_PHASE_ORDER = list(RelayerPhase)


class ErrorInfo(BaseModel):
    """Serializable form of the error that ended a request."""

    model_config = ConfigDict(frozen=True)

    kind: str
    code: str
    message: str
    retryable: bool = False
    tx_hash: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_error(cls, error: RelayerError) -> ErrorInfo:
        return cls(
            kind=error.kind,
            code=error.code,
            message=error.message,
            retryable=error.retryable,
            tx_hash=error.tx_hash,
            details=error.details,
        )


class RelayerProgress(BaseModel):
    """
    Immutable snapshot of a request's progress.

    The four flags are derived from ``phase``, so they can only become
    true in order. Field aliases match the UI's camelCase names.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    status: RelayerStatus = RelayerStatus.IDLE
    phase: RelayerPhase = RelayerPhase.IDLE
    in_flight: bool = Field(default=False, alias="inFlight")
    error: Optional[ErrorInfo] = None

    @computed_field(alias="calculateCost")
    @property
    def calculate_cost(self) -> bool:
        return self.phase.rank >= RelayerPhase.COST_CALCULATED.rank

    @computed_field(alias="transferStable")
    @property
    def transfer_stable(self) -> bool:
        return self.phase.rank >= RelayerPhase.BRIDGE_COMPLETED.rank

    @computed_field(alias="swapToToken")
    @property
    def swap_to_token(self) -> bool:
        return self.phase.rank >= RelayerPhase.SWAP_COMPLETED.rank

    @computed_field(alias="storeData")
    @property
    def store_data(self) -> bool:
        return self.phase.rank >= RelayerPhase.STORAGE_COMPLETED.rank

    def steps(self) -> Dict[str, bool]:
        """Flag view in fixed phase order, as polled by status displays."""
        return {
            "calculateCost": self.calculate_cost,
            "transferStable": self.transfer_stable,
            "swapToToken": self.swap_to_token,
            "storeData": self.store_data,
        }


class GasFees(BaseModel):
    """Gas spent, in each chain's native unit."""

    model_config = ConfigDict(frozen=True)

    source_chain: Decimal = Decimal(0)
    destination_chain: Decimal = Decimal(0)


class RelayerCost(BaseModel):
    """What the request actually spent, as far as it got."""

    model_config = ConfigDict(frozen=True)

    stablecoin_amount: Decimal = Decimal(0)
    token_amount: Decimal = Decimal(0)
    gas_fees: GasFees = Field(default_factory=GasFees)

    def display(self) -> Dict[str, str]:
        return {
            "stablecoinAmount": str(round_display(self.stablecoin_amount)),
            "tokenAmount": str(round_display(self.token_amount)),
            "gasFees": str(round_display(self.gas_fees.source_chain + self.gas_fees.destination_chain)),
        }


class RelayerResult(BaseModel):
    """
    Terminal outcome of one storage request.

    success=True implies blob_id is present and error absent;
    success=False implies error is present.
    """

    model_config = ConfigDict(frozen=True)

    success: bool
    request_id: str
    blob_id: Optional[str] = None
    bridge_tx_hash: Optional[str] = None
    mint_tx_digest: Optional[str] = None
    swap_tx_digest: Optional[str] = None
    cost: RelayerCost = Field(default_factory=RelayerCost)
    quote: Optional[CostQuote] = None
    blob: Optional[StoredBlob] = None
    error: Optional[ErrorInfo] = None

    @model_validator(mode="after")
    def _check_outcome(self) -> RelayerResult:
        if self.success and (self.blob_id is None or self.error is not None):
            raise ValueError("successful result needs blob_id and no error")
        if not self.success and self.error is None:
            raise ValueError("failed result needs an error")
        return self
