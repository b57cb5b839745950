"""
Relayer orchestrator.

Sequences one storage request through the four phases

    Idle -> CostCalculated -> BridgeCompleted -> SwapCompleted -> StorageCompleted

with Failed reachable from any non-terminal phase. Each phase performs one
external operation; its progress flag is set only after that operation
succeeds. Completed on-chain operations are never undone: a failure ends
the request with the partial cost spent so far.

The leaf clients are shared and stateless per request. The orchestrator
itself serves one request at a time.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass
from decimal import ROUND_UP, Decimal
from typing import Optional

from web3 import AsyncWeb3

from walrelay.bridge.attestation import AttestationService
from walrelay.bridge.cctp_client import BridgeClient
from walrelay.config import OrchestratorConfig, RelayerConfig
from walrelay.constants import STABLECOIN_DECIMALS
from walrelay.errors.base import InvalidInputError, RelayerError
from walrelay.errors.chain import SlippageExceededError
from walrelay.errors.pricing import LiquidityUnavailableError
from walrelay.errors.relayer import (
    InvalidStateTransitionError,
    RequestCancelledError,
    RequestInterruptedError,
)
from walrelay.models import (
    BridgeTransfer,
    CostQuote,
    GasFees,
    Payload,
    RelayerCost,
    RelayerPhase,
    RelayerProgress,
    RelayerResult,
    RelayerStatus,
    StorageRequest,
    StoredBlob,
    SwapResult,
)
from walrelay.pricing.cost import CostEstimator
from walrelay.pricing.oracle import HttpPriceOracle, PriceOracle, StaticPriceOracle
from walrelay.relayer.progress import ProgressTracker
from walrelay.storage.walrus_client import StorageClient
from walrelay.sui.rpc import SuiRpcClient
from walrelay.sui.signer import TransactionSigner
from walrelay.swap.dex_client import SwapClient
from walrelay.utils.logging import LogContext, get_logger
from walrelay.utils.validation import validate_evm_address, validate_sui_address

_logger = get_logger(__name__)

_BRIDGE_QUANTUM = Decimal(1).scaleb(-STABLECOIN_DECIMALS)


@dataclass
class _RequestState:
    """Everything one request has produced so far. Lives until the next request."""

    request_id: str
    request: StorageRequest
    quote: Optional[CostQuote] = None
    transfer: Optional[BridgeTransfer] = None
    swap: Optional[SwapResult] = None
    blob: Optional[StoredBlob] = None
    swap_attempts: int = 0


def _is_burned(state: _RequestState) -> bool:
    return state.transfer is not None and state.transfer.is_burned


class RelayerOrchestrator:
    """
    Drives a StorageRequest from quote to stored blob.

    Example:
        ```python
        relayer = RelayerOrchestrator.from_config(RelayerConfig.from_env(), signer=wallet_signer)

        request = StorageRequest(
            payload=Payload.from_text("hello walrus"),
            source_address=relayer.source_address,
            destination_address=user_sui_address,
            retention_epochs=200,
        )
        result = await relayer.submit_storage_request(request)
        if result.success:
            print(f"Stored {result.blob_id}")
        else:
            print(f"Failed: {result.error.message}, spent {result.cost.display()}")
        ```
    """

    def __init__(
        self,
        estimator: CostEstimator,
        bridge: BridgeClient,
        swap: SwapClient,
        storage: StorageClient,
        config: Optional[OrchestratorConfig] = None,
    ) -> None:
        self._estimator = estimator
        self._bridge = bridge
        self._swap = swap
        self._storage = storage
        self._config = config or OrchestratorConfig()
        self._progress = ProgressTracker()
        self._state: Optional[_RequestState] = None

    @classmethod
    def from_config(
        cls,
        config: RelayerConfig,
        signer: TransactionSigner,
        *,
        oracle: Optional[PriceOracle] = None,
        web3: Optional[AsyncWeb3] = None,
    ) -> RelayerOrchestrator:
        """
        Build an orchestrator and all leaf clients from configuration.

        Args:
            config: Complete relayer configuration
            signer: Signs destination-chain mint and swap transactions
            oracle: Price source; built from ``config.pricing`` when omitted
            web3: Optional pre-built source-chain connection
        """
        oracle = oracle or build_price_oracle(config)
        destination_rpc = SuiRpcClient(config.destination.rpc_url, timeout=config.destination.timeout)

        bridge = BridgeClient(
            config.source,
            attestation=AttestationService(config.attestation),
            destination_rpc=destination_rpc,
            signer=signer,
            destination_domain=config.destination.cctp_domain,
            web3=web3,
        )
        swap = SwapClient(config.destination, rpc=destination_rpc, oracle=oracle, signer=signer)
        return cls(
            CostEstimator.from_config(config.pricing, oracle),
            bridge,
            swap,
            StorageClient(config.walrus),
            config.orchestrator,
        )

    @property
    def source_address(self) -> str:
        """Source-chain account the relayer burns from."""
        return self._bridge.address

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_progress(self) -> RelayerProgress:
        """Snapshot of the current request's progress. Never a live reference."""
        return self._progress.snapshot

    async def estimate(self, payload: Payload, retention_epochs: Optional[int] = None) -> CostQuote:
        """Quote a payload without starting a request."""
        epochs = retention_epochs if retention_epochs is not None else self._config.default_retention_epochs
        return await self._estimator.estimate_for_payload(payload, epochs)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def reset_progress(self) -> RelayerProgress:
        """
        Discard the finished request and return to Idle.

        Raises:
            RelayerBusyError: If a request is running
        """
        snapshot = self._progress.reset()
        self._state = None
        return snapshot

    async def submit_storage_request(self, request: StorageRequest) -> RelayerResult:
        """
        Run a request to a terminal outcome.

        Every failure is reported in the result, never raised.

        Raises:
            RelayerBusyError: If another request is running on this instance
        """
        self._progress.begin()
        state = _RequestState(request_id=uuid.uuid4().hex, request=request)
        self._state = state
        _logger.info(
            "Storage request submitted",
            extra={
                "request_id": state.request_id,
                "payload_kind": getattr(request.payload, "kind", None),
                "retention_epochs": request.retention_epochs,
            },
        )
        return await self._run(state)

    def cancel(self) -> None:
        """
        Cancel the running request if nothing irreversible has happened yet.

        The request stops at its next checkpoint and ends Failed with
        REQUEST_CANCELLED.

        Raises:
            CancellationRejectedError: If the burn was already broadcast
            InvalidStateTransitionError: If no request is running
        """
        state = self._state
        tx_hash = state.transfer.source_tx_hash if state and state.transfer else None
        self._progress.request_cancel(tx_hash=tx_hash)
        _logger.info(
            "Cancellation requested",
            extra={"request_id": state.request_id if state else None},
        )

    async def retry(self) -> RelayerResult:
        """
        Resume a failed request from the phase that failed.

        A burn that was broadcast is never repeated; an attestation timeout
        resumes polling, and a slippage failure resumes with a fresh quote.
        A request interrupted after its burn (task cancelled, unexpected
        error) is always resumable.

        Raises:
            InvalidStateTransitionError: If there is no failed request, or
                its error is not retryable
        """
        snapshot = self._progress.snapshot
        state = self._state
        if state is None or snapshot.status != RelayerStatus.FAILED:
            raise InvalidStateTransitionError(snapshot.status.value, RelayerStatus.RUNNING.value)
        if snapshot.error is None or not snapshot.error.retryable:
            raise InvalidStateTransitionError(
                snapshot.status.value,
                RelayerStatus.RUNNING.value,
                details={"reason": "error is not retryable", "error_code": getattr(snapshot.error, "code", None)},
            )

        self._progress.resume()
        _logger.info(
            "Retrying storage request",
            extra={"request_id": state.request_id, "phase": snapshot.phase.value},
        )
        return await self._run(state)

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    async def _run(self, state: _RequestState) -> RelayerResult:
        log = LogContext(_logger, {"request_id": state.request_id})
        phase = self._progress.snapshot.phase
        current = RelayerPhase.COST_CALCULATED

        try:
            if phase.rank < RelayerPhase.COST_CALCULATED.rank:
                current = RelayerPhase.COST_CALCULATED
                self._start_phase(log, current)
                await self._cost_phase(state)
                self._complete_phase(log, current)

            if phase.rank < RelayerPhase.BRIDGE_COMPLETED.rank:
                current = RelayerPhase.BRIDGE_COMPLETED
                self._start_phase(log, current)
                await self._bridge_phase(state)
                self._complete_phase(log, current)

            if phase.rank < RelayerPhase.SWAP_COMPLETED.rank:
                current = RelayerPhase.SWAP_COMPLETED
                self._start_phase(log, current)
                await self._swap_phase(state, log)
                self._complete_phase(log, current)

            current = RelayerPhase.STORAGE_COMPLETED
            self._start_phase(log, current)
            state.blob = await self._storage.store(
                state.request.payload, state.request.retention_epochs
            )
            self._complete_phase(log, current)
        except RelayerError as e:
            return self._fail(state, log, current, e)
        except asyncio.CancelledError:
            if _is_burned(state):
                error: RelayerError = RequestInterruptedError(
                    "Request task was cancelled after the burn was broadcast",
                    tx_hash=state.transfer.source_tx_hash,
                )
            else:
                error = RequestCancelledError("Request task was cancelled")
            self._fail(state, log, current, error)
            raise
        except Exception as e:
            log.exception("Unexpected error", extra={"phase": current.value})
            if _is_burned(state):
                # Funds are moving; keep the request resumable.
                wrapped: RelayerError = RequestInterruptedError(
                    f"Unexpected error: {e}",
                    code="UNEXPECTED_ERROR",
                    tx_hash=state.transfer.source_tx_hash,
                )
            else:
                wrapped = RelayerError(f"Unexpected error: {e}", code="UNEXPECTED_ERROR")
            wrapped.__cause__ = e
            return self._fail(state, log, current, wrapped)

        log.info("Storage request succeeded", extra={"blob_id": state.blob.blob_id})
        return self._result(state)

    def _start_phase(self, log: LogContext, phase: RelayerPhase) -> None:
        self._progress.check_cancelled()
        log.info("Phase started", extra={"phase": phase.value})

    def _complete_phase(self, log: LogContext, phase: RelayerPhase) -> None:
        self._progress.advance(phase)
        log.info("Phase completed", extra={"phase": phase.value})

    async def _cost_phase(self, state: _RequestState) -> None:
        request = state.request
        if not isinstance(request.payload, Payload):
            raise InvalidInputError("payload must be a Payload", field="payload")
        validate_evm_address(request.source_address, "source_address")
        validate_sui_address(request.destination_address, "destination_address")
        state.quote = await self._estimator.estimate_for_payload(
            request.payload, request.retention_epochs
        )

    async def _bridge_phase(self, state: _RequestState) -> None:
        request = state.request
        if state.transfer is None:
            # Whole base units, rounded up so the buffer is not eroded.
            amount = state.quote.stablecoin_amount.quantize(_BRIDGE_QUANTUM, rounding=ROUND_UP)
            state.transfer = self._bridge.new_transfer(
                amount, request.source_address, request.destination_address
            )

        async def before_broadcast() -> None:
            self._progress.mark_in_flight()

        await self._bridge.burn_and_mint(
            state.transfer.amount,
            request.source_address,
            request.destination_address,
            transfer=state.transfer,
            before_broadcast=before_broadcast,
        )

    async def _swap_phase(self, state: _RequestState, log: LogContext) -> None:
        input_amount = state.transfer.amount
        account = state.request.destination_address

        while True:
            if state.swap_attempts > 0:
                state.quote = await self._estimator.estimate(
                    state.quote.byte_size, state.quote.retention_epochs
                )
                log.info(
                    "Re-quoted before swap",
                    extra={"exchange_rate": str(state.quote.exchange_rate)},
                )

            min_output = self._estimator.min_swap_output(state.quote, input_amount)
            state.swap_attempts += 1
            try:
                state.swap = await self._swap.swap(input_amount, min_output, account)
                return
            except (SlippageExceededError, LiquidityUnavailableError) as e:
                if state.swap_attempts % self._config.swap_attempts == 0:
                    raise
                log.warning(
                    "Swap rejected, retrying with a fresh quote",
                    extra={"attempt": state.swap_attempts, "error_code": e.code},
                )

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def _fail(
        self,
        state: _RequestState,
        log: LogContext,
        phase: RelayerPhase,
        error: RelayerError,
    ) -> RelayerResult:
        self._progress.fail(error, in_flight=_is_burned(state))
        log.warning(
            "Storage request failed",
            extra={
                "phase": phase.value,
                "error_code": error.code,
                "retryable": error.retryable,
                "tx_hash": error.tx_hash,
            },
        )
        return self._result(state, error)

    def _result(self, state: _RequestState, error: Optional[RelayerError] = None) -> RelayerResult:
        snapshot = self._progress.snapshot
        transfer = state.transfer
        swap = state.swap
        return RelayerResult(
            success=error is None,
            request_id=state.request_id,
            blob_id=state.blob.blob_id if state.blob and error is None else None,
            bridge_tx_hash=transfer.source_tx_hash if transfer else None,
            mint_tx_digest=transfer.destination_mint_tx_hash if transfer else None,
            swap_tx_digest=swap.destination_tx_digest if swap else None,
            cost=partial_cost(transfer, swap),
            quote=state.quote,
            blob=state.blob if error is None else None,
            error=snapshot.error if error is not None else None,
        )


def partial_cost(transfer: Optional[BridgeTransfer], swap: Optional[SwapResult]) -> RelayerCost:
    """What a request has spent so far: burned stablecoin, swapped tokens and gas."""
    stablecoin = transfer.amount if transfer is not None and transfer.is_burned else Decimal(0)
    source_gas = transfer.source_gas_fee if transfer is not None else Decimal(0)
    destination_gas = transfer.destination_gas_fee if transfer is not None else Decimal(0)
    if swap is not None:
        destination_gas += swap.gas_fee
    return RelayerCost(
        stablecoin_amount=stablecoin,
        token_amount=swap.output_amount if swap is not None else Decimal(0),
        gas_fees=GasFees(source_chain=source_gas, destination_chain=destination_gas),
    )


def build_price_oracle(config: RelayerConfig) -> PriceOracle:
    """
    Pick the price source from configuration.

    Raises:
        InvalidInputError: If neither a price API nor a static rate is configured
    """
    pricing = config.pricing
    if pricing.price_api_url:
        return HttpPriceOracle(
            pricing.price_api_url,
            from_token=config.destination.usdc_coin_type,
            to_token=config.destination.token_coin_type,
            timeout=pricing.timeout,
        )
    if pricing.static_exchange_rate is not None:
        return StaticPriceOracle(pricing.static_exchange_rate)
    raise InvalidInputError(
        "Configure pricing.price_api_url or pricing.static_exchange_rate",
        field="pricing",
    )
