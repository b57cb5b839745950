"""
Attestation service client.

After a burn, the bridge's off-chain attesters sign the emitted message.
The signature is fetched by message hash; it usually takes minutes, so
polling is bounded by an overall timeout.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional

import httpx
from eth_utils import to_bytes

from walrelay.config import AttestationConfig
from walrelay.constants import ATTESTATION_STATUS_COMPLETE
from walrelay.errors.chain import AttestationTimeoutError
from walrelay.utils.logging import get_logger

_logger = get_logger(__name__)

STATUS_PENDING = "pending_confirmations"
STATUS_NOT_FOUND = "not_found"
STATUS_UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class AttestationResponse:
    status: str
    attestation: Optional[bytes] = None

    @property
    def is_complete(self) -> bool:
        return self.status == ATTESTATION_STATUS_COMPLETE and self.attestation is not None


class AttestationService:
    """
    Polls ``GET {base_url}/v1/attestations/{messageHash}``.

    Shared by concurrent requests; holds no per-request state.

    Example:
        ```python
        service = AttestationService(AttestationConfig(poll_interval=5, timeout=1800))
        attestation = await service.poll("0x5f0c...", tx_hash=burn_tx_hash)
        ```
    """

    def __init__(self, config: Optional[AttestationConfig] = None) -> None:
        self._config = config or AttestationConfig()

    @property
    def config(self) -> AttestationConfig:
        return self._config

    async def fetch(self, message_hash: str) -> AttestationResponse:
        """
        Fetch the current attestation state once.

        Transient failures are reported as a non-complete status rather
        than raised, so a single bad poll does not end the wait.
        """
        url = f"{self._config.base_url.rstrip('/')}/v1/attestations/{message_hash}"
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self._config.request_timeout)
            ) as client:
                response = await client.get(url)
        except httpx.HTTPError as e:
            _logger.warning(
                "Attestation request failed",
                extra={"message_hash": message_hash, "error": str(e)},
            )
            return AttestationResponse(status=STATUS_UNAVAILABLE)

        if response.status_code == 404:
            return AttestationResponse(status=STATUS_NOT_FOUND)
        if response.status_code != 200:
            _logger.warning(
                "Attestation service returned error status",
                extra={"message_hash": message_hash, "status_code": response.status_code},
            )
            return AttestationResponse(status=STATUS_UNAVAILABLE)

        try:
            body = response.json()
        except ValueError:
            return AttestationResponse(status=STATUS_UNAVAILABLE)
        if not isinstance(body, dict):
            return AttestationResponse(status=STATUS_UNAVAILABLE)

        status = str(body.get("status") or STATUS_PENDING)
        raw = body.get("attestation")
        if status == ATTESTATION_STATUS_COMPLETE and isinstance(raw, str) and raw.startswith("0x") and len(raw) > 2:
            try:
                return AttestationResponse(status=status, attestation=to_bytes(hexstr=raw))
            except ValueError:
                return AttestationResponse(status=STATUS_UNAVAILABLE)
        return AttestationResponse(status=status)

    async def poll(self, message_hash: str, *, tx_hash: Optional[str] = None) -> bytes:
        """
        Poll until the attestation is complete or the timeout elapses.

        Raises:
            AttestationTimeoutError: If no attestation within the configured timeout
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._config.timeout
        attempts = 0
        last_status: Optional[str] = None

        while True:
            attempts += 1
            response = await self.fetch(message_hash)
            if response.is_complete:
                _logger.info(
                    "Attestation received",
                    extra={"message_hash": message_hash, "attempts": attempts},
                )
                return response.attestation  # type: ignore[return-value]

            last_status = response.status
            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            _logger.debug(
                "Attestation pending",
                extra={"message_hash": message_hash, "status": last_status, "attempt": attempts},
            )
            await asyncio.sleep(min(self._config.poll_interval, remaining))

        raise AttestationTimeoutError(
            message_hash,
            self._config.timeout,
            tx_hash=tx_hash,
            last_status=last_status,
            details={"attempts": attempts},
        )
