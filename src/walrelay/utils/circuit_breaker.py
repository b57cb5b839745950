"""
Circuit breaker for storage endpoint health.

Stops hammering an unhealthy publisher or aggregator once it has failed
repeatedly, and lets a few probe requests through after a cooldown.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import (
    Awaitable,
    Callable,
    List,
    Optional,
    Tuple,
    Type,
    TypeVar,
)

from walrelay.config import CircuitBreakerConfig
from walrelay.errors.storage import CircuitBreakerOpenError
from walrelay.utils.logging import get_logger

T = TypeVar("T")

_logger = get_logger(__name__)


class CircuitState(Enum):
    """Circuit breaker states."""

    CLOSED = "closed"
    """Normal operation - requests are allowed."""

    OPEN = "open"
    """Circuit is open - requests are blocked."""

    HALF_OPEN = "half_open"
    """Testing recovery - limited requests allowed."""


@dataclass
class CircuitBreakerState:
    """Internal state of circuit breaker."""

    state: CircuitState = CircuitState.CLOSED
    failures: int = 0
    successes: int = 0
    last_failure_time: float = 0
    failure_times: List[float] = field(default_factory=list)
    """Timestamps of failures within window (in ms)."""


class CircuitBreaker:
    """
    Circuit breaker for endpoint health tracking.

    States:
    - CLOSED: Normal operation, requests allowed
    - OPEN: Circuit tripped, requests blocked
    - HALF_OPEN: Testing if service recovered

    Only exceptions listed in ``counted_errors`` trip the breaker, so a
    rejected upload (a caller problem) does not mark the endpoint unhealthy.

    Example:
        ```python
        breaker = CircuitBreaker(
            CircuitBreakerConfig(failure_threshold=5),
            name="https://publisher.walrus-testnet.walrus.space",
        )
        blob = await breaker.execute(do_upload)
        ```
    """

    def __init__(
        self,
        config: Optional[CircuitBreakerConfig] = None,
        *,
        name: Optional[str] = None,
        counted_errors: Tuple[Type[BaseException], ...] = (Exception,),
    ) -> None:
        self.config = config or CircuitBreakerConfig()
        self.name = name
        self._counted_errors = counted_errors
        self._state = CircuitBreakerState()
        self._lock = asyncio.Lock()

    @property
    def state(self) -> CircuitState:
        """Get current circuit state."""
        return self._state.state

    @property
    def is_open(self) -> bool:
        return self._state.state == CircuitState.OPEN

    @property
    def is_closed(self) -> bool:
        return self._state.state == CircuitState.CLOSED

    @property
    def failure_count(self) -> int:
        """Get current failure count within window."""
        return self._state.failures

    def _check_reset_timeout(self) -> None:
        if self._state.state != CircuitState.OPEN:
            return

        elapsed_ms = (time.time() - self._state.last_failure_time) * 1000
        if elapsed_ms >= self.config.reset_timeout_ms:
            self._state.state = CircuitState.HALF_OPEN
            self._state.successes = 0

    def _clean_old_failures(self) -> None:
        window_start = time.time() * 1000 - self.config.failure_window_ms
        self._state.failure_times = [
            t for t in self._state.failure_times if t > window_start
        ]
        self._state.failures = len(self._state.failure_times)

    async def record_success(self) -> None:
        """
        Record a successful operation.

        In HALF_OPEN state, counts successes toward recovery.
        """
        async with self._lock:
            if self._state.state == CircuitState.HALF_OPEN:
                self._state.successes += 1

                if self._state.successes >= self.config.success_threshold:
                    self._state = CircuitBreakerState()
                    _logger.info("Circuit closed", extra={"endpoint": self.name})

    async def record_failure(self) -> None:
        """
        Record a failed operation.

        Opens the circuit once the threshold is reached within the window.
        Any failure in HALF_OPEN reopens it immediately.
        """
        async with self._lock:
            self._state.failure_times.append(time.time() * 1000)
            self._state.last_failure_time = time.time()
            self._clean_old_failures()

            if (
                self._state.state == CircuitState.HALF_OPEN
                or self._state.failures >= self.config.failure_threshold
            ):
                if self._state.state != CircuitState.OPEN:
                    _logger.warning(
                        "Circuit opened",
                        extra={"endpoint": self.name, "failures": self._state.failures},
                    )
                self._state.state = CircuitState.OPEN

    async def execute(self, fn: Callable[[], Awaitable[T]]) -> T:
        """
        Execute function with circuit breaker protection.

        Args:
            fn: Async function to execute

        Returns:
            Result of fn

        Raises:
            CircuitBreakerOpenError: If circuit is open
        """
        if not self.config.enabled:
            return await fn()

        async with self._lock:
            self._check_reset_timeout()

        if self.is_open:
            reset_at = self._state.last_failure_time + (
                self.config.reset_timeout_ms / 1000
            )
            raise CircuitBreakerOpenError(
                "Circuit breaker is open - endpoint unavailable",
                endpoint=self.name,
                reset_at=reset_at,
            )

        try:
            result = await fn()
        except self._counted_errors:
            await self.record_failure()
            raise
        await self.record_success()
        return result

    def reset(self) -> None:
        """Manually reset circuit breaker to closed state."""
        self._state = CircuitBreakerState()

    def get_stats(self) -> dict:
        """Get circuit breaker statistics."""
        return {
            "endpoint": self.name,
            "state": self._state.state.value,
            "failures": self._state.failures,
            "successes": self._state.successes,
            "last_failure_time": self._state.last_failure_time,
        }
