"""
walrelay utilities: logging, retry, circuit breaker and validation.
"""

from walrelay.utils.logging import (
    LogContext,
    configure_logging,
    get_logger,
    set_level,
)
from walrelay.utils.retry import RetryConfig, calculate_delay, retry_async
from walrelay.utils.validation import (
    from_base_units,
    to_base_units,
    to_decimal,
    validate_evm_address,
    validate_positive_amount,
    validate_sui_address,
)

__all__ = [
    # Logging
    "get_logger",
    "configure_logging",
    "set_level",
    "LogContext",
    # Retry
    "RetryConfig",
    "calculate_delay",
    "retry_async",
    # Validation
    "validate_evm_address",
    "validate_sui_address",
    "validate_positive_amount",
    "to_decimal",
    "to_base_units",
    "from_base_units",
]
