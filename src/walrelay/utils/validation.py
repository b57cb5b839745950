"""
Input validation helpers shared by the relayer clients.

All helpers raise InvalidInputError so that caller mistakes surface as a
single, non-retryable error kind.
"""

from __future__ import annotations

import re
from decimal import ROUND_DOWN, Decimal, InvalidOperation
from typing import Union

from walrelay.errors.base import InvalidInputError

EVM_ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")
SUI_ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{64}$")


def validate_evm_address(address: str, field_name: str = "address") -> str:
    """
    Validate an EVM address (0x + 40 hex chars).

    Returns:
        The address unchanged
    """
    if not address or not isinstance(address, str):
        raise InvalidInputError(f"{field_name} is required", field=field_name)
    if not EVM_ADDRESS_PATTERN.match(address):
        raise InvalidInputError(
            f"{field_name} must be 0x followed by 40 hex characters",
            field=field_name,
        )
    return address


def validate_sui_address(address: str, field_name: str = "address") -> str:
    """
    Validate a destination-chain address (0x + 64 hex chars).

    Returns:
        Lowercased address
    """
    if not address or not isinstance(address, str):
        raise InvalidInputError(f"{field_name} is required", field=field_name)
    if not SUI_ADDRESS_PATTERN.match(address):
        raise InvalidInputError(
            f"{field_name} must be 0x followed by 64 hex characters",
            field=field_name,
        )
    return address.lower()


def to_decimal(value: Union[Decimal, int, str], field_name: str = "amount") -> Decimal:
    """
    Convert to Decimal without going through float.

    Floats are refused so binary rounding never enters currency math.
    """
    if isinstance(value, float):
        raise InvalidInputError(f"{field_name} must not be a float", field=field_name)
    try:
        result = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidInputError(f"{field_name} must be a decimal number", field=field_name) from None
    if not result.is_finite():
        raise InvalidInputError(f"{field_name} must be finite", field=field_name)
    return result


def validate_positive_amount(value: Union[Decimal, int, str], field_name: str = "amount") -> Decimal:
    """Validate a strictly positive decimal amount."""
    amount = to_decimal(value, field_name)
    if amount <= 0:
        raise InvalidInputError(f"{field_name} must be positive", field=field_name)
    return amount


def to_base_units(amount: Decimal, decimals: int) -> int:
    """
    Convert a token amount to integer base units, truncating dust.

    Example:
        >>> to_base_units(Decimal("430.08"), 6)
        430080000
    """
    return int((amount * (Decimal(10) ** decimals)).to_integral_value(rounding=ROUND_DOWN))


def from_base_units(units: int, decimals: int) -> Decimal:
    """Convert integer base units to a token amount."""
    return Decimal(units) / (Decimal(10) ** decimals)
