"""Decimal coercion and boundary checks shared by the engine."""

from decimal import Decimal, InvalidOperation
from typing import Type

from .errors import InvalidAmountError, ValidationError


def to_decimal(value, field: str = "value", error: Type[ValidationError] = InvalidAmountError) -> Decimal:
    """
    Convert a number to a finite Decimal.

    Floats go through str() so 0.02 stays 0.02 rather than its binary expansion.
    """
    if isinstance(value, bool):
        raise error(field, f"{field} must be a number, got {value!r}", value)
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError, TypeError):
            raise error(field, f"{field} must be a number, got {value!r}", value)
    if not result.is_finite():
        raise error(field, f"{field} must be finite, got {value!r}", value)
    return result


def require_positive(value, field: str, error: Type[ValidationError] = InvalidAmountError) -> Decimal:
    """Coerce and reject zero or negative values."""
    result = to_decimal(value, field, error)
    if result <= 0:
        raise error(field, f"{field} must be positive, got {result}", result)
    return result


def require_non_negative(value, field: str, error: Type[ValidationError] = InvalidAmountError) -> Decimal:
    """Coerce and reject negative values."""
    result = to_decimal(value, field, error)
    if result < 0:
        raise error(field, f"{field} must not be negative, got {result}", result)
    return result
