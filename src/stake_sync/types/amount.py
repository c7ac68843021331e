"""
Token amounts as arbitrary-precision decimal strings.

On-chain amounts are uint256 values. They routinely exceed the 53 bits a
double can hold exactly, so they never pass through a float. The canonical
form is the base-10 digits of the integer with no sign, no leading zeros
and no separators. ``"0"`` is the only value starting with a zero.

Canonical strings compare equal exactly when the integers are equal. The
store matches unstake events on this string, so every amount must be
normalized before it reaches the store.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BeforeValidator


def normalize_amount(value: Any) -> str:
    """
    Convert an integer-like value to its canonical decimal string.

    Args:
        value: A non-negative ``int`` or a string of decimal digits.

    Returns:
        The canonical decimal string.

    Raises:
        ValueError: If the value is negative, fractional, a bool, or not numeric.
    """
    # bool is an int subclass; a True amount is always a decoding bug.
    if isinstance(value, bool):
        raise ValueError("amount must be an integer, got bool")

    if isinstance(value, int):
        if value < 0:
            raise ValueError(f"amount must be non-negative, got {value}")
        return str(value)

    if isinstance(value, str):
        digits = value.strip()
        if not digits or not digits.isascii() or not digits.isdigit():
            raise ValueError(f"amount must be a decimal integer string, got {value!r}")
        return str(int(digits))

    raise ValueError(f"amount must be an int or decimal string, got {type(value).__name__}")


Amount = Annotated[str, BeforeValidator(normalize_amount)]
"""Canonical decimal string amount, validated on model construction."""
