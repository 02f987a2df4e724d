"""Utility functions for the loan schedule calculator.

This module provides helpers for turning user input into ``Decimal`` values
and for the half-away-from-zero rounding that the engine applies to every
intermediate amount.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Context, Decimal, InvalidOperation, getcontext
from typing import Union

getcontext().prec = 28  # increase decimal precision to avoid rounding errors

Number = Union[Decimal, int, float, str]

_TRUE_STRINGS = {"1", "true", "yes", "on", "y"}
_FALSE_STRINGS = {"0", "false", "no", "off", "n", ""}


def decimal_from_str(value: str) -> Decimal:
    """Convert a numeric string into a ``Decimal``.

    The function strips any commas and handles both integer and float-like
    strings. It raises ``ValueError`` if conversion fails.
    """
    try:
        cleaned = value.replace(",", "").strip()
        return Decimal(cleaned)
    except (InvalidOperation, AttributeError) as exc:
        raise ValueError(f"Invalid numeric value: {value}") from exc


def to_decimal(value: Number) -> Decimal:
    """Coerce ``value`` into a ``Decimal``.

    Floats go through ``str`` so that ``2.56`` becomes ``Decimal("2.56")``
    rather than its binary expansion.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Invalid numeric value: {value!r}")
    if isinstance(value, str):
        return decimal_from_str(value)
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    raise ValueError(f"Invalid numeric value: {value!r}")


def round_to(value: Decimal, digits: int) -> Decimal:
    """Round ``value`` to ``digits`` fractional digits, halves away from zero.

    The quantize runs with enough precision for every integer digit plus
    ``digits``, so large amounts at high rounding settings do not overflow
    the 28-digit default context.
    """
    context = Context(prec=max(28, value.adjusted() + digits + 2))
    return value.quantize(Decimal(1).scaleb(-digits), rounding=ROUND_HALF_UP, context=context)


def parse_bool(value: Union[bool, int, str]) -> bool:
    """Interpret common textual spellings of a boolean flag."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    text = str(value).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    raise ValueError(f"Invalid boolean value: {value}")
