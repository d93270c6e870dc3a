"""
Price Parser
============

Converts heterogeneous catalog cells (numbers, locale-formatted strings,
empty cells) into a non-negative Decimal amount.

Example inputs:
- "100,50" → 100.50
- "$ 1500" → 1500
- 99.9 → 99.9 (numeric passthrough)
- "1,234.56" → 1.234 (comma becomes the decimal point, the rest is dropped)
- "N/A" → 0

The comma/period rule is a lossy heuristic: the first comma is always read
as the decimal separator, so thousands separators are not understood.
Parsing never fails; anything uninterpretable becomes zero.
"""

import math
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Final

ZERO: Final[Decimal] = Decimal("0")

# Everything that is not a digit or a separator
_NOISE_RE: Final[re.Pattern[str]] = re.compile(r"[^0-9.,]")

# Longest valid leading float literal once separators are normalized
_LEADING_NUMBER_RE: Final[re.Pattern[str]] = re.compile(r"\d+(?:\.\d*)?|\.\d+")


# =============================================================================
# Price Extraction
# =============================================================================


def parse_price(value: Any) -> Decimal:
    """
    Parse a catalog cell into a non-negative Decimal.

    Rules, in order:
    1. Empty, None, NaN or zero input → 0
    2. Numeric input (int, float, Decimal) → returned as a Decimal unchanged,
       negatives clamped to 0
    3. Anything else is stringified, every character other than a digit,
       comma or period is removed, the first comma becomes a period and the
       longest valid leading number is read (0 if there is none)

    Args:
        value: Raw cell value

    Returns:
        Parsed amount, never negative

    Examples:
        >>> parse_price("100,50")
        Decimal('100.50')

        >>> parse_price(42)
        Decimal('42')

        >>> parse_price("1,234.56")
        Decimal('1.234')

        >>> parse_price("sin precio")
        Decimal('0')
    """
    if value is None or isinstance(value, bool):
        return ZERO

    if isinstance(value, (int, float, Decimal)):
        return _from_number(value)

    text = str(value)
    if not text:
        return ZERO

    cleaned = _NOISE_RE.sub("", text).replace(",", ".", 1)
    match = _LEADING_NUMBER_RE.match(cleaned)
    if not match:
        return ZERO

    try:
        return Decimal(match.group(0))
    except InvalidOperation:
        return ZERO


def _from_number(value: int | float | Decimal) -> Decimal:
    """Convert an already numeric cell, mapping NaN/inf/negatives to zero."""
    if isinstance(value, float) and not math.isfinite(value):
        return ZERO

    amount = value if isinstance(value, Decimal) else Decimal(str(value))
    if not amount.is_finite() or amount <= 0:
        return ZERO
    return amount
