"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
from typing import Any
import re

_NON_NUMERIC = re.compile(r"[^0-9.\-]")


def parse_amount(value: Any) -> Decimal:
    """Parse a statement amount into a Decimal.

    Everything except digits, the decimal point and a leading minus sign is
    stripped before parsing, which tolerates formats such as:
    - "123.45"
    - "$1,234.56"
    - "-₹ 500.00"
    - "1 234.56 EUR"

    Numeric cell values (int, float, Decimal) from spreadsheets are accepted
    as-is. Floats go through their shortest string form so 0.1 stays 0.1.

    Args:
        value: Amount string or number

    Returns:
        Decimal amount

    Raises:
        ValueError: If the value is empty or cannot be parsed
    """
    if isinstance(value, bool):
        raise ValueError(f"Could not parse amount '{value}'")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))

    if value is None or not str(value).strip():
        raise ValueError("Empty amount string")

    cleaned = _NON_NUMERIC.sub("", str(value))
    is_negative = cleaned.startswith("-")
    # Minus signs anywhere but the front are noise (e.g. "12-" suffix notation is not supported)
    digits = cleaned.replace("-", "")

    if not digits or digits == ".":
        raise ValueError(f"Could not parse amount '{value}'")

    try:
        amount = Decimal(digits)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{value}': {e}") from e

    return -amount if is_negative else amount
