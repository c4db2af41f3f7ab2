"""Amount parsing utilities."""

import re

FRACTION_PATTERN = re.compile(r"^(-?)(\d+)\s+(\d+)/(\d+)$")
BARE_FRACTION_PATTERN = re.compile(r"^(-?)(\d+)/(\d+)$")


def parse_amount(amount_str: str) -> float:
    """Parse a QIF amount, price or quantity string into a float.

    Handles various formats:
    - "1502.50"
    - "-1,502.50"
    - "$1,502.50"
    - "543 3/4" (fractional share quantities used by older exports)
    - "3/4"

    Args:
        amount_str: Amount string

    Returns:
        Float amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if amount_str is None or not amount_str.strip():
        raise ValueError("Empty amount string")

    cleaned = amount_str.replace(",", "").replace("$", "").strip()

    fraction = FRACTION_PATTERN.match(cleaned)
    if fraction:
        sign, whole, numerator, denominator = fraction.groups()
        value = int(whole) + _divide(numerator, denominator, amount_str)
        return -value if sign else value

    fraction = BARE_FRACTION_PATTERN.match(cleaned)
    if fraction:
        sign, numerator, denominator = fraction.groups()
        value = _divide(numerator, denominator, amount_str)
        return -value if sign else value

    try:
        return float(cleaned)
    except ValueError as e:
        raise ValueError(f"Could not parse amount '{amount_str.strip()}': {e}")


def _divide(numerator: str, denominator: str, original: str) -> float:
    if int(denominator) == 0:
        raise ValueError(f"Could not parse amount '{original.strip()}': zero denominator")
    return int(numerator) / int(denominator)
