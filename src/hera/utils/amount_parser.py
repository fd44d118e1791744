"""Amount parsing utilities for CLI options."""

import re
from decimal import Decimal, InvalidOperation

_CURRENCY_SYMBOLS = re.compile(r"[$€£¥₹]")
_CURRENCY_CODE = re.compile(r"^([A-Z]{3})\s+|\s+([A-Z]{3})$")


def split_currency(amount_str: str) -> tuple[str, str | None]:
    """Split an ISO currency code off an amount string.

    "AED 150.00" and "150.00 AED" both give ("150.00", "AED").
    """
    text = amount_str.strip()
    match = _CURRENCY_CODE.search(text)
    if match is None:
        return text, None
    currency = match.group(1) or match.group(2)
    return _CURRENCY_CODE.sub("", text).strip(), currency


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles:
    - "150.00", "-150.00", "1,234.56"
    - "$150.00", "-$150.00"
    - "AED 150.00", "150.00 AED"
    - "(150.00)" (negative in parentheses)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    text, _ = split_currency(amount_str)

    is_negative = False
    if text.startswith("(") and text.endswith(")"):
        is_negative = True
        text = text[1:-1]

    text = _CURRENCY_SYMBOLS.sub("", text).replace(",", "").strip()

    try:
        amount = Decimal(text)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    return -amount if is_negative else amount
