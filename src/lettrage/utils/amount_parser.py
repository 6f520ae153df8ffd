"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
import re


def clean_statement_amount(amount_str: str) -> Decimal:
    """Parse a bank statement amount cell into its absolute value.

    Every character other than digits, ".", "," and "-" is dropped, then the
    first "," becomes the decimal point. The sign is discarded: reconciliation
    compares magnitudes, not debit/credit direction.

    Examples:
    - "150,00" -> Decimal("150.00")
    - "-89.90 EUR" -> Decimal("89.90")
    - "1 234,56 €" -> Decimal("1234.56")

    Args:
        amount_str: Raw amount cell

    Returns:
        Non-negative Decimal amount

    Raises:
        ValueError: If the cell does not hold a finite number
    """
    cleaned = re.sub(r"[^\d.,-]", "", amount_str or "").replace(",", ".", 1)
    # Longest leading number; trailing garbage such as a second "." is ignored
    match = re.match(r"-?\d*\.?\d+|-?\d+\.?", cleaned)
    if match is None:
        raise ValueError(f"Could not parse amount '{amount_str}'")
    return abs(Decimal(match.group(0)))


def parse_amount(amount_str: str) -> Decimal:
    """Parse a user-entered amount string into a Decimal.

    Handles various formats:
    - "123.45"
    - "€123.45"
    - "-123.45"
    - "123,45"
    - "1 234.56"

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    amount_str = amount_str.strip()

    # Remove currency symbols and thousands separators made of spaces
    amount_str = re.sub(r"[$€£¥\s]", "", amount_str)

    if "," in amount_str and "." not in amount_str:
        amount_str = amount_str.replace(",", ".")
    else:
        amount_str = amount_str.replace(",", "")

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}': {e}")
    if not amount.is_finite():
        raise ValueError(f"Amount '{amount_str}' is not a finite number")
    return amount
