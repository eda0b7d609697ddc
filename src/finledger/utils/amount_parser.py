"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
import re

CENT = Decimal("0.01")


def quantize_amount(amount: Decimal | int | str) -> Decimal:
    """Return amount as a fixed-point decimal with two fractional digits.

    Floats are rejected so binary rounding error never enters the ledger.

    Raises:
        ValueError: If amount is a float or not a valid number
    """
    if isinstance(amount, float):
        raise ValueError(f"Refusing float amount {amount!r}; use Decimal or str")
    try:
        return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, TypeError) as e:
        raise ValueError(f"Could not parse amount '{amount}': {e}")


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "15000"
    - "-15,000"
    - "₩15,000" / "15,000원"
    - "+1,234.56"
    - "(15,000)" (negative in parentheses)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount with two fractional digits

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if amount_str is None or not str(amount_str).strip():
        raise ValueError("Empty amount string")

    amount_str = str(amount_str).strip()

    # Handle parentheses notation (negative)
    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    # Remove currency symbols and the won suffix
    amount_str = re.sub(r"[$€£¥₩]|원$", "", amount_str.strip())

    amount_str = amount_str.replace(",", "").replace(" ", "")

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}': {e}")
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}': not a finite number")
    if is_negative:
        amount = -amount
    return quantize_amount(amount)
