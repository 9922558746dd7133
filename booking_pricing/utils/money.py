"""Money helpers. Amounts are integer minor units (e.g. paise) in one currency."""

from decimal import Decimal, ROUND_HALF_UP


def round_half_up(value: float) -> int:
    """Round a float amount to whole minor units, halves away from zero.

    Goes through str() so that values like 2.675 are rounded on their
    printed representation rather than their binary approximation.
    """
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_minor_units(amount: int, currency: str = "INR") -> str:
    """Format amount as currency string."""
    symbols = {"INR": "₹", "USD": "$", "EUR": "€", "GBP": "£"}
    symbol = symbols.get(currency.upper(), currency + " ")
    return f"{symbol}{amount / 100:.2f}"
