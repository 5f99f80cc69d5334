# FILE: services/formatting.py
"""
Money / number formatting for spoken and displayed responses.
"""

from typing import Union

Number = Union[int, float]

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "INR": "₹",
    "CAD": "CA$",
    "AUD": "A$",
}

# Currencies without minor units
ZERO_DECIMAL = {"JPY"}


def fmt_number(n: Number) -> str:
    """Thousands separators, no trailing .0 on whole numbers."""
    if float(n).is_integer():
        return f"{int(n):,}"
    return f"{n:,}"


def fmt_money(n: Number, currency: str = "USD") -> str:
    """
    fmt_money(48234567.12) -> '$48,234,567.12'
    Unknown codes fall back to '<CODE> 1,234.00'.
    """
    currency = (currency or "USD").upper()
    amount = f"{abs(n):,.0f}" if currency in ZERO_DECIMAL else f"{abs(n):,.2f}"
    sign = "-" if n < 0 else ""

    symbol = CURRENCY_SYMBOLS.get(currency)
    if symbol:
        return f"{sign}{symbol}{amount}"
    return f"{sign}{currency} {amount}"
