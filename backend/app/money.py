"""
Decimal money helpers.

Amounts are stored and exchanged as strings with two fractional digits
("1234.50"). All arithmetic happens on Decimal; every value written back to
the database goes through format_money.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")
# Largest magnitude accepted from users; keeps quantize inside the default context
MAX_INTEGER_DIGITS = 15

MoneyLike = Union[str, int, Decimal, None]


def parse_money(value: MoneyLike) -> Decimal:
    """Parse a stored or submitted amount; empty values count as zero"""
    if value is None or value == "":
        return ZERO
    if isinstance(value, float):
        value = repr(value)
    try:
        return Decimal(str(value).strip().replace(",", ""))
    except InvalidOperation:
        raise ValueError(f"Invalid money amount: {value!r}")


def quantize_money(value: MoneyLike) -> Decimal:
    return parse_money(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def format_money(value: MoneyLike) -> str:
    return str(quantize_money(value))


def has_at_most_two_decimals(value: Decimal) -> bool:
    return value == value.quantize(CENTS)


def validate_money_input(value, *, positive: bool = False) -> str:
    """Validate a submitted amount and return its canonical string form.

    Used by the pydantic schemas; raises ValueError so pydantic reports it
    against the offending field.
    """
    if isinstance(value, bool):
        raise ValueError("Enter a valid amount")
    amount = parse_money(value)
    if not amount.is_finite() or (amount and amount.adjusted() >= MAX_INTEGER_DIGITS):
        raise ValueError("Enter a valid amount")
    if not has_at_most_two_decimals(amount):
        raise ValueError("Amount may have at most two decimal places")
    if positive and amount <= 0:
        raise ValueError("Enter a valid amount")
    return format_money(amount)
