"""Fixed-point helpers for monetary amounts.

Amounts travel as decimal strings such as ``"10.50"`` and are handled as
``Decimal`` values quantized to two places.  Binary floats are rejected
outright so repeated additions can never drift.
"""

from decimal import Decimal, InvalidOperation

CENT = Decimal("0.01")
MIN_WITHDRAWAL = Decimal("5.00")
# NUMERIC(10, 2) holds at most eight integer digits.
MAX_AMOUNT = Decimal("99999999.99")


def parse_amount(value) -> Decimal:
    """Parse ``value`` into a non-negative ``Decimal`` with exactly 2 places.

    Accepts strings and ints. Raises ``ValueError`` for floats, more than
    two fractional digits, negative or non-finite values, and values that
    do not fit the storage column.
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise ValueError("amount must be a decimal string, not a float")
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, int):
        amount = Decimal(value)
    elif isinstance(value, str):
        try:
            amount = Decimal(value.strip())
        except InvalidOperation:
            raise ValueError(f"invalid amount: {value!r}")
    else:
        raise ValueError("amount must be a decimal string")

    if not amount.is_finite():
        raise ValueError("amount must be finite")
    if amount.as_tuple().exponent < -2:
        raise ValueError("amount may have at most 2 decimal places")
    if amount < 0:
        raise ValueError("amount must not be negative")
    if amount > MAX_AMOUNT:
        raise ValueError("amount is too large")
    return amount.quantize(CENT)


def format_amount(amount: Decimal) -> str:
    return str(Decimal(amount).quantize(CENT))
