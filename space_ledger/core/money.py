"""Decimal helpers for monetary amounts and derived ratios."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Context, Decimal, InvalidOperation

# Balances are stored as Numeric(19, 4): at most 15 integer digits.
MONEY_DECIMAL_PLACES = 4
MONEY_INTEGER_DIGITS = 15
MONEY_QUANTUM = Decimal(1).scaleb(-MONEY_DECIMAL_PLACES)

# Ratios (progress, shares, growth) are computed to 10 significant digits.
RATIO_CONTEXT = Context(prec=10, rounding=ROUND_HALF_UP)

ZERO = Decimal("0")
ONE = Decimal("1")
ONE_HUNDRED = Decimal("100")


def to_decimal(value: Decimal | int | str | None) -> Decimal | None:
    """Convert user input to ``Decimal`` without going through ``float``.

    NaN, infinities and magnitudes the money column cannot hold raise
    ``ValueError``.
    """
    if value is None:
        return None
    if isinstance(value, float):
        raise TypeError("monetary amounts must not be floats")
    if not isinstance(value, Decimal):
        try:
            value = Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise ValueError(f"not a decimal amount: {value!r}") from exc
    if not value.is_finite():
        raise ValueError(f"not a finite amount: {value!r}")
    if value != ZERO and value.adjusted() >= MONEY_INTEGER_DIGITS:
        raise ValueError(f"amount out of range: {value!r}")
    return value


def to_money(value: Decimal | int | str | None) -> Decimal | None:
    """Like :func:`to_decimal`, but amounts finer than 0.0001 are rejected, not rounded."""
    amount = to_decimal(value)
    if amount is not None and amount != round_money(amount):
        raise ValueError(f"amount has more than {MONEY_DECIMAL_PLACES} decimal places: {amount!r}")
    return amount


def round_money(value: Decimal) -> Decimal:
    return value.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def ratio(numerator: Decimal, denominator: Decimal) -> Decimal:
    return RATIO_CONTEXT.divide(numerator, denominator)


def percentage(part: Decimal, whole: Decimal) -> Decimal:
    """``part * 100 / whole`` rounded to 10 significant digits."""
    return RATIO_CONTEXT.divide(part * ONE_HUNDRED, whole)
