from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Any) -> Decimal:
    """Convert a wire/DB amount into a Decimal quantized to minor units.

    Floats go through ``str`` so that ``0.1`` becomes ``Decimal("0.10")``
    and not its binary expansion. Empty values count as zero.
    """

    if value is None or value == "":
        return ZERO
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise ValueError(f"Invalid amount: {value!r}") from exc
    if not amount.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def money_sum(amounts: Iterable[Any]) -> Decimal:
    total = ZERO
    for amount in amounts:
        total += to_money(amount)
    return total


def to_wire(amount: Decimal) -> int | float:
    """JSON-friendly number: whole amounts as int, otherwise float."""

    amount = to_money(amount)
    if amount == amount.to_integral_value():
        return int(amount)
    return float(amount)


def round_percent(numerator: Decimal, denominator: Decimal) -> int:
    """Round ``100 * numerator / denominator`` half-up; 0 when denominator <= 0."""

    if denominator <= 0:
        return 0
    ratio = (Decimal(100) * numerator) / denominator
    return int(ratio.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def format_money(amount: Decimal, label: str) -> str:
    return f"{label} {to_money(amount):,.2f}"
