from __future__ import annotations

from decimal import Decimal
from typing import Any

from ..core.constants import PAYMENT_AMOUNT_ERROR
from ..core.exceptions import ValidationError
from .money import to_money


def require_non_empty(value: Any, field_name: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_amount(value: Any, field_name: str) -> Decimal:
    try:
        amount = to_money(value)
    except ValueError as exc:
        raise ValidationError(f"{field_name} must be a number") from exc
    if amount < 0:
        raise ValidationError(f"{field_name} cannot be negative")
    return amount


def require_payment_amount(value: Any) -> Decimal:
    try:
        amount = to_money(value)
    except ValueError as exc:
        raise ValidationError(PAYMENT_AMOUNT_ERROR) from exc
    if amount <= 0:
        raise ValidationError(PAYMENT_AMOUNT_ERROR)
    return amount
