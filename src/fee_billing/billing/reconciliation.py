from __future__ import annotations

from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from ..common.money import ZERO, money_sum, to_money
from ..core.enums import BillStatus
from ..structures.model import FeeItem
from .model import FeeBill, PaymentPreview


def total_amount(items: Iterable[FeeItem]) -> Decimal:
    return money_sum(i.amount for i in items)


def balance(total: Decimal, paid: Decimal) -> Decimal:
    return max(ZERO, to_money(total) - to_money(paid))


def preview_status(balance_amount: Decimal) -> BillStatus:
    """Two-way status used while a payment is being entered."""

    return BillStatus.PAID if balance_amount <= 0 else BillStatus.PARTIAL


def resolve_status(
    balance_amount: Decimal,
    paid_amount: Decimal,
    due_date: Optional[date],
    today: Optional[date] = None,
) -> BillStatus:
    """Authoritative bill status.

    Overdue is only considered when ``today`` is given; without it the
    result is one of Paid/Partial/Pending.
    """

    if balance_amount <= 0:
        return BillStatus.PAID
    if today is not None and due_date is not None and due_date < today:
        return BillStatus.OVERDUE
    if paid_amount > 0:
        return BillStatus.PARTIAL
    return BillStatus.PENDING


def preview_payment(bill: FeeBill, payment_amount: Decimal) -> PaymentPreview:
    paid = bill.paid_amount + to_money(payment_amount)
    remaining = balance(bill.total_amount, paid)
    return PaymentPreview(paid_amount=paid, balance_amount=remaining, status=preview_status(remaining))


def apply_payment(bill: FeeBill, payment_amount: Decimal, *, today: Optional[date] = None) -> FeeBill:
    """Accumulate ``payment_amount`` into the bill and recompute balance/status.

    Overpayment is absorbed: the balance floors at zero.
    """

    paid = bill.paid_amount + to_money(payment_amount)
    remaining = balance(bill.total_amount, paid)
    return replace(
        bill,
        paid_amount=paid,
        balance_amount=remaining,
        status=resolve_status(remaining, paid, bill.due_date, today),
    )


def reconcile(bill: FeeBill, *, today: Optional[date] = None) -> FeeBill:
    remaining = balance(bill.total_amount, bill.paid_amount)
    status = resolve_status(remaining, bill.paid_amount, bill.due_date, today)
    if today is None and bill.status == BillStatus.OVERDUE and remaining > 0:
        status = BillStatus.OVERDUE
    return replace(bill, balance_amount=remaining, status=status)
