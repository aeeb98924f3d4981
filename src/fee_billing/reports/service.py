from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable, Iterable, Sequence

from ..common.datetime_utils import format_iso_date
from ..common.money import ZERO, format_money, money_sum, round_percent, to_wire
from ..core.enums import BillStatus, FeeType
from ..billing.model import FeeBill


@dataclass(frozen=True)
class CollectionSummary:
    total_revenue: Decimal
    total_outstanding: Decimal
    collection_rate: int


@dataclass(frozen=True)
class CollectionStats:
    total_collected: Decimal
    total_pending: Decimal
    overdue_count: int


@dataclass(frozen=True)
class FeeReport:
    total_amount: Decimal
    paid_amount: Decimal
    pending_amount: Decimal
    overdue_amount: Decimal
    payment_percentage: int
    by_class: dict[str, Decimal] = field(default_factory=dict)


def summarize(bills: Iterable[FeeBill]) -> CollectionSummary:
    bills = list(bills)
    revenue = money_sum(b.total_amount for b in bills)
    outstanding = money_sum(b.balance_amount for b in bills)
    return CollectionSummary(
        total_revenue=revenue,
        total_outstanding=outstanding,
        collection_rate=round_percent(revenue - outstanding, revenue),
    )


def collection_stats(bills: Iterable[FeeBill]) -> CollectionStats:
    bills = list(bills)
    return CollectionStats(
        total_collected=money_sum(b.paid_amount for b in bills),
        total_pending=money_sum(b.balance_amount for b in bills),
        overdue_count=sum(1 for b in bills if b.status == BillStatus.OVERDUE),
    )


def build_report(bills: Iterable[FeeBill]) -> FeeReport:
    bills = list(bills)
    total = money_sum(b.total_amount for b in bills)
    paid = money_sum(min(b.paid_amount, b.total_amount) for b in bills)

    by_class: dict[str, Decimal] = {}
    for b in bills:
        by_class[b.class_name] = by_class.get(b.class_name, ZERO) + b.total_amount

    return FeeReport(
        total_amount=total,
        paid_amount=paid,
        pending_amount=money_sum(b.balance_amount for b in bills if b.status != BillStatus.OVERDUE),
        overdue_amount=money_sum(b.balance_amount for b in bills if b.status == BillStatus.OVERDUE),
        payment_percentage=round_percent(paid, total),
        by_class=by_class,
    )


def bill_rows(bills: Iterable[FeeBill]) -> list[dict]:
    """Flat rows for tables and CSV export."""

    rows: list[dict] = []
    for b in bills:
        rows.append(
            {
                "bill_id": b.bill_id,
                "student_id": b.student_id,
                "student_name": b.student_name,
                "class_name": b.class_name,
                "bill_date": format_iso_date(b.bill_date) or "",
                "due_date": format_iso_date(b.due_date) or "",
                "total_amount": to_wire(b.total_amount),
                "paid_amount": to_wire(b.paid_amount),
                "balance_amount": to_wire(b.balance_amount),
                "status": b.status.value,
            }
        )
    return rows


def receipt(bill: FeeBill, *, currency_label: str) -> dict:
    """Printable breakdown of a bill, recurring charges first."""

    def _line(item) -> dict:
        return {
            "fee_head": item.fee_head,
            "frequency": item.frequency.value if item.frequency else None,
            "amount": to_wire(item.amount),
        }

    return {
        "bill_id": bill.bill_id,
        "student_name": bill.student_name,
        "class_name": bill.class_name,
        "bill_date": format_iso_date(bill.bill_date),
        "due_date": format_iso_date(bill.due_date),
        "currency": currency_label,
        "recurring_items": [_line(i) for i in bill.fee_items if i.fee_type == FeeType.RECURRING],
        "one_time_items": [_line(i) for i in bill.fee_items if i.fee_type == FeeType.ONE_TIME],
        "total_amount": to_wire(bill.total_amount),
        "paid_amount": to_wire(bill.paid_amount),
        "balance_amount": to_wire(bill.balance_amount),
        "status": bill.status.value,
        "balance_label": format_money(bill.balance_amount, currency_label),
    }


@dataclass(frozen=True)
class ReportData:
    rows: list[dict]
    summary: CollectionSummary
    stats: CollectionStats
    report: FeeReport


class FeeReportService:
    """Aggregates over the current bill set; nothing is cached between calls."""

    def __init__(self, bills_source: Callable[[], Sequence[FeeBill]]):
        self._bills_source = bills_source

    def summary(self) -> CollectionSummary:
        return summarize(self._bills_source())

    def build_fee_report(self) -> ReportData:
        bills = list(self._bills_source())
        return ReportData(
            rows=bill_rows(bills),
            summary=summarize(bills),
            stats=collection_stats(bills),
            report=build_report(bills),
        )
