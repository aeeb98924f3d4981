from __future__ import annotations

from datetime import date
from decimal import Decimal

from fakes import item
from fee_billing.billing.model import FeeBill
from fee_billing.core.enums import BillStatus, FeeType
from fee_billing.reports.service import (
    FeeReportService,
    bill_rows,
    build_report,
    collection_stats,
    receipt,
    summarize,
)


def _bill(bill_id, total, paid, status, class_name="Class 5", items=()):
    total, paid = Decimal(total), Decimal(paid)
    return FeeBill(
        bill_id=bill_id,
        student_id=100 + bill_id,
        student_name=f"Student {bill_id}",
        class_id=class_name,
        class_name=class_name,
        bill_date=date(2024, 3, 1),
        due_date=date(2024, 3, 25),
        fee_items=tuple(items),
        total_amount=total,
        paid_amount=paid,
        balance_amount=max(Decimal(0), total - paid),
        status=status,
    )


def test_collection_rate_rounds_half_up():
    bills = [_bill(1, "1000", "1000", BillStatus.PAID), _bill(2, "2000", "1500", BillStatus.PARTIAL)]

    summary = summarize(bills)

    assert summary.total_revenue == Decimal("3000")
    assert summary.total_outstanding == Decimal("500")
    assert summary.collection_rate == 83


def test_collection_rate_without_revenue_is_zero():
    assert summarize([]).collection_rate == 0
    assert summarize([_bill(1, "0", "0", BillStatus.PAID)]).collection_rate == 0


def test_collection_stats():
    bills = [
        _bill(1, "1000", "400", BillStatus.OVERDUE),
        _bill(2, "500", "0", BillStatus.OVERDUE),
        _bill(3, "2000", "2000", BillStatus.PAID),
    ]

    stats = collection_stats(bills)

    assert stats.total_collected == Decimal("2400")
    assert stats.total_pending == Decimal("1100")
    assert stats.overdue_count == 2


def test_report_splits_pending_and_overdue():
    bills = [
        _bill(1, "1000", "1200", BillStatus.PAID),
        _bill(2, "2000", "500", BillStatus.PARTIAL, class_name="Class 9"),
        _bill(3, "1000", "0", BillStatus.OVERDUE),
    ]

    report = build_report(bills)

    assert report.total_amount == Decimal("4000")
    assert report.paid_amount == Decimal("1500")
    assert report.pending_amount == Decimal("1500")
    assert report.overdue_amount == Decimal("1000")
    assert report.payment_percentage == 38
    assert report.by_class == {"Class 5": Decimal("2000"), "Class 9": Decimal("2000")}


def test_report_service_reads_current_bills():
    bills = [_bill(1, "1000", "0", BillStatus.PENDING)]
    service = FeeReportService(lambda: bills)

    assert service.summary().collection_rate == 0
    bills.append(_bill(2, "1000", "1000", BillStatus.PAID))
    data = service.build_fee_report()

    assert data.summary.collection_rate == 50
    assert [r["bill_id"] for r in data.rows] == [1, 2]


def test_rows_and_receipt():
    bill = _bill(
        1,
        "2700",
        "700",
        BillStatus.PARTIAL,
        items=[item("Tuition Fee", 2500), item("Tie Fee", 200, FeeType.ONE_TIME)],
    )

    row = bill_rows([bill])[0]
    assert row["total_amount"] == 2700
    assert row["due_date"] == "2024-03-25"

    printed = receipt(bill, currency_label="Rs.")
    assert printed["currency"] == "Rs."
    assert printed["recurring_items"] == [{"fee_head": "Tuition Fee", "frequency": "Monthly", "amount": 2500}]
    assert printed["one_time_items"] == [{"fee_head": "Tie Fee", "frequency": None, "amount": 200}]
    assert printed["balance_amount"] == 2000
    assert printed["balance_label"] == "Rs. 2,000.00"
