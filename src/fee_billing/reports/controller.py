from __future__ import annotations

import csv
import io

from flask import Flask

from ..common.money import to_wire
from ..common.responses import api_errors, ok
from ..common.datetime_utils import today_local
from ..container import Container
from .service import ReportData

_CSV_FIELDS = [
    "bill_id",
    "student_id",
    "student_name",
    "class_name",
    "bill_date",
    "due_date",
    "total_amount",
    "paid_amount",
    "balance_amount",
    "status",
]


def report_to_record(data: ReportData) -> dict:
    return {
        "totalAmount": to_wire(data.report.total_amount),
        "paidAmount": to_wire(data.report.paid_amount),
        "pendingAmount": to_wire(data.report.pending_amount),
        "overdueAmount": to_wire(data.report.overdue_amount),
        "paymentPercentage": data.report.payment_percentage,
        "byClass": {k: to_wire(v) for k, v in data.report.by_class.items()},
        "totalRevenue": to_wire(data.summary.total_revenue),
        "totalOutstanding": to_wire(data.summary.total_outstanding),
        "collectionRate": data.summary.collection_rate,
        "totalCollected": to_wire(data.stats.total_collected),
        "totalPending": to_wire(data.stats.total_pending),
        "overdueCount": data.stats.overdue_count,
    }


def register(app: Flask, container: Container) -> None:
    def _fresh_report() -> ReportData:
        # Always recomputed from the authoritative list.
        container.billing_service.load()
        return container.report_service.build_fee_report()

    @app.route("/api/fees/report", methods=["GET"], endpoint="api_fees_report")
    @api_errors
    def fee_report():
        return ok(report_to_record(_fresh_report()))

    @app.route("/api/fees/report.csv", methods=["GET"], endpoint="api_fees_report_csv")
    @api_errors
    def fee_report_csv():
        data = _fresh_report()

        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=_CSV_FIELDS)
        writer.writeheader()
        for row in data.rows:
            writer.writerow(row)

        filename = f"fee_bills_{today_local().strftime('%Y%m%d')}.csv"
        return app.response_class(
            out.getvalue().encode("utf-8-sig"),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )
