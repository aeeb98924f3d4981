from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import coerce_date
from ..common.money import to_wire
from ..common.pagination import normalize_pagination
from ..common.responses import api_errors, json_body, ok, ok_page, query_int
from ..container import Container
from ..core.enums import BillStatus
from ..core.exceptions import ValidationError
from ..reports.service import receipt
from .model import BillFilters
from .normalization import bill_to_record, item_to_record, normalize_item


def _date(value, field_name: str):
    try:
        return coerce_date(value)
    except ValueError as exc:
        raise ValidationError(f"{field_name} must be a YYYY-MM-DD date") from exc


def _items(rows):
    if not isinstance(rows, list):
        raise ValidationError("feeItems must be a list")
    try:
        return [normalize_item(r) for r in rows]
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc


def _student_id(value):
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError("studentId must be an integer") from exc


def _filters() -> BillFilters:
    status = request.args.get("status")
    try:
        parsed_status = BillStatus.parse(status) if status else None
    except ValueError as exc:
        raise ValidationError("Invalid bill status") from exc
    return BillFilters(
        status=parsed_status,
        student_id=query_int("studentId"),
        class_id=request.args.get("classId") or None,
        start=_date(request.args.get("dateRange[start]"), "dateRange[start]"),
        end=_date(request.args.get("dateRange[end]"), "dateRange[end]"),
    )


def register(app: Flask, container: Container) -> None:
    engine = container.billing_service

    @app.route("/api/fee-bills", methods=["GET"], endpoint="api_fee_bills_list")
    @api_errors
    def list_bills():
        params = normalize_pagination(query_int("page"), query_int("limit"))
        page = engine.list_bills(_filters(), page=params.page, limit=params.limit)
        return ok_page(page, params, bill_to_record)

    @app.route("/api/fee-bills/draft", methods=["GET"], endpoint="api_fee_bills_draft")
    @api_errors
    def bill_draft():
        """Items a new bill for ``classId`` starts with."""

        draft = engine.new_draft(request.args.get("classId") or "")
        return ok(
            {
                "classId": draft.class_id,
                "className": draft.class_name,
                "billDate": draft.bill_date.strftime("%Y-%m-%d") if draft.bill_date else None,
                "feeItems": [item_to_record(i) for i in draft.items],
                "totalAmount": to_wire(draft.total_amount),
            }
        )

    @app.route("/api/fee-bills", methods=["POST"], endpoint="api_fee_bills_create")
    @api_errors
    def create_bill():
        body = json_body()
        draft = engine.new_draft(body.get("classId") or "")
        if body.get("className"):
            draft.class_name = str(body["className"])
        if body.get("feeItems") is not None:
            draft.items = _items(body["feeItems"])
        draft.student_name = str(body.get("studentName") or "")
        draft.bill_date = _date(body.get("billDate"), "billDate") or draft.bill_date
        draft.due_date = _date(body.get("dueDate"), "dueDate")
        draft.student_id = _student_id(body.get("studentId"))

        bill = engine.create_bill(draft)
        return ok(bill_to_record(bill), status=201)

    @app.route("/api/fee-bills/<int:bill_id>", methods=["GET"], endpoint="api_fee_bills_get")
    @api_errors
    def get_bill(bill_id: int):
        return ok(bill_to_record(engine.get_bill(bill_id)))

    @app.route("/api/fee-bills/student/<int:student_id>", methods=["GET"], endpoint="api_fee_bills_student")
    @api_errors
    def bills_for_student(student_id: int):
        return ok([bill_to_record(b) for b in engine.list_for_student(student_id)])

    @app.route("/api/fee-bills/<int:bill_id>", methods=["PUT"], endpoint="api_fee_bills_update")
    @api_errors
    def update_bill(bill_id: int):
        body = json_body()
        bill = engine.update_bill(
            bill_id,
            items=_items(body["feeItems"]) if body.get("feeItems") is not None else None,
            student_id=_student_id(body.get("studentId")),
            student_name=body.get("studentName"),
            bill_date=_date(body.get("billDate"), "billDate"),
            due_date=_date(body.get("dueDate"), "dueDate"),
        )
        return ok(bill_to_record(bill))

    @app.route("/api/fee-bills/<int:bill_id>", methods=["DELETE"], endpoint="api_fee_bills_delete")
    @api_errors
    def delete_bill(bill_id: int):
        engine.delete_bill(bill_id)
        return ok(None, message="Fee bill deleted")

    @app.route("/api/fee-bills/<int:bill_id>/payment", methods=["PATCH"], endpoint="api_fee_bills_payment")
    @api_errors
    def record_payment(bill_id: int):
        """``paymentAmount`` is the bill's new cumulative paid amount."""

        body = json_body()
        bill = engine.record_paid_total(bill_id, body.get("paymentAmount"))
        return ok(bill_to_record(bill), message="Payment recorded")

    @app.route("/api/fee-bills/<int:bill_id>/receipt", methods=["GET"], endpoint="api_fee_bills_receipt")
    @api_errors
    def bill_receipt(bill_id: int):
        return ok(receipt(engine.get_bill(bill_id), currency_label=container.currency_label))

    @app.route("/api/fee-bills/mark-overdue", methods=["POST"], endpoint="api_fee_bills_mark_overdue")
    @api_errors
    def mark_overdue():
        engine.load()
        changed = engine.mark_overdue()
        return ok([bill_to_record(b) for b in changed], message=f"{len(changed)} bill(s) marked overdue")

