from __future__ import annotations

import json
from datetime import date
from decimal import Decimal
from unittest import mock

import pytest
import requests

from fakes import item
from fee_billing.billing.http_gateway import HttpFeeGateway, build_query
from fee_billing.billing.model import BillFilters
from fee_billing.common.pagination import PageParams
from fee_billing.core.enums import BillStatus, FeeType, StructureStatus
from fee_billing.core.exceptions import GatewayError, NotFoundError


def _response(status: int, body=None, raw: bytes | None = None) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    if raw is not None:
        response._content = raw
    else:
        response._content = json.dumps(body).encode("utf-8") if body is not None else b""
    return response


@pytest.fixture
def session():
    s = requests.Session()
    s.request = mock.Mock()
    return s


@pytest.fixture
def gateway(session):
    return HttpFeeGateway("http://school.test/api/", token="secret", timeout=3, session=session)


def test_build_query_flattens_nested_filters():
    query = build_query({"status": "Paid", "studentId": None, "dateRange": {"start": "2024-01-01", "end": ""}})

    assert query == {"status": "Paid", "dateRange[start]": "2024-01-01"}


def test_bearer_token_is_sent(gateway, session):
    assert session.headers["Authorization"] == "Bearer secret"


def test_list_bills_sends_filters_and_reads_envelope(gateway, session):
    session.request.return_value = _response(
        200,
        {
            "success": True,
            "data": [{"id": 1, "studentId": 101, "amount": 1200, "status": "Overdue", "dueDate": "2024-03-01"}],
            "pagination": {"page": 1, "limit": 20, "total": 1, "pages": 1},
        },
    )

    page = gateway.list_bills(
        BillFilters(status=BillStatus.OVERDUE, start=date(2024, 1, 1), end=date(2024, 3, 31)),
        PageParams(page=1, limit=20),
    )

    method, url = session.request.call_args.args
    params = session.request.call_args.kwargs["params"]
    assert (method, url) == ("GET", "http://school.test/api/fee-bills")
    assert params == {
        "status": "Overdue",
        "dateRange[start]": "2024-01-01",
        "dateRange[end]": "2024-03-31",
        "page": "1",
        "limit": "20",
    }
    assert session.request.call_args.kwargs["timeout"] == 3
    assert page.total == 1
    assert page.data[0].total_amount == Decimal("1200")
    assert page.data[0].status == BillStatus.OVERDUE


@pytest.mark.parametrize(
    "body, message",
    [
        ({"success": False, "error": "Bill already paid", "message": "ignored"}, "Bill already paid"),
        ({"success": False, "message": "Invalid amount"}, "Invalid amount"),
        ({"success": False}, "Something went wrong"),
    ],
)
def test_error_message_taken_from_body(gateway, session, body, message):
    session.request.return_value = _response(400, body)

    with pytest.raises(GatewayError) as excinfo:
        gateway.list_for_student(101)

    assert str(excinfo.value) == message
    assert excinfo.value.status_code == 400


def test_non_json_error_uses_generic_message(gateway, session):
    session.request.return_value = _response(500, raw=b"<html>Bad Gateway</html>")

    with pytest.raises(GatewayError, match="Something went wrong"):
        gateway.delete_bill(1)


def test_network_error_becomes_gateway_error(gateway, session):
    session.request.side_effect = requests.exceptions.ConnectionError("refused")

    with pytest.raises(GatewayError, match="Something went wrong"):
        gateway.list_for_student(101)


def test_not_found(gateway, session):
    session.request.return_value = _response(404, {"success": False, "message": "Fee bill not found"})

    assert gateway.get_bill(9) is None
    with pytest.raises(NotFoundError, match="Fee bill not found"):
        gateway.delete_bill(9)


def test_record_payment_patches_cumulative_paid_amount(gateway, session):
    session.request.side_effect = [
        _response(200, {"success": True, "data": {"id": 1, "totalAmount": 1000, "paidAmount": 300, "status": "Partial"}}),
        _response(200, {"success": True, "data": {"id": 1, "totalAmount": 1000, "paidAmount": 500, "status": "Partial"}}),
    ]

    bill = gateway.record_payment(1, Decimal("200.00"))

    method, url = session.request.call_args.args
    assert (method, url) == ("PATCH", "http://school.test/api/fee-bills/1/payment")
    assert session.request.call_args.kwargs["json"] == {"paymentAmount": 500}
    assert bill.paid_amount == Decimal("500")
    assert bill.balance_amount == Decimal("500")


def test_record_payment_on_missing_bill(gateway, session):
    session.request.return_value = _response(404, {"success": False, "message": "Fee bill not found"})

    with pytest.raises(NotFoundError):
        gateway.record_payment(9, Decimal("100"))
    assert session.request.call_count == 1


def test_update_items_patches_item_lists(gateway, session):
    session.request.return_value = _response(
        200,
        {
            "success": True,
            "data": {
                "id": 1,
                "classId": "Class 5",
                "recurringItems": [{"feeHead": "Tuition Fee", "amount": 2600, "frequency": "Monthly"}],
                "oneTimeItems": [{"feeHead": "Tie Fee", "amount": 200}],
                "totalAmount": 2800,
                "status": "active",
            },
        },
    )

    structure = gateway.update_items(
        1,
        recurring_items=[item("Tuition Fee", 2600)],
        one_time_items=[item("Tie Fee", 200, FeeType.ONE_TIME)],
    )

    method, url = session.request.call_args.args
    assert (method, url) == ("PATCH", "http://school.test/api/fee-structures/1/items")
    assert session.request.call_args.kwargs["json"] == {
        "recurringItems": [{"feeHead": "Tuition Fee", "amount": 2600, "feeType": "Recurring", "frequency": "Monthly"}],
        "oneTimeItems": [{"feeHead": "Tie Fee", "amount": 200, "feeType": "One-Time"}],
    }
    assert structure.total_amount == Decimal("2800")
    assert structure.status == StructureStatus.ACTIVE


def test_structure_lookup_by_class_quotes_path(gateway, session):
    session.request.return_value = _response(
        200,
        {"success": True, "data": {"id": 1, "classId": "Class 5", "recurringItems": [{"feeHead": "Tuition Fee", "amount": 2500}]}},
    )

    structure = gateway.get_by_class("Class 5")

    assert session.request.call_args.args[1] == "http://school.test/api/fee-structures/class/Class%205"
    assert structure.total_amount == Decimal("2500")
