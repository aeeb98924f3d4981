from __future__ import annotations

from decimal import Decimal

import pytest

from fakes import TODAY, InMemoryBills, InMemoryStructures, class5, class9
from fee_billing.container import wire
from fee_billing.core.exceptions import GatewayError
from fee_billing.main import create_app


@pytest.fixture
def bills_repo():
    return InMemoryBills()


@pytest.fixture
def client(monkeypatch, bills_repo):
    monkeypatch.setenv("APP_ENV", "testing")
    container = wire(InMemoryStructures([class5(), class9()]), bills_repo, today=lambda: TODAY)
    app = create_app(container=container)
    return app.test_client()


def _create(client, **overrides):
    body = {
        "classId": "Class 5",
        "studentId": 101,
        "studentName": "Rahul Sharma",
        "dueDate": "2024-03-25",
    }
    body.update(overrides)
    return client.post("/api/fee-bills", json=body)


def test_draft_is_prefilled_from_structure(client):
    resp = client.get("/api/fee-bills/draft?classId=Class%205")
    data = resp.get_json()["data"]

    assert resp.status_code == 200
    assert [i["feeHead"] for i in data["feeItems"]] == ["Tuition Fee", "Exam Fee", "Tie Fee"]
    assert data["totalAmount"] == 3200
    assert data["billDate"] == "2024-03-10"


def test_create_bill(client):
    resp = _create(client)
    body = resp.get_json()

    assert resp.status_code == 201
    assert body["success"] is True
    assert body["data"]["totalAmount"] == 3200
    assert body["data"]["balanceAmount"] == 3200
    assert body["data"]["status"] == "Pending"


def test_create_bill_with_custom_items(client):
    resp = _create(client, feeItems=[{"feeHead": "Tuition Fee", "amount": 1000, "feeType": "Recurring"}])

    assert resp.get_json()["data"]["totalAmount"] == 1000


def test_create_bill_requires_student(client):
    resp = _create(client, studentName="")

    assert resp.status_code == 400
    assert resp.get_json() == {"success": False, "message": "Student is required", "error": "Student is required"}


def test_payment_takes_cumulative_paid_amount(client, bills_repo):
    bill_id = _create(client).get_json()["data"]["id"]

    rejected = client.patch(f"/api/fee-bills/{bill_id}/payment", json={"paymentAmount": 0})
    assert rejected.status_code == 400
    assert rejected.get_json()["error"] == "Amount must be greater than 0"
    assert "record_payment" not in bills_repo.calls

    client.patch(f"/api/fee-bills/{bill_id}/payment", json={"paymentAmount": 300})
    resp = client.patch(f"/api/fee-bills/{bill_id}/payment", json={"paymentAmount": 500})
    data = resp.get_json()["data"]

    assert data["paidAmount"] == 500
    assert data["balanceAmount"] == 2700
    assert data["status"] == "Partial"


def test_gateway_failure_is_reported(client, bills_repo):
    bill_id = _create(client).get_json()["data"]["id"]
    bills_repo.fail_with = GatewayError("Server down")

    resp = client.patch(f"/api/fee-bills/{bill_id}/payment", json={"paymentAmount": 300})

    assert resp.status_code == 502
    assert resp.get_json()["error"] == "Server down"


def test_delete_and_missing_bill(client):
    bill_id = _create(client).get_json()["data"]["id"]

    assert client.delete(f"/api/fee-bills/{bill_id}").status_code == 200
    assert client.get(f"/api/fee-bills/{bill_id}").status_code == 404
    assert client.delete(f"/api/fee-bills/{bill_id}").status_code == 404


def test_list_with_filters_and_pagination(client):
    _create(client)
    _create(client, classId="Class 9", studentId=202)

    body = client.get("/api/fee-bills?classId=Class%209&page=1&limit=10").get_json()

    assert [b["studentId"] for b in body["data"]] == [202]
    assert body["pagination"] == {"page": 1, "limit": 10, "total": 1, "pages": 1}
    assert client.get("/api/fee-bills?status=Unknown").status_code == 400


def test_report(client):
    first = _create(client).get_json()["data"]["id"]
    _create(client, feeItems=[{"feeHead": "Tuition Fee", "amount": 800}])
    client.patch(f"/api/fee-bills/{first}/payment", json={"paymentAmount": 3200})

    data = client.get("/api/fees/report").get_json()["data"]

    assert data["totalRevenue"] == 4000
    assert data["totalOutstanding"] == 800
    assert data["collectionRate"] == 80
    assert data["byClass"] == {"Class 5": 4000}


def test_report_csv(client):
    _create(client)

    resp = client.get("/api/fees/report.csv")
    text = resp.data.decode("utf-8-sig")

    assert resp.mimetype == "text/csv"
    assert text.splitlines()[0].startswith("bill_id,student_id,student_name")
    assert "Rahul Sharma" in text


def test_receipt(client):
    bill_id = _create(client).get_json()["data"]["id"]

    data = client.get(f"/api/fee-bills/{bill_id}/receipt").get_json()["data"]

    assert data["currency"] == "Rs."
    assert [i["fee_head"] for i in data["one_time_items"]] == ["Tie Fee"]


def test_save_structure_drops_blank_rows(client):
    resp = client.post(
        "/api/fee-structures",
        json={
            "classId": "Class 7",
            "recurringItems": [{"feeHead": "Tuition Fee", "amount": 3000}, {"feeHead": "", "amount": 5}],
            "oneTimeItems": [{"feeHead": "Uniform Fee", "amount": "750"}],
        },
    )
    data = resp.get_json()["data"]

    assert resp.status_code == 201
    assert data["totalAmount"] == 3750
    assert len(data["recurringItems"]) == 1
    assert client.get("/api/fee-structures/class/Class%207").get_json()["data"]["id"] == data["id"]
    assert client.get("/api/fee-structures/class/Class%2012").status_code == 404


def test_structure_status_update(client):
    resp = client.put("/api/fee-structures/1", json={"status": "Inactive"})

    assert resp.get_json()["data"]["status"] == "Inactive"
    assert Decimal(str(resp.get_json()["data"]["totalAmount"])) == Decimal("3200")


def test_payment_route_is_patch_only(client):
    bill_id = _create(client).get_json()["data"]["id"]

    assert client.post(f"/api/fee-bills/{bill_id}/payment", json={"paymentAmount": 300}).status_code == 405


def test_replace_structure_items(client):
    resp = client.patch(
        "/api/fee-structures/1/items",
        json={"recurringItems": [{"feeHead": "Tuition Fee", "amount": 2600}], "oneTimeItems": []},
    )
    data = resp.get_json()["data"]

    assert resp.status_code == 200
    assert data["totalAmount"] == 2600
    assert data["oneTimeItems"] == []


def test_structure_status_is_case_insensitive(client):
    resp = client.put("/api/fee-structures/1", json={"status": "inactive"})

    assert resp.get_json()["data"]["status"] == "Inactive"
