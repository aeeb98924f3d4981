from __future__ import annotations

from decimal import Decimal

import pytest

from fakes import InMemoryStructures, class5
from fee_billing.core.enums import FeeType, Frequency, StructureStatus
from fee_billing.core.exceptions import NotFoundError, ValidationError
from fee_billing.structures.service import FeeStructureService


@pytest.fixture
def service():
    return FeeStructureService(InMemoryStructures([class5()]))


def test_save_drops_blank_rows_and_totals_items(service):
    saved = service.save(
        class_id="Class 7",
        recurring_items=[
            {"feeHead": "Tuition Fee", "amount": "3000", "frequency": "Monthly"},
            {"feeHead": "", "amount": "100"},
            {"feeHead": "Lab Fee", "amount": ""},
        ],
        one_time_items=[{"feeHead": " Uniform Fee ", "amount": 750}],
    )

    assert saved.structure_id == 2
    assert saved.class_name == "Class 7"
    assert [i.fee_head for i in saved.recurring_items] == ["Tuition Fee"]
    assert [i.fee_head for i in saved.one_time_items] == ["Uniform Fee"]
    assert saved.one_time_items[0].fee_type == FeeType.ONE_TIME
    assert saved.one_time_items[0].frequency is None
    assert saved.total_amount == Decimal("3750")


def test_save_updates_existing_class(service):
    saved = service.save(
        class_id="Class 5",
        recurring_items=[{"feeHead": "Tuition Fee", "amount": 2700, "frequency": "Yearly"}],
        one_time_items=[],
    )

    assert saved.structure_id == 1
    assert saved.class_name == "Class 5"
    assert saved.recurring_items[0].frequency == Frequency.YEARLY
    assert saved.total_amount == Decimal("2700")
    assert service.get_by_class("Class 5") == saved


@pytest.mark.parametrize("amount", [-1, "abc"])
def test_invalid_amount_rejected(service, amount):
    with pytest.raises(ValidationError):
        service.save(class_id="Class 7", recurring_items=[{"feeHead": "Tuition Fee", "amount": amount}])


def test_class_is_required(service):
    with pytest.raises(ValidationError, match="Class is required"):
        service.save(class_id=" ", recurring_items=[])


def test_replace_items_recomputes_total(service):
    updated = service.replace_items(1, recurring_items=[{"feeHead": "Tuition Fee", "amount": 2500}])

    assert updated.one_time_items == ()
    assert updated.total_amount == updated.computed_total() == Decimal("2500")


def test_status_and_delete(service):
    assert service.set_status(1, StructureStatus.INACTIVE).status == StructureStatus.INACTIVE

    service.delete(1)

    with pytest.raises(NotFoundError):
        service.get(1)
    assert service.all() == []
