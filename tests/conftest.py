from __future__ import annotations

from datetime import date

import pytest

from fakes import TODAY, InMemoryBills, InMemoryStructures, class5, class9
from fee_billing.billing.service import FeeBillingService


@pytest.fixture
def structures_repo():
    return InMemoryStructures([class5(), class9()])


@pytest.fixture
def bills_repo():
    return InMemoryBills()


@pytest.fixture
def engine(bills_repo, structures_repo):
    return FeeBillingService(bills_repo, structures_repo, today=lambda: TODAY)


@pytest.fixture
def make_bill(engine):
    def _make(class_id="Class 5", student_id=101, student_name="Rahul Sharma", due_date=date(2024, 3, 25)):
        draft = engine.new_draft(class_id)
        draft.student_id = student_id
        draft.student_name = student_name
        draft.due_date = due_date
        return engine.create_bill(draft)

    return _make
