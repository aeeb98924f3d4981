"""Example: drive the billing engine directly (no Flask).

Controllers are a thin layer; the billing rules live in the services.
"""

import importlib
from datetime import timedelta

from config import get_settings_module

from fee_billing.common.money import format_money
from fee_billing.container import build_container
from fee_billing.reports.service import summarize


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG, gateway=getattr(settings, "GATEWAY", "mysql"))
    engine = container.billing_service

    draft = engine.new_draft("Class 5")
    draft.student_id = 101
    draft.student_name = "Rahul Sharma"
    draft.due_date = draft.bill_date + timedelta(days=14)
    bill = engine.create_bill(draft)
    print("Created bill", bill.bill_id, format_money(bill.total_amount, container.currency_label))

    print("Can pay up to", format_money(engine.max_payment(bill), container.currency_label))
    print(engine.preview_payment(bill.bill_id, 1000))
    engine.record_payment(bill.bill_id, 1000)

    summary = summarize(engine.load())
    print("Collection rate:", f"{summary.collection_rate}%")


if __name__ == "__main__":
    main()
