"""Ingest fee records from the remote API into domain objects.

The backend is not consistent about shapes: bills may come with
``totalAmount``/``paidAmount``/``balanceAmount`` or only a scalar ``amount``
(legacy ``/fees`` rows), and structures may carry a single flat ``feeItems``
list instead of ``recurringItems``/``oneTimeItems``. Everything here is
idempotent: ``normalize_x(x_to_record(normalize_x(r))) == normalize_x(r)``.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from ..common.datetime_utils import coerce_date, format_iso_date
from ..common.money import money_sum, to_money, to_wire
from ..core.enums import BillStatus, FeeType, Frequency, StructureStatus
from ..structures.model import FeeItem, FeeStructure
from .model import FeeBill
from .reconciliation import balance, resolve_status

_MISSING = object()


def _pick(record: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in record and record[key] is not None:
            return record[key]
    return default


def _has(record: Mapping[str, Any], *keys: str) -> bool:
    return _pick(record, *keys, default=_MISSING) is not _MISSING


def normalize_item(record: Mapping[str, Any], *, fee_type: Optional[FeeType] = None) -> FeeItem:
    kind = fee_type or FeeType.parse(_pick(record, "feeType", "fee_type"))
    item_id = _pick(record, "id", "itemId", "item_id")
    return FeeItem(
        fee_head=str(_pick(record, "feeHead", "fee_head", default="")),
        amount=to_money(_pick(record, "amount")),
        fee_type=kind,
        frequency=Frequency.parse(_pick(record, "frequency")) if kind == FeeType.RECURRING else None,
        item_id=int(item_id) if item_id is not None else None,
        description=_pick(record, "description"),
    )


def item_to_record(item: FeeItem) -> dict[str, Any]:
    out: dict[str, Any] = {
        "feeHead": item.fee_head,
        "amount": to_wire(item.amount),
        "feeType": item.fee_type.value,
    }
    if item.item_id is not None:
        out["id"] = item.item_id
    if item.fee_type == FeeType.RECURRING:
        out["frequency"] = (item.frequency or Frequency.MONTHLY).value
    if item.description:
        out["description"] = item.description
    return out


def _items(records: Optional[Iterable[Mapping[str, Any]]], fee_type: Optional[FeeType] = None) -> tuple[FeeItem, ...]:
    return tuple(normalize_item(r, fee_type=fee_type) for r in records or ())


def normalize_structure(record: Mapping[str, Any]) -> FeeStructure:
    recurring = list(_items(_pick(record, "recurringItems", "recurring_items"), FeeType.RECURRING))
    one_time = list(_items(_pick(record, "oneTimeItems", "one_time_items"), FeeType.ONE_TIME))

    # Flat shape: a single list tagged by feeType.
    for item in _items(_pick(record, "feeItems", "fee_items")):
        if item.fee_type == FeeType.ONE_TIME:
            one_time.append(item)
        else:
            recurring.append(item)

    class_id = str(_pick(record, "classId", "class_id", default=""))
    total = _pick(record, "totalAmount", "total_amount")
    return FeeStructure(
        structure_id=int(_pick(record, "id", "structureId", "structure_id", default=0)),
        class_id=class_id,
        class_name=str(_pick(record, "className", "class_name", default=class_id)),
        recurring_items=tuple(recurring),
        one_time_items=tuple(one_time),
        total_amount=to_money(total) if total is not None else money_sum(i.amount for i in recurring + one_time),
        status=StructureStatus.parse(_pick(record, "status")),
    )


def structure_to_record(structure: FeeStructure) -> dict[str, Any]:
    return {
        "id": structure.structure_id,
        "classId": structure.class_id,
        "className": structure.class_name,
        "recurringItems": [item_to_record(i) for i in structure.recurring_items],
        "oneTimeItems": [item_to_record(i) for i in structure.one_time_items],
        "totalAmount": to_wire(structure.total_amount),
        "status": structure.status.value,
    }


def normalize_bill(record: Mapping[str, Any]) -> FeeBill:
    items = _items(_pick(record, "feeItems", "fee_items"))

    if _has(record, "totalAmount", "total_amount"):
        total = to_money(_pick(record, "totalAmount", "total_amount"))
    elif _has(record, "amount"):
        total = to_money(_pick(record, "amount"))
    else:
        total = money_sum(i.amount for i in items)

    if _has(record, "paidAmount", "paid_amount"):
        paid = to_money(_pick(record, "paidAmount", "paid_amount"))
    elif _has(record, "balanceAmount", "balance_amount"):
        paid = balance(total, to_money(_pick(record, "balanceAmount", "balance_amount")))
    elif _pick(record, "status") == BillStatus.PAID.value and not _has(record, "totalAmount", "total_amount"):
        # Legacy fee rows only carry a status flag for settled fees.
        paid = total
    else:
        paid = to_money(0)

    remaining = balance(total, paid)
    due_date = coerce_date(_pick(record, "dueDate", "due_date"))
    status = resolve_status(remaining, paid, due_date)
    if status != BillStatus.PAID and _pick(record, "status") == BillStatus.OVERDUE.value:
        status = BillStatus.OVERDUE

    class_id = str(_pick(record, "classId", "class_id", default=""))
    return FeeBill(
        bill_id=int(_pick(record, "id", "billId", "bill_id", default=0)),
        student_id=int(_pick(record, "studentId", "student_id", default=0)),
        student_name=str(_pick(record, "studentName", "student_name", default="")),
        class_id=class_id,
        class_name=str(_pick(record, "className", "class_name", default=class_id)),
        bill_date=coerce_date(_pick(record, "billDate", "bill_date", "createdAt")),
        due_date=due_date,
        fee_items=items,
        total_amount=total,
        paid_amount=paid,
        balance_amount=remaining,
        status=status,
    )


def bill_to_record(bill: FeeBill) -> dict[str, Any]:
    return {
        "id": bill.bill_id,
        "studentId": bill.student_id,
        "studentName": bill.student_name,
        "classId": bill.class_id,
        "className": bill.class_name,
        "billDate": format_iso_date(bill.bill_date),
        "dueDate": format_iso_date(bill.due_date),
        "feeItems": [item_to_record(i) for i in bill.fee_items],
        "totalAmount": to_wire(bill.total_amount),
        "paidAmount": to_wire(bill.paid_amount),
        "balanceAmount": to_wire(bill.balance_amount),
        "status": bill.status.value,
    }
