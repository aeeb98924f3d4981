from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional

from ..common.money import ZERO
from ..core.enums import BillStatus
from ..structures.model import FeeItem


@dataclass(frozen=True)
class FeeBill:
    """Thực thể miền (domain): Hoá đơn học phí của một học sinh.

    ``fee_items`` is a snapshot taken when the bill is issued.
    """

    bill_id: int
    student_id: int
    student_name: str
    class_id: str
    class_name: str
    bill_date: Optional[date]
    due_date: Optional[date]
    fee_items: tuple[FeeItem, ...] = field(default_factory=tuple)
    total_amount: Decimal = ZERO
    paid_amount: Decimal = ZERO
    balance_amount: Decimal = ZERO
    status: BillStatus = BillStatus.PENDING


@dataclass(frozen=True)
class BillFilters:
    status: Optional[BillStatus] = None
    student_id: Optional[int] = None
    class_id: Optional[str] = None
    start: Optional[date] = None
    end: Optional[date] = None

    def matches(self, bill: FeeBill) -> bool:
        if self.status is not None and bill.status != self.status:
            return False
        if self.student_id is not None and bill.student_id != self.student_id:
            return False
        if self.class_id is not None and bill.class_id != self.class_id:
            return False
        if self.start is not None and (bill.bill_date is None or bill.bill_date < self.start):
            return False
        if self.end is not None and (bill.bill_date is None or bill.bill_date > self.end):
            return False
        return True


@dataclass(frozen=True)
class PaymentPreview:
    """Live preview shown while a payment amount is being typed."""

    paid_amount: Decimal
    balance_amount: Decimal
    status: BillStatus
