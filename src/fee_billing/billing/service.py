from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Iterable, Optional, Sequence

from ..common.datetime_utils import today_local
from ..common.money import to_money
from ..common.pagination import Page, normalize_pagination
from ..common.validators import require_amount, require_non_empty, require_payment_amount
from ..core.constants import PAYMENT_AMOUNT_ERROR
from ..core.enums import BillStatus
from ..core.exceptions import NotFoundError, StaleDraftError, ValidationError
from ..structures.model import FeeItem
from ..structures.repository import FeeStructureRepository
from .draft import BillDraft
from .model import BillFilters, FeeBill, PaymentPreview
from .reconciliation import balance, preview_payment, reconcile, resolve_status, total_amount
from .repository import FeeBillRepository

logger = logging.getLogger(__name__)


class FeeBillingService:
    """Fee billing engine.

    Keeps a local bill book (the bills this session has loaded or written).
    The book only changes after the gateway confirmed the round-trip, so a
    failed call leaves it untouched. Reports are recomputed from it on demand.
    """

    def __init__(
        self,
        bills: FeeBillRepository,
        structures: FeeStructureRepository,
        *,
        today: Callable[[], date] = today_local,
    ):
        self._bills = bills
        self._structures = structures
        self._today = today
        self._book: dict[int, FeeBill] = {}

    # --- local state ------------------------------------------------------

    def bills(self) -> list[FeeBill]:
        return list(self._book.values())

    def _remember(self, bills: Iterable[FeeBill]) -> None:
        for bill in bills:
            self._book[bill.bill_id] = bill

    def load(self, filters: Optional[BillFilters] = None) -> list[FeeBill]:
        """Replace the bill book with every bill matching ``filters``."""

        filters = filters or BillFilters()
        params = normalize_pagination(1, None)
        loaded: list[FeeBill] = []
        while True:
            chunk = self._bills.list_bills(filters, params)
            loaded.extend(chunk.data)
            if len(chunk.data) < params.limit or (chunk.total is not None and len(loaded) >= chunk.total):
                break
            params = replace(params, page=params.page + 1)
        self._book = {b.bill_id: b for b in loaded}
        return loaded

    # --- queries ----------------------------------------------------------

    def list_bills(
        self,
        filters: Optional[BillFilters] = None,
        *,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> Page[FeeBill]:
        result = self._bills.list_bills(filters or BillFilters(), normalize_pagination(page, limit))
        self._remember(result.data)
        return result

    def get_bill(self, bill_id: int) -> FeeBill:
        """Current state of a bill as stored by the gateway; refreshes the book."""

        bill = self._bills.get_bill(int(bill_id))
        if bill is None:
            self._book.pop(int(bill_id), None)
            raise NotFoundError("Fee bill not found")
        self._book[bill.bill_id] = bill
        return bill

    def list_for_student(self, student_id: int) -> Sequence[FeeBill]:
        bills = self._bills.list_for_student(int(student_id))
        self._remember(bills)
        return bills

    # --- bill creation ----------------------------------------------------

    def new_draft(self, class_id: Optional[str] = None) -> BillDraft:
        draft = BillDraft(bill_date=self._today())
        if class_id:
            self.select_class(draft, class_id)
        return draft

    def select_class(self, draft: BillDraft, class_id: str, *, class_name: Optional[str] = None) -> BillDraft:
        """Re-derive the draft's items from the class's structure (replacing, never merging)."""

        class_id = require_non_empty(class_id, "Class")
        structure = self._structures.get_by_class(class_id)
        draft.select_class(class_id, [structure] if structure else [], class_name=class_name)
        return draft

    def _checked_items(self, items: Iterable[FeeItem]) -> tuple[FeeItem, ...]:
        checked = []
        for item in items:
            head = require_non_empty(item.fee_head, "Fee head")
            checked.append(replace(item, fee_head=head, amount=require_amount(item.amount, f"Amount of {head}")))
        if not checked:
            raise ValidationError("At least one fee item is required")
        return tuple(checked)

    def create_bill(self, draft: BillDraft) -> FeeBill:
        generation = draft.generation

        class_id = require_non_empty(draft.class_id, "Class")
        student_name = require_non_empty(draft.student_name, "Student")
        if not draft.student_id:
            raise ValidationError("Student is required")
        if draft.due_date is None:
            raise ValidationError("Due date is required")
        items = self._checked_items(draft.items)

        total = total_amount(items)
        paid = to_money(0)
        remaining = balance(total, paid)
        bill = FeeBill(
            bill_id=0,
            student_id=int(draft.student_id),
            student_name=student_name,
            class_id=class_id,
            class_name=draft.class_name or class_id,
            bill_date=draft.bill_date or self._today(),
            due_date=draft.due_date,
            fee_items=items,
            total_amount=total,
            paid_amount=paid,
            balance_amount=remaining,
            status=resolve_status(remaining, paid, draft.due_date),
        )

        created = reconcile(self._bills.create_bill(bill))
        if draft.generation != generation:
            logger.warning("Bill %s created for a draft that changed meanwhile; not applied", created.bill_id)
            raise StaleDraftError("The bill form changed while it was being saved")

        self._book[created.bill_id] = created
        logger.info("Created fee bill %s for student %s (total=%s)", created.bill_id, created.student_id, created.total_amount)
        return created

    # --- edits ------------------------------------------------------------

    def update_bill(
        self,
        bill_id: int,
        *,
        items: Optional[Iterable[FeeItem]] = None,
        student_id: Optional[int] = None,
        student_name: Optional[str] = None,
        bill_date: Optional[date] = None,
        due_date: Optional[date] = None,
    ) -> FeeBill:
        """Full edit of a bill. Items can only be replaced before any payment."""

        current = self.get_bill(bill_id)
        updated = current

        if items is not None:
            if current.paid_amount > 0:
                raise ValidationError("Fee items cannot be changed after a payment has been recorded")
            checked = self._checked_items(items)
            updated = replace(updated, fee_items=checked, total_amount=total_amount(checked))
        if student_id is not None:
            updated = replace(updated, student_id=int(student_id))
        if student_name is not None:
            updated = replace(updated, student_name=require_non_empty(student_name, "Student"))
        if bill_date is not None:
            updated = replace(updated, bill_date=bill_date)
        if due_date is not None:
            updated = replace(updated, due_date=due_date)

        updated = reconcile(updated)
        saved = reconcile(self._bills.update_bill(current.bill_id, updated))
        self._book[saved.bill_id] = saved
        logger.info("Updated fee bill %s", saved.bill_id)
        return saved

    def delete_bill(self, bill_id: int) -> None:
        self._bills.delete_bill(int(bill_id))
        self._book.pop(int(bill_id), None)
        logger.info("Deleted fee bill %s", bill_id)

    # --- payments ---------------------------------------------------------

    def max_payment(self, bill: FeeBill) -> Decimal:
        """Soft cap for the payment input: the current balance."""

        return bill.balance_amount

    def preview_payment(self, bill_id: int, payment_amount: Any) -> PaymentPreview:
        return preview_payment(self.get_bill(bill_id), to_money(payment_amount))

    def record_paid_total(self, bill_id: int, paid_total: Any) -> FeeBill:
        """Payment given as the bill's new cumulative paid amount.

        This is the body of ``PATCH /fee-bills/<id>/payment``; the increment
        over the stored paid amount must be positive.
        """

        try:
            target = to_money(paid_total)
        except ValueError as exc:
            raise ValidationError(PAYMENT_AMOUNT_ERROR) from exc
        current = self.get_bill(bill_id)
        return self.record_payment(current.bill_id, target - current.paid_amount)

    def record_payment(self, bill_id: int, payment_amount: Any) -> FeeBill:
        """Accumulate a payment on the bill.

        The amount is validated before any gateway call. The returned bill is
        the one the gateway stored; when its status differs from the
        date-aware one (a late partial payment stays Overdue) the status is
        written back so later loads agree. The local bill is only updated
        after the gateway accepted the payment.
        """

        amount = require_payment_amount(payment_amount)

        saved = reconcile(self._bills.record_payment(int(bill_id), amount))
        status = resolve_status(saved.balance_amount, saved.paid_amount, saved.due_date, self._today())
        if saved.status != status:
            saved = reconcile(self._bills.update_bill(saved.bill_id, replace(saved, status=status)))

        updated = replace(saved, status=status)
        self._book[updated.bill_id] = updated
        logger.info(
            "Recorded payment of %s on bill %s (paid=%s, balance=%s, status=%s)",
            amount,
            updated.bill_id,
            updated.paid_amount,
            updated.balance_amount,
            updated.status.value,
        )
        return updated

    def mark_overdue(self) -> list[FeeBill]:
        """Persist Overdue for every unpaid bill in the book whose due date has passed."""

        today = self._today()
        changed: list[FeeBill] = []
        for bill in self.bills():
            status = resolve_status(bill.balance_amount, bill.paid_amount, bill.due_date, today)
            if status != BillStatus.OVERDUE or bill.status == BillStatus.OVERDUE:
                continue
            saved = self._bills.update_bill(bill.bill_id, replace(bill, status=BillStatus.OVERDUE))
            saved = replace(saved, status=BillStatus.OVERDUE) if saved.balance_amount > 0 else saved
            self._book[saved.bill_id] = saved
            changed.append(saved)
        if changed:
            logger.info("Marked %d bill(s) overdue", len(changed))
        return changed
