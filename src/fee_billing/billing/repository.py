from __future__ import annotations

from decimal import Decimal
from typing import Optional, Protocol, Sequence

from ..common.pagination import Page, PageParams
from .model import BillFilters, FeeBill


class FeeBillRepository(Protocol):
    def list_bills(self, filters: BillFilters, params: PageParams) -> Page[FeeBill]:
        raise NotImplementedError

    def get_bill(self, bill_id: int) -> Optional[FeeBill]:
        raise NotImplementedError

    def list_for_student(self, student_id: int) -> Sequence[FeeBill]:
        raise NotImplementedError

    def create_bill(self, bill: FeeBill) -> FeeBill:
        """Persist a new bill; the returned bill carries the assigned id."""

        raise NotImplementedError

    def update_bill(self, bill_id: int, bill: FeeBill) -> FeeBill:
        raise NotImplementedError

    def delete_bill(self, bill_id: int) -> None:
        """Raises NotFoundError when the bill does not exist."""

        raise NotImplementedError

    def record_payment(self, bill_id: int, payment_amount: Decimal) -> FeeBill:
        """Add ``payment_amount`` to the stored paid amount and return the stored bill.

        Raises NotFoundError when the bill does not exist.
        """

        raise NotImplementedError
