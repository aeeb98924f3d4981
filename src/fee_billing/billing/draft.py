from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from ..common.money import to_money
from ..core.enums import FeeType, Frequency
from ..structures.model import FeeItem, FeeStructure, blank_item
from .derivation import derive_items, find_structure
from .reconciliation import total_amount


@dataclass
class BillDraft:
    """Editable state of the "create bill" form.

    ``generation`` changes whenever the item list is re-derived or the draft
    is reset, so a submission started for an older state can be detected.
    """

    class_id: str = ""
    class_name: str = ""
    student_id: Optional[int] = None
    student_name: str = ""
    bill_date: Optional[date] = None
    due_date: Optional[date] = None
    items: list[FeeItem] = field(default_factory=list)
    generation: int = 0

    def select_class(
        self,
        class_id: str,
        structures: Iterable[FeeStructure],
        *,
        class_name: Optional[str] = None,
    ) -> None:
        structures = list(structures)
        structure = find_structure(class_id, structures)
        self.class_id = class_id
        self.class_name = class_name or (structure.class_name if structure else class_id)
        self.items = derive_items(class_id, structures)
        self.generation += 1

    def add_item(self, fee_type: FeeType = FeeType.RECURRING) -> None:
        self.items.append(blank_item().tagged(fee_type))

    def remove_item(self, index: int) -> None:
        del self.items[index]

    def update_item(
        self,
        index: int,
        *,
        fee_head: Optional[str] = None,
        amount: Optional[Decimal] = None,
        fee_type: Optional[FeeType] = None,
        frequency: Optional[Frequency] = None,
    ) -> None:
        item = self.items[index]
        if fee_head is not None:
            item = replace(item, fee_head=fee_head)
        if amount is not None:
            item = replace(item, amount=to_money(amount))
        if frequency is not None:
            item = replace(item, frequency=frequency)
        if fee_type is not None:
            item = item.tagged(fee_type)
        self.items[index] = item

    @property
    def total_amount(self) -> Decimal:
        return total_amount(self.items)

    def reset(self) -> None:
        self.class_id = ""
        self.class_name = ""
        self.student_id = None
        self.student_name = ""
        self.bill_date = None
        self.due_date = None
        self.items = []
        self.generation += 1
