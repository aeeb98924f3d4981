from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Optional

from ..common.money import ZERO, money_sum
from ..core.enums import FeeType, Frequency, StructureStatus


@dataclass(frozen=True)
class FeeItem:
    """Một dòng phí (fee head) trong cấu trúc phí hoặc hoá đơn."""

    fee_head: str
    amount: Decimal
    fee_type: FeeType = FeeType.RECURRING
    frequency: Optional[Frequency] = Frequency.MONTHLY
    item_id: Optional[int] = None
    description: Optional[str] = None

    def tagged(self, fee_type: FeeType) -> "FeeItem":
        """Copy tagged with ``fee_type``; recurring items always carry a frequency."""

        if fee_type == FeeType.RECURRING:
            return replace(self, fee_type=fee_type, frequency=self.frequency or Frequency.MONTHLY)
        return replace(self, fee_type=fee_type, frequency=None)


def blank_item() -> FeeItem:
    return FeeItem(fee_head="", amount=ZERO, fee_type=FeeType.RECURRING, frequency=Frequency.MONTHLY)


@dataclass(frozen=True)
class FeeStructure:
    structure_id: int
    class_id: str
    class_name: str
    recurring_items: tuple[FeeItem, ...] = field(default_factory=tuple)
    one_time_items: tuple[FeeItem, ...] = field(default_factory=tuple)
    total_amount: Decimal = ZERO
    status: StructureStatus = StructureStatus.ACTIVE

    @property
    def items(self) -> tuple[FeeItem, ...]:
        return self.recurring_items + self.one_time_items

    def computed_total(self) -> Decimal:
        return money_sum(i.amount for i in self.items)
