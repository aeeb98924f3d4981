from __future__ import annotations

from typing import Iterable, Optional

from ..core.enums import FeeType
from ..structures.model import FeeItem, FeeStructure, blank_item


def find_structure(class_id: str, structures: Iterable[FeeStructure]) -> Optional[FeeStructure]:
    for structure in structures:
        if structure.class_id == class_id:
            return structure
    return None


def derive_items(class_id: str, structures: Iterable[FeeStructure]) -> list[FeeItem]:
    """Pre-populate the item rows of a new bill for ``class_id``.

    Recurring items come first, then one-time items. A class without a
    structure gets one blank editable row; a structure with no items gets none.
    """

    structure = find_structure(class_id, structures)
    if structure is None:
        return [blank_item()]

    items = [i.tagged(FeeType.RECURRING) for i in structure.recurring_items]
    items.extend(i.tagged(FeeType.ONE_TIME) for i in structure.one_time_items)
    return items
