from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..common.pagination import Page, PageParams
from .model import FeeItem, FeeStructure


class FeeStructureRepository(Protocol):
    def list_structures(self, params: PageParams) -> Page[FeeStructure]:
        raise NotImplementedError

    def get_by_id(self, structure_id: int) -> Optional[FeeStructure]:
        raise NotImplementedError

    def get_by_class(self, class_id: str) -> Optional[FeeStructure]:
        """Return the structure configured for ``class_id`` (one per class)."""

        raise NotImplementedError

    def create(self, structure: FeeStructure) -> FeeStructure:
        raise NotImplementedError

    def update(self, structure: FeeStructure) -> FeeStructure:
        """Replace items/total/status of an existing structure.

        Raises NotFoundError when the id is unknown.
        """

        raise NotImplementedError

    def update_items(
        self,
        structure_id: int,
        *,
        recurring_items: Sequence[FeeItem],
        one_time_items: Sequence[FeeItem],
    ) -> FeeStructure:
        """Replace the item lists and recompute the total.

        Raises NotFoundError when the id is unknown.
        """

        raise NotImplementedError

    def delete(self, structure_id: int) -> None:
        raise NotImplementedError
