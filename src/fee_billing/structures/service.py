from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Iterable, Mapping, Optional

from ..common.money import money_sum
from ..common.pagination import Page, normalize_pagination
from ..common.validators import require_amount, require_non_empty
from ..core.enums import FeeType, StructureStatus
from ..core.exceptions import NotFoundError, ValidationError
from ..billing.normalization import normalize_item
from .model import FeeItem, FeeStructure
from .repository import FeeStructureRepository

logger = logging.getLogger(__name__)


def _is_blank_row(row: Mapping[str, Any]) -> bool:
    head = row.get("feeHead", row.get("fee_head"))
    amount = row.get("amount")
    return not (head and str(head).strip()) or amount is None or str(amount).strip() == ""


def clean_items(rows: Optional[Iterable[Any]], fee_type: FeeType) -> tuple[FeeItem, ...]:
    """Turn editor rows into items, dropping rows without a head or an amount."""

    items: list[FeeItem] = []
    for row in rows or ():
        if isinstance(row, FeeItem):
            if not row.fee_head.strip():
                continue
            item = row.tagged(fee_type)
        else:
            if _is_blank_row(row):
                continue
            try:
                item = normalize_item(row, fee_type=fee_type)
            except ValueError as exc:
                raise ValidationError(str(exc)) from exc
        require_amount(item.amount, f"Amount of {item.fee_head}")
        items.append(replace(item, fee_head=item.fee_head.strip()))
    return tuple(items)


class FeeStructureService:
    def __init__(self, structures: FeeStructureRepository):
        self._structures = structures

    def list(self, *, page: Optional[int] = None, limit: Optional[int] = None) -> Page[FeeStructure]:
        return self._structures.list_structures(normalize_pagination(page, limit))

    def all(self) -> list[FeeStructure]:
        """Every configured structure (walks all pages)."""

        out: list[FeeStructure] = []
        params = normalize_pagination(1, None)
        while True:
            chunk = self._structures.list_structures(params)
            out.extend(chunk.data)
            if len(chunk.data) < params.limit or (chunk.total is not None and len(out) >= chunk.total):
                return out
            params = replace(params, page=params.page + 1)

    def get(self, structure_id: int) -> FeeStructure:
        structure = self._structures.get_by_id(int(structure_id))
        if not structure:
            raise NotFoundError("Fee structure not found")
        return structure

    def get_by_class(self, class_id: str) -> Optional[FeeStructure]:
        return self._structures.get_by_class(require_non_empty(class_id, "Class"))

    def save(
        self,
        *,
        class_id: str,
        class_name: Optional[str] = None,
        recurring_items: Optional[Iterable[Any]] = None,
        one_time_items: Optional[Iterable[Any]] = None,
        status: StructureStatus = StructureStatus.ACTIVE,
    ) -> FeeStructure:
        """Create the class's structure, or update it when one already exists."""

        class_id = require_non_empty(class_id, "Class")
        recurring = clean_items(recurring_items, FeeType.RECURRING)
        one_time = clean_items(one_time_items, FeeType.ONE_TIME)

        existing = self._structures.get_by_class(class_id)
        structure = FeeStructure(
            structure_id=existing.structure_id if existing else 0,
            class_id=class_id,
            class_name=(class_name or "").strip() or (existing.class_name if existing else class_id),
            recurring_items=recurring,
            one_time_items=one_time,
            total_amount=money_sum(i.amount for i in recurring + one_time),
            status=status,
        )

        if existing:
            saved = self._structures.update(structure)
            logger.info("Updated fee structure for %s (total=%s)", class_id, saved.total_amount)
        else:
            saved = self._structures.create(structure)
            logger.info("Created fee structure for %s (total=%s)", class_id, saved.total_amount)
        return saved

    def replace_items(
        self,
        structure_id: int,
        *,
        recurring_items: Optional[Iterable[Any]] = None,
        one_time_items: Optional[Iterable[Any]] = None,
    ) -> FeeStructure:
        current = self.get(structure_id)
        saved = self._structures.update_items(
            current.structure_id,
            recurring_items=clean_items(recurring_items, FeeType.RECURRING),
            one_time_items=clean_items(one_time_items, FeeType.ONE_TIME),
        )
        logger.info("Replaced items of fee structure %s (total=%s)", saved.structure_id, saved.total_amount)
        return saved

    def set_status(self, structure_id: int, status: StructureStatus) -> FeeStructure:
        return self._structures.update(replace(self.get(structure_id), status=status))

    def delete(self, structure_id: int) -> None:
        self._structures.delete(int(structure_id))
        logger.info("Deleted fee structure %s", structure_id)
