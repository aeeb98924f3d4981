from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict, Optional, Sequence

from ..common.money import money_sum, to_money
from ..common.pagination import Page, PageParams
from ..core.enums import FeeType, Frequency, StructureStatus
from ..core.exceptions import NotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import FeeItem, FeeStructure
from .repository import FeeStructureRepository


def item_from_row(r: Dict[str, Any]) -> FeeItem:
    fee_type = FeeType.parse(r["fee_type"])
    return FeeItem(
        item_id=int(r["item_id"]),
        fee_head=r["fee_head"],
        amount=to_money(r["amount"]),
        fee_type=fee_type,
        frequency=Frequency.parse(r.get("frequency")) if fee_type == FeeType.RECURRING else None,
        description=r.get("description"),
    )


def item_params(owner_id: int, position: int, item: FeeItem) -> tuple:
    return (
        int(owner_id),
        position,
        item.fee_head,
        item.amount,
        item.fee_type.value,
        item.frequency.value if item.frequency and item.fee_type == FeeType.RECURRING else None,
        item.description,
    )


class MySQLFeeStructureRepository(FeeStructureRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _load_items(self, cur, structure_ids: Sequence[int]) -> dict[int, list[Dict[str, Any]]]:
        if not structure_ids:
            return {}
        cur.execute(
            f"""
            SELECT item_id, structure_id, fee_head, amount, fee_type, frequency, description
            FROM fee_structure_items
            WHERE structure_id IN ({in_clause(list(structure_ids))})
            ORDER BY structure_id ASC, position ASC, item_id ASC
            """,
            tuple(int(i) for i in structure_ids),
        )
        by_structure: dict[int, list[Dict[str, Any]]] = {}
        for r in fetchall(cur):
            by_structure.setdefault(int(r["structure_id"]), []).append(r)
        return by_structure

    def _to_structure(self, r: Dict[str, Any], item_rows: list[Dict[str, Any]]) -> FeeStructure:
        items = [item_from_row(i) for i in item_rows]
        return FeeStructure(
            structure_id=int(r["structure_id"]),
            class_id=r["class_id"],
            class_name=r["class_name"],
            recurring_items=tuple(i for i in items if i.fee_type == FeeType.RECURRING),
            one_time_items=tuple(i for i in items if i.fee_type == FeeType.ONE_TIME),
            total_amount=to_money(r["total_amount"]),
            status=StructureStatus.parse(r["status"]),
        )

    def _select_one(self, where: str, params: tuple) -> Optional[FeeStructure]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT structure_id, class_id, class_name, total_amount, status
                FROM fee_structures
                WHERE {where}
                """,
                params,
            )
            r = fetchone(cur)
            if not r:
                return None
            items = self._load_items(cur, [int(r["structure_id"])])
            return self._to_structure(r, items.get(int(r["structure_id"]), []))

    def list_structures(self, params: PageParams) -> Page[FeeStructure]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS total FROM fee_structures")
            total = int(fetchone(cur)["total"])
            cur.execute(
                """
                SELECT structure_id, class_id, class_name, total_amount, status
                FROM fee_structures
                ORDER BY class_name ASC
                LIMIT %s OFFSET %s
                """,
                (params.limit, params.offset),
            )
            rows = fetchall(cur)
            items = self._load_items(cur, [int(r["structure_id"]) for r in rows])
            data = tuple(self._to_structure(r, items.get(int(r["structure_id"]), [])) for r in rows)
            return Page(data=data, total=total)

    def get_by_id(self, structure_id: int) -> Optional[FeeStructure]:
        return self._select_one("structure_id=%s", (int(structure_id),))

    def get_by_class(self, class_id: str) -> Optional[FeeStructure]:
        return self._select_one("class_id=%s", (str(class_id),))

    def _write_items(self, cur, structure: FeeStructure) -> None:
        cur.execute("DELETE FROM fee_structure_items WHERE structure_id=%s", (structure.structure_id,))
        for position, item in enumerate(structure.items):
            cur.execute(
                """
                INSERT INTO fee_structure_items(structure_id, position, fee_head, amount, fee_type, frequency, description)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                item_params(structure.structure_id, position, item),
            )

    def create(self, structure: FeeStructure) -> FeeStructure:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO fee_structures(class_id, class_name, total_amount, status)
                VALUES(%s,%s,%s,%s)
                """,
                (structure.class_id, structure.class_name, structure.total_amount, structure.status.value),
            )
            created = replace(structure, structure_id=int(cur.lastrowid))
            self._write_items(cur, created)
        return self.get_by_id(created.structure_id) or created

    def update(self, structure: FeeStructure) -> FeeStructure:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT structure_id FROM fee_structures WHERE structure_id=%s", (structure.structure_id,))
            if not fetchone(cur):
                raise NotFoundError("Fee structure not found")
            cur.execute(
                """
                UPDATE fee_structures
                SET class_id=%s, class_name=%s, total_amount=%s, status=%s
                WHERE structure_id=%s
                """,
                (
                    structure.class_id,
                    structure.class_name,
                    structure.total_amount,
                    structure.status.value,
                    structure.structure_id,
                ),
            )
            self._write_items(cur, structure)
        return self.get_by_id(structure.structure_id) or structure

    def update_items(
        self,
        structure_id: int,
        *,
        recurring_items: Sequence[FeeItem],
        one_time_items: Sequence[FeeItem],
    ) -> FeeStructure:
        current = self.get_by_id(int(structure_id))
        if current is None:
            raise NotFoundError("Fee structure not found")
        updated = replace(
            current,
            recurring_items=tuple(recurring_items),
            one_time_items=tuple(one_time_items),
            total_amount=money_sum(i.amount for i in (*recurring_items, *one_time_items)),
        )
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE fee_structures SET total_amount=%s WHERE structure_id=%s",
                (updated.total_amount, updated.structure_id),
            )
            self._write_items(cur, updated)
        return self.get_by_id(updated.structure_id) or updated

    def delete(self, structure_id: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM fee_structures WHERE structure_id=%s", (int(structure_id),))
            if cur.rowcount <= 0:
                raise NotFoundError("Fee structure not found")
