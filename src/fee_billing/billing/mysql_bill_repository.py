from __future__ import annotations

from dataclasses import replace
from decimal import Decimal
from typing import Any, Dict, Optional, Sequence

from ..common.money import to_money
from ..common.pagination import Page, PageParams
from ..core.enums import BillStatus
from ..core.exceptions import NotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from ..structures.mysql_structure_repository import item_from_row, item_params
from .model import BillFilters, FeeBill
from .reconciliation import balance, reconcile
from .repository import FeeBillRepository

_BILL_COLUMNS = """
    bill_id, student_id, student_name, class_id, class_name,
    bill_date, due_date, total_amount, paid_amount, status
"""


class MySQLFeeBillRepository(FeeBillRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _items_for(self, cur, bill_ids: Sequence[int]) -> dict[int, list]:
        if not bill_ids:
            return {}
        cur.execute(
            f"""
            SELECT item_id, bill_id, fee_head, amount, fee_type, frequency, description
            FROM fee_bill_items
            WHERE bill_id IN ({in_clause(list(bill_ids))})
            ORDER BY bill_id ASC, position ASC, item_id ASC
            """,
            tuple(int(i) for i in bill_ids),
        )
        out: dict[int, list] = {}
        for r in fetchall(cur):
            out.setdefault(int(r["bill_id"]), []).append(item_from_row(r))
        return out

    def _to_bill(self, r: Dict[str, Any], items: list) -> FeeBill:
        total = to_money(r["total_amount"])
        paid = to_money(r["paid_amount"])
        bill = FeeBill(
            bill_id=int(r["bill_id"]),
            student_id=int(r["student_id"]),
            student_name=r["student_name"],
            class_id=r["class_id"],
            class_name=r["class_name"],
            bill_date=r.get("bill_date"),
            due_date=r.get("due_date"),
            fee_items=tuple(items),
            total_amount=total,
            paid_amount=paid,
            balance_amount=balance(total, paid),
            status=BillStatus.parse(r["status"]),
        )
        return reconcile(bill)

    def _where(self, filters: BillFilters) -> tuple[str, list[object]]:
        clauses = ["1=1"]
        params: list[object] = []
        if filters.status is not None:
            clauses.append("status=%s")
            params.append(filters.status.value)
        if filters.student_id is not None:
            clauses.append("student_id=%s")
            params.append(int(filters.student_id))
        if filters.class_id is not None:
            clauses.append("class_id=%s")
            params.append(filters.class_id)
        if filters.start is not None:
            clauses.append("bill_date >= %s")
            params.append(filters.start)
        if filters.end is not None:
            clauses.append("bill_date <= %s")
            params.append(filters.end)
        return " AND ".join(clauses), params

    def _select(self, cur, where: str, params: list[object], suffix: str = "") -> list[FeeBill]:
        cur.execute(
            f"SELECT {_BILL_COLUMNS} FROM fee_bills WHERE {where} ORDER BY bill_date DESC, bill_id DESC {suffix}",
            tuple(params),
        )
        rows = fetchall(cur)
        items = self._items_for(cur, [int(r["bill_id"]) for r in rows])
        return [self._to_bill(r, items.get(int(r["bill_id"]), [])) for r in rows]

    def list_bills(self, filters: BillFilters, params: PageParams) -> Page[FeeBill]:
        where, values = self._where(filters)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM fee_bills WHERE {where}", tuple(values))
            total = int(fetchone(cur)["total"])
            data = self._select(cur, where, values + [params.limit, params.offset], "LIMIT %s OFFSET %s")
            return Page(data=tuple(data), total=total)

    def get_bill(self, bill_id: int) -> Optional[FeeBill]:
        with db_cursor(self._conn_factory) as (_, cur):
            found = self._select(cur, "bill_id=%s", [int(bill_id)])
            return found[0] if found else None

    def list_for_student(self, student_id: int) -> Sequence[FeeBill]:
        with db_cursor(self._conn_factory) as (_, cur):
            return self._select(cur, "student_id=%s", [int(student_id)])

    def _write_items(self, cur, bill: FeeBill) -> None:
        cur.execute("DELETE FROM fee_bill_items WHERE bill_id=%s", (bill.bill_id,))
        for position, item in enumerate(bill.fee_items):
            cur.execute(
                """
                INSERT INTO fee_bill_items(bill_id, position, fee_head, amount, fee_type, frequency, description)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                item_params(bill.bill_id, position, item),
            )

    def create_bill(self, bill: FeeBill) -> FeeBill:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO fee_bills(student_id, student_name, class_id, class_name, bill_date, due_date,
                                      total_amount, paid_amount, status)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(bill.student_id),
                    bill.student_name,
                    bill.class_id,
                    bill.class_name,
                    bill.bill_date,
                    bill.due_date,
                    bill.total_amount,
                    bill.paid_amount,
                    bill.status.value,
                ),
            )
            created = replace(bill, bill_id=int(cur.lastrowid))
            self._write_items(cur, created)
        return created

    def update_bill(self, bill_id: int, bill: FeeBill) -> FeeBill:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE fee_bills
                SET student_id=%s, student_name=%s, class_id=%s, class_name=%s, bill_date=%s, due_date=%s,
                    total_amount=%s, status=%s
                WHERE bill_id=%s
                """,
                (
                    int(bill.student_id),
                    bill.student_name,
                    bill.class_id,
                    bill.class_name,
                    bill.bill_date,
                    bill.due_date,
                    bill.total_amount,
                    bill.status.value,
                    int(bill_id),
                ),
            )
            cur.execute("SELECT bill_id FROM fee_bills WHERE bill_id=%s", (int(bill_id),))
            if not fetchone(cur):
                raise NotFoundError("Fee bill not found")
            updated = replace(bill, bill_id=int(bill_id))
            self._write_items(cur, updated)
        return self.get_bill(int(bill_id)) or updated

    def delete_bill(self, bill_id: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM fee_bills WHERE bill_id=%s", (int(bill_id),))
            if cur.rowcount <= 0:
                raise NotFoundError("Fee bill not found")

    def record_payment(self, bill_id: int, payment_amount: Decimal) -> FeeBill:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT bill_id FROM fee_bills WHERE bill_id=%s FOR UPDATE", (int(bill_id),))
            if not fetchone(cur):
                raise NotFoundError("Fee bill not found")
            cur.execute("INSERT INTO fee_payments(bill_id, amount) VALUES(%s,%s)", (int(bill_id), payment_amount))
            cur.execute(
                """
                UPDATE fee_bills
                SET paid_amount = paid_amount + %s,
                    status = CASE WHEN paid_amount >= total_amount THEN %s ELSE %s END
                WHERE bill_id=%s
                """,
                (payment_amount, BillStatus.PAID.value, BillStatus.PARTIAL.value, int(bill_id)),
            )
        bill = self.get_bill(int(bill_id))
        if bill is None:
            raise NotFoundError("Fee bill not found")
        return bill
