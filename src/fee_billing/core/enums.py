from __future__ import annotations

from enum import Enum


class FeeType(str, Enum):
    """Loại khoản phí: thu định kỳ hoặc thu một lần."""

    RECURRING = "Recurring"
    ONE_TIME = "One-Time"

    @classmethod
    def parse(cls, value) -> "FeeType":
        if isinstance(value, FeeType):
            return value
        key = str(value or "").strip().lower().replace("-", "").replace("_", "").replace(" ", "")
        if key == "onetime":
            return cls.ONE_TIME
        if key in {"recurring", ""}:
            return cls.RECURRING
        raise ValueError(f"Unknown fee type: {value!r}")


class Frequency(str, Enum):
    MONTHLY = "Monthly"
    QUARTERLY = "Quarterly"
    YEARLY = "Yearly"

    @classmethod
    def parse(cls, value) -> "Frequency":
        if isinstance(value, Frequency):
            return value
        if not value:
            return cls.MONTHLY
        for member in cls:
            if member.value.lower() == str(value).strip().lower():
                return member
        raise ValueError(f"Unknown frequency: {value!r}")


class BillStatus(str, Enum):
    """Trạng thái hoá đơn học phí."""

    PENDING = "Pending"
    OVERDUE = "Overdue"
    PARTIAL = "Partial"
    PAID = "Paid"

    @classmethod
    def parse(cls, value) -> "BillStatus":
        if isinstance(value, BillStatus):
            return value
        for member in cls:
            if member.value.lower() == str(value or "").strip().lower():
                return member
        raise ValueError(f"Unknown bill status: {value!r}")


class StructureStatus(str, Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"

    @classmethod
    def parse(cls, value) -> "StructureStatus":
        if isinstance(value, StructureStatus):
            return value
        if not value:
            return cls.ACTIVE
        for member in cls:
            if member.value.lower() == str(value).strip().lower():
                return member
        raise ValueError(f"Unknown structure status: {value!r}")
