"""Ledger category definitions."""

from __future__ import annotations

from enum import Enum
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel


class CategoryType(str, Enum):
    """Kind of transaction a category classifies."""

    EXPENSE = "EXPENSE"
    INCOME = "INCOME"

    @classmethod
    def parse(cls, raw: str | None) -> "CategoryType":
        """Return INCOME for any case of ``income``; everything else is EXPENSE."""

        if raw is not None and raw.strip().upper() == cls.INCOME.value:
            return cls.INCOME
        return cls.EXPENSE


class Category(SQLModel, table=True):
    """Transaction category used for budgeting and reporting.

    ``user_id`` is ``None`` for shared system categories visible to every owner.
    """

    __tablename__: ClassVar[str] = "category"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: Optional[int] = Field(default=None, index=True)
    name: str = Field(index=True, nullable=False, max_length=64)
    category_type: str = Field(default=CategoryType.EXPENSE.value, nullable=False, max_length=16)
