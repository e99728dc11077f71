"""SQLModel definitions for ledger entries.

Expenses and incomes live in separate tables. Both expose ``user_id``,
``category_id``, ``amount`` and ``occurred_on``, which is all the reporting
code reads (see :class:`spendwise.domain.values.DatedAmount`).
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel


class Expense(SQLModel, table=True):
    """Money leaving the owner's pocket."""

    __tablename__: ClassVar[str] = "expense"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(nullable=False, index=True)
    category_id: int = Field(foreign_key="category.id", nullable=False, index=True)
    amount: Decimal = Field(nullable=False, max_digits=12, decimal_places=2)
    occurred_on: date = Field(nullable=False, index=True)
    description: str = Field(default="", max_length=255)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )


class Income(SQLModel, table=True):
    """Money received by the owner."""

    __tablename__: ClassVar[str] = "income"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(nullable=False, index=True)
    category_id: int = Field(foreign_key="category.id", nullable=False, index=True)
    amount: Decimal = Field(nullable=False, max_digits=12, decimal_places=2)
    occurred_on: date = Field(nullable=False, index=True)
    description: str = Field(default="", max_length=255)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
