"""Budgeting tables."""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import ClassVar, Optional

from sqlalchemy import Index, text
from sqlmodel import Field, SQLModel


class Budget(SQLModel, table=True):
    """A spending allocation for one category (or overall) over an inclusive date range.

    Progress is never stored here; it is derived on read by
    :mod:`spendwise.services.progress`.
    """

    __tablename__: ClassVar[str] = "budget"
    __table_args__ = (
        # Archived rows may repeat a period; only live budgets must be unique.
        Index(
            "uq_budget_user_category_period",
            "user_id", "category_id", "start_date", "end_date",
            unique=True,
            sqlite_where=text("archived = 0"),
            postgresql_where=text("NOT archived"),
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(nullable=False, index=True)
    category_id: Optional[int] = Field(default=None, foreign_key="category.id", index=True)
    amount: Decimal = Field(nullable=False, max_digits=12, decimal_places=2)
    start_date: date = Field(index=True, nullable=False)
    end_date: date = Field(index=True, nullable=False)
    rollover: bool = Field(default=False, nullable=False)
    archived: bool = Field(default=False, nullable=False, index=True)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    @property
    def is_overall(self) -> bool:
        return self.category_id is None
