"""SQLModel implementation of the expense/income ledger aggregates."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional, Union

from sqlalchemy import extract, func
from sqlmodel import select

from ...domain.values import CategorySummary, MonthlyTotal
from ...models.category import Category, CategoryType
from ...models.transaction import Expense, Income
from ..database import SessionFactory
from ._money import as_money

LedgerModel = Union[type[Expense], type[Income]]


def _ledger_for(kind: CategoryType) -> LedgerModel:
    return Income if kind == CategoryType.INCOME else Expense


class SQLModelTransactionRepository:
    """Read-only aggregates over the expense and income tables."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def sum_amount(
        self,
        kind: CategoryType,
        start_date: date,
        end_date: date,
        category_id: Optional[int] = None,
        *,
        user_id: int,
    ) -> Decimal:
        """Sum amounts in ``[start_date, end_date]``; ``category_id=None`` means every category."""
        model = _ledger_for(kind)
        with self.session_factory() as session:
            statement = (
                select(func.coalesce(func.sum(model.amount), 0))
                .where(model.user_id == user_id)
                .where(model.occurred_on >= start_date)
                .where(model.occurred_on <= end_date)
            )
            if category_id is not None:
                statement = statement.where(model.category_id == category_id)
            return as_money(session.exec(statement).one())

    def sum_by_category(
        self, kind: CategoryType, start_date: date, end_date: date, *, user_id: int
    ) -> list[CategorySummary]:
        """Group totals by category name, largest first (name breaks ties)."""
        model = _ledger_for(kind)
        total = func.sum(model.amount)
        with self.session_factory() as session:
            statement = (
                select(Category.name, total)
                .select_from(model)
                .join(Category, Category.id == model.category_id)
                .where(model.user_id == user_id)
                .where(model.occurred_on >= start_date)
                .where(model.occurred_on <= end_date)
                .group_by(Category.name)
                .order_by(total.desc(), Category.name)
            )
            return [
                CategorySummary(category_name=name, total_amount=as_money(amount))
                for name, amount in session.exec(statement).all()
            ]

    def sum_by_month(
        self, kind: CategoryType, start_date: date, end_date: date, *, user_id: int
    ) -> list[MonthlyTotal]:
        """Group totals into calendar months, oldest first."""
        model = _ledger_for(kind)
        year = extract("year", model.occurred_on)
        month = extract("month", model.occurred_on)
        with self.session_factory() as session:
            statement = (
                select(year, month, func.sum(model.amount))
                .where(model.user_id == user_id)
                .where(model.occurred_on >= start_date)
                .where(model.occurred_on <= end_date)
                .group_by(year, month)
                .order_by(year, month)
            )
            return [
                MonthlyTotal(year=int(y), month=int(m), total=as_money(amount))
                for y, m, amount in session.exec(statement).all()
            ]
