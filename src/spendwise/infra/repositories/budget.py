"""SQLModel implementation of Budget repository."""

from __future__ import annotations

from datetime import date
from typing import Iterable, Optional

from sqlmodel import col, select

from ...models.budget import Budget
from ..database import SessionFactory


class SQLModelBudgetRepository:
    """SQLModel-based budget repository implementation."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_by_id(self, budget_id: int, *, user_id: int) -> Optional[Budget]:
        """Retrieve a budget by ID."""
        with self.session_factory() as session:
            obj = session.exec(
                select(Budget).where(Budget.id == budget_id).where(Budget.user_id == user_id)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_all(self, *, user_id: int) -> list[Budget]:
        """List all budgets, newest period first."""
        with self.session_factory() as session:
            statement = (
                select(Budget)
                .where(Budget.user_id == user_id)
                .order_by(col(Budget.start_date).desc(), col(Budget.id).desc())
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def list_archived(self, *, user_id: int) -> list[Budget]:
        """List archived budgets, most recently ended first."""
        with self.session_factory() as session:
            statement = (
                select(Budget)
                .where(Budget.user_id == user_id)
                .where(Budget.archived == True)  # noqa: E712
                .order_by(col(Budget.end_date).desc())
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def find_overlapping(
        self,
        category_id: Optional[int],
        start_date: date,
        end_date: date,
        *,
        user_id: int,
        exclude_id: Optional[int] = None,
    ) -> list[Budget]:
        """Non-archived budgets for the same category-or-overall key overlapping the range.

        Overlap is inclusive: ``existing.start <= end AND existing.end >= start``.
        """
        with self.session_factory() as session:
            statement = (
                select(Budget)
                .where(Budget.user_id == user_id)
                .where(Budget.archived == False)  # noqa: E712
                .where(Budget.start_date <= end_date)
                .where(Budget.end_date >= start_date)
            )
            if category_id is None:
                statement = statement.where(col(Budget.category_id).is_(None))
            else:
                statement = statement.where(Budget.category_id == category_id)
            if exclude_id is not None:
                statement = statement.where(Budget.id != exclude_id)
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def find_active(self, as_of: date, *, user_id: int) -> list[Budget]:
        """Non-archived budgets whose period contains ``as_of``."""
        with self.session_factory() as session:
            statement = (
                select(Budget)
                .where(Budget.user_id == user_id)
                .where(Budget.archived == False)  # noqa: E712
                .where(Budget.start_date <= as_of)
                .where(Budget.end_date >= as_of)
                .order_by(col(Budget.start_date).desc())
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def create(self, budget: Budget, *, user_id: int) -> Budget:
        """Create a new budget."""
        with self.session_factory() as session:
            budget.user_id = user_id
            session.add(budget)
            session.commit()
            session.refresh(budget)
            session.expunge(budget)
            return budget

    def update(self, budget: Budget, *, user_id: int) -> Budget:
        """Update an existing budget."""
        with self.session_factory() as session:
            budget.user_id = user_id
            merged = session.merge(budget)
            session.commit()
            session.refresh(merged)
            session.expunge(merged)
            return merged

    def update_many(self, budgets: Iterable[Budget], *, user_id: int) -> list[Budget]:
        """Persist several budgets in one transaction."""
        with self.session_factory() as session:
            merged = []
            for budget in budgets:
                budget.user_id = user_id
                merged.append(session.merge(budget))
            session.commit()
            for obj in merged:
                session.refresh(obj)
            session.expunge_all()
            return merged

    def delete(self, budget_id: int, *, user_id: int) -> None:
        """Delete a budget by ID."""
        with self.session_factory() as session:
            budget = session.exec(
                select(Budget).where(Budget.id == budget_id, Budget.user_id == user_id)
            ).first()
            if budget:
                session.delete(budget)
                session.commit()
