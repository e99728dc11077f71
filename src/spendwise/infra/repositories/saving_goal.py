"""SQLModel implementation of SavingGoal repository."""

from __future__ import annotations

from sqlmodel import col, select

from ...models.saving_goal import SavingGoal
from ..database import SessionFactory


class SQLModelSavingGoalRepository:
    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def list_all(self, *, user_id: int) -> list[SavingGoal]:
        """List saving goals, newest first."""
        with self.session_factory() as session:
            statement = (
                select(SavingGoal)
                .where(SavingGoal.user_id == user_id)
                .order_by(col(SavingGoal.created_at).desc(), col(SavingGoal.id).desc())
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows
