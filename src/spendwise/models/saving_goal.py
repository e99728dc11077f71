"""Saving goal table."""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel


class SavingGoal(SQLModel, table=True):
    """A target amount the owner is saving towards."""

    __tablename__: ClassVar[str] = "saving_goal"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(nullable=False, index=True)
    name: str = Field(nullable=False, max_length=255)
    target_amount: Decimal = Field(nullable=False, max_digits=12, decimal_places=2)
    current_amount: Decimal = Field(
        default=Decimal("0.00"), nullable=False, max_digits=12, decimal_places=2
    )
    deadline: Optional[date] = Field(default=None)
    achieved: bool = Field(default=False, nullable=False)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    def update_achieved_status(self) -> None:
        self.achieved = self.current_amount >= self.target_amount
