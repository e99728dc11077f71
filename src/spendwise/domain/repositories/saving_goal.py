"""Saving goal repository protocol."""

from __future__ import annotations

from typing import Protocol

from ...models.saving_goal import SavingGoal


class SavingGoalRepository(Protocol):
    def list_all(self, *, user_id: int) -> list[SavingGoal]:
        """List goals of the owner, newest first."""
        ...
