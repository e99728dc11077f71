"""Budget repository protocol."""

from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Protocol

from ...models.budget import Budget


class BudgetRepository(Protocol):
    """Repository for managing budget entities, always scoped to one owner."""

    def get_by_id(self, budget_id: int, *, user_id: int) -> Optional[Budget]:
        """Retrieve a budget by ID if the owner matches."""
        ...

    def list_all(self, *, user_id: int) -> list[Budget]:
        """List every budget of the owner, newest start date first."""
        ...

    def list_archived(self, *, user_id: int) -> list[Budget]:
        """List archived budgets, latest end date first."""
        ...

    def find_overlapping(
        self,
        category_id: Optional[int],
        start_date: date,
        end_date: date,
        *,
        user_id: int,
        exclude_id: Optional[int] = None,
    ) -> list[Budget]:
        """Non-archived budgets of the same category whose range overlaps [start, end]."""
        ...

    def find_active(self, as_of: date, *, user_id: int) -> list[Budget]:
        """Non-archived budgets whose range contains ``as_of``."""
        ...

    def create(self, budget: Budget, *, user_id: int) -> Budget:
        ...

    def update(self, budget: Budget, *, user_id: int) -> Budget:
        ...

    def update_many(self, budgets: Iterable[Budget], *, user_id: int) -> list[Budget]:
        ...

    def delete(self, budget_id: int, *, user_id: int) -> None:
        ...
