"""Transaction ledger repository protocol."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional, Protocol

from ...models.category import CategoryType
from ..values import CategorySummary, MonthlyTotal


class TransactionRepository(Protocol):
    """Aggregate reads over the expense and income ledgers.

    ``kind`` selects the ledger; all ranges are inclusive on both ends.
    """

    def sum_amount(
        self,
        kind: CategoryType,
        start_date: date,
        end_date: date,
        category_id: Optional[int] = None,
        *,
        user_id: int,
    ) -> Decimal:
        """Total amount in range, optionally limited to one category. Zero when empty."""
        ...

    def sum_by_category(
        self, kind: CategoryType, start_date: date, end_date: date, *, user_id: int
    ) -> list[CategorySummary]:
        """Per-category totals sorted by amount descending."""
        ...

    def sum_by_month(
        self, kind: CategoryType, start_date: date, end_date: date, *, user_id: int
    ) -> list[MonthlyTotal]:
        """Per (year, month) totals in chronological order."""
        ...
