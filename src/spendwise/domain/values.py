"""Immutable value objects produced by the budgeting and reporting services."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional, Protocol

ZERO = Decimal("0")


class DatedAmount(Protocol):
    """Read capability shared by expense and income records."""

    user_id: int
    category_id: int
    amount: Decimal
    occurred_on: date


@dataclass(frozen=True, slots=True)
class CategorySummary:
    """Total amount for one category in a period."""

    category_name: str
    total_amount: Decimal


@dataclass(frozen=True, slots=True)
class MonthlyTotal:
    year: int
    month: int
    total: Decimal


@dataclass(frozen=True, slots=True)
class RolloverPeriod:
    start: date
    end: date

    @property
    def length_days(self) -> int:
        return (self.end - self.start).days + 1


@dataclass(frozen=True, slots=True)
class ProgressSnapshot:
    """Spent-versus-allocated view of a budget or saving goal, computed on read."""

    entity_id: Optional[int]
    allocated: Decimal
    spent: Decimal
    percentage: Decimal
    exceeded: bool


@dataclass(frozen=True, slots=True)
class BudgetView:
    """Budget listing row; ``progress_percentage`` is clamped to [0, 100]."""

    id: int
    category_id: Optional[int]
    category_name: Optional[str]
    amount: Decimal
    start_date: date
    end_date: date
    spent: Decimal
    progress_percentage: Decimal
    rollover: bool
    archived: bool


@dataclass(frozen=True, slots=True)
class BudgetReportRow:
    """Budget row inside a report; progress is left unclamped."""

    budget_id: Optional[int]
    budget_name: str
    amount: Decimal
    spent: Decimal
    progress_percentage: Decimal
    exceeded: bool


@dataclass(frozen=True, slots=True)
class SavingGoalReportRow:
    name: str
    target_amount: Decimal
    current_amount: Decimal
    progress_percentage: Decimal
    achieved: bool


@dataclass(frozen=True, slots=True)
class FinancialReport:
    """Dashboard totals, optionally extended with budget and goal rows."""

    from_date: date
    to_date: date
    total_income: Decimal
    total_expense: Decimal
    balance: Decimal
    expense_by_category: tuple[CategorySummary, ...]
    income_by_category: tuple[CategorySummary, ...]
    empty_data: bool
    budgets: tuple[BudgetReportRow, ...] = field(default_factory=tuple)
    saving_goals: tuple[SavingGoalReportRow, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class MonthlyTrend:
    year: int
    month: int
    total_income: Decimal
    total_expenses: Decimal
    savings: Decimal
    savings_rate: Decimal

    @property
    def period(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


@dataclass(frozen=True, slots=True)
class CategoryBreakdown:
    type: str
    total_amount: Decimal
    categories: tuple[CategorySummary, ...]
    top_category: Optional[CategorySummary]
    total_categories: int


@dataclass(frozen=True, slots=True)
class BudgetStats:
    on_track: int
    at_risk: int
    exceeded: int
    total_budgeted: Decimal
    total_spent: Decimal
    overall_utilization: Decimal


@dataclass(frozen=True, slots=True)
class BudgetPerformance:
    total_budgets: int
    on_track: int
    at_risk: int
    exceeded: int
    total_budgeted: Decimal
    total_spent: Decimal
    overall_utilization: Decimal
    budgets: tuple[BudgetReportRow, ...]


@dataclass(frozen=True, slots=True)
class QuickStats:
    """Headline numbers for dashboard cards."""

    current_balance: Decimal
    monthly_income: Decimal
    monthly_expenses: Decimal
    net_cash_flow: Decimal
    savings_rate: Decimal
    active_budgets: int
    active_saving_goals: int
    total_savings_progress: Decimal
