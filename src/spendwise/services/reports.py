"""Report aggregation over the ledger, budgets and saving goals."""

from __future__ import annotations

from dataclasses import replace
from datetime import date, timedelta
from decimal import Decimal
from typing import Callable, Optional

from ..domain.errors import ErrorKind, ValidationError
from ..domain.repositories import SavingGoalRepository, TransactionRepository
from ..domain.values import (
    ZERO,
    BudgetPerformance,
    BudgetReportRow,
    BudgetStats,
    CategoryBreakdown,
    CategorySummary,
    FinancialReport,
    MonthlyTrend,
    QuickStats,
    SavingGoalReportRow,
)
from ..logging_config import get_logger
from ..models.category import CategoryType
from . import progress
from .budgeting import OVERALL_BUDGET_NAME, BudgetPeriodManager, last_day_of_month, periods_overlap

logger = get_logger("reports")

AT_RISK_THRESHOLD = Decimal("90")

PRESET_LAST_30_DAYS = "LAST_30_DAYS"
PRESET_THIS_MONTH = "THIS_MONTH"
PRESET_LAST_MONTH = "LAST_MONTH"
PRESET_THIS_YEAR = "THIS_YEAR"
PRESET_CUSTOM = "CUSTOM"


def resolve_preset(
    preset: str,
    today: date,
    *,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> tuple[Optional[date], Optional[date]]:
    """Translate a named date-range preset into ``(from, to)``.

    ``CUSTOM`` passes ``start``/``end`` through untouched so range validation
    still happens in the report call.
    """

    key = (preset or PRESET_CUSTOM).strip().upper()
    if key == PRESET_LAST_30_DAYS:
        return today - timedelta(days=29), today
    if key == PRESET_THIS_MONTH:
        return today.replace(day=1), last_day_of_month(today)
    if key == PRESET_LAST_MONTH:
        last_month_end = today.replace(day=1) - timedelta(days=1)
        return last_month_end.replace(day=1), last_month_end
    if key == PRESET_THIS_YEAR:
        return date(today.year, 1, 1), date(today.year, 12, 31)
    if key == PRESET_CUSTOM:
        return start, end
    raise ValueError(f"Unknown date range preset: {preset}")


def classify(percentage: Decimal) -> str:
    """Bucket an unclamped budget percentage: on_track, at_risk or exceeded."""

    if percentage > progress.HUNDRED:
        return "exceeded"
    if percentage >= AT_RISK_THRESHOLD:
        return "at_risk"
    return "on_track"


def budget_stats(rows: list[BudgetReportRow]) -> BudgetStats:
    buckets = {"on_track": 0, "at_risk": 0, "exceeded": 0}
    for row in rows:
        buckets[classify(row.progress_percentage)] += 1
    total_budgeted = sum((row.amount for row in rows), ZERO)
    total_spent = sum((row.spent for row in rows), ZERO)
    return BudgetStats(
        on_track=buckets["on_track"],
        at_risk=buckets["at_risk"],
        exceeded=buckets["exceeded"],
        total_budgeted=total_budgeted,
        total_spent=total_spent,
        overall_utilization=progress.compute_progress(total_spent, total_budgeted),
    )


def top_category(categories: list[CategorySummary]) -> Optional[CategorySummary]:
    """Largest total; on ties the first one in list order wins."""

    top: Optional[CategorySummary] = None
    for summary in categories:
        if top is None or summary.total_amount > top.total_amount:
            top = summary
    return top


class ReportAggregator:
    """Builds dashboards, full reports, trends, breakdowns and quick stats.

    All operations are read-only and validate the date range first.
    """

    def __init__(
        self,
        *,
        ledger: TransactionRepository,
        budget_manager: BudgetPeriodManager,
        saving_goals: SavingGoalRepository,
        today: Optional[Callable[[], date]] = None,
    ):
        self.ledger = ledger
        self.budget_manager = budget_manager
        self.saving_goals = saving_goals
        self.today = today or budget_manager.today

    def validate_range(self, start: Optional[date], end: Optional[date]) -> None:
        if start is None or end is None:
            raise ValidationError(ErrorKind.NULL_RANGE)
        if start > end:
            raise ValidationError(ErrorKind.RANGE_INVERTED)
        if start > self.today():
            raise ValidationError(ErrorKind.FUTURE_START)

    def generate_dashboard(self, owner: int, start: Optional[date], end: Optional[date]) -> FinancialReport:
        logger.info("Generating dashboard", extra={"user_id": owner, "from": start, "to": end})
        self.validate_range(start, end)

        total_expense = self.ledger.sum_amount(CategoryType.EXPENSE, start, end, user_id=owner)
        total_income = self.ledger.sum_amount(CategoryType.INCOME, start, end, user_id=owner)
        expense_by_category = tuple(
            self.ledger.sum_by_category(CategoryType.EXPENSE, start, end, user_id=owner)
        )
        income_by_category = tuple(
            self.ledger.sum_by_category(CategoryType.INCOME, start, end, user_id=owner)
        )
        empty = (
            total_income == 0
            and total_expense == 0
            and not expense_by_category
            and not income_by_category
        )
        return FinancialReport(
            from_date=start,
            to_date=end,
            total_income=total_income,
            total_expense=total_expense,
            balance=total_income - total_expense,
            expense_by_category=expense_by_category,
            income_by_category=income_by_category,
            empty_data=empty,
        )

    def generate_report(self, owner: int, start: Optional[date], end: Optional[date]) -> FinancialReport:
        """Dashboard plus budget rows for the window and every saving goal."""

        logger.info("Generating detailed report", extra={"user_id": owner, "from": start, "to": end})
        dashboard = self.generate_dashboard(owner, start, end)
        return replace(
            dashboard,
            budgets=tuple(self._budget_rows(owner, start, end)),
            saving_goals=tuple(self._saving_goal_rows(owner)),
        )

    def get_monthly_trends(self, owner: int, start: Optional[date], end: Optional[date]) -> list[MonthlyTrend]:
        logger.info("Generating monthly trends", extra={"user_id": owner, "from": start, "to": end})
        self.validate_range(start, end)

        expenses = {
            (row.year, row.month): row.total
            for row in self.ledger.sum_by_month(CategoryType.EXPENSE, start, end, user_id=owner)
        }
        incomes = {
            (row.year, row.month): row.total
            for row in self.ledger.sum_by_month(CategoryType.INCOME, start, end, user_id=owner)
        }

        trends = []
        for year, month in sorted(set(expenses) | set(incomes)):
            income = incomes.get((year, month), ZERO)
            spent = expenses.get((year, month), ZERO)
            savings = income - spent
            trends.append(
                MonthlyTrend(
                    year=year,
                    month=month,
                    total_income=income,
                    total_expenses=spent,
                    savings=savings,
                    savings_rate=progress.compute_progress(savings, income),
                )
            )
        return trends

    def get_category_breakdown(
        self,
        owner: int,
        start: Optional[date],
        end: Optional[date],
        type: str = CategoryType.EXPENSE.value,
    ) -> CategoryBreakdown:
        logger.info(
            "Generating category breakdown",
            extra={"user_id": owner, "from": start, "to": end, "type": type},
        )
        self.validate_range(start, end)

        kind = CategoryType.parse(type)
        categories = self.ledger.sum_by_category(kind, start, end, user_id=owner)
        return CategoryBreakdown(
            type=kind.value,
            total_amount=sum((c.total_amount for c in categories), ZERO),
            categories=tuple(categories),
            top_category=top_category(categories),
            total_categories=len(categories),
        )

    def get_budget_performance(self, owner: int, start: Optional[date], end: Optional[date]) -> BudgetPerformance:
        logger.info("Generating budget performance", extra={"user_id": owner, "from": start, "to": end})
        self.validate_range(start, end)

        rows = self._budget_rows(owner, start, end)
        stats = budget_stats(rows)
        return BudgetPerformance(
            total_budgets=len(rows),
            on_track=stats.on_track,
            at_risk=stats.at_risk,
            exceeded=stats.exceeded,
            total_budgeted=stats.total_budgeted,
            total_spent=stats.total_spent,
            overall_utilization=stats.overall_utilization,
            budgets=tuple(rows),
        )

    def get_quick_stats(
        self, owner: int, start: Optional[date] = None, end: Optional[date] = None
    ) -> QuickStats:
        """Headline cards; with no range at all the current calendar month is used."""

        if start is None and end is None:
            start, end = resolve_preset(PRESET_THIS_MONTH, self.today())
        logger.info("Generating quick stats", extra={"user_id": owner, "from": start, "to": end})
        self.validate_range(start, end)

        income = self.ledger.sum_amount(CategoryType.INCOME, start, end, user_id=owner)
        expenses = self.ledger.sum_amount(CategoryType.EXPENSE, start, end, user_id=owner)
        net = income - expenses
        active_budgets = self.budget_manager.list_active(owner, self.today())
        active_goals = [goal for goal in self.saving_goals.list_all(user_id=owner) if not goal.achieved]
        goal_progress = [
            progress.goal_snapshot(goal).percentage for goal in active_goals
        ]
        return QuickStats(
            current_balance=net,
            monthly_income=income,
            monthly_expenses=expenses,
            net_cash_flow=net,
            savings_rate=progress.compute_progress(net, income),
            active_budgets=len(active_budgets),
            active_saving_goals=len(active_goals),
            total_savings_progress=progress.average(goal_progress),
        )

    def _budget_rows(self, owner: int, start: date, end: date) -> list[BudgetReportRow]:
        """Budgets overlapping the window, charged only for the days inside it."""

        manager = self.budget_manager
        budgets = [
            budget
            for budget in manager.budgets.list_all(user_id=owner)
            if periods_overlap(budget.start_date, budget.end_date, start, end)
        ]
        names = manager.category_names(budgets, owner)

        rows = []
        for budget in budgets:
            spent = manager.spent_between(budget, max(start, budget.start_date), min(end, budget.end_date))
            snap = progress.budget_snapshot(budget, spent)
            rows.append(
                BudgetReportRow(
                    budget_id=budget.id,
                    budget_name=names.get(budget.category_id, OVERALL_BUDGET_NAME)
                    if budget.category_id is not None
                    else OVERALL_BUDGET_NAME,
                    amount=budget.amount,
                    spent=spent,
                    progress_percentage=snap.percentage,
                    exceeded=snap.exceeded,
                )
            )
        return rows

    def _saving_goal_rows(self, owner: int) -> list[SavingGoalReportRow]:
        return [
            SavingGoalReportRow(
                name=goal.name,
                target_amount=goal.target_amount,
                current_amount=goal.current_amount,
                progress_percentage=progress.goal_snapshot(goal).percentage,
                achieved=goal.achieved,
            )
            for goal in self.saving_goals.list_all(user_id=owner)
        ]
