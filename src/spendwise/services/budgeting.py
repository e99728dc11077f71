"""Budget period lifecycle: validation, overlap checks, archival, rollover."""

from __future__ import annotations

import threading
import weakref
from calendar import monthrange
from contextlib import ExitStack, contextmanager
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Callable, Iterator, Optional

from ..domain.errors import ErrorKind, NotFoundError, ValidationError
from ..domain.repositories import BudgetRepository, CategoryRepository, TransactionRepository
from ..domain.values import BudgetView, RolloverPeriod
from ..logging_config import get_logger
from ..models.budget import Budget
from ..models.category import CategoryType
from . import progress

logger = get_logger("budgeting")

OVERALL_BUDGET_NAME = "Overall Budget"
_CENT = Decimal("0.01")

PeriodKey = tuple[int, Optional[int]]

# Entries disappear once no caller holds the lock.
_period_locks: "weakref.WeakValueDictionary[PeriodKey, threading.Lock]" = weakref.WeakValueDictionary()
_period_locks_guard = threading.Lock()


@contextmanager
def lock_periods(*keys: PeriodKey) -> Iterator[None]:
    """Serialize check-then-write sequences per ``(owner, category)`` key.

    Keys are acquired in a fixed order so an update that moves a budget between
    categories cannot deadlock against a concurrent move in the other direction.
    """

    ordered = sorted(set(keys), key=lambda key: (key[0], -1 if key[1] is None else key[1]))
    with _period_locks_guard:
        locks = []
        for key in ordered:
            lock = _period_locks.get(key)
            if lock is None:
                lock = _period_locks[key] = threading.Lock()
            locks.append(lock)
    with ExitStack() as stack:
        for lock in locks:
            stack.enter_context(lock)
        yield


def periods_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """Inclusive overlap test; ranges that share only an endpoint still overlap."""

    return a_start <= b_end and a_end >= b_start


def last_day_of_month(day: date) -> date:
    return day.replace(day=monthrange(day.year, day.month)[1])


def is_full_month(start: date, end: date) -> bool:
    return start.day == 1 and end == last_day_of_month(end)


def rollover_period(start: date, end: date) -> RolloverPeriod:
    """Compute the period that immediately follows ``[start, end]``.

    Whole calendar months roll into the next whole month; any other period
    keeps its exact day count and starts the day after ``end``.
    """

    next_start = end + timedelta(days=1)
    if is_full_month(start, end):
        return RolloverPeriod(start=next_start, end=last_day_of_month(next_start))
    length = (end - start).days + 1
    return RolloverPeriod(start=next_start, end=next_start + timedelta(days=length - 1))


def _as_amount(amount: Decimal | int | str) -> Decimal:
    try:
        value = Decimal(str(amount))
        if value.is_finite():
            return value.quantize(_CENT)
    except InvalidOperation as exc:
        raise ValidationError(ErrorKind.INVALID_AMOUNT) from exc
    raise ValidationError(ErrorKind.INVALID_AMOUNT)


def _validate_period(start: date, end: date) -> None:
    if end < start:
        raise ValidationError(ErrorKind.END_BEFORE_START)


def _validate_amount(amount: Decimal) -> None:
    if amount <= 0:
        raise ValidationError(ErrorKind.INVALID_AMOUNT)


class BudgetPeriodManager:
    """Owns create/update/delete, archival and rollover of budgets.

    Every operation takes the owner explicitly; nothing is read from ambient state.
    ``today`` is injectable so date-sensitive rules can be exercised in tests.
    """

    def __init__(
        self,
        *,
        budgets: BudgetRepository,
        categories: CategoryRepository,
        ledger: TransactionRepository,
        today: Callable[[], date] = date.today,
    ):
        self.budgets = budgets
        self.categories = categories
        self.ledger = ledger
        self.today = today

    # -- lookups -----------------------------------------------------------

    def _get_owned(self, budget_id: int, owner: int) -> Budget:
        budget = self.budgets.get_by_id(budget_id, user_id=owner)
        if budget is None:
            raise NotFoundError(ErrorKind.BUDGET_NOT_FOUND)
        return budget

    def _resolve_category(self, category_id: Optional[int], owner: int) -> Optional[str]:
        """Return the category name, ``None`` for an overall budget."""

        if category_id is None:
            return None
        category = self.categories.get_by_id(category_id, user_id=owner)
        if category is None:
            raise NotFoundError(ErrorKind.CATEGORY_NOT_FOUND)
        return category.name

    def _ensure_no_overlap(
        self,
        owner: int,
        category_id: Optional[int],
        start: date,
        end: date,
        *,
        exclude_id: Optional[int] = None,
    ) -> None:
        clashes = [
            budget
            for budget in self.budgets.find_overlapping(
                category_id, start, end, user_id=owner, exclude_id=exclude_id
            )
            if not budget.archived and budget.id != exclude_id
        ]
        if clashes:
            logger.info(
                "Rejected overlapping budget period",
                extra={
                    "user_id": owner,
                    "category_id": category_id,
                    "start": start,
                    "end": end,
                    "conflicts": [budget.id for budget in clashes],
                },
            )
            raise ValidationError(ErrorKind.OVERLAP_CONFLICT)

    # -- writes ------------------------------------------------------------

    def create(
        self,
        owner: int,
        category_id: Optional[int],
        amount: Decimal | int | str,
        start: date,
        end: date,
        rollover: bool = False,
    ) -> Budget:
        """Create a budget after date, amount, category and overlap validation."""

        _validate_period(start, end)
        value = _as_amount(amount)
        _validate_amount(value)
        category_name = self._resolve_category(category_id, owner)

        with lock_periods((owner, category_id)):
            self._ensure_no_overlap(owner, category_id, start, end)
            budget = self.budgets.create(
                Budget(
                    user_id=owner,
                    category_id=category_id,
                    amount=value,
                    start_date=start,
                    end_date=end,
                    rollover=rollover,
                    archived=False,
                ),
                user_id=owner,
            )

        logger.info(
            "Created budget",
            extra={
                "user_id": owner,
                "budget_id": budget.id,
                "category": category_name or OVERALL_BUDGET_NAME,
                "start": start,
                "end": end,
                "amount": value,
            },
        )
        return budget

    def update(
        self,
        budget_id: int,
        owner: int,
        *,
        category_id: Optional[int],
        amount: Decimal | int | str,
        start: date,
        end: date,
        rollover: bool = False,
        archived: bool = False,
    ) -> Budget:
        """Replace a budget's fields; ``archived`` may be set either way here."""

        budget = self._get_owned(budget_id, owner)
        _validate_period(start, end)
        value = _as_amount(amount)
        _validate_amount(value)
        category_name = self._resolve_category(category_id, owner)

        with lock_periods((owner, budget.category_id), (owner, category_id)):
            self._ensure_no_overlap(owner, category_id, start, end, exclude_id=budget.id)
            budget.category_id = category_id
            budget.amount = value
            budget.start_date = start
            budget.end_date = end
            budget.rollover = rollover
            budget.archived = archived
            updated = self.budgets.update(budget, user_id=owner)

        logger.info(
            "Updated budget",
            extra={
                "user_id": owner,
                "budget_id": updated.id,
                "category": category_name or OVERALL_BUDGET_NAME,
                "start": start,
                "end": end,
                "amount": value,
                "archived": archived,
            },
        )
        return updated

    def delete(self, budget_id: int, owner: int) -> None:
        budget = self._get_owned(budget_id, owner)
        self.budgets.delete(budget_id, user_id=owner)
        logger.info(
            "Deleted budget",
            extra={"user_id": owner, "budget_id": budget.id, "category_id": budget.category_id},
        )

    def archive_expired(self, owner: int, as_of: Optional[date] = None) -> list[Budget]:
        """Archive every active budget of ``owner`` that ended before ``as_of``.

        Returns the budgets archived by this call; a repeat call returns ``[]``.
        """

        cutoff = as_of or self.today()
        expired = [
            budget
            for budget in self.budgets.list_all(user_id=owner)
            if not budget.archived and budget.end_date < cutoff
        ]
        if not expired:
            return []

        for budget in expired:
            budget.archived = True
        archived = self.budgets.update_many(expired, user_id=owner)
        for budget in archived:
            logger.info(
                "Archived expired budget",
                extra={"user_id": owner, "budget_id": budget.id, "end": budget.end_date},
            )
        return archived

    def rollover(self, budget_id: int, owner: int) -> Budget:
        """Create the next-period sibling of an ended budget.

        Only the end date matters: a budget that ended but was not swept by
        :meth:`archive_expired` yet can still be rolled over.
        """

        source = self._get_owned(budget_id, owner)
        if source.end_date >= self.today():
            raise ValidationError(ErrorKind.ROLLOVER_OF_ACTIVE_BUDGET)

        period = rollover_period(source.start_date, source.end_date)
        with lock_periods((owner, source.category_id)):
            self._ensure_no_overlap(owner, source.category_id, period.start, period.end)
            created = self.budgets.create(
                Budget(
                    user_id=owner,
                    category_id=source.category_id,
                    amount=source.amount,
                    start_date=period.start,
                    end_date=period.end,
                    rollover=True,
                    archived=False,
                ),
                user_id=owner,
            )

        logger.info(
            "Rolled over budget",
            extra={
                "user_id": owner,
                "source_budget_id": source.id,
                "budget_id": created.id,
                "start": period.start,
                "end": period.end,
            },
        )
        return created

    # -- reads -------------------------------------------------------------

    def list_active(self, owner: int, as_of: Optional[date] = None) -> list[Budget]:
        return self.budgets.find_active(as_of or self.today(), user_id=owner)

    def spent_between(self, budget: Budget, start: date, end: date) -> Decimal:
        """Expenses charged to the budget's category (or all categories) in a window."""

        return self.ledger.sum_amount(
            CategoryType.EXPENSE, start, end, budget.category_id, user_id=budget.user_id
        )

    def list_budgets(self, owner: int) -> list[BudgetView]:
        """Every budget of the owner with clamped progress, expired ones archived first."""

        self.archive_expired(owner)
        return self._views(self.budgets.list_all(user_id=owner), owner)

    def get_budget(self, budget_id: int, owner: int) -> BudgetView:
        return self._views([self._get_owned(budget_id, owner)], owner)[0]

    def list_expired(self, owner: int) -> list[BudgetView]:
        return self._views(self.budgets.list_archived(user_id=owner), owner)

    def category_names(self, budgets: list[Budget], owner: int) -> dict[int, str]:
        names: dict[int, str] = {}
        for budget in budgets:
            cid = budget.category_id
            if cid is None or cid in names:
                continue
            category = self.categories.get_by_id(cid, user_id=owner)
            names[cid] = category.name if category else f"Category {cid}"
        return names

    def _views(self, budgets: list[Budget], owner: int) -> list[BudgetView]:
        names = self.category_names(budgets, owner)
        views = []
        for budget in budgets:
            spent = self.spent_between(budget, budget.start_date, budget.end_date)
            shown = progress.budget_snapshot(budget, spent, clamp=True)
            views.append(
                BudgetView(
                    id=budget.id,
                    category_id=budget.category_id,
                    category_name=names.get(budget.category_id) if budget.category_id else None,
                    amount=budget.amount,
                    start_date=budget.start_date,
                    end_date=budget.end_date,
                    spent=spent,
                    progress_percentage=shown.percentage,
                    rollover=budget.rollover,
                    archived=budget.archived,
                )
            )
        return views
