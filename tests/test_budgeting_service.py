"""BudgetPeriodManager against a real SQLite schema."""

from __future__ import annotations

import threading
import time
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from spendwise.domain.errors import ErrorKind, NotFoundError, ValidationError
from spendwise.models import CategoryType
from spendwise.services import budgeting
from spendwise.services.budgeting import lock_periods

from conftest import OTHER_OWNER, OWNER, TODAY


@pytest.fixture
def food(category_factory):
    return category_factory("Food")


@pytest.fixture
def transport(category_factory):
    return category_factory("Transport")


# -- create -------------------------------------------------------------------


def test_create_persists_budget_with_two_place_amount(manager, food):
    budget = manager.create(OWNER, food.id, "500", date(2025, 1, 1), date(2025, 1, 31))

    assert budget.id is not None
    assert budget.user_id == OWNER
    assert budget.category_id == food.id
    assert budget.amount == Decimal("500.00")
    assert budget.archived is False
    assert budget.rollover is False


def test_create_rejects_end_before_start(manager, food):
    with pytest.raises(ValidationError) as exc:
        manager.create(OWNER, food.id, "100", date(2025, 2, 1), date(2025, 1, 31))
    assert exc.value.kind is ErrorKind.END_BEFORE_START


def test_single_day_period_is_allowed(manager, food):
    budget = manager.create(OWNER, food.id, "10", date(2025, 1, 5), date(2025, 1, 5))
    assert budget.start_date == budget.end_date


@pytest.mark.parametrize("amount", ["0", "-10", "NaN", "Infinity", "-Infinity", "abc", "1E+30"])
def test_create_rejects_invalid_amount(manager, food, amount):
    with pytest.raises(ValidationError) as exc:
        manager.create(OWNER, food.id, amount, date(2025, 1, 1), date(2025, 1, 31))
    assert exc.value.kind is ErrorKind.INVALID_AMOUNT


def test_create_with_unknown_category(manager):
    with pytest.raises(NotFoundError) as exc:
        manager.create(OWNER, 999, "100", date(2025, 1, 1), date(2025, 1, 31))
    assert exc.value.kind is ErrorKind.CATEGORY_NOT_FOUND


def test_category_of_another_owner_is_not_visible(manager, category_factory):
    foreign = category_factory("Hobby", owner=OTHER_OWNER)
    with pytest.raises(NotFoundError):
        manager.create(OWNER, foreign.id, "100", date(2025, 1, 1), date(2025, 1, 31))


def test_shared_category_is_visible_to_everyone(manager, category_factory):
    shared = category_factory("Utilities", owner=None)
    budget = manager.create(OWNER, shared.id, "80", date(2025, 1, 1), date(2025, 1, 31))
    assert budget.category_id == shared.id


# -- overlap ------------------------------------------------------------------


def test_overlapping_budget_for_same_category_is_rejected(manager, food, transport):
    manager.create(OWNER, food.id, "500", date(2025, 1, 1), date(2025, 1, 31))

    with pytest.raises(ValidationError) as exc:
        manager.create(OWNER, food.id, "300", date(2025, 1, 15), date(2025, 2, 15))
    assert exc.value.kind is ErrorKind.OVERLAP_CONFLICT

    other = manager.create(OWNER, transport.id, "300", date(2025, 1, 15), date(2025, 2, 15))
    assert other.id is not None


def test_shared_endpoint_counts_as_overlap(manager, food):
    manager.create(OWNER, food.id, "500", date(2025, 1, 1), date(2025, 1, 31))
    with pytest.raises(ValidationError):
        manager.create(OWNER, food.id, "500", date(2025, 1, 31), date(2025, 2, 28))

    adjacent = manager.create(OWNER, food.id, "500", date(2025, 2, 1), date(2025, 2, 28))
    assert adjacent.start_date == date(2025, 2, 1)


def test_overall_budgets_only_conflict_with_each_other(manager, food):
    manager.create(OWNER, food.id, "500", date(2025, 1, 1), date(2025, 1, 31))
    overall = manager.create(OWNER, None, "2000", date(2025, 1, 1), date(2025, 1, 31))
    assert overall.is_overall

    with pytest.raises(ValidationError) as exc:
        manager.create(OWNER, None, "1000", date(2025, 1, 20), date(2025, 2, 20))
    assert exc.value.kind is ErrorKind.OVERLAP_CONFLICT


def test_archived_budgets_do_not_block_new_periods(manager, food, budget_factory):
    budget_factory(food, "500", date(2025, 1, 1), date(2025, 1, 31), archived=True)

    budget = manager.create(OWNER, food.id, "400", date(2025, 1, 10), date(2025, 1, 20))
    assert budget.id is not None


def test_archived_budget_does_not_block_the_identical_period(manager, food, budget_factory):
    budget_factory(food, "500", date(2025, 1, 1), date(2025, 1, 31), archived=True)

    budget = manager.create(OWNER, food.id, "400", date(2025, 1, 1), date(2025, 1, 31))

    assert budget.amount == Decimal("400.00")
    assert budget.archived is False


def test_duplicate_live_period_is_rejected_by_the_schema(db_session, food, budget_factory):
    budget_factory(food, "500", date(2025, 1, 1), date(2025, 1, 31))

    with pytest.raises(IntegrityError):
        budget_factory(food, "400", date(2025, 1, 1), date(2025, 1, 31))
    db_session.rollback()


def test_other_owners_budgets_do_not_conflict(manager, category_factory, budget_factory):
    shared = category_factory("Utilities", owner=None)
    budget_factory(shared, "100", date(2025, 1, 1), date(2025, 1, 31), owner=OTHER_OWNER)

    budget = manager.create(OWNER, shared.id, "100", date(2025, 1, 1), date(2025, 1, 31))
    assert budget.user_id == OWNER


# -- update / delete ----------------------------------------------------------


def test_update_does_not_conflict_with_itself(manager, food):
    budget = manager.create(OWNER, food.id, "500", date(2025, 1, 1), date(2025, 1, 31))

    updated = manager.update(
        budget.id, OWNER, category_id=food.id, amount="650", start=date(2025, 1, 1), end=date(2025, 1, 31)
    )

    assert updated.id == budget.id
    assert updated.amount == Decimal("650.00")


def test_update_into_another_budgets_period_is_rejected(manager, food):
    manager.create(OWNER, food.id, "500", date(2025, 1, 1), date(2025, 1, 31))
    february = manager.create(OWNER, food.id, "500", date(2025, 2, 1), date(2025, 2, 28))

    with pytest.raises(ValidationError) as exc:
        manager.update(
            february.id,
            OWNER,
            category_id=food.id,
            amount="500",
            start=date(2025, 1, 25),
            end=date(2025, 2, 28),
        )
    assert exc.value.kind is ErrorKind.OVERLAP_CONFLICT

    unchanged = manager.get_budget(february.id, OWNER)
    assert unchanged.start_date == date(2025, 2, 1)


def test_update_can_move_budget_between_categories(manager, food, transport):
    budget = manager.create(OWNER, food.id, "500", date(2025, 1, 1), date(2025, 1, 31))

    moved = manager.update(
        budget.id, OWNER, category_id=transport.id, amount="500", start=date(2025, 1, 1), end=date(2025, 1, 31)
    )
    assert moved.category_id == transport.id

    # the food slot is free again
    assert manager.create(OWNER, food.id, "100", date(2025, 1, 1), date(2025, 1, 31)).id is not None


def test_update_validates_inputs(manager, food):
    budget = manager.create(OWNER, food.id, "500", date(2025, 1, 1), date(2025, 1, 31))

    with pytest.raises(ValidationError) as exc:
        manager.update(
            budget.id, OWNER, category_id=food.id, amount="500", start=date(2025, 1, 31), end=date(2025, 1, 1)
        )
    assert exc.value.kind is ErrorKind.END_BEFORE_START

    with pytest.raises(NotFoundError) as exc:
        manager.update(
            budget.id, OWNER, category_id=12345, amount="500", start=date(2025, 1, 1), end=date(2025, 1, 31)
        )
    assert exc.value.kind is ErrorKind.CATEGORY_NOT_FOUND


def test_update_unknown_or_foreign_budget_is_not_found(manager, food):
    budget = manager.create(OWNER, food.id, "500", date(2025, 1, 1), date(2025, 1, 31))

    for budget_id, owner in [(999, OWNER), (budget.id, OTHER_OWNER)]:
        with pytest.raises(NotFoundError) as exc:
            manager.update(
                budget_id, owner, category_id=None, amount="1", start=date(2025, 1, 1), end=date(2025, 1, 2)
            )
        assert exc.value.kind is ErrorKind.BUDGET_NOT_FOUND


def test_delete_removes_budget(manager, food):
    budget = manager.create(OWNER, food.id, "500", date(2025, 1, 1), date(2025, 1, 31))

    manager.delete(budget.id, OWNER)

    with pytest.raises(NotFoundError):
        manager.get_budget(budget.id, OWNER)
    with pytest.raises(NotFoundError):
        manager.delete(budget.id, OWNER)


# -- archival -----------------------------------------------------------------


def test_archive_expired_is_idempotent(manager, food, transport, budget_factory):
    may = budget_factory(food, "100", date(2025, 5, 1), date(2025, 5, 31))
    budget_factory(transport, "100", date(2025, 6, 1), date(2025, 6, 30))
    ends_today = budget_factory(food, "100", date(2025, 6, 1), date(2025, 6, 15))

    archived = manager.archive_expired(OWNER)

    assert [b.id for b in archived] == [may.id]
    assert all(b.archived for b in archived)
    assert manager.archive_expired(OWNER) == []
    assert manager.get_budget(ends_today.id, OWNER).archived is False


def test_archive_expired_respects_explicit_cutoff(manager, food, budget_factory):
    budget_factory(food, "100", date(2025, 5, 1), date(2025, 5, 31))

    assert manager.archive_expired(OWNER, as_of=date(2025, 5, 31)) == []
    assert len(manager.archive_expired(OWNER, as_of=date(2025, 6, 1))) == 1


def test_archive_expired_only_touches_the_owner(manager, category_factory, budget_factory):
    shared = category_factory("Utilities", owner=None)
    budget_factory(shared, "100", date(2025, 1, 1), date(2025, 1, 31), owner=OTHER_OWNER)

    assert manager.archive_expired(OWNER) == []
    assert len(manager.archive_expired(OTHER_OWNER)) == 1


# -- rollover -----------------------------------------------------------------


def test_rollover_of_full_month_creates_next_month(manager, food, budget_factory):
    january = budget_factory(food, "500", date(2025, 1, 1), date(2025, 1, 31))

    created = manager.rollover(january.id, OWNER)

    assert created.id != january.id
    assert (created.start_date, created.end_date) == (date(2025, 2, 1), date(2025, 2, 28))
    assert created.amount == Decimal("500.00")
    assert created.category_id == food.id
    assert created.rollover is True
    assert created.archived is False


def test_rollover_of_archived_budget(manager, food, budget_factory):
    source = budget_factory(food, "70", date(2025, 3, 3), date(2025, 3, 16), archived=True)

    created = manager.rollover(source.id, OWNER)

    assert (created.start_date, created.end_date) == (date(2025, 3, 17), date(2025, 3, 30))


@pytest.mark.parametrize("end", [TODAY, date(2025, 6, 30)])
def test_rollover_requires_the_period_to_have_ended(manager, food, budget_factory, end):
    active = budget_factory(food, "100", date(2025, 6, 1), end)

    with pytest.raises(ValidationError) as exc:
        manager.rollover(active.id, OWNER)
    assert exc.value.kind is ErrorKind.ROLLOVER_OF_ACTIVE_BUDGET


def test_rollover_twice_conflicts_with_first_rollover(manager, food, budget_factory):
    january = budget_factory(food, "500", date(2025, 1, 1), date(2025, 1, 31))
    manager.rollover(january.id, OWNER)

    with pytest.raises(ValidationError) as exc:
        manager.rollover(january.id, OWNER)
    assert exc.value.kind is ErrorKind.OVERLAP_CONFLICT


def test_rollover_into_period_held_only_by_archived_budget(manager, food, budget_factory):
    january = budget_factory(food, "500", date(2025, 1, 1), date(2025, 1, 31))
    february = manager.rollover(january.id, OWNER)
    manager.update(
        february.id,
        OWNER,
        category_id=food.id,
        amount=february.amount,
        start=february.start_date,
        end=february.end_date,
        rollover=True,
        archived=True,
    )

    again = manager.rollover(january.id, OWNER)

    assert again.id != february.id
    assert (again.start_date, again.end_date) == (date(2025, 2, 1), date(2025, 2, 28))
    assert again.archived is False


def test_rollover_of_unknown_budget(manager):
    with pytest.raises(NotFoundError) as exc:
        manager.rollover(42, OWNER)
    assert exc.value.kind is ErrorKind.BUDGET_NOT_FOUND


# -- reads --------------------------------------------------------------------


def test_list_budgets_archives_and_clamps(manager, food, budget_factory, expense_factory):
    may = budget_factory(food, "100", date(2025, 5, 1), date(2025, 5, 31))
    june = budget_factory(food, "200", date(2025, 6, 1), date(2025, 6, 30))
    expense_factory(food, "130", date(2025, 5, 10))
    expense_factory(food, "50", date(2025, 6, 2))
    expense_factory(food, "999", date(2025, 7, 1))

    views = {view.id: view for view in manager.list_budgets(OWNER)}

    assert views[may.id].archived is True
    assert views[may.id].spent == Decimal("130.00")
    assert views[may.id].progress_percentage == Decimal("100")
    assert views[june.id].archived is False
    assert views[june.id].progress_percentage == Decimal("25.00")
    assert views[june.id].category_name == "Food"


def test_overall_budget_counts_every_expense_category(
    manager, food, transport, budget_factory, expense_factory, income_factory, category_factory
):
    salary = category_factory("Salary", CategoryType.INCOME)
    overall = budget_factory(None, "1000", date(2025, 6, 1), date(2025, 6, 30))
    expense_factory(food, "100", date(2025, 6, 3))
    expense_factory(transport, "150", date(2025, 6, 4))
    expense_factory(food, "300", date(2025, 6, 5), owner=OTHER_OWNER)
    income_factory(salary, "5000", date(2025, 6, 1))

    view = manager.get_budget(overall.id, OWNER)

    assert view.category_name is None
    assert view.spent == Decimal("250.00")
    assert view.progress_percentage == Decimal("25.00")


def test_list_expired_returns_archived_only(manager, food, budget_factory):
    old = budget_factory(food, "100", date(2025, 1, 1), date(2025, 1, 31), archived=True)
    budget_factory(food, "100", date(2025, 6, 1), date(2025, 6, 30))

    assert [view.id for view in manager.list_expired(OWNER)] == [old.id]


def test_list_active_uses_today(manager, food, transport, budget_factory):
    current = budget_factory(food, "100", date(2025, 6, 1), date(2025, 6, 30))
    budget_factory(transport, "100", date(2025, 7, 1), date(2025, 7, 31))
    budget_factory(transport, "100", date(2025, 6, 1), date(2025, 6, 30), archived=True)

    assert [b.id for b in manager.list_active(OWNER)] == [current.id]


# -- locking ------------------------------------------------------------------


def test_lock_periods_serializes_same_key():
    active = []
    overlaps = []

    def worker():
        with lock_periods((OWNER, 5)):
            active.append(1)
            if len(active) > 1:
                overlaps.append(True)
            time.sleep(0.01)
            active.pop()

    threads = [threading.Thread(target=worker) for _ in range(5)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert overlaps == []


def test_lock_periods_accepts_duplicate_and_overall_keys():
    with lock_periods((OWNER, None), (OWNER, 3), (OWNER, None)):
        pass
    with lock_periods((OWNER, 3), (OWNER, None)):
        pass


def test_lock_registry_releases_unused_keys():
    key = (OWNER, 77)

    with lock_periods(key):
        assert key in budgeting._period_locks

    assert key not in budgeting._period_locks
