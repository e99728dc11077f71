"""Pytest configuration and shared fixtures for SpendWise tests.

Every test gets its own temporary SQLite file, so repositories and services
run against a real schema without touching the application database.
"""

from __future__ import annotations

import tempfile
from datetime import date
from decimal import Decimal
from pathlib import Path
from types import SimpleNamespace

import pytest
from sqlmodel import Session, SQLModel, create_engine

from spendwise.config import TestConfig
from spendwise.context import create_app_context
from spendwise.infra.repositories import (
    SQLModelBudgetRepository,
    SQLModelCategoryRepository,
    SQLModelSavingGoalRepository,
    SQLModelTransactionRepository,
)

# Import all models to ensure they're registered with SQLModel metadata
from spendwise.models import Budget, Category, CategoryType, Expense, Income, SavingGoal
from spendwise.services.budgeting import BudgetPeriodManager
from spendwise.services.reports import ReportAggregator

OWNER = 1
OTHER_OWNER = 2
TODAY = date(2025, 6, 15)


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine():
    """Create an isolated SQLite database file for each test.

    Yields:
        Engine: SQLModel engine connected to the test database
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    engine = create_engine(f"sqlite:///{db_path}", echo=False)
    SQLModel.metadata.create_all(engine)

    yield engine

    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Session used by the data factories below."""
    session = Session(db_engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory matching what repository implementations expect."""

    def factory():
        return Session(db_engine, expire_on_commit=False)

    return factory


# =============================================================================
# Repositories and services
# =============================================================================


@pytest.fixture
def repos(session_factory):
    return SimpleNamespace(
        budgets=SQLModelBudgetRepository(session_factory),
        categories=SQLModelCategoryRepository(session_factory),
        ledger=SQLModelTransactionRepository(session_factory),
        goals=SQLModelSavingGoalRepository(session_factory),
    )


@pytest.fixture
def manager(repos):
    """Budget manager pinned to ``TODAY``."""
    return BudgetPeriodManager(
        budgets=repos.budgets,
        categories=repos.categories,
        ledger=repos.ledger,
        today=lambda: TODAY,
    )


@pytest.fixture
def aggregator(repos, manager):
    return ReportAggregator(ledger=repos.ledger, budget_manager=manager, saving_goals=repos.goals)


# =============================================================================
# Test Data Factories
# =============================================================================


def _persist(session: Session, obj):
    session.add(obj)
    session.commit()
    session.refresh(obj)
    return obj


@pytest.fixture
def category_factory(db_session):
    """Factory for categories; ``owner=None`` creates a shared category."""

    def _create_category(
        name: str = "Food",
        category_type: CategoryType = CategoryType.EXPENSE,
        owner: int | None = OWNER,
    ) -> Category:
        return _persist(
            db_session,
            Category(user_id=owner, name=name, category_type=category_type.value),
        )

    return _create_category


@pytest.fixture
def expense_factory(db_session):
    def _create_expense(
        category: Category,
        amount: str | Decimal,
        occurred_on: date,
        owner: int = OWNER,
        description: str = "",
    ) -> Expense:
        return _persist(
            db_session,
            Expense(
                user_id=owner,
                category_id=category.id,
                amount=Decimal(str(amount)),
                occurred_on=occurred_on,
                description=description,
            ),
        )

    return _create_expense


@pytest.fixture
def income_factory(db_session):
    def _create_income(
        category: Category,
        amount: str | Decimal,
        occurred_on: date,
        owner: int = OWNER,
    ) -> Income:
        return _persist(
            db_session,
            Income(
                user_id=owner,
                category_id=category.id,
                amount=Decimal(str(amount)),
                occurred_on=occurred_on,
            ),
        )

    return _create_income


@pytest.fixture
def budget_factory(db_session):
    """Insert budgets directly, bypassing overlap validation."""

    def _create_budget(
        category: Category | None,
        amount: str | Decimal,
        start: date,
        end: date,
        owner: int = OWNER,
        archived: bool = False,
        rollover: bool = False,
    ) -> Budget:
        return _persist(
            db_session,
            Budget(
                user_id=owner,
                category_id=category.id if category is not None else None,
                amount=Decimal(str(amount)),
                start_date=start,
                end_date=end,
                archived=archived,
                rollover=rollover,
            ),
        )

    return _create_budget


@pytest.fixture
def saving_goal_factory(db_session):
    def _create_goal(
        name: str = "Emergency fund",
        target: str | Decimal = "1000",
        current: str | Decimal = "0",
        owner: int = OWNER,
        achieved: bool | None = None,
    ) -> SavingGoal:
        goal = SavingGoal(
            user_id=owner,
            name=name,
            target_amount=Decimal(str(target)),
            current_amount=Decimal(str(current)),
        )
        if achieved is None:
            goal.update_achieved_status()
        else:
            goal.achieved = achieved
        return _persist(db_session, goal)

    return _create_goal


# =============================================================================
# Application context (web and CLI)
# =============================================================================


@pytest.fixture
def app_ctx(tmp_path, monkeypatch):
    """Fully wired AppContext on a throwaway data directory, pinned to ``TODAY``."""

    monkeypatch.setenv("SPENDWISE_DATA_DIR", str(tmp_path))
    monkeypatch.delenv("SPENDWISE_DATABASE_URL", raising=False)
    monkeypatch.delenv("SPENDWISE_EXPORTS_DIR", raising=False)
    context = create_app_context(TestConfig(), today=lambda: TODAY)
    yield context
    context.engine.dispose()


@pytest.fixture
def app_ledger(app_ctx):
    """Seed ``app_ctx`` with a Food and a shared Salary category plus a few entries.

    Returns the category ids keyed by short name.
    """

    with app_ctx.session_factory() as session:
        food = Category(user_id=OWNER, name="Food")
        salary = Category(user_id=None, name="Salary", category_type=CategoryType.INCOME.value)
        session.add_all([food, salary])
        session.flush()
        session.add_all(
            [
                Expense(user_id=OWNER, category_id=food.id, amount=Decimal("120"), occurred_on=date(2025, 6, 2)),
                Expense(user_id=OWNER, category_id=food.id, amount=Decimal("80"), occurred_on=date(2025, 5, 20)),
                Income(user_id=OWNER, category_id=salary.id, amount=Decimal("2000"), occurred_on=date(2025, 6, 1)),
            ]
        )
        session.flush()
        return {"food": food.id, "salary": salary.id}
