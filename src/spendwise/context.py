"""Application context for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional

from sqlalchemy.engine import Engine

from .config import BaseConfig
from .infra.database import SessionFactory, bootstrap_database
from .infra.repositories import (
    SQLModelBudgetRepository,
    SQLModelCategoryRepository,
    SQLModelSavingGoalRepository,
    SQLModelTransactionRepository,
)
from .services.budgeting import BudgetPeriodManager
from .services.reports import ReportAggregator


@dataclass
class AppContext:
    """Configuration, repositories and services shared by the web app and CLI."""

    config: BaseConfig
    engine: Engine
    session_factory: SessionFactory

    budget_repo: SQLModelBudgetRepository
    category_repo: SQLModelCategoryRepository
    transaction_repo: SQLModelTransactionRepository
    saving_goal_repo: SQLModelSavingGoalRepository

    budgets: BudgetPeriodManager
    reports: ReportAggregator


def create_app_context(
    config: Optional[BaseConfig] = None,
    *,
    today: Callable[[], date] = date.today,
) -> AppContext:
    """Create the engine, initialize the schema, and wire repositories into services."""

    config = config or BaseConfig()
    engine, session_factory = bootstrap_database(config)

    budget_repo = SQLModelBudgetRepository(session_factory)
    category_repo = SQLModelCategoryRepository(session_factory)
    transaction_repo = SQLModelTransactionRepository(session_factory)
    saving_goal_repo = SQLModelSavingGoalRepository(session_factory)

    budgets = BudgetPeriodManager(
        budgets=budget_repo,
        categories=category_repo,
        ledger=transaction_repo,
        today=today,
    )
    reports = ReportAggregator(
        ledger=transaction_repo,
        budget_manager=budgets,
        saving_goals=saving_goal_repo,
    )

    return AppContext(
        config=config,
        engine=engine,
        session_factory=session_factory,
        budget_repo=budget_repo,
        category_repo=category_repo,
        transaction_repo=transaction_repo,
        saving_goal_repo=saving_goal_repo,
        budgets=budgets,
        reports=reports,
    )
