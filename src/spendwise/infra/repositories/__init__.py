"""Concrete repository implementations using SQLModel."""

from .budget import SQLModelBudgetRepository
from .category import SQLModelCategoryRepository
from .saving_goal import SQLModelSavingGoalRepository
from .transaction import SQLModelTransactionRepository

__all__ = [
    "SQLModelBudgetRepository",
    "SQLModelCategoryRepository",
    "SQLModelSavingGoalRepository",
    "SQLModelTransactionRepository",
]
