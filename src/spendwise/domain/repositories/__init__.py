"""Repository protocol definitions for domain layer."""

from .budget import BudgetRepository
from .category import CategoryRepository
from .saving_goal import SavingGoalRepository
from .transaction import TransactionRepository

__all__ = [
    "BudgetRepository",
    "CategoryRepository",
    "SavingGoalRepository",
    "TransactionRepository",
]
