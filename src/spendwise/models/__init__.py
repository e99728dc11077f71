"""SQLModel table exports."""

from .budget import Budget
from .category import Category, CategoryType
from .saving_goal import SavingGoal
from .transaction import Expense, Income

__all__ = [
    "Budget",
    "Category",
    "CategoryType",
    "Expense",
    "Income",
    "SavingGoal",
]
