"""Spent-versus-allocated percentages.

The raw figure from :func:`compute_progress` is shared by two display
policies: budget listings clamp it with :func:`clamp_progress`, reports keep
it unclamped so :func:`is_exceeded` can be read off the same number.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ..domain.values import ZERO, ProgressSnapshot
from ..models.budget import Budget
from ..models.saving_goal import SavingGoal

HUNDRED = Decimal("100")
_PLACES = Decimal("0.01")


def compute_progress(spent: Decimal, allocated: Decimal) -> Decimal:
    """Return ``spent / allocated * 100`` rounded half-up to two places.

    A non-positive ``allocated`` yields ``0``.
    """

    if allocated is None or allocated <= 0:
        return Decimal("0.00")
    return (Decimal(spent) / Decimal(allocated) * HUNDRED).quantize(_PLACES, rounding=ROUND_HALF_UP)


def clamp_progress(percentage: Decimal) -> Decimal:
    """Cap a percentage to ``[0, 100]`` for listing displays."""

    return min(max(percentage, ZERO), HUNDRED)


def is_exceeded(percentage: Decimal) -> bool:
    return percentage > HUNDRED


def average(percentages: list[Decimal]) -> Decimal:
    """Arithmetic mean rounded half-up to two places; ``0`` for an empty list."""

    if not percentages:
        return Decimal("0.00")
    total = sum(percentages, ZERO)
    return (total / Decimal(len(percentages))).quantize(_PLACES, rounding=ROUND_HALF_UP)


def snapshot(
    spent: Decimal,
    allocated: Decimal,
    *,
    entity_id: Optional[int] = None,
    clamp: bool = False,
) -> ProgressSnapshot:
    """Build a progress view; ``clamp=True`` applies the listing policy.

    ``exceeded`` is always derived from the unclamped value so both policies
    agree on whether the allocation was blown.
    """

    raw = compute_progress(spent, allocated)
    return ProgressSnapshot(
        entity_id=entity_id,
        allocated=allocated,
        spent=spent,
        percentage=clamp_progress(raw) if clamp else raw,
        exceeded=is_exceeded(raw),
    )


def budget_snapshot(budget: Budget, spent: Decimal, *, clamp: bool = False) -> ProgressSnapshot:
    return snapshot(spent, budget.amount, entity_id=budget.id, clamp=clamp)


def goal_snapshot(goal: SavingGoal) -> ProgressSnapshot:
    """Saved-versus-target view of a goal; never clamped."""

    return snapshot(goal.current_amount, goal.target_amount, entity_id=goal.id)
