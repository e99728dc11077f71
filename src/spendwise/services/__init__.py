"""Service module exports."""

from . import budgeting, export, progress, reports

__all__ = [
    "budgeting",
    "export",
    "progress",
    "reports",
]
