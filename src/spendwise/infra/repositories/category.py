"""SQLModel implementation of Category repository."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import or_
from sqlmodel import col, select

from ...models.category import Category
from ..database import SessionFactory


class SQLModelCategoryRepository:
    """SQLModel-based category lookups."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_by_id(self, category_id: int, *, user_id: int) -> Optional[Category]:
        """Retrieve a shared category or one owned by ``user_id``."""
        with self.session_factory() as session:
            obj = session.exec(
                select(Category)
                .where(Category.id == category_id)
                .where(or_(col(Category.user_id).is_(None), Category.user_id == user_id))
            ).first()
            if obj:
                session.expunge(obj)
            return obj
