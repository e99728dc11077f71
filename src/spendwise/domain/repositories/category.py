"""Category repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.category import Category


class CategoryRepository(Protocol):
    """Read access to categories; CRUD lives outside this package."""

    def get_by_id(self, category_id: int, *, user_id: int) -> Optional[Category]:
        """Return the category if it is shared or owned by ``user_id``."""
        ...
