"""
Category repository for category-specific data access operations.
"""

from typing import List, Optional
from sqlalchemy.orm import Session

from lightpos.models import Category as CategoryModel
from .base_repository import BaseRepository


class CategoryRepository(BaseRepository[CategoryModel]):
    """Repository for Category model operations."""

    def __init__(self, db: Session):
        super().__init__(db, CategoryModel)

    def get_by_name(self, name: str) -> Optional[CategoryModel]:
        """
        Find a category by its unique name.

        Args:
            name: Category name

        Returns:
            Category instance or None if not found
        """
        return self.db.query(self.model).filter(self.model.name == name).first()

    def get_all_by_name(self) -> List[CategoryModel]:
        """All categories, alphabetically."""
        return self.db.query(self.model).order_by(self.model.name).all()
