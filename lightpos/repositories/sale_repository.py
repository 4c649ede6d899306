"""
Sale repository for sale-specific data access operations.
"""

from typing import Iterable, List
from sqlalchemy import delete
from sqlalchemy.orm import Session, joinedload, selectinload

from lightpos.models import Sale as SaleModel, SaleItem
from .base_repository import BaseRepository


class SaleRepository(BaseRepository[SaleModel]):
    """Repository for Sale model operations."""

    def __init__(self, db: Session):
        super().__init__(db, SaleModel)

    def get_for_user(self, user_id: int) -> List[SaleModel]:
        """
        Get the sales registered by a user, with their products loaded.

        Args:
            user_id: User ID

        Returns:
            List of sales, oldest first
        """
        return self.db.query(self.model).options(
            selectinload(self.model.items).joinedload(SaleItem.product)
        ).filter(
            self.model.user_id == user_id
        ).order_by(self.model.created_at, self.model.id).all()

    def delete_many(self, ids: Iterable[int]) -> int:
        """
        Delete sales and their product lines.

        Args:
            ids: Sale IDs

        Returns:
            Number of deleted sales
        """
        ids = list(ids)
        if not ids:
            return 0
        self.db.execute(
            delete(SaleItem)
            .where(SaleItem.sale_id.in_(ids))
            .execution_options(synchronize_session=False)
        )
        return super().delete_many(ids)
