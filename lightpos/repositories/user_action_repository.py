"""
User action repository for the audit log.
"""

from typing import List
from sqlalchemy.orm import Session

from lightpos.models import UserAction as UserActionModel
from .base_repository import BaseRepository


class UserActionRepository(BaseRepository[UserActionModel]):
    """Repository for UserAction model operations."""

    def __init__(self, db: Session):
        super().__init__(db, UserActionModel)

    def get_for_user(self, user_id: int) -> List[UserActionModel]:
        """
        Get a user's action log, oldest first.

        Args:
            user_id: User ID

        Returns:
            List of actions
        """
        return self.db.query(self.model).filter(
            self.model.user_id == user_id
        ).order_by(self.model.time, self.model.id).all()
