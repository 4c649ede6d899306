"""
User repository for user-specific data access operations.
"""

from typing import List, Optional
from sqlalchemy.orm import Session, joinedload

from lightpos.models import User as UserModel
from .base_repository import BaseRepository


class UserRepository(BaseRepository[UserModel]):
    """Repository for User model operations."""

    def __init__(self, db: Session):
        super().__init__(db, UserModel)

    def get_by_username(self, username: str) -> Optional[UserModel]:
        """
        Find a user by login name.

        Args:
            username: Unique login name

        Returns:
            User instance or None if not found
        """
        return self.db.query(self.model).filter(
            self.model.username == username
        ).first()

    def get_with_actions(self, user_id: int) -> Optional[UserModel]:
        """
        Get a user with its action log eagerly loaded.

        Args:
            user_id: User ID

        Returns:
            User instance with actions, or None if not found
        """
        return self.db.query(self.model).options(
            joinedload(self.model.actions)
        ).filter(self.model.id == user_id).first()

    def get_with_sales(self, user_id: int) -> Optional[UserModel]:
        """
        Get a user with its sales eagerly loaded.

        Args:
            user_id: User ID

        Returns:
            User instance with sales, or None if not found
        """
        return self.db.query(self.model).options(
            joinedload(self.model.sales)
        ).filter(self.model.id == user_id).first()

    def get_all_with_actions(self) -> List[UserModel]:
        """
        Get all users with their action logs eagerly loaded.

        Returns:
            List of all users with actions
        """
        return self.db.query(self.model).options(
            joinedload(self.model.actions)
        ).order_by(self.model.id).all()

    def get_all_with_sales(self) -> List[UserModel]:
        """
        Get all users with their sales eagerly loaded.

        Returns:
            List of all users with sales
        """
        return self.db.query(self.model).options(
            joinedload(self.model.sales)
        ).order_by(self.model.id).all()
