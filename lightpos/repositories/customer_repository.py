"""
Customer repository for customer-specific data access operations.
"""

from typing import Optional
from sqlalchemy.orm import Session, joinedload

from lightpos.models import Customer as CustomerModel
from .base_repository import BaseRepository


class CustomerRepository(BaseRepository[CustomerModel]):
    """Repository for Customer model operations."""

    def __init__(self, db: Session):
        super().__init__(db, CustomerModel)

    def get_with_sales(self, customer_id: int) -> Optional[CustomerModel]:
        """
        Get a customer with its sales eagerly loaded.

        Args:
            customer_id: Customer ID

        Returns:
            Customer instance with sales, or None if not found
        """
        return self.db.query(self.model).options(
            joinedload(self.model.sales)
        ).filter(self.model.id == customer_id).first()
