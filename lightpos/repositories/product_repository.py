"""
Product repository for product-specific data access operations.
"""

from typing import List, Optional
from sqlalchemy.orm import Session, joinedload

from lightpos.models import Product as ProductModel
from .base_repository import BaseRepository


class ProductRepository(BaseRepository[ProductModel]):
    """Repository for Product model operations.

    Every read loads the product's category in the same query so callers can
    use it after the session is closed.
    """

    def __init__(self, db: Session):
        super().__init__(db, ProductModel)

    def get_with_category(self, product_id: int) -> Optional[ProductModel]:
        """
        Get a product with its category eagerly loaded.

        Args:
            product_id: Product ID

        Returns:
            Product instance with category, or None if not found
        """
        return self.db.query(self.model).options(
            joinedload(self.model.category)
        ).filter(self.model.id == product_id).first()

    def get_by_barcode(self, barcode: str) -> Optional[ProductModel]:
        """
        Find the product with the given barcode.

        Args:
            barcode: Unique barcode

        Returns:
            Product instance with category, or None if not found
            (always None for an empty barcode)
        """
        if not barcode:
            return None
        return self.db.query(self.model).options(
            joinedload(self.model.category)
        ).filter(self.model.barcode == barcode).first()

    def get_all_with_category(self) -> List[ProductModel]:
        """
        Get all products with their categories eagerly loaded.

        Returns:
            List of all products
        """
        return self.db.query(self.model).options(
            joinedload(self.model.category)
        ).order_by(self.model.id).all()
