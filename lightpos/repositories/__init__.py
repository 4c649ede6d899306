"""
Repository layer for data access abstraction.

This package contains repository classes that encapsulate database queries
and provide a clean interface for data access operations.
"""

from .base_repository import BaseRepository
from .category_repository import CategoryRepository
from .customer_repository import CustomerRepository
from .product_repository import ProductRepository
from .sale_repository import SaleRepository
from .user_action_repository import UserActionRepository
from .user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "CategoryRepository",
    "CustomerRepository",
    "ProductRepository",
    "SaleRepository",
    "UserActionRepository",
    "UserRepository",
]
