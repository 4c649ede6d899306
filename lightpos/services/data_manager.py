"""
Data Manager

The data access facade used by the UI. Every public operation opens its own
unit of work against the session factory, does one logical thing, commits
and closes the session before returning. Objects handed back are detached:
only the attributes and associations loaded by the operation are usable.
"""
import logging
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.attributes import set_committed_value

from lightpos.config.app_config import AppConfig
from lightpos.constants import ZERO_AMOUNT, UserActionKind
from lightpos.database import unit_of_work
from lightpos.exceptions import (
    ConfigurationError,
    StoreNotInitializedError,
    ValidationError,
)
from lightpos.models import Category, Customer, Product, Sale, User, UserAction, to_amount
from lightpos.repositories import (
    CategoryRepository,
    CustomerRepository,
    ProductRepository,
    SaleRepository,
    UserActionRepository,
    UserRepository,
)
from lightpos.services.data_factory import DataFactory
from lightpos.utils.logging_utils import log_operation
from lightpos.utils.time_measurer import measure_time

logger = logging.getLogger(__name__)


class DataManager:
    """Data access facade over the store"""

    def __init__(
        self,
        db_path: Optional[Path] = None,
        cache_path: Optional[Path] = None,
        echo: bool = False,
        overwrite_existing: bool = False,
    ):
        self.db_path = Path(db_path) if db_path else None
        self.cache_path = Path(cache_path) if cache_path else None
        self.echo = echo
        self.overwrite_existing = overwrite_existing

        self.data_factory: Optional[DataFactory] = None
        self.session_factory: Optional[sessionmaker] = None
        self.startup_timings: Dict[str, float] = {}

    @classmethod
    def from_config(cls, config: AppConfig) -> "DataManager":
        """Create a manager for the store described by ``config``."""
        return cls(
            db_path=config.db_path,
            cache_path=config.cache_path,
            echo=config.sql_echo,
            overwrite_existing=config.overwrite_db,
        )

    @property
    def is_initialized(self) -> bool:
        return self.session_factory is not None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self, db_path: Optional[Path] = None) -> sessionmaker:
        """
        Build the data factory and the session factory, once.

        Later calls return the existing session factory without touching the
        store.

        Args:
            db_path: Database file, if not given to the constructor

        Raises:
            ConfigurationError: If no database path is known
            StoreInitializationError: If the store cannot be opened
        """
        if self.session_factory is not None:
            logger.debug("Data manager already initialized")
            return self.session_factory

        if db_path is not None and self.db_path is None:
            self.db_path = Path(db_path)
        if self.db_path is None:
            raise ConfigurationError("No database path configured", missing_keys=["db_path"])

        with measure_time("DataFactory()", self.startup_timings):
            if self.data_factory is None:
                self.data_factory = DataFactory(
                    self.db_path,
                    overwrite_existing=self.overwrite_existing,
                    cache_path=self.cache_path,
                    echo=self.echo,
                )

        with measure_time("DataFactory.create()", self.startup_timings):
            self.data_factory.create()

        with measure_time("DataFactory.create_session_factory()", self.startup_timings):
            self.session_factory = self.data_factory.create_session_factory()

        total_ms = sum(self.startup_timings.values())
        logger.info(f"✅ Data manager initialized in {total_ms:.1f} ms ({self.db_path})")
        return self.session_factory

    def close(self) -> None:
        """Release the engine. initialize() may be called again afterwards."""
        if self.data_factory is not None:
            self.data_factory.dispose()
        self.data_factory = None
        self.session_factory = None
        self.startup_timings = {}

    def _unit_of_work(self, operation: str, transactional: bool = True):
        if self.session_factory is None:
            raise StoreNotInitializedError(operation)
        return unit_of_work(self.session_factory, transactional=transactional)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @log_operation("add_category")
    def add_category(self, category: Category) -> Category:
        """Insert or update a category."""
        with self._unit_of_work("add_category") as db:
            CategoryRepository(db).save_or_update(category)
        return category

    @log_operation("add_product")
    def add_product(self, product: Product) -> Product:
        """Insert or update a product, saving its category first."""
        with self._unit_of_work("add_product") as db:
            if product.category is not None:
                CategoryRepository(db).save_or_update(product.category)
            ProductRepository(db).save_or_update(product)
        return product

    @log_operation("add_customer")
    def add_customer(self, customer: Customer) -> Customer:
        """Insert or update a customer."""
        with self._unit_of_work("add_customer") as db:
            CustomerRepository(db).save_or_update(customer)
        return customer

    @log_operation("add_user")
    def add_user(self, user: User) -> User:
        """
        Insert or update a user's own columns.

        ``sales`` and ``actions`` are left as stored, even when a copy of
        them is loaded on ``user``; they are written by add_sale() and
        log_action().
        """
        with self._unit_of_work("add_user") as db:
            UserRepository(db).save_or_update(user)
        return user

    @log_operation("add_sale")
    def add_sale(self, sale: Sale) -> Sale:
        """
        Insert or update a sale together with its user, customer and products.

        The customer's sales are loaded inside the unit of work and the sale
        is appended to them, so both sides of the link are saved.

        Raises:
            ValidationError: If the sale has no customer or no user
        """
        self._check_sale_links(sale)
        with self._unit_of_work("add_sale") as db:
            saved = SaleRepository(db).save_or_update(sale)
            customer = saved.customer
            if customer is not None and saved not in customer.sales:
                customer.sales.append(saved)
        return sale

    # ------------------------------------------------------------------
    # Derived helpers
    # ------------------------------------------------------------------

    @staticmethod
    def calculate_total(products: Iterable[Product]) -> Decimal:
        """Sum of the computed prices of ``products``."""
        return to_amount(sum((p.calculate_price() for p in products), ZERO_AMOUNT))

    def create_sale(
        self,
        customer: Customer,
        user: User,
        paid_price,
        *products: Product,
    ) -> Sale:
        """
        Build a sale without saving it.

        The sale is linked to ``customer`` and ``user`` (both sides), and
        ``change_price`` is ``paid_price - total_price``. Call add_sale() to
        persist it.

        Raises:
            ValidationError: If customer or user is missing
        """
        if customer is None or user is None:
            raise ValidationError(
                "A sale needs a customer and a user",
                {"customer": customer is None, "user": user is None},
            )

        total = self.calculate_total(products)
        paid = to_amount(paid_price)
        return Sale(
            total_price=total,
            paid_price=paid,
            change_price=paid - total,
            products=list(products),
            customer=customer,
            user=user,
        )

    @log_operation("log_action")
    def log_action(self, user: User, event: UserActionKind, info: str) -> UserAction:
        """
        Append a timestamped entry to a user's action log.

        The user is read again from the store so the log is never saved from a
        stale copy.

        Raises:
            ValidationError: If the user does not exist in the store
        """
        with self._unit_of_work("log_action") as db:
            fresh_user = UserRepository(db).get_with_actions(user.id)
            if fresh_user is None:
                raise ValidationError(f"User {user.id} does not exist", {"user_id": user.id})

            action = UserAction(
                time=datetime.now(),
                event=UserActionKind(event),
                description=info,
            )
            fresh_user.actions.append(action)
            db.flush()
        return action

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_customer(self, customer_id: int) -> Optional[Customer]:
        with self._unit_of_work("get_customer", transactional=False) as db:
            return CustomerRepository(db).get_by_id(customer_id)

    def get_customer_with_sales(self, customer_id: int) -> Optional[Customer]:
        with self._unit_of_work("get_customer_with_sales", transactional=False) as db:
            return CustomerRepository(db).get_with_sales(customer_id)

    def count_users(self) -> int:
        with self._unit_of_work("count_users", transactional=False) as db:
            return UserRepository(db).count()

    def get_users(self) -> List[User]:
        with self._unit_of_work("get_users", transactional=False) as db:
            return UserRepository(db).get_all()

    def get_user(self, user_id: int) -> Optional[User]:
        """User with its action log loaded."""
        return self.get_user_with_actions(user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        with self._unit_of_work("get_user_by_username", transactional=False) as db:
            return UserRepository(db).get_by_username(username)

    def get_user_with_actions(self, user_id: int) -> Optional[User]:
        with self._unit_of_work("get_user_with_actions", transactional=False) as db:
            return UserRepository(db).get_with_actions(user_id)

    def get_user_with_sales(self, user_id: int) -> Optional[User]:
        with self._unit_of_work("get_user_with_sales", transactional=False) as db:
            return UserRepository(db).get_with_sales(user_id)

    def get_users_with_actions(self) -> List[User]:
        with self._unit_of_work("get_users_with_actions", transactional=False) as db:
            return UserRepository(db).get_all_with_actions()

    def get_users_with_sales(self) -> List[User]:
        with self._unit_of_work("get_users_with_sales", transactional=False) as db:
            return UserRepository(db).get_all_with_sales()

    def get_categories(self) -> List[Category]:
        with self._unit_of_work("get_categories", transactional=False) as db:
            return CategoryRepository(db).get_all_by_name()

    def get_product(self, product_id: int) -> Optional[Product]:
        """Product with its category loaded."""
        with self._unit_of_work("get_product", transactional=False) as db:
            return ProductRepository(db).get_with_category(product_id)

    def get_product_by_barcode(self, barcode: str) -> Optional[Product]:
        """The product with this barcode, category loaded, or None."""
        with self._unit_of_work("get_product_by_barcode", transactional=False) as db:
            return ProductRepository(db).get_by_barcode(barcode)

    def get_products(self) -> List[Product]:
        with self._unit_of_work("get_products", transactional=False) as db:
            return ProductRepository(db).get_all_with_category()

    def load_sales(self, user: User) -> List[Sale]:
        """
        Load a detached user's sales (with their products) onto it.

        Returns:
            The loaded sales
        """
        if user.id is None:
            return list(user.sales)
        with self._unit_of_work("load_sales", transactional=False) as db:
            sales = SaleRepository(db).get_for_user(user.id)
        set_committed_value(user, "sales", sales)
        return sales

    def load_actions(self, user: User) -> List[UserAction]:
        """
        Load a detached user's action log onto it.

        Returns:
            The loaded actions, oldest first
        """
        if user.id is None:
            return list(user.actions)
        with self._unit_of_work("load_actions", transactional=False) as db:
            actions = UserActionRepository(db).get_for_user(user.id)
        set_committed_value(user, "actions", actions)
        return actions

    # ------------------------------------------------------------------
    # Deletes
    # ------------------------------------------------------------------

    @log_operation("remove_category")
    def remove_category(self, category: Category) -> bool:
        with self._unit_of_work("remove_category") as db:
            return CategoryRepository(db).delete_by_id(category.id)

    @log_operation("remove_product")
    def remove_product(self, product: Product) -> bool:
        return self.remove_product_by_id(product.id)

    @log_operation("remove_product_by_id")
    def remove_product_by_id(self, product_id: int) -> bool:
        with self._unit_of_work("remove_product_by_id") as db:
            return ProductRepository(db).delete_by_id(product_id)

    @log_operation("remove_user")
    def remove_user(self, user: User) -> bool:
        """
        Delete a user and its action log.

        A user that still has sales cannot be removed; call
        remove_user_sales() first.
        """
        return self.remove_user_by_id(user.id)

    @log_operation("remove_user_by_id")
    def remove_user_by_id(self, user_id: int) -> bool:
        with self._unit_of_work("remove_user_by_id") as db:
            return UserRepository(db).delete_by_id(user_id)

    @log_operation("remove_user_sales")
    def remove_user_sales(self, user: User) -> int:
        """
        Delete every sale in ``user.sales``.

        The collection must be loaded (get_user_with_sales, load_sales).
        Nothing is sent to the store when it is empty.

        Returns:
            Number of deleted sales
        """
        ids = [sale.id for sale in user.sales if sale.id is not None]
        if not ids:
            return 0
        with self._unit_of_work("remove_user_sales") as db:
            return SaleRepository(db).delete_many(ids)

    @log_operation("remove_user_actions")
    def remove_user_actions(self, user: User) -> int:
        """
        Delete every entry in ``user.actions``.

        Nothing is sent to the store when the log is empty.

        Returns:
            Number of deleted actions
        """
        ids = [action.id for action in user.actions if action.id is not None]
        if not ids:
            return 0
        with self._unit_of_work("remove_user_actions") as db:
            return UserActionRepository(db).delete_many(ids)

    @staticmethod
    def _check_sale_links(sale: Sale) -> None:
        missing = {
            "customer": sale.customer_id is None and sale.customer is None,
            "user": sale.user_id is None and sale.user is None,
        }
        if any(missing.values()):
            raise ValidationError("A sale needs a customer and a user", missing)
