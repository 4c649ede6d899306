from sqlalchemy import (
    Column, String, Integer, Numeric, Text, DateTime, Enum, ForeignKey,
    CheckConstraint, Index,
)
from sqlalchemy.ext.associationproxy import association_proxy
from sqlalchemy.orm import relationship
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

from lightpos.database import Base
from lightpos.constants import CURRENCY_QUANTUM, UserActionKind


def to_amount(value) -> Decimal:
    """Coerce a number to a two-digit Decimal amount (half-up rounding)."""
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CURRENCY_QUANTUM, rounding=ROUND_HALF_UP)


# One-to-many collections written by their own operations (add_sale,
# log_action). Merging a copy of the parent leaves them as stored.
NO_MERGE_CASCADE = "save-update, refresh-expire, expunge"


class User(Base):
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(100), nullable=False, unique=True)
    password_hash = Column(String, nullable=False, default='')
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    sales = relationship(
        "Sale", back_populates="user", cascade=NO_MERGE_CASCADE, order_by="Sale.id"
    )
    actions = relationship(
        "UserAction",
        back_populates="user",
        cascade=f"{NO_MERGE_CASCADE}, delete, delete-orphan",
        order_by="[UserAction.time, UserAction.id]",
    )

    __table_args__ = (
        CheckConstraint("username != ''", name='username_not_empty'),
    )

    def __repr__(self):
        return f"<User id={self.id} username={self.username!r}>"


class Customer(Base):
    __tablename__ = 'customers'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False, default='')
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    sales = relationship(
        "Sale", back_populates="customer", cascade=NO_MERGE_CASCADE, order_by="Sale.id"
    )

    def __repr__(self):
        return f"<Customer id={self.id} name={self.name!r}>"


class Category(Base):
    __tablename__ = 'categories'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, unique=True)

    __table_args__ = (
        CheckConstraint("name != ''", name='name_not_empty'),
    )

    def __repr__(self):
        return f"<Category id={self.id} name={self.name!r}>"


class Product(Base):
    """
    A sellable item.

    ``unit_price`` is the net price, ``tax_percentage`` the tax applied on top
    of it. The price charged at the till is ``calculate_price()``.
    """
    __tablename__ = 'products'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    barcode = Column(String(64), unique=True)
    unit_price = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    tax_percentage = Column(Numeric(5, 2), nullable=False, default=Decimal("0.00"))
    category_id = Column(Integer, ForeignKey('categories.id'), nullable=False)

    category = relationship("Category")

    def calculate_price(self) -> Decimal:
        """
        Price of one unit including tax.

        Returns:
            unit_price * (1 + tax_percentage / 100), rounded half-up to cents
        """
        unit_price = to_amount(self.unit_price)
        tax = Decimal(str(self.tax_percentage)) if self.tax_percentage is not None else Decimal(0)
        return to_amount(unit_price * (1 + tax / 100))

    __table_args__ = (
        CheckConstraint("unit_price >= 0", name='unit_price_positive'),
        CheckConstraint("tax_percentage >= 0", name='tax_percentage_positive'),
        Index('idx_products_category', 'category_id'),
    )

    def __repr__(self):
        return f"<Product id={self.id} barcode={self.barcode!r} name={self.name!r}>"


class Sale(Base):
    """
    A completed sale.

    change_price is always paid_price - total_price; use
    DataManager.create_sale to build one with consistent amounts.
    """
    __tablename__ = 'sales'

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(Integer, ForeignKey('customers.id'), nullable=False)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    total_price = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    paid_price = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    change_price = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    customer = relationship("Customer", back_populates="sales")
    user = relationship("User", back_populates="sales")
    items = relationship(
        "SaleItem",
        back_populates="sale",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="SaleItem.id",
    )

    # Products in the order they were rung up; the same product may repeat
    products = association_proxy(
        "items", "product", creator=lambda product: SaleItem(product=product)
    )

    __table_args__ = (
        Index('idx_sales_user', 'user_id'),
        Index('idx_sales_customer', 'customer_id'),
        Index('idx_sales_created', 'created_at'),
    )

    def __repr__(self):
        return f"<Sale id={self.id} total={self.total_price} paid={self.paid_price}>"


class SaleItem(Base):
    """One product line of a sale"""
    __tablename__ = 'sale_products'

    id = Column(Integer, primary_key=True, autoincrement=True)
    sale_id = Column(Integer, ForeignKey('sales.id', ondelete='CASCADE'), nullable=False)
    product_id = Column(Integer, ForeignKey('products.id'), nullable=False)

    sale = relationship("Sale", back_populates="items")
    product = relationship("Product")

    __table_args__ = (
        Index('idx_sale_products_sale', 'sale_id'),
        Index('idx_sale_products_product', 'product_id'),
    )

    def __repr__(self):
        return f"<SaleItem id={self.id} sale_id={self.sale_id} product_id={self.product_id}>"


class UserAction(Base):
    __tablename__ = 'user_actions'

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    time = Column(DateTime, nullable=False, default=datetime.now)
    event = Column(
        Enum(UserActionKind, native_enum=False, create_constraint=True, length=32, name='user_action_kind'),
        nullable=False,
    )
    description = Column(Text)

    user = relationship("User", back_populates="actions")

    @property
    def label(self) -> str:
        """Human-readable event label"""
        return UserActionKind.get_ui_label(self.event)

    __table_args__ = (
        Index('idx_user_actions_user', 'user_id'),
        Index('idx_user_actions_time', 'time'),
    )

    def __repr__(self):
        return f"<UserAction id={self.id} event={self.event} time={self.time}>"
