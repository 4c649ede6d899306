import sys
from decimal import Decimal
from pathlib import Path

# Add project root to Python path FIRST
project_dir = Path(__file__).parent.parent
sys.path.insert(0, str(project_dir))

# Now import after path is set
import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from lightpos.models import Base, Category, Customer, Product, User
from lightpos.services.data_manager import DataManager


@pytest.fixture
def db_session():
    """Create in-memory database for testing"""
    engine = create_engine('sqlite:///:memory:')

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)
    session = SessionLocal()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "pos.db"


@pytest.fixture
def manager(db_path):
    """Initialized data manager over a fresh store file"""
    data_manager = DataManager(db_path=db_path)
    data_manager.initialize()
    yield data_manager
    data_manager.close()


@pytest.fixture
def shop(manager):
    """
    A small shop: one category, two products (10.00 and 5.00), a customer
    and a cashier, all saved.
    """
    drinks = Category(name="Drinks")
    cola = Product(name="Cola", barcode="111", unit_price=Decimal("10.00"), category=drinks)
    water = Product(name="Water", barcode="222", unit_price=Decimal("5.00"), category=drinks)
    manager.add_product(cola)
    manager.add_product(water)

    customer = manager.add_customer(Customer(name="Walk-in"))
    cashier = manager.add_user(User(username="ann", password_hash="x"))

    return {
        "category": drinks,
        "cola": cola,
        "water": water,
        "customer": customer,
        "cashier": cashier,
    }
