"""Tests for the DataManager facade over a file-backed store."""

from decimal import Decimal
from unittest.mock import patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import DetachedInstanceError

from lightpos.constants import UserActionKind
from lightpos.exceptions import ConfigurationError, StoreNotInitializedError, ValidationError
from lightpos.models import Category, Product, SaleItem, User
from lightpos.services.data_manager import DataManager


# ── Lifecycle ────────────────────────────────────────────────────────

class TestInitialize:

    def test_operations_before_initialize_fail(self, db_path):
        manager = DataManager(db_path=db_path)

        with pytest.raises(StoreNotInitializedError) as exc_info:
            manager.get_users()

        assert exc_info.value.details["operation"] == "get_users"
        assert not db_path.exists()

    def test_initialize_without_a_path_fails(self):
        with pytest.raises(ConfigurationError):
            DataManager().initialize()

    def test_path_can_be_given_to_initialize(self, db_path):
        manager = DataManager()
        try:
            manager.initialize(db_path)
            assert manager.is_initialized
            assert db_path.exists()
        finally:
            manager.close()

    def test_initialize_twice_is_idempotent(self, manager):
        session_factory = manager.session_factory

        with patch.object(manager.data_factory, "create_session_factory") as build:
            assert manager.initialize() is session_factory
        build.assert_not_called()

    def test_startup_steps_are_timed(self, manager):
        assert set(manager.startup_timings) == {
            "DataFactory()",
            "DataFactory.create()",
            "DataFactory.create_session_factory()",
        }
        assert all(ms >= 0 for ms in manager.startup_timings.values())

    def test_close_allows_reopening_the_same_store(self, manager):
        manager.add_category(Category(name="Drinks"))
        manager.close()

        assert not manager.is_initialized
        manager.initialize()
        assert [c.name for c in manager.get_categories()] == ["Drinks"]


# ── Derived helpers ──────────────────────────────────────────────────

class TestCreateSale:

    def test_totals_and_change(self, manager, shop):
        sale = manager.create_sale(
            shop["customer"], shop["cashier"], Decimal("20.00"), shop["cola"], shop["water"]
        )

        assert sale.total_price == Decimal("15.00")
        assert sale.paid_price == Decimal("20.00")
        assert sale.change_price == Decimal("5.00")
        assert sale.change_price == sale.paid_price - sale.total_price

    def test_sale_is_linked_both_ways(self, manager, shop):
        sale = manager.create_sale(shop["customer"], shop["cashier"], "20.00", shop["cola"])

        assert sale.customer is shop["customer"]
        assert sale.user is shop["cashier"]
        assert sale in shop["customer"].sales
        assert sale in shop["cashier"].sales

    def test_tax_is_part_of_the_total(self, manager, shop):
        beer = Product(
            name="Beer", barcode="333", unit_price=Decimal("10.00"),
            tax_percentage=Decimal("21"), category=shop["category"],
        )
        sale = manager.create_sale(shop["customer"], shop["cashier"], "15.00", beer)

        assert sale.total_price == Decimal("12.10")
        assert sale.change_price == Decimal("2.90")

    def test_missing_customer_or_user_is_rejected(self, manager, shop):
        with pytest.raises(ValidationError):
            manager.create_sale(None, shop["cashier"], "10.00", shop["cola"])
        with pytest.raises(ValidationError):
            manager.create_sale(shop["customer"], None, "10.00", shop["cola"])

    def test_nothing_is_saved(self, manager, shop):
        manager.create_sale(shop["customer"], shop["cashier"], "20.00", shop["cola"])
        assert manager.get_user_with_sales(shop["cashier"].id).sales == []

    def test_total_of_no_products_is_zero(self):
        assert DataManager.calculate_total([]) == Decimal("0.00")


# ── Writes ───────────────────────────────────────────────────────────

class TestAdd:

    def test_add_assigns_ids_to_the_callers_objects(self, manager):
        user = User(username="bob", password_hash="h")

        returned = manager.add_user(user)

        assert returned is user
        assert user.id is not None
        assert user.created_at is not None
        assert manager.count_users() == 1

    def test_add_product_saves_its_category(self, manager):
        snacks = Category(name="Snacks")
        chips = Product(name="Chips", barcode="444", unit_price=Decimal("1.50"), category=snacks)

        manager.add_product(chips)

        assert snacks.id is not None
        assert [c.name for c in manager.get_categories()] == ["Snacks"]
        assert manager.get_product(chips.id).category.name == "Snacks"

    def test_products_of_one_category_share_it(self, manager, shop):
        assert [c.name for c in manager.get_categories()] == ["Drinks"]
        assert shop["cola"].category_id == shop["water"].category_id

    def test_saving_again_updates(self, manager, shop):
        cola = shop["cola"]
        cola.unit_price = Decimal("12.00")

        manager.add_product(cola)

        assert len(manager.get_products()) == 2
        assert manager.get_product(cola.id).unit_price == Decimal("12.00")

    def test_detached_object_can_be_updated(self, manager, shop):
        customer = manager.get_customer(shop["customer"].id)
        customer.name = "Regular"

        manager.add_customer(customer)

        assert manager.get_customer(customer.id).name == "Regular"

    def test_duplicate_username_is_rejected_by_the_store(self, manager, shop):
        with pytest.raises(IntegrityError):
            manager.add_user(User(username="ann", password_hash="y"))


class TestAddSale:

    def test_new_sale_is_saved_with_its_links(self, manager, shop):
        sale = manager.create_sale(
            shop["customer"], shop["cashier"], "20.00", shop["cola"], shop["water"]
        )

        manager.add_sale(sale)

        assert sale.id is not None
        user = manager.get_user_with_sales(shop["cashier"].id)
        assert [s.id for s in user.sales] == [sale.id]
        stored = user.sales[0]
        assert stored.total_price == Decimal("15.00")
        assert stored.customer_id == shop["customer"].id

        sales = manager.load_sales(user)
        assert sorted(p.barcode for p in sales[0].products) == ["111", "222"]

    def test_sale_built_from_fetched_objects(self, manager, shop):
        customer = manager.get_customer(shop["customer"].id)
        user = manager.get_user(shop["cashier"].id)
        cola = manager.get_product_by_barcode("111")
        water = manager.get_product_by_barcode("222")

        sale = manager.create_sale(customer, user, "15.00", cola, water)
        manager.add_sale(sale)

        assert sale.id is not None
        assert sale.change_price == Decimal("0.00")
        assert len(manager.get_user_with_sales(user.id).sales) == 1
        assert manager.count_users() == 1

    def test_same_product_twice(self, manager, shop):
        sale = manager.create_sale(
            shop["customer"], shop["cashier"], "20.00", shop["cola"], shop["cola"]
        )
        manager.add_sale(sale)

        user = manager.get_user_with_sales(shop["cashier"].id)
        products = manager.load_sales(user)[0].products
        assert [p.barcode for p in products] == ["111", "111"]
        assert user.sales[0].total_price == Decimal("20.00")

    def test_products_of_a_saved_sale_can_be_replaced(self, manager, shop):
        sale = manager.create_sale(
            shop["customer"], shop["cashier"], "30.00", shop["cola"], shop["cola"]
        )
        manager.add_sale(sale)

        sale.products = [shop["water"]]
        manager.add_sale(sale)

        sales = manager.load_sales(manager.get_user_with_sales(shop["cashier"].id))
        assert [s.id for s in sales] == [sale.id]
        assert [p.barcode for p in sales[0].products] == ["222"]
        with manager.session_factory() as db:
            lines = db.execute(
                select(func.count()).select_from(SaleItem).where(SaleItem.sale_id == sale.id)
            ).scalar()
        assert lines == 1

    def test_fetched_sale_can_be_extended(self, manager, shop):
        manager.add_sale(
            manager.create_sale(shop["customer"], shop["cashier"], "20.00", shop["cola"])
        )
        sale = manager.load_sales(manager.get_user_with_sales(shop["cashier"].id))[0]

        sale.products.append(shop["water"])
        manager.add_sale(sale)

        stored = manager.load_sales(manager.get_user_with_sales(shop["cashier"].id))[0]
        assert [p.barcode for p in stored.products] == ["111", "222"]

    def test_saving_a_sale_twice_does_not_duplicate_it(self, manager, shop):
        sale = manager.create_sale(shop["customer"], shop["cashier"], "20.00", shop["cola"])

        manager.add_sale(sale)
        manager.add_sale(sale)

        assert len(manager.get_user_with_sales(shop["cashier"].id).sales) == 1

    def test_sale_without_user_is_rejected(self, manager, shop):
        sale = manager.create_sale(shop["customer"], shop["cashier"], "20.00", shop["cola"])
        sale.user = None

        with pytest.raises(ValidationError):
            manager.add_sale(sale)


class TestLogAction:

    def test_action_is_appended_to_the_log(self, manager, shop):
        action = manager.log_action(shop["cashier"], UserActionKind.LOGIN, "till 1")

        assert action.id is not None
        assert action.time is not None
        user = manager.get_user(shop["cashier"].id)
        assert [(a.event, a.description) for a in user.actions] == [
            (UserActionKind.LOGIN, "till 1")
        ]
        assert user.actions[0].label == "Logged in"

    def test_log_keeps_earlier_entries(self, manager, shop):
        manager.log_action(shop["cashier"], UserActionKind.LOGIN, "in")
        manager.log_action(shop["cashier"], "LOGOUT", "out")

        user = manager.get_user(shop["cashier"].id)
        assert [a.event for a in user.actions] == [UserActionKind.LOGIN, UserActionKind.LOGOUT]

    def test_saving_an_earlier_copy_keeps_later_entries(self, manager, shop):
        manager.log_action(shop["cashier"], UserActionKind.LOGIN, "first")
        ui_user = manager.get_user(shop["cashier"].id)
        manager.log_action(ui_user, UserActionKind.SALE, "second")

        ui_user.password_hash = "new"
        manager.add_user(ui_user)

        stored = manager.get_user(shop["cashier"].id)
        assert stored.password_hash == "new"
        assert [a.description for a in stored.actions] == ["first", "second"]

    def test_saving_a_user_with_sales_loaded_keeps_newer_sales(self, manager, shop):
        ui_user = manager.get_user_with_sales(shop["cashier"].id)
        manager.add_sale(manager.create_sale(shop["customer"], shop["cashier"], "10", shop["cola"]))

        ui_user.username = "anne"
        manager.add_user(ui_user)

        stored = manager.get_user_with_sales(shop["cashier"].id)
        assert stored.username == "anne"
        assert len(stored.sales) == 1

    def test_unknown_user_is_rejected(self, manager):
        with pytest.raises(ValidationError):
            manager.log_action(User(id=999, username="ghost"), UserActionKind.LOGIN, "")


# ── Reads ────────────────────────────────────────────────────────────

class TestReads:

    def test_get_product_by_barcode_loads_category(self, manager, shop):
        product = manager.get_product_by_barcode("222")

        assert product.name == "Water"
        assert product.category.name == "Drinks"

    def test_get_product_by_unknown_barcode(self, manager, shop):
        assert manager.get_product_by_barcode("000") is None

    def test_get_products_loads_categories(self, manager, shop):
        products = manager.get_products()
        assert [(p.barcode, p.category.name) for p in products] == [
            ("111", "Drinks"),
            ("222", "Drinks"),
        ]

    def test_get_customer_with_sales(self, manager, shop):
        manager.add_sale(manager.create_sale(shop["customer"], shop["cashier"], "10", shop["cola"]))
        manager.add_sale(manager.create_sale(shop["customer"], shop["cashier"], "5", shop["water"]))

        customer = manager.get_customer_with_sales(shop["customer"].id)

        assert [s.total_price for s in customer.sales] == [Decimal("10.00"), Decimal("5.00")]
        assert manager.get_customer_with_sales(999) is None

    def test_get_user_by_username(self, manager, shop):
        assert manager.get_user_by_username("ann").id == shop["cashier"].id
        assert manager.get_user_by_username("nobody") is None

    def test_users_with_collections(self, manager, shop):
        manager.add_user(User(username="bob", password_hash="h"))
        manager.log_action(shop["cashier"], UserActionKind.LOGIN, "in")

        with_actions = manager.get_users_with_actions()
        with_sales = manager.get_users_with_sales()

        assert [len(u.actions) for u in with_actions] == [1, 0]
        assert [len(u.sales) for u in with_sales] == [0, 0]

    def test_unloaded_collection_on_detached_user(self, manager, shop):
        user = manager.get_user_with_sales(shop["cashier"].id)

        with pytest.raises(DetachedInstanceError):
            user.actions

    def test_load_actions_attaches_the_log(self, manager, shop):
        manager.log_action(shop["cashier"], UserActionKind.SALE, "receipt 1")
        user = manager.get_users()[0]

        actions = manager.load_actions(user)

        assert [a.description for a in actions] == ["receipt 1"]
        assert user.actions == actions

    def test_load_on_unsaved_user_returns_its_own_collection(self, manager):
        assert manager.load_sales(User(username="new")) == []


# ── Deletes ──────────────────────────────────────────────────────────

class TestRemove:

    def test_remove_product(self, manager, shop):
        assert manager.remove_product(shop["cola"]) is True
        assert manager.get_product_by_barcode("111") is None
        assert manager.remove_product_by_id(shop["cola"].id) is False

    def test_remove_unused_category(self, manager):
        snacks = manager.add_category(Category(name="Snacks"))

        assert manager.remove_category(snacks) is True
        assert manager.get_categories() == []

    def test_category_in_use_cannot_be_removed(self, manager, shop):
        with pytest.raises(IntegrityError):
            manager.remove_category(shop["category"])

    def test_remove_user_takes_its_log_along(self, manager, shop):
        manager.log_action(shop["cashier"], UserActionKind.LOGIN, "in")

        assert manager.remove_user(shop["cashier"]) is True
        assert manager.get_user(shop["cashier"].id) is None
        assert manager.count_users() == 0

    def test_user_with_sales_cannot_be_removed(self, manager, shop):
        manager.add_sale(manager.create_sale(shop["customer"], shop["cashier"], "10", shop["cola"]))

        with pytest.raises(IntegrityError):
            manager.remove_user(shop["cashier"])
        assert manager.count_users() == 1

    def test_remove_unknown_user(self, manager):
        assert manager.remove_user_by_id(12345) is False


class TestRemoveUserCollections:

    def test_empty_actions_touch_nothing(self, manager, shop):
        user = manager.get_user(shop["cashier"].id)

        with patch.object(manager, "_unit_of_work") as uow:
            assert manager.remove_user_actions(user) == 0
        uow.assert_not_called()

    def test_empty_sales_touch_nothing(self, manager, shop):
        user = manager.get_user_with_sales(shop["cashier"].id)

        with patch.object(manager, "_unit_of_work") as uow:
            assert manager.remove_user_sales(user) == 0
        uow.assert_not_called()

    def test_removes_exactly_the_users_actions(self, manager, shop):
        bob = manager.add_user(User(username="bob", password_hash="h"))
        manager.log_action(shop["cashier"], UserActionKind.LOGIN, "in")
        manager.log_action(shop["cashier"], UserActionKind.LOGOUT, "out")
        manager.log_action(bob, UserActionKind.LOGIN, "in")

        deleted = manager.remove_user_actions(manager.get_user(shop["cashier"].id))

        assert deleted == 2
        assert manager.get_user(shop["cashier"].id).actions == []
        assert len(manager.get_user(bob.id).actions) == 1

    def test_removes_exactly_the_users_sales(self, manager, shop):
        bob = manager.add_user(User(username="bob", password_hash="h"))
        customer = shop["customer"]
        for cashier in (shop["cashier"], shop["cashier"], bob):
            manager.add_sale(manager.create_sale(customer, cashier, "10", shop["cola"]))

        deleted = manager.remove_user_sales(manager.get_user_with_sales(shop["cashier"].id))

        assert deleted == 2
        assert manager.get_user_with_sales(shop["cashier"].id).sales == []
        assert len(manager.get_user_with_sales(bob.id).sales) == 1

    def test_user_can_be_removed_once_its_sales_are_gone(self, manager, shop):
        manager.add_sale(manager.create_sale(shop["customer"], shop["cashier"], "10", shop["cola"]))

        manager.remove_user_sales(manager.get_user_with_sales(shop["cashier"].id))

        assert manager.remove_user(shop["cashier"]) is True
