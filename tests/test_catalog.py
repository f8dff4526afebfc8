"""
Tests for catalog maintenance and the explicit stock set.
"""

import pytest

from exceptions import CatalogEntryNotFound, ProductNotFound, ValidationError
from models.alert import LowStockAlert
from models.category import Category
from models.customer import Customer
from models.product import Product
from services import catalog
from services import movements as ledger


class TestEntries:

    def test_create_update_delete_customer(self, db):
        customer = catalog.create_entry(db, Customer, name="Acme", contact_person="Jo")
        catalog.update_entry(db, Customer, "Customer", customer.id, phone="555-0199")

        assert catalog.get_entry(db, Customer, "Customer", customer.id).phone == "555-0199"

        catalog.delete_entry(db, Customer, "Customer", customer.id)
        with pytest.raises(CatalogEntryNotFound):
            catalog.get_entry(db, Customer, "Customer", customer.id)

    def test_category_in_use_cannot_be_deleted(self, db, product, category):
        with pytest.raises(ValidationError):
            catalog.delete_entry(db, Category, "Category", category.id)
        assert db.query(Category).count() == 1

    def test_list_filters_by_name(self, db):
        catalog.create_entry(db, Category, name="Books", description="")
        catalog.create_entry(db, Category, name="Sports", description="")

        assert [c.name for c in catalog.list_entries(db, Category, "boo")] == ["Books"]

    def test_product_counts(self, db, make_product, category):
        make_product()
        make_product()
        assert catalog.category_product_counts(db) == {category.id: 2}


class TestProducts:

    def _fields(self, category, **overrides):
        fields = dict(name="Wireless Mouse", sku=" elec-001 ", category_id=category.id,
                      buying_price=15.99, selling_price=29.99, stock_quantity=50, minimum_stock_level=10)
        fields.update(overrides)
        return fields

    def test_create_normalizes_sku(self, db, category):
        product = catalog.create_product(db, **self._fields(category))
        assert product.sku == "ELEC-001"
        assert product.is_low_stock is False

    def test_duplicate_sku_rejected(self, db, category):
        catalog.create_product(db, **self._fields(category))
        with pytest.raises(ValidationError):
            catalog.create_product(db, **self._fields(category, name="Other"))

    def test_unknown_category_rejected(self, db, category):
        with pytest.raises(CatalogEntryNotFound):
            catalog.create_product(db, **self._fields(category, category_id=999))

    def test_create_low_product_raises_alert(self, db, category):
        product = catalog.create_product(db, **self._fields(category, stock_quantity=3))
        assert db.query(LowStockAlert).filter(LowStockAlert.product_id == product.id).count() == 1

    def test_explicit_stock_set(self, db, make_product):
        product = make_product(stock=10, minimum=5)
        ledger.create_movement(db, product.id, "IN", 5)

        updated = catalog.update_product(db, product.id, stock_quantity=2)

        assert updated.stock_quantity == 2
        assert db.query(LowStockAlert).filter(LowStockAlert.product_id == product.id).count() == 1

    def test_negative_explicit_set_rejected(self, db, product):
        with pytest.raises(ValidationError):
            catalog.update_product(db, product.id, stock_quantity=-1)

    def test_search(self, db, make_product):
        make_product(stock=1, minimum=5, sku="LOW-1")
        make_product(stock=50, minimum=5, sku="OK-1")

        items, total = catalog.search_products(db, low_stock=True)
        assert total == 1 and items[0].sku == "LOW-1"

        items, total = catalog.search_products(db, sort_by="stock_quantity", order="desc")
        assert [p.sku for p in items] == ["OK-1", "LOW-1"]

    def test_delete_with_history_rejected(self, db, product):
        ledger.create_movement(db, product.id, "IN", 1)
        with pytest.raises(ValidationError):
            catalog.delete_product(db, product.id)

    def test_delete_unused_product(self, db, make_product):
        product = make_product(stock=0, minimum=1)
        catalog.update_product(db, product.id, name="Renamed")

        catalog.delete_product(db, product.id)

        assert db.query(Product).count() == 0
        assert db.query(LowStockAlert).count() == 0
        with pytest.raises(ProductNotFound):
            catalog.get_product(db, product.id)
