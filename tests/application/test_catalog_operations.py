import pytest
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain
from storefront.catalog.listing import add_product
from storefront.catalog.maintenance import (
    activate_product,
    change_product_price,
    deactivate_product,
    restock_product,
)
from storefront.catalog.product import Product
from storefront.catalog.reservation import process_release, process_reservation
from storefront.errors import InsufficientStock, IntegrityViolation


def _stock(product_id):
    return current_domain.repository_for(Product).get(product_id).stock_quantity


class TestAddProduct:
    def test_added_product_is_persisted(self, catalog):
        product = current_domain.repository_for(Product).get("3")
        assert product.sku == "DXPS13-I7-512"
        assert product.stock_quantity == 30
        assert product.is_active

    def test_duplicate_sku_rejected(self, catalog):
        with pytest.raises(IntegrityViolation):
            add_product(name="Another XPS", sku="DXPS13-I7-512", price=999.00)

    def test_negative_stock_rejected(self):
        with pytest.raises(ValidationError):
            add_product(name="Broken", sku="BROKEN-1", price=1.00, stock_quantity=-1)


class TestReservation:
    def test_reserve_decrements_stock(self, catalog):
        process_reservation("4", 3)
        assert _stock("4") == 97

    def test_reserve_more_than_available(self, catalog):
        with pytest.raises(InsufficientStock):
            process_reservation("3", 31)
        assert _stock("3") == 30

    def test_reserve_exactly_available_leaves_zero(self, catalog):
        process_reservation("3", 30)
        assert _stock("3") == 0

    def test_release_returns_stock(self, catalog):
        process_reservation("5", 4)
        process_release("5", 4)
        assert _stock("5") == 40

    def test_unknown_product(self, catalog):
        with pytest.raises(ObjectNotFoundError):
            process_reservation("missing", 1)

    def test_inactive_product_cannot_be_reserved(self, catalog):
        deactivate_product("2")
        with pytest.raises(InsufficientStock):
            process_reservation("2", 1)


class TestMaintenance:
    def test_restock(self, catalog):
        assert restock_product("1", 5, reference="PO-1001").stock_quantity == 30

    def test_restock_requires_positive_quantity(self, catalog):
        with pytest.raises(ValidationError):
            restock_product("1", 0)

    def test_change_price(self, catalog):
        assert change_product_price("6", 54.99).price == 54.99

    def test_deactivate_then_activate(self, catalog):
        assert not deactivate_product("7").is_active
        assert activate_product("7").is_active
