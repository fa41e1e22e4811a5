import os
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from protean.integrations.pytest import DomainFixture


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Select the config environment before the domain module is imported."""
    os.environ["PROTEAN_ENV"] = session.config.option.env


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/bdd/" in test_path:
            item.add_marker(pytest.mark.bdd)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session")
def storefront_bed():
    from storefront.domain import storefront

    bed = DomainFixture(storefront)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(scope="session", autouse=True)
def setup_db(storefront_bed):
    """Create relational tables when the selected env persists to sqlite or postgresql."""
    from storefront.domain import storefront
    from storefront.utils.db import drop_db, setup_db

    setup_db(storefront)

    yield

    drop_db(storefront)


@pytest.fixture(autouse=True)
def _ctx(storefront_bed):
    with storefront_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def run_around_tests(_ctx):
    """Fixture to automatically cleanup infrastructure after every test"""
    yield

    from protean import current_domain
    from storefront.payments.gateway import reset_gateway
    from storefront.shipping.carrier import reset_carrier

    # Clear all databases
    for _, provider in current_domain.providers.items():
        provider._data_reset()

    # Drain event stores
    current_domain.event_store.store._data_reset()

    reset_gateway()
    reset_carrier()


# ---------------------------------------------------------------------------
# Sample store: the catalog, coupons and carriers every scenario starts from
# ---------------------------------------------------------------------------
SAMPLE_PRODUCTS = [
    {"product_id": "1", "name": 'MacBook Pro 16"', "sku": "MBP16-M2-512", "price": 2499.99, "cost": 2000.00, "stock_quantity": 25, "category_id": "2"},
    {"product_id": "2", "name": "iPhone 15 Pro", "sku": "IP15-PRO-256", "price": 999.99, "cost": 750.00, "stock_quantity": 50, "category_id": "3"},
    {"product_id": "3", "name": "Dell XPS 13", "sku": "DXPS13-I7-512", "price": 1199.99, "cost": 800.00, "stock_quantity": 30, "category_id": "2"},
    {"product_id": "4", "name": "Non-Stick Frying Pan Set", "sku": "NSPAN-SET3", "price": 49.99, "cost": 25.00, "stock_quantity": 100, "category_id": "6"},
    {"product_id": "5", "name": "Modern Office Chair", "sku": "OFFCHAIR-MOD01", "price": 199.99, "cost": 120.00, "stock_quantity": 40, "category_id": "7"},
    {"product_id": "6", "name": "Men's Slim Fit Jeans", "sku": "JEANS-MEN-SLIM", "price": 59.99, "cost": 30.00, "stock_quantity": 200, "category_id": "8"},
    {"product_id": "7", "name": "Women's Summer Dress", "sku": "DRESS-WOM-SUMMER", "price": 39.99, "cost": 18.00, "stock_quantity": 150, "category_id": "9"},
]

SAMPLE_PROVIDERS = [
    ("Fargo", "https://www.Fargo.com/Fargotrack/?trknbr={TRACKING_NUMBER}", 3),
    ("G4S", "https://www.G4S.com/track?tracknum={TRACKING_NUMBER}", 4),
    ("Carrier", "https://tools.Carrier.com/go/TrackConfirmAction?tLabels={TRACKING_NUMBER}", 5),
]


@pytest.fixture()
def catalog():
    """Products 1-7 of the sample store, keyed by product id."""
    from storefront.catalog.listing import add_product

    return {row["product_id"]: add_product(**row) for row in SAMPLE_PRODUCTS}


@pytest.fixture()
def coupons():
    """WELCOME10 and SAVE50, issued to users 1-4; user 2 has already used WELCOME10."""
    from storefront.coupons.issuance import create_coupon, issue_coupon
    from storefront.coupons.ledger import redeem

    now = datetime.now(UTC)
    welcome = create_coupon(
        code="WELCOME10",
        description="10% off for new customers",
        discount_type="percentage",
        discount_value=10,
        min_order_amount=50,
        valid_from=now - timedelta(days=1),
        valid_until=now + timedelta(days=30),
        max_uses=1000,
    )
    save50 = create_coupon(
        code="SAVE50",
        description="50 off orders over 200",
        discount_type="fixed_amount",
        discount_value=50,
        min_order_amount=200,
        valid_from=now - timedelta(days=1),
        valid_until=now + timedelta(days=15),
        max_uses=200,
    )

    issue_coupon("1", "WELCOME10")
    issue_coupon("2", "WELCOME10")
    redeem("2", "WELCOME10")
    issue_coupon("3", "SAVE50")
    issue_coupon("4", "WELCOME10")
    return {"WELCOME10": welcome, "SAVE50": save50}


@pytest.fixture()
def providers():
    from storefront.shipping.provider import register_provider

    return {name: register_provider(name, template, days) for name, template, days in SAMPLE_PROVIDERS}


@pytest.fixture()
def place():
    """Check out with sensible address defaults."""
    from storefront.ordering.checkout import place_order

    def _place(user_id, items, coupon_code=None, **kwargs):
        return place_order(
            user_id=user_id,
            cart_items=[{"product_id": pid, "quantity": qty} for pid, qty in items],
            shipping_address_id=kwargs.pop("shipping_address_id", f"addr-{user_id}"),
            billing_address_id=kwargs.pop("billing_address_id", f"addr-{user_id}"),
            coupon_code=coupon_code,
            **kwargs,
        )

    return _place
