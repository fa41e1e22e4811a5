"""Storefront bounded context: catalog stock, coupons, orders, payments and shipments.

A single Protean domain so that stock reservation, coupon redemption and order
creation can commit together in one Unit of Work.
"""

from protean.domain import Domain

from storefront.utils.logging import configure_logging, get_logger

# Configure logging for the application
configure_logging()

logger = get_logger(__name__)

# Domain Composition Root
storefront = Domain(name="storefront")
