"""Storefront API package."""

from storefront.api.errors import register_storefront_exception_handlers
from storefront.api.routes import (
    coupon_router,
    order_router,
    payment_router,
    product_router,
    shipping_router,
)

__all__ = [
    "coupon_router",
    "order_router",
    "payment_router",
    "product_router",
    "register_storefront_exception_handlers",
    "shipping_router",
]
