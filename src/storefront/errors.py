"""Error taxonomy for checkout, status changes and the payment/shipment trackers.

Every error carries a ``messages`` dict keyed by the offending field (the
Protean ``ValidationError`` contract) and a stable ``code`` for API clients.
"""

from protean.exceptions import ValidationError


class StorefrontError(ValidationError):
    """Base class for all storefront rule violations."""

    code = "storefront_error"


class InsufficientStock(StorefrontError):
    code = "insufficient_stock"


class CouponInvalid(StorefrontError):
    code = "coupon_invalid"


class CouponExhausted(StorefrontError):
    code = "coupon_exhausted"


class CouponAlreadyUsed(StorefrontError):
    code = "coupon_already_used"


class InvalidTransition(StorefrontError):
    code = "invalid_transition"


class OrderNotReady(StorefrontError):
    code = "order_not_ready"


class IntegrityViolation(StorefrontError):
    """A uniqueness or reference rule of the underlying store was breached."""

    code = "integrity_violation"
