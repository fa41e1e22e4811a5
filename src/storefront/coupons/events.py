"""Domain events for coupons and their per-user redemptions."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Coupon")
class CouponCreated:
    __version__ = 1

    coupon_id = Identifier(required=True)
    code = String(required=True)
    discount_type = String(required=True)
    discount_value = Float(required=True)
    valid_from = DateTime(required=True)
    valid_until = DateTime(required=True)
    max_uses = Integer()


@storefront.event(part_of="Coupon")
class CouponUseRecorded:
    """One more order consumed the coupon."""

    __version__ = 1

    coupon_id = Identifier(required=True)
    code = String(required=True)
    uses_count = Integer(required=True)
    max_uses = Integer()


@storefront.event(part_of="Coupon")
class CouponDeactivated:
    __version__ = 1

    coupon_id = Identifier(required=True)
    code = String(required=True)
    deactivated_at = DateTime(required=True)


@storefront.event(part_of="CouponRedemption")
class CouponIssued:
    __version__ = 1

    redemption_id = Identifier(required=True)
    user_id = Identifier(required=True)
    coupon_id = Identifier(required=True)
    coupon_code = String(required=True)
    issued_at = DateTime(required=True)


@storefront.event(part_of="CouponRedemption")
class CouponRedeemed:
    __version__ = 1

    redemption_id = Identifier(required=True)
    user_id = Identifier(required=True)
    coupon_id = Identifier(required=True)
    coupon_code = String(required=True)
    order_id = Identifier()
    redeemed_at = DateTime(required=True)
