"""CouponRedemption aggregate: one user's claim on one coupon.

At most one redemption exists per (user, coupon) pair. It is created when the
coupon is issued to the user (or at first checkout with an un-issued code)
and flips to used exactly once, inside the Unit of Work that places the order
consuming it.
"""

from datetime import UTC, datetime

from protean.fields import Boolean, DateTime, Identifier, String

from storefront.coupons.events import CouponIssued, CouponRedeemed
from storefront.domain import storefront
from storefront.errors import CouponAlreadyUsed


@storefront.aggregate
class CouponRedemption:
    user_id = Identifier(required=True)
    coupon_id = Identifier(required=True)
    coupon_code = String(required=True, max_length=50)
    is_used = Boolean(default=False)
    order_id = Identifier()
    issued_at = DateTime()
    redeemed_at = DateTime()

    @classmethod
    def issue(cls, user_id, coupon_id, coupon_code):
        now = datetime.now(UTC)
        redemption = cls(
            user_id=str(user_id),
            coupon_id=str(coupon_id),
            coupon_code=coupon_code,
            is_used=False,
            issued_at=now,
        )
        redemption.raise_(
            CouponIssued(
                redemption_id=str(redemption.id),
                user_id=str(user_id),
                coupon_id=str(coupon_id),
                coupon_code=coupon_code,
                issued_at=now,
            )
        )
        return redemption

    def ensure_unused(self):
        if self.is_used:
            raise CouponAlreadyUsed(
                {"coupon_code": [f"Coupon {self.coupon_code} was already used by user {self.user_id}"]}
            )

    def redeem(self, order_id=None):
        self.ensure_unused()

        now = datetime.now(UTC)
        self.is_used = True
        self.order_id = order_id
        self.redeemed_at = now

        self.raise_(
            CouponRedeemed(
                redemption_id=str(self.id),
                user_id=str(self.user_id),
                coupon_id=str(self.coupon_id),
                coupon_code=self.coupon_code,
                order_id=str(order_id) if order_id else None,
                redeemed_at=now,
            )
        )
