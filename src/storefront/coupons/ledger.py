"""Coupon ledger: eligibility checks and redemption.

``assess_coupon`` and ``redeem_coupon`` work inside the current Unit of Work;
checkout calls them from its own handler so that the redemption commits
together with the order. ``redeem`` is the standalone entry point; every
redemption writes the coupon, so two racing redemptions cannot both commit.

Rejections are checked in this order: the coupon is unknown, inactive,
outside its validity window or below its minimum order amount
(CouponInvalid); the user already used it (CouponAlreadyUsed); it has no
uses left (CouponExhausted).
"""

from dataclasses import dataclass

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.coupons.coupon import Coupon
from storefront.coupons.redemption import CouponRedemption
from storefront.domain import storefront
from storefront.errors import CouponInvalid, StorefrontError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Eligibility:
    """Outcome of an eligibility check: either a discount or the reason there is none."""

    eligible: bool
    reason: str | None = None
    message: str | None = None
    discount: float = 0.0
    coupon_id: str | None = None


def _find_coupon(code) -> Coupon:
    coupon = current_domain.repository_for(Coupon).find_by_code(code)
    if coupon is None:
        raise CouponInvalid({"coupon_code": [f"Unknown coupon code {code}"]})
    return coupon


def assess_coupon(user_id, code, order_subtotal, at=None) -> tuple[Coupon, CouponRedemption | None]:
    """Load the coupon and the user's redemption, raising if the coupon cannot be used."""
    coupon = _find_coupon(code)
    coupon.ensure_applicable(order_subtotal, at=at)

    redemption = current_domain.repository_for(CouponRedemption).find_for(user_id, coupon.id)
    if redemption is not None:
        redemption.ensure_unused()

    coupon.ensure_not_exhausted()
    return coupon, redemption


def check_eligibility(user_id, code, order_subtotal, at=None) -> Eligibility:
    try:
        coupon, _ = assess_coupon(user_id, code, order_subtotal, at=at)
    except StorefrontError as exc:
        message = "; ".join(str(m) for messages in exc.messages.values() for m in messages)
        return Eligibility(eligible=False, reason=exc.code, message=message)

    return Eligibility(
        eligible=True,
        discount=coupon.discount_for(order_subtotal),
        coupon_id=str(coupon.id),
    )


def redeem_coupon(user_id, code, order_id=None, coupon=None) -> CouponRedemption:
    """Mark the user's redemption used and count one more use of the coupon."""
    coupon = coupon or _find_coupon(code)

    redemptions = current_domain.repository_for(CouponRedemption)
    redemption = redemptions.find_for(user_id, coupon.id)
    if redemption is not None:
        redemption.ensure_unused()
    else:
        redemption = CouponRedemption.issue(user_id=user_id, coupon_id=str(coupon.id), coupon_code=coupon.code)

    coupon.record_use()
    redemption.redeem(order_id=order_id)

    current_domain.repository_for(Coupon).add(coupon)
    redemptions.add(redemption)
    logger.info(
        "Coupon redeemed",
        coupon_code=coupon.code,
        user_id=str(user_id),
        order_id=str(order_id) if order_id else None,
        uses_count=coupon.uses_count,
    )
    return redemption


@storefront.command(part_of="CouponRedemption")
class RedeemCoupon:
    user_id = Identifier(required=True)
    coupon_code = String(required=True, max_length=50)
    order_id = Identifier()


@storefront.command_handler(part_of=CouponRedemption)
class RedeemCouponHandler:
    @handle(RedeemCoupon)
    def redeem(self, command):
        redemption = redeem_coupon(command.user_id, command.coupon_code, order_id=command.order_id)
        return str(redemption.id)


def redeem(user_id, code, order_id=None) -> str:
    """Redeem ``code`` for ``user_id`` once; a repeat call raises CouponAlreadyUsed."""
    return current_domain.process(
        RedeemCoupon(user_id=str(user_id), coupon_code=code, order_id=order_id),
        asynchronous=False,
    )
