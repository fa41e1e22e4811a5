"""Coupon definition and issuance: commands and handlers."""

import structlog
from protean import handle
from protean.fields import DateTime, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.coupons.coupon import Coupon, DiscountType, normalize_code
from storefront.coupons.redemption import CouponRedemption
from storefront.domain import storefront
from storefront.errors import CouponInvalid, IntegrityViolation

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Coupon")
class CreateCoupon:
    code = String(required=True, max_length=50)
    description = Text()
    discount_type = String(required=True, max_length=20)
    discount_value = Float(required=True)
    min_order_amount = Float(default=0.0)
    max_discount_amount = Float()
    valid_from = DateTime(required=True)
    valid_until = DateTime(required=True)
    max_uses = Integer()


@storefront.command(part_of="Coupon")
class DeactivateCoupon:
    code = String(required=True, max_length=50)


@storefront.command(part_of="CouponRedemption")
class IssueCoupon:
    user_id = Identifier(required=True)
    coupon_code = String(required=True, max_length=50)


@storefront.command_handler(part_of=Coupon)
class CouponHandler:
    @handle(CreateCoupon)
    def create_coupon(self, command):
        repo = current_domain.repository_for(Coupon)
        if repo.find_by_code(command.code) is not None:
            raise IntegrityViolation({"code": [f"Coupon code {normalize_code(command.code)} already exists"]})

        coupon = Coupon.create(
            code=command.code,
            description=command.description,
            discount_type=command.discount_type,
            discount_value=command.discount_value,
            min_order_amount=command.min_order_amount,
            max_discount_amount=command.max_discount_amount,
            valid_from=command.valid_from,
            valid_until=command.valid_until,
            max_uses=command.max_uses,
        )
        repo.add(coupon)
        logger.info("Coupon created", coupon_code=coupon.code, max_uses=coupon.max_uses)
        return str(coupon.id)

    @handle(DeactivateCoupon)
    def deactivate_coupon(self, command):
        repo = current_domain.repository_for(Coupon)
        coupon = repo.find_by_code(command.code)
        if coupon is None:
            raise CouponInvalid({"coupon_code": [f"Unknown coupon code {command.code}"]})
        coupon.deactivate()
        repo.add(coupon)


@storefront.command_handler(part_of=CouponRedemption)
class IssueCouponHandler:
    @handle(IssueCoupon)
    def issue_coupon(self, command):
        coupon = current_domain.repository_for(Coupon).find_by_code(command.coupon_code)
        if coupon is None:
            raise CouponInvalid({"coupon_code": [f"Unknown coupon code {command.coupon_code}"]})

        repo = current_domain.repository_for(CouponRedemption)
        if repo.find_for(command.user_id, coupon.id) is not None:
            raise IntegrityViolation(
                {"coupon_code": [f"Coupon {coupon.code} was already issued to user {command.user_id}"]}
            )

        redemption = CouponRedemption.issue(
            user_id=command.user_id,
            coupon_id=str(coupon.id),
            coupon_code=coupon.code,
        )
        repo.add(redemption)
        return str(redemption.id)


def create_coupon(
    code,
    discount_type,
    discount_value,
    valid_from,
    valid_until,
    description=None,
    min_order_amount=0.0,
    max_discount_amount=None,
    max_uses=None,
) -> Coupon:
    if isinstance(discount_type, DiscountType):
        discount_type = discount_type.value
    coupon_id = current_domain.process(
        CreateCoupon(
            code=code,
            description=description,
            discount_type=discount_type,
            discount_value=discount_value,
            min_order_amount=min_order_amount,
            max_discount_amount=max_discount_amount,
            valid_from=valid_from,
            valid_until=valid_until,
            max_uses=max_uses,
        ),
        asynchronous=False,
    )
    return current_domain.repository_for(Coupon).get(coupon_id)


def deactivate_coupon(code) -> None:
    current_domain.process(DeactivateCoupon(code=code), asynchronous=False)


def issue_coupon(user_id, code) -> CouponRedemption:
    """Assign ``code`` to ``user_id``; the redemption starts out unused."""
    redemption_id = current_domain.process(
        IssueCoupon(user_id=str(user_id), coupon_code=code),
        asynchronous=False,
    )
    return current_domain.repository_for(CouponRedemption).get(redemption_id)
