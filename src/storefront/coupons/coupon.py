"""Coupon aggregate: a discount definition with a bounded number of uses.

A coupon is either a percentage of the order subtotal (optionally capped by
``max_discount_amount``) or a fixed amount. It applies only while active,
inside [valid_from, valid_until], and to subtotals of at least
``min_order_amount``. ``uses_count`` counts orders that consumed it and never
exceeds ``max_uses`` (no limit when ``max_uses`` is unset).
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String, Text

from storefront.coupons.events import CouponCreated, CouponDeactivated, CouponUseRecorded
from storefront.domain import storefront
from storefront.errors import CouponExhausted, CouponInvalid
from storefront.shared.money import to_cents


class DiscountType(Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"


def _as_utc(moment):
    if moment is not None and moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment


def normalize_code(code) -> str:
    return str(code).strip().upper()


@storefront.aggregate
class Coupon:
    code = String(required=True, max_length=50, unique=True)
    description = Text()
    discount_type = String(required=True, choices=DiscountType)
    discount_value = Float(required=True)
    min_order_amount = Float(default=0.0, min_value=0.0)
    max_discount_amount = Float(min_value=0.0)
    valid_from = DateTime(required=True)
    valid_until = DateTime(required=True)
    max_uses = Integer(min_value=1)
    uses_count = Integer(default=0, min_value=0)
    is_active = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def discount_value_must_be_positive(self):
        if self.discount_value is not None and self.discount_value <= 0:
            raise ValidationError({"discount_value": ["Discount value must be greater than zero"]})

    @invariant.post
    def validity_window_must_be_ordered(self):
        if self.valid_from and self.valid_until and _as_utc(self.valid_from) >= _as_utc(self.valid_until):
            raise ValidationError({"valid_until": ["valid_until must be later than valid_from"]})

    @invariant.post
    def uses_cannot_exceed_maximum(self):
        if self.max_uses is not None and (self.uses_count or 0) > self.max_uses:
            raise ValidationError({"uses_count": [f"Coupon cannot be used more than {self.max_uses} times"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        code,
        discount_type,
        discount_value,
        valid_from,
        valid_until,
        description=None,
        min_order_amount=0.0,
        max_discount_amount=None,
        max_uses=None,
    ):
        if isinstance(discount_type, DiscountType):
            discount_type = discount_type.value
        now = datetime.now(UTC)
        coupon = cls(
            code=normalize_code(code),
            description=description,
            discount_type=discount_type,
            discount_value=to_cents(discount_value),
            min_order_amount=to_cents(min_order_amount or 0.0),
            max_discount_amount=to_cents(max_discount_amount) if max_discount_amount is not None else None,
            valid_from=_as_utc(valid_from),
            valid_until=_as_utc(valid_until),
            max_uses=max_uses,
            uses_count=0,
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        coupon.raise_(
            CouponCreated(
                coupon_id=str(coupon.id),
                code=coupon.code,
                discount_type=coupon.discount_type,
                discount_value=coupon.discount_value,
                valid_from=coupon.valid_from,
                valid_until=coupon.valid_until,
                max_uses=max_uses,
            )
        )
        return coupon

    # -------------------------------------------------------------------
    # Eligibility
    # -------------------------------------------------------------------
    @property
    def is_exhausted(self) -> bool:
        return self.max_uses is not None and (self.uses_count or 0) >= self.max_uses

    def ensure_applicable(self, order_subtotal, at=None):
        """Raise CouponInvalid if the coupon cannot apply to this subtotal at ``at``."""
        at = _as_utc(at) or datetime.now(UTC)
        if not self.is_active:
            raise CouponInvalid({"coupon_code": [f"Coupon {self.code} is not active"]})
        if at < _as_utc(self.valid_from) or at > _as_utc(self.valid_until):
            raise CouponInvalid({"coupon_code": [f"Coupon {self.code} is outside its validity period"]})
        if order_subtotal < (self.min_order_amount or 0.0):
            raise CouponInvalid(
                {"coupon_code": [f"Coupon {self.code} requires a minimum order of {self.min_order_amount:.2f}"]}
            )

    def ensure_not_exhausted(self):
        if self.is_exhausted:
            raise CouponExhausted({"coupon_code": [f"Coupon {self.code} has reached its maximum of {self.max_uses} uses"]})

    def discount_for(self, order_subtotal) -> float:
        """Discount this coupon grants on ``order_subtotal``, never more than the subtotal."""
        if DiscountType(self.discount_type) == DiscountType.PERCENTAGE:
            discount = to_cents(order_subtotal * self.discount_value / 100)
            if self.max_discount_amount is not None:
                discount = min(discount, self.max_discount_amount)
        else:
            discount = self.discount_value
        return to_cents(min(discount, order_subtotal))

    # -------------------------------------------------------------------
    # Usage
    # -------------------------------------------------------------------
    def record_use(self):
        self.ensure_not_exhausted()
        self.uses_count = (self.uses_count or 0) + 1
        self.updated_at = datetime.now(UTC)
        self.raise_(
            CouponUseRecorded(
                coupon_id=str(self.id),
                code=self.code,
                uses_count=self.uses_count,
                max_uses=self.max_uses,
            )
        )

    def deactivate(self):
        if not self.is_active:
            raise ValidationError({"is_active": ["Coupon is already inactive"]})
        now = datetime.now(UTC)
        self.is_active = False
        self.updated_at = now
        self.raise_(CouponDeactivated(coupon_id=str(self.id), code=self.code, deactivated_at=now))
