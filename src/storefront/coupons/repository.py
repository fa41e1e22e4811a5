"""Repositories for coupons and coupon redemptions."""

from storefront.coupons.coupon import Coupon, normalize_code
from storefront.coupons.redemption import CouponRedemption
from storefront.domain import storefront


@storefront.repository(part_of=Coupon)
class CouponRepository:
    def find_by_code(self, code: str) -> Coupon | None:
        results = self._dao.query.filter(code=normalize_code(code)).all().items
        return results[0] if results else None


@storefront.repository(part_of=CouponRedemption)
class CouponRedemptionRepository:
    def find_for(self, user_id, coupon_id) -> CouponRedemption | None:
        results = self._dao.query.filter(user_id=str(user_id), coupon_id=str(coupon_id)).all().items
        return results[0] if results else None

    def for_user(self, user_id) -> list[CouponRedemption]:
        return self._dao.query.filter(user_id=str(user_id)).all().items
