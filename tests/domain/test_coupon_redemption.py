import pytest
from storefront.coupons.events import CouponIssued, CouponRedeemed
from storefront.coupons.redemption import CouponRedemption
from storefront.errors import CouponAlreadyUsed


def _issue():
    return CouponRedemption.issue(user_id=3, coupon_id="coupon-1", coupon_code="SAVE50")


class TestCouponRedemption:
    def test_issued_unused(self):
        redemption = _issue()
        assert redemption.is_used is False
        assert redemption.user_id == "3"
        assert any(isinstance(e, CouponIssued) for e in redemption._events)

    def test_redeem_marks_used(self):
        redemption = _issue()
        redemption.redeem(order_id="ord-1")
        assert redemption.is_used is True
        assert redemption.order_id == "ord-1"
        assert redemption.redeemed_at is not None
        assert any(isinstance(e, CouponRedeemed) for e in redemption._events)

    def test_second_redeem_fails(self):
        redemption = _issue()
        redemption.redeem(order_id="ord-1")
        with pytest.raises(CouponAlreadyUsed):
            redemption.redeem(order_id="ord-2")
        assert redemption.order_id == "ord-1"
