"""Repository for the Payment aggregate."""

from protean.exceptions import ObjectNotFoundError

from storefront.domain import storefront
from storefront.payments.payment import Payment


@storefront.repository(part_of=Payment)
class PaymentRepository:
    def find_for_order(self, order_id) -> Payment | None:
        results = self._dao.query.filter(order_id=str(order_id)).all().items
        return results[0] if results else None

    def get_for_order(self, order_id) -> Payment:
        payment = self.find_for_order(order_id)
        if payment is None:
            raise ObjectNotFoundError(f"No payment recorded for order {order_id}")
        return payment
