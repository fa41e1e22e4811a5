"""Repository and read helpers for the Order aggregate."""

from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.ordering.order import Order


@storefront.repository(part_of=Order)
class OrderRepository:
    def find_by_number(self, order_number: str) -> Order | None:
        results = self._dao.query.filter(order_number=order_number).all().items
        return results[0] if results else None

    def orders_for_user(self, user_id) -> list[Order]:
        orders = self._dao.query.filter(user_id=str(user_id)).all().items
        return sorted(orders, key=lambda order: order.placed_at, reverse=True)


def get_order(order_id) -> Order:
    """Load an order; raises ObjectNotFoundError for an unknown id."""
    return current_domain.repository_for(Order).get(order_id)


def find_by_number(order_number: str) -> Order | None:
    return current_domain.repository_for(Order).find_by_number(order_number)


def orders_for_user(user_id) -> list[Order]:
    return current_domain.repository_for(Order).orders_for_user(user_id)
