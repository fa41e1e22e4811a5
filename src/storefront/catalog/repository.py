"""Repository for the Product aggregate."""

from storefront.catalog.product import Product
from storefront.domain import storefront


@storefront.repository(part_of=Product)
class ProductRepository:
    def find_by_sku(self, sku: str) -> Product | None:
        results = self._dao.query.filter(sku=sku).all().items
        return results[0] if results else None

    def find_active(self) -> list[Product]:
        return self._dao.query.filter(is_active=True).all().items
