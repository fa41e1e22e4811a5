"""Order pricing.

The coupon discount is kept apart from the line totals:

    items_subtotal = sum of line totals (quantity x captured unit price)
    subtotal       = items_subtotal - discount
    tax            = subtotal x tax rate, rounded to cents
    shipping       = 0 at or above the free-shipping threshold, flat rate otherwise
    total          = subtotal + tax + shipping
"""

from dataclasses import dataclass

from storefront.config import settings
from storefront.shared.money import line_total, sum_amounts, to_cents


@dataclass(frozen=True)
class PriceBreakdown:
    items_subtotal: float
    discount_amount: float
    subtotal: float
    tax_amount: float
    shipping_cost: float
    total_amount: float

    def as_dict(self) -> dict:
        return {
            "items_subtotal": self.items_subtotal,
            "discount_amount": self.discount_amount,
            "subtotal": self.subtotal,
            "tax_amount": self.tax_amount,
            "shipping_cost": self.shipping_cost,
            "total_amount": self.total_amount,
        }


def items_subtotal(lines) -> float:
    return sum_amounts(line_total(line["quantity"], line["unit_price"]) for line in lines)


def shipping_for(subtotal) -> float:
    if subtotal >= settings.FREE_SHIPPING_THRESHOLD:
        return 0.0
    return to_cents(settings.SHIPPING_FLAT_RATE)


def price_lines(lines, discount=0.0) -> PriceBreakdown:
    """Price ``lines`` (dicts with ``quantity`` and ``unit_price``) less ``discount``."""
    gross = items_subtotal(lines)
    discount = to_cents(min(discount or 0.0, gross))
    subtotal = to_cents(gross - discount)
    tax = to_cents(subtotal * settings.TAX_RATE)
    shipping = shipping_for(subtotal)
    return PriceBreakdown(
        items_subtotal=gross,
        discount_amount=discount,
        subtotal=subtotal,
        tax_amount=tax,
        shipping_cost=shipping,
        total_amount=sum_amounts([subtotal, tax, shipping]),
    )
