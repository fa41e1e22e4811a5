"""Pydantic request/response schemas for the Storefront API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

# --- Catalog ---


class AddProductRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Dell XPS 13",
                    "description": "13-inch laptop with Intel i7",
                    "price": 1199.99,
                    "cost": 800.00,
                    "sku": "DXPS13-I7-512",
                    "stock_quantity": 30,
                    "category_id": "2",
                }
            ]
        }
    }

    product_id: str | None = None
    name: str = Field(..., max_length=255)
    description: str | None = None
    price: float = Field(..., ge=0)
    cost: float | None = Field(None, ge=0)
    sku: str = Field(..., max_length=100)
    stock_quantity: int = Field(0, ge=0)
    category_id: str | None = None


class RestockRequest(BaseModel):
    quantity: int = Field(..., gt=0)
    reference: str | None = Field(None, max_length=255)


class ChangePriceRequest(BaseModel):
    price: float = Field(..., ge=0)


class ProductResponse(BaseModel):
    product_id: str
    name: str
    sku: str
    price: float
    stock_quantity: int
    is_active: bool


# --- Coupons ---


class CreateCouponRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "code": "SAVE50",
                    "description": "50 off orders over 200",
                    "discount_type": "fixed_amount",
                    "discount_value": 50.0,
                    "min_order_amount": 200.0,
                    "valid_from": "2026-01-01T00:00:00Z",
                    "valid_until": "2026-01-16T00:00:00Z",
                    "max_uses": 200,
                }
            ]
        }
    }

    code: str = Field(..., max_length=50)
    description: str | None = None
    discount_type: str = Field(..., max_length=20)
    discount_value: float = Field(..., gt=0)
    min_order_amount: float = Field(0.0, ge=0)
    max_discount_amount: float | None = Field(None, ge=0)
    valid_from: datetime
    valid_until: datetime
    max_uses: int | None = Field(None, ge=1)


class IssueCouponRequest(BaseModel):
    user_id: str


class CouponIdResponse(BaseModel):
    coupon_id: str


class RedemptionResponse(BaseModel):
    redemption_id: str
    user_id: str
    coupon_code: str
    is_used: bool


class EligibilityResponse(BaseModel):
    eligible: bool
    reason: str | None = None
    message: str | None = None
    discount: float = 0.0


# --- Orders ---


class CartItem(BaseModel):
    product_id: str
    quantity: int = Field(..., gt=0)


class PlaceOrderRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "user_id": "3",
                    "items": [{"product_id": "3", "quantity": 1}],
                    "shipping_address_id": "3",
                    "billing_address_id": "3",
                    "coupon_code": "SAVE50",
                    "payment_method": "credit_card",
                }
            ]
        }
    }

    user_id: str
    items: list[CartItem] = Field(..., min_length=1)
    shipping_address_id: str
    billing_address_id: str
    coupon_code: str | None = Field(None, max_length=50)
    payment_method: str | None = Field(None, max_length=50)
    notes: str | None = None


class AdvanceStatusRequest(BaseModel):
    status: str = Field(..., max_length=20)
    reason: str | None = Field(None, max_length=500)


class OrderItemResponse(BaseModel):
    product_id: str
    sku: str
    name: str
    quantity: int
    unit_price: float
    total_price: float


class OrderResponse(BaseModel):
    order_id: str
    order_number: str
    user_id: str
    status: str
    items: list[OrderItemResponse]
    items_subtotal: float
    discount_amount: float
    subtotal: float
    tax_amount: float
    shipping_cost: float
    total_amount: float
    coupon_code: str | None = None


# --- Payments ---


class InitiatePaymentRequest(BaseModel):
    payment_method: str | None = Field(None, max_length=50)


class PaymentWebhookRequest(BaseModel):
    order_id: str
    status: str = Field(..., max_length=20)
    transaction_id: str | None = Field(None, max_length=255)
    amount: float | None = None
    reason: str | None = Field(None, max_length=500)


class PaymentResponse(BaseModel):
    payment_id: str
    order_id: str
    amount: float
    status: str
    transaction_id: str | None = None
    failure_reason: str | None = None


# --- Shipping ---


class RegisterProviderRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Fargo",
                    "tracking_url_template": "https://www.Fargo.com/Fargotrack/?trknbr={TRACKING_NUMBER}",
                    "estimated_delivery_days": 3,
                }
            ]
        }
    }

    name: str = Field(..., max_length=100)
    tracking_url_template: str = Field(..., max_length=500)
    estimated_delivery_days: int | None = Field(None, ge=0)


class ProviderIdResponse(BaseModel):
    provider_id: str


class CreateShipmentRequest(BaseModel):
    provider_id: str


class CarrierWebhookRequest(BaseModel):
    order_id: str
    status: str = Field(..., max_length=20)
    occurred_at: datetime | None = None


class ShipmentResponse(BaseModel):
    shipment_id: str
    order_id: str
    tracking_number: str
    tracking_url: str | None = None
    status: str
