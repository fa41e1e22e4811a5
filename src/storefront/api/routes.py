"""FastAPI endpoints for the Storefront: catalog, coupons, orders, payments and shipping."""

from fastapi import APIRouter, Header, HTTPException
from protean.utils.globals import current_domain

from storefront.api.schemas import (
    AddProductRequest,
    AdvanceStatusRequest,
    CarrierWebhookRequest,
    ChangePriceRequest,
    CouponIdResponse,
    CreateCouponRequest,
    CreateShipmentRequest,
    EligibilityResponse,
    InitiatePaymentRequest,
    IssueCouponRequest,
    OrderItemResponse,
    OrderResponse,
    PaymentResponse,
    PaymentWebhookRequest,
    PlaceOrderRequest,
    ProductResponse,
    ProviderIdResponse,
    RedemptionResponse,
    RegisterProviderRequest,
    RestockRequest,
    ShipmentResponse,
)
from storefront.catalog.listing import add_product
from storefront.catalog.maintenance import change_product_price, restock_product
from storefront.catalog.product import Product
from storefront.coupons.issuance import create_coupon, issue_coupon
from storefront.coupons.ledger import check_eligibility
from storefront.ordering.checkout import place_order
from storefront.ordering.order import Order
from storefront.ordering.repository import get_order, orders_for_user
from storefront.ordering.status import advance_status
from storefront.payments.gateway import get_gateway
from storefront.payments.initiation import initiate_payment
from storefront.payments.payment import Payment
from storefront.payments.webhook import record_payment_result
from storefront.shipping.carrier import get_carrier
from storefront.shipping.creation import create_shipment
from storefront.shipping.provider import register_provider
from storefront.shipping.shipment import Shipment
from storefront.shipping.tracking import record_carrier_update

product_router = APIRouter(prefix="/products", tags=["products"])
coupon_router = APIRouter(prefix="/coupons", tags=["coupons"])
order_router = APIRouter(prefix="/orders", tags=["orders"])
payment_router = APIRouter(prefix="/payments", tags=["payments"])
shipping_router = APIRouter(prefix="/shipping", tags=["shipping"])


def _product_response(product: Product) -> ProductResponse:
    return ProductResponse(
        product_id=str(product.id),
        name=product.name,
        sku=product.sku,
        price=product.price,
        stock_quantity=product.stock_quantity,
        is_active=product.is_active,
    )


def _order_response(order: Order) -> OrderResponse:
    return OrderResponse(
        order_id=str(order.id),
        order_number=order.order_number,
        user_id=str(order.user_id),
        status=order.status,
        items=[
            OrderItemResponse(
                product_id=str(item.product_id),
                sku=item.sku,
                name=item.name,
                quantity=item.quantity,
                unit_price=item.unit_price,
                total_price=item.total_price,
            )
            for item in order.items
        ],
        items_subtotal=order.items_subtotal,
        discount_amount=order.discount_amount,
        subtotal=order.subtotal,
        tax_amount=order.tax_amount,
        shipping_cost=order.shipping_cost,
        total_amount=order.total_amount,
        coupon_code=order.coupon_code,
    )


def _payment_response(payment: Payment) -> PaymentResponse:
    return PaymentResponse(
        payment_id=str(payment.id),
        order_id=str(payment.order_id),
        amount=payment.amount,
        status=payment.status,
        transaction_id=payment.transaction_id,
        failure_reason=payment.failure_reason,
    )


def _shipment_response(shipment: Shipment) -> ShipmentResponse:
    return ShipmentResponse(
        shipment_id=str(shipment.id),
        order_id=str(shipment.order_id),
        tracking_number=shipment.tracking_number,
        tracking_url=shipment.tracking_url,
        status=shipment.status,
    )


# --- Product endpoints ---


@product_router.post("", status_code=201, response_model=ProductResponse)
async def create_product(body: AddProductRequest) -> ProductResponse:
    product = add_product(
        product_id=body.product_id,
        name=body.name,
        sku=body.sku,
        price=body.price,
        stock_quantity=body.stock_quantity,
        cost=body.cost,
        category_id=body.category_id,
        description=body.description,
    )
    return _product_response(product)


@product_router.get("/{product_id}", response_model=ProductResponse)
async def read_product(product_id: str) -> ProductResponse:
    return _product_response(current_domain.repository_for(Product).get(product_id))


@product_router.post("/{product_id}/restock", response_model=ProductResponse)
async def restock(product_id: str, body: RestockRequest) -> ProductResponse:
    return _product_response(restock_product(product_id, body.quantity, reference=body.reference))


@product_router.put("/{product_id}/price", response_model=ProductResponse)
async def change_price(product_id: str, body: ChangePriceRequest) -> ProductResponse:
    return _product_response(change_product_price(product_id, body.price))


# --- Coupon endpoints ---


@coupon_router.post("", status_code=201, response_model=CouponIdResponse)
async def define_coupon(body: CreateCouponRequest) -> CouponIdResponse:
    coupon = create_coupon(
        code=body.code,
        discount_type=body.discount_type,
        discount_value=body.discount_value,
        valid_from=body.valid_from,
        valid_until=body.valid_until,
        description=body.description,
        min_order_amount=body.min_order_amount,
        max_discount_amount=body.max_discount_amount,
        max_uses=body.max_uses,
    )
    return CouponIdResponse(coupon_id=str(coupon.id))


@coupon_router.post("/{code}/issue", status_code=201, response_model=RedemptionResponse)
async def issue(code: str, body: IssueCouponRequest) -> RedemptionResponse:
    redemption = issue_coupon(body.user_id, code)
    return RedemptionResponse(
        redemption_id=str(redemption.id),
        user_id=str(redemption.user_id),
        coupon_code=redemption.coupon_code,
        is_used=redemption.is_used,
    )


@coupon_router.get("/{code}/eligibility", response_model=EligibilityResponse)
async def eligibility(code: str, user_id: str, subtotal: float) -> EligibilityResponse:
    result = check_eligibility(user_id, code, subtotal)
    return EligibilityResponse(
        eligible=result.eligible,
        reason=result.reason,
        message=result.message,
        discount=result.discount,
    )


# --- Order endpoints ---


@order_router.post("", status_code=201, response_model=OrderResponse)
async def checkout(body: PlaceOrderRequest) -> OrderResponse:
    order = place_order(
        user_id=body.user_id,
        cart_items=[item.model_dump() for item in body.items],
        shipping_address_id=body.shipping_address_id,
        billing_address_id=body.billing_address_id,
        coupon_code=body.coupon_code,
        payment_method=body.payment_method,
        notes=body.notes,
    )
    return _order_response(order)


@order_router.get("", response_model=list[OrderResponse])
async def list_orders(user_id: str) -> list[OrderResponse]:
    return [_order_response(order) for order in orders_for_user(user_id)]


@order_router.get("/{order_id}", response_model=OrderResponse)
async def read_order(order_id: str) -> OrderResponse:
    return _order_response(get_order(order_id))


@order_router.put("/{order_id}/status", response_model=OrderResponse)
async def change_status(order_id: str, body: AdvanceStatusRequest) -> OrderResponse:
    return _order_response(advance_status(order_id, body.status, reason=body.reason))


@order_router.post("/{order_id}/payment", status_code=201, response_model=PaymentResponse)
async def pay(order_id: str, body: InitiatePaymentRequest) -> PaymentResponse:
    return _payment_response(initiate_payment(order_id, payment_method=body.payment_method))


@order_router.post("/{order_id}/shipment", status_code=201, response_model=ShipmentResponse)
async def ship(order_id: str, body: CreateShipmentRequest) -> ShipmentResponse:
    return _shipment_response(create_shipment(order_id, body.provider_id))


# --- Gateway and carrier callbacks ---


@payment_router.post("/webhook", response_model=PaymentResponse)
async def payment_webhook(
    body: PaymentWebhookRequest,
    x_gateway_signature: str = Header(""),
) -> PaymentResponse:
    if not get_gateway().verify_webhook_signature(body.model_dump_json(), x_gateway_signature):
        raise HTTPException(status_code=401, detail="Invalid webhook signature")

    payment = record_payment_result(
        body.order_id,
        body.status,
        transaction_id=body.transaction_id,
        amount=body.amount,
        reason=body.reason,
    )
    return _payment_response(payment)


@shipping_router.post("/providers", status_code=201, response_model=ProviderIdResponse)
async def add_provider(body: RegisterProviderRequest) -> ProviderIdResponse:
    provider = register_provider(
        body.name,
        body.tracking_url_template,
        estimated_delivery_days=body.estimated_delivery_days,
    )
    return ProviderIdResponse(provider_id=str(provider.id))


@shipping_router.post("/webhook", response_model=ShipmentResponse)
async def carrier_webhook(
    body: CarrierWebhookRequest,
    x_carrier_signature: str = Header(""),
) -> ShipmentResponse:
    if not get_carrier().verify_webhook_signature(body.model_dump_json(), x_carrier_signature):
        raise HTTPException(status_code=401, detail="Invalid webhook signature")

    return _shipment_response(record_carrier_update(body.order_id, body.status, occurred_at=body.occurred_at))
