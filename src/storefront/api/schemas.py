"""Pydantic request/response schemas for the storefront API."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

# --- Product Schemas ---


class CreateProductRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Premium Wireless Headphones",
                    "price": 99.99,
                    "stock": 25,
                    "category": "Electronics",
                    "description": "Active noise cancelling over-ear headphones.",
                    "colors": ["Black", "Silver"],
                    "features": ["30-hour battery life", "Bluetooth 5.0"],
                    "warranty": "2 years manufacturer warranty",
                }
            ]
        }
    }

    name: str = Field(..., max_length=255)
    price: float = Field(..., ge=0)
    stock: int = Field(0, ge=0)
    category: str | None = Field(None, max_length=100)
    description: str | None = None
    colors: list[str] | None = None
    features: list[str] | None = None
    warranty: str | None = Field(None, max_length=255)
    image_url: str | None = Field(None, max_length=500)


class UpdateProductRequest(BaseModel):
    name: str | None = Field(None, max_length=255)
    price: float | None = Field(None, ge=0)
    stock: int | None = Field(None, ge=0)
    category: str | None = Field(None, max_length=100)
    description: str | None = None
    colors: list[str] | None = None
    features: list[str] | None = None
    warranty: str | None = Field(None, max_length=255)
    image_url: str | None = Field(None, max_length=500)


class RecordReviewRequest(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    text: str | None = None
    author: str | None = Field(None, max_length=255)


class ProductResponse(BaseModel):
    product_id: str
    name: str
    description: str | None = None
    category: str | None = None
    price: float
    stock: int
    in_stock: bool
    rating: float
    review_count: int
    colors: list[str] = []
    features: list[str] = []
    warranty: str | None = None
    image_url: str | None = None

    @classmethod
    def from_product(cls, product) -> ProductResponse:
        return cls(
            product_id=str(product.id),
            name=product.name,
            description=product.description,
            category=product.category,
            price=product.price,
            stock=product.stock,
            in_stock=product.in_stock,
            rating=product.rating,
            review_count=product.review_count,
            colors=product.color_options,
            features=product.feature_list,
            warranty=product.warranty,
            image_url=product.image_url,
        )


class ProductPageResponse(BaseModel):
    items: list[ProductResponse]
    total: int
    page: int
    per_page: int
    pages: int


# --- Cart Schemas ---


class CreateCartRequest(BaseModel):
    user_id: str | None = None


class CartIdResponse(BaseModel):
    cart_id: str


class AddCartItemRequest(BaseModel):
    product_id: str
    quantity: int = Field(1, ge=1)
    variant: str | None = Field(None, max_length=100)


class UpdateCartItemRequest(BaseModel):
    quantity: int


class CartItemResponse(BaseModel):
    item_id: str
    product_id: str
    variant: str | None = None
    quantity: int


class CartResponse(BaseModel):
    cart_id: str
    user_id: str | None = None
    status: str
    items: list[CartItemResponse]
    item_count: int

    @classmethod
    def from_cart(cls, cart) -> CartResponse:
        return cls(
            cart_id=str(cart.id),
            user_id=str(cart.user_id) if cart.user_id else None,
            status=cart.status,
            items=[
                CartItemResponse(
                    item_id=str(item.id),
                    product_id=str(item.product_id),
                    variant=item.variant,
                    quantity=item.quantity,
                )
                for item in cart.items
            ],
            item_count=cart.item_count,
        )


# --- Checkout Schemas ---


class CartLineRequest(BaseModel):
    product_id: str
    quantity: int
    variant: str | None = Field(None, max_length=100)


class ShippingInfo(BaseModel):
    first_name: str = Field(..., max_length=100)
    last_name: str | None = Field(None, max_length=100)
    address: str = Field(..., max_length=255)
    city: str = Field(..., max_length=100)
    state: str | None = Field(None, max_length=100)
    postal_code: str = Field(..., max_length=20)
    country: str = Field("India", max_length=100)


class PaymentInfo(BaseModel):
    method: Literal["card", "upi", "googlepay"]
    card_number: str | None = None
    card_last4: str | None = Field(None, max_length=4)
    upi_id: str | None = None


class CheckoutRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "user_id": "user-001",
                    "lines": [{"product_id": "prod-001", "quantity": 2, "variant": "Black"}],
                    "shipping": {
                        "first_name": "Asha",
                        "last_name": "Rao",
                        "address": "12 MG Road",
                        "city": "Bengaluru",
                        "state": "Karnataka",
                        "postal_code": "560001",
                        "country": "India",
                    },
                    "payment": {"method": "card", "card_number": "4242 4242 4242 4242"},
                    "idempotency_key": "checkout-7f3a",
                }
            ]
        }
    }

    user_id: str
    lines: list[CartLineRequest]
    shipping: ShippingInfo
    payment: PaymentInfo
    customer_name: str | None = None
    customer_email: str | None = None
    idempotency_key: str | None = Field(None, max_length=255)


class CartCheckoutRequest(BaseModel):
    user_id: str | None = None
    shipping: ShippingInfo
    payment: PaymentInfo
    customer_name: str | None = None
    customer_email: str | None = None
    idempotency_key: str | None = Field(None, max_length=255)


# --- Order Schemas ---


class OrderItemResponse(BaseModel):
    product_id: str
    product_name: str
    variant: str | None = None
    quantity: int
    unit_price: float
    line_total: float


class StatusChangeResponse(BaseModel):
    from_status: str | None = None
    to_status: str
    changed_at: datetime


class OrderResponse(BaseModel):
    order_id: str
    user_id: str
    customer_name: str | None = None
    status: str
    items: list[OrderItemResponse]
    shipping: dict
    payment: dict
    subtotal: float
    shipping_cost: float
    tax: float
    total: float
    currency: str
    created_at: datetime
    status_history: list[StatusChangeResponse] = []

    @classmethod
    def from_order(cls, order) -> OrderResponse:
        return cls(
            order_id=str(order.id),
            user_id=str(order.customer_id),
            customer_name=order.customer_name,
            status=order.status,
            items=[
                OrderItemResponse(
                    product_id=str(item.product_id),
                    product_name=item.product_name,
                    variant=item.variant,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    line_total=item.line_total,
                )
                for item in order.items
            ],
            shipping=order.shipping_address.to_dict(),
            payment=order.payment.to_dict(),
            subtotal=order.pricing.subtotal,
            shipping_cost=order.pricing.shipping_cost,
            tax=order.pricing.tax_total,
            total=order.pricing.grand_total,
            currency=order.pricing.currency,
            created_at=order.created_at,
            status_history=[
                StatusChangeResponse(
                    from_status=change.from_status,
                    to_status=change.to_status,
                    changed_at=change.changed_at,
                )
                for change in sorted(order.status_history, key=lambda c: c.changed_at)
            ],
        )


class OrderPageResponse(BaseModel):
    items: list[OrderResponse]
    total: int
    page: int
    per_page: int
    pages: int


class AdminStatsResponse(BaseModel):
    total_orders: int
    total_revenue: float
    pending_orders: int
    total_products: int


class UpdateOrderStatusRequest(BaseModel):
    status: Literal["Processing", "Shipped", "Delivered", "Cancelled"]


# --- Maintenance Schemas ---


class ExpireReservationsRequest(BaseModel):
    older_than_minutes: int | None = Field(None, ge=0)


class ExpireReservationsResponse(BaseModel):
    expired_count: int


class StatusResponse(BaseModel):
    status: str = "ok"
