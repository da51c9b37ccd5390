"""FastAPI endpoints for the storefront ledger.

Services return failures as values; ``_raise_for`` turns them into HTTP
errors with the structured failure as the response detail.
"""

import json

from fastapi import APIRouter, HTTPException
from protean.utils.globals import current_domain

from storefront.api.schemas import (
    AddCartItemRequest,
    AdminStatsResponse,
    CartCheckoutRequest,
    CartIdResponse,
    CartResponse,
    CheckoutRequest,
    CreateCartRequest,
    CreateProductRequest,
    ExpireReservationsRequest,
    ExpireReservationsResponse,
    OrderPageResponse,
    OrderResponse,
    ProductPageResponse,
    ProductResponse,
    RecordReviewRequest,
    StatusResponse,
    UpdateCartItemRequest,
    UpdateOrderStatusRequest,
    UpdateProductRequest,
)
from storefront.checkout.cart import ShoppingCart
from storefront.checkout.cart_management import (
    AddToCart,
    ClearCart,
    CreateCart,
    RemoveFromCart,
    UpdateCartQuantity,
)
from storefront.errors import CheckoutError, ErrorKind, LedgerError
from storefront.ordering.order import OrderStatus
from storefront.services import get_catalog, get_coordinator, get_inventory, get_ledger

product_router = APIRouter(prefix="/products", tags=["products"])
cart_router = APIRouter(prefix="/carts", tags=["carts"])
order_router = APIRouter(tags=["orders"])
admin_router = APIRouter(prefix="/admin", tags=["admin"])
maintenance_router = APIRouter(prefix="/maintenance", tags=["maintenance"])

_STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.INSUFFICIENT_STOCK: 409,
    ErrorKind.INVALID_TRANSITION: 409,
    ErrorKind.EMPTY_CART: 422,
    ErrorKind.PAYMENT_DECLINED: 402,
    ErrorKind.BUSY: 503,
    ErrorKind.ORDER_CREATION_FAILED: 500,
}


def _raise_for(result):
    """Raise an HTTPException if ``result`` is a failure value, else return it."""
    if not isinstance(result, LedgerError | CheckoutError):
        return result
    headers = {"Retry-After": "1"} if result.kind is ErrorKind.BUSY else None
    raise HTTPException(status_code=_STATUS_BY_KIND[result.kind], detail=result.to_dict(), headers=headers)


def _json_list(values):
    return json.dumps(values) if values is not None else None


# --- Product endpoints ---


@product_router.post("", status_code=201, response_model=ProductResponse)
async def add_product(body: CreateProductRequest) -> ProductResponse:
    product = get_catalog().add_product(
        name=body.name,
        price=body.price,
        stock=body.stock,
        category=body.category,
        description=body.description,
        colors=_json_list(body.colors),
        features=_json_list(body.features),
        warranty=body.warranty,
        image_url=body.image_url,
    )
    return ProductResponse.from_product(product)


@product_router.get("", response_model=ProductPageResponse)
async def search_products(
    q: str | None = None,
    category: str | None = None,
    page: int = 1,
    per_page: int = 10,
) -> ProductPageResponse:
    result = get_catalog().search_products(query=q, category=category, page=page, per_page=per_page)
    return ProductPageResponse(
        items=[ProductResponse.from_product(p) for p in result.items],
        total=result.total,
        page=result.page,
        per_page=result.per_page,
        pages=result.pages,
    )


@product_router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: str) -> ProductResponse:
    return ProductResponse.from_product(_raise_for(get_catalog().get_product(product_id)))


@product_router.put("/{product_id}", response_model=ProductResponse)
async def update_product(product_id: str, body: UpdateProductRequest) -> ProductResponse:
    fields = body.model_dump(exclude_none=True)
    for key in ("colors", "features"):
        if key in fields:
            fields[key] = _json_list(fields[key])
    product = _raise_for(get_catalog().update_product(product_id, **fields))
    return ProductResponse.from_product(product)


@product_router.delete("/{product_id}", response_model=StatusResponse)
async def remove_product(product_id: str) -> StatusResponse:
    _raise_for(get_catalog().remove_product(product_id))
    return StatusResponse()


@product_router.post("/{product_id}/reviews", status_code=201, response_model=ProductResponse)
async def record_review(product_id: str, body: RecordReviewRequest) -> ProductResponse:
    product = _raise_for(get_catalog().record_review(product_id, body.rating, text=body.text, author=body.author))
    return ProductResponse.from_product(product)


# --- Cart endpoints ---


def _cart_response(cart_id: str) -> CartResponse:
    cart = current_domain.repository_for(ShoppingCart).get(cart_id)
    return CartResponse.from_cart(cart)


@cart_router.post("", status_code=201, response_model=CartIdResponse)
async def create_cart(body: CreateCartRequest) -> CartIdResponse:
    cart_id = current_domain.process(CreateCart(user_id=body.user_id), asynchronous=False)
    return CartIdResponse(cart_id=cart_id)


@cart_router.get("/{cart_id}", response_model=CartResponse)
async def get_cart(cart_id: str) -> CartResponse:
    return _cart_response(cart_id)


@cart_router.post("/{cart_id}/items", status_code=201, response_model=CartResponse)
async def add_cart_item(cart_id: str, body: AddCartItemRequest) -> CartResponse:
    _raise_for(get_catalog().get_product(body.product_id))
    current_domain.process(
        AddToCart(cart_id=cart_id, product_id=body.product_id, quantity=body.quantity, variant=body.variant),
        asynchronous=False,
    )
    return _cart_response(cart_id)


@cart_router.put("/{cart_id}/items/{item_id}", response_model=CartResponse)
async def update_cart_item(cart_id: str, item_id: str, body: UpdateCartItemRequest) -> CartResponse:
    current_domain.process(
        UpdateCartQuantity(cart_id=cart_id, item_id=item_id, quantity=body.quantity),
        asynchronous=False,
    )
    return _cart_response(cart_id)


@cart_router.delete("/{cart_id}/items/{item_id}", response_model=CartResponse)
async def remove_cart_item(cart_id: str, item_id: str) -> CartResponse:
    current_domain.process(RemoveFromCart(cart_id=cart_id, item_id=item_id), asynchronous=False)
    return _cart_response(cart_id)


@cart_router.delete("/{cart_id}/items", response_model=CartResponse)
async def clear_cart(cart_id: str) -> CartResponse:
    current_domain.process(ClearCart(cart_id=cart_id), asynchronous=False)
    return _cart_response(cart_id)


@cart_router.post("/{cart_id}/checkout", status_code=201, response_model=OrderResponse)
async def checkout_cart(cart_id: str, body: CartCheckoutRequest) -> OrderResponse:
    order = get_coordinator().checkout_cart(
        cart_id,
        body.shipping.model_dump(),
        body.payment.model_dump(exclude_none=True),
        user_id=body.user_id,
        idempotency_key=body.idempotency_key,
        customer_name=body.customer_name,
        customer_email=body.customer_email,
    )
    return OrderResponse.from_order(_raise_for(order))


# --- Checkout and order endpoints ---


@order_router.post("/checkout", status_code=201, response_model=OrderResponse)
async def checkout(body: CheckoutRequest) -> OrderResponse:
    order = get_coordinator().checkout(
        [line.model_dump() for line in body.lines],
        body.user_id,
        body.shipping.model_dump(),
        body.payment.model_dump(exclude_none=True),
        idempotency_key=body.idempotency_key,
        customer_name=body.customer_name,
        customer_email=body.customer_email,
    )
    return OrderResponse.from_order(_raise_for(order))


@order_router.get("/orders/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str) -> OrderResponse:
    return OrderResponse.from_order(_raise_for(get_ledger().get_order(order_id)))


@order_router.get("/orders", response_model=list[OrderResponse])
async def list_orders_for_user(user_id: str) -> list[OrderResponse]:
    return [OrderResponse.from_order(order) for order in get_ledger().list_orders_for_user(user_id)]


@order_router.put("/orders/{order_id}/status", response_model=OrderResponse)
async def update_order_status(order_id: str, body: UpdateOrderStatusRequest) -> OrderResponse:
    if body.status == OrderStatus.CANCELLED.value:
        result = get_coordinator().cancel_order(order_id)
    else:
        result = get_ledger().transition_status(order_id, body.status)
    return OrderResponse.from_order(_raise_for(result))


# --- Admin endpoints ---


@admin_router.get("/orders", response_model=OrderPageResponse)
async def search_orders(
    status: str | None = None,
    q: str | None = None,
    page: int = 1,
    per_page: int = 10,
) -> OrderPageResponse:
    result = get_ledger().search_orders(status=status, query=q, page=page, per_page=per_page)
    return OrderPageResponse(
        items=[OrderResponse.from_order(order) for order in result.items],
        total=result.total,
        page=result.page,
        per_page=result.per_page,
        pages=result.pages,
    )


@admin_router.get("/stats", response_model=AdminStatsResponse)
async def admin_stats() -> AdminStatsResponse:
    summary = get_ledger().summary()
    return AdminStatsResponse(
        total_orders=summary.total_orders,
        total_revenue=summary.total_revenue,
        pending_orders=summary.pending_orders,
        total_products=len(get_catalog().list_products()),
    )


# --- Maintenance endpoints ---


@maintenance_router.post("/reservations/expire", response_model=ExpireReservationsResponse)
async def expire_reservations(body: ExpireReservationsRequest | None = None) -> ExpireReservationsResponse:
    older_than = body.older_than_minutes if body else None
    return ExpireReservationsResponse(
        expired_count=get_inventory().expire_stale_reservations(older_than_minutes=older_than)
    )
