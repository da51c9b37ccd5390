"""Order aggregate: the committed record of a successful checkout.

State Machine:
    PROCESSING → SHIPPED → DELIVERED
    PROCESSING → CANCELLED, SHIPPED → CANCELLED
    DELIVERED and CANCELLED are terminal.

Line prices and totals are snapshots taken at checkout. They are written
once by ``place`` and never recomputed, whatever happens to catalogue
prices later. Orders are never deleted, only cancelled.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, ValueObject

from storefront.domain import storefront
from storefront.errors import InvalidTransition
from storefront.ordering.events import OrderPlaced, OrderStatusChanged
from storefront.shared.numbers import round_money


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


class PaymentMethod(Enum):
    CARD = "card"
    UPI = "upi"
    GOOGLEPAY = "googlepay"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@storefront.value_object(part_of="Order")
class ShippingAddress:
    """Where the order ships, as entered at checkout."""

    first_name = String(required=True, max_length=100)
    last_name = String(max_length=100)
    address = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(max_length=100, default="India")


@storefront.value_object(part_of="Order")
class PaymentDetails:
    """How the order was paid. Card numbers are never stored, only the last four digits."""

    method = String(required=True, choices=PaymentMethod)
    transaction_id = String(max_length=255)
    card_last4 = String(max_length=4)
    upi_id = String(max_length=255)
    amount = Float(default=0.0)


@storefront.value_object(part_of="Order")
class OrderPricing:
    subtotal = Float(default=0.0)
    shipping_cost = Float(default=0.0)
    tax_total = Float(default=0.0)
    grand_total = Float(default=0.0)
    currency = String(max_length=3, default="INR")


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@storefront.entity(part_of="Order")
class OrderItem:
    product_id = Identifier(required=True)
    product_name = String(required=True, max_length=255)
    variant = String(max_length=100)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)

    @property
    def line_total(self):
        return round_money(self.unit_price * self.quantity)


@storefront.entity(part_of="Order")
class StatusChange:
    """One entry in the order's status history."""

    from_status = String(max_length=20)
    to_status = String(required=True, max_length=20)
    changed_at = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@storefront.aggregate
class Order:
    customer_id = Identifier(required=True)
    customer_name = String(max_length=255)
    customer_email = String(max_length=255)
    status = String(
        choices=OrderStatus,
        default=OrderStatus.PROCESSING.value,
    )
    items = HasMany(OrderItem)
    status_history = HasMany(StatusChange)
    shipping_address = ValueObject(ShippingAddress)
    payment = ValueObject(PaymentDetails)
    pricing = ValueObject(OrderPricing)
    reservation_id = Identifier()
    idempotency_key = String(max_length=255)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_is_sum_of_parts(self):
        if self.pricing is None:
            return
        expected = round_money(self.pricing.subtotal + self.pricing.shipping_cost + self.pricing.tax_total)
        if self.pricing.grand_total != expected:
            raise ValidationError({"pricing": [f"Grand total {self.pricing.grand_total} should be {expected}"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        order_id,
        customer_id,
        items_data,
        shipping_address,
        payment,
        pricing,
        customer_name=None,
        customer_email=None,
        reservation_id=None,
        idempotency_key=None,
    ):
        """Create an order in Processing state.

        Args:
            order_id: Pre-assigned identity (the ledger hands out
                      timestamp-derived ids).
            items_data: List of dicts with product_id, product_name,
                        variant, quantity, unit_price.
            shipping_address: Dict with the ShippingAddress fields.
            payment: Dict with the PaymentDetails fields.
            pricing: Dict with subtotal, shipping_cost, tax_total,
                     grand_total, currency.
        """
        if not items_data:
            raise ValidationError({"items": ["An order needs at least one item"]})

        now = datetime.now(UTC)
        order = cls(
            id=str(order_id),
            customer_id=str(customer_id),
            customer_name=customer_name,
            customer_email=customer_email,
            shipping_address=ShippingAddress(**shipping_address),
            payment=PaymentDetails(**payment),
            pricing=OrderPricing(**pricing),
            reservation_id=str(reservation_id) if reservation_id else None,
            idempotency_key=idempotency_key,
            created_at=now,
            updated_at=now,
        )
        for item in items_data:
            order.add_items(OrderItem(**item))
        order.add_status_history(StatusChange(to_status=OrderStatus.PROCESSING.value, changed_at=now))

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                customer_id=str(customer_id),
                items=json.dumps(items_data),
                item_count=sum(item["quantity"] for item in items_data),
                subtotal=order.pricing.subtotal,
                shipping_cost=order.pricing.shipping_cost,
                tax_total=order.pricing.tax_total,
                grand_total=order.pricing.grand_total,
                currency=order.pricing.currency,
                payment_method=order.payment.method,
                reservation_id=order.reservation_id,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def total(self):
        return self.pricing.grand_total

    @property
    def is_terminal(self):
        return not _VALID_TRANSITIONS[OrderStatus(self.status)]

    def can_transition_to(self, target):
        return OrderStatus(target) in _VALID_TRANSITIONS[OrderStatus(self.status)]

    # -------------------------------------------------------------------
    # Status transitions
    # -------------------------------------------------------------------
    def transition_to(self, target):
        """Move to ``target`` (an OrderStatus or its value), or raise InvalidTransition."""
        try:
            target = OrderStatus(target)
        except ValueError as exc:
            raise ValidationError({"status": [f"Unknown order status {target!r}"]}) from exc

        current = OrderStatus(self.status)
        if target not in _VALID_TRANSITIONS[current]:
            raise InvalidTransition(current.value, target.value)

        now = datetime.now(UTC)
        self.status = target.value
        self.updated_at = now
        self.add_status_history(StatusChange(from_status=current.value, to_status=target.value, changed_at=now))
        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                from_status=current.value,
                to_status=target.value,
                changed_at=now,
            )
        )
