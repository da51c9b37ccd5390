"""Checkout Coordinator: turns a cart into a committed order, or into nothing.

Each attempt walks a small state machine:

    VALIDATING → RESERVING → CREATING → CONFIRMED
    any non-terminal stage → ABORTED

Validating rejects empty carts and non-positive quantities. Reserving takes
all the stock in one all-or-nothing reservation. Creating charges the
payment, re-checks the reservation under its product locks, commits the
order and consumes the reservation. Every failure after Reserving releases
the reservation (and refunds a successful charge) before the attempt
returns its ``CheckoutError``, so stock is never lost without an order and
no order exists for stock that was not held.

The coordinator keeps no state between attempts.
"""

from enum import Enum
from uuid import uuid4

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from storefront.catalogue.catalog import ProductCatalog
from storefront.checkout.cart import CartStatus, ShoppingCart
from storefront.errors import (
    CheckoutError,
    EmptyCart,
    LedgerError,
    NotFound,
    OrderCreationFailed,
    PaymentDeclined,
)
from storefront.inventory.service import InventoryReservation
from storefront.ordering.ledger import OrderLedger
from storefront.ordering.order import Order, OrderStatus, PaymentDetails, ShippingAddress
from storefront.payments import get_gateway
from storefront.shared.lines import CartLine
from storefront.utils.locks import KeyedLocks
from storefront.utils.logging import add_context, clear_context

logger = structlog.get_logger(__name__)


class CheckoutStage(Enum):
    VALIDATING = "Validating"
    RESERVING = "Reserving"
    CREATING = "Creating"
    CONFIRMED = "Confirmed"
    ABORTED = "Aborted"


_STAGE_TRANSITIONS = {
    CheckoutStage.VALIDATING: {CheckoutStage.RESERVING, CheckoutStage.ABORTED},
    CheckoutStage.RESERVING: {CheckoutStage.CREATING, CheckoutStage.ABORTED},
    CheckoutStage.CREATING: {CheckoutStage.CONFIRMED, CheckoutStage.ABORTED},
    CheckoutStage.CONFIRMED: set(),  # Terminal
    CheckoutStage.ABORTED: set(),  # Terminal
}


class CheckoutAttempt:
    """Stage tracking for a single checkout call."""

    def __init__(self, checkout_id=None):
        self.checkout_id = checkout_id or uuid4().hex
        self.stage = CheckoutStage.VALIDATING
        self.history = [CheckoutStage.VALIDATING]

    def advance(self, target: CheckoutStage) -> None:
        if target not in _STAGE_TRANSITIONS[self.stage]:
            raise ValidationError({"stage": [f"Cannot move checkout from {self.stage.value} to {target.value}"]})
        logger.debug("Checkout stage", from_stage=self.stage.value, to_stage=target.value)
        self.stage = target
        self.history.append(target)

    def abort(self, failure: LedgerError) -> CheckoutError:
        stage = self.stage.value
        self.advance(CheckoutStage.ABORTED)
        error = CheckoutError.from_failure(failure, stage=stage)
        logger.info("Checkout aborted", stage=stage, kind=error.kind.value, product_id=error.product_id)
        return error


def _normalize_lines(cart) -> list[CartLine]:
    if isinstance(cart, ShoppingCart):
        return cart.lines()
    lines = []
    for line in cart or []:
        lines.append(line if isinstance(line, CartLine) else CartLine.from_dict(dict(line)))
    return lines


def _last4(payment_info: dict) -> str | None:
    if payment_info.get("card_last4"):
        return str(payment_info["card_last4"])[-4:]
    card_number = (payment_info.get("card_number") or "").replace(" ", "")
    return card_number[-4:] if card_number else None


class CheckoutCoordinator:
    def __init__(
        self,
        catalog: ProductCatalog,
        inventory: InventoryReservation,
        ledger: OrderLedger,
        cart_locks: KeyedLocks,
        gateway=None,
    ) -> None:
        self.catalog = catalog
        self.inventory = inventory
        self.ledger = ledger
        self.cart_locks = cart_locks
        self._gateway = gateway

    @property
    def gateway(self):
        return self._gateway or get_gateway()

    # -------------------------------------------------------------------
    # Checkout
    # -------------------------------------------------------------------
    def checkout(
        self,
        cart,
        user_id,
        shipping_info: dict,
        payment_info: dict,
        idempotency_key=None,
        customer_name=None,
        customer_email=None,
    ) -> Order | CheckoutError:
        """Place an order for ``cart`` (a ShoppingCart or an iterable of lines).

        Malformed shipping or payment details raise ``ValidationError``;
        every business failure comes back as a ``CheckoutError``.
        """
        if idempotency_key:
            existing = self.ledger.find_by_idempotency_key(idempotency_key)
            if existing is not None:
                logger.info("Checkout replayed", order_id=str(existing.id), idempotency_key=idempotency_key)
                return existing

        attempt = CheckoutAttempt()
        add_context(checkout_id=attempt.checkout_id)
        try:
            return self._run(
                attempt,
                cart,
                user_id,
                dict(shipping_info),
                dict(payment_info),
                idempotency_key,
                customer_name,
                customer_email,
            )
        finally:
            clear_context("checkout_id")

    def _run(self, attempt, cart, user_id, shipping_info, payment_info, idempotency_key, customer_name, email):
        # Validating
        lines = _normalize_lines(cart)
        if not lines:
            return attempt.abort(EmptyCart())
        if any(line.quantity <= 0 for line in lines):
            return attempt.abort(EmptyCart("Every line must have a positive quantity"))
        ShippingAddress(**shipping_info)
        PaymentDetails(method=payment_info.get("method"))
        if customer_name is None:
            customer_name = " ".join(
                part for part in (shipping_info.get("first_name"), shipping_info.get("last_name")) if part
            )
        logger.info("Checkout started", user_id=str(user_id), lines=len(lines))

        # Reserving
        attempt.advance(CheckoutStage.RESERVING)
        reservation = self.inventory.reserve(lines)
        if isinstance(reservation, LedgerError):
            return attempt.abort(reservation)

        # Creating
        attempt.advance(CheckoutStage.CREATING)
        pricing = self.ledger.pricing.quote(reservation.lines)
        charge = self.gateway.create_charge(
            amount=pricing["grand_total"],
            currency=pricing["currency"],
            payment_method=payment_info.get("method"),
            last4=_last4(payment_info),
            idempotency_key=idempotency_key or attempt.checkout_id,
        )
        if not charge.success:
            self._release(reservation, reason="payment_declined")
            return attempt.abort(PaymentDeclined(charge.failure_reason or "Payment was not authorised"))

        payment = {
            "method": payment_info.get("method"),
            "transaction_id": charge.transaction_id,
            "card_last4": _last4(payment_info),
            "upi_id": payment_info.get("upi_id"),
            "amount": pricing["grand_total"],
        }
        order = self._create_order(
            reservation, user_id, shipping_info, payment, customer_name, email, idempotency_key
        )
        if isinstance(order, LedgerError):
            self._refund(charge, pricing["grand_total"])
            self._release(reservation, reason="order_creation_failed")
            return attempt.abort(order)

        if str(order.reservation_id) != str(reservation.id):
            # A concurrent attempt with the same idempotency key committed first
            self._refund(charge, pricing["grand_total"])
            self._release(reservation, reason="duplicate")
            attempt.advance(CheckoutStage.CONFIRMED)
            logger.info("Checkout replayed", order_id=str(order.id), idempotency_key=idempotency_key)
            return order

        attempt.advance(CheckoutStage.CONFIRMED)
        logger.info(
            "Checkout confirmed",
            order_id=str(order.id),
            reservation_id=str(reservation.id),
            grand_total=order.pricing.grand_total,
        )
        return order

    def _create_order(self, reservation, user_id, shipping_info, payment, customer_name, email, idempotency_key):
        """Commit the order and consume the reservation while holding its product locks."""
        try:
            with self.inventory.locks.hold(self.inventory.product_ids(reservation)):
                current = self.inventory.get(reservation.id)
                if isinstance(current, LedgerError):
                    return OrderCreationFailed(str(current))
                if not current.is_active:
                    return OrderCreationFailed(f"Reservation {reservation.id} is {current.status}")

                order = self.ledger.create_order(
                    user_id,
                    current.lines,
                    shipping_info,
                    payment,
                    customer_name=customer_name or None,
                    customer_email=email,
                    reservation_id=str(current.id),
                    idempotency_key=idempotency_key,
                )
                if isinstance(order, LedgerError):
                    return order
                if str(order.reservation_id) != str(current.id):
                    return order

                consumed = self.inventory.consume(current, order.id)
                if isinstance(consumed, LedgerError):
                    logger.error("Reservation not consumed", reservation_id=str(current.id), error=str(consumed))
                return order
        except LedgerError as exc:
            return exc
        except Exception as exc:
            logger.exception("Order creation failed", reservation_id=str(reservation.id))
            return OrderCreationFailed(str(exc))

    def _release(self, reservation, reason):
        result = self.inventory.release(reservation, reason=reason)
        if isinstance(result, LedgerError):
            # Reconciliation picks the reservation up once it goes stale
            logger.error("Rollback release failed", reservation_id=str(reservation.id), error=str(result))

    def _refund(self, charge, amount):
        refund = self.gateway.create_refund(charge.transaction_id, amount, reason="order_creation_failed")
        if not refund.success:
            logger.error("Refund failed", transaction_id=charge.transaction_id, reason=refund.failure_reason)

    # -------------------------------------------------------------------
    # Persisted carts
    # -------------------------------------------------------------------
    def checkout_cart(self, cart_id, shipping_info, payment_info, user_id=None, **kwargs) -> Order | CheckoutError:
        """Check out a stored cart and close it on success."""
        repo = current_domain.repository_for(ShoppingCart)
        try:
            with self.cart_locks.hold([f"cart:{cart_id}"]):
                try:
                    cart = repo.get(str(cart_id))
                except ObjectNotFoundError:
                    return CheckoutError.from_failure(NotFound("ShoppingCart", cart_id), CheckoutStage.VALIDATING.value)
                if CartStatus(cart.status) != CartStatus.ACTIVE:
                    return CheckoutError.from_failure(
                        EmptyCart("Cart has already been checked out"), CheckoutStage.VALIDATING.value
                    )

                result = self.checkout(cart, user_id or cart.user_id, shipping_info, payment_info, **kwargs)
                if isinstance(result, Order):
                    cart.mark_checked_out(result.id)
                    repo.add(cart)
                return result
        except LedgerError as exc:
            return CheckoutError.from_failure(exc, CheckoutStage.VALIDATING.value)

    # -------------------------------------------------------------------
    # Cancellation
    # -------------------------------------------------------------------
    def cancel_order(self, order_id) -> Order | LedgerError:
        """Cancel an order and put its items back in stock."""
        order = self.ledger.transition_status(order_id, OrderStatus.CANCELLED)
        if isinstance(order, LedgerError):
            return order

        for item in order.items:
            result = self.catalog.restock(item.product_id, item.quantity)
            if isinstance(result, LedgerError):
                logger.warning(
                    "Could not restock cancelled item",
                    order_id=str(order_id),
                    product_id=str(item.product_id),
                    error=str(result),
                )
        logger.info("Order cancelled", order_id=str(order_id), items=len(order.items))
        return order
