"""OrderLedger: creation, status transitions and history queries for orders.

Order ids are millisecond timestamps, bumped by one when two orders land in
the same millisecond so that ids stay unique and strictly increasing within
the process. Status transitions for one order are serialized through its
keyed lock; transitions on different orders never wait on each other.
Lookups on a missing id return ``NotFound`` rather than raising.
"""

import threading
import time
from dataclasses import dataclass

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from storefront.errors import LedgerError, NotFound
from storefront.ordering.order import Order, OrderStatus
from storefront.ordering.pricing import PricingPolicy
from storefront.shared.numbers import round_money
from storefront.shared.paging import Page, paginate
from storefront.utils.locks import KeyedLocks

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class OrderSummary:
    total_orders: int = 0
    total_revenue: float = 0.0
    pending_orders: int = 0


class OrderIdGenerator:
    def __init__(self) -> None:
        self._last = 0
        self._lock = threading.Lock()

    def next_id(self) -> str:
        with self._lock:
            candidate = time.time_ns() // 1_000_000
            self._last = max(candidate, self._last + 1)
            return str(self._last)


class OrderLedger:
    def __init__(self, locks: KeyedLocks, pricing: PricingPolicy | None = None, ids: OrderIdGenerator | None = None):
        self.locks = locks
        self.pricing = pricing or PricingPolicy.from_env()
        self.ids = ids or OrderIdGenerator()

    @property
    def _repo(self):
        return current_domain.repository_for(Order)

    def _load(self, order_id) -> Order:
        try:
            return self._repo.get(str(order_id))
        except ObjectNotFoundError as exc:
            raise NotFound("Order", order_id) from exc

    # -------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------
    def create_order(
        self,
        user_id,
        lines,
        shipping_info,
        payment_info,
        customer_name=None,
        customer_email=None,
        reservation_id=None,
        idempotency_key=None,
    ) -> Order | LedgerError:
        """Commit an order for priced ``lines``.

        ``lines`` carry product_id, product_name, variant, quantity and
        unit_price (reservation lines qualify). With an ``idempotency_key``,
        a second call returns the order the first one created.
        """
        keys = [f"idempotency:{idempotency_key}"] if idempotency_key else []
        try:
            with self.locks.hold(keys):
                if idempotency_key:
                    existing = self.find_by_idempotency_key(idempotency_key)
                    if existing is not None:
                        logger.info(
                            "Order already exists for idempotency key",
                            order_id=str(existing.id),
                            idempotency_key=idempotency_key,
                        )
                        return existing

                order = Order.place(
                    order_id=self.ids.next_id(),
                    customer_id=user_id,
                    customer_name=customer_name,
                    customer_email=customer_email,
                    items_data=[
                        {
                            "product_id": str(line.product_id),
                            "product_name": line.product_name,
                            "variant": line.variant,
                            "quantity": line.quantity,
                            "unit_price": line.unit_price,
                        }
                        for line in lines
                    ],
                    shipping_address=dict(shipping_info),
                    payment=dict(payment_info),
                    pricing=self.pricing.quote(lines),
                    reservation_id=reservation_id,
                    idempotency_key=idempotency_key,
                )
                self._repo.add(order)
        except LedgerError as exc:
            return exc

        logger.info(
            "Order created",
            order_id=str(order.id),
            customer_id=str(user_id),
            grand_total=order.pricing.grand_total,
            currency=order.pricing.currency,
        )
        return order

    # -------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------
    def transition_status(self, order_id, new_status) -> Order | LedgerError:
        try:
            with self.locks.hold([order_id]):
                order = self._load(order_id)
                previous = order.status
                order.transition_to(new_status)
                self._repo.add(order)
        except LedgerError as exc:
            logger.info("Status transition refused", order_id=str(order_id), target=str(new_status), reason=str(exc))
            return exc

        logger.info("Order status changed", order_id=str(order_id), from_status=previous, to_status=order.status)
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def get_order(self, order_id) -> Order | NotFound:
        try:
            return self._load(order_id)
        except NotFound as exc:
            return exc

    def list_orders_for_user(self, user_id) -> list[Order]:
        orders = self._repo._dao.query.filter(customer_id=str(user_id)).limit(None).all().items
        return self._newest_first(orders)

    def list_all_orders(self) -> list[Order]:
        return self._newest_first(self._repo._dao.query.limit(None).all().items)

    def find_by_idempotency_key(self, key) -> Order | None:
        matches = self._repo._dao.query.filter(idempotency_key=key).all().items
        return matches[0] if matches else None

    def search_orders(self, status=None, query=None, page=1, per_page=10) -> Page:
        """Admin listing: optional status filter and a case-insensitive match
        on customer name or order id."""
        orders = self.list_all_orders()
        if status:
            try:
                status = OrderStatus(status).value
            except ValueError as exc:
                raise ValidationError({"status": [f"Unknown order status {status!r}"]}) from exc
            orders = [order for order in orders if order.status == status]
        if query:
            needle = query.lower()
            orders = [
                order
                for order in orders
                if needle in str(order.id).lower() or needle in (order.customer_name or "").lower()
            ]
        return paginate(orders, page=page, per_page=per_page)

    def summary(self) -> OrderSummary:
        """Dashboard counters over every order ever placed. Revenue counts
        cancelled orders too; it is the sum of committed grand totals."""
        orders = self._repo._dao.query.limit(None).all().items
        return OrderSummary(
            total_orders=len(orders),
            total_revenue=round_money(sum(order.pricing.grand_total for order in orders)),
            pending_orders=sum(1 for order in orders if order.status == OrderStatus.PROCESSING.value),
        )

    @staticmethod
    def _newest_first(orders):
        # Ids are strictly increasing, so they break ties between equal timestamps
        return sorted(orders, key=lambda order: (order.created_at, int(order.id)), reverse=True)
