"""Reservation aggregate: a temporary hold on stock for one checkout attempt.

A reservation is created only after every one of its lines has been taken
out of stock. It ends in exactly one of two ways: consumed into a committed
order (the decrement becomes permanent) or released (the stock goes back).
Reservations still Active past the configured age belong to abandoned attempts
and are released by reconciliation.
"""

import json
from datetime import UTC, datetime, timedelta
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from storefront.domain import storefront
from storefront.inventory.events import ReservationConsumed, ReservationReleased, StockReserved


class ReservationStatus(Enum):
    ACTIVE = "Active"
    CONSUMED = "Consumed"
    RELEASED = "Released"


@storefront.entity(part_of="Reservation")
class ReservationLine:
    """One held (product, variant, quantity) with the name and price seen at reserve time."""

    product_id = Identifier(required=True)
    variant = String(max_length=100)
    quantity = Integer(required=True, min_value=1)
    product_name = String(max_length=255)
    unit_price = Float(min_value=0.0)


@storefront.aggregate
class Reservation:
    status = String(
        choices=ReservationStatus,
        default=ReservationStatus.ACTIVE.value,
    )
    lines = HasMany(ReservationLine)
    order_id = Identifier()
    reserved_at = DateTime()
    expires_at = DateTime()
    released_at = DateTime()
    release_reason = String(max_length=100)

    @classmethod
    def create(cls, lines, ttl_minutes=15):
        """Record a hold over ``lines`` (dicts with the ReservationLine fields)."""
        if not lines:
            raise ValidationError({"lines": ["A reservation needs at least one line"]})

        now = datetime.now(UTC)
        reservation = cls(
            reserved_at=now,
            expires_at=now + timedelta(minutes=ttl_minutes),
        )
        for line in lines:
            reservation.add_lines(ReservationLine(**line))

        reservation.raise_(
            StockReserved(
                reservation_id=str(reservation.id),
                lines=json.dumps(
                    [
                        {"product_id": str(line.product_id), "variant": line.variant, "quantity": line.quantity}
                        for line in reservation.lines
                    ]
                ),
                total_quantity=reservation.total_quantity,
                reserved_at=now,
                expires_at=reservation.expires_at,
            )
        )
        return reservation

    @property
    def is_active(self):
        return self.status == ReservationStatus.ACTIVE.value

    @property
    def total_quantity(self):
        return sum(line.quantity for line in self.lines)

    def reserved_before(self, cutoff):
        """True for an Active hold taken at or before ``cutoff``."""
        if not self.is_active or self.reserved_at is None:
            return False
        reserved_at = self.reserved_at
        if reserved_at.tzinfo is None:
            reserved_at = reserved_at.replace(tzinfo=UTC)
        return reserved_at <= cutoff

    def consume(self, order_id):
        if not self.is_active:
            raise ValidationError({"status": [f"Cannot consume a reservation in {self.status} state"]})

        now = datetime.now(UTC)
        self.status = ReservationStatus.CONSUMED.value
        self.order_id = order_id
        self.raise_(
            ReservationConsumed(
                reservation_id=str(self.id),
                order_id=str(order_id),
                consumed_at=now,
            )
        )

    def release(self, reason):
        """Mark the hold released. Returns False if it already was."""
        if self.status == ReservationStatus.RELEASED.value:
            return False
        if self.status == ReservationStatus.CONSUMED.value:
            raise ValidationError({"status": ["Cannot release a reservation that belongs to an order"]})

        now = datetime.now(UTC)
        self.status = ReservationStatus.RELEASED.value
        self.released_at = now
        self.release_reason = reason
        self.raise_(
            ReservationReleased(
                reservation_id=str(self.id),
                reason=reason,
                released_at=now,
            )
        )
        return True
