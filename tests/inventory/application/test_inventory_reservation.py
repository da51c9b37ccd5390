"""Application tests for all-or-nothing reservations, release and reconciliation."""

from datetime import UTC, datetime, timedelta

import pytest
from protean import current_domain
from protean.exceptions import ValidationError

from storefront.catalogue.product import Product
from storefront.errors import InsufficientStock, NotFound
from storefront.inventory.reservation import Reservation, ReservationStatus
from storefront.shared.lines import CartLine


def _stock(product_id):
    return current_domain.repository_for(Product).get(product_id).stock


@pytest.fixture()
def products(catalog):
    return {
        "watch": catalog.add_product(name="Smart Fitness Watch", price=249.99, stock=5),
        "speaker": catalog.add_product(name="Bluetooth Speaker", price=179.99, stock=2),
        "tablet": catalog.add_product(name="Tablet", price=649.99, stock=0),
    }


class TestReserve:
    def test_reserve_decrements_every_line(self, inventory, products):
        reservation = inventory.reserve(
            [CartLine(str(products["watch"].id), 2), CartLine(str(products["speaker"].id), 1)]
        )
        assert isinstance(reservation, Reservation)
        assert reservation.is_active
        assert _stock(products["watch"].id) == 3
        assert _stock(products["speaker"].id) == 1

    def test_reserve_snapshots_name_and_price(self, inventory, products):
        reservation = inventory.reserve([CartLine(str(products["watch"].id), 1, variant="Black")])
        line = reservation.lines[0]
        assert line.product_name == "Smart Fitness Watch"
        assert line.unit_price == 249.99
        assert line.variant == "Black"

    def test_variants_of_one_product_share_its_stock(self, inventory, products):
        watch_id = str(products["watch"].id)
        reservation = inventory.reserve([CartLine(watch_id, 2, "Black"), CartLine(watch_id, 3, "Blue")])
        assert isinstance(reservation, Reservation)
        assert len(reservation.lines) == 2
        assert _stock(watch_id) == 0

    def test_failure_rolls_back_earlier_lines(self, inventory, products):
        result = inventory.reserve(
            [
                CartLine(str(products["watch"].id), 2),
                CartLine(str(products["speaker"].id), 5),
            ]
        )
        assert isinstance(result, InsufficientStock)
        assert result.product_id == str(products["speaker"].id)
        assert _stock(products["watch"].id) == 5
        assert _stock(products["speaker"].id) == 2
        assert current_domain.repository_for(Reservation)._dao.query.all().items == []

    def test_out_of_stock_product(self, inventory, products):
        result = inventory.reserve([CartLine(str(products["tablet"].id), 1)])
        assert isinstance(result, InsufficientStock)

    def test_unknown_product(self, inventory, products):
        result = inventory.reserve([CartLine(str(products["watch"].id), 1), CartLine("missing", 1)])
        assert isinstance(result, NotFound)
        assert _stock(products["watch"].id) == 5

    def test_non_positive_quantity_rejected(self, inventory, products):
        with pytest.raises(ValidationError):
            inventory.reserve([CartLine(str(products["watch"].id), 0)])


class TestRelease:
    def test_release_restocks(self, inventory, products):
        reservation = inventory.reserve([CartLine(str(products["watch"].id), 4)])
        released = inventory.release(reservation)
        assert released.status == ReservationStatus.RELEASED.value
        assert _stock(products["watch"].id) == 5

    def test_release_is_idempotent(self, inventory, products):
        reservation = inventory.reserve([CartLine(str(products["watch"].id), 4)])
        inventory.release(reservation)
        inventory.release(reservation)
        inventory.release(reservation.id)
        assert _stock(products["watch"].id) == 5

    def test_release_unknown_reservation(self, inventory):
        assert isinstance(inventory.release("missing"), NotFound)

    def test_consume_makes_decrement_permanent(self, inventory, products):
        reservation = inventory.reserve([CartLine(str(products["watch"].id), 4)])
        consumed = inventory.consume(reservation, "1700000000000")
        assert consumed.status == ReservationStatus.CONSUMED.value
        assert _stock(products["watch"].id) == 1


class TestReconciliation:
    def test_expires_old_active_reservations(self, inventory, products):
        reservation = inventory.reserve([CartLine(str(products["watch"].id), 3)])
        later = datetime.now(UTC) + timedelta(minutes=16)

        assert inventory.expire_stale_reservations(as_of=later) == 1
        stored = current_domain.repository_for(Reservation).get(reservation.id)
        assert stored.status == ReservationStatus.RELEASED.value
        assert stored.release_reason == "timeout"
        assert _stock(products["watch"].id) == 5

    def test_recent_reservations_are_kept(self, inventory, products):
        inventory.reserve([CartLine(str(products["watch"].id), 3)])
        assert inventory.expire_stale_reservations() == 0
        assert _stock(products["watch"].id) == 2

    def test_custom_threshold(self, inventory, products):
        inventory.reserve([CartLine(str(products["watch"].id), 3)])
        later = datetime.now(UTC) + timedelta(minutes=2)
        assert inventory.expire_stale_reservations(older_than_minutes=1, as_of=later) == 1

    def test_consumed_reservations_are_not_touched(self, inventory, products):
        reservation = inventory.reserve([CartLine(str(products["watch"].id), 3)])
        inventory.consume(reservation, "1700000000000")
        later = datetime.now(UTC) + timedelta(hours=1)
        assert inventory.expire_stale_reservations(as_of=later) == 0
        assert _stock(products["watch"].id) == 2

    def test_sweep_covers_every_stale_reservation(self, inventory, catalog):
        product = catalog.add_product(name="Phone Case", price=9.99, stock=120)
        for _ in range(120):
            inventory.reserve([CartLine(str(product.id), 1)])
        assert _stock(product.id) == 0

        later = datetime.now(UTC) + timedelta(minutes=16)
        assert inventory.expire_stale_reservations(as_of=later) == 120
        assert _stock(product.id) == 120
