"""InventoryReservation: all-or-nothing stock holds for checkout attempts.

``reserve`` takes every product lock of the cart in sorted id order before
touching any stock, then decrements line by line through the catalogue
(whose own per-product lock re-enters). If any line fails, every decrement
already made in the call is restocked before the failure is returned, so no
partial hold ever survives.

Reconciliation follows the periodic-sweep approach: an external scheduler
calls ``expire_stale_reservations`` and every Active hold older than the
threshold is released with reason ``timeout``.
"""

from datetime import UTC, datetime, timedelta

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from storefront import config
from storefront.catalogue.catalog import ProductCatalog
from storefront.errors import LedgerError, NotFound
from storefront.inventory.reservation import Reservation, ReservationStatus
from storefront.shared.lines import merge_lines, quantities_by_product
from storefront.utils.locks import KeyedLocks

logger = structlog.get_logger(__name__)


class InventoryReservation:
    def __init__(self, catalog: ProductCatalog, locks: KeyedLocks, ttl_minutes: int | None = None) -> None:
        self.catalog = catalog
        self.locks = locks
        self.ttl_minutes = ttl_minutes if ttl_minutes is not None else config.reservation_ttl_minutes()

    @property
    def _repo(self):
        return current_domain.repository_for(Reservation)

    def _load(self, handle) -> Reservation:
        reservation_id = handle.id if isinstance(handle, Reservation) else handle
        try:
            return self._repo.get(str(reservation_id))
        except ObjectNotFoundError as exc:
            raise NotFound("Reservation", reservation_id) from exc

    def get(self, reservation_id) -> Reservation | NotFound:
        try:
            return self._load(reservation_id)
        except NotFound as exc:
            return exc

    def product_ids(self, handle) -> list[str]:
        reservation = handle if isinstance(handle, Reservation) else self._load(handle)
        return sorted({str(line.product_id) for line in reservation.lines})

    # -------------------------------------------------------------------
    # Reserve
    # -------------------------------------------------------------------
    def reserve(self, lines) -> Reservation | LedgerError:
        lines = merge_lines(lines)
        if not lines:
            raise ValidationError({"lines": ["At least one line is required"]})
        for line in lines:
            if line.quantity <= 0:
                raise ValidationError({"quantity": [f"Quantity for {line.product_id} must be positive"]})

        wanted = quantities_by_product(lines)
        try:
            with self.locks.hold(wanted):
                return self._reserve_locked(lines, wanted)
        except LedgerError as exc:
            return exc

    def _reserve_locked(self, lines, wanted):
        decremented = []
        snapshots = {}
        for product_id in sorted(wanted):
            result = self.catalog.decrement_stock(product_id, wanted[product_id])
            if isinstance(result, LedgerError):
                self._rollback(decremented)
                logger.info(
                    "Reservation refused",
                    product_id=product_id,
                    reason=result.kind.value,
                    rolled_back=len(decremented),
                )
                return result
            decremented.append((product_id, wanted[product_id]))
            snapshots[product_id] = result

        reservation = Reservation.create(
            [
                {
                    "product_id": line.product_id,
                    "variant": line.variant,
                    "quantity": line.quantity,
                    "product_name": snapshots[str(line.product_id)].name,
                    "unit_price": snapshots[str(line.product_id)].price,
                }
                for line in lines
            ],
            ttl_minutes=self.ttl_minutes,
        )
        self._repo.add(reservation)
        logger.info(
            "Stock reserved",
            reservation_id=str(reservation.id),
            products=sorted(wanted),
            total_quantity=reservation.total_quantity,
        )
        return reservation

    def _rollback(self, decremented):
        for product_id, quantity in reversed(decremented):
            result = self.catalog.restock(product_id, quantity)
            if isinstance(result, LedgerError):
                logger.error("Rollback restock failed", product_id=product_id, quantity=quantity, error=str(result))

    # -------------------------------------------------------------------
    # Release / consume
    # -------------------------------------------------------------------
    def release(self, handle, reason="released") -> Reservation | LedgerError:
        """Return every held line to stock. Releasing twice is a no-op."""
        try:
            product_ids = self.product_ids(handle)
            with self.locks.hold(product_ids):
                reservation = self._load(handle)
                if not reservation.release(reason):
                    logger.debug("Reservation already released", reservation_id=str(reservation.id))
                    return reservation
                for product_id, quantity in sorted(quantities_by_product(reservation.lines).items()):
                    result = self.catalog.restock(product_id, quantity)
                    if isinstance(result, LedgerError):
                        logger.error(
                            "Restock on release failed",
                            reservation_id=str(reservation.id),
                            product_id=product_id,
                            error=str(result),
                        )
                self._repo.add(reservation)
        except LedgerError as exc:
            return exc

        logger.info("Reservation released", reservation_id=str(reservation.id), reason=reason)
        return reservation

    def consume(self, handle, order_id) -> Reservation | LedgerError:
        """Make the hold permanent as part of ``order_id``."""
        try:
            product_ids = self.product_ids(handle)
            with self.locks.hold(product_ids):
                reservation = self._load(handle)
                reservation.consume(order_id)
                self._repo.add(reservation)
        except LedgerError as exc:
            return exc

        logger.info("Reservation consumed", reservation_id=str(reservation.id), order_id=str(order_id))
        return reservation

    # -------------------------------------------------------------------
    # Reconciliation
    # -------------------------------------------------------------------
    def expire_stale_reservations(self, older_than_minutes=None, as_of=None) -> int:
        as_of = as_of or datetime.now(UTC)
        if as_of.tzinfo is None:
            as_of = as_of.replace(tzinfo=UTC)
        threshold_minutes = older_than_minutes if older_than_minutes is not None else self.ttl_minutes
        cutoff = as_of - timedelta(minutes=threshold_minutes)

        logger.info(
            "Checking for stale reservations",
            cutoff=cutoff.isoformat(),
            threshold_minutes=threshold_minutes,
        )

        active = self._repo._dao.query.filter(status=ReservationStatus.ACTIVE.value).limit(None).all().items
        expired = [reservation for reservation in active if reservation.reserved_before(cutoff)]
        if not expired:
            logger.info("No stale reservations found")
            return 0

        expired_count = 0
        for reservation in expired:
            try:
                result = self.release(reservation, reason="timeout")
            except ValidationError as exc:
                logger.warning(
                    "Failed to release stale reservation",
                    reservation_id=str(reservation.id),
                    error=str(exc),
                )
                continue
            if isinstance(result, LedgerError):
                logger.warning(
                    "Failed to release stale reservation",
                    reservation_id=str(reservation.id),
                    error=str(result),
                )
                continue
            if result.release_reason == "timeout":
                expired_count += 1

        logger.info("Stale reservation cleanup complete", expired_count=expired_count)
        return expired_count
