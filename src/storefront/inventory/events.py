"""Domain events for the Reservation aggregate."""

from protean.fields import DateTime, Identifier, Integer, String, Text

from storefront.domain import storefront


@storefront.event(part_of="Reservation")
class StockReserved:
    """Every line of a checkout attempt was taken out of stock."""

    __version__ = 1

    reservation_id = Identifier(required=True)
    lines = Text(required=True)  # JSON: [{product_id, variant, quantity}]
    total_quantity = Integer(required=True)
    reserved_at = DateTime(required=True)
    expires_at = DateTime(required=True)


@storefront.event(part_of="Reservation")
class ReservationConsumed:
    """The held stock became permanent as part of a committed order."""

    __version__ = 1

    reservation_id = Identifier(required=True)
    order_id = Identifier(required=True)
    consumed_at = DateTime(required=True)


@storefront.event(part_of="Reservation")
class ReservationReleased:
    """The held stock was returned to the catalogue."""

    __version__ = 1

    reservation_id = Identifier(required=True)
    reason = String(required=True)
    released_at = DateTime(required=True)
