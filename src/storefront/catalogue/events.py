"""Domain events for the Product aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from storefront.domain import storefront


@storefront.event(part_of="Product")
class ProductAdded:
    """A product was added to the catalogue by an administrator."""

    __version__ = 1

    product_id = Identifier(required=True)
    name = String(required=True)
    category = String()
    price = Float(required=True)
    stock = Integer(required=True)
    added_at = DateTime(required=True)


@storefront.event(part_of="Product")
class ProductUpdated:
    """Descriptive fields or the price of a product changed."""

    __version__ = 1

    product_id = Identifier(required=True)
    changed_fields = Text(required=True)  # JSON: list of field names
    previous_price = Float()
    new_price = Float()
    updated_at = DateTime(required=True)


@storefront.event(part_of="Product")
class StockDecremented:
    """Units were taken out of stock for a reservation."""

    __version__ = 1

    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    previous_stock = Integer(required=True)
    new_stock = Integer(required=True)
    decremented_at = DateTime(required=True)


@storefront.event(part_of="Product")
class StockRestocked:
    """Units were returned to stock (rollback, release, or cancellation)."""

    __version__ = 1

    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    previous_stock = Integer(required=True)
    new_stock = Integer(required=True)
    restocked_at = DateTime(required=True)


@storefront.event(part_of="Product")
class StockAdjusted:
    """An administrator set the stock count directly."""

    __version__ = 1

    product_id = Identifier(required=True)
    previous_stock = Integer(required=True)
    new_stock = Integer(required=True)
    adjusted_at = DateTime(required=True)


@storefront.event(part_of="Product")
class ReviewRecorded:
    """A customer review was appended and the rating recomputed."""

    __version__ = 1

    product_id = Identifier(required=True)
    review_id = Identifier(required=True)
    rating = Integer(required=True)
    new_average = Float(required=True)
    review_count = Integer(required=True)
    recorded_at = DateTime(required=True)
