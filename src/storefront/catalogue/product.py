"""Product aggregate root with the Review entity.

The Product is the only record that carries a stock count, and the catalogue
service is the only caller that mutates it. Reviews are append-only; the
rating is always the mean of every review ever recorded, kept exact through
a running total so that seeded products (whose historical reviews are only
counted, not stored) recompute correctly.
"""

import json
from datetime import UTC, datetime

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Integer, String, Text

from storefront.catalogue.events import (
    ProductAdded,
    ProductUpdated,
    ReviewRecorded,
    StockAdjusted,
    StockDecremented,
    StockRestocked,
)
from storefront.domain import storefront
from storefront.errors import InsufficientStock
from storefront.shared.numbers import round_money, round_rating

# Fields an administrator may edit through update_details
_EDITABLE_FIELDS = ("name", "description", "category", "price", "warranty", "image_url")


def _as_json_list(value):
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return json.dumps(list(value))


@storefront.entity(part_of="Product")
class Review:
    """A single customer review. Never edited or removed once recorded."""

    rating = Integer(required=True, min_value=1, max_value=5)
    text = Text()
    author = String(max_length=255)
    verified = Boolean(default=True)
    created_at = DateTime()


@storefront.aggregate
class Product:
    name = String(required=True, max_length=255)
    description = Text()
    category = String(max_length=100)
    price = Float(required=True, min_value=0.0)
    stock = Integer(default=0, min_value=0)
    rating = Float(default=0.0, min_value=0.0, max_value=5.0)
    review_count = Integer(default=0, min_value=0)
    rating_total = Float(default=0.0, min_value=0.0)
    reviews = HasMany(Review)
    colors = Text()  # JSON: list of variant names
    features = Text()  # JSON: list of feature bullet points
    warranty = String(max_length=255)
    image_url = String(max_length=500)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def rating_is_mean_of_reviews(self):
        if not self.review_count:
            if self.rating:
                raise ValidationError({"rating": ["A product without reviews cannot carry a rating"]})
            return
        expected = round_rating(self.rating_total / self.review_count)
        if self.rating != expected:
            raise ValidationError({"rating": [f"Rating {self.rating} does not match review mean {expected}"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        name,
        price,
        stock=0,
        category=None,
        description=None,
        colors=None,
        features=None,
        warranty=None,
        image_url=None,
        rating=0.0,
        review_count=0,
    ):
        """Create a catalogue product.

        ``rating`` and ``review_count`` seed the running mean for products
        imported with an existing review history. Without a review count the
        rating starts at zero.
        """
        now = datetime.now(UTC)
        review_count = review_count or 0
        rating_total = (rating or 0.0) * review_count

        product = cls(
            name=name,
            description=description,
            category=category,
            price=round_money(price) if isinstance(price, int | float) else price,
            stock=stock,
            rating=round_rating(rating_total / review_count) if review_count else 0.0,
            review_count=review_count,
            rating_total=rating_total,
            colors=_as_json_list(colors),
            features=_as_json_list(features),
            warranty=warranty,
            image_url=image_url,
            created_at=now,
            updated_at=now,
        )
        product.raise_(
            ProductAdded(
                product_id=str(product.id),
                name=name,
                category=category,
                price=product.price,
                stock=stock,
                added_at=now,
            )
        )
        return product

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def in_stock(self):
        return self.stock > 0

    @property
    def color_options(self):
        return json.loads(self.colors) if self.colors else []

    @property
    def feature_list(self):
        return json.loads(self.features) if self.features else []

    # -------------------------------------------------------------------
    # Administration
    # -------------------------------------------------------------------
    def update_details(self, colors=None, features=None, **changes):
        """Edit descriptive fields and price. Existing orders keep their snapshots."""
        unknown = set(changes) - set(_EDITABLE_FIELDS)
        if unknown:
            raise ValidationError({field: ["Field cannot be edited"] for field in sorted(unknown)})

        previous_price = self.price
        changed = []
        for field, value in changes.items():
            if value is None:
                continue
            if field == "price" and isinstance(value, int | float):
                value = round_money(value)
            setattr(self, field, value)
            changed.append(field)
        if colors is not None:
            self.colors = _as_json_list(colors)
            changed.append("colors")
        if features is not None:
            self.features = _as_json_list(features)
            changed.append("features")

        if not changed:
            return

        now = datetime.now(UTC)
        self.updated_at = now
        self.raise_(
            ProductUpdated(
                product_id=str(self.id),
                changed_fields=json.dumps(changed),
                previous_price=previous_price,
                new_price=self.price,
                updated_at=now,
            )
        )

    def adjust_stock(self, new_stock):
        """Set the stock count directly (admin inventory count)."""
        if new_stock is None or new_stock < 0:
            raise ValidationError({"stock": ["Stock cannot be negative"]})

        previous = self.stock
        self.stock = new_stock
        now = datetime.now(UTC)
        self.updated_at = now
        self.raise_(
            StockAdjusted(
                product_id=str(self.id),
                previous_stock=previous,
                new_stock=new_stock,
                adjusted_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Stock movements
    # -------------------------------------------------------------------
    def decrement_stock(self, quantity):
        """Take ``quantity`` units out of stock, or raise InsufficientStock."""
        if quantity is None or quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})
        if quantity > self.stock:
            raise InsufficientStock(self.id, requested=quantity, available=self.stock)

        previous = self.stock
        self.stock = previous - quantity
        now = datetime.now(UTC)
        self.updated_at = now
        self.raise_(
            StockDecremented(
                product_id=str(self.id),
                quantity=quantity,
                previous_stock=previous,
                new_stock=self.stock,
                decremented_at=now,
            )
        )

    def restock(self, quantity):
        """Return ``quantity`` units to stock."""
        if quantity is None or quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})

        previous = self.stock
        self.stock = previous + quantity
        now = datetime.now(UTC)
        self.updated_at = now
        self.raise_(
            StockRestocked(
                product_id=str(self.id),
                quantity=quantity,
                previous_stock=previous,
                new_stock=self.stock,
                restocked_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Reviews
    # -------------------------------------------------------------------
    def record_review(self, rating, text=None, author=None):
        """Append a review and recompute the rating as a running mean."""
        now = datetime.now(UTC)
        review = Review(rating=rating, text=text, author=author, created_at=now)

        with atomic_change(self):
            self.add_reviews(review)
            self.rating_total = self.rating_total + rating
            self.review_count = self.review_count + 1
            self.rating = round_rating(self.rating_total / self.review_count)

        self.updated_at = now
        self.raise_(
            ReviewRecorded(
                product_id=str(self.id),
                review_id=str(review.id),
                rating=rating,
                new_average=self.rating,
                review_count=self.review_count,
                recorded_at=now,
            )
        )
        return review
