"""Shopping Cart aggregate: the lines a customer intends to buy.

A cart holds at most one line per (product, variant); adding the same pair
again increases its quantity. Setting a quantity below one removes the line.
A cart that has been checked out is closed to further changes.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String

from storefront.checkout.events import (
    CartCheckedOut,
    CartCleared,
    CartItemAdded,
    CartItemRemoved,
    CartQuantityUpdated,
)
from storefront.domain import storefront
from storefront.shared.lines import CartLine


class CartStatus(Enum):
    ACTIVE = "Active"
    CHECKED_OUT = "CheckedOut"


@storefront.entity(part_of="ShoppingCart")
class CartItem:
    product_id = Identifier(required=True)
    variant = String(max_length=100)
    quantity = Integer(required=True, min_value=1)
    added_at = DateTime()


@storefront.aggregate
class ShoppingCart:
    user_id = Identifier()
    items = HasMany(CartItem)
    status = String(choices=CartStatus, default=CartStatus.ACTIVE.value)
    order_id = Identifier()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def one_line_per_product_variant(self):
        keys = [(str(item.product_id), item.variant or None) for item in self.items]
        if len(keys) != len(set(keys)):
            raise ValidationError({"items": ["Duplicate product and variant lines in cart"]})

    @classmethod
    def create(cls, user_id=None):
        now = datetime.now(UTC)
        return cls(user_id=user_id, status=CartStatus.ACTIVE.value, created_at=now, updated_at=now)

    def _assert_active(self):
        if CartStatus(self.status) != CartStatus.ACTIVE:
            raise ValidationError({"status": ["Cart has already been checked out"]})

    def _find(self, item_id):
        item = next((i for i in self.items if str(i.id) == str(item_id)), None)
        if item is None:
            raise ValidationError({"item_id": ["Item not found in cart"]})
        return item

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, product_id, quantity=1, variant=None):
        """Add a line, or increase the quantity of the matching one."""
        self._assert_active()
        if quantity is None or quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        variant = variant or None
        existing = next(
            (i for i in self.items if str(i.product_id) == str(product_id) and (i.variant or None) == variant),
            None,
        )

        now = datetime.now(UTC)
        if existing:
            existing.quantity += quantity
            item = existing
        else:
            item = CartItem(product_id=product_id, variant=variant, quantity=quantity, added_at=now)
            self.add_items(item)

        self.updated_at = now
        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                item_id=str(item.id),
                product_id=str(product_id),
                variant=variant,
                quantity=quantity,
                new_quantity=item.quantity,
            )
        )
        return item

    def update_quantity(self, item_id, new_quantity):
        self._assert_active()
        item = self._find(item_id)
        if new_quantity < 1:
            self.remove_item(item_id)
            return

        previous_quantity = item.quantity
        item.quantity = new_quantity
        self.updated_at = datetime.now(UTC)
        self.raise_(
            CartQuantityUpdated(
                cart_id=str(self.id),
                item_id=str(item_id),
                previous_quantity=previous_quantity,
                new_quantity=new_quantity,
            )
        )

    def remove_item(self, item_id):
        self._assert_active()
        item = self._find(item_id)
        self.remove_items(item)
        self.updated_at = datetime.now(UTC)
        self.raise_(CartItemRemoved(cart_id=str(self.id), item_id=str(item_id)))

    def clear(self):
        self._assert_active()
        removed = len(self.items)
        for item in list(self.items):
            self.remove_items(item)
        self.updated_at = datetime.now(UTC)
        self.raise_(CartCleared(cart_id=str(self.id), removed_items=removed))

    def mark_checked_out(self, order_id):
        self._assert_active()
        self.status = CartStatus.CHECKED_OUT.value
        self.order_id = order_id
        self.updated_at = datetime.now(UTC)
        self.raise_(CartCheckedOut(cart_id=str(self.id), order_id=str(order_id)))

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def lines(self) -> list[CartLine]:
        return [
            CartLine(product_id=str(item.product_id), quantity=item.quantity, variant=item.variant or None)
            for item in self.items
        ]

    @property
    def item_count(self):
        return sum(item.quantity for item in self.items)
