"""Cart line value type shared by the cart, reservations and checkout."""

from dataclasses import dataclass

from protean.exceptions import ValidationError


@dataclass(frozen=True)
class CartLine:
    product_id: str
    quantity: int
    variant: str | None = None

    @property
    def key(self) -> tuple[str, str | None]:
        return (str(self.product_id), self.variant)

    @classmethod
    def from_dict(cls, data: dict) -> "CartLine":
        if not data.get("product_id"):
            raise ValidationError({"product_id": ["is required"]})
        quantity = data.get("quantity")
        if not isinstance(quantity, int) or isinstance(quantity, bool):
            raise ValidationError({"quantity": ["must be an integer"]})
        return cls(product_id=str(data["product_id"]), quantity=quantity, variant=data.get("variant") or None)


def merge_lines(lines) -> list[CartLine]:
    """Collapse lines sharing a (product, variant) into one, summing quantities.

    First-seen order is preserved.
    """
    merged: dict[tuple, int] = {}
    for line in lines:
        merged[line.key] = merged.get(line.key, 0) + line.quantity
    return [CartLine(product_id=pid, quantity=qty, variant=variant) for (pid, variant), qty in merged.items()]


def quantities_by_product(lines) -> dict[str, int]:
    totals: dict[str, int] = {}
    for line in lines:
        totals[str(line.product_id)] = totals.get(str(line.product_id), 0) + line.quantity
    return totals
