"""Order pricing: subtotal, shipping, tax and total for a set of priced lines."""

from dataclasses import dataclass

from storefront import config
from storefront.shared.numbers import round_money


@dataclass(frozen=True)
class PricingPolicy:
    free_shipping_threshold: float = 1000.0
    flat_shipping_fee: float = 50.0
    tax_rate: float = 0.18
    currency: str = "INR"

    @classmethod
    def from_env(cls) -> "PricingPolicy":
        return cls(
            free_shipping_threshold=config.free_shipping_threshold(),
            flat_shipping_fee=config.flat_shipping_fee(),
            tax_rate=config.tax_rate(),
            currency=config.currency(),
        )

    def shipping_for(self, subtotal: float) -> float:
        # Free only when strictly above the threshold
        return 0.0 if subtotal > self.free_shipping_threshold else round_money(self.flat_shipping_fee)

    def quote(self, lines) -> dict:
        """Price ``lines`` (anything with ``unit_price`` and ``quantity``).

        Returns a dict matching the OrderPricing value object.
        """
        subtotal = round_money(sum(line.unit_price * line.quantity for line in lines))
        shipping = self.shipping_for(subtotal)
        tax = round_money(subtotal * self.tax_rate)
        return {
            "subtotal": subtotal,
            "shipping_cost": shipping,
            "tax_total": tax,
            "grand_total": round_money(subtotal + shipping + tax),
            "currency": self.currency,
        }
