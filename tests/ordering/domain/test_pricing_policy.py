"""Tests for order pricing."""

from types import SimpleNamespace

import pytest

from storefront.ordering.pricing import PricingPolicy


def _line(price, quantity):
    return SimpleNamespace(unit_price=price, quantity=quantity)


class TestQuote:
    def test_flat_shipping_below_threshold(self):
        quote = PricingPolicy().quote([_line(10.0, 2)])
        assert quote == {
            "subtotal": 20.0,
            "shipping_cost": 50.0,
            "tax_total": 3.6,
            "grand_total": 73.6,
            "currency": "INR",
        }

    def test_free_shipping_above_threshold(self):
        quote = PricingPolicy().quote([_line(999.99, 2)])
        assert quote["shipping_cost"] == 0.0
        assert quote["subtotal"] == 1999.98
        assert quote["tax_total"] == 360.0
        assert quote["grand_total"] == 2359.98

    def test_threshold_itself_still_pays_shipping(self):
        quote = PricingPolicy().quote([_line(1000.0, 1)])
        assert quote["shipping_cost"] == 50.0

    def test_tax_rounds_half_up(self):
        quote = PricingPolicy(tax_rate=0.5).quote([_line(0.05, 1)])
        # 0.025 → 0.03
        assert quote["tax_total"] == 0.03

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("STOREFRONT_TAX_RATE", "0.05")
        monkeypatch.setenv("STOREFRONT_FLAT_SHIPPING_FEE", "40")
        monkeypatch.setenv("STOREFRONT_FREE_SHIPPING_THRESHOLD", "500")
        monkeypatch.setenv("STOREFRONT_CURRENCY", "USD")
        policy = PricingPolicy.from_env()
        assert policy == PricingPolicy(free_shipping_threshold=500.0, flat_shipping_fee=40.0, tax_rate=0.05, currency="USD")

    @pytest.mark.parametrize("lines,expected", [([], 0.0), ([_line(1.5, 3), _line(2.25, 2)], 9.0)])
    def test_subtotal(self, lines, expected):
        assert PricingPolicy().quote(lines)["subtotal"] == expected
