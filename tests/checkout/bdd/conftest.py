"""Shared BDD fixtures and step definitions for checkout and orders."""

import pytest
from protean import current_domain
from pytest_bdd import given, parsers, then

from storefront.catalogue.product import Product
from storefront.errors import CheckoutError
from storefront.ordering.order import Order


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def products():
    """Product ids by name."""
    return {}


@pytest.fixture()
def outcome():
    """Container for the result of the last action."""
    return {"result": None}


@pytest.fixture()
def buy(coordinator, gateway, shipping_info, card_payment, products):
    def _buy(*quantities_by_name):
        lines = [{"product_id": products[name], "quantity": quantity} for name, quantity in quantities_by_name]
        return coordinator.checkout(lines, "user-001", shipping_info, card_payment)

    return _buy


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a product "{name:w}" priced at {price:f} with {stock:d} in stock'))
def product_in_stock(catalog, products, name, price, stock):
    products[name] = str(catalog.add_product(name=name, price=price, stock=stock).id)


@given(parsers.cfparse('the customer has already bought {quantity:d} of "{name:w}"'), target_fixture="order")
def already_bought(buy, name, quantity):
    order = buy((name, quantity))
    assert isinstance(order, Order)
    return order


@given("the payment gateway declines charges")
def gateway_declines(gateway):
    gateway.configure(should_succeed=False, failure_reason="Card declined")


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('"{name:w}" has {stock:d} in stock'))
def product_stock(products, name, stock):
    assert current_domain.repository_for(Product).get(products[name]).stock == stock


@then(parsers.cfparse('the checkout fails with "{kind:w}"'))
def checkout_fails(outcome, kind):
    result = outcome["result"]
    assert isinstance(result, CheckoutError)
    assert result.kind.value == kind
