"""Process-wide service instances.

The catalogue and the reservation service share one stock lock registry so
that a reservation's multi-product hold and a single-product decrement
exclude each other. Orders and carts use a registry of their own.
"""

from storefront import config
from storefront.catalogue.catalog import ProductCatalog
from storefront.checkout.coordinator import CheckoutCoordinator
from storefront.inventory.service import InventoryReservation
from storefront.ordering.ledger import OrderLedger
from storefront.utils.locks import KeyedLocks

_services: dict = {}


def _build() -> dict:
    timeout = config.lock_timeout()
    stock_locks = KeyedLocks("stock", timeout=timeout)
    order_locks = KeyedLocks("orders", timeout=timeout)

    catalog = ProductCatalog(stock_locks)
    inventory = InventoryReservation(catalog, stock_locks)
    ledger = OrderLedger(order_locks)
    coordinator = CheckoutCoordinator(catalog, inventory, ledger, cart_locks=order_locks)
    return {"catalog": catalog, "inventory": inventory, "ledger": ledger, "coordinator": coordinator}


def _get(name):
    if not _services:
        _services.update(_build())
    return _services[name]


def get_catalog() -> ProductCatalog:
    return _get("catalog")


def get_inventory() -> InventoryReservation:
    return _get("inventory")


def get_ledger() -> OrderLedger:
    return _get("ledger")


def get_coordinator() -> CheckoutCoordinator:
    return _get("coordinator")


def reset_services() -> None:
    """Drop the cached instances so the next call rebuilds them from current settings."""
    _services.clear()
