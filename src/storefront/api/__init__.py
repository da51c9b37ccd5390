"""Storefront API package."""

from storefront.api.handlers import install
from storefront.api.routes import admin_router, cart_router, maintenance_router, order_router, product_router

ROUTERS = [product_router, cart_router, order_router, admin_router, maintenance_router]

__all__ = [
    "ROUTERS",
    "admin_router",
    "cart_router",
    "install",
    "maintenance_router",
    "order_router",
    "product_router",
]
