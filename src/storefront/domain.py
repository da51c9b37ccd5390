"""Storefront bounded context: the catalogue, inventory reservations and the order ledger.

A single Protean domain hosts every aggregate so that a checkout can touch
products, reservations, and orders inside one domain context.
"""

from protean.domain import Domain

from storefront.utils.logging import configure_logging

configure_logging()

# Domain Composition Root
storefront = Domain(name="storefront")
