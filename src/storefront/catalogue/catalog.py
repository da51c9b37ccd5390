"""ProductCatalog: the sole mutator of product stock.

Every stock movement and every product edit runs inside the product's keyed
lock, so a decrement can never observe a stale count. Repository writes made
here happen outside a unit of work and are committed before the lock is
released. Failures come back as ``LedgerError`` values.
"""

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.catalogue.management import AddProduct, RemoveProduct, UpdateProduct
from storefront.catalogue.product import Product
from storefront.catalogue.reviews import RecordReview
from storefront.errors import LedgerError, NotFound
from storefront.shared.paging import paginate
from storefront.utils.locks import KeyedLocks

logger = structlog.get_logger(__name__)


class ProductCatalog:
    def __init__(self, locks: KeyedLocks) -> None:
        self.locks = locks

    @property
    def _repo(self):
        return current_domain.repository_for(Product)

    def _load(self, product_id) -> Product:
        try:
            return self._repo.get(str(product_id))
        except ObjectNotFoundError as exc:
            raise NotFound("Product", product_id) from exc

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def get_product(self, product_id) -> Product | NotFound:
        try:
            return self._load(product_id)
        except NotFound as exc:
            return exc

    def list_products(self) -> list[Product]:
        products = self._repo._dao.query.limit(None).all().items
        return sorted(products, key=lambda p: (p.name or "").lower())

    def search_products(self, query=None, category=None, page=1, per_page=10):
        """Case-insensitive match on name and description, optionally by category."""
        products = self.list_products()
        if category:
            products = [p for p in products if (p.category or "").lower() == category.lower()]
        if query:
            needle = query.lower()
            products = [
                p for p in products if needle in (p.name or "").lower() or needle in (p.description or "").lower()
            ]
        return paginate(products, page=page, per_page=per_page)

    # -------------------------------------------------------------------
    # Stock
    # -------------------------------------------------------------------
    def decrement_stock(self, product_id, quantity) -> Product | LedgerError:
        try:
            with self.locks.hold([product_id]):
                product = self._load(product_id)
                product.decrement_stock(quantity)
                self._repo.add(product)
        except LedgerError as exc:
            logger.info("Stock decrement refused", product_id=str(product_id), quantity=quantity, reason=exc.kind.value)
            return exc

        logger.info("Stock decremented", product_id=str(product_id), quantity=quantity, remaining=product.stock)
        return product

    def restock(self, product_id, quantity) -> Product | LedgerError:
        try:
            with self.locks.hold([product_id]):
                product = self._load(product_id)
                product.restock(quantity)
                self._repo.add(product)
        except LedgerError as exc:
            logger.warning("Restock failed", product_id=str(product_id), quantity=quantity, reason=exc.kind.value)
            return exc

        logger.info("Stock restocked", product_id=str(product_id), quantity=quantity, remaining=product.stock)
        return product

    # -------------------------------------------------------------------
    # Reviews and administration
    # -------------------------------------------------------------------
    def record_review(self, product_id, rating, text=None, author=None) -> Product | LedgerError:
        return self._dispatch(
            product_id,
            RecordReview(product_id=str(product_id), rating=rating, text=text, author=author),
        )

    def add_product(self, **fields) -> Product:
        product_id = current_domain.process(AddProduct(**fields), asynchronous=False)
        return self._load(product_id)

    def update_product(self, product_id, **fields) -> Product | LedgerError:
        return self._dispatch(product_id, UpdateProduct(product_id=str(product_id), **fields))

    def remove_product(self, product_id) -> None | LedgerError:
        result = self._dispatch(product_id, RemoveProduct(product_id=str(product_id)), reload=False)
        return result if isinstance(result, LedgerError) else None

    def _dispatch(self, product_id, command, reload=True):
        try:
            with self.locks.hold([product_id]):
                self._load(product_id)
                current_domain.process(command, asynchronous=False)
                return self._load(product_id) if reload else None
        except LedgerError as exc:
            return exc
