"""Product reviews: command and handler."""

import structlog
from protean import handle
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.domain import storefront

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Product")
class RecordReview:
    product_id = Identifier(required=True)
    rating = Integer(required=True, min_value=1, max_value=5)
    text = Text()
    author = String(max_length=255)


@storefront.command_handler(part_of=Product)
class RecordReviewHandler:
    @handle(RecordReview)
    def record_review(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        review = product.record_review(
            rating=command.rating,
            text=command.text,
            author=command.author,
        )
        repo.add(product)
        logger.info(
            "Review recorded",
            product_id=str(product.id),
            rating=command.rating,
            new_average=product.rating,
            review_count=product.review_count,
        )
        return str(review.id)
