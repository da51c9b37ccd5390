"""Page slicing for admin listings."""

import math
from dataclasses import dataclass, field

from protean.exceptions import ValidationError


@dataclass(frozen=True)
class Page:
    items: list = field(default_factory=list)
    total: int = 0
    page: int = 1
    per_page: int = 10

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.per_page) if self.total else 0


def paginate(items, page: int = 1, per_page: int = 10) -> Page:
    """Return the 1-based ``page`` of ``items``; out-of-range pages are empty."""
    if page < 1 or per_page < 1:
        raise ValidationError({"page": ["page and per_page must be positive"]})
    items = list(items)
    start = (page - 1) * per_page
    return Page(items=items[start : start + per_page], total=len(items), page=page, per_page=per_page)
