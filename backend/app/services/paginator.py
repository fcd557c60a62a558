from typing import List, Sequence

from pydantic import BaseModel

from app.models.product import Product

MAX_PAGE_LIMIT = 100


class Page(BaseModel):
    """One slice of an ordered product collection."""
    items: List[Product]
    total: int
    offset: int
    limit: int
    has_next: bool
    has_previous: bool


def paginate(
    products: Sequence[Product],
    offset: int,
    limit: int,
    max_limit: int = MAX_PAGE_LIMIT
) -> Page:
    """
    Slice products by offset and limit.

    Offset is clamped to 0 or more and limit to [1, max_limit], so an
    oversized page request is truncated rather than rejected. `max_limit`
    itself never exceeds MAX_PAGE_LIMIT.
    """
    max_limit = max(1, min(MAX_PAGE_LIMIT, max_limit))
    offset = max(0, offset)
    limit = max(1, min(max_limit, limit))
    total = len(products)

    return Page(
        items=list(products[offset:offset + limit]),
        total=total,
        offset=offset,
        limit=limit,
        has_next=offset + limit < total,
        has_previous=offset > 0
    )
