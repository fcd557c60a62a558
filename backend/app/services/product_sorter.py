"""Stable, non-mutating ordering of product collections."""
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

from app.models.product import Product
from app.utils.helpers import fold_text


def _sort_keys(now: Optional[datetime]) -> Dict[str, Callable[[Product], Any]]:
    return {
        "price": lambda product: product.final_price(now),
        "rating": lambda product: product.rating.average,
        "createdAt": lambda product: product.created_at,
        "title": lambda product: fold_text(product.title),
        "popularity": lambda product: product.rating.count,
    }


SORTABLE_FIELDS = frozenset(_sort_keys(None))


def sort_products(
    products: Sequence[Product],
    field: str,
    direction: str = "asc",
    now: Optional[datetime] = None
) -> List[Product]:
    """
    Order products by a field.

    Ties keep their input order in both directions. Unknown fields leave the
    order unchanged. "relevance" must be resolved to a concrete field by the
    caller.

    Args:
        products: Products to order (not modified)
        field: One of price, rating, createdAt, title, popularity
        direction: "asc" or "desc"
        now: Reference time for discount validity when sorting by price

    Returns:
        New list in the requested order
    """
    key = _sort_keys(now).get(field)
    if key is None:
        return list(products)

    # sorted() keeps equal elements in input order even with reverse=True
    return sorted(products, key=key, reverse=direction == "desc")
