"""
Predicate filter for product listings.

Every predicate set on ProductFilters must hold (AND). Unset predicates
impose no constraint.
"""
from datetime import datetime
from typing import List, Optional, Sequence

from app.models.product import Product
from app.models.seller import Seller
from app.schemas.listing import ProductFilters
from app.services.catalog_service import Catalog


def needs_seller(filters: ProductFilters) -> bool:
    """True when a predicate reads the product's seller."""
    return any([
        filters.seller is not None,
        filters.location is not None,
        filters.shipping is not None and filters.shipping.free_shipping_only is not None,
    ])


def matches_search_term(product: Product, search: Optional[str]) -> bool:
    """Case-insensitive substring search; blank terms match everything."""
    if search is None:
        return True
    term = search.strip().lower()
    if not term:
        return True
    return term in product.searchable_text()


def _matches_seller(
    product: Product,
    filters: ProductFilters,
    seller: Seller,
    now: Optional[datetime]
) -> bool:
    if filters.seller is not None:
        seller_filter = filters.seller
        if seller_filter.verified is not None and seller.is_verified != seller_filter.verified:
            return False
        if seller_filter.premium is not None and seller.is_premium_eligible(now) != seller_filter.premium:
            return False
        if seller_filter.min_rating is not None and seller.rating.average < seller_filter.min_rating:
            return False

    if filters.location is not None:
        location = filters.location
        address = seller.address
        if location.country and address.country.lower() != location.country.lower():
            return False
        if location.state and address.state.lower() != location.state.lower():
            return False
        if location.city and address.city.lower() != location.city.lower():
            return False

    if filters.shipping is not None and filters.shipping.free_shipping_only:
        if not product.has_eligible_free_shipping(seller, now):
            return False

    return True


def matches(
    product: Product,
    filters: ProductFilters,
    seller: Optional[Seller] = None,
    now: Optional[datetime] = None
) -> bool:
    """
    Check a product against a filter specification.

    Args:
        product: Product to test
        filters: Filter specification
        seller: The product's seller, required for seller, location and
            shipping predicates
        now: Reference time for discount validity

    Returns:
        True when every set predicate holds
    """
    if filters.category is not None and product.category != filters.category:
        return False
    if filters.subcategory is not None and product.subcategory != filters.subcategory:
        return False
    if filters.seller_id is not None and product.seller_id != filters.seller_id:
        return False

    if filters.min_price is not None or filters.max_price is not None:
        final_price = product.final_price(now)
        if filters.min_price is not None and final_price < filters.min_price:
            return False
        if filters.max_price is not None and final_price > filters.max_price:
            return False

    if filters.condition is not None and product.condition.type != filters.condition:
        return False
    if filters.is_active is not None and product.is_active != filters.is_active:
        return False
    if filters.has_discount is not None and product.has_active_discount(now) != filters.has_discount:
        return False
    if filters.in_stock is not None and product.is_available() != filters.in_stock:
        return False

    if filters.tags:
        if not set(filters.tags).intersection(product.tags):
            return False

    if filters.rating is not None:
        if product.rating.average < filters.rating.min:
            return False
        if filters.rating.max is not None and product.rating.average > filters.rating.max:
            return False

    if not matches_search_term(product, filters.search):
        return False

    if needs_seller(filters):
        if seller is None:
            raise ValueError(f"Seller is required to evaluate filters for product {product.id}")
        if not _matches_seller(product, filters, seller, now):
            return False

    return True


def apply_filters(
    products: Sequence[Product],
    filters: ProductFilters,
    catalog: Catalog,
    now: Optional[datetime] = None
) -> List[Product]:
    """Return the products matching the filters, in input order."""
    resolve_seller = needs_seller(filters)
    return [
        product
        for product in products
        if matches(
            product,
            filters,
            seller=catalog.seller_for(product) if resolve_seller else None,
            now=now
        )
    ]
