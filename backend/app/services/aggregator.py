"""
Aggregations over the filtered, pre-pagination product set.

Facets and price statistics must describe the whole result set, so they are
built before the set is sorted and sliced into a page.
"""
from collections import Counter
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Sequence

from pydantic import BaseModel, Field

from app.config.catalog_config import (
    PRICE_PERCENTILES,
    PRICE_RANGES,
    find_price_range,
    price_range_key
)
from app.models.product import Product, StockLevel
from app.models.seller import Seller
from app.schemas.listing import (
    AvailabilityMetrics,
    FacetValue,
    ProductFacet,
    ProductFilters,
    TagCount
)


class PriceStats(BaseModel):
    min: float = 0.0
    max: float = 0.0
    sum: float = 0.0
    count: int = 0


class AggregationState(BaseModel):
    """Result of a single scan over the filtered set."""
    category_distribution: Dict[str, int] = Field(default_factory=dict)
    seller_distribution: Dict[str, int] = Field(default_factory=dict)
    tag_frequency: Dict[str, int] = Field(default_factory=dict)
    price_range_distribution: Dict[str, int] = Field(default_factory=dict)
    price_statistics: PriceStats = Field(default_factory=PriceStats)
    availability_metrics: AvailabilityMetrics = Field(default_factory=AvailabilityMetrics)
    final_prices: List[float] = Field(default_factory=list)


def build_aggregation_state(
    products: Sequence[Product],
    now: Optional[datetime] = None
) -> AggregationState:
    """Scan products once and collect distributions and price statistics."""
    categories: Counter = Counter()
    sellers: Counter = Counter()
    tags: Counter = Counter()
    price_ranges: Counter = Counter()
    availability = {"in_stock": 0, "low_stock": 0, "out_of_stock": 0, "with_discount": 0}
    final_prices = []

    for product in products:
        categories[product.category] += 1
        sellers[product.seller_id] += 1

        final_price = product.final_price(now)
        final_prices.append(final_price)
        price_range = find_price_range(final_price)
        if price_range is not None:
            price_ranges[price_range_key(price_range)] += 1

        level = product.stock_level()
        if level == StockLevel.OUT_OF_STOCK:
            availability["out_of_stock"] += 1
        elif level == StockLevel.LOW:
            availability["low_stock"] += 1
        else:
            availability["in_stock"] += 1

        if product.has_active_discount(now):
            availability["with_discount"] += 1

        for tag in product.tags:
            tags[tag] += 1

    price_statistics = PriceStats(
        min=min(final_prices) if final_prices else 0.0,
        max=max(final_prices) if final_prices else 0.0,
        sum=sum(final_prices),
        count=len(final_prices)
    )

    return AggregationState(
        category_distribution=dict(categories),
        seller_distribution=dict(sellers),
        tag_frequency=dict(tags),
        price_range_distribution=dict(price_ranges),
        price_statistics=price_statistics,
        availability_metrics=AvailabilityMetrics(**availability),
        final_prices=final_prices
    )


def _top_counts(distribution: Mapping[str, int], limit: int) -> List[tuple]:
    # Counts descending; ties keep first-seen order
    return sorted(distribution.items(), key=lambda item: item[1], reverse=True)[:limit]


def generate_facets(
    state: AggregationState,
    applied_filters: ProductFilters,
    sellers: Mapping[str, Seller],
    top_n: int = 10
) -> List[ProductFacet]:
    """
    Build category, price range and seller facets.

    Values are the top `top_n` by count, each flagged `selected` when it
    matches the applied filter.
    """
    facets = []

    if state.category_distribution:
        facets.append(ProductFacet(
            key="category",
            label="Categorias",
            type="categorical",
            values=[
                FacetValue(
                    value=category,
                    label=category,
                    count=count,
                    selected=applied_filters.category == category
                )
                for category, count in _top_counts(state.category_distribution, top_n)
            ],
            display_priority=1
        ))

    if state.price_statistics.count > 0:
        facets.append(ProductFacet(
            key="priceRange",
            label="Faixa de Preço",
            type="range",
            values=[
                FacetValue(
                    value=price_range_key(price_range),
                    label=price_range["label"],
                    count=state.price_range_distribution.get(price_range_key(price_range), 0),
                    selected=_price_range_selected(price_range, applied_filters)
                )
                for price_range in PRICE_RANGES
            ],
            display_priority=2
        ))

    if state.seller_distribution:
        facets.append(ProductFacet(
            key="seller",
            label="Vendedores",
            type="categorical",
            values=[
                FacetValue(
                    value=seller_id,
                    label=sellers[seller_id].display_name if seller_id in sellers else seller_id,
                    count=count,
                    selected=applied_filters.seller_id == seller_id
                )
                for seller_id, count in _top_counts(state.seller_distribution, top_n)
            ],
            display_priority=3
        ))

    return facets


def _price_range_selected(price_range: dict, applied_filters: ProductFilters) -> bool:
    if applied_filters.min_price is None and applied_filters.max_price is None:
        return False
    min_matches = (applied_filters.min_price or 0) == price_range["min"]
    if applied_filters.max_price is None:
        return min_matches and price_range["max"] == float("inf")
    return min_matches and applied_filters.max_price == price_range["max"]


def calculate_average_price(state: AggregationState) -> float:
    stats = state.price_statistics
    return stats.sum / stats.count if stats.count > 0 else 0.0


def calculate_median_price(prices: Sequence[float]) -> float:
    if not prices:
        return 0.0

    ordered = sorted(prices)
    middle = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return (ordered[middle - 1] + ordered[middle]) / 2
    return ordered[middle]


def calculate_price_percentiles(prices: Sequence[float]) -> Dict[int, float]:
    """Nearest-rank-below percentiles: prices[floor(p/100 * (n - 1))]."""
    if not prices:
        return {}

    ordered = sorted(prices)
    return {
        percentile: ordered[int((percentile / 100) * (len(ordered) - 1))]
        for percentile in PRICE_PERCENTILES
    }


def get_popular_tags(state: AggregationState, limit: int = 10) -> List[TagCount]:
    return [
        TagCount(tag=tag, count=count)
        for tag, count in _top_counts(state.tag_frequency, limit)
    ]
