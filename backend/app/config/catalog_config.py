"""
Static catalog configuration: price range buckets, sort presets and
statistics settings used when building listing responses.
"""

import math
from typing import Any, Dict, List, Optional


# Price range buckets for the price facet, upper bound exclusive
PRICE_RANGES: List[Dict[str, Any]] = [
    {"min": 0, "max": 50, "label": "Até R$ 50"},
    {"min": 50, "max": 100, "label": "R$ 50 a R$ 100"},
    {"min": 100, "max": 500, "label": "R$ 100 a R$ 500"},
    {"min": 500, "max": 1000, "label": "R$ 500 a R$ 1.000"},
    {"min": 1000, "max": math.inf, "label": "Mais de R$ 1.000"},
]

# Percentiles reported in the price distribution
PRICE_PERCENTILES: List[int] = [25, 50, 75, 90, 95]

# Sort presets advertised to clients
SORT_OPTIONS: List[Dict[str, str]] = [
    {
        "key": "relevance",
        "label": "Mais relevantes",
        "field": "relevance",
        "direction": "desc",
        "description": "Ordenação por relevância"
    },
    {
        "key": "price_asc",
        "label": "Menor preço",
        "field": "price",
        "direction": "asc",
        "description": "Produtos mais baratos primeiro"
    },
    {
        "key": "price_desc",
        "label": "Maior preço",
        "field": "price",
        "direction": "desc",
        "description": "Produtos mais caros primeiro"
    },
    {
        "key": "rating",
        "label": "Melhor avaliação",
        "field": "rating",
        "direction": "desc",
        "description": "Melhores avaliações primeiro"
    },
    {
        "key": "newest",
        "label": "Mais recentes",
        "field": "createdAt",
        "direction": "desc",
        "description": "Produtos mais novos primeiro"
    },
    {
        "key": "popularity",
        "label": "Mais populares",
        "field": "popularity",
        "direction": "desc",
        "description": "Produtos mais avaliados primeiro"
    },
]

# "relevance" has no scoring of its own and is served as newest-first
RELEVANCE_FALLBACK_FIELD = "createdAt"


def price_range_key(price_range: Dict[str, Any]) -> str:
    """Facet value for a price range, e.g. "50-100" or "1000-inf"."""
    upper = "inf" if math.isinf(price_range["max"]) else f"{price_range['max']:g}"
    return f"{price_range['min']:g}-{upper}"


def find_price_range(price: float) -> Optional[Dict[str, Any]]:
    """
    Get the price range bucket containing a price.

    Args:
        price: Final product price

    Returns:
        Price range dictionary, or None for negative prices
    """
    for price_range in PRICE_RANGES:
        if price_range["min"] <= price < price_range["max"]:
            return price_range
    return None
