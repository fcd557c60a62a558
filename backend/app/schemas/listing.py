"""Listing schemas: the structured query and the result envelope."""

from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from app.models.product import ConditionType
from app.schemas.product import ApiSchema, ProductSummaryResponse


class SortField(str, Enum):
    """Sortable fields exposed to clients."""
    PRICE = "price"
    RATING = "rating"
    CREATED_AT = "createdAt"
    TITLE = "title"
    POPULARITY = "popularity"
    RELEVANCE = "relevance"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class QuerySchema(BaseModel):
    """Query input: camelCase keys, unknown keys rejected."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        extra = "forbid"


class RatingFilter(QuerySchema):
    min: float
    max: Optional[float] = None


class SellerFilter(QuerySchema):
    verified: Optional[bool] = None
    premium: Optional[bool] = None
    min_rating: Optional[float] = None


class LocationFilter(QuerySchema):
    country: Optional[str] = None
    state: Optional[str] = None
    city: Optional[str] = None


class ShippingFilter(QuerySchema):
    free_shipping_only: Optional[bool] = None


class ProductFilters(QuerySchema):
    """Filter predicates, AND-combined. Unset fields impose no constraint."""
    category: Optional[str] = None
    subcategory: Optional[str] = None
    seller_id: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    condition: Optional[ConditionType] = None
    is_active: Optional[bool] = None
    has_discount: Optional[bool] = None
    in_stock: Optional[bool] = None
    tags: Optional[List[str]] = None
    rating: Optional[RatingFilter] = None
    search: Optional[str] = None
    seller: Optional[SellerFilter] = None
    location: Optional[LocationFilter] = None
    shipping: Optional[ShippingFilter] = None


class ProductSorting(QuerySchema):
    field: SortField = SortField.RELEVANCE
    direction: SortDirection = SortDirection.DESC


class PaginationParams(QuerySchema):
    page: Optional[int] = None
    limit: Optional[int] = None


class ListProductsQuery(QuerySchema):
    """
    Structured listing query.

    Example:
        {
            "filters": {"category": "electronics", "minPrice": 100},
            "sorting": {"field": "price", "direction": "asc"},
            "pagination": {"page": 1, "limit": 20},
            "includeFacets": true
        }
    """
    filters: ProductFilters = Field(default_factory=ProductFilters)
    sorting: Optional[ProductSorting] = None
    pagination: Optional[PaginationParams] = None
    include_facets: bool = False
    include_metadata: bool = True


class NormalizedQuery(BaseModel):
    """Query after defaults and clamping have been applied."""
    filters: ProductFilters
    sort_field: SortField
    resolved_sort_field: str
    sort_direction: SortDirection
    page: int
    limit: int
    offset: int
    include_facets: bool
    include_metadata: bool


# Result envelope

class PaginationMetadata(ApiSchema):
    total: int
    page: int
    limit: int
    offset: int
    total_pages: int
    has_next: bool
    has_previous: bool


class FacetValue(ApiSchema):
    value: str
    label: str
    count: int
    selected: bool = False


class ProductFacet(ApiSchema):
    key: str
    label: str
    type: str  # "categorical" or "range"
    values: List[FacetValue]
    display_priority: int


class PriceDistribution(ApiSchema):
    min: float
    max: float
    median: float
    percentiles: Dict[int, float]


class TagCount(ApiSchema):
    tag: str
    count: int


class SearchMetadata(ApiSchema):
    total_results: int
    applied_filters: Dict[str, Any]
    average_price: float
    price_distribution: PriceDistribution
    popular_tags: List[TagCount]
    execution_time_ms: float


class PriceStatistics(ApiSchema):
    min: float
    max: float
    average: float
    median: float


class AvailabilityMetrics(ApiSchema):
    in_stock: int = 0
    low_stock: int = 0
    out_of_stock: int = 0
    with_discount: int = 0


class Aggregations(ApiSchema):
    category_distribution: Dict[str, int]
    seller_distribution: Dict[str, int]
    price_statistics: PriceStatistics
    availability_metrics: AvailabilityMetrics


class SortOption(ApiSchema):
    key: str
    label: str
    field: str
    direction: str
    description: str


class AppliedSort(ApiSchema):
    field: str
    direction: str
    resolved_field: str


class SortingMetadata(ApiSchema):
    applied: AppliedSort
    available: List[SortOption]


class ProductListResponse(ApiSchema):
    items: List[ProductSummaryResponse]
    pagination: PaginationMetadata
    facets: Optional[List[ProductFacet]] = None
    metadata: Optional[SearchMetadata] = None
    sorting: SortingMetadata
    aggregations: Optional[Aggregations] = None
