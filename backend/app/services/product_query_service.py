"""
Product query service - orchestrates catalog listings and lookups.

A listing runs in fixed stages: normalize the query, filter, aggregate over
the filtered set, sort, paginate, then assemble the response envelope.
"""

import logging
import math
import time
from datetime import datetime
from typing import List, Optional

from app.config.catalog_config import RELEVANCE_FALLBACK_FIELD, SORT_OPTIONS
from app.core.config import Settings, settings as default_settings
from app.core.errors import InvalidRangeError
from app.schemas.listing import (
    Aggregations,
    AppliedSort,
    ListProductsQuery,
    NormalizedQuery,
    PaginationMetadata,
    PriceDistribution,
    PriceStatistics,
    ProductFilters,
    ProductListResponse,
    SearchMetadata,
    SortDirection,
    SortField,
    SortingMetadata,
    SortOption
)
from app.schemas.product import (
    PaymentFeesResponse,
    ProductAvailabilityResponse,
    ProductDetailsResponse,
    ProductSummaryResponse
)
from app.services.aggregator import (
    build_aggregation_state,
    calculate_average_price,
    calculate_median_price,
    calculate_price_percentiles,
    generate_facets,
    get_popular_tags
)
from app.services.catalog_service import Catalog
from app.services.paginator import paginate
from app.services.product_filter import apply_filters
from app.services.product_mapper import to_product_details, to_product_summary
from app.services.product_sorter import sort_products
from app.utils.helpers import resolve_now

logger = logging.getLogger(__name__)

MIN_RATING = 0
MAX_RATING = 5


class ProductQueryService:
    """Read-side operations over a loaded catalog."""

    def __init__(self, catalog: Catalog, settings: Optional[Settings] = None):
        self.catalog = catalog
        self.settings = settings or default_settings

    # Validation

    def normalize_query(self, query: ListProductsQuery) -> NormalizedQuery:
        """
        Apply defaults and reject impossible ranges.

        Page defaults to 1 and limit to the default page size; a limit of 0
        also falls back to the default and a limit above the maximum page
        size is clamped to it.

        Raises:
            InvalidRangeError: On a page below 1, a negative limit, a negative
                or inverted price range, or a rating range outside [0, 5]
        """
        self._validate_filters(query.filters)

        pagination = query.pagination
        page = pagination.page if pagination and pagination.page is not None else 1
        limit = pagination.limit if pagination and pagination.limit is not None else 0

        if page < 1:
            self._reject("Page must be 1 or greater", {"page": page})
        if limit < 0:
            self._reject("Limit cannot be negative", {"limit": limit})

        if limit == 0:
            limit = self.settings.DEFAULT_PAGE_SIZE
        limit = min(limit, self.settings.MAX_PAGE_SIZE)

        sorting = query.sorting
        sort_field = sorting.field if sorting else SortField.RELEVANCE
        sort_direction = sorting.direction if sorting else SortDirection.DESC
        resolved_sort_field = (
            RELEVANCE_FALLBACK_FIELD if sort_field == SortField.RELEVANCE else sort_field.value
        )

        return NormalizedQuery(
            filters=query.filters,
            sort_field=sort_field,
            resolved_sort_field=resolved_sort_field,
            sort_direction=sort_direction,
            page=page,
            limit=limit,
            offset=(page - 1) * limit,
            include_facets=query.include_facets,
            include_metadata=query.include_metadata
        )

    def _validate_filters(self, filters: ProductFilters) -> None:
        if filters.min_price is not None and filters.min_price < 0:
            self._reject("Minimum price cannot be negative", {"minPrice": filters.min_price})

        if (
            filters.min_price is not None
            and filters.max_price is not None
            and filters.min_price > filters.max_price
        ):
            self._reject(
                "Minimum price cannot exceed maximum price",
                {"minPrice": filters.min_price, "maxPrice": filters.max_price}
            )

        if filters.rating is not None:
            rating = filters.rating
            if not MIN_RATING <= rating.min <= MAX_RATING:
                self._reject("Rating minimum must be between 0 and 5", {"rating.min": rating.min})
            if rating.max is not None:
                if not MIN_RATING <= rating.max <= MAX_RATING:
                    self._reject("Rating maximum must be between 0 and 5", {"rating.max": rating.max})
                if rating.min > rating.max:
                    self._reject(
                        "Rating minimum cannot exceed rating maximum",
                        {"rating.min": rating.min, "rating.max": rating.max}
                    )

    def _reject(self, message: str, details: dict) -> None:
        logger.warning(f"Rejected product query: {message} {details}")
        raise InvalidRangeError(message, details)

    # Listing

    def execute(self, query: ListProductsQuery, now: Optional[datetime] = None) -> ProductListResponse:
        """
        Run a listing query.

        Args:
            query: Structured listing query
            now: Reference time for discounts and certifications

        Returns:
            ProductListResponse with the requested page, facets and metadata

        Raises:
            InvalidRangeError: If the query fails validation
        """
        started = time.perf_counter()
        now = resolve_now(now)
        normalized = self.normalize_query(query)

        filtered = apply_filters(self.catalog.products, normalized.filters, self.catalog, now)

        state = None
        if normalized.include_facets or normalized.include_metadata:
            state = build_aggregation_state(filtered, now)

        ordered = sort_products(
            filtered,
            normalized.resolved_sort_field,
            normalized.sort_direction.value,
            now
        )
        page = paginate(ordered, normalized.offset, normalized.limit, self.settings.MAX_PAGE_SIZE)

        facets = None
        if normalized.include_facets:
            facets = generate_facets(
                state,
                normalized.filters,
                self.catalog.sellers(),
                self.settings.FACET_TOP_N
            )

        execution_time_ms = (time.perf_counter() - started) * 1000

        metadata = None
        aggregations = None
        if normalized.include_metadata:
            median = calculate_median_price(state.final_prices)
            average = calculate_average_price(state)
            metadata = SearchMetadata(
                total_results=page.total,
                applied_filters=normalized.filters.model_dump(
                    mode="json", by_alias=True, exclude_none=True
                ),
                average_price=average,
                price_distribution=PriceDistribution(
                    min=state.price_statistics.min,
                    max=state.price_statistics.max,
                    median=median,
                    percentiles=calculate_price_percentiles(state.final_prices)
                ),
                popular_tags=get_popular_tags(state, self.settings.POPULAR_TAGS_LIMIT),
                execution_time_ms=execution_time_ms
            )
            aggregations = Aggregations(
                category_distribution=state.category_distribution,
                seller_distribution=state.seller_distribution,
                price_statistics=PriceStatistics(
                    min=state.price_statistics.min,
                    max=state.price_statistics.max,
                    average=average,
                    median=median
                ),
                availability_metrics=state.availability_metrics
            )

        self._log_query_performance(normalized, page.total, execution_time_ms)

        return ProductListResponse(
            items=[to_product_summary(product, self.catalog, now) for product in page.items],
            pagination=PaginationMetadata(
                total=page.total,
                page=normalized.page,
                limit=page.limit,
                offset=page.offset,
                total_pages=math.ceil(page.total / page.limit),
                has_next=page.has_next,
                has_previous=page.has_previous
            ),
            facets=facets,
            metadata=metadata,
            sorting=SortingMetadata(
                applied=AppliedSort(
                    field=normalized.sort_field.value,
                    direction=normalized.sort_direction.value,
                    resolved_field=normalized.resolved_sort_field
                ),
                available=[SortOption(**option) for option in SORT_OPTIONS]
            ),
            aggregations=aggregations
        )

    def _log_query_performance(self, query: NormalizedQuery, total: int, execution_time_ms: float) -> None:
        if execution_time_ms > self.settings.VERY_SLOW_QUERY_THRESHOLD_MS:
            logger.warning(
                f"Very slow product query: {execution_time_ms:.1f}ms, {total} results, "
                f"sort={query.resolved_sort_field} page={query.page} limit={query.limit}"
            )
        elif execution_time_ms > self.settings.SLOW_QUERY_THRESHOLD_MS:
            logger.info(
                f"Slow product query: {execution_time_ms:.1f}ms, {total} results, "
                f"sort={query.resolved_sort_field} page={query.page} limit={query.limit}"
            )

    # Lookups

    def get_product_details(
        self,
        product_id: str,
        include_inactive: bool = False,
        calculate_installments: bool = True,
        now: Optional[datetime] = None
    ) -> Optional[ProductDetailsResponse]:
        """
        Get the details projection of a product.

        Returns:
            ProductDetailsResponse, or None when the product does not exist or
            is inactive and `include_inactive` is False
        """
        product = self.catalog.get_by_id(product_id)
        if product is None:
            return None
        if not product.is_active and not include_inactive:
            return None

        return to_product_details(product, self.catalog, calculate_installments, now)

    def get_similar_products(
        self,
        product_id: str,
        limit: Optional[int] = None,
        now: Optional[datetime] = None
    ) -> Optional[List[ProductSummaryResponse]]:
        now = resolve_now(now)
        limit = limit if limit is not None else self.settings.SIMILAR_PRODUCTS_LIMIT
        similar = self.catalog.find_similar(product_id, limit, now)
        if similar is None:
            return None
        return [to_product_summary(product, self.catalog, now) for product in similar]

    def check_availability(self, product_id: str) -> Optional[ProductAvailabilityResponse]:
        product = self.catalog.get_by_id(product_id)
        if product is None:
            return None

        return ProductAvailabilityResponse(
            product_id=product.id,
            is_available=product.is_available(),
            stock_level=product.stock_level().value,
            availability_text=product.availability_text()
        )

    def calculate_payment_fees(
        self,
        product_id: str,
        payment_method_id: str,
        amount: Optional[float] = None,
        now: Optional[datetime] = None
    ) -> Optional[PaymentFeesResponse]:
        """
        Calculate transaction fees for paying a product with one of its methods.

        Args:
            product_id: Product identifier
            payment_method_id: Payment method accepted by the product
            amount: Amount to charge; defaults to the product's final price

        Returns:
            PaymentFeesResponse, or None when the product does not exist or
            does not accept the payment method

        Raises:
            AmountOutOfLimitsError: If the amount is outside the method's limits
        """
        product = self.catalog.get_by_id(product_id)
        if product is None or payment_method_id not in product.payment_method_ids:
            return None

        payment_method = self.catalog.get_payment_method(payment_method_id)
        if payment_method is None:
            return None

        if amount is None:
            amount = product.final_price(now)

        return PaymentFeesResponse(
            product_id=product.id,
            payment_method_id=payment_method.id,
            amount=amount,
            currency=payment_method.currency.value,
            fees=payment_method.calculate_transaction_fees(amount)
        )
