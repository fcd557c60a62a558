import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query

from app.api.deps import get_product_query_service
from app.core.errors import AmountOutOfLimitsError, InvalidRangeError
from app.models.product import ConditionType
from app.schemas.listing import (
    ListProductsQuery,
    LocationFilter,
    PaginationParams,
    ProductFilters,
    ProductListResponse,
    ProductSorting,
    RatingFilter,
    SellerFilter,
    ShippingFilter,
    SortDirection,
    SortField
)
from app.schemas.product import (
    PaymentFeesResponse,
    ProductAvailabilityResponse,
    ProductDetailsResponse,
    ProductSummaryResponse
)
from app.services.product_query_service import ProductQueryService

logger = logging.getLogger(__name__)

router = APIRouter()


def _split_tags(tags: Optional[str]) -> Optional[List[str]]:
    if tags is None:
        return None
    values = [tag.strip() for tag in tags.split(",") if tag.strip()]
    return values or None


def build_listing_query(
    category: Optional[str] = None,
    subcategory: Optional[str] = None,
    seller_id: Optional[str] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    condition: Optional[ConditionType] = None,
    is_active: Optional[bool] = None,
    has_discount: Optional[bool] = None,
    in_stock: Optional[bool] = None,
    tags: Optional[str] = None,
    min_rating: Optional[float] = None,
    max_rating: Optional[float] = None,
    search: Optional[str] = None,
    verified: Optional[bool] = None,
    premium: Optional[bool] = None,
    seller_min_rating: Optional[float] = None,
    country: Optional[str] = None,
    state: Optional[str] = None,
    city: Optional[str] = None,
    free_shipping_only: Optional[bool] = None,
    sort_by: SortField = SortField.RELEVANCE,
    sort_direction: SortDirection = SortDirection.DESC,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    include_facets: bool = False,
    include_metadata: bool = True
) -> ListProductsQuery:
    """
    Map flat query string parameters onto a structured listing query.

    Nested filter groups are only set when one of their parameters is given.
    A lone maxRating is applied with a rating minimum of 0.
    """
    rating = None
    if min_rating is not None or max_rating is not None:
        rating = RatingFilter(min=min_rating if min_rating is not None else 0, max=max_rating)

    seller = None
    if verified is not None or premium is not None or seller_min_rating is not None:
        seller = SellerFilter(verified=verified, premium=premium, min_rating=seller_min_rating)

    location = None
    if country or state or city:
        location = LocationFilter(country=country, state=state, city=city)

    shipping = None
    if free_shipping_only is not None:
        shipping = ShippingFilter(free_shipping_only=free_shipping_only)

    filters = ProductFilters(
        category=category,
        subcategory=subcategory,
        seller_id=seller_id,
        min_price=min_price,
        max_price=max_price,
        condition=condition,
        is_active=is_active,
        has_discount=has_discount,
        in_stock=in_stock,
        tags=_split_tags(tags),
        rating=rating,
        search=search,
        seller=seller,
        location=location,
        shipping=shipping
    )

    return ListProductsQuery(
        filters=filters,
        sorting=ProductSorting(field=sort_by, direction=sort_direction),
        pagination=PaginationParams(page=page, limit=limit),
        include_facets=include_facets,
        include_metadata=include_metadata
    )


@router.get("", response_model=ProductListResponse, response_model_by_alias=True)
async def list_products(
    category: Optional[str] = None,
    subcategory: Optional[str] = None,
    seller_id: Optional[str] = Query(None, alias="sellerId"),
    min_price: Optional[float] = Query(None, alias="minPrice"),
    max_price: Optional[float] = Query(None, alias="maxPrice"),
    condition: Optional[ConditionType] = None,
    is_active: Optional[bool] = Query(None, alias="isActive"),
    has_discount: Optional[bool] = Query(None, alias="hasDiscount"),
    in_stock: Optional[bool] = Query(None, alias="inStock"),
    tags: Optional[str] = Query(None, description="Comma-separated tags, any must match"),
    min_rating: Optional[float] = Query(None, alias="minRating"),
    max_rating: Optional[float] = Query(None, alias="maxRating"),
    search: Optional[str] = None,
    verified: Optional[bool] = None,
    premium: Optional[bool] = None,
    seller_min_rating: Optional[float] = Query(None, alias="sellerMinRating"),
    country: Optional[str] = None,
    state: Optional[str] = None,
    city: Optional[str] = None,
    free_shipping_only: Optional[bool] = Query(None, alias="freeShippingOnly"),
    sort_by: SortField = Query(SortField.RELEVANCE, alias="sortBy"),
    sort_direction: SortDirection = Query(SortDirection.DESC, alias="sortDirection"),
    page: Optional[int] = None,
    limit: Optional[int] = None,
    include_facets: bool = Query(False, alias="includeFacets"),
    include_metadata: bool = Query(True, alias="includeMetadata"),
    service: ProductQueryService = Depends(get_product_query_service)
):
    """
    List products with filters, sorting and pagination.

    Oversized limits are clamped to the maximum page size. Invalid ranges
    (negative or inverted prices, ratings outside 0-5, page below 1) are
    rejected with 400.
    """
    query = build_listing_query(
        category=category,
        subcategory=subcategory,
        seller_id=seller_id,
        min_price=min_price,
        max_price=max_price,
        condition=condition,
        is_active=is_active,
        has_discount=has_discount,
        in_stock=in_stock,
        tags=tags,
        min_rating=min_rating,
        max_rating=max_rating,
        search=search,
        verified=verified,
        premium=premium,
        seller_min_rating=seller_min_rating,
        country=country,
        state=state,
        city=city,
        free_shipping_only=free_shipping_only,
        sort_by=sort_by,
        sort_direction=sort_direction,
        page=page,
        limit=limit,
        include_facets=include_facets,
        include_metadata=include_metadata
    )

    try:
        return service.execute(query)
    except InvalidRangeError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=e.to_dict()
        )


@router.get("/{product_id}", response_model=ProductDetailsResponse, response_model_by_alias=True)
async def get_product(
    product_id: str,
    include_inactive: bool = Query(False, alias="includeInactive"),
    calculate_installments: bool = Query(True, alias="calculateInstallments"),
    service: ProductQueryService = Depends(get_product_query_service)
):
    """Get product details with seller, payment methods and installments."""
    product = service.get_product_details(
        product_id,
        include_inactive=include_inactive,
        calculate_installments=calculate_installments
    )

    if not product:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found"
        )

    return product


@router.get(
    "/{product_id}/similar",
    response_model=List[ProductSummaryResponse],
    response_model_by_alias=True
)
async def get_similar_products(
    product_id: str,
    limit: Optional[int] = Query(None, ge=1, le=100),
    service: ProductQueryService = Depends(get_product_query_service)
):
    """Get products sharing the category or seller, or close in price."""
    similar = service.get_similar_products(product_id, limit)

    if similar is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found"
        )

    return similar


@router.get(
    "/{product_id}/availability",
    response_model=ProductAvailabilityResponse,
    response_model_by_alias=True
)
async def get_product_availability(
    product_id: str,
    service: ProductQueryService = Depends(get_product_query_service)
):
    """Get product availability and stock level."""
    availability = service.check_availability(product_id)

    if not availability:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found"
        )

    return availability


@router.get(
    "/{product_id}/payment-methods/{payment_method_id}/fees",
    response_model=PaymentFeesResponse,
    response_model_by_alias=True
)
async def get_payment_fees(
    product_id: str,
    payment_method_id: str,
    amount: Optional[float] = Query(None, gt=0),
    service: ProductQueryService = Depends(get_product_query_service)
):
    """
    Calculate transaction fees for a product and payment method.

    The amount defaults to the product's final price.
    """
    try:
        fees = service.calculate_payment_fees(product_id, payment_method_id, amount)
    except AmountOutOfLimitsError as e:
        logger.info(f"Fee calculation rejected for product {product_id}: {e.message}")
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.to_dict()
        )

    if not fees:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product or payment method not found"
        )

    return fees
