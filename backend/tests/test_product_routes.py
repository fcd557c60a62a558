"""
Tests for product endpoints.

Handlers are called directly with their dependencies, so every query
parameter is passed explicitly.
"""
import inspect
import pytest
from fastapi import HTTPException

from app.api.deps import get_catalog_dep, get_product_query_service
from app.api.routes.products import (
    build_listing_query,
    get_payment_fees,
    get_product,
    get_product_availability,
    get_similar_products,
    list_products
)
from app.core.config import Settings
from app.core.database import get_catalog, set_catalog
from app.main import health_check
from app.schemas.listing import ProductListResponse, SortDirection, SortField
from app.services.catalog_service import Catalog
from app.services.product_query_service import ProductQueryService

LISTING_DEFAULTS = {
    name: parameter.default
    for name, parameter in inspect.signature(build_listing_query).parameters.items()
}


@pytest.fixture
def service(catalog):
    return ProductQueryService(catalog, Settings())


@pytest.fixture
def installed_catalog(catalog):
    previous = get_catalog()
    set_catalog(catalog)
    yield catalog
    set_catalog(previous)


class TestBuildListingQuery:
    """Test mapping query string parameters to a listing query."""

    def test_defaults(self):
        """Test no parameters gives an unconstrained query."""
        query = build_listing_query()

        assert query.filters.rating is None
        assert query.filters.seller is None
        assert query.sorting.field == SortField.RELEVANCE
        assert query.sorting.direction == SortDirection.DESC
        assert query.include_metadata

    def test_tags_split(self):
        """Test comma-separated tags are split and trimmed."""
        assert build_listing_query(tags="audio, bluetooth,,").filters.tags == ["audio", "bluetooth"]
        assert build_listing_query(tags=" , ").filters.tags is None

    def test_nested_groups(self):
        """Test grouped parameters build nested filters."""
        query = build_listing_query(
            max_rating=4.0,
            verified=True,
            city="Porto Alegre",
            free_shipping_only=True
        )

        assert query.filters.rating.min == 0
        assert query.filters.rating.max == 4.0
        assert query.filters.seller.verified is True
        assert query.filters.location.city == "Porto Alegre"
        assert query.filters.shipping.free_shipping_only is True


class TestListProducts:
    """Test the listing endpoint."""

    @pytest.mark.asyncio
    async def test_list_products(self, service):
        """Test listing with a category filter."""
        params = dict(LISTING_DEFAULTS, category="electronics", include_facets=True)

        result = await list_products(**params, service=service)

        assert isinstance(result, ProductListResponse)
        assert result.pagination.total == 2
        assert result.facets is not None

    @pytest.mark.asyncio
    async def test_oversized_limit_clamped(self, service):
        """Test limit 500 is served as 100."""
        result = await list_products(**dict(LISTING_DEFAULTS, limit=500), service=service)

        assert result.pagination.limit == 100

    @pytest.mark.asyncio
    async def test_invalid_range_is_400(self, service):
        """Test inverted price bounds are rejected with 400."""
        params = dict(LISTING_DEFAULTS, min_price=100.0, max_price=10.0)

        with pytest.raises(HTTPException) as exc_info:
            await list_products(**params, service=service)

        assert exc_info.value.status_code == 400
        assert exc_info.value.detail["code"] == "INVALID_RANGE"


class TestProductLookups:
    """Test single-product endpoints."""

    @pytest.mark.asyncio
    async def test_get_product(self, service):
        """Test details of an active product."""
        result = await get_product("prod-1", include_inactive=False, calculate_installments=True, service=service)

        assert result.id == "prod-1"
        assert result.payment_methods

    @pytest.mark.asyncio
    async def test_get_product_not_found(self, service):
        """Test unknown and inactive products are 404."""
        for product_id in ("missing", "prod-5"):
            with pytest.raises(HTTPException) as exc_info:
                await get_product(product_id, include_inactive=False, calculate_installments=True, service=service)
            assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_similar_products(self, service):
        """Test similar products endpoint."""
        result = await get_similar_products("prod-2", limit=20, service=service)

        assert [item.id for item in result] == ["prod-1", "prod-4"]

        with pytest.raises(HTTPException) as exc_info:
            await get_similar_products("missing", limit=20, service=service)
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_similar_products_default_limit(self, catalog):
        """Test the endpoint leaves the default limit to SIMILAR_PRODUCTS_LIMIT."""
        service = ProductQueryService(catalog, Settings(SIMILAR_PRODUCTS_LIMIT=1))

        result = await get_similar_products("prod-2", limit=None, service=service)

        assert [item.id for item in result] == ["prod-1"]

    @pytest.mark.asyncio
    async def test_availability(self, service):
        """Test availability endpoint."""
        result = await get_product_availability("prod-1", service=service)

        assert result.is_available
        assert result.availability_text == "Produto disponível"

    @pytest.mark.asyncio
    async def test_payment_fees(self, service):
        """Test fee endpoint with an explicit amount."""
        result = await get_payment_fees("prod-1", "pm-card", amount=100.0, service=service)

        assert result.fees.total_fees == pytest.approx(5.38)

    @pytest.mark.asyncio
    async def test_payment_fees_out_of_limits_is_422(self, service):
        """Test out-of-limit amounts are rejected with 422."""
        with pytest.raises(HTTPException) as exc_info:
            await get_payment_fees("prod-1", "pm-card", amount=60000.0, service=service)

        assert exc_info.value.status_code == 422
        assert exc_info.value.detail["code"] == "AMOUNT_OUT_OF_LIMITS"

    @pytest.mark.asyncio
    async def test_payment_fees_unknown_method_is_404(self, service):
        """Test a method the product does not accept is 404."""
        with pytest.raises(HTTPException) as exc_info:
            await get_payment_fees("prod-2", "pm-card", amount=None, service=service)

        assert exc_info.value.status_code == 404


class TestDependencies:
    """Test catalog dependencies and health."""

    @pytest.mark.asyncio
    async def test_catalog_not_loaded_is_503(self):
        """Test requests before load are rejected with 503."""
        previous = get_catalog()
        set_catalog(Catalog())
        try:
            with pytest.raises(HTTPException) as exc_info:
                await get_catalog_dep()
        finally:
            set_catalog(previous)

        assert exc_info.value.status_code == 503
        assert exc_info.value.detail["code"] == "CATALOG_NOT_LOADED"

    @pytest.mark.asyncio
    async def test_query_service_dependency(self, installed_catalog):
        """Test the service dependency binds the loaded catalog."""
        catalog = await get_catalog_dep()
        service = await get_product_query_service(catalog=catalog)

        assert service.catalog is installed_catalog

    @pytest.mark.asyncio
    async def test_health_reports_catalog(self, installed_catalog):
        """Test health reports load state and item count."""
        result = await health_check()

        assert result["status"] == "healthy"
        assert result["catalogLoaded"] is True
        assert result["itemCount"] == 5
