from fastapi import Depends, HTTPException, status

from app.core.config import settings
from app.core.database import get_catalog
from app.core.errors import CatalogNotLoadedError
from app.services.catalog_service import Catalog
from app.services.product_query_service import ProductQueryService


async def get_catalog_dep() -> Catalog:
    """
    Dependency to get the loaded catalog.

    Raises:
        HTTPException: If the dataset has not been loaded yet
    """
    catalog = get_catalog()
    if not catalog.is_loaded():
        error = CatalogNotLoadedError("Catalog is not loaded")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=error.to_dict()
        )
    return catalog


async def get_product_query_service(
    catalog: Catalog = Depends(get_catalog_dep)
) -> ProductQueryService:
    """Dependency to get a query service bound to the loaded catalog."""
    return ProductQueryService(catalog, settings)
