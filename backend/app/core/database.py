import logging

from app.core.config import settings
from app.services.catalog_loader import load_catalog
from app.services.catalog_service import Catalog

logger = logging.getLogger(__name__)

# Global catalog, replaced wholesale on load
_catalog: Catalog = Catalog()


async def connect_to_catalog():
    """Load the product dataset."""
    global _catalog
    _catalog = load_catalog(settings.CATALOG_DATA_PATH)
    logger.info(f"Loaded catalog: {_catalog.item_count()} products")


async def close_catalog():
    """Release the loaded catalog."""
    global _catalog
    _catalog = Catalog()
    logger.info("Released catalog")


def set_catalog(catalog: Catalog):
    """Install an already built catalog."""
    global _catalog
    _catalog = catalog


def get_catalog() -> Catalog:
    """Get the loaded catalog instance."""
    return _catalog
