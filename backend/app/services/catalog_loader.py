"""Load the product dataset file into a Catalog."""
import json
import logging
from pathlib import Path
from typing import Union

from app.services.catalog_service import Catalog

logger = logging.getLogger(__name__)


def load_catalog(path: Union[str, Path]) -> Catalog:
    """
    Read a `{"products": [...]}` JSON file and build the catalog.

    Args:
        path: Dataset file location

    Returns:
        Loaded Catalog

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not valid JSON or a record is invalid
    """
    data_path = Path(path)
    logger.info(f"Loading catalog from {data_path}")

    with data_path.open(encoding="utf-8") as handle:
        raw_data = json.load(handle)

    if not isinstance(raw_data, dict) or not isinstance(raw_data.get("products"), list):
        raise ValueError(f"Dataset {data_path} must contain a 'products' list")

    return Catalog.from_records(raw_data["products"])
