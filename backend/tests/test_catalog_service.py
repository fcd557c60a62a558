"""
Tests for the catalog store and dataset loader.
"""

import json
import pytest
from pathlib import Path
from pydantic import ValidationError

from app.models.product import Product
from app.services.catalog_loader import load_catalog
from app.services.catalog_service import Catalog
from conftest import NOW, make_product, make_seller, product_fields

DATASET_PATH = Path(__file__).resolve().parents[1] / "data" / "products.json"


class TestCatalogBuild:
    """Test building the catalog from records."""

    def test_counts(self, catalog):
        """Test products and shared records are counted."""
        assert catalog.is_loaded()
        assert catalog.item_count() == 5
        assert set(catalog.sellers()) == {"seller-1", "seller-2"}

    def test_empty_catalog_not_loaded(self):
        """Test a bare catalog reports not loaded."""
        catalog = Catalog()

        assert not catalog.is_loaded()
        assert catalog.item_count() == 0

    def test_sellers_shared_by_id(self, catalog):
        """Test products of one seller resolve to the same record."""
        first = catalog.seller_for(catalog.get_by_id("prod-1"))
        second = catalog.seller_for(catalog.get_by_id("prod-3"))

        assert first is second

    def test_first_seller_occurrence_wins(self):
        """Test later copies of a seller record are ignored."""
        records = [
            make_product("prod-1", seller=make_seller(displayName="Primeira")),
            make_product("prod-2", seller=make_seller(displayName="Segunda"))
        ]
        catalog = Catalog.from_records(records)

        assert catalog.get_seller("seller-1").display_name == "Primeira"

    def test_payment_methods_resolved(self, catalog):
        """Test payment methods resolve in product order."""
        methods = catalog.payment_methods_for(catalog.get_by_id("prod-1"))

        assert [method.id for method in methods] == ["pm-card", "pm-pix"]
        assert catalog.get_payment_method("missing") is None

    def test_duplicate_product_id_rejected(self):
        """Test product ids must be unique."""
        with pytest.raises(ValueError):
            Catalog.from_records([make_product("prod-1"), make_product("prod-1")])

    def test_record_without_seller_rejected(self):
        """Test a record with no seller fails with a ValueError naming the product."""
        record = {key: value for key, value in make_product("prod-9").items() if key != "seller"}

        with pytest.raises(ValueError, match="prod-9 has no seller"):
            Catalog.from_records([make_product("prod-1"), record])

    def test_invalid_record_rejected(self):
        """Test an invalid record fails the whole load."""
        with pytest.raises(ValidationError):
            Catalog.from_records([make_product("prod-1"), make_product("prod-2", price=-5)])


class TestCatalogLookups:
    """Test lookups by id."""

    def test_get_by_id(self, catalog):
        """Test known and unknown ids."""
        assert catalog.get_by_id("prod-2").title == "Caixa de Som"
        assert catalog.get_by_id("missing") is None

    def test_seller_for(self, catalog):
        """Test a product resolves its shared seller record."""
        product = catalog.get_by_id("prod-3")

        assert catalog.seller_for(product) is catalog.get_seller("seller-1")

    def test_seller_for_missing_seller(self):
        """Test a product whose seller is absent raises ValueError."""
        product = Product.model_validate(product_fields(make_product("prod-1")))
        catalog = Catalog(products=[product], sellers={})

        with pytest.raises(ValueError, match="seller-1"):
            catalog.seller_for(product)

    def test_check_availability(self, catalog):
        """Test availability by id."""
        assert catalog.check_availability("prod-1") is True
        assert catalog.check_availability("prod-3") is False
        assert catalog.check_availability("missing") is None

    def test_find_similar(self, catalog):
        """Test similar products exclude the reference product."""
        similar = catalog.find_similar("prod-2", now=NOW)

        # prod-1 shares the category, prod-4 the seller
        assert [product.id for product in similar] == ["prod-1", "prod-4"]
        assert catalog.find_similar("missing") is None


class TestLoader:
    """Test loading dataset files."""

    def test_load_file(self, tmp_path, catalog_records):
        """Test a products file loads into a catalog."""
        path = tmp_path / "products.json"
        path.write_text(json.dumps({"products": catalog_records}), encoding="utf-8")

        catalog = load_catalog(path)

        assert catalog.item_count() == 5
        assert catalog.is_loaded()

    def test_missing_products_key(self, tmp_path):
        """Test files without a products list are rejected."""
        path = tmp_path / "products.json"
        path.write_text(json.dumps({"items": []}), encoding="utf-8")

        with pytest.raises(ValueError):
            load_catalog(path)

    def test_missing_file(self, tmp_path):
        """Test a missing file raises."""
        with pytest.raises(FileNotFoundError):
            load_catalog(tmp_path / "absent.json")

    def test_bundled_dataset(self):
        """Test the bundled sample dataset is valid."""
        catalog = load_catalog(DATASET_PATH)

        assert catalog.item_count() == 4
        assert len(catalog.sellers()) == 2
        assert catalog.get_by_id("prod-001").final_price() == pytest.approx(1799.91)
