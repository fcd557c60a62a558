"""
In-memory catalog store.

Sellers and payment methods are parsed once into their own id-keyed
collections; products keep only their ids and resolve them through the
catalog. Nothing is mutated after load, so concurrent readers need no locking.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from app.models.payment_method import PaymentMethod
from app.models.product import Product
from app.models.seller import Seller

logger = logging.getLogger(__name__)


class Catalog:
    """Read-only product catalog with shared seller and payment method records."""

    def __init__(
        self,
        products: Sequence[Product] = (),
        sellers: Optional[Mapping[str, Seller]] = None,
        payment_methods: Optional[Mapping[str, PaymentMethod]] = None,
        loaded: bool = False
    ):
        self._products = tuple(products)
        self._products_by_id = {product.id: product for product in self._products}
        self._sellers = dict(sellers or {})
        self._payment_methods = dict(payment_methods or {})
        self._loaded = loaded

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]]) -> "Catalog":
        """
        Build a catalog from parsed product records.

        Each record embeds its seller and payment methods as in the dataset
        file. Sellers and payment methods are deduplicated by id (first
        occurrence wins), then every product is built with references to them.

        Args:
            records: Product dictionaries with camelCase keys

        Returns:
            Loaded Catalog

        Raises:
            pydantic.ValidationError: If any record breaks an entity invariant
            ValueError: If a record has no seller or product ids are not unique
        """
        records = list(records)
        sellers: Dict[str, Seller] = {}
        payment_methods: Dict[str, PaymentMethod] = {}

        # First pass: shared records
        for record in records:
            raw_seller = record.get("seller")
            if not isinstance(raw_seller, Mapping) or "id" not in raw_seller:
                raise ValueError(f"Product record {record.get('id')} has no seller")
            if raw_seller["id"] not in sellers:
                sellers[raw_seller["id"]] = Seller.model_validate(raw_seller)

            for raw_method in record.get("paymentMethods", []):
                if raw_method["id"] not in payment_methods:
                    payment_methods[raw_method["id"]] = PaymentMethod.model_validate(raw_method)

        # Second pass: products referencing shared records by id
        products = []
        seen_ids = set()
        for record in records:
            product_data = {
                key: value
                for key, value in record.items()
                if key not in ("seller", "paymentMethods")
            }
            product_data["sellerId"] = record["seller"]["id"]
            product_data["paymentMethodIds"] = [
                raw_method["id"] for raw_method in record.get("paymentMethods", [])
            ]

            product = Product.model_validate(product_data)
            if product.id in seen_ids:
                raise ValueError(f"Duplicate product id: {product.id}")
            seen_ids.add(product.id)
            products.append(product)

        logger.info(
            f"Catalog built: {len(products)} products, {len(sellers)} sellers, "
            f"{len(payment_methods)} payment methods"
        )

        return cls(products, sellers, payment_methods, loaded=True)

    # Health

    def is_loaded(self) -> bool:
        return self._loaded

    def item_count(self) -> int:
        return len(self._products)

    # Lookups

    @property
    def products(self) -> Sequence[Product]:
        return self._products

    def get_by_id(self, product_id: str) -> Optional[Product]:
        """Get a product by id, or None when absent."""
        return self._products_by_id.get(product_id)

    def get_seller(self, seller_id: str) -> Optional[Seller]:
        return self._sellers.get(seller_id)

    def seller_for(self, product: Product) -> Seller:
        """
        Resolve a product's seller.

        Raises:
            ValueError: If the seller is not in the catalog
        """
        seller = self.get_seller(product.seller_id)
        if seller is None:
            raise ValueError(f"Seller {product.seller_id} of product {product.id} is not in the catalog")
        return seller

    def get_payment_method(self, payment_method_id: str) -> Optional[PaymentMethod]:
        return self._payment_methods.get(payment_method_id)

    def payment_methods_for(self, product: Product) -> List[PaymentMethod]:
        return [
            self._payment_methods[payment_method_id]
            for payment_method_id in product.payment_method_ids
        ]

    def sellers(self) -> Mapping[str, Seller]:
        return dict(self._sellers)

    def check_availability(self, product_id: str) -> Optional[bool]:
        """Availability of a product, or None when the product is unknown."""
        product = self.get_by_id(product_id)
        if product is None:
            return None
        return product.is_available()

    def find_similar(
        self,
        product_id: str,
        limit: int = 20,
        now: Optional[datetime] = None
    ) -> Optional[List[Product]]:
        """
        Find products similar to a reference product.

        A product is similar when it shares the category or the seller, or
        when its final price is within 50% of the reference final price.

        Returns:
            Up to `limit` similar products in catalog order, or None when the
            reference product does not exist
        """
        base = self.get_by_id(product_id)
        if base is None:
            return None

        base_price = base.final_price(now)
        similar = []
        for product in self._products:
            if product.id == base.id:
                continue

            same_category = product.category == base.category
            same_seller = product.seller_id == base.seller_id
            similar_price = (
                base_price > 0
                and abs(product.final_price(now) - base_price) / base_price < 0.5
            )

            if same_category or similar_price or same_seller:
                similar.append(product)
                if len(similar) >= limit:
                    break

        return similar
