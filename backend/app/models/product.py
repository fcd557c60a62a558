from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from app.models.seller import Seller
from app.utils.helpers import (
    UtcDatetime,
    format_price,
    get_current_timestamp,
    resolve_now,
    slugify
)


class CatalogModel(BaseModel):
    """Base for dataset records: camelCase on the wire, immutable once loaded."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        frozen = True


class ConditionType(str, Enum):
    """Product condition enumeration."""
    NEW = "new"
    USED = "used"
    REFURBISHED = "refurbished"


class StockLevel(str, Enum):
    """Stock level classification."""
    OUT_OF_STOCK = "out_of_stock"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


AVAILABILITY_TEXTS = {
    StockLevel.OUT_OF_STOCK: "Produto indisponível",
    StockLevel.MEDIUM: "Estoque limitado",
    StockLevel.HIGH: "Produto disponível",
}


class ProductImage(CatalogModel):
    id: str
    url: str
    alt_text: str = ""
    is_primary: bool = False
    order: int = 0


class ProductRating(CatalogModel):
    average: float = Field(ge=0, le=5)
    count: int = Field(ge=0)
    distribution: Dict[int, int] = Field(default_factory=dict)

    @field_validator("distribution")
    @classmethod
    def fill_missing_stars(cls, value: Dict[int, int]) -> Dict[int, int]:
        return {star: value.get(star, 0) for star in range(1, 6)}


class ProductSpecification(CatalogModel):
    name: str
    value: str
    category: str = ""


class ProductCondition(CatalogModel):
    type: ConditionType
    description: Optional[str] = None


class ProductStock(CatalogModel):
    available: int = Field(ge=0)
    reserved: int = Field(default=0, ge=0)
    threshold: int = Field(default=0, ge=0)  # Minimum level for availability


class ProductDimensions(CatalogModel):
    weight: float = 0
    height: float = 0
    width: float = 0
    depth: float = 0
    unit: str = Field(default="cm", pattern="^(cm|in)$")


class ProductDiscount(CatalogModel):
    percentage: float = Field(default=0, ge=0, le=100)
    amount: float = Field(default=0, ge=0)
    valid_until: Optional[UtcDatetime] = None
    condition: Optional[str] = None

    @model_validator(mode="after")
    def check_not_expired(self) -> "ProductDiscount":
        if self.valid_until is not None and self.valid_until < get_current_timestamp():
            raise ValueError("Discount cannot be valid in the past")
        return self

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        """A discount is valid while it has no expiry or the expiry is ahead."""
        return self.valid_until is None or self.valid_until > resolve_now(now)


class Product(CatalogModel):
    """
    Product record.

    The seller and payment methods are referenced by id; the catalog store
    resolves them.
    """
    id: str
    title: str
    description: str = ""
    short_description: str = ""
    price: float = Field(gt=0)
    currency: str = Field(min_length=3, max_length=3)
    images: List[ProductImage] = Field(min_length=1)
    category: str
    subcategory: str = ""
    condition: ProductCondition
    seller_id: str
    payment_method_ids: List[str] = Field(default_factory=list)
    rating: ProductRating
    specifications: List[ProductSpecification] = Field(default_factory=list)
    stock: ProductStock
    dimensions: ProductDimensions = Field(default_factory=ProductDimensions)
    tags: List[str] = Field(default_factory=list)
    created_at: UtcDatetime
    updated_at: UtcDatetime
    is_active: bool = True
    discount: Optional[ProductDiscount] = None

    @model_validator(mode="after")
    def check_single_primary_image(self) -> "Product":
        primary_count = sum(1 for image in self.images if image.is_primary)
        if primary_count != 1:
            raise ValueError("Product must have exactly one primary image")
        return self

    # Pricing

    def final_price(self, now: Optional[datetime] = None) -> float:
        """List price after any valid discount, never below zero."""
        if self.discount is None or not self.discount.is_valid(now):
            return self.price

        if self.discount.percentage > 0:
            discount_amount = self.price * (self.discount.percentage / 100)
        else:
            discount_amount = self.discount.amount

        return max(0.0, self.price - discount_amount)

    def savings_amount(self, now: Optional[datetime] = None) -> float:
        return self.price - self.final_price(now)

    def has_active_discount(self, now: Optional[datetime] = None) -> bool:
        return self.discount is not None and self.savings_amount(now) > 0

    def formatted_price(self, now: Optional[datetime] = None) -> str:
        return format_price(self.final_price(now), self.currency)

    def has_eligible_free_shipping(self, seller: Seller, now: Optional[datetime] = None) -> bool:
        """Free shipping applies when the seller offers it and the final price reaches the minimum."""
        policy = seller.shipping_policy
        return policy.has_free_shipping and self.final_price(now) >= policy.free_shipping_minimum

    # Availability

    def is_available(self) -> bool:
        return (
            self.is_active
            and self.stock.available > 0
            and self.stock.available > self.stock.threshold
        )

    def stock_level(self) -> StockLevel:
        available = self.stock.available

        if not self.is_available() or available == 0:
            return StockLevel.OUT_OF_STOCK
        if available <= self.stock.threshold:
            return StockLevel.LOW
        if available <= self.stock.threshold * 3:
            return StockLevel.MEDIUM
        return StockLevel.HIGH

    def availability_text(self) -> str:
        level = self.stock_level()
        if level == StockLevel.LOW:
            return f"Últimas {self.stock.available} unidades"
        return AVAILABILITY_TEXTS[level]

    # Presentation

    def primary_image(self) -> ProductImage:
        return next(image for image in self.images if image.is_primary)

    def ordered_images(self) -> List[ProductImage]:
        return sorted(self.images, key=lambda image: image.order)

    def seo_slug(self) -> str:
        return slugify(self.title)

    def searchable_text(self) -> str:
        """Lowercased text used by the free-text search filter."""
        parts = [
            self.title,
            self.description,
            self.short_description,
            self.category,
            self.subcategory,
            *self.tags,
            *(f"{spec.name} {spec.value}" for spec in self.specifications)
        ]
        return " ".join(parts).lower()
