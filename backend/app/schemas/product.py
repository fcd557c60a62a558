from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from app.models.payment_method import InstallmentOption, TransactionFees
from app.models.product import (
    ProductCondition,
    ProductDimensions,
    ProductRating,
    ProductSpecification
)


class ApiSchema(BaseModel):
    """Response schema serialized with camelCase keys."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class ProductImageResponse(ApiSchema):
    id: str
    url: str
    alt_text: str
    is_primary: bool
    order: int


class DiscountResponse(ApiSchema):
    percentage: float
    amount: float
    savings_amount: float
    valid_until: Optional[datetime] = None
    condition: Optional[str] = None
    is_valid: bool


class PriceResponse(ApiSchema):
    original_price: float
    final_price: float
    currency: str
    formatted_price: str
    discount: Optional[DiscountResponse] = None
    has_free_shipping: bool


class SellerBriefResponse(ApiSchema):
    """Seller fields shown on listing cards."""
    id: str
    display_name: str
    location: str
    rating: float
    is_verified: bool


class SellerRatingResponse(ApiSchema):
    average: float
    count: int
    positive_percentage: float


class SellerMetricsResponse(ApiSchema):
    total_sales: int
    experience_years: int
    response_time_tier: str
    reliability_indicator: str
    reputation_score: float


class CertificationResponse(ApiSchema):
    type: str
    description: str
    is_active: bool


class ShippingPolicyResponse(ApiSchema):
    has_free_shipping: bool
    free_shipping_minimum: float
    average_processing_time: float
    shipping_methods: List[str]


class SellerSummaryResponse(ApiSchema):
    """Seller fields shown on the product details page."""
    id: str
    username: str
    display_name: str
    profile_image: Optional[str] = None
    location: str
    rating: SellerRatingResponse
    metrics: SellerMetricsResponse
    certifications: List[CertificationResponse]
    shipping_policy: ShippingPolicyResponse
    is_active: bool
    is_verified: bool
    is_premium_eligible: bool


class PaymentMethodSummaryResponse(ApiSchema):
    id: str
    type: str
    display_name: str
    description: str
    logo_url: str
    icon: str
    is_installment_enabled: bool
    max_installments: int
    installment_options: Optional[List[InstallmentOption]] = None
    security_badges: List[str]
    processing_time_description: str
    risk_score: int


class StockResponse(ApiSchema):
    available: int
    reserved: int
    threshold: int
    is_available: bool


class AvailabilityResponse(ApiSchema):
    is_available: bool
    availability_text: str
    stock_level: str


class SeoMetadataResponse(ApiSchema):
    slug: str
    meta_title: str
    meta_description: str


class ProductMetadataResponse(ApiSchema):
    created_at: datetime
    updated_at: datetime
    is_active: bool
    availability: AvailabilityResponse
    seo: SeoMetadataResponse


class ProductDetailsResponse(ApiSchema):
    """Schema for the product details response."""
    id: str
    title: str
    description: str
    short_description: str
    images: List[ProductImageResponse]
    primary_image: ProductImageResponse
    category: str
    subcategory: str
    condition: ProductCondition
    price: PriceResponse
    seller: SellerSummaryResponse
    payment_methods: List[PaymentMethodSummaryResponse]
    rating: ProductRating
    specifications: List[ProductSpecification]
    stock: StockResponse
    dimensions: ProductDimensions
    tags: List[str]
    metadata: ProductMetadataResponse


class ProductRatingSummary(ApiSchema):
    average: float
    count: int


class ProductSummaryResponse(ApiSchema):
    """Schema for a product card in listings."""
    id: str
    title: str
    short_description: str
    primary_image: ProductImageResponse
    price: PriceResponse
    seller: SellerBriefResponse
    rating: ProductRatingSummary
    category: str
    subcategory: str
    is_available: bool
    stock_level: str
    tags: List[str]
    created_at: datetime


class ProductAvailabilityResponse(ApiSchema):
    product_id: str
    is_available: bool
    stock_level: str
    availability_text: str


class PaymentFeesResponse(ApiSchema):
    product_id: str
    payment_method_id: str
    amount: float
    currency: str
    fees: TransactionFees
