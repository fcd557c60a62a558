"""
Projections from catalog records to response schemas.

Computed fields (final price, availability, reputation, installments) are
resolved here against a single reference time so one response never mixes
two clocks.
"""
from datetime import datetime
from typing import Optional

from app.models.payment_method import PaymentMethod
from app.models.product import Product, ProductImage
from app.models.seller import Seller
from app.schemas.product import (
    AvailabilityResponse,
    CertificationResponse,
    DiscountResponse,
    PaymentMethodSummaryResponse,
    PriceResponse,
    ProductDetailsResponse,
    ProductImageResponse,
    ProductMetadataResponse,
    ProductRatingSummary,
    ProductSummaryResponse,
    SellerBriefResponse,
    SellerMetricsResponse,
    SellerRatingResponse,
    SellerSummaryResponse,
    SeoMetadataResponse,
    ShippingPolicyResponse,
    StockResponse
)
from app.services.catalog_service import Catalog
from app.utils.helpers import resolve_now

META_DESCRIPTION_MAX_LENGTH = 150


def to_image_response(image: ProductImage) -> ProductImageResponse:
    return ProductImageResponse(
        id=image.id,
        url=image.url,
        alt_text=image.alt_text,
        is_primary=image.is_primary,
        order=image.order
    )


def to_price_response(product: Product, seller: Seller, now: datetime) -> PriceResponse:
    discount = None
    if product.discount is not None:
        discount = DiscountResponse(
            percentage=product.discount.percentage,
            amount=product.discount.amount,
            savings_amount=product.savings_amount(now),
            valid_until=product.discount.valid_until,
            condition=product.discount.condition,
            is_valid=product.discount.is_valid(now)
        )

    return PriceResponse(
        original_price=product.price,
        final_price=product.final_price(now),
        currency=product.currency,
        formatted_price=product.formatted_price(now),
        discount=discount,
        has_free_shipping=product.has_eligible_free_shipping(seller, now)
    )


def to_seller_brief(seller: Seller) -> SellerBriefResponse:
    return SellerBriefResponse(
        id=seller.id,
        display_name=seller.display_name,
        location=seller.location_display(),
        rating=seller.rating.average,
        is_verified=seller.is_verified
    )


def to_seller_summary(seller: Seller, now: datetime) -> SellerSummaryResponse:
    """Seller block of the details page, with reputation-derived fields."""
    return SellerSummaryResponse(
        id=seller.id,
        username=seller.username,
        display_name=seller.display_name,
        profile_image=seller.profile_image,
        location=seller.location_display(),
        rating=SellerRatingResponse(
            average=seller.rating.average,
            count=seller.rating.count,
            positive_percentage=seller.rating.positive_percentage
        ),
        metrics=SellerMetricsResponse(
            total_sales=seller.metrics.total_sales,
            experience_years=seller.experience_years(now),
            response_time_tier=seller.response_time_tier(),
            reliability_indicator=seller.reliability_indicator(now),
            reputation_score=seller.reputation_score(now)
        ),
        certifications=[
            CertificationResponse(
                type=certification.type.value,
                description=certification.description,
                is_active=certification.is_active(now)
            )
            for certification in seller.certifications
        ],
        shipping_policy=ShippingPolicyResponse(
            has_free_shipping=seller.shipping_policy.has_free_shipping,
            free_shipping_minimum=seller.shipping_policy.free_shipping_minimum,
            average_processing_time=seller.shipping_policy.average_processing_time,
            shipping_methods=list(seller.shipping_policy.shipping_methods)
        ),
        is_active=seller.is_currently_active(now),
        is_verified=seller.is_verified,
        is_premium_eligible=seller.is_premium_eligible(now)
    )


def to_payment_method_summary(
    payment_method: PaymentMethod,
    final_price: float,
    calculate_installments: bool = True
) -> PaymentMethodSummaryResponse:
    installment_options = None
    if calculate_installments and payment_method.supports_amount(final_price):
        installment_options = payment_method.calculate_installment_options(final_price)

    return PaymentMethodSummaryResponse(
        id=payment_method.id,
        type=payment_method.type.value,
        display_name=payment_method.display_name,
        description=payment_method.description,
        logo_url=payment_method.logo_url,
        icon=payment_method.display_icon(),
        is_installment_enabled=payment_method.is_installment_enabled,
        max_installments=payment_method.max_installments,
        installment_options=installment_options,
        security_badges=payment_method.security_badges(),
        processing_time_description=payment_method.processing_time_description(),
        risk_score=payment_method.risk_score()
    )


def meta_description(product: Product) -> str:
    text = product.short_description
    if len(text) > META_DESCRIPTION_MAX_LENGTH:
        return text[:META_DESCRIPTION_MAX_LENGTH - 3] + "..."
    return text


def to_product_summary(
    product: Product,
    catalog: Catalog,
    now: Optional[datetime] = None
) -> ProductSummaryResponse:
    """Project a product onto its listing card."""
    now = resolve_now(now)
    seller = catalog.seller_for(product)

    return ProductSummaryResponse(
        id=product.id,
        title=product.title,
        short_description=product.short_description,
        primary_image=to_image_response(product.primary_image()),
        price=to_price_response(product, seller, now),
        seller=to_seller_brief(seller),
        rating=ProductRatingSummary(
            average=product.rating.average,
            count=product.rating.count
        ),
        category=product.category,
        subcategory=product.subcategory,
        is_available=product.is_available(),
        stock_level=product.stock_level().value,
        tags=list(product.tags),
        created_at=product.created_at
    )


def to_product_details(
    product: Product,
    catalog: Catalog,
    calculate_installments: bool = True,
    now: Optional[datetime] = None
) -> ProductDetailsResponse:
    """
    Project a product onto the details page.

    Installment plans are listed only for payment methods whose limits
    accept the product's final price.
    """
    now = resolve_now(now)
    seller = catalog.seller_for(product)
    final_price = product.final_price(now)

    return ProductDetailsResponse(
        id=product.id,
        title=product.title,
        description=product.description,
        short_description=product.short_description,
        images=[to_image_response(image) for image in product.ordered_images()],
        primary_image=to_image_response(product.primary_image()),
        category=product.category,
        subcategory=product.subcategory,
        condition=product.condition,
        price=to_price_response(product, seller, now),
        seller=to_seller_summary(seller, now),
        payment_methods=[
            to_payment_method_summary(payment_method, final_price, calculate_installments)
            for payment_method in catalog.payment_methods_for(product)
        ],
        rating=product.rating,
        specifications=list(product.specifications),
        stock=StockResponse(
            available=product.stock.available,
            reserved=product.stock.reserved,
            threshold=product.stock.threshold,
            is_available=product.is_available()
        ),
        dimensions=product.dimensions,
        tags=list(product.tags),
        metadata=ProductMetadataResponse(
            created_at=product.created_at,
            updated_at=product.updated_at,
            is_active=product.is_active,
            availability=AvailabilityResponse(
                is_available=product.is_available(),
                availability_text=product.availability_text(),
                stock_level=product.stock_level().value
            ),
            seo=SeoMetadataResponse(
                slug=product.seo_slug(),
                meta_title=f"{product.title} | {seller.display_name}",
                meta_description=meta_description(product)
            )
        )
    )
