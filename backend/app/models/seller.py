from datetime import datetime, timedelta
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from app.utils.helpers import UtcDatetime, get_current_timestamp, resolve_now


class SellerRecord(BaseModel):
    """Base for seller sub-records: camelCase on the wire, immutable once loaded."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        frozen = True


class CertificationType(str, Enum):
    """Seller certification enumeration."""
    VERIFIED = "verified"
    PREMIUM = "premium"
    TOP_SELLER = "top_seller"
    MERCADO_LIDER = "mercado_lider"


class BusinessType(str, Enum):
    """Seller business type enumeration."""
    INDIVIDUAL = "individual"
    SMALL_BUSINESS = "small_business"
    CORPORATION = "corporation"


class SellerAddress(SellerRecord):
    street: str = ""
    number: str = ""
    complement: Optional[str] = None
    neighborhood: str = ""
    city: str
    state: str
    zip_code: str = ""
    country: str


class SellerRating(SellerRecord):
    average: float = Field(ge=0, le=5)
    count: int = Field(ge=0)
    positive_percentage: float = Field(ge=0, le=100)
    neutral_percentage: float = Field(ge=0, le=100)
    negative_percentage: float = Field(ge=0, le=100)
    last_twelve_months: int = Field(default=0, ge=0, alias="last12Months")

    @model_validator(mode="after")
    def check_percentages(self) -> "SellerRating":
        total = self.positive_percentage + self.neutral_percentage + self.negative_percentage
        if abs(total - 100) > 0.01:
            raise ValueError("Rating percentages must sum to 100%")
        return self


class SellerMetrics(SellerRecord):
    total_sales: int = Field(ge=0)
    total_products: int = Field(ge=0)
    average_response_time: float = Field(ge=0)  # in hours
    on_time_delivery_rate: float = Field(ge=0, le=100)
    customer_satisfaction_rate: float = Field(ge=0, le=100)
    dispute_resolution_rate: float = Field(ge=0, le=100)


class ShippingPolicy(SellerRecord):
    has_free_shipping: bool = False
    free_shipping_minimum: float = Field(default=0, ge=0)
    average_processing_time: float = Field(default=0, ge=0)
    shipping_methods: List[str] = Field(min_length=1)
    domestic_shipping: bool = True
    international_shipping: bool = False


class SellerCertification(SellerRecord):
    type: CertificationType
    issued_at: UtcDatetime
    valid_until: Optional[UtcDatetime] = None
    description: str = ""

    @field_validator("issued_at")
    @classmethod
    def check_not_issued_in_future(cls, value: datetime) -> datetime:
        if value > get_current_timestamp():
            raise ValueError("Certification cannot be issued in the future")
        return value

    def is_active(self, now: Optional[datetime] = None) -> bool:
        return self.valid_until is None or self.valid_until > resolve_now(now)


class BusinessInfo(SellerRecord):
    company_name: Optional[str] = None
    tax_id: Optional[str] = None
    business_type: BusinessType
    established_year: Optional[int] = None
    employees: Optional[int] = Field(None, ge=0)

    @field_validator("established_year")
    @classmethod
    def check_established_year(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value > get_current_timestamp().year:
            raise ValueError("Establishment year cannot be in the future")
        return value


class Seller(SellerRecord):
    """
    Seller record shared by every product it lists.

    Reputation algorithm:
        - Rating average scaled to 0-100: 40% weight
        - Mean of delivery, satisfaction and dispute rates: 40% weight
        - 25 points per active certification: 20% weight
        - Capped at 100
    """
    id: str
    username: str
    display_name: str
    email: EmailStr
    profile_image: Optional[str] = None
    address: SellerAddress
    rating: SellerRating
    metrics: SellerMetrics
    shipping_policy: ShippingPolicy
    certifications: List[SellerCertification] = Field(default_factory=list)
    business_info: BusinessInfo
    joined_at: UtcDatetime
    last_active_at: UtcDatetime
    is_active: bool = True
    is_verified: bool = True
    description: Optional[str] = None

    @field_validator("username")
    @classmethod
    def check_username(cls, value: str) -> str:
        if len(value.strip()) < 3:
            raise ValueError("Seller username must be at least 3 characters long")
        return value

    @field_validator("display_name")
    @classmethod
    def check_display_name(cls, value: str) -> str:
        if len(value.strip()) < 2:
            raise ValueError("Seller display name must be at least 2 characters long")
        return value

    def active_certifications(self, now: Optional[datetime] = None) -> List[SellerCertification]:
        return [cert for cert in self.certifications if cert.is_active(now)]

    def reputation_score(self, now: Optional[datetime] = None) -> float:
        """Weighted reputation score in the 0-100 range."""
        rating_score = (self.rating.average / 5) * 100
        metrics_score = (
            self.metrics.on_time_delivery_rate
            + self.metrics.customer_satisfaction_rate
            + self.metrics.dispute_resolution_rate
        ) / 3
        certification_score = len(self.active_certifications(now)) * 25

        return min(
            100.0,
            (rating_score * 0.4) + (metrics_score * 0.4) + (certification_score * 0.2)
        )

    def is_premium_eligible(self, now: Optional[datetime] = None) -> bool:
        return (
            self.is_verified
            and self.rating.average >= 4.5
            and self.metrics.customer_satisfaction_rate >= 95
            and self.metrics.on_time_delivery_rate > 90
            and len(self.active_certifications(now)) > 0
        )

    def response_time_tier(self) -> str:
        hours = self.metrics.average_response_time
        if hours <= 1:
            return "excellent"
        if hours <= 4:
            return "good"
        if hours <= 24:
            return "average"
        return "slow"

    def reliability_indicator(self, now: Optional[datetime] = None) -> str:
        score = self.reputation_score(now)
        if score >= 85:
            return "high"
        if score >= 70:
            return "medium"
        return "low"

    def location_display(self) -> str:
        return f"{self.address.city}, {self.address.state}"

    def experience_years(self, now: Optional[datetime] = None) -> int:
        elapsed = resolve_now(now) - self.joined_at
        return int(elapsed.days // 365.25)

    def is_currently_active(self, now: Optional[datetime] = None) -> bool:
        # Active means seen within the last 30 days
        cutoff = resolve_now(now) - timedelta(days=30)
        return self.is_active and self.last_active_at > cutoff
