"""
Tests for seller reputation rules.
"""

import pytest
from datetime import datetime, timezone
from pydantic import ValidationError

from app.models.seller import Seller
from conftest import NOW, make_seller


class TestSellerReputation:
    """Test reputation score and derived tiers."""

    def test_reputation_score_reference(self):
        """Test 4.5 average, 95/90/85 rates and two certifications score 82."""
        seller = Seller.model_validate(make_seller())

        assert seller.reputation_score(NOW) == pytest.approx(82.0)
        assert seller.reliability_indicator(NOW) == "medium"

    def test_expired_certification_not_counted(self):
        """Test certifications past their validity do not add to the score."""
        seller = Seller.model_validate(make_seller())
        later = datetime(2031, 1, 1, tzinfo=timezone.utc)

        assert len(seller.active_certifications(later)) == 1
        assert seller.reputation_score(later) == pytest.approx(77.0)

    def test_reputation_score_capped(self):
        """Test the score never exceeds 100."""
        seller = Seller.model_validate(make_seller(
            rating={
                "average": 5.0,
                "count": 10,
                "positivePercentage": 100,
                "neutralPercentage": 0,
                "negativePercentage": 0
            },
            metrics={
                "totalSales": 1,
                "totalProducts": 1,
                "averageResponseTime": 0.5,
                "onTimeDeliveryRate": 100,
                "customerSatisfactionRate": 100,
                "disputeResolutionRate": 100
            },
            certifications=[
                {"type": "verified", "issuedAt": "2020-01-01T00:00:00Z"},
                {"type": "premium", "issuedAt": "2020-01-01T00:00:00Z"},
                {"type": "top_seller", "issuedAt": "2020-01-01T00:00:00Z"},
                {"type": "mercado_lider", "issuedAt": "2020-01-01T00:00:00Z"},
                {"type": "verified", "issuedAt": "2021-01-01T00:00:00Z"}
            ]
        ))

        assert seller.reputation_score(NOW) == 100.0
        assert seller.reliability_indicator(NOW) == "high"

    def test_premium_eligibility(self):
        """Test premium requires satisfaction of at least 95."""
        seller = Seller.model_validate(make_seller())
        assert not seller.is_premium_eligible(NOW)

        metrics = dict(make_seller()["metrics"], customerSatisfactionRate=96.0)
        premium = Seller.model_validate(make_seller(metrics=metrics))
        assert premium.is_premium_eligible(NOW)

    def test_response_time_tiers(self):
        """Test response time tier boundaries."""
        base_metrics = make_seller()["metrics"]
        tiers = {1: "excellent", 4: "good", 24: "average", 25: "slow"}

        for hours, expected in tiers.items():
            seller = Seller.model_validate(make_seller(metrics=dict(base_metrics, averageResponseTime=hours)))
            assert seller.response_time_tier() == expected

    def test_experience_and_activity(self):
        """Test experience years and recent activity."""
        seller = Seller.model_validate(make_seller())

        assert seller.experience_years(NOW) == 8
        assert seller.is_currently_active(NOW)
        assert not seller.is_currently_active(datetime(2026, 8, 1, tzinfo=timezone.utc))
        assert seller.location_display() == "São Paulo, SP"


class TestSellerValidation:
    """Test seller record invariants."""

    def test_rating_percentages_must_sum_to_100(self):
        """Test inconsistent rating percentages are rejected."""
        with pytest.raises(ValidationError):
            Seller.model_validate(make_seller(rating={
                "average": 4.0,
                "count": 10,
                "positivePercentage": 80,
                "neutralPercentage": 10,
                "negativePercentage": 5
            }))

    def test_invalid_email(self):
        """Test a malformed email is rejected."""
        with pytest.raises(ValidationError):
            Seller.model_validate(make_seller(email="not-an-email"))

    def test_short_username(self):
        """Test usernames need at least three characters."""
        with pytest.raises(ValidationError):
            Seller.model_validate(make_seller(username=" ab "))

    def test_short_display_name(self):
        """Test display names need at least two characters."""
        with pytest.raises(ValidationError):
            Seller.model_validate(make_seller(displayName="A"))

    def test_certification_issued_in_future(self):
        """Test certifications cannot be issued in the future."""
        with pytest.raises(ValidationError):
            Seller.model_validate(make_seller(certifications=[
                {"type": "verified", "issuedAt": "2099-01-01T00:00:00Z"}
            ]))

    def test_metric_rate_out_of_range(self):
        """Test rates above 100 are rejected."""
        metrics = dict(make_seller()["metrics"], onTimeDeliveryRate=101)
        with pytest.raises(ValidationError):
            Seller.model_validate(make_seller(metrics=metrics))

    def test_established_year_in_future(self):
        """Test a future establishment year is rejected."""
        with pytest.raises(ValidationError):
            Seller.model_validate(make_seller(businessInfo={"businessType": "corporation", "establishedYear": 2999}))
