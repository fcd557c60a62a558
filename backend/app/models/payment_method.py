"""Payment method model with fee, installment and risk rules."""

from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, model_validator
from pydantic.alias_generators import to_camel

from app.core.errors import AmountOutOfLimitsError


class PaymentRecord(BaseModel):
    """Base for payment sub-records: camelCase on the wire, immutable once loaded."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        frozen = True


class PaymentType(str, Enum):
    """Payment type enumeration."""
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    BANK_TRANSFER = "bank_transfer"
    PIX = "pix"
    BOLETO = "boleto"
    DIGITAL_WALLET = "digital_wallet"
    CASH_ON_DELIVERY = "cash_on_delivery"


class PaymentProvider(str, Enum):
    """Payment provider enumeration."""
    MERCADO_PAGO = "mercado_pago"
    PAG_SEGURO = "pag_seguro"
    PAYPAL = "paypal"
    STRIPE = "stripe"
    CIELO = "cielo"
    REDE = "rede"


class CurrencyCode(str, Enum):
    BRL = "BRL"
    USD = "USD"
    EUR = "EUR"
    ARS = "ARS"


class ComplianceLevel(str, Enum):
    PCI_DSS_LEVEL_1 = "PCI_DSS_LEVEL_1"
    PCI_DSS_LEVEL_2 = "PCI_DSS_LEVEL_2"
    PCI_DSS_LEVEL_3 = "PCI_DSS_LEVEL_3"


INSTALLMENT_PAYMENT_TYPES = frozenset({PaymentType.CREDIT_CARD})
CARD_PAYMENT_TYPES = frozenset({PaymentType.CREDIT_CARD, PaymentType.DEBIT_CARD})

MAX_TOTAL_FEE_PERCENTAGE = 15.0
MAX_AUTHORIZATION_SECONDS = 30
MIN_INSTALLMENT_VALUE = 5.0


class PaymentFees(PaymentRecord):
    """Fee breakdown in percent, plus a fixed fee per transaction."""
    processing_fee: float = Field(ge=0)
    platform_fee: float = Field(ge=0)
    acquirer_fee: float = Field(ge=0)
    total_fee_percentage: float = Field(ge=0, le=MAX_TOTAL_FEE_PERCENTAGE)
    fixed_fee: float = Field(default=0.0, ge=0)

    @model_validator(mode="after")
    def check_breakdown_matches_total(self) -> "PaymentFees":
        calculated = self.processing_fee + self.platform_fee + self.acquirer_fee
        if abs(calculated - self.total_fee_percentage) > 0.01:
            raise ValueError("Fee breakdown must match total fee percentage")
        return self


class PaymentLimits(PaymentRecord):
    minimum_amount: float = Field(ge=0)
    maximum_amount: float = Field(ge=0)
    daily_limit: Optional[float] = Field(None, ge=0)
    monthly_limit: Optional[float] = Field(None, ge=0)

    @model_validator(mode="after")
    def check_limits(self) -> "PaymentLimits":
        if self.minimum_amount > self.maximum_amount:
            raise ValueError("Minimum amount cannot exceed maximum amount")
        if self.daily_limit is not None and self.daily_limit < self.maximum_amount:
            raise ValueError("Daily limit cannot be less than maximum transaction amount")
        if (
            self.monthly_limit is not None
            and self.daily_limit is not None
            and self.monthly_limit < self.daily_limit
        ):
            raise ValueError("Monthly limit cannot be less than daily limit")
        return self


class SecurityFeatures(PaymentRecord):
    requires_3d_secure: bool = Field(default=False, alias="requires3DSecure")
    fraud_detection: bool = False
    tokenization: bool = False
    encryption_standard: str = ""
    compliance_level: ComplianceLevel


class PaymentProcessingTime(PaymentRecord):
    authorization_time: float = Field(ge=0, le=MAX_AUTHORIZATION_SECONDS)  # seconds
    settlement_time: float = Field(ge=0)  # business days
    refund_time: float = Field(ge=0)  # business days
    chargeback_window: float = Field(ge=0)  # days


class InstallmentOption(PaymentRecord):
    quantity: int
    amount: float
    total_amount: float
    interest_rate: float
    is_interest_free: bool
    recommended_by_merchant: bool


class TransactionFees(PaymentRecord):
    processing_fee: float
    platform_fee: float
    acquirer_fee: float
    fixed_fee: float
    total_fees: float
    net_amount: float


class PaymentMethod(PaymentRecord):
    """Payment method accepted for a product, shared across products by id."""
    id: str
    type: PaymentType
    provider: PaymentProvider
    name: str
    display_name: str
    description: str = ""
    logo_url: str = ""
    currency: CurrencyCode
    is_active: bool = True
    is_installment_enabled: bool = False
    max_installments: int = Field(default=1, ge=1)
    fees: PaymentFees
    limits: PaymentLimits
    security: SecurityFeatures
    processing_time: PaymentProcessingTime
    supported_countries: List[str] = Field(default_factory=list)
    accepted_cards: List[str] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def check_business_rules(self) -> "PaymentMethod":
        if self.is_installment_enabled:
            if self.max_installments < 2 or self.max_installments > 24:
                raise ValueError("Installments must be between 2 and 24")
            if not self.supports_installments():
                raise ValueError(f"Payment type {self.type.value} does not support installments")

        if self.is_card_payment() and not self.security.tokenization:
            raise ValueError("Card payments must support tokenization")
        return self

    def supports_installments(self) -> bool:
        return self.type in INSTALLMENT_PAYMENT_TYPES

    def is_card_payment(self) -> bool:
        return self.type in CARD_PAYMENT_TYPES

    def supports_amount(self, amount: float) -> bool:
        return (
            self.limits.minimum_amount <= amount <= self.limits.maximum_amount
            and self.is_active
        )

    def is_available_in_country(self, country_code: str) -> bool:
        return country_code in self.supported_countries

    def requires_additional_verification(self) -> bool:
        return self.security.requires_3d_secure or self.type == PaymentType.BANK_TRANSFER

    def calculate_transaction_fees(self, amount: float) -> TransactionFees:
        """
        Calculate the fee breakdown for a transaction.

        Args:
            amount: Transaction amount in the method's currency

        Returns:
            TransactionFees with each percentage component, the fixed fee,
            the total and the net amount the seller keeps

        Raises:
            AmountOutOfLimitsError: If the amount is outside the method's limits
        """
        if amount < self.limits.minimum_amount or amount > self.limits.maximum_amount:
            raise AmountOutOfLimitsError(
                "Amount is outside payment method limits",
                {
                    "payment_method_id": self.id,
                    "amount": amount,
                    "minimum_amount": self.limits.minimum_amount,
                    "maximum_amount": self.limits.maximum_amount
                }
            )

        total_fees = amount * (self.fees.total_fee_percentage / 100) + self.fees.fixed_fee

        return TransactionFees(
            processing_fee=amount * (self.fees.processing_fee / 100),
            platform_fee=amount * (self.fees.platform_fee / 100),
            acquirer_fee=amount * (self.fees.acquirer_fee / 100),
            fixed_fee=self.fees.fixed_fee,
            total_fees=total_fees,
            net_amount=amount - total_fees
        )

    def calculate_installment_options(self, amount: float) -> List[InstallmentOption]:
        """
        Build the installment plans available for an amount.

        Interest-free plans split the amount evenly; the others use the
        annuity formula amount * r * (1 + r)^n / ((1 + r)^n - 1). Plans whose
        installment falls under the minimum installment value are dropped.
        """
        if not self.is_installment_enabled or amount < self.limits.minimum_amount:
            return []

        options = []
        for quantity in range(2, self.max_installments + 1):
            interest_rate = self._installment_interest_rate(quantity)
            is_interest_free = interest_rate == 0

            if is_interest_free:
                installment_amount = amount / quantity
            else:
                installment_amount = self._installment_with_interest(amount, quantity, interest_rate)

            rounded_amount = round(installment_amount, 2)
            if rounded_amount < MIN_INSTALLMENT_VALUE:
                continue

            options.append(InstallmentOption(
                quantity=quantity,
                amount=rounded_amount,
                total_amount=round(installment_amount * quantity, 2),
                interest_rate=interest_rate,
                is_interest_free=is_interest_free,
                recommended_by_merchant=quantity <= 6 and is_interest_free
            ))

        return options

    def _interest_free_installments(self) -> int:
        payment_type = self.type
        if payment_type == PaymentType.CREDIT_CARD:
            return 6
        elif payment_type in (
            PaymentType.DEBIT_CARD,
            PaymentType.BANK_TRANSFER,
            PaymentType.PIX,
            PaymentType.BOLETO,
            PaymentType.DIGITAL_WALLET,
            PaymentType.CASH_ON_DELIVERY,
        ):
            return 0
        raise ValueError(f"Unhandled payment type: {payment_type}")

    def _installment_interest_rate(self, quantity: int) -> float:
        """Monthly interest rate in percent for a number of installments."""
        if quantity <= self._interest_free_installments():
            return 0.0
        if quantity <= 12:
            return 2.5
        if quantity <= 18:
            return 3.5
        return 4.5

    @staticmethod
    def _installment_with_interest(amount: float, quantity: int, monthly_rate: float) -> float:
        rate = monthly_rate / 100
        factor = (1 + rate) ** quantity
        return (amount * rate * factor) / (factor - 1)

    def _base_risk(self) -> int:
        payment_type = self.type
        if payment_type == PaymentType.CREDIT_CARD:
            return 3
        elif payment_type == PaymentType.DEBIT_CARD:
            return 2
        elif payment_type == PaymentType.BANK_TRANSFER:
            return 1
        elif payment_type == PaymentType.PIX:
            return 1
        elif payment_type == PaymentType.BOLETO:
            return 1
        elif payment_type == PaymentType.DIGITAL_WALLET:
            return 2
        elif payment_type == PaymentType.CASH_ON_DELIVERY:
            return 4
        raise ValueError(f"Unhandled payment type: {payment_type}")

    def risk_score(self) -> int:
        """Fraud risk from 0 to 10: base risk by type, minus one per security feature."""
        score = self._base_risk()

        if self.security.requires_3d_secure:
            score -= 1
        if self.security.fraud_detection:
            score -= 1
        if self.security.tokenization:
            score -= 1

        return max(0, min(10, score))

    def processing_time_description(self) -> str:
        authorization = self.processing_time.authorization_time
        settlement = self.processing_time.settlement_time

        if authorization <= 5:
            return "Instant" if settlement <= 1 else f"{settlement:g} business day(s)"
        return f"{authorization:g}s authorization, {settlement:g} business day(s) settlement"

    def security_badges(self) -> List[str]:
        badges = []
        if self.security.requires_3d_secure:
            badges.append("3D Secure")
        if self.security.fraud_detection:
            badges.append("Fraud Protection")
        if self.security.tokenization:
            badges.append("Tokenized")
        if self.security.compliance_level == ComplianceLevel.PCI_DSS_LEVEL_1:
            badges.append("PCI Level 1")
        return badges

    def display_icon(self) -> str:
        payment_type = self.type
        if payment_type in (PaymentType.CREDIT_CARD, PaymentType.DEBIT_CARD):
            return "💳"
        elif payment_type == PaymentType.BANK_TRANSFER:
            return "🏦"
        elif payment_type == PaymentType.PIX:
            return "⚡"
        elif payment_type == PaymentType.BOLETO:
            return "📄"
        elif payment_type == PaymentType.DIGITAL_WALLET:
            return "📱"
        elif payment_type == PaymentType.CASH_ON_DELIVERY:
            return "💰"
        raise ValueError(f"Unhandled payment type: {payment_type}")
