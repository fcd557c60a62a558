"""
Shared fixtures and record factories for catalog tests.

Factories return raw camelCase records as they appear in the dataset file;
keyword overrides replace top-level keys.
"""

import pytest
from datetime import datetime, timezone

from app.services.catalog_service import Catalog


# Reference time used by rule evaluations in tests
NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_seller(seller_id="seller-1", **overrides) -> dict:
    record = {
        "id": seller_id,
        "username": f"user_{seller_id}",
        "displayName": f"Loja {seller_id}",
        "email": f"{seller_id}@loja.com.br",
        "address": {"city": "São Paulo", "state": "SP", "country": "BR"},
        "rating": {
            "average": 4.5,
            "count": 1000,
            "positivePercentage": 90.0,
            "neutralPercentage": 6.0,
            "negativePercentage": 4.0
        },
        "metrics": {
            "totalSales": 5000,
            "totalProducts": 120,
            "averageResponseTime": 2,
            "onTimeDeliveryRate": 95.0,
            "customerSatisfactionRate": 90.0,
            "disputeResolutionRate": 85.0
        },
        "shippingPolicy": {
            "hasFreeShipping": True,
            "freeShippingMinimum": 100.0,
            "shippingMethods": ["correios_sedex"]
        },
        "certifications": [
            {"type": "verified", "issuedAt": "2020-01-01T00:00:00Z"},
            {"type": "top_seller", "issuedAt": "2021-01-01T00:00:00Z", "validUntil": "2030-01-01T00:00:00Z"}
        ],
        "businessInfo": {"businessType": "corporation", "establishedYear": 2010},
        "joinedAt": "2018-01-01T00:00:00Z",
        "lastActiveAt": "2026-05-30T00:00:00Z",
        "isActive": True,
        "isVerified": True
    }
    record.update(overrides)
    return record


def make_credit_card(payment_method_id="pm-card", **overrides) -> dict:
    record = {
        "id": payment_method_id,
        "type": "credit_card",
        "provider": "mercado_pago",
        "name": "credit_card",
        "displayName": "Cartão de Crédito",
        "currency": "BRL",
        "isInstallmentEnabled": True,
        "maxInstallments": 12,
        "fees": {
            "processingFee": 2.5,
            "platformFee": 1.0,
            "acquirerFee": 1.49,
            "totalFeePercentage": 4.99,
            "fixedFee": 0.39
        },
        "limits": {"minimumAmount": 1.0, "maximumAmount": 50000.0, "dailyLimit": 100000.0},
        "security": {
            "requires3DSecure": True,
            "fraudDetection": True,
            "tokenization": True,
            "complianceLevel": "PCI_DSS_LEVEL_1"
        },
        "processingTime": {
            "authorizationTime": 3,
            "settlementTime": 30,
            "refundTime": 7,
            "chargebackWindow": 120
        },
        "supportedCountries": ["BR"]
    }
    record.update(overrides)
    return record


def make_pix(payment_method_id="pm-pix", **overrides) -> dict:
    record = {
        "id": payment_method_id,
        "type": "pix",
        "provider": "mercado_pago",
        "name": "pix",
        "displayName": "Pix",
        "currency": "BRL",
        "fees": {
            "processingFee": 0.5,
            "platformFee": 0.49,
            "acquirerFee": 0.0,
            "totalFeePercentage": 0.99
        },
        "limits": {"minimumAmount": 0.01, "maximumAmount": 20000.0},
        "security": {"fraudDetection": True, "complianceLevel": "PCI_DSS_LEVEL_1"},
        "processingTime": {
            "authorizationTime": 1,
            "settlementTime": 0,
            "refundTime": 1,
            "chargebackWindow": 0
        },
        "supportedCountries": ["BR"]
    }
    record.update(overrides)
    return record


def make_product(product_id="prod-1", **overrides) -> dict:
    record = {
        "id": product_id,
        "title": f"Produto {product_id}",
        "description": "Descrição completa do produto",
        "shortDescription": "Descrição curta",
        "price": 100.0,
        "currency": "BRL",
        "images": [
            {"id": f"{product_id}-img-1", "url": f"https://cdn.loja.com.br/{product_id}/1.jpg", "isPrimary": True, "order": 0}
        ],
        "category": "electronics",
        "subcategory": "audio",
        "condition": {"type": "new"},
        "seller": make_seller(),
        "paymentMethods": [make_credit_card(), make_pix()],
        "rating": {"average": 4.0, "count": 10},
        "specifications": [],
        "stock": {"available": 50, "reserved": 0, "threshold": 5},
        "tags": [],
        "createdAt": "2026-01-01T00:00:00Z",
        "updatedAt": "2026-01-01T00:00:00Z",
        "isActive": True
    }
    record.update(overrides)
    return record


def product_fields(record: dict) -> dict:
    """Product record reshaped as loaded into the catalog: seller and payment methods by id."""
    data = {key: value for key, value in record.items() if key not in ("seller", "paymentMethods")}
    data["sellerId"] = record["seller"]["id"]
    data["paymentMethodIds"] = [method["id"] for method in record["paymentMethods"]]
    return data


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def catalog_records():
    """A small mixed catalog: two sellers, three categories, one discounted product."""
    other_seller = make_seller(
        "seller-2",
        displayName="Casa do Som",
        address={"city": "Porto Alegre", "state": "RS", "country": "BR"},
        rating={
            "average": 3.8,
            "count": 200,
            "positivePercentage": 80.0,
            "neutralPercentage": 12.0,
            "negativePercentage": 8.0
        },
        shippingPolicy={"hasFreeShipping": False, "shippingMethods": ["correios_pac"]},
        certifications=[],
        isVerified=False
    )

    return [
        make_product(
            "prod-1",
            title="Fone Bluetooth",
            price=200.0,
            tags=["audio", "bluetooth"],
            rating={"average": 4.5, "count": 300},
            createdAt="2026-01-10T00:00:00Z",
            discount={"percentage": 20, "validUntil": "2030-12-31T00:00:00Z"}
        ),
        make_product(
            "prod-2",
            title="Caixa de Som",
            price=80.0,
            tags=["audio"],
            rating={"average": 3.9, "count": 50},
            createdAt="2026-02-10T00:00:00Z",
            seller=other_seller,
            paymentMethods=[make_pix()]
        ),
        make_product(
            "prod-3",
            title="Camiseta Algodão",
            price=40.0,
            category="fashion",
            subcategory="camisetas",
            tags=["algodao"],
            rating={"average": 4.8, "count": 20},
            createdAt="2025-12-01T00:00:00Z",
            stock={"available": 0, "threshold": 0}
        ),
        make_product(
            "prod-4",
            title="Notebook Ultra",
            price=4500.0,
            category="computers",
            subcategory="notebooks",
            tags=["notebook", "bluetooth"],
            rating={"average": 4.5, "count": 900},
            createdAt="2026-03-01T00:00:00Z",
            seller=other_seller,
            specifications=[{"name": "Memória", "value": "16GB"}]
        ),
        make_product(
            "prod-5",
            title="Cafeteira",
            price=600.0,
            category="home",
            subcategory="cozinha",
            createdAt="2025-06-01T00:00:00Z",
            isActive=False
        )
    ]


@pytest.fixture
def catalog(catalog_records):
    return Catalog.from_records(catalog_records)
