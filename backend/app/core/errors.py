"""
Catalog engine errors.

Lookups against unknown ids are not errors: they return None so callers can
tell "no match" apart from a failed request.
"""
from typing import Any, Dict, Optional


class CatalogError(Exception):
    """Base class for catalog engine errors."""

    code = "CATALOG_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


class InvalidRangeError(CatalogError):
    """Raised when a query carries an impossible range or page setting."""

    code = "INVALID_RANGE"


class AmountOutOfLimitsError(CatalogError):
    """Raised when an amount falls outside a payment method's limits."""

    code = "AMOUNT_OUT_OF_LIMITS"


class CatalogNotLoadedError(CatalogError):
    """Raised when the catalog is queried before the dataset is loaded."""

    code = "CATALOG_NOT_LOADED"
