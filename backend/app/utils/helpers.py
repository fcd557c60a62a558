import re
import unicodedata
from datetime import datetime, timezone
from typing import Annotated, Optional

from pydantic import AfterValidator


CURRENCY_SYMBOLS = {
    "BRL": "R$",
    "USD": "US$",
    "EUR": "€",
    "ARS": "$",
}


def get_current_timestamp() -> datetime:
    """Get current UTC timestamp."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes from the dataset as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(ensure_utc)]


def resolve_now(now: Optional[datetime] = None) -> datetime:
    """Return `now` normalized to UTC, or the current timestamp."""
    if now is None:
        return get_current_timestamp()
    return ensure_utc(now)


def fold_text(text: str) -> str:
    """Lowercase and strip accents so "Câmera" and "camera" compare equal."""
    normalized = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in normalized if not unicodedata.combining(ch))
    return stripped.casefold()


def slugify(text: str) -> str:
    """Build a URL slug from a product title."""
    slug = fold_text(text)
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug.strip())
    return re.sub(r"-+", "-", slug)


def format_price(amount: float, currency: str) -> str:
    """
    Format a price for display using pt-BR separators.

    Example:
        format_price(1234.5, "BRL") -> "R$ 1.234,50"
    """
    symbol = CURRENCY_SYMBOLS.get(currency, currency)
    integer_part, decimal_part = f"{amount:,.2f}".split(".")
    integer_part = integer_part.replace(",", ".")
    return f"{symbol} {integer_part},{decimal_part}"
