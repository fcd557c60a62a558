from typing import List
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Dataset
    CATALOG_DATA_PATH: str = "data/products.json"

    # Query limits
    DEFAULT_PAGE_SIZE: int = Field(20, ge=1, le=100)
    MAX_PAGE_SIZE: int = Field(100, ge=1, le=100)
    FACET_TOP_N: int = 10
    POPULAR_TAGS_LIMIT: int = 10
    SIMILAR_PRODUCTS_LIMIT: int = 20

    # Query monitoring thresholds (milliseconds)
    SLOW_QUERY_THRESHOLD_MS: float = 1000.0
    VERY_SLOW_QUERY_THRESHOLD_MS: float = 3000.0

    # Application Settings
    LOG_LEVEL: str = "INFO"
    BACKEND_CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8000"]
    API_V1_PREFIX: str = "/api"
    PROJECT_NAME: str = "Catalog Backend"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )


# Global settings instance
settings = Settings()
