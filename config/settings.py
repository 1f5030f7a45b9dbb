"""
Application configuration using Pydantic Settings.
Loads from environment variables with .env file support.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Endpoint
    sparql_endpoint: str = Field(
        default="https://qlever-server-showcase.zazukoians.org",
        description="SPARQL endpoint URL",
    )
    request_timeout: float = Field(
        default=30.0, gt=0, description="HTTP timeout in seconds"
    )
    endpoint_timeout: str = Field(
        default="30s", description="Timeout hint forwarded to the endpoint"
    )

    # Request scheduling
    query_delay_ms: int = Field(
        default=100, ge=0, description="Delay before each dispatched query"
    )
    concurrency: int = Field(
        default=1, ge=1, description="Maximum simultaneous requests"
    )

    # Extraction
    class_limit: int = Field(default=10, ge=1, description="Number of classes to seed")
    label_language: str = Field(default="en", description="Preferred label language")
    relation_page_limit: int = Field(
        default=10, ge=1, description="Initial page size for relation discovery"
    )
    referring_types_limit: int = Field(
        default=5, ge=1, description="Datatypes fetched per class"
    )
    max_pagination_rounds: int = Field(
        default=32, ge=1, description="Hard cap on pages fetched per relation query"
    )
    class_blacklist: list[str] = Field(
        default_factory=list, description="Class URIs never seeded"
    )
    fetch_comments: bool = Field(
        default=False, description="Also fetch rdfs:comment for classes and predicates"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
