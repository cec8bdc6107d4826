"""
Configuration management using Pydantic Settings.
Loads from environment variables and .env file.
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

    # =========================================================================
    # NEO4J CONFIGURATION
    # =========================================================================
    neo4j_uri: str = Field(default="neo4j://localhost")
    neo4j_user: str = Field(default="neo4j")
    neo4j_password: str = Field(default="password")
    neo4j_database: str = Field(default="neo4j")
    neo4j_max_pool_size: int = Field(default=50, description="Max connection pool size")
    neo4j_acquisition_timeout: float = Field(
        default=60.0,
        description="Seconds to wait for a pooled connection before failing",
    )

    # =========================================================================
    # DOCUMENT STORE
    # =========================================================================
    default_page_size: int = Field(default=20, ge=1)
    max_page_size: int = Field(default=500, ge=1)

    # =========================================================================
    # CATALOG SEEDING
    # =========================================================================
    seed_on_startup: bool = Field(
        default=False,
        description="Write the seed fixture into the store when the app starts",
    )
    seed_fixture: str = Field(
        default="erp",
        description="Name of the catalog fixture (without .yaml extension)",
    )
    schemas_path: str = Field(default="schemas")

    # =========================================================================
    # APPLICATION SETTINGS
    # =========================================================================
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=8000)
    debug: bool = Field(default=False)
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://localhost:3000"]
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses LRU cache to avoid re-reading .env file on every call.
    """
    return Settings()
