"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="Locality Communities API")
    app_env: str = Field(default="development")
    debug: bool = Field(default=False)

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # Logging
    log_level: str = Field(default="INFO")
    log_json: bool | None = Field(
        default=None,
        description="Force JSON log output. Defaults to JSON in production only.",
    )

    # Database
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/locality",
        description="PostgreSQL connection URL with asyncpg driver",
    )

    # For testing with SQLite
    test_database_url: str = Field(
        default="sqlite+aiosqlite:///./test.db",
        description="Test database URL",
    )
    db_pool_size: int = Field(default=5)
    db_max_overflow: int = Field(default=10)

    # Community engine
    nearby_city_radius_km: float = Field(
        default=50.0,
        description="Default search radius for nearby city communities",
    )
    nearby_street_radius_km: float = Field(
        default=5.0,
        description="Default search radius for nearby street communities",
    )
    nearby_max_results: int = Field(default=20)
    membership_cache_ttl_seconds: float = Field(default=300.0)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def async_database_url(self) -> str:
        """Ensure the database URL uses the asyncpg driver scheme.

        Hosting providers usually supply a standard ``postgresql://`` URL.
        SQLAlchemy's async engine requires ``postgresql+asyncpg://``.
        """
        url = self.database_url
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return url

    # Rate Limiting
    rate_limit_enabled: bool = Field(
        default=True,
        description="Enable/disable rate limiting (disable for tests)",
    )
    rate_limit_read: str = Field(default="30/minute")
    rate_limit_write: str = Field(default="10/minute")
    rate_limit_maintenance: str = Field(
        default="2/minute",
        description="Merge passes scan every group of a category",
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma-separated list of allowed origins",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
