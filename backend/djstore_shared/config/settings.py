"""
Application settings loaded from environment variables.
Uses pydantic-settings for type-safe configuration.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with defaults for development."""

    # Database - the single named connection string consumed by the data context
    sql_connection: str = "sqlite+aiosqlite:///./djstore.db"

    # Connection pool (ignored by SQLite)
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_timeout: int = 30  # Wait max 30s for a connection from the pool
    db_pool_recycle: int = 1800  # Recycle connections after 30 minutes
    db_echo: bool = False

    # Transactional retries for DataContext.execute_transaction
    # 0 disables retries (a single attempt per transaction)
    transaction_max_retries: int = 6
    transaction_retry_initial_delay: float = 0.5
    transaction_retry_max_delay: float = 30.0

    # Creates missing tables at startup; schema migrations are out of scope
    create_schema_on_startup: bool = True

    # Readiness check
    health_check_timeout: float = 5.0

    # Comma-separated list of allowed origins (empty uses the localhost defaults)
    allowed_origins: str = ""

    # Server
    rest_api_port: int = 8000

    # Environment
    environment: str = "development"
    debug: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def uses_sqlite(self) -> bool:
        return self.sql_connection.startswith("sqlite")

    def validate_production_settings(self) -> list[str]:
        """
        Validate settings that must be changed before running in production.
        Returns a list of validation errors. Empty list means all checks pass.
        """
        errors = []

        if self.environment == "production":
            if self.uses_sqlite:
                errors.append(
                    "SQL_CONNECTION must point to a server database in production, not SQLite"
                )

            if self.debug:
                errors.append("DEBUG must be False in production")

            if not self.allowed_origins:
                errors.append(
                    "ALLOWED_ORIGINS must be set in production (comma-separated list of allowed domains)"
                )

        if self.transaction_max_retries < 0:
            errors.append("TRANSACTION_MAX_RETRIES must be >= 0")

        return errors

    def cors_origins(self) -> list[str]:
        """Allowed CORS origins, falling back to the local frontend dev servers."""
        if self.allowed_origins:
            return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]
        return [
            "http://localhost:5173",  # Vite default
            "http://localhost:3000",
            "http://127.0.0.1:5173",
            "http://127.0.0.1:3000",
        ]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience exports
settings = get_settings()

SQL_CONNECTION = settings.sql_connection
