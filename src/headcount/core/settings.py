"""Application settings and configuration.

This module defines all configuration options for the headcount service.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="headcount", alias="APP_NAME")
    app_version: str = Field(default="1.0.0", alias="APP_VERSION")
    environment: str = Field(default="development", alias="APP_ENV")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str | None = Field(default=None, alias="LOG_LEVEL")

    # Server binding
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=6776, alias="PORT")

    # Database configuration
    database_url: str = Field(default="sqlite:///./headcount.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Connection pool (ignored for SQLite)
    db_pool_size: int = Field(default=20, alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=0, alias="DB_MAX_OVERFLOW")
    db_pool_timeout_seconds: float = Field(default=2.0, alias="DB_POOL_TIMEOUT_SECONDS")
    db_pool_recycle_seconds: int = Field(default=30, alias="DB_POOL_RECYCLE_SECONDS")

    # Statements slower than this are logged as warnings
    slow_query_ms: float = Field(default=100.0, alias="SLOW_QUERY_MS")

    # Background reconciliation of the user counter; 0 disables the worker
    reconcile_interval_seconds: float = Field(default=0.0, alias="RECONCILE_INTERVAL_SECONDS")

    # Bearer token guarding administrative routes; unset leaves them open
    admin_token: str | None = Field(default=None, alias="ADMIN_TOKEN")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=False, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides.

        Returns:
            The active database URL (test database if in testing mode, otherwise production)
        """
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url

    @property
    def is_production(self) -> bool:
        """Return True when running with the production profile."""
        return self.environment.lower() == "production"

    @property
    def effective_log_level(self) -> str:
        """Return the configured log level, quieter by default in production."""
        if self.log_level:
            return self.log_level.upper()
        return "WARNING" if self.is_production else "INFO"


settings = Settings()
