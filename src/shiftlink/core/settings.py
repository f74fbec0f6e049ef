"""Application settings and configuration.

This module defines all configuration options for a ShiftLink domain server.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Server settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="ShiftLink", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")

    # Security and authentication
    secret_key: str = Field(alias="SECRET_KEY")
    debug: bool = Field(default=False, alias="DEBUG")

    # Database configuration
    database_url: str = Field(default="sqlite:///./shiftlink.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Redis backs the replay cache when configured; otherwise an in-process store is used
    redis_url: str | None = Field(default=None, alias="REDIS_URL")

    # Admin JWT settings
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 12,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # Signed request protocol
    replay_window_seconds: int = Field(default=300, ge=1, alias="REPLAY_WINDOW_SECONDS")
    key_rotation_grace_seconds: int = Field(
        default=0,
        ge=0,
        alias="KEY_ROTATION_GRACE_SECONDS",
    )

    # Pairing
    registration_ttl_minutes: int = Field(default=15, ge=1, alias="REGISTRATION_TTL_MINUTES")
    app_scheme: str = Field(default="attendance", alias="APP_SCHEME")
    public_base_url: str | None = Field(default=None, alias="PUBLIC_BASE_URL")
    app_store_url: str | None = Field(default=None, alias="APP_STORE_URL")

    # Attendance history paging
    attendances_page_limit: int = Field(default=10, alias="ATTENDANCES_PAGE_LIMIT")
    attendances_max_limit: int = Field(default=100, alias="ATTENDANCES_MAX_LIMIT")

    # CORS configuration for the admin web app
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
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
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling such as Alembic."""
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url


settings = Settings()  # type: ignore[call-arg]
