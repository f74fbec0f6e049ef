"""Device-side configuration.

Unlike the server settings nothing here is required, so the client can be
imported on a device that has never been configured.
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    """Client settings loaded from ``SHIFTLINK_*`` environment variables."""

    # Per-domain bound for every request, including fan-out aggregations
    request_timeout_seconds: float = Field(default=5.0, gt=0)
    verify_tls: bool = Field(default=True)

    # Encrypted vault document holding identities and paired domains
    storage_path: Path = Field(default=Path("~/.shiftlink/vault.bin"))
    storage_key: str | None = Field(default=None, description="Fernet key for the vault file")

    app_scheme: str = Field(default="attendance")

    model_config = SettingsConfigDict(
        env_prefix="SHIFTLINK_",
        env_file=".env",
        extra="ignore",
    )
