"""
Configuration — typed, validated settings loaded from environment/.env.

Uses pydantic-settings to:
  - Load from environment variables (12-factor app)
  - Fall back to .env file
  - Validate types and constraints at startup

Only AppSettings is a BaseSettings instance. Sub-settings are plain BaseModel
classes populated via env_nested_delimiter="__", so UPDATE__APP_ID maps to
update.app_id, DATABASE__HOST to database.host, etc.

Without any DATABASE__* variable the service keeps the latest snapshot in
memory only.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from crlget.adapters.http_client import CRLSET_APP_ID, DEFAULT_UPDATE_URL

# .env is resolved relative to the project root (three levels above this file).
_ENV_FILE = Path(__file__).parent.parent.parent / ".env"


class UpdateSettings(BaseModel):
    """Component update service request parameters."""

    url: str = Field(default=DEFAULT_UPDATE_URL, description="Update-check endpoint URL")
    app_id: str = Field(default=CRLSET_APP_ID, description="CRLSet component application id")
    version: str = Field(default="", description="Currently installed version (`v`)")
    uc: str = Field(default="", description="Update-check flag (`uc`)")

    @field_validator("app_id")
    @classmethod
    def validate_app_id(cls, value: str) -> str:
        """Component ids are 32 characters from a-p."""
        value = value.strip()
        if len(value) != 32 or any(c not in "abcdefghijklmnop" for c in value):
            raise ValueError(f"app_id must be 32 characters in a-p, got {value!r}")
        return value


class DatabaseSettings(BaseModel):
    """
    PostgreSQL connection configuration.

    Accepts either a full connection string via DATABASE__DSN or individual
    components. DATABASE__DSN takes priority when both are provided.
    """

    dsn: SecretStr | None = Field(
        default=None,
        description="Full PostgreSQL connection string (overrides individual fields)",
    )
    host: str | None = Field(default=None, description="PostgreSQL host")
    port: int = Field(default=5432, ge=1, le=65535, description="PostgreSQL port")
    name: str | None = Field(default=None, description="PostgreSQL database name")
    username: str | None = Field(default=None, description="PostgreSQL username")
    password: SecretStr | None = Field(default=None, description="PostgreSQL password")

    @model_validator(mode="after")
    def resolve_dsn(self) -> DatabaseSettings:
        """Build `dsn` from the components when it was not given directly."""
        if self.dsn is not None:
            return self
        missing = [f for f, v in [
            ("DATABASE__HOST", self.host),
            ("DATABASE__NAME", self.name),
            ("DATABASE__USERNAME", self.username),
            ("DATABASE__PASSWORD", self.password),
        ] if not v]
        if missing:
            raise ValueError("Set DATABASE__DSN or provide all of: " + ", ".join(missing))
        dsn_value = (
            f"postgresql://{self.username}:{self.password.get_secret_value()}"  # type: ignore[union-attr]
            f"@{self.host}:{self.port}/{self.name}"
        )
        object.__setattr__(self, "dsn", SecretStr(dsn_value))
        return self

    def get_dsn(self) -> str:
        assert self.dsn is not None  # guaranteed by resolve_dsn
        return self.dsn.get_secret_value()


class SchedulerSettings(BaseModel):
    """
    Sync schedule as a standard 5-field cron expression.

    Format: minute hour day-of-month month day-of-week
      "0 */6 * * *"  — every 6 hours (default)
      "*/30 * * * *" — every 30 minutes
    """

    cron: str = Field(
        default="0 */6 * * *",
        description="Cron expression (5 fields: minute hour dom month dow)",
    )

    @field_validator("cron")
    @classmethod
    def validate_cron(cls, value: str) -> str:
        fields = value.strip().split()
        if len(fields) != 5:
            raise ValueError(
                f"Cron expression must have exactly 5 fields "
                f"(minute hour dom month dow), got {len(fields)}: {value!r}"
            )
        return value.strip()


class AppSettings(BaseSettings):
    """
    Root application settings.

    Load order (highest priority first):
      1. Environment variables
      2. .env file
      3. Default values
    """

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    update: UpdateSettings = Field(default_factory=lambda: UpdateSettings())
    database: DatabaseSettings | None = None
    scheduler: SchedulerSettings = Field(default_factory=lambda: SchedulerSettings())

    http_timeout_seconds: int = Field(default=5, ge=1)
    run_on_startup: bool = Field(default=True)
    log_level: str = Field(default="INFO")
