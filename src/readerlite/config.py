"""Configuration loading for Reader Lite."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_USER_AGENT = "ReaderLite/1.0 (+https://github.com/)"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_prefix="READERLITE_")

    # Application settings
    log_level: str = Field(default="INFO", description="Logging level")
    json_logs: bool = Field(default=True, description="Render logs as JSON lines")

    # Feed proxy settings
    user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        description="User-Agent sent with every upstream feed request",
    )
    fetch_timeout: float | None = Field(
        default=None,
        description="Upstream fetch timeout in seconds; unset means no timeout",
    )
    proxy_path: str = Field(default="/api/fetch", description="Path of the feed proxy endpoint")

    # Offline cache settings
    cache_name: str = Field(default="reader-lite", description="Offline cache namespace")
    cache_version: str = Field(default="v1", description="Offline cache version, bumped per deploy")
    shell_assets: list[str] = Field(
        default_factory=lambda: ["/", "/manifest.webmanifest"],
        description="Paths precached when the offline cache installs",
    )

    # Client settings
    app_origin: str = Field(
        default="http://localhost:8000",
        description="Origin the reader client talks to",
    )
    data_dir: Path = Field(
        default=Path("~/.reader-lite"),
        description="Directory holding subscriptions, read state and the offline cache",
    )

    @field_validator("user_agent", "cache_version")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Reject empty identifiers."""
        if not v or not v.strip():
            raise ValueError("value must not be blank")
        return v.strip()

    @field_validator("fetch_timeout")
    @classmethod
    def validate_fetch_timeout(cls, v: float | None) -> float | None:
        """Validate the upstream timeout is positive when set."""
        if v is not None and v <= 0:
            raise ValueError(
                f"READERLITE_FETCH_TIMEOUT must be positive, got {v}. "
                "Leave it unset to disable the timeout."
            )
        return v

    @property
    def data_path(self) -> Path:
        """Data directory with the user's home expanded."""
        return self.data_dir.expanduser()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
