"""
CallScreen - Configuration Management

Centralized configuration using Pydantic Settings.
All secrets and environment-specific values are loaded from environment variables.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import FrozenSet, List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from callscreen.core.decision import DEFAULT_MIN_VOTES, DEFAULT_NEGATIVE_RATINGS
from callscreen.core.exceptions import ConfigurationError
from callscreen.core.numbers import DEFAULT_COUNTRY_CODE


@dataclass(frozen=True)
class ScreeningConfig:
    """
    Immutable screening configuration consumed by the core pipeline.

    Built once at startup from Settings; never mutated afterwards.
    """
    api_base: str
    bearer_token: str
    min_votes: int = DEFAULT_MIN_VOTES
    negative_ratings: FrozenSet[str] = DEFAULT_NEGATIVE_RATINGS
    rich_endpoint: Optional[str] = None
    compact_endpoint: Optional[str] = None
    timeout_seconds: float = 6.0
    country_code: str = DEFAULT_COUNTRY_CODE
    notify_username: str = "3CX PhoneBlock"

    def __post_init__(self):
        if self.min_votes < 0:
            raise ConfigurationError(
                "min_votes must not be negative",
                details={"min_votes": self.min_votes},
            )
        if self.timeout_seconds <= 0:
            raise ConfigurationError(
                "timeout_seconds must be positive",
                details={"timeout_seconds": self.timeout_seconds},
            )
        if not self.country_code.isdigit():
            raise ConfigurationError(
                "country_code must contain digits only",
                details={"country_code": self.country_code},
            )
        # Membership is tested case-insensitively
        object.__setattr__(
            self,
            "negative_ratings",
            frozenset(r.strip().upper() for r in self.negative_ratings if r.strip()),
        )


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Hierarchy (highest to lowest priority):
    1. Environment variables
    2. .env file
    3. Default values
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Application ---
    app_env: str = "development"
    app_debug: bool = True
    app_log_level: str = "INFO"
    log_json_format: bool = False

    # --- Server ---
    backend_host: str = "0.0.0.0"
    backend_port: int = 8000

    # --- Privacy ---
    anonymize_logs: bool = False  # If True, phone numbers are masked in module logs

    # --- Telephony ---
    enable_telephony_integration: bool = True

    # --- PhoneBlock API ---
    phoneblock_api_base: str = "https://phoneblock.net/phoneblock/api"
    phoneblock_bearer_token: str = ""
    phoneblock_min_votes: int = DEFAULT_MIN_VOTES
    # Rating codes treated as negative (comma-separated)
    phoneblock_negative_ratings: str = ",".join(sorted(DEFAULT_NEGATIVE_RATINGS))
    default_country_code: str = DEFAULT_COUNTRY_CODE

    # --- Notifications (leave empty to disable) ---
    discord_webhook_url: str = ""
    generic_webhook_url: str = ""
    notify_username: str = "3CX PhoneBlock"

    # --- HTTP ---
    http_timeout_seconds: float = 6.0

    @property
    def negative_ratings_list(self) -> List[str]:
        """Parse comma-separated rating codes into list."""
        return [
            code.strip().upper()
            for code in self.phoneblock_negative_ratings.split(",")
            if code.strip()
        ]

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env.lower() == "production"

    def screening_config(self) -> ScreeningConfig:
        """Freeze the screening-relevant values into a ScreeningConfig."""
        return ScreeningConfig(
            api_base=self.phoneblock_api_base.rstrip("/"),
            bearer_token=self.phoneblock_bearer_token,
            min_votes=self.phoneblock_min_votes,
            negative_ratings=frozenset(self.negative_ratings_list),
            rich_endpoint=self.discord_webhook_url.strip() or None,
            compact_endpoint=self.generic_webhook_url.strip() or None,
            timeout_seconds=self.http_timeout_seconds,
            country_code=self.default_country_code,
            notify_username=self.notify_username,
        )


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings instance.

    Use dependency injection in routes:
        settings: Settings = Depends(get_settings)
    """
    return Settings()


# Convenience export
settings = get_settings()
