# backend/activity_booking/core/config.py
import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.debug(f"[CONFIG] Looking for .env at: {env_path}")
    load_dotenv(env_path)


PRODUCTION_ENVIRONMENTS = {"prod", "production", "live"}


class Settings(BaseSettings):
    """Runtime configuration for the booking service."""

    environment: str = Field(default="development", description="Deployment environment name")

    database_url: str = Field(
        default="sqlite:///./activity_booking.db",
        description="SQLAlchemy database URL",
    )
    database_echo: bool = Field(default=False, description="Echo SQL statements to the log")

    # Stripe
    stripe_secret_key: SecretStr = Field(
        default=SecretStr(""),
        description="Stripe secret key; gateway calls fail cleanly when unset",
    )
    stripe_currency: str = Field(default="usd", description="Default currency for charges")
    payment_gateway_timeout_seconds: float = Field(
        default=8.0,
        description="Overall HTTP timeout for a single payment gateway request",
    )
    sandbox_card_token: str = Field(
        default="tok_visa",
        description="Placeholder card token used outside production when no card details are sent",
    )

    # Booking orchestration
    booking_debug: bool = Field(
        default=False,
        description="Log every booking orchestration step at INFO instead of DEBUG",
    )
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("payment_gateway_timeout_seconds")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("payment_gateway_timeout_seconds must be positive")
        return value

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return (value or "INFO").strip().upper()

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() in PRODUCTION_ENVIRONMENTS

    @property
    def stripe_configured(self) -> bool:
        return bool(self.stripe_secret_key.get_secret_value())


settings = Settings()
