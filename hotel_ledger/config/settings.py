"""Application settings and configuration management."""
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    """Reservation ledger behaviour."""

    lock_timeout_seconds: float = 2.0  # Bounded wait for a room lock before BusyError
    fallback_to_room_rate: bool = True  # Price from Room.base_rate when no rate plan is in scope
    default_currency: str = "USD"
    check_in_hour: int = 15  # Hour (UTC) a check-in date starts at, for refund windows

    model_config = SettingsConfigDict(env_prefix="LEDGER_")


class PricingSettings(BaseSettings):
    """Property pricing policy defaults.

    A Property may override any of these; missing values fall back here.
    """

    weekend_days: list[int] = [4, 5]  # Nights of Friday and Saturday (date.weekday())
    early_bird_days: int = 30  # Lead time (days) at or above which early-bird applies
    last_minute_days: int = 3  # Lead time (days) at or below which last-minute applies
    extended_stay_nights: int = 7  # Night count that must be exceeded for extended-stay

    model_config = SettingsConfigDict(env_prefix="PRICING_")


class ApiSettings(BaseSettings):
    """HTTP API configuration."""

    host: str = "0.0.0.0"
    port: int = 8000
    catalog_path: Optional[str] = None  # JSON catalog of properties/rooms/rate plans to seed

    model_config = SettingsConfigDict(env_prefix="API_")


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["json", "console"] = "json"
    quiet_loggers: list[str] = ["uvicorn.access", "httpx"]  # Raised to WARNING

    model_config = SettingsConfigDict(env_prefix="LOG_")


class Settings(BaseSettings):
    """Main application settings."""

    environment: Literal["dev", "staging", "prod"] = "dev"
    debug: bool = False

    # Sub-settings
    ledger: LedgerSettings = LedgerSettings()
    pricing: PricingSettings = PricingSettings()
    api: ApiSettings = ApiSettings()
    logging: LoggingSettings = LoggingSettings()

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
settings = Settings()
