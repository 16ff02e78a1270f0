"""Application configuration loaded from environment variables."""

from functools import lru_cache
from typing import Optional

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration, injectable for tests."""

    app_name: str = Field(default="Loyalty Membership Engine", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")

    log_to_file: bool = Field(default=False, alias="LOG_TO_FILE")
    log_file_path: str = Field(default="logs/membership.log", alias="LOG_FILE_PATH")

    # Backing store: one POST endpoint per operation under a common base URL.
    record_store_url: Optional[AnyHttpUrl] = Field(default=None, alias="RECORD_STORE_URL")
    record_store_api_key: Optional[str] = Field(default=None, alias="RECORD_STORE_API_KEY")

    otp_service_url: Optional[AnyHttpUrl] = Field(default=None, alias="OTP_SERVICE_URL")
    card_store_url: Optional[AnyHttpUrl] = Field(default=None, alias="CARD_STORE_URL")

    http_timeout_seconds: float = Field(default=15.0, alias="HTTP_TIMEOUT_SECONDS")

    default_phone_region: str = Field(default="US", alias="DEFAULT_PHONE_REGION")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("http_timeout_seconds", mode="after")
    @classmethod
    def _bound_timeout(cls, value: float) -> float:
        """Network calls are always bounded; non-positive values fall back to the default."""
        if value <= 0:
            return 15.0
        return value

    @field_validator("default_phone_region", mode="before")
    @classmethod
    def _upper_region(cls, value: object) -> str:
        text = str(value or "").strip().upper()
        return text or "US"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cache settings so BaseSettings is not re-parsed on every call."""

    return Settings()
