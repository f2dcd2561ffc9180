from functools import lru_cache
from urllib.parse import urlparse

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


def _validate_http_url(value: str, field_name: str) -> None:
    parsed = urlparse(value)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ValueError(f"{field_name} must be an absolute http(s) URL.")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "rental-booking-core"
    log_level: str = Field("INFO", env="LOG_LEVEL")

    # Supabase configuration (required)
    supabase_url: str = Field(..., env="SUPABASE_URL")
    supabase_service_key: str = Field(..., env="SUPABASE_SERVICE_KEY")

    # Google Calendar sync
    google_calendar_api_base: str = Field(
        "https://www.googleapis.com/calendar/v3", env="GOOGLE_CALENDAR_API_BASE"
    )
    google_calendar_access_token: str | None = Field(None, env="GOOGLE_CALENDAR_ACCESS_TOKEN")
    calendar_sync_timeout_seconds: float = Field(10.0, gt=0)
    calendar_time_zone: str = "UTC"

    # Notifications feed
    notification_feed_size: int = Field(100, ge=1)

    # Pricing
    cleaning_fee_rate: float = Field(0.15, ge=0)
    service_fee_rate: float = Field(0.08, ge=0)

    @model_validator(mode="after")
    def validate_settings(self):
        if not self.supabase_url or not self.supabase_service_key:
            raise ValueError(
                "SUPABASE_URL and SUPABASE_SERVICE_KEY are required. "
                "Get these from your Supabase project settings."
            )

        if not self.supabase_url.endswith(".supabase.co"):
            raise ValueError(
                "SUPABASE_URL must be a valid Supabase project URL "
                "(e.g., https://<project>.supabase.co)"
            )

        _validate_http_url(self.google_calendar_api_base, "GOOGLE_CALENDAR_API_BASE")

        normalized_level = self.log_level.strip().upper()
        if normalized_level not in LOG_LEVELS:
            raise ValueError(
                "LOG_LEVEL must be one of: " + ", ".join(sorted(LOG_LEVELS))
            )
        self.log_level = normalized_level

        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()
