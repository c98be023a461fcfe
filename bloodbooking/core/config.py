from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration.

    Values are loaded from environment variables and optional .env file.
    Activity settings (dates, slots, capacity) are not here: they live in the
    settings worksheet / table and are re-read on every request.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    # App
    app_name: str = "Blood Donation Booking"
    environment: str = "dev"  # dev|staging|prod
    api_prefix: str = "/api"
    log_level: str = "INFO"
    cors_origins: list[str] = ["*"]

    # Storage backend: "sheets" (Google Sheets) or "sql" (SQLAlchemy)
    storage_backend: str = "sheets"

    # Google Sheets
    google_service_account_json: str = "service_account.json"
    spreadsheet_id: str = ""
    booking_worksheet: str = "BookingData"
    summary_worksheet: str = "BookingSummary"
    settings_worksheet: str = "設定"

    # Database (sql backend)
    database_url: str = "sqlite:///./bloodbooking.db"

    # Email (SMTP)
    smtp_host: str = "localhost"
    smtp_port: int = 1025
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = False
    email_from: str = "no-reply@example.com"

    # Front end used for confirm/cancel links in emails
    frontend_base_url: str = "https://blood-booking.vercel.app"

    # Booking rules
    lock_timeout_seconds: float = 10.0
    confirm_window_days: int = 7

    # Timezone
    timezone: str = "Asia/Taipei"


@lru_cache
def get_settings() -> Settings:
    return Settings()
