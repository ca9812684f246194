# app/core/config.py

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Runtime settings, read from environment variables (or a local .env file).

    Empty strings mean "not configured": no database_url disables the store,
    no assets_dir disables the static site, and a missing email_api_key or
    email_from turns receipt emails into a reported no-op.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "lesson-invoices"
    app_version: str = "0.2.0"
    log_level: str = "INFO"

    database_url: str = "sqlite:///db.sqlite"  # file in project root
    assets_dir: str = ""

    email_api_url: str = "https://api.resend.com/emails"
    email_api_key: str = ""
    email_from: str = ""
    email_timeout_seconds: float = 15.0

    business_name: str = "Elliot's Lessons"
    business_email: str = ""
    currency_symbol: str = "£"
    timezone: str = "Europe/London"
    receipt_prefix: str = "RCPT"


@lru_cache
def get_settings() -> Settings:
    return Settings()
