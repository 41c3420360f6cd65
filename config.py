"""Configuration management using pydantic-settings."""
from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # RareJob Credentials
    rarejob_email: str = ""
    rarejob_password: str = ""

    # Discord Webhook (notifications are skipped when unset)
    discord_webhook_url: Optional[str] = None

    # Application Settings
    log_level: str = "INFO"
    log_file: Optional[Path] = None
    calendar_dir: Optional[Path] = None
    timezone: str = "Asia/Tokyo"
    lesson_minutes: int = 25

    # Browser
    browser_name: str = "firefox"
    headless: bool = False
    use_virtual_display: bool = True
    virtual_display: str = ":99"
    wait_timeout_seconds: float = 30.0
    poll_interval_seconds: float = 0.5

    # URLs
    login_url: str = "https://www.rarejob.com/account/login/"
    search_url: str = "https://www.rarejob.com/reservation/search/"
    reservation_finish_url: str = "https://www.rarejob.com/reservation/finish/"

    # Session cookie that appears once the login went through
    session_cookie_name: str = "PHPSESSID"


settings = Settings()
