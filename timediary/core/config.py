"""Application configuration via environment variables."""
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or .env file."""
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Application
    app_name: str = "Time Diary"
    debug: bool = False
    log_dir: Path = Path.home() / ".logs" / "time-diary"

    # Server
    host: str = "0.0.0.0"  # Bind to all interfaces for external access
    port: int = 8000
    allowed_origins: str = "*"  # Comma-separated origins, or "*" for all

    # Database
    database_url: str = "sqlite:///./time_diary.db"
    default_user_id: int = 1  # Single owner until auth is wired in

    # Sleep / wake inference
    sleep_title: str = "잠"
    sleep_category_marker: str = "⑤"
    wake_event_title: str = "기상"
    wake_event_minutes: int = 1

    # Caching
    day_cache_ttl_seconds: int = 300

    # Calendar subscriptions (ICS)
    calendar_refresh_minutes: int = 15
    calendar_fetch_timeout: float = 10.0


settings = Settings()
