"""Application configuration via environment variables."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or .env file."""
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Application
    app_name: str = "Event Spark"
    debug: bool = False
    secret_key: str = "change-me-in-production"
    base_url: str = "https://eventspark.app"  # Used for share links
    display_timezone: str = "Australia/Melbourne"  # Event dates and times are shown in this zone
    log_dir: Path = Path.home() / ".logs" / "eventspark"

    # Server
    host: str = "0.0.0.0"  # Bind to all interfaces for external access
    port: int = 8000
    allowed_origins: str = "*"  # Comma-separated origins, or "*" for all

    # Database
    database_url: str = "sqlite:///./event_spark.db"

    # Event source: "database" (local SQLModel tables), "rest" (hosted
    # PostgREST backend) or "demo" (seeded events kept in storage)
    event_source: str = "database"
    supabase_url: str = ""
    supabase_anon_key: str = ""
    request_timeout: int = 10

    # Admin
    admin_email: str = "admin@example.com"
    admin_password: str = ""  # Empty disables admin login
    admin_session_max_age: int = 60 * 60 * 8  # Seconds before an admin must sign in again

    # Swipe deck
    swipe_threshold: float = 100.0
    exit_distance: float = 400.0
    exit_duration: float = 0.3  # Seconds for button/keyboard swipes
    deck_window_size: int = 3
    deck_idle_minutes: int = 60
    deck_refresh_minutes: int = 15  # Page loads rebuild decks older than this

    # Rate limiting for admin writes
    rate_limit_window_seconds: int = 60
    rate_limit_max_requests: int = 100


settings = Settings()
