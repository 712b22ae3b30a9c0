"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or .env file."""
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Application
    app_name: str = "Volunteer Hub"
    debug: bool = False
    log_dir: str = "~/.logs/volunteer_hub"

    # Server
    host: str = "0.0.0.0"  # Bind to all interfaces for external access
    port: int = 8000
    allowed_origins: str = "*"  # Comma-separated origins, or "*" for all

    # Database
    database_url: str = "sqlite:///./volunteer_hub.db"

    # Organizer access. Requests carrying "Authorization: Bearer <key>" act
    # as organizer; an empty key disables organizer access entirely.
    organizer_api_key: str = ""

    # Registration tokens
    token_bytes: int = 8  # 16 hex characters
    token_retry_attempts: int = 3
    status_change_retry_attempts: int = 3

    # Counter repair job (0 disables)
    recount_interval_minutes: int = 60


settings = Settings()
