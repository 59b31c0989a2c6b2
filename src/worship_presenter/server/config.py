"""Relay server configuration using pydantic-settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Relay server configuration."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # Network
    PRESENTER_HOST: str = "0.0.0.0"
    PRESENTER_PORT: int = 8765

    # Rooms
    PRESENTER_PIN_LENGTH: int = 4
    PRESENTER_ROOM_IDLE_MINUTES: int = 120
    PRESENTER_CLEANUP_INTERVAL_SECONDS: int = 900


settings = Settings()
