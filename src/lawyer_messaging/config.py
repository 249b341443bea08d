"""
Service configuration.

Settings are read from the environment (or a local .env file) once and cached.
"""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Security
    jwt_secret: str = "your-super-secret-jwt-key-change-this-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expiry_days: int = 7

    # Realtime
    socketio_path: str = "socket.io"

    # Pagination
    default_page_size: int = 50
    conversation_page_size: int = 20
    max_page_size: int = 100

    # Application
    log_level: str = "INFO"
    cors_origins: List[str] = ["http://localhost:3000", "http://localhost:3001"]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
