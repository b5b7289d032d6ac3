"""
Application settings loaded from environment variables.
Uses pydantic-settings for type-safe configuration.
"""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


# Front-end bundled with the gateway package
DEFAULT_STATIC_DIR = Path(__file__).resolve().parents[2] / "arrival_gateway" / "static"


class Settings(BaseSettings):
    """Application settings with defaults for development."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server
    host: str = "0.0.0.0"
    port: int = 3000

    # Environment
    environment: str = "development"
    debug: bool = True

    # CORS for the HTTP surface
    # Comma-separated list of allowed origins (empty uses default localhost list)
    allowed_origins: str = ""

    # WebSocket
    ws_max_message_size: int = 64 * 1024  # 64 KB
    ws_send_queue_size: int = 100  # Frames buffered per connection before dropping

    # Static front-end
    static_dir: Path = DEFAULT_STATIC_DIR

    def validate_production_settings(self) -> list[str]:
        """
        Validate that the configuration is sane for production.
        Returns a list of validation errors. Empty list means all checks pass.
        """
        errors = []

        if self.environment == "production":
            if self.debug:
                errors.append("DEBUG must be False in production")

            if not self.allowed_origins:
                errors.append(
                    "ALLOWED_ORIGINS must be set in production (comma-separated list of allowed domains)"
                )

        if not (self.static_dir / "index.html").is_file():
            errors.append(f"STATIC_DIR does not contain index.html: {self.static_dir}")

        return errors


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience exports
settings = get_settings()
