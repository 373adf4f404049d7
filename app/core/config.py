"""
Application settings.
Loaded from environment variables.
"""
import logging
from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Settings loaded from the environment / .env"""

    # App
    APP_NAME: str = "Campaign Dispatch"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    # Supabase
    SUPABASE_URL: str = ""
    SUPABASE_SERVICE_KEY: str = ""

    # Anthropic (message generation)
    ANTHROPIC_API_KEY: str = ""
    LLM_MODEL: str = "claude-3-5-haiku-20241022"

    # E-mail provider
    # EMAIL_PROVIDER: "http" sends through EMAIL_API_URL, "mock" only records sends
    EMAIL_PROVIDER: str = "http"
    EMAIL_API_URL: str = "http://localhost:8025/api/v1/send"
    EMAIL_API_KEY: str = ""
    EMAIL_FROM_NAME: str = "Marketing Team"
    EMAIL_FROM_ADDRESS: str = "no-reply@example.com"
    EMAIL_TIMEOUT_SECONDS: float = 30.0

    # Dispatch
    DISPATCH_WAVE_SIZE: int = 50
    DISPATCH_WAVE_DELAY_MS: int = 1000

    # Listing
    DEFAULT_PAGE_SIZE: int = 10

    # CORS - allowed origins (comma separated)
    CORS_ORIGINS: str = "*"  # "*" only for development

    @property
    def is_production(self) -> bool:
        """True when running in production."""
        return self.ENVIRONMENT.lower() == "production"

    @property
    def email_from(self) -> str:
        """Formatted From header."""
        return f'"{self.EMAIL_FROM_NAME}" <{self.EMAIL_FROM_ADDRESS}>'

    @property
    def cors_origins_list(self) -> list[str]:
        """
        Allowed CORS origins.

        In production this must be set explicitly.
        """
        if self.CORS_ORIGINS == "*":
            if self.is_production:
                logging.warning(
                    "CORS_ORIGINS='*' in production. "
                    "Configure explicit origins."
                )
            return ["*"]
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


class DispatchConfig:
    """
    Tuning defaults for the batch dispatcher.

    Settings.DISPATCH_* override these per deployment.
    """

    WAVE_SIZE: int = 50
    WAVE_DELAY_MS: int = 1000

    # Communication log / reporting
    MAX_ERROR_CHARS: int = 500


class DatabaseConfig:
    """Query limits for repositories."""

    RECENT_ORDERS_LIMIT: int = 5


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()


settings = get_settings()
