"""
Centralized configuration using Pydantic Settings
Loads from environment variables and .env file
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """
    Settings shared by every service
    All settings can be overridden by environment variables
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # =============================================
    # LOGGING
    # =============================================
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="json", description="Log format (json or text)")

    # =============================================
    # ENVIRONMENT
    # =============================================
    environment: str = Field(default="production", description="Environment")

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


# Global settings instance
settings = Settings()
