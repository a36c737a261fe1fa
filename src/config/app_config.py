from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

class AppConfig(BaseSettings):
    """Application configuration settings."""

    # Environment
    app_env: str = Field("development")
    app_debug: bool = Field(False)
    app_host: str = Field("0.0.0.0")
    app_port: int = Field(3001)
    app_cors_origins: str = Field("*")

    # Logging
    log_level: str = Field("INFO")
    log_file: Optional[str] = Field(None)

    # Request limits
    max_situation_length: int = Field(2000)

    # Optional long-form prompt document; absent files fall back to the built-in template
    prompt_template_path: Optional[str] = Field("AI_Prompts_Detailed.md")

    @field_validator("app_env")
    def validate_app_env(cls, value: str) -> str:
        if value not in ["development", "staging", "production"]:
            raise ValueError("APP_ENV must be development, staging, or production")
        return value

    @field_validator("log_level")
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]:
            raise ValueError("LOG_LEVEL must be a valid Loguru level")
        return level

    @field_validator("max_situation_length")
    def validate_max_situation_length(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("MAX_SITUATION_LENGTH must be positive")
        return value

    @property
    def cors_origins(self) -> list[str]:
        """Return the comma-separated ``APP_CORS_ORIGINS`` value as a list."""
        return [part.strip() for part in self.app_cors_origins.split(",") if part.strip()]

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache()
def get_app_config() -> AppConfig:
    """Return a cached application configuration instance."""

    return AppConfig()
