from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..models.enums import ProviderName

load_dotenv()


class LlmConfig(BaseSettings):
    """Configuration settings for the two upstream text-generation providers."""

    openai_api_key: Optional[str] = Field(default=None, alias="OPENAI_API_KEY")
    openai_model: str = Field("gpt-4o-mini", alias="OPENAI_MODEL")
    openai_base_url: Optional[str] = Field(default=None, alias="OPENAI_BASE_URL")

    gemini_api_key: Optional[str] = Field(default=None, alias="GEMINI_API_KEY")
    gemini_model: str = Field("gemini-2.5-flash", alias="GEMINI_MODEL")

    preferred_provider: ProviderName = Field(ProviderName.OPENAI, alias="LLM_PREFERRED_PROVIDER")
    temperature: float = Field(0.7, alias="LLM_TEMPERATURE")
    max_tokens: int = Field(1200, alias="LLM_MAX_TOKENS")
    timeout: int = Field(30, alias="LLM_TIMEOUT")
    compact_prompt_token_ceiling: int = Field(800, alias="LLM_COMPACT_PROMPT_TOKEN_CEILING")

    @field_validator("preferred_provider", mode="before")
    @classmethod
    def normalise_preferred_provider(cls, value: object) -> object:
        if isinstance(value, str):
            candidate = value.strip().lower()
            if candidate not in {item.value for item in ProviderName}:
                raise ValueError("LLM_PREFERRED_PROVIDER must be openai or gemini")
            return candidate
        return value

    @field_validator("temperature")
    def validate_temperature(cls, value: float) -> float:
        if not 0.0 <= value <= 1.0:
            raise ValueError("LLM_TEMPERATURE must be between 0.0 and 1.0")
        return value

    @field_validator("timeout")
    def validate_timeout(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("LLM_TIMEOUT must be positive")
        return value

    @field_validator("max_tokens")
    def validate_max_tokens(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("LLM_MAX_TOKENS must be positive")
        return value

    @model_validator(mode="after")
    def blank_keys_are_missing(self) -> "LlmConfig":
        # An empty string in .env means "not configured"
        if self.openai_api_key is not None and not self.openai_api_key.strip():
            object.__setattr__(self, "openai_api_key", None)
        if self.gemini_api_key is not None and not self.gemini_api_key.strip():
            object.__setattr__(self, "gemini_api_key", None)
        return self

    @property
    def secondary_provider(self) -> ProviderName:
        if self.preferred_provider == ProviderName.OPENAI:
            return ProviderName.GEMINI
        return ProviderName.OPENAI

    def model_for(self, provider: ProviderName) -> str:
        """Return the model identifier configured for ``provider``."""

        if provider == ProviderName.OPENAI:
            return self.openai_model
        return self.gemini_model

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)


@lru_cache()
def get_llm_config() -> LlmConfig:
    """Return a cached language model configuration."""

    return LlmConfig()
