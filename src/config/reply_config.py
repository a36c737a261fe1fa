"""Thresholds applied while shaping upstream text into a reply.

The values here are the single authoritative set used by the normalizer,
the enhancer and the static fallback reply.  They can be tuned through
``REPLY_*`` environment variables.
"""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..prompts.canned_content import REFERENCE_POOL_SIZE

load_dotenv()


class ReplyConfig(BaseSettings):
    """Length floors and reference-count bounds for generated replies."""

    letter_min_length: int = Field(350)
    prayer_min_length: int = Field(300)
    min_references: int = Field(5)
    max_references: int = Field(7)
    raw_letter_max_length: int = Field(800)
    core_message_max_length: int = Field(150)

    @field_validator(
        "letter_min_length",
        "prayer_min_length",
        "min_references",
        "max_references",
        "raw_letter_max_length",
        "core_message_max_length",
    )
    @classmethod
    def validate_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("Reply thresholds must be positive")
        return value

    @model_validator(mode="after")
    def validate_reference_bounds(self) -> "ReplyConfig":
        if self.min_references > self.max_references:
            raise ValueError("REPLY_MIN_REFERENCES must not exceed REPLY_MAX_REFERENCES")
        if self.min_references > REFERENCE_POOL_SIZE:
            raise ValueError(
                f"REPLY_MIN_REFERENCES must not exceed the {REFERENCE_POOL_SIZE} canned references"
            )
        return self

    model_config = SettingsConfigDict(env_file=".env", env_prefix="REPLY_", extra="ignore")


@lru_cache()
def get_reply_config() -> ReplyConfig:
    """Return a cached reply threshold configuration."""

    return ReplyConfig()
