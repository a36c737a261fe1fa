"""Models describing the structured reply returned to the frontend."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .enums import NormalizationStage, PipelineState, PromptVariant

DEFAULT_REFERENCE_TEXT = "Please open your Bible to read the full passage."
DEFAULT_REFERENCE_CONTEXT = "Historical background of the passage."
DEFAULT_REFERENCE_MEANING = "Spiritual meaning of the passage."
DEFAULT_REFERENCE_APPLICATION = "How this passage applies to daily life."

_CITATION_KEYS = ("citation", "verse", "reference", "ref")
_STRING_SEPARATORS = (" - ", " – ", " — ", ": \"")


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ScriptureReference(_CamelModel):
    """A single scripture reference.

    Two references are the same reference when their citations match,
    ignoring case and whitespace; see :attr:`key`.
    """

    citation: str
    text: str = DEFAULT_REFERENCE_TEXT
    context: str = DEFAULT_REFERENCE_CONTEXT
    meaning: str = DEFAULT_REFERENCE_MEANING
    application: str = DEFAULT_REFERENCE_APPLICATION

    @property
    def key(self) -> str:
        return citation_key(self.citation)

    @classmethod
    def coerce(cls, value: Any) -> Optional["ScriptureReference"]:
        """Build a reference from whatever shape the upstream model produced.

        Accepts an existing instance, a mapping keyed by ``citation`` (or
        ``verse``/``reference``), or a string such as ``"John 3:16 - For God
        so loved the world"``.  Returns ``None`` for values that carry no
        citation.
        """
        if isinstance(value, ScriptureReference):
            return value

        if isinstance(value, str):
            stripped = value.strip().strip('"').strip()
            if not stripped:
                return None
            for separator in _STRING_SEPARATORS:
                if separator in stripped:
                    citation, text = stripped.split(separator, 1)
                    citation, text = citation.strip(), text.strip().strip('"').strip()
                    if citation:
                        return cls(citation=citation, text=text or DEFAULT_REFERENCE_TEXT)
            return cls(citation=stripped)

        if isinstance(value, Mapping):
            citation = next(
                (
                    str(value[key]).strip()
                    for key in _CITATION_KEYS
                    if value.get(key) is not None and str(value[key]).strip()
                ),
                "",
            )
            if not citation:
                return None
            fields: dict[str, str] = {"citation": citation}
            for name in ("text", "context", "meaning", "application"):
                item = value.get(name)
                if item is not None and str(item).strip():
                    fields[name] = str(item).strip()
            return cls(**fields)

        return None


def citation_key(citation: str) -> str:
    """Return the comparison key for a citation."""
    return re.sub(r"\s+", " ", citation).strip().lower()


class PartialReply(_CamelModel):
    """A reply whose fields are always present but may still be short."""

    letter: str
    prayer: str
    scripture_references: list[ScriptureReference] = Field(default_factory=list)
    core_message: str


class TokenUsage(_CamelModel):
    """Estimated token usage of one upstream exchange."""

    prompt: int = 0
    response: int = 0
    total: int = 0


class ReplyMetadata(_CamelModel):
    """Diagnostics describing how a reply was produced."""

    request_id: str
    processing_time: int = Field(0, description="Elapsed processing time in milliseconds.")
    ai_service: str
    fallback: bool = False
    error: Optional[str] = None
    pipeline_state: PipelineState
    prompt_variant: Optional[PromptVariant] = None
    normalization_stage: Optional[NormalizationStage] = None
    token_usage: Optional[TokenUsage] = None


class GeneratedReply(PartialReply):
    """The canonical reply contract returned to the frontend."""

    metadata: ReplyMetadata


class ServiceStatus(_CamelModel):
    """Read-only snapshot of provider availability."""

    provider_a_available: bool
    provider_b_available: bool
    preferred_provider: str
    model_name: str
    secondary_model_name: str
    initialized: bool = True
