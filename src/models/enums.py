"""Enumerations used across models."""

from enum import Enum


class ProviderName(str, Enum):
    """Upstream text-generation providers the service can call."""

    OPENAI = "openai"
    GEMINI = "gemini"


class PromptVariant(str, Enum):
    """Prompt size variant.

    ``FULL`` embeds the long-form instruction document, ``COMPACT`` is the
    short self-contained instruction used when the full prompt is too large.
    """

    FULL = "full"
    COMPACT = "compact"


class PipelineState(str, Enum):
    """States of the fallback state machine that produces a reply."""

    PRIMARY = "primary"
    SECONDARY = "secondary"
    STATIC_FALLBACK = "static_fallback"
    DONE = "done"


class NormalizationStage(str, Enum):
    """Rungs of the normalization cascade, cheapest and strictest first."""

    DIRECT = "direct"
    CHUNKS = "chunks"
    BRACE_REPAIR = "brace_repair"
    BOUNDARY_TRIM = "boundary_trim"
    REGEX_FIELDS = "regex_fields"
    RAW_TEXT = "raw_text"
