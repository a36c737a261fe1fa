"""Expose commonly used model classes at the package level.

Importing these classes here allows consumers to write concise imports like::

    from src.models import UserRequest, GeneratedReply, ScriptureReference

These names refer to the underlying Pydantic models defined in their
respective modules.
"""

from .enums import NormalizationStage, PipelineState, PromptVariant, ProviderName  # noqa: F401
from .generated_reply import (  # noqa: F401
    GeneratedReply,
    PartialReply,
    ReplyMetadata,
    ScriptureReference,
    ServiceStatus,
    TokenUsage,
)
from .reply_request import GenerateRequest, UserRequest, build_user_request  # noqa: F401
