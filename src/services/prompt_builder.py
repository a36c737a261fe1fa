"""Build the prompt text sent to the upstream providers.

The long-form instruction document is an optional file on disk.  It is
read once per process into an immutable :class:`PromptTemplates` object;
when it is missing the built-in template is used instead.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from loguru import logger

from ..config.app_config import get_app_config
from ..config.llm_config import LlmConfig, get_llm_config
from ..models.enums import PromptVariant
from ..models.reply_request import UserRequest
from ..prompts.letter import (
    COMPACT_TEMPLATE,
    CURRENT_USER_BLOCK,
    DEFAULT_FULL_TEMPLATE,
    RESPONSE_FORMAT_BLOCK,
)

DEFAULT_RELIGION = "Christian"

_LOGOGRAPHIC = re.compile(r"[\u3040-\u30ff\u3400-\u4dbf\u4e00-\u9fff\uac00-\ud7af\uf900-\ufaff]")
_ASCII_WORD = re.compile(r"[A-Za-z]+")


def estimate_tokens(text: str) -> int:
    """Estimate the token count of ``text``.

    Logographic characters count 1.5 each and ASCII words count 1 each.
    This is a stable heuristic, not a real tokenizer.
    """
    if not text:
        return 0
    logographic = len(_LOGOGRAPHIC.findall(text))
    words = len(_ASCII_WORD.findall(text))
    return math.ceil(logographic * 1.5 + words)


@dataclass(frozen=True)
class PromptTemplates:
    """Prompt text available to the builder for the life of the process."""

    full_document: Optional[str] = None
    source: Optional[str] = None

    @classmethod
    def load(cls, path: Optional[str]) -> "PromptTemplates":
        """Read the long-form template document at ``path`` if it exists."""
        if not path:
            return cls()
        document = Path(path)
        if not document.is_file():
            logger.warning("Prompt template document not found: {}", document)
            return cls()
        try:
            content = document.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            logger.exception("Failed to read prompt template document {}", document)
            return cls()
        if not content.strip():
            logger.warning("Prompt template document {} is empty", document)
            return cls()
        logger.info("Loaded prompt template document {}", document)
        return cls(full_document=content, source=str(document))


@lru_cache()
def get_prompt_templates() -> PromptTemplates:
    """Return the process-wide prompt templates, loaded on first use."""

    return PromptTemplates.load(get_app_config().prompt_template_path)


def _substitute(template: str, fields: dict[str, str]) -> str:
    for name, value in fields.items():
        template = template.replace("{" + name + "}", value)
    return template


class PromptBuilder:
    """Assemble full or compact prompts from a :class:`UserRequest`."""

    def __init__(
        self,
        templates: PromptTemplates | None = None,
        llm_config: LlmConfig | None = None,
    ) -> None:
        self.templates = templates or get_prompt_templates()
        self.llm_config = llm_config or get_llm_config()

    def build(self, user_request: UserRequest, variant: PromptVariant) -> str:
        fields = {
            "nickname": user_request.nickname,
            "topic": user_request.display_topic,
            "situation": user_request.situation,
            "religion": user_request.religion or DEFAULT_RELIGION,
        }
        if variant == PromptVariant.COMPACT:
            return _substitute(COMPACT_TEMPLATE, fields)

        if self.templates.full_document:
            body = _substitute(self.templates.full_document, fields)
            return "\n\n".join(
                [body.rstrip(), _substitute(CURRENT_USER_BLOCK, fields), RESPONSE_FORMAT_BLOCK]
            )
        return "\n\n".join([_substitute(DEFAULT_FULL_TEMPLATE, fields), RESPONSE_FORMAT_BLOCK])

    def build_for(self, user_request: UserRequest) -> tuple[str, PromptVariant, int]:
        """Return the prompt to send, its variant and its estimated size.

        The full prompt is preferred; when its estimate exceeds the
        configured ceiling the compact prompt is returned instead.
        """
        prompt = self.build(user_request, PromptVariant.FULL)
        tokens = estimate_tokens(prompt)
        ceiling = self.llm_config.compact_prompt_token_ceiling
        if tokens <= ceiling:
            return prompt, PromptVariant.FULL, tokens

        compact = self.build(user_request, PromptVariant.COMPACT)
        compact_tokens = estimate_tokens(compact)
        logger.debug(
            "Full prompt estimated at {} tokens exceeds {}; using compact prompt ({} tokens)",
            tokens,
            ceiling,
            compact_tokens,
        )
        return compact, PromptVariant.COMPACT, compact_tokens
