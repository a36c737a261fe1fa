"""Adapters for the upstream text-generation providers.

Both providers share one contract: submit prompt text, receive response
text, or fail with :class:`ProviderError`.  Retrying and falling back to
the other provider is the reply service's job, never this module's.

The OpenAI adapter uses LangChain's :class:`~langchain_openai.ChatOpenAI`;
the Gemini adapter uses the ``google-genai`` SDK's async client.
"""

from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from google import genai
from google.genai import types as genai_types
from langchain_core.messages import HumanMessage
from langchain_openai import ChatOpenAI
from loguru import logger

from ..config.llm_config import LlmConfig, get_llm_config
from ..models.enums import ProviderName
from ..utils.error_handler import ProviderError


@dataclass(frozen=True)
class ProviderResult:
    """Outcome of one provider call: either ``text`` or ``error``."""

    ok: bool
    text: Optional[str] = None
    error: Optional[ProviderError] = None

    @classmethod
    def success(cls, text: str) -> "ProviderResult":
        return cls(ok=True, text=text)

    @classmethod
    def failure(cls, error: ProviderError) -> "ProviderResult":
        return cls(ok=False, error=error)


def _status_of(exc: BaseException) -> Optional[int]:
    """Best-effort HTTP status carried by an SDK exception."""
    for attribute in ("status_code", "code", "status"):
        value = getattr(exc, attribute, None)
        if isinstance(value, int) and 100 <= value <= 599:
            return value
    return None


class BaseProvider(ABC):
    """Common call/timeout/error handling for provider adapters."""

    name: ProviderName

    def __init__(self, model: str, timeout: float) -> None:
        self.model = model
        self.timeout = timeout

    @property
    @abstractmethod
    def available(self) -> bool:
        """Whether the provider has the credentials it needs."""

    @abstractmethod
    async def _generate(self, prompt: str) -> Any:
        """Perform the SDK call and return the raw text content."""

    async def call(self, prompt: str) -> str:
        """Send ``prompt`` upstream and return the response text.

        Raises
        ------
        ProviderError
            If the provider is not configured, the call times out or
            fails, or the response carries no text.
        """
        if not self.available:
            raise ProviderError(self.name.value, "provider is not configured (missing API key)")

        started = time.perf_counter()
        try:
            content = await asyncio.wait_for(self._generate(prompt), timeout=self.timeout)
        except ProviderError:
            raise
        except (asyncio.TimeoutError, TimeoutError) as exc:
            raise ProviderError(
                self.name.value, f"request timed out after {self.timeout}s"
            ) from exc
        except Exception as exc:
            raise ProviderError(
                self.name.value,
                str(exc) or type(exc).__name__,
                http_status=_status_of(exc),
            ) from exc

        if not isinstance(content, str) or not content.strip():
            raise ProviderError(self.name.value, "response is missing text content")

        logger.debug(
            "{} ({}) answered in {:.0f}ms with {} characters",
            self.name.value,
            self.model,
            (time.perf_counter() - started) * 1000,
            len(content),
        )
        return content

    async def try_call(self, prompt: str) -> ProviderResult:
        """Like :meth:`call`, but return the outcome instead of raising."""
        try:
            return ProviderResult.success(await self.call(prompt))
        except ProviderError as exc:
            return ProviderResult.failure(exc)


class OpenAIProvider(BaseProvider):
    """Chat completion provider backed by LangChain's ChatOpenAI."""

    name = ProviderName.OPENAI

    def __init__(self, llm_config: LlmConfig | None = None, llm: Any | None = None) -> None:
        self.llm_config = llm_config or get_llm_config()
        super().__init__(self.llm_config.model_for(self.name), self.llm_config.timeout)

        self.llm = llm
        if self.llm is None and self.llm_config.openai_api_key:
            llm_kwargs: dict[str, object] = {
                "api_key": self.llm_config.openai_api_key,
                "model": self.model,
                "temperature": self.llm_config.temperature,
                "max_tokens": self.llm_config.max_tokens,
                "timeout": self.llm_config.timeout,
                # Fallback to the other provider replaces SDK-level retries
                "max_retries": 0,
            }
            if self.llm_config.openai_base_url:
                llm_kwargs["base_url"] = self.llm_config.openai_base_url
            self.llm = ChatOpenAI(**llm_kwargs)

    @property
    def available(self) -> bool:
        return self.llm is not None

    async def _generate(self, prompt: str) -> Any:
        message = await self.llm.ainvoke([HumanMessage(content=prompt)])
        content = getattr(message, "content", None)
        if isinstance(content, list):
            parts = [
                part.get("text", "") if isinstance(part, dict) else str(part)
                for part in content
            ]
            return "".join(parts)
        return content


class GeminiProvider(BaseProvider):
    """Text generation provider backed by the google-genai async client."""

    name = ProviderName.GEMINI

    def __init__(self, llm_config: LlmConfig | None = None, client: Any | None = None) -> None:
        self.llm_config = llm_config or get_llm_config()
        super().__init__(self.llm_config.model_for(self.name), self.llm_config.timeout)

        self.client = client
        if self.client is None and self.llm_config.gemini_api_key:
            self.client = genai.Client(
                api_key=self.llm_config.gemini_api_key,
                http_options=genai_types.HttpOptions(timeout=self.llm_config.timeout * 1000),
            )

    @property
    def available(self) -> bool:
        return self.client is not None

    async def _generate(self, prompt: str) -> Any:
        config = genai_types.GenerateContentConfig(
            temperature=self.llm_config.temperature,
            max_output_tokens=self.llm_config.max_tokens,
        )
        response = await self.client.aio.models.generate_content(
            model=self.model,
            contents=prompt,
            config=config,
        )

        text = getattr(response, "text", None)
        if text:
            return text
        # Fall back to the first candidate's text parts
        candidates = getattr(response, "candidates", None) or []
        if candidates:
            content = getattr(candidates[0], "content", None)
            parts = getattr(content, "parts", None) or []
            text_parts = [part.text for part in parts if getattr(part, "text", None)]
            if text_parts:
                return "".join(text_parts)
        return None


def build_providers(
    llm_config: LlmConfig | None = None,
) -> tuple[BaseProvider, BaseProvider]:
    """Return ``(primary, secondary)`` ordered by the preferred provider."""
    config = llm_config or get_llm_config()
    providers: dict[ProviderName, BaseProvider] = {
        ProviderName.OPENAI: OpenAIProvider(config),
        ProviderName.GEMINI: GeminiProvider(config),
    }
    return providers[config.preferred_provider], providers[config.secondary_provider]
