from __future__ import annotations

import asyncio
from types import SimpleNamespace
from typing import Any

from src.config.llm_config import LlmConfig
from src.config.reply_config import ReplyConfig
from src.models.enums import ProviderName
from src.models.reply_request import UserRequest
from src.services.prompt_builder import PromptBuilder, PromptTemplates
from src.services.providers import BaseProvider
from src.services.reply_service import ReplyService

VALID_JSON_REPLY = (
    '{"letter": "Dear Sam, I am with you in every hour of waiting.", '
    '"prayer": "Lord, hold Sam close.", '
    '"scriptureReferences": [{"citation": "Psalm 46:1", "text": "God is our refuge and strength."}], '
    '"coreMessage": "You are never alone."}'
)


def llm_config(**overrides: Any) -> LlmConfig:
    values: dict[str, Any] = {
        "openai_api_key": None,
        "gemini_api_key": None,
        "preferred_provider": "openai",
        "compact_prompt_token_ceiling": 800,
    }
    values.update(overrides)
    return LlmConfig(**values)


def sam_request(**overrides: Any) -> UserRequest:
    values = {
        "nickname": "Sam",
        "topic": "health",
        "situation": "my mother is having surgery next week",
    }
    values.update(overrides)
    return UserRequest(**values)


class FakeProvider(BaseProvider):
    """Provider returning a canned response or raising a canned error."""

    def __init__(
        self,
        name: ProviderName,
        response: Any = VALID_JSON_REPLY,
        error: Exception | None = None,
        available: bool = True,
        delay: float = 0.0,
    ) -> None:
        super().__init__(model=f"{name.value}-test-model", timeout=5)
        self.name = name
        self.response = response
        self.error = error
        self._available = available
        self.delay = delay
        self.prompts: list[str] = []

    @property
    def available(self) -> bool:
        return self._available

    async def _generate(self, prompt: str) -> Any:
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.response


class FakeChatModel:
    """Stand-in for ChatOpenAI exposing ``ainvoke``."""

    def __init__(self, content: Any = "hello", error: Exception | None = None, delay: float = 0.0) -> None:
        self.content = content
        self.error = error
        self.delay = delay
        self.messages: list[Any] = []

    async def ainvoke(self, messages: list[Any]) -> SimpleNamespace:
        self.messages.extend(messages)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(content=self.content)


class FakeGeminiModels:
    def __init__(self, response: Any) -> None:
        self.response = response
        self.calls: list[dict[str, Any]] = []

    async def generate_content(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        return self.response


def fake_gemini_client(response: Any) -> SimpleNamespace:
    return SimpleNamespace(aio=SimpleNamespace(models=FakeGeminiModels(response)))


def make_service(primary: BaseProvider, secondary: BaseProvider) -> ReplyService:
    config = llm_config()
    return ReplyService(
        llm_config=config,
        reply_config=ReplyConfig(),
        primary=primary,
        secondary=secondary,
        prompt_builder=PromptBuilder(templates=PromptTemplates(), llm_config=config),
    )
