from __future__ import annotations

import asyncio
import sys
from pathlib import Path

repo_root = Path(__file__).resolve().parents[1]
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from src.config.reply_config import ReplyConfig
from src.models.enums import NormalizationStage, PipelineState, PromptVariant, ProviderName
from src.prompts.canned_content import INVITATION_PHRASE, STATIC_ERROR_MESSAGE
from src.models.generated_reply import PartialReply
from src.services.enhancer import ContentEnhancer, enhance
from src.services.normalizer import ResponseNormalizer
from src.services.prompt_builder import estimate_tokens
from src.services.reply_service import build_static_reply
from src.utils.error_handler import ProviderError
from tests.fakes import VALID_JSON_REPLY, FakeProvider, make_service, sam_request


def test_primary_success_uses_preferred_provider() -> None:
    primary = FakeProvider(ProviderName.OPENAI)
    secondary = FakeProvider(ProviderName.GEMINI)
    service = make_service(primary, secondary)

    reply = asyncio.run(service.generate_reply(sam_request()))

    assert reply.metadata.ai_service == "openai"
    assert reply.metadata.fallback is False
    assert reply.metadata.error is None
    assert reply.metadata.pipeline_state == PipelineState.PRIMARY
    assert reply.metadata.prompt_variant == PromptVariant.FULL
    assert reply.metadata.normalization_stage == NormalizationStage.DIRECT
    usage = reply.metadata.token_usage
    assert usage is not None
    assert usage.response == estimate_tokens(VALID_JSON_REPLY)
    assert usage.total == usage.prompt + usage.response
    assert reply.letter.startswith("Dear Sam, I am with you in every hour of waiting.")
    assert len(primary.prompts) == 1
    assert secondary.prompts == []


def test_secondary_used_when_primary_fails() -> None:
    primary = FakeProvider(ProviderName.OPENAI, error=RuntimeError("rate limited"))
    secondary = FakeProvider(ProviderName.GEMINI)
    service = make_service(primary, secondary)

    reply = asyncio.run(service.generate_reply(sam_request()))

    assert reply.metadata.ai_service == "gemini-fallback"
    assert reply.metadata.fallback is True
    assert reply.metadata.pipeline_state == PipelineState.SECONDARY
    assert primary.prompts == secondary.prompts


def test_secondary_used_when_primary_is_not_configured() -> None:
    primary = FakeProvider(ProviderName.OPENAI, available=False)
    secondary = FakeProvider(ProviderName.GEMINI)
    service = make_service(primary, secondary)

    reply = asyncio.run(service.generate_reply(sam_request()))

    assert reply.metadata.ai_service == "gemini-fallback"
    assert primary.prompts == []


def test_static_reply_when_both_providers_fail() -> None:
    primary = FakeProvider(ProviderName.OPENAI, error=ProviderError("openai", "boom", 500))
    secondary = FakeProvider(ProviderName.GEMINI, response="")
    service = make_service(primary, secondary)

    reply = asyncio.run(service.generate_reply(sam_request()))

    assert reply.metadata.ai_service == "fallback"
    assert reply.metadata.fallback is True
    assert reply.metadata.error == STATIC_ERROR_MESSAGE
    assert reply.metadata.pipeline_state == PipelineState.STATIC_FALLBACK
    assert "Sam" in reply.letter
    assert len(primary.prompts) == 1
    assert len(secondary.prompts) == 1


class EnhancerFailingOnce(ContentEnhancer):
    def __init__(self) -> None:
        super().__init__(ReplyConfig())
        self.calls = 0

    def enhance(self, partial, user_request) -> PartialReply:
        self.calls += 1
        if self.calls == 1:
            raise ValueError("enhancer exploded")
        return super().enhance(partial, user_request)


class NormalizerFailingOnce(ResponseNormalizer):
    def __init__(self) -> None:
        super().__init__(ReplyConfig())
        self.calls = 0

    def run(self, raw_text):
        self.calls += 1
        if self.calls == 1:
            raise KeyError("letter")
        return super().run(raw_text)


def test_enhancer_error_on_primary_moves_to_secondary() -> None:
    primary = FakeProvider(ProviderName.OPENAI)
    secondary = FakeProvider(ProviderName.GEMINI)
    service = make_service(primary, secondary)
    service.enhancer = EnhancerFailingOnce()

    reply = asyncio.run(service.generate_reply(sam_request()))

    assert reply.metadata.ai_service == "gemini-fallback"
    assert reply.metadata.pipeline_state == PipelineState.SECONDARY
    assert reply.metadata.fallback is True
    assert service.enhancer.calls == 2
    assert len(primary.prompts) == 1
    assert len(secondary.prompts) == 1


def test_normalizer_error_on_primary_moves_to_secondary() -> None:
    primary = FakeProvider(ProviderName.OPENAI)
    secondary = FakeProvider(ProviderName.GEMINI)
    service = make_service(primary, secondary)
    service.normalizer = NormalizerFailingOnce()

    reply = asyncio.run(service.generate_reply(sam_request()))

    assert reply.metadata.pipeline_state == PipelineState.SECONDARY
    assert reply.metadata.fallback is True
    assert reply.letter.startswith("Dear Sam")


def test_unparsable_provider_text_still_succeeds() -> None:
    primary = FakeProvider(ProviderName.GEMINI, response="Peace to you, Sam. You are not alone.")
    secondary = FakeProvider(ProviderName.OPENAI)
    service = make_service(primary, secondary)

    reply = asyncio.run(service.generate_reply(sam_request()))

    assert reply.metadata.ai_service == "gemini"
    assert reply.metadata.normalization_stage == NormalizationStage.RAW_TEXT
    assert secondary.prompts == []


def test_static_reply_meets_every_guarantee() -> None:
    config = ReplyConfig()
    request = sam_request()

    reply = build_static_reply(request, "req-1", reply_config=config)

    assert reply.metadata.request_id == "req-1"
    assert reply.letter.startswith("Dear Sam,")
    assert len(reply.letter) >= config.letter_min_length
    assert len(reply.prayer) >= config.prayer_min_length
    assert reply.prayer.startswith(INVITATION_PHRASE)
    assert INVITATION_PHRASE not in reply.letter
    assert config.min_references <= len(reply.scripture_references) <= config.max_references
    assert "surgery" in reply.letter and "surgery" in reply.prayer

    partial_fields = {"letter", "prayer", "scripture_references", "core_message"}
    static_partial = reply.model_dump(include=partial_fields)
    assert enhance(reply, request, config).model_dump(include=partial_fields) == static_partial


def test_service_status_reports_provider_order() -> None:
    service = make_service(
        FakeProvider(ProviderName.GEMINI, available=False),
        FakeProvider(ProviderName.OPENAI),
    )

    status = service.get_service_status()

    assert status.preferred_provider == "gemini"
    assert status.provider_a_available is False
    assert status.provider_b_available is True
    assert status.model_name == "gemini-test-model"
    assert status.secondary_model_name == "openai-test-model"
