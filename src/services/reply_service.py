"""Orchestration service turning a user request into a complete reply.

:class:`ReplyService` runs a small state machine.  The preferred provider
is tried first, then the other provider with the same prompt, and finally
a pre-authored static reply.  Each state is attempted exactly once and
the first state that yields a reply ends the run, so callers always
receive a :class:`GeneratedReply` and never a provider error.
"""

from __future__ import annotations

import time
from functools import lru_cache
from typing import Optional

from loguru import logger

from ..config.llm_config import LlmConfig, get_llm_config
from ..config.reply_config import ReplyConfig, get_reply_config
from ..models.enums import PipelineState, PromptVariant
from ..models.generated_reply import (
    GeneratedReply,
    PartialReply,
    ReplyMetadata,
    ServiceStatus,
    TokenUsage,
)
from ..models.reply_request import UserRequest
from ..prompts.canned_content import (
    STATIC_CORE_MESSAGE,
    STATIC_ERROR_MESSAGE,
    STATIC_LETTER,
    STATIC_PRAYER,
    STATIC_REFERENCES,
    topic_profile,
)
from ..utils.helpers import elapsed_ms, generate_request_id
from .enhancer import ContentEnhancer, reference_from_canned
from .normalizer import ResponseNormalizer
from .prompt_builder import PromptBuilder, estimate_tokens
from .providers import BaseProvider, build_providers

STATIC_SERVICE_NAME = "fallback"

_NEXT_STATE: dict[PipelineState, PipelineState] = {
    PipelineState.PRIMARY: PipelineState.SECONDARY,
    PipelineState.SECONDARY: PipelineState.STATIC_FALLBACK,
    PipelineState.STATIC_FALLBACK: PipelineState.DONE,
}


def build_static_reply(
    user_request: UserRequest,
    request_id: str,
    processing_time: int = 0,
    reply_config: ReplyConfig | None = None,
) -> GeneratedReply:
    """Return the pre-authored reply used when no provider could answer."""
    profile = topic_profile(user_request.topic)
    partial = PartialReply(
        letter=STATIC_LETTER.format(
            nickname=user_request.nickname,
            topic=user_request.display_topic,
        ),
        prayer=STATIC_PRAYER.format(
            nickname=user_request.nickname,
            topic=user_request.display_topic,
            hidden_needs=profile.hidden_needs,
        ),
        scripture_references=[reference_from_canned(canned) for canned in STATIC_REFERENCES],
        core_message=STATIC_CORE_MESSAGE,
    )
    # Only the coverage sweep changes anything here
    enhanced = ContentEnhancer(reply_config).enhance(partial, user_request)
    return GeneratedReply(
        **enhanced.model_dump(),
        metadata=ReplyMetadata(
            request_id=request_id,
            processing_time=processing_time,
            ai_service=STATIC_SERVICE_NAME,
            fallback=True,
            error=STATIC_ERROR_MESSAGE,
            pipeline_state=PipelineState.STATIC_FALLBACK,
        ),
    )


class ReplyService:
    """Produce replies with provider fallback.

    Collaborators are created from configuration unless passed in, which
    lets tests substitute fake providers.
    """

    def __init__(
        self,
        llm_config: LlmConfig | None = None,
        reply_config: ReplyConfig | None = None,
        primary: BaseProvider | None = None,
        secondary: BaseProvider | None = None,
        prompt_builder: PromptBuilder | None = None,
    ) -> None:
        self.llm_config = llm_config or get_llm_config()
        self.reply_config = reply_config or get_reply_config()
        if primary is None or secondary is None:
            default_primary, default_secondary = build_providers(self.llm_config)
            primary = primary or default_primary
            secondary = secondary or default_secondary
        self.primary = primary
        self.secondary = secondary
        self.prompt_builder = prompt_builder or PromptBuilder(llm_config=self.llm_config)
        self.normalizer = ResponseNormalizer(self.reply_config)
        self.enhancer = ContentEnhancer(self.reply_config)

    def _provider_for(self, state: PipelineState) -> BaseProvider:
        return self.primary if state == PipelineState.PRIMARY else self.secondary

    async def generate_reply(self, user_request: UserRequest) -> GeneratedReply:
        """Generate a reply for ``user_request``.

        Never raises for provider or parsing failures; the static reply
        is returned when both providers fail.
        """
        request_id = generate_request_id()
        started = time.perf_counter()
        prompt: Optional[tuple[str, PromptVariant, int]] = None
        state = PipelineState.PRIMARY
        logger.info(
            "[{}] Generating reply for topic '{}' ({} chars of situation)",
            request_id,
            user_request.topic,
            len(user_request.situation),
        )

        while state != PipelineState.DONE:
            if state == PipelineState.STATIC_FALLBACK:
                reply = build_static_reply(
                    user_request,
                    request_id,
                    processing_time=elapsed_ms(started),
                    reply_config=self.reply_config,
                )
                logger.warning(
                    "[{}] All providers failed; returned static reply after {}ms",
                    request_id,
                    reply.metadata.processing_time,
                )
                return reply

            provider = self._provider_for(state)
            try:
                if prompt is None:
                    prompt = self.prompt_builder.build_for(user_request)
                    logger.info(
                        "[{}] Built {} prompt (~{} tokens)", request_id, prompt[1].value, prompt[2]
                    )
                reply = await self._attempt(
                    provider, state, user_request, prompt, request_id, started
                )
            except Exception:
                logger.exception("[{}] Unexpected error in {} state", request_id, state.value)
                reply = None

            if reply is not None:
                logger.info(
                    "[{}] Reply produced by {} in {}ms",
                    request_id,
                    reply.metadata.ai_service,
                    reply.metadata.processing_time,
                )
                return reply

            next_state = _NEXT_STATE[state]
            logger.info("[{}] Transition {} -> {}", request_id, state.value, next_state.value)
            state = next_state

        # Unreachable: the static state always returns
        raise RuntimeError("reply pipeline finished without a reply")

    async def _attempt(
        self,
        provider: BaseProvider,
        state: PipelineState,
        user_request: UserRequest,
        prompt: tuple[str, PromptVariant, int],
        request_id: str,
        started: float,
    ) -> Optional[GeneratedReply]:
        """Run one provider state; ``None`` means the provider failed."""
        prompt_text, variant, prompt_tokens = prompt
        logger.debug("[{}] Calling {} ({})", request_id, provider.name.value, provider.model)
        result = await provider.try_call(prompt_text)
        if not result.ok:
            logger.warning("[{}] {} state failed: {}", request_id, state.value, result.error)
            return None
        raw_text = result.text

        stage, partial = self.normalizer.run(raw_text)
        logger.info(
            "[{}] Normalized {} response at stage '{}'", request_id, provider.name.value, stage.value
        )
        enhanced = self.enhancer.enhance(partial, user_request)

        response_tokens = estimate_tokens(raw_text)
        is_fallback = state == PipelineState.SECONDARY
        service_name = provider.name.value + ("-fallback" if is_fallback else "")
        return GeneratedReply(
            **enhanced.model_dump(),
            metadata=ReplyMetadata(
                request_id=request_id,
                processing_time=elapsed_ms(started),
                ai_service=service_name,
                fallback=is_fallback,
                pipeline_state=state,
                prompt_variant=variant,
                normalization_stage=stage,
                token_usage=TokenUsage(
                    prompt=prompt_tokens,
                    response=response_tokens,
                    total=prompt_tokens + response_tokens,
                ),
            ),
        )

    def get_service_status(self) -> ServiceStatus:
        """Return a snapshot of provider availability."""
        return ServiceStatus(
            provider_a_available=self.primary.available,
            provider_b_available=self.secondary.available,
            preferred_provider=self.primary.name.value,
            model_name=self.primary.model,
            secondary_model_name=self.secondary.model,
        )


@lru_cache()
def get_reply_service() -> ReplyService:
    """Dependency injector returning the process-wide ReplyService."""
    return ReplyService()
