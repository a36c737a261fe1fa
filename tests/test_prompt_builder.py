from __future__ import annotations

import sys
from pathlib import Path

repo_root = Path(__file__).resolve().parents[1]
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from src.models.enums import PromptVariant
from src.models.reply_request import OTHER_TOPIC_DISPLAY, UserRequest
from src.prompts.letter import RESPONSE_FORMAT_BLOCK
from src.services.prompt_builder import PromptBuilder, PromptTemplates, estimate_tokens
from tests.fakes import llm_config, sam_request


def test_estimate_tokens_counts_words_and_logographs() -> None:
    assert estimate_tokens("") == 0
    assert estimate_tokens("hello world") == 2
    assert estimate_tokens("你好") == 3
    assert estimate_tokens("hi 你") == 3
    assert estimate_tokens("12345 !!!") == 0


def test_full_prompt_uses_builtin_template_when_no_document() -> None:
    builder = PromptBuilder(templates=PromptTemplates(), llm_config=llm_config())

    prompt, variant, tokens = builder.build_for(sam_request())

    assert variant == PromptVariant.FULL
    assert "Sam" in prompt
    assert "my mother is having surgery next week" in prompt
    assert "Christian" in prompt
    assert prompt.endswith(RESPONSE_FORMAT_BLOCK)
    assert tokens == estimate_tokens(prompt)


def test_compact_prompt_selected_above_token_ceiling() -> None:
    builder = PromptBuilder(
        templates=PromptTemplates(),
        llm_config=llm_config(compact_prompt_token_ceiling=10),
    )

    prompt, variant, tokens = builder.build_for(sam_request(religion="Catholic"))

    assert variant == PromptVariant.COMPACT
    assert prompt == builder.build(sam_request(religion="Catholic"), PromptVariant.COMPACT)
    assert "Religion: Catholic" in prompt
    assert tokens == estimate_tokens(prompt)


def test_template_document_is_loaded_and_substituted(tmp_path: Path) -> None:
    document = tmp_path / "prompts.md"
    document.write_text("Write to {nickname} about {topic}. Output {\"letter\": ...}", encoding="utf-8")
    templates = PromptTemplates.load(str(document))
    builder = PromptBuilder(templates=templates, llm_config=llm_config())

    prompt = builder.build(sam_request(), PromptVariant.FULL)

    assert templates.source == str(document)
    assert prompt.startswith('Write to Sam about health. Output {"letter": ...}')
    assert "- Situation: my mother is having surgery next week" in prompt


def test_missing_or_empty_document_falls_back(tmp_path: Path) -> None:
    assert PromptTemplates.load(str(tmp_path / "missing.md")).full_document is None
    assert PromptTemplates.load(None).full_document is None

    empty = tmp_path / "empty.md"
    empty.write_text("   \n", encoding="utf-8")
    assert PromptTemplates.load(str(empty)).full_document is None


def test_other_topic_is_displayed_descriptively() -> None:
    builder = PromptBuilder(templates=PromptTemplates(), llm_config=llm_config())
    request = UserRequest(nickname="Ana", topic="other", situation="I feel lost")

    prompt = builder.build(request, PromptVariant.FULL)

    assert OTHER_TOPIC_DISPLAY in prompt
