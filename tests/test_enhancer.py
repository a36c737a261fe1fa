from __future__ import annotations

import sys
from pathlib import Path

repo_root = Path(__file__).resolve().parents[1]
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from src.config.reply_config import ReplyConfig
from src.models.generated_reply import PartialReply, ScriptureReference
from src.prompts.canned_content import (
    COVERAGE_SENTENCES,
    INVITATION_PHRASE,
    RAW_TEXT_REFERENCES,
    TOPIC_PROFILES,
)
from src.services.enhancer import enhance, truncate_at_word
from src.services.normalizer import normalize
from tests.fakes import sam_request

CONFIG = ReplyConfig()


def _partial(**overrides) -> PartialReply:
    values = {
        "letter": "Dear Sam, I am with you.",
        "prayer": "Lord, keep Sam safe.",
        "scripture_references": [ScriptureReference(citation="John 3:16")],
        "core_message": "You are loved.",
    }
    values.update(overrides)
    return PartialReply(**values)


def _assert_invariants(reply: PartialReply, config: ReplyConfig = CONFIG) -> None:
    assert reply.letter.strip() and reply.prayer.strip() and reply.core_message.strip()
    assert len(reply.letter) >= config.letter_min_length
    assert len(reply.prayer) >= config.prayer_min_length
    assert config.min_references <= len(reply.scripture_references) <= config.max_references
    keys = [ref.key for ref in reply.scripture_references]
    assert len(keys) == len(set(keys))
    assert reply.prayer.startswith(INVITATION_PHRASE)
    assert INVITATION_PHRASE not in reply.letter
    assert "pray along" not in reply.letter
    assert len(reply.core_message) <= config.core_message_max_length


def test_missing_prayer_and_references_scenario() -> None:
    request = sam_request()
    partial = normalize('{"letter":"Dear Sam...","coreMessage":"God is near"}')

    reply = enhance(partial, request, CONFIG)

    _assert_invariants(reply)
    citations = [ref.citation for ref in reply.scripture_references]
    health = [ref.citation for ref in TOPIC_PROFILES["health"].references]
    assert len(citations) == CONFIG.min_references
    assert citations[0] == "John 3:16"
    assert citations[1:] == health[:4]
    assert COVERAGE_SENTENCES["letter"]["event"].format(keyword="surgery") in reply.letter
    assert COVERAGE_SENTENCES["prayer"]["event"].format(keyword="surgery") in reply.prayer
    assert COVERAGE_SENTENCES["letter"]["person"].format(keyword="mother") in reply.letter
    assert reply.core_message == "God is near"


def test_unparsable_prose_scenario() -> None:
    partial = normalize("Take heart, the night is almost over.")

    reply = enhance(partial, sam_request(situation="I feel tired"), CONFIG)

    _assert_invariants(reply)
    citations = [ref.citation for ref in reply.scripture_references]
    assert citations[: len(RAW_TEXT_REFERENCES)] == list(RAW_TEXT_REFERENCES)
    assert "Take heart, the night is almost over." in reply.letter


def test_empty_fields_are_filled() -> None:
    partial = PartialReply(letter="", prayer="  ", scripture_references=[], core_message="")

    reply = enhance(partial, sam_request(), CONFIG)

    _assert_invariants(reply)


def test_enhance_is_idempotent() -> None:
    request = sam_request(situation="my friend and my boss fight before the interview and the exam")
    once = enhance(normalize('{"letter": "Hi"}'), request, CONFIG)

    twice = enhance(once, request, CONFIG)

    assert twice == once


def test_prayer_boilerplate_is_removed_from_letter() -> None:
    letter = (
        "Dear Sam, I love you and I hold your future.\n\n"
        "Let me pray for you. If you are willing, you can pray along with me:\n"
        "Heavenly Father, be near Sam. In Jesus' name, Amen.\n\n"
        "Dear Heavenly Father, guard this heart. Amen."
    )

    reply = enhance(_partial(letter=letter), sam_request(situation="tired"), CONFIG)

    assert "Let me pray for you" not in reply.letter
    assert "Heavenly Father" not in reply.letter
    assert reply.letter.startswith("Dear Sam, I love you and I hold your future.")


def test_letter_signoff_is_removed_from_prayer() -> None:
    prayer = "Lord, keep Sam safe through the night. Amen.\n\nYour loving Jesus"

    reply = enhance(_partial(prayer=prayer), sam_request(situation="tired"), CONFIG)

    assert "Your loving Jesus" not in reply.prayer
    assert reply.prayer.startswith(INVITATION_PHRASE)


def test_invitation_variant_is_replaced() -> None:
    prayer = "Let me pray for you now:\nLord, keep Sam safe."

    reply = enhance(_partial(prayer=prayer), sam_request(situation="tired"), CONFIG)

    assert reply.prayer.startswith(INVITATION_PHRASE + "\n\nLord, keep Sam safe.")
    assert reply.prayer.count("Let me pray for you") == 1


def test_salutation_added_when_nickname_missing() -> None:
    reply = enhance(_partial(letter="I am with you always."), sam_request(), CONFIG)

    assert reply.letter.startswith("Dear Sam,\n\nI am with you always.")


def test_references_are_deduplicated_and_capped() -> None:
    duplicates = [
        ScriptureReference(citation="John 3:16"),
        ScriptureReference(citation="john  3:16"),
        ScriptureReference(citation="Psalm 23:1"),
    ]
    reply = enhance(_partial(scripture_references=duplicates), sam_request(), CONFIG)

    keys = [ref.key for ref in reply.scripture_references]
    assert keys.count("john 3:16") == 1
    assert len(keys) == CONFIG.min_references

    many = [ScriptureReference(citation=f"Psalm {number}:1") for number in range(1, 11)]
    capped = enhance(_partial(scripture_references=many), sam_request(), CONFIG)
    assert [ref.citation for ref in capped.scripture_references] == [
        f"Psalm {number}:1" for number in range(1, 8)
    ]


def test_coverage_sentences_are_capped_per_category() -> None:
    request = sam_request(situation="my mother, brother, sister, boss and coworker all need help")

    reply = enhance(_partial(), request, CONFIG)

    assert reply.letter.count("I also see the needs of your") == 3
    assert reply.prayer.count("we also lift up the") == 3


def test_keywords_match_whole_words_only() -> None:
    request = sam_request(situation="writing a sonnet before my exam")

    reply = enhance(_partial(), request, CONFIG)

    assert "needs of your son;" not in reply.letter
    assert COVERAGE_SENTENCES["letter"]["event"].format(keyword="exam") in reply.letter


def test_keyword_already_present_is_not_repeated() -> None:
    letter = "Dear Sam, I am with you before the surgery and beside your mother."

    reply = enhance(_partial(letter=letter), sam_request(), CONFIG)

    assert "Concerning the surgery" not in reply.letter
    assert "needs of your mother" not in reply.letter


def test_core_message_truncated_at_word_boundary() -> None:
    long_message = "hope " * 60

    reply = enhance(_partial(core_message=long_message), sam_request(), CONFIG)

    assert len(reply.core_message) <= CONFIG.core_message_max_length
    assert reply.core_message.endswith("…")
    assert not reply.core_message[:-1].endswith(" ")
    assert truncate_at_word("short", 150) == "short"


def test_raised_floors_are_met_from_a_bare_reply() -> None:
    config = ReplyConfig(
        letter_min_length=800, prayer_min_length=800, min_references=8, max_references=8
    )
    request = sam_request(topic="other", situation="I feel tired")

    reply = enhance(normalize("hi"), request, config)

    _assert_invariants(reply, config)
    assert len(reply.scripture_references) == 8
    assert enhance(reply, request, config) == reply


def test_large_floors_cycle_extra_paragraphs() -> None:
    config = ReplyConfig(
        letter_min_length=1500, prayer_min_length=1500, min_references=10, max_references=10
    )
    request = sam_request(topic="work", situation="I feel tired")

    reply = enhance(_partial(), request, config)

    _assert_invariants(reply, config)
    assert len(reply.scripture_references) == 10
    assert enhance(reply, request, config) == reply


def test_father_is_echoed_despite_heavenly_father() -> None:
    request = sam_request(situation="my father is sick")

    reply = enhance(_partial(prayer="Heavenly Father, hold Sam close."), request, CONFIG)

    _assert_invariants(reply)
    assert COVERAGE_SENTENCES["prayer"]["person"].format(keyword="father") in reply.prayer
    assert COVERAGE_SENTENCES["letter"]["person"].format(keyword="father") in reply.letter
    assert enhance(reply, request, CONFIG) == reply
