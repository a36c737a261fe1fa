"""Bring a normalized reply up to the minimum content guarantees.

The enhancer never calls a provider.  It only rewrites and pads the
fields of a :class:`PartialReply` using the canned content tables, in a
fixed order, and is idempotent: a reply that already meets every
threshold comes back unchanged.
"""

from __future__ import annotations

import re
from itertools import cycle

from ..config.reply_config import ReplyConfig, get_reply_config
from ..models.generated_reply import (
    DEFAULT_REFERENCE_APPLICATION,
    DEFAULT_REFERENCE_CONTEXT,
    PartialReply,
    ScriptureReference,
)
from ..models.reply_request import UserRequest
from ..prompts.canned_content import (
    COVERAGE_LIMIT,
    COVERAGE_SENTENCES,
    DEFAULT_CORE_MESSAGE,
    DEFAULT_LETTER,
    DEFAULT_PRAYER,
    DEFAULT_REFERENCES,
    EVENT_KEYWORDS,
    INVITATION_PHRASE,
    INVITATION_VARIANT,
    LETTER_CONTINUATION,
    LETTER_EXTRA_PARAGRAPHS,
    LETTER_INSIGHT_LINES,
    LETTER_LEAK_PATTERNS,
    PERSON_KEYWORDS,
    PRAYER_CONTINUATION,
    PRAYER_EXTRA_PARAGRAPHS,
    PRAYER_LEAK_PATTERNS,
    CannedReference,
    reference_padding,
    topic_profile,
)

_EXTRA_BLANK_LINES = re.compile(r"\n{3,}")
_ELLIPSIS = "…"


def _tidy(text: str) -> str:
    lines = [line.rstrip() for line in text.split("\n")]
    return _EXTRA_BLANK_LINES.sub("\n\n", "\n".join(lines)).strip()


def _mentions(text: str, keyword: str, ignore_case: bool = True) -> bool:
    flags = re.IGNORECASE if ignore_case else 0
    return re.search(rf"\b{re.escape(keyword)}\b", text, flags) is not None


def _padded(text: str, continuation: str, extras: tuple[str, ...], floor: int) -> str:
    paragraphs = [text, continuation]
    remaining = cycle(extras)
    while len("\n\n".join(paragraphs)) < floor:
        paragraphs.append(next(remaining))
    return "\n\n".join(paragraphs)


def matched_keywords(situation: str, vocabulary: tuple[str, ...]) -> list[str]:
    """Return up to ``COVERAGE_LIMIT`` keywords from ``vocabulary`` found in ``situation``.

    Keywords are matched as whole words, ignoring case, and returned in
    vocabulary order.
    """
    return [keyword for keyword in vocabulary if _mentions(situation, keyword)][:COVERAGE_LIMIT]


def reference_from_canned(canned: CannedReference) -> ScriptureReference:
    return ScriptureReference(
        citation=canned.citation,
        text=canned.text,
        context=canned.context or DEFAULT_REFERENCE_CONTEXT,
        application=canned.application or DEFAULT_REFERENCE_APPLICATION,
    )


def truncate_at_word(text: str, limit: int) -> str:
    """Shorten ``text`` to at most ``limit`` characters at a word boundary."""
    if len(text) <= limit:
        return text
    cut = text[: limit - len(_ELLIPSIS)]
    boundary = cut.rfind(" ")
    if boundary > 0:
        cut = cut[:boundary]
    return cut.rstrip(" ,;:.-") + _ELLIPSIS


class ContentEnhancer:
    """Apply the content guarantees to a :class:`PartialReply`."""

    def __init__(self, reply_config: ReplyConfig | None = None) -> None:
        self.reply_config = reply_config or get_reply_config()

    def enhance(self, partial: PartialReply, user_request: UserRequest) -> PartialReply:
        letter = partial.letter.strip() or DEFAULT_LETTER
        prayer = partial.prayer.strip() or DEFAULT_PRAYER
        core_message = partial.core_message.strip() or DEFAULT_CORE_MESSAGE

        letter = self.clean_letter(letter)
        prayer = self.clean_prayer(prayer)

        if user_request.nickname not in letter:
            letter = f"Dear {user_request.nickname},\n\n{letter}"

        letter = self.pad_letter(letter, user_request)
        prayer = self.pad_prayer(prayer, letter, user_request)
        references = self.complete_references(partial.scripture_references, user_request)

        letter = self.cover_situation(letter, "letter", user_request.situation)
        prayer = self.cover_situation(prayer, "prayer", user_request.situation)

        return PartialReply(
            letter=letter,
            prayer=prayer,
            scripture_references=references,
            core_message=truncate_at_word(core_message, self.reply_config.core_message_max_length),
        )

    @staticmethod
    def clean_letter(letter: str) -> str:
        """Strip prayer boilerplate that leaked into the letter."""
        for pattern in LETTER_LEAK_PATTERNS:
            letter = pattern.sub("", letter)
        return _tidy(letter) or DEFAULT_LETTER

    @staticmethod
    def clean_prayer(prayer: str) -> str:
        """Strip letter sign-offs and lead with the canonical invitation."""
        for pattern in PRAYER_LEAK_PATTERNS:
            prayer = pattern.sub("", prayer)
        prayer = _tidy(prayer)
        if prayer.startswith(INVITATION_PHRASE):
            return prayer
        variant = INVITATION_VARIANT.match(prayer)
        if variant:
            prayer = prayer[variant.end() :].strip()
        return _tidy(f"{INVITATION_PHRASE}\n\n{prayer}" if prayer else INVITATION_PHRASE)

    def pad_letter(self, letter: str, user_request: UserRequest) -> str:
        if len(letter) >= self.reply_config.letter_min_length:
            return letter
        continuation = LETTER_CONTINUATION.format(
            topic=user_request.display_topic,
            nickname=user_request.nickname,
        )
        return _padded(
            letter, continuation, LETTER_EXTRA_PARAGRAPHS, self.reply_config.letter_min_length
        )

    def pad_prayer(self, prayer: str, letter: str, user_request: UserRequest) -> str:
        if len(prayer) >= self.reply_config.prayer_min_length:
            return prayer
        profile = topic_profile(user_request.topic)
        lowered = letter.lower()
        insight = "".join(line for keyword, line in LETTER_INSIGHT_LINES if keyword in lowered)
        continuation = PRAYER_CONTINUATION.format(
            prayer_context=profile.prayer_context,
            insight=insight,
            topic=user_request.display_topic,
            hidden_needs=profile.hidden_needs,
        )
        return _padded(
            prayer, continuation, PRAYER_EXTRA_PARAGRAPHS, self.reply_config.prayer_min_length
        )

    def complete_references(
        self,
        references: list[ScriptureReference],
        user_request: UserRequest,
    ) -> list[ScriptureReference]:
        """Dedupe by citation, pad to the minimum, cap at the maximum."""
        unique: list[ScriptureReference] = []
        seen: set[str] = set()

        def add(reference: ScriptureReference | None) -> None:
            if reference is not None and reference.key not in seen:
                seen.add(reference.key)
                unique.append(reference)

        for reference in references:
            add(ScriptureReference.coerce(reference))
        if not unique:
            for citation in DEFAULT_REFERENCES:
                add(ScriptureReference.coerce(citation))

        for canned in reference_padding(user_request.topic):
            if len(unique) >= self.reply_config.min_references:
                break
            add(reference_from_canned(canned))

        return unique[: self.reply_config.max_references]

    @staticmethod
    def cover_situation(text: str, field: str, situation: str) -> str:
        """Mention people and events from the situation the text leaves out."""
        templates = COVERAGE_SENTENCES[field]
        sentences = []
        for kind, vocabulary in (("person", PERSON_KEYWORDS), ("event", EVENT_KEYWORDS)):
            for keyword in matched_keywords(situation, vocabulary):
                # Case-sensitive so "Heavenly Father" does not count as "father"
                if not _mentions(text, keyword, ignore_case=False):
                    sentences.append(templates[kind].format(keyword=keyword))
        if not sentences:
            return text
        return f"{text}\n\n{' '.join(sentences)}"


def enhance(
    partial: PartialReply,
    user_request: UserRequest,
    reply_config: ReplyConfig | None = None,
) -> PartialReply:
    """Enhance ``partial`` for ``user_request`` with the given thresholds."""
    return ContentEnhancer(reply_config).enhance(partial, user_request)
