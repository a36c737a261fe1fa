"""Turn unreliable upstream text into a complete :class:`PartialReply`.

Providers are asked for strict JSON but frequently answer with JSON inside
markdown fences, JSON surrounded by commentary, JSON cut off mid-string,
fields emitted as separate fragments, or plain prose.  Rather than reject
such output, :class:`ResponseNormalizer` walks a fixed ladder of rungs,
each a pure ``str -> Optional[dict]`` function, from the cheapest and
strictest to the loosest:

1. ``direct``         parse the text once code fences are removed
2. ``chunks``         rebuild an object from disjoint field fragments
3. ``brace_repair``   close a truncated string and the missing brackets
4. ``boundary_trim``  keep only the first ``{`` to the last ``}``
5. ``regex_fields``   pull each field out of the text individually
6. ``raw_text``       use the text itself as the letter

The first rung that yields a mapping with at least one recognised field
wins.  A rung that finds nothing returns ``None`` and the next one is
tried; nothing here raises to the caller.
"""

from __future__ import annotations

import json
import re
from functools import partial
from typing import Any, Callable, Iterable, Optional

from loguru import logger

from ..config.reply_config import ReplyConfig, get_reply_config
from ..models.enums import NormalizationStage
from ..models.generated_reply import PartialReply, ScriptureReference
from ..prompts.canned_content import (
    DEFAULT_CORE_MESSAGE,
    DEFAULT_LETTER,
    DEFAULT_PRAYER,
    DEFAULT_REFERENCES,
    RAW_TEXT_PRAYER,
    RAW_TEXT_REFERENCES,
)

Rung = Callable[[str], Optional[dict[str, Any]]]

# Canonical JSON key -> keys accepted from upstream, in priority order
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "letter": ("letter", "jesusLetter"),
    "prayer": ("prayer", "guidedPrayer"),
    "scriptureReferences": ("scriptureReferences", "biblicalReferences", "scripture_references"),
    "coreMessage": ("coreMessage", "core_message"),
}
STRING_FIELDS = ("letter", "prayer", "coreMessage")
REFERENCES_FIELD = "scriptureReferences"

FIELD_DEFAULTS: dict[str, Any] = {
    "letter": DEFAULT_LETTER,
    "prayer": DEFAULT_PRAYER,
    "scriptureReferences": list(DEFAULT_REFERENCES),
    "coreMessage": DEFAULT_CORE_MESSAGE,
}

_FENCE = re.compile(r"```+\s*(?:json\b)?", re.IGNORECASE)
_TRAILING_COMMA = re.compile(r",(\s*[}\]])")
_ESCAPES = {"n": "\n", '"': '"', "\\": "\\", "t": "\t", "/": "/", "r": "\r"}
_ESCAPE_SEQUENCE = re.compile(r'\\(["\\/nrt])')
_OBJECT_FRAGMENT = re.compile(r"\{[^{}]*\}", re.DOTALL)
_DANGLING_KEY = re.compile(r'[{,]\s*"(?:[^"\\]|\\.)*"\s*:?\s*$')


# ---------------------------------------------------------------------------
# Small text helpers


def strip_code_fences(text: str) -> str:
    """Remove markdown code fence markers (```json and bare ```)."""
    return _FENCE.sub("", text).strip()


def unescape(value: str) -> str:
    """Decode JSON string escapes in a value captured by a regex."""
    try:
        return json.loads(f'"{value}"', strict=False)
    except ValueError:
        return _ESCAPE_SEQUENCE.sub(lambda match: _ESCAPES[match.group(1)], value)


def _remove_trailing_commas(text: str) -> str:
    return _TRAILING_COMMA.sub(r"\1", text)


def _contains_field(text: str, field: str) -> bool:
    return any(f'"{alias}"' in text for alias in FIELD_ALIASES[field])


def _is_recognised(mapping: dict[str, Any]) -> bool:
    return any(alias in mapping for aliases in FIELD_ALIASES.values() for alias in aliases)


def _loads_object(text: str) -> Optional[dict[str, Any]]:
    """Parse ``text`` as a JSON object carrying at least one known field."""
    try:
        parsed = json.loads(text, strict=False)
    except ValueError:
        return None
    if isinstance(parsed, dict) and _is_recognised(parsed):
        return parsed
    return None


def _trimmed_span(text: str) -> Optional[str]:
    first = text.find("{")
    last = text.rfind("}")
    if first < 0 or last <= first:
        return None
    return text[first : last + 1]


# ---------------------------------------------------------------------------
# Per-field extraction shared by the chunk and regex rungs


def _extract_string(text: str, field: str, allow_unterminated: bool) -> Optional[str]:
    terminator = r'(?:"|\Z)' if allow_unterminated else '"'
    for alias in FIELD_ALIASES[field]:
        pattern = rf'"{re.escape(alias)}"\s*:\s*"((?:[^"\\]|\\.)*){terminator}'
        match = re.search(pattern, text, re.DOTALL)
        if match:
            value = unescape(match.group(1)).strip()
            if value:
                return value
    return None


def _array_body(text: str, start: int) -> str:
    """Return the contents of the array opening at ``text[start]``.

    Brackets inside strings are ignored.  A truncated array yields
    everything up to the end of the text.
    """
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
            if depth == 0:
                return text[start + 1 : index]
    return text[start + 1 :]


def _split_reference_items(body: str) -> list[Any]:
    """Best-effort split of an array body that is not valid JSON."""
    objects = []
    for fragment in _OBJECT_FRAGMENT.findall(body):
        try:
            parsed = json.loads(_remove_trailing_commas(fragment), strict=False)
        except ValueError:
            continue
        if isinstance(parsed, dict):
            objects.append(parsed)
    if objects:
        return objects

    items = []
    for part in body.split(","):
        item = part.strip().strip("[]").strip().strip('"').strip()
        if item and not any(marker in item for marker in ("{", "}", "\":")):
            items.append(unescape(item))
    return items


def _extract_references(text: str) -> Optional[list[Any]]:
    for alias in FIELD_ALIASES[REFERENCES_FIELD]:
        match = re.search(rf'"{re.escape(alias)}"\s*:\s*\[', text)
        if not match:
            continue
        body = _array_body(text, match.end() - 1)
        try:
            parsed = json.loads(f"[{_remove_trailing_commas(body)}]", strict=False)
        except ValueError:
            parsed = _split_reference_items(body)
        if isinstance(parsed, list) and parsed:
            return parsed
    return None


def extract_fields(text: str, allow_unterminated: bool = False) -> dict[str, Any]:
    """Pull each known field out of ``text`` independently.

    Returns a mapping keyed by canonical field name holding only the
    fields that were found.
    """
    found: dict[str, Any] = {}
    for field in STRING_FIELDS:
        value = _extract_string(text, field, allow_unterminated)
        if value is not None:
            found[field] = value
    references = _extract_references(text)
    if references:
        found[REFERENCES_FIELD] = references
    return found


# ---------------------------------------------------------------------------
# Rungs


def parse_direct(raw_text: str) -> Optional[dict[str, Any]]:
    return _loads_object(strip_code_fences(raw_text))


def _looks_chunked(text: str) -> bool:
    has_letter = _contains_field(text, "letter")
    has_prayer = _contains_field(text, "prayer")
    has_references = _contains_field(text, REFERENCES_FIELD)
    has_core = _contains_field(text, "coreMessage")
    return (
        (has_letter and not has_prayer)
        or (has_prayer and not has_letter)
        or (has_prayer and not has_references)
        or (has_references and not has_core)
        or (has_core and "}" not in text)
    )


def reconstruct_chunks(raw_text: str) -> Optional[dict[str, Any]]:
    """Rebuild one object from fields emitted as separate fragments."""
    text = strip_code_fences(raw_text)
    if not _looks_chunked(text):
        return None
    found = extract_fields(text)
    if not found:
        return None
    synthetic = {**FIELD_DEFAULTS, **found}
    return _loads_object(json.dumps(synthetic, ensure_ascii=False))


def _close_truncated(text: str) -> str:
    """Close an unterminated string and any unclosed brackets in ``text``."""
    stack: list[str] = []
    in_string = False
    escaped = False
    for char in text:
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char in "{[":
            stack.append("}" if char == "{" else "]")
        elif char in "}]" and stack:
            stack.pop()

    repaired = text
    if in_string:
        if escaped:
            repaired = repaired[:-1]
        repaired += '"'

    repaired = repaired.rstrip()
    if stack and stack[-1] == "}":
        # A key whose value never arrived
        dangling = _DANGLING_KEY.search(repaired)
        if dangling:
            repaired = repaired[: dangling.start() + 1]
    repaired = repaired.rstrip().rstrip(",")
    return repaired + "".join(reversed(stack))


def repair_braces(raw_text: str) -> Optional[dict[str, Any]]:
    """Complete JSON that was cut off mid-object or mid-array."""
    text = strip_code_fences(raw_text)
    start = text.find("{")
    if start < 0:
        return None
    text = text[start:]
    opened = text.count("{") + text.count("[")
    closed = text.count("}") + text.count("]")
    if opened <= closed:
        return None
    return _loads_object(_remove_trailing_commas(_close_truncated(text)))


def trim_boundaries(raw_text: str) -> Optional[dict[str, Any]]:
    """Drop commentary before the first ``{`` and after the last ``}``."""
    span = _trimmed_span(strip_code_fences(raw_text))
    if span is None:
        return None
    return _loads_object(_remove_trailing_commas(span))


def extract_with_regex(raw_text: str) -> Optional[dict[str, Any]]:
    """Build the object field by field from whatever can be located."""
    text = strip_code_fences(raw_text)
    found = extract_fields(_trimmed_span(text) or text, allow_unterminated=True)
    return found or None


def raw_text_fallback(raw_text: str, max_length: int) -> dict[str, Any]:
    """Use a prefix of the raw text as the letter and canned defaults elsewhere."""
    letter = raw_text.strip()[:max_length].strip()
    return {
        "letter": letter or DEFAULT_LETTER,
        "prayer": RAW_TEXT_PRAYER,
        "scriptureReferences": list(RAW_TEXT_REFERENCES),
        "coreMessage": DEFAULT_CORE_MESSAGE,
    }


# ---------------------------------------------------------------------------
# Coercion into the reply model


def _first_present(mapping: dict[str, Any], field: str) -> Any:
    for alias in FIELD_ALIASES[field]:
        if alias in mapping:
            return mapping[alias]
    return None


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (list, tuple)):
        return "\n".join(_as_text(item) for item in value if _as_text(item))
    if isinstance(value, dict):
        return ""
    return str(value).strip()


def _as_references(value: Any) -> list[ScriptureReference]:
    if value is None:
        return []
    items: Iterable[Any]
    if isinstance(value, (list, tuple)):
        items = value
    elif isinstance(value, str):
        items = [part for part in value.split("\n") if part.strip()]
    else:
        items = [value]
    references = []
    for item in items:
        reference = ScriptureReference.coerce(item)
        if reference is not None:
            references.append(reference)
    return references


def to_partial_reply(mapping: dict[str, Any]) -> PartialReply:
    """Coerce a parsed mapping into a :class:`PartialReply` with no empty field."""
    references = _as_references(_first_present(mapping, REFERENCES_FIELD))
    if not references:
        references = _as_references(FIELD_DEFAULTS[REFERENCES_FIELD])
    return PartialReply(
        letter=_as_text(_first_present(mapping, "letter")) or DEFAULT_LETTER,
        prayer=_as_text(_first_present(mapping, "prayer")) or DEFAULT_PRAYER,
        scripture_references=references,
        core_message=_as_text(_first_present(mapping, "coreMessage")) or DEFAULT_CORE_MESSAGE,
    )


class ResponseNormalizer:
    """Run the normalization ladder over raw provider text."""

    def __init__(self, reply_config: ReplyConfig | None = None) -> None:
        self.reply_config = reply_config or get_reply_config()
        self.rungs: tuple[tuple[NormalizationStage, Rung], ...] = (
            (NormalizationStage.DIRECT, parse_direct),
            (NormalizationStage.CHUNKS, reconstruct_chunks),
            (NormalizationStage.BRACE_REPAIR, repair_braces),
            (NormalizationStage.BOUNDARY_TRIM, trim_boundaries),
            (NormalizationStage.REGEX_FIELDS, extract_with_regex),
        )
        self._raw_text = partial(
            raw_text_fallback, max_length=self.reply_config.raw_letter_max_length
        )

    def run(self, raw_text: str) -> tuple[NormalizationStage, PartialReply]:
        """Return the reply together with the rung that produced it."""
        text = raw_text if isinstance(raw_text, str) else ""
        for stage, rung in self.rungs:
            try:
                mapping = rung(text)
            except Exception:
                logger.opt(exception=True).debug("Normalization rung {} failed", stage.value)
                continue
            if mapping is not None:
                return stage, to_partial_reply(mapping)
        return NormalizationStage.RAW_TEXT, to_partial_reply(self._raw_text(text))

    def normalize(self, raw_text: str) -> PartialReply:
        return self.run(raw_text)[1]


def normalize(raw_text: str) -> PartialReply:
    """Normalize ``raw_text`` with the default thresholds."""
    return ResponseNormalizer().normalize(raw_text)
