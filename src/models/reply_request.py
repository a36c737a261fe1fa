"""Request models for the reply API."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..utils.error_handler import InputValidationError

OTHER_TOPIC = "other"
OTHER_TOPIC_DISPLAY = "the many needs of daily life"
REQUIRED_FIELDS = ("nickname", "situation", "topic")


class UserRequest(BaseModel):
    """A user's situation as submitted from the frontend.

    Instances are immutable once constructed.  ``topic`` is a category
    label such as ``"health"`` or ``"work"``; the sentinel ``"other"``
    stands for anything outside the known categories.
    """

    model_config = ConfigDict(frozen=True)

    nickname: str = Field(..., min_length=1, description="How the user wants to be addressed.")
    topic: str = Field(..., min_length=1, description="Category label for the request.")
    situation: str = Field(..., min_length=1, description="Free-text description of the situation.")
    religion: Optional[str] = Field(default=None, description="Optional religious background.")

    @property
    def display_topic(self) -> str:
        if self.topic.strip().lower() == OTHER_TOPIC:
            return OTHER_TOPIC_DISPLAY
        return self.topic


class GenerateRequest(BaseModel):
    """Body of ``POST /api/ai/generate``.

    ``userInput`` is kept as a loose mapping so that missing fields can be
    reported the way the frontend expects (HTTP 400 with field names)
    instead of a generic 422 validation payload.
    """

    model_config = ConfigDict(populate_by_name=True)

    user_input: Optional[dict[str, Any]] = Field(default=None, alias="userInput")


def build_user_request(payload: Optional[dict[str, Any]], max_situation_length: int) -> UserRequest:
    """Validate a raw ``userInput`` mapping and return a :class:`UserRequest`.

    Raises
    ------
    InputValidationError
        If a required field is missing or blank, or ``situation`` is longer
        than ``max_situation_length``.
    """
    payload = payload or {}
    missing = [
        name
        for name in REQUIRED_FIELDS
        if not isinstance(payload.get(name), str) or not payload.get(name, "").strip()
    ]
    if missing:
        raise InputValidationError(
            "Missing required fields",
            fields=missing,
            details={"required": list(REQUIRED_FIELDS), "received": sorted(payload.keys())},
        )

    situation = payload["situation"]
    if len(situation) > max_situation_length:
        raise InputValidationError(
            "Situation description is too long",
            fields=["situation"],
            details={"maxLength": max_situation_length, "currentLength": len(situation)},
        )

    religion = payload.get("religion")
    return UserRequest(
        nickname=payload["nickname"].strip(),
        topic=payload["topic"].strip(),
        situation=situation.strip(),
        religion=religion.strip() if isinstance(religion, str) and religion.strip() else None,
    )
