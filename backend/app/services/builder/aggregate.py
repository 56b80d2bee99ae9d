"""Form aggregate: the unit a save transmits and a load returns.

A save is a full replace of ``title``, ``description``, ``questions`` and
``settings`` for one form id; there is no per-question patch protocol.
Stored ``questions``/``settings`` may arrive as structured JSON or as
serialized text and are decoded with defaults on every read.
"""

import json
import logging
from collections.abc import Iterable
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from app.services.builder.models import Question, dump_question, parse_question

logger = logging.getLogger(__name__)

DEFAULT_FORM_TITLE = "Untitled Form"
DEFAULT_THEME = "system"


class FormSettings(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    show_progress_bar: bool = True
    show_question_numbers: bool = True
    theme: str = DEFAULT_THEME


def decode_questions(raw: Any) -> list:
    """Decode a stored ``questions`` value into a list of question dicts/models."""
    if raw is None:
        return []
    if isinstance(raw, (bytes, str)):
        raw = json.loads(raw) if raw.strip() else []
        if raw is None:
            return []
    if not isinstance(raw, list):
        raise ValueError(f"questions must be a list, got {type(raw).__name__}")
    return raw


def parse_stored_questions(raw: Any) -> list[Question]:
    """Decode and parse stored questions, skipping entries that no longer parse.

    Entries that fail to parse are logged and dropped.
    """
    try:
        items = decode_questions(raw)
    except ValueError as exc:
        logger.warning("Discarding unreadable stored questions: %s", exc)
        return []
    questions = []
    for position, item in enumerate(items):
        try:
            questions.append(parse_question(item))
        except ValidationError as exc:
            logger.warning(
                "Skipping stored question %d (%r): %s",
                position,
                item.get("id") if isinstance(item, dict) else item,
                exc,
            )
    return questions


def decode_settings(raw: Any) -> Any:
    """Decode a stored ``settings`` value; missing keys fall back to defaults."""
    if raw is None:
        return {}
    if isinstance(raw, (bytes, str)):
        raw = json.loads(raw) if raw.strip() else {}
        if raw is None:
            return {}
    return raw


def ensure_unique_question_ids(questions: Iterable[Question]) -> None:
    seen: set[str] = set()
    for question in questions:
        if question.id in seen:
            raise ValueError(f"duplicate question id: {question.id}")
        seen.add(question.id)


class FormSnapshot(BaseModel):
    """Everything a single save sends for a form."""

    title: str = DEFAULT_FORM_TITLE
    description: str | None = None
    questions: list[Question] = Field(default_factory=list)
    settings: FormSettings = Field(default_factory=FormSettings)

    @field_validator("questions", mode="before")
    @classmethod
    def _decode_questions(cls, value: Any) -> list:
        return decode_questions(value)

    @field_validator("settings", mode="before")
    @classmethod
    def _decode_settings(cls, value: Any) -> Any:
        return decode_settings(value)

    @model_validator(mode="after")
    def _unique_ids(self) -> "FormSnapshot":
        ensure_unique_question_ids(self.questions)
        return self

    def to_payload(self) -> dict:
        """Wire shape of the snapshot, as sent to ``PUT /forms/{id}``."""
        return {
            "title": self.title,
            "description": self.description,
            "questions": [dump_question(q) for q in self.questions],
            "settings": self.settings.model_dump(mode="json", by_alias=True),
        }
