import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.services.builder.aggregate import (
    DEFAULT_FORM_TITLE,
    FormSettings,
    decode_settings,
    ensure_unique_question_ids,
    parse_stored_questions,
)
from app.services.builder.models import Question

# ---------------------------------------------------------------------------
# Form CRUD schemas
# ---------------------------------------------------------------------------


class FormCreate(BaseModel):
    title: str = Field(DEFAULT_FORM_TITLE, min_length=1, max_length=255)
    description: str | None = None
    questions: list[Question] = Field(default_factory=list)
    settings: FormSettings = Field(default_factory=FormSettings)

    @model_validator(mode="after")
    def _unique_ids(self) -> "FormCreate":
        ensure_unique_question_ids(self.questions)
        return self


class FormUpdate(BaseModel):
    """Full-replace update: every supplied field overwrites the stored one."""

    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    questions: list[Question] | None = None
    settings: FormSettings | None = None

    @model_validator(mode="after")
    def _unique_ids(self) -> "FormUpdate":
        if self.questions is not None:
            ensure_unique_question_ids(self.questions)
        return self


class _StoredForm(BaseModel):
    """Decodes stored ``questions``/``settings`` into structured values."""

    model_config = ConfigDict(from_attributes=True)

    @field_validator("questions", mode="before", check_fields=False)
    @classmethod
    def _decode_questions(cls, value: Any) -> list:
        return parse_stored_questions(value)

    @field_validator("settings", mode="before", check_fields=False)
    @classmethod
    def _decode_settings(cls, value: Any) -> Any:
        return decode_settings(value)


class FormOut(_StoredForm):
    id: uuid.UUID
    user_id: uuid.UUID
    title: str
    description: str | None
    questions: list[Question]
    settings: FormSettings
    published: bool
    created_at: datetime
    updated_at: datetime


class FormDetailResponse(FormOut):
    response_count: int = 0


class PublicFormOut(_StoredForm):
    """What a respondent sees: no owner or bookkeeping fields."""

    id: uuid.UUID
    title: str
    description: str | None
    questions: list[Question]
    settings: FormSettings


class FormListResponse(BaseModel):
    items: list[FormOut]
    total: int
    page: int
    page_size: int


# ---------------------------------------------------------------------------
# Form response schemas
# ---------------------------------------------------------------------------


class Answer(BaseModel):
    question_id: str = Field(..., min_length=1)
    value: Any = None


class FormSubmission(BaseModel):
    """Answers in question order, one entry per answered question."""

    answers: list[Answer] = Field(default_factory=list)


class FormResponseSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    form_id: uuid.UUID
    user_id: uuid.UUID | None
    answers: list[Answer]
    submitted_at: datetime


class FormResponseListResponse(BaseModel):
    items: list[FormResponseSchema]
    total: int
    page: int
    page_size: int
