"""Question model: one pydantic model per question variant family.

Variants share ``id``, ``title``, ``description`` and ``required``; each family
carries only the settings meaningful to it:

    input    short_text, long_text, email, phone, website, number, date,
             time, yes_no                          (no settings)
    choice   multiple_choice, dropdown, picture_choice, ranking
             options + multiple/randomize/allowOther/verticalAlign
    rating   rating                                min/max (default 1..5)
    screen   welcome_screen, end_screen, statement
             buttonText/redirectUrl/imageUrl

Settings travel on the wire with camelCase keys (``allowOther``), Python code
uses snake_case attributes (``allow_other``).
"""

import uuid
from collections.abc import Mapping
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from app.services.builder.exceptions import QuestionUpdateError


class QuestionType(str, Enum):
    SHORT_TEXT = "short_text"
    LONG_TEXT = "long_text"
    EMAIL = "email"
    PHONE = "phone"
    WEBSITE = "website"
    NUMBER = "number"
    DATE = "date"
    TIME = "time"
    RATING = "rating"
    YES_NO = "yes_no"
    MULTIPLE_CHOICE = "multiple_choice"
    DROPDOWN = "dropdown"
    PICTURE_CHOICE = "picture_choice"
    RANKING = "ranking"
    WELCOME_SCREEN = "welcome_screen"
    END_SCREEN = "end_screen"
    STATEMENT = "statement"


# Variant families
CHOICE_TYPES = frozenset({"multiple_choice", "dropdown", "picture_choice", "ranking"})
SCREEN_TYPES = frozenset({"welcome_screen", "end_screen", "statement"})

# Variants that start with two placeholder options
DEFAULT_OPTIONS_TYPES = frozenset({"multiple_choice", "dropdown"})
DEFAULT_OPTIONS = ["Option 1", "Option 2"]

DEFAULT_BUTTON_TEXT = "Continue"
DEFAULT_RATING_MIN = 1
DEFAULT_RATING_MAX = 5
COPY_SUFFIX = " (copy)"

# Type tags written by older builders
LEGACY_TYPE_ALIASES = {"text": QuestionType.SHORT_TEXT.value}


def new_question_id() -> str:
    return uuid.uuid4().hex


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class _Settings(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class InputSettings(_Settings):
    pass


class ChoiceSettings(_Settings):
    multiple: bool = False
    randomize: bool = False
    allow_other: bool = False
    vertical_align: bool = True


class RatingSettings(_Settings):
    min: int = DEFAULT_RATING_MIN
    max: int = DEFAULT_RATING_MAX

    @model_validator(mode="after")
    def _check_bounds(self) -> "RatingSettings":
        if self.min > self.max:
            raise ValueError(f"rating min ({self.min}) must not exceed max ({self.max})")
        return self


class ScreenSettings(_Settings):
    button_text: str = DEFAULT_BUTTON_TEXT
    redirect_url: str | None = None
    image_url: str | None = None


# ---------------------------------------------------------------------------
# Questions
# ---------------------------------------------------------------------------


class _QuestionBase(BaseModel):
    id: str = Field(default_factory=new_question_id, min_length=1)
    title: str = ""
    description: str | None = None
    required: bool = False

    @property
    def is_screen(self) -> bool:
        return self.type in SCREEN_TYPES


class InputQuestion(_QuestionBase):
    type: Literal[
        "short_text",
        "long_text",
        "email",
        "phone",
        "website",
        "number",
        "date",
        "time",
        "yes_no",
    ]
    settings: InputSettings = Field(default_factory=InputSettings)


class ChoiceQuestion(_QuestionBase):
    type: Literal["multiple_choice", "dropdown", "picture_choice", "ranking"]
    options: list[str] | None = None
    settings: ChoiceSettings = Field(default_factory=ChoiceSettings)

    @field_validator("options")
    @classmethod
    def _options_not_empty(cls, value: list[str] | None) -> list[str] | None:
        if value is not None and len(value) == 0:
            raise ValueError("a choice question needs at least one option")
        return value


class RatingQuestion(_QuestionBase):
    type: Literal["rating"]
    settings: RatingSettings = Field(default_factory=RatingSettings)


class ScreenQuestion(_QuestionBase):
    type: Literal["welcome_screen", "end_screen", "statement"]
    settings: ScreenSettings = Field(default_factory=ScreenSettings)


def upgrade_legacy_question(data: Any) -> Any:
    """Normalise question dicts written by older builders.

    Maps legacy type tags and moves top-level rating ``min``/``max`` into
    ``settings``. Anything that is not a dict passes through untouched.
    """
    if not isinstance(data, Mapping):
        return data
    data = dict(data)
    raw_type = data.get("type")
    if isinstance(raw_type, str) and raw_type in LEGACY_TYPE_ALIASES:
        data["type"] = LEGACY_TYPE_ALIASES[raw_type]
    if data.get("type") == QuestionType.RATING and ("min" in data or "max" in data):
        settings = dict(data.get("settings") or {})
        for bound in ("min", "max"):
            value = data.pop(bound, None)
            if value is not None:
                settings.setdefault(bound, value)
        data["settings"] = settings
    return data


_QuestionUnion = Annotated[
    Union[InputQuestion, ChoiceQuestion, RatingQuestion, ScreenQuestion],
    Field(discriminator="type"),
]
Question = Annotated[_QuestionUnion, BeforeValidator(upgrade_legacy_question)]

_question_adapter = TypeAdapter(Question)


def parse_question(data: Any) -> Question:
    """Validate a question dict into the matching variant model."""
    return _question_adapter.validate_python(data)


def dump_question(question: Question) -> dict:
    """Serialise a question to its wire/storage shape."""
    return question.model_dump(mode="json", by_alias=True)


# ---------------------------------------------------------------------------
# Construction and edits
# ---------------------------------------------------------------------------


def new_question(question_type: QuestionType | str) -> Question:
    """Build a question of ``question_type`` with its variant defaults.

    Raises:
        ValueError: If ``question_type`` is not a known variant.
    """
    qtype = QuestionType(question_type)
    data: dict[str, Any] = {"id": new_question_id(), "type": qtype.value}
    if qtype.value in DEFAULT_OPTIONS_TYPES:
        data["options"] = list(DEFAULT_OPTIONS)
    return parse_question(data)


def merge_settings(settings: BaseModel, changes: Mapping[str, Any]) -> dict:
    """Overlay ``changes`` (wire or attribute keys) on a settings model's fields."""
    names = {}
    for name, info in type(settings).model_fields.items():
        names[name] = name
        if info.alias:
            names[info.alias] = name
    merged = settings.model_dump()
    for key, value in changes.items():
        merged[names.get(key, key)] = value
    return merged


def apply_updates(question: Question, updates: Mapping[str, Any]) -> Question:
    """Return a new question with ``updates`` applied.

    Top-level fields are replaced; ``settings`` is merged key by key so that
    setting one field never drops its siblings. The id never changes.

    Raises:
        QuestionUpdateError: If the result is not a valid question.
    """
    data = question.model_dump()
    for key, value in updates.items():
        if key == "id":
            continue
        if key == "settings":
            data["settings"] = merge_settings(question.settings, value or {})
        else:
            data[key] = value

    try:
        return parse_question(data)
    except ValidationError as exc:
        raise QuestionUpdateError(f"Invalid update for question {question.id}: {exc}") from exc


def duplicate_question(question: Question) -> Question:
    """Copy a question under a fresh id with the title marked as a copy."""
    return question.model_copy(
        deep=True,
        update={"id": new_question_id(), "title": f"{question.title}{COPY_SUFFIX}"},
    )
