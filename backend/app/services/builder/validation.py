"""Answer validation: gate a single answer before the respondent moves on.

Rules are applied in order and the first failure wins:

1. a required question with an empty answer fails ``missing_required_answer``
2. ``email`` answers must look like ``local@domain.tld``
3. ``number`` answers must parse as a finite number
4. ``rating`` answers must parse as a number within ``[min, max]``

Format rules only look at answers that are present, so an optional question
left blank always passes. Screens (welcome/end/statement) are never validated.
"""

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

from app.services.builder.exceptions import AnswerValidationError
from app.services.builder.models import Question, QuestionType

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class ValidationReason(str, Enum):
    MISSING_REQUIRED_ANSWER = "missing_required_answer"
    INVALID_EMAIL = "invalid_email"
    INVALID_NUMBER = "invalid_number"
    RATING_OUT_OF_RANGE = "rating_out_of_range"


@dataclass(frozen=True)
class AnswerCheck:
    """Outcome of validating one answer."""

    ok: bool
    reason: ValidationReason | None = None
    message: str | None = None

    @classmethod
    def passed(cls) -> "AnswerCheck":
        return cls(ok=True)

    @classmethod
    def failed(cls, reason: ValidationReason, message: str) -> "AnswerCheck":
        return cls(ok=False, reason=reason, message=message)


def is_empty_answer(answer: Any) -> bool:
    if answer is None:
        return True
    if isinstance(answer, str):
        return not answer.strip()
    if isinstance(answer, (list, tuple, dict)):
        return len(answer) == 0
    return False


def parse_number(answer: Any) -> float | None:
    """Parse ``answer`` as a finite number, or return None."""
    if isinstance(answer, bool):
        return None
    if isinstance(answer, (int, float)):
        value = float(answer)
    elif isinstance(answer, str):
        if "_" in answer:
            return None
        try:
            value = float(answer.strip())
        except ValueError:
            return None
    else:
        return None
    return value if math.isfinite(value) else None


def validate_answer(question: Question, answer: Any) -> AnswerCheck:
    """Decide whether ``answer`` is acceptable for ``question``."""
    if question.is_screen:
        return AnswerCheck.passed()

    empty = is_empty_answer(answer)
    if question.required and empty:
        return AnswerCheck.failed(
            ValidationReason.MISSING_REQUIRED_ANSWER,
            "This question requires an answer",
        )
    if empty:
        return AnswerCheck.passed()

    if question.type == QuestionType.EMAIL:
        if not isinstance(answer, str) or not EMAIL_RE.match(answer.strip()):
            return AnswerCheck.failed(
                ValidationReason.INVALID_EMAIL,
                "Please enter a valid email address",
            )
    elif question.type == QuestionType.NUMBER:
        if parse_number(answer) is None:
            return AnswerCheck.failed(
                ValidationReason.INVALID_NUMBER,
                "Please enter a valid number",
            )
    elif question.type == QuestionType.RATING:
        low, high = question.settings.min, question.settings.max
        rating = parse_number(answer)
        if rating is None or rating < low or rating > high:
            return AnswerCheck.failed(
                ValidationReason.RATING_OUT_OF_RANGE,
                f"Please enter a rating between {low} and {high}",
            )

    return AnswerCheck.passed()


def ensure_valid(question: Question, answer: Any) -> None:
    """Like :func:`validate_answer` but raises on failure.

    Raises:
        AnswerValidationError: With the failing reason and the question id.
    """
    check = validate_answer(question, answer)
    if not check.ok:
        raise AnswerValidationError(question.id, check.reason.value, check.message)
