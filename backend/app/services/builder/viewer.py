"""Viewer session: one respondent walking a form a question at a time."""

import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from app.services.builder.exceptions import FormsError, SubmissionRejectedError
from app.services.builder.models import Question
from app.services.builder.validation import (
    AnswerCheck,
    ValidationReason,
    is_empty_answer,
    validate_answer,
)

logger = logging.getLogger(__name__)

Submitter = Callable[[str, list[dict]], Awaitable[Any]]

SUBMIT_FAILED_MESSAGE = "Failed to submit form. Please try again."


class ViewerSession:
    """Per-respondent navigation and answer state.

    The current question is validated before every step forward; a rejected
    answer sets ``error`` and leaves position and answers alone. A failed
    submission keeps the answers so the same submit can be retried.
    """

    def __init__(self, form_id: str, questions: Sequence[Question]) -> None:
        self.form_id = form_id
        self.questions = list(questions)
        self.current_index = 0
        self.answers: dict[str, Any] = {}
        self.error: str | None = None
        self.error_reason: ValidationReason | None = None
        self.ready_to_submit = False
        self.submitting = False
        self.submitted = False

    @property
    def current_question(self) -> Question | None:
        if 0 <= self.current_index < len(self.questions):
            return self.questions[self.current_index]
        return None

    @property
    def is_last(self) -> bool:
        return self.current_index >= len(self.questions) - 1

    @property
    def progress(self) -> float:
        if not self.questions:
            return 0.0
        return (self.current_index + 1) / len(self.questions)

    def set_answer(self, question_id: str, value: Any) -> None:
        self.answers[question_id] = value

    def _check_current(self) -> AnswerCheck:
        question = self.current_question
        if question is None:
            return AnswerCheck.passed()
        check = validate_answer(question, self.answers.get(question.id))
        if check.ok:
            self.error = None
            self.error_reason = None
        else:
            self.error = check.message
            self.error_reason = check.reason
        return check

    def advance(self) -> AnswerCheck:
        """Validate the current answer and step forward.

        On the last question a passing answer marks the session ready to
        submit instead of moving.
        """
        check = self._check_current()
        if not check.ok:
            return check
        if self.is_last:
            self.ready_to_submit = True
        else:
            self.current_index += 1
        return check

    def back(self) -> None:
        self.error = None
        self.error_reason = None
        self.ready_to_submit = False
        if self.current_index > 0:
            self.current_index -= 1

    def answer_list(self) -> list[dict]:
        """Answers in question order; screens and blank answers are left out."""
        items = []
        for question in self.questions:
            if question.is_screen or question.id not in self.answers:
                continue
            value = self.answers[question.id]
            if is_empty_answer(value):
                continue
            items.append({"question_id": question.id, "value": value})
        return items

    def reset(self) -> None:
        self.current_index = 0
        self.answers = {}
        self.error = None
        self.error_reason = None
        self.ready_to_submit = False

    async def submit(self, submitter: Submitter) -> bool:
        """Validate the current question, then hand the answers to ``submitter``.

        Returns True once the response is stored. On failure ``error`` holds a
        message and the answers stay in place for a retry.
        """
        if not self._check_current().ok:
            return False

        self.submitting = True
        try:
            await submitter(self.form_id, self.answer_list())
        except SubmissionRejectedError as exc:
            logger.warning("Response to form %s rejected: %s", self.form_id, exc)
            self.error = str(exc)
            return False
        except FormsError as exc:
            logger.error("Submitting response to form %s failed: %s", self.form_id, exc)
            self.error = SUBMIT_FAILED_MESSAGE
            return False
        finally:
            self.submitting = False

        self.submitted = True
        self.reset()
        return True
