"""Form builder core: questions, answer validation, editing and auto-save.

The HTTP client lives in :mod:`app.services.builder.client` and is not
re-exported here, since it depends on the API schemas that import this package.
"""

from app.services.builder.aggregate import FormSettings, FormSnapshot
from app.services.builder.autosave import DebouncedSaver, SaveStatus
from app.services.builder.editor import QuestionListEditor
from app.services.builder.exceptions import (
    AnswerValidationError,
    FormNotFoundError,
    FormNotPublishedError,
    FormsError,
    NotAuthenticatedError,
    PersistenceError,
    QuestionUpdateError,
    SubmissionRejectedError,
)
from app.services.builder.models import (
    Question,
    QuestionType,
    apply_updates,
    duplicate_question,
    new_question,
    parse_question,
)
from app.services.builder.session import BuilderSession
from app.services.builder.validation import (
    AnswerCheck,
    ValidationReason,
    ensure_valid,
    validate_answer,
)
from app.services.builder.viewer import ViewerSession

__all__ = [
    "AnswerCheck",
    "AnswerValidationError",
    "BuilderSession",
    "DebouncedSaver",
    "FormNotFoundError",
    "FormNotPublishedError",
    "FormSettings",
    "FormSnapshot",
    "FormsError",
    "NotAuthenticatedError",
    "PersistenceError",
    "Question",
    "QuestionListEditor",
    "QuestionType",
    "QuestionUpdateError",
    "SaveStatus",
    "SubmissionRejectedError",
    "ValidationReason",
    "ViewerSession",
    "apply_updates",
    "duplicate_question",
    "ensure_valid",
    "new_question",
    "parse_question",
    "validate_answer",
]
