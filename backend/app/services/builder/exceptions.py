"""Form builder and form response exceptions."""


class FormsError(Exception):
    """Base exception for form builder and response operations."""


class NotAuthenticatedError(FormsError):
    """Raised when an operation requires a session and none is present."""

    def __init__(self, message: str = "Not authenticated") -> None:
        super().__init__(message)


class FormNotFoundError(FormsError):
    """Raised when a form does not exist or is not owned by the caller."""

    def __init__(self, form_id: object) -> None:
        self.form_id = form_id
        super().__init__(f"Form {form_id} not found")


class FormNotPublishedError(FormsError):
    """Raised when a respondent reaches a form that is not published."""

    def __init__(self, form_id: object) -> None:
        self.form_id = form_id
        super().__init__(f"Form {form_id} is not published")


class AnswerValidationError(FormsError):
    """Raised when a single answer is rejected by the answer validator."""

    def __init__(self, question_id: str, reason: str, message: str) -> None:
        self.question_id = question_id
        self.reason = reason
        super().__init__(message)


class SubmissionRejectedError(FormsError):
    """Raised when a submitted response fails validation against its form.

    ``errors`` holds one entry per offending answer:
    ``{"question_id": ..., "reason": ..., "message": ...}``.
    """

    def __init__(self, errors: list[dict]) -> None:
        self.errors = errors
        super().__init__("; ".join(e["message"] for e in errors))


class QuestionUpdateError(FormsError):
    """Raised when an edit would produce an invalid question."""


class PersistenceError(FormsError):
    """Raised when the persistence layer fails to load or store a form."""
