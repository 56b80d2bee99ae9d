"""Form persistence: the collaborator behind the builder and the viewer.

Every owner-facing operation is scoped to the calling user: a form that exists
but belongs to someone else is reported exactly like a missing one. Questions
and settings are decoded on every read, so rows written as serialized text by
older builders load the same as structured JSON.
"""

import csv
import io
import logging
import uuid
from collections.abc import Sequence
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.form import Form
from app.models.form_response import FormResponse
from app.models.user import User
from app.schemas.forms import Answer, FormCreate, FormUpdate
from app.services.builder.aggregate import (
    FormSettings,
    decode_questions,
    decode_settings,
    parse_stored_questions,
)
from app.services.builder.exceptions import (
    FormNotFoundError,
    FormNotPublishedError,
    PersistenceError,
    SubmissionRejectedError,
)
from app.services.builder.models import Question, dump_question
from app.services.builder.validation import is_empty_answer, validate_answer

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _commit(db: Session, action: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Database error while trying to %s: %s", action, exc)
        raise PersistenceError(f"Could not {action}") from exc


def load_questions(form: Form) -> list[Question]:
    return parse_stored_questions(form.questions)


def load_settings(form: Form) -> FormSettings:
    return FormSettings.model_validate(decode_settings(form.settings))


def _dump_questions(questions: Sequence[Question]) -> list[dict]:
    return [dump_question(q) for q in questions]


def _dump_settings(form_settings: FormSettings) -> dict:
    return form_settings.model_dump(mode="json", by_alias=True)


# ---------------------------------------------------------------------------
# Forms
# ---------------------------------------------------------------------------


def create_form(db: Session, owner: User, payload: FormCreate) -> Form:
    """Insert a form owned by ``owner``; the owner is never taken from the payload."""
    form = Form(
        user_id=owner.id,
        title=payload.title,
        description=payload.description,
        questions=_dump_questions(payload.questions),
        settings=_dump_settings(payload.settings),
    )
    db.add(form)
    _commit(db, "create form")
    db.refresh(form)
    logger.info("Created form %s for user %s", form.id, owner.id)
    return form


def get_form(db: Session, owner: User, form_id: uuid.UUID) -> Form:
    """Load one of ``owner``'s forms.

    Raises:
        FormNotFoundError: If the form is absent or owned by another user.
    """
    form = db.get(Form, form_id)
    if form is None or form.user_id != owner.id:
        raise FormNotFoundError(form_id)
    return form


def get_published_form(
    db: Session, form_id: uuid.UUID, viewer: User | None = None
) -> Form:
    """Load a form for respondents. Owners may preview their own drafts.

    Raises:
        FormNotFoundError: If the form does not exist.
        FormNotPublishedError: If the form is a draft and ``viewer`` is not its owner.
    """
    form = db.get(Form, form_id)
    if form is None:
        raise FormNotFoundError(form_id)
    if not form.published and (viewer is None or viewer.id != form.user_id):
        raise FormNotPublishedError(form_id)
    return form


def list_forms(
    db: Session, owner: User, page: int = 1, page_size: int = 20
) -> tuple[list[Form], int]:
    """Return one page of ``owner``'s forms, newest first, and the total count."""
    total = db.execute(
        select(func.count()).select_from(Form).where(Form.user_id == owner.id)
    ).scalar_one()
    offset = (page - 1) * page_size
    forms = (
        db.execute(
            select(Form)
            .where(Form.user_id == owner.id)
            .order_by(Form.created_at.desc())
            .offset(offset)
            .limit(page_size)
        )
        .scalars()
        .all()
    )
    return list(forms), total


def count_responses(db: Session, form_id: uuid.UUID) -> int:
    return db.execute(
        select(func.count()).select_from(FormResponse).where(FormResponse.form_id == form_id)
    ).scalar_one()


def update_form(
    db: Session, owner: User, form_id: uuid.UUID, payload: FormUpdate
) -> Form:
    """Replace every field present in ``payload``; absent fields are kept."""
    form = get_form(db, owner, form_id)
    fields = payload.model_fields_set

    if "title" in fields and payload.title is not None:
        form.title = payload.title
    if "description" in fields:
        form.description = payload.description
    if "questions" in fields and payload.questions is not None:
        form.questions = _dump_questions(payload.questions)
    if "settings" in fields and payload.settings is not None:
        form.settings = _dump_settings(payload.settings)

    _commit(db, "save form")
    db.refresh(form)
    logger.info(
        "Saved form %s (%d questions)", form.id, len(decode_questions(form.questions))
    )
    return form


def set_published(
    db: Session, owner: User, form_id: uuid.UUID, published: bool
) -> Form:
    form = get_form(db, owner, form_id)
    if form.published != published:
        form.published = published
        _commit(db, "publish form" if published else "unpublish form")
        db.refresh(form)
        logger.info("Form %s %s", form.id, "published" if published else "unpublished")
    return form


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


def validate_submission(
    questions: Sequence[Question], answers: Sequence[Answer]
) -> list[dict]:
    """Check submitted answers against the form's current questions.

    Returns one ``{"question_id", "reason", "message"}`` entry per problem;
    an empty list means the submission is acceptable.
    """
    by_id = {q.id: q for q in questions}
    errors: list[dict] = []
    given: dict[str, Any] = {}

    for answer in answers:
        question = by_id.get(answer.question_id)
        if question is None or question.is_screen:
            errors.append(
                {
                    "question_id": answer.question_id,
                    "reason": "unknown_question",
                    "message": f"Question {answer.question_id} is not part of this form",
                }
            )
            continue
        if answer.question_id in given:
            errors.append(
                {
                    "question_id": answer.question_id,
                    "reason": "duplicate_answer",
                    "message": f"Question {answer.question_id} was answered more than once",
                }
            )
            continue
        given[answer.question_id] = answer.value

    for question in questions:
        check = validate_answer(question, given.get(question.id))
        if not check.ok:
            errors.append(
                {
                    "question_id": question.id,
                    "reason": check.reason.value,
                    "message": check.message,
                }
            )
    return errors


def submit_response(
    db: Session,
    form_id: uuid.UUID,
    answers: Sequence[Answer],
    respondent: User | None = None,
) -> FormResponse:
    """Validate and store one response. Responses are insert-only.

    Raises:
        FormNotFoundError: If the form does not exist.
        FormNotPublishedError: If the form is a draft and the respondent is
            not its owner.
        SubmissionRejectedError: If any answer fails validation.
    """
    form = get_published_form(db, form_id, respondent)
    questions = load_questions(form)

    errors = validate_submission(questions, answers)
    if errors:
        logger.info("Rejected response to form %s: %d problems", form.id, len(errors))
        raise SubmissionRejectedError(errors)

    values = {a.question_id: a.value for a in answers}
    ordered = [
        {"question_id": q.id, "value": values[q.id]}
        for q in questions
        if q.id in values and not is_empty_answer(values[q.id])
    ]

    form_response = FormResponse(
        form_id=form.id,
        user_id=respondent.id if respondent is not None else None,
        answers=ordered,
    )
    db.add(form_response)
    _commit(db, "store form response")
    db.refresh(form_response)
    logger.info("Stored response %s to form %s", form_response.id, form.id)
    return form_response


def list_responses(
    db: Session,
    owner: User,
    form_id: uuid.UUID,
    page: int = 1,
    page_size: int = 20,
) -> tuple[list[FormResponse], int]:
    form = get_form(db, owner, form_id)
    total = count_responses(db, form.id)
    offset = (page - 1) * page_size
    responses = (
        db.execute(
            select(FormResponse)
            .where(FormResponse.form_id == form.id)
            .order_by(FormResponse.submitted_at.desc())
            .offset(offset)
            .limit(page_size)
        )
        .scalars()
        .all()
    )
    return list(responses), total


def _csv_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return "; ".join(str(v) for v in value)
    if isinstance(value, bool):
        return "yes" if value else "no"
    return str(value)


def export_responses_csv(db: Session, owner: User, form_id: uuid.UUID) -> tuple[str, str]:
    """Render every response as CSV, one column per answerable question.

    Returns ``(filename, csv_text)``.
    """
    form = get_form(db, owner, form_id)
    questions = [q for q in load_questions(form) if not q.is_screen]
    responses = (
        db.execute(
            select(FormResponse)
            .where(FormResponse.form_id == form.id)
            .order_by(FormResponse.submitted_at.asc())
        )
        .scalars()
        .all()
    )

    output = io.StringIO()
    writer = csv.writer(output)

    header = ["response_id", "submitted_at"]
    for i, question in enumerate(questions):
        header.append(f"Q{i + 1}: {question.title or question.id}")
    writer.writerow(header)

    for resp in responses:
        values = {
            item.get("question_id"): item.get("value")
            for item in resp.answers or []
            if isinstance(item, dict)
        }
        row = [str(resp.id), resp.submitted_at.isoformat() if resp.submitted_at else ""]
        row.extend(_csv_cell(values.get(q.id)) for q in questions)
        writer.writerow(row)

    filename = f"form_{form.title.replace(' ', '_')}_{form.id}.csv"
    return filename, output.getvalue()
