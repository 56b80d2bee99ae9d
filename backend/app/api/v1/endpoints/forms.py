"""Form API: builder CRUD, publishing, response collection and CSV export."""

import re
import uuid
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.core.auth import get_current_user, get_optional_user
from app.core.database import get_db
from app.models.user import User
from app.schemas.forms import (
    FormCreate,
    FormDetailResponse,
    FormListResponse,
    FormOut,
    FormResponseListResponse,
    FormResponseSchema,
    FormSubmission,
    FormUpdate,
    PublicFormOut,
)
from app.services import forms as forms_service

router = APIRouter()


def _content_disposition(filename: str) -> str:
    """Attachment header with an ASCII fallback name and an RFC 5987 UTF-8 name."""
    stem, _, extension = filename.rpartition(".")
    fallback = re.sub(r"[^A-Za-z0-9-]+", "_", stem).strip("_") or "responses"
    return (
        f'attachment; filename="{fallback}.{extension}"; '
        f"filename*=UTF-8''{quote(filename, safe='')}"
    )


# ---------------------------------------------------------------------------
# Form CRUD
# ---------------------------------------------------------------------------


@router.post("/", response_model=FormOut, status_code=201)
def create_form(
    payload: FormCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return forms_service.create_form(db, current_user, payload)


@router.get("/", response_model=FormListResponse)
def list_forms(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    forms, total = forms_service.list_forms(db, current_user, page, page_size)
    return FormListResponse(
        items=[FormOut.model_validate(f) for f in forms],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{form_id}", response_model=FormDetailResponse)
def get_form(
    form_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    form = forms_service.get_form(db, current_user, form_id)
    detail = FormDetailResponse.model_validate(form)
    detail.response_count = forms_service.count_responses(db, form.id)
    return detail


@router.put("/{form_id}", response_model=FormOut)
def update_form(
    form_id: uuid.UUID,
    payload: FormUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return forms_service.update_form(db, current_user, form_id, payload)


@router.post("/{form_id}/publish", response_model=FormOut)
def publish_form(
    form_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return forms_service.set_published(db, current_user, form_id, True)


@router.post("/{form_id}/unpublish", response_model=FormOut)
def unpublish_form(
    form_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return forms_service.set_published(db, current_user, form_id, False)


@router.get("/{form_id}/public", response_model=PublicFormOut)
def get_public_form(
    form_id: uuid.UUID,
    viewer: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    return forms_service.get_published_form(db, form_id, viewer)


# ---------------------------------------------------------------------------
# Form responses
# ---------------------------------------------------------------------------


@router.post("/{form_id}/responses", response_model=FormResponseSchema, status_code=201)
def submit_form_response(
    form_id: uuid.UUID,
    payload: FormSubmission,
    respondent: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    return forms_service.submit_response(db, form_id, payload.answers, respondent)


@router.get("/{form_id}/responses", response_model=FormResponseListResponse)
def list_form_responses(
    form_id: uuid.UUID,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    responses, total = forms_service.list_responses(db, current_user, form_id, page, page_size)
    return FormResponseListResponse(
        items=[FormResponseSchema.model_validate(r) for r in responses],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{form_id}/responses/download")
def download_form_responses(
    form_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Export all form responses as CSV."""
    filename, content = forms_service.export_responses_csv(db, current_user, form_id)
    return StreamingResponse(
        iter([content]),
        media_type="text/csv",
        headers={"Content-Disposition": _content_disposition(filename)},
    )
