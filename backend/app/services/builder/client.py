"""Async HTTP client for the forms API.

``FormsClient.save_snapshot`` is the persist target handed to
:class:`~app.services.builder.autosave.DebouncedSaver` and
``FormsClient.submit_response`` the submitter handed to
:meth:`~app.services.builder.viewer.ViewerSession.submit`.
Non-success responses are raised as the matching :mod:`exceptions` class.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any

import httpx

from app.core.config import settings
from app.schemas.auth import SessionResponse, SessionUser, TokenResponse
from app.schemas.forms import (
    FormDetailResponse,
    FormListResponse,
    FormOut,
    FormResponseSchema,
    PublicFormOut,
)
from app.services.builder.aggregate import FormSnapshot
from app.services.builder.exceptions import (
    FormNotFoundError,
    FormNotPublishedError,
    NotAuthenticatedError,
    PersistenceError,
    SubmissionRejectedError,
)

logger = logging.getLogger(__name__)


def _rejections(body: Any) -> list[dict] | None:
    """Pull answer rejections out of a 422 body, if that is what it holds."""
    if not isinstance(body, dict):
        return None
    detail = body.get("detail")
    if not isinstance(detail, list) or not detail:
        return None
    if all(isinstance(item, dict) and "question_id" in item for item in detail):
        return detail
    return None


class FormsClient:
    """Thin async wrapper over ``/forms`` and ``/auth``.

    A fresh :class:`httpx.AsyncClient` is opened per call; pass ``transport``
    to route requests somewhere other than the network (e.g. an ASGI app).
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url or settings.FORMS_API_BASE_URL
        self.token = token
        self.timeout = settings.FORMS_API_TIMEOUT_SECONDS if timeout is None else timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        if self.token:
            return {"Authorization": f"Bearer {self.token}"}
        return {}

    async def _request(
        self,
        method: str,
        path: str,
        *,
        form_id: Any = None,
        json: Any = None,
        params: Mapping[str, Any] | None = None,
    ) -> httpx.Response:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
                headers=self._headers(),
            ) as client:
                response = await client.request(method, path, json=json, params=params)
        except httpx.TimeoutException as exc:
            raise PersistenceError(f"{method} {path} timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise PersistenceError(f"{method} {path} failed: {exc}") from exc

        if response.is_success:
            return response

        status = response.status_code
        logger.debug("%s %s returned %d", method, path, status)
        if status in (401, 403):
            raise NotAuthenticatedError()
        if status == 404 and form_id is not None:
            raise FormNotFoundError(form_id)
        if status == 409 and form_id is not None:
            raise FormNotPublishedError(form_id)
        if status == 422:
            try:
                body = response.json()
            except ValueError:
                body = None
            errors = _rejections(body)
            if errors is not None:
                raise SubmissionRejectedError(errors)
        detail = response.text[:500] if response.text else f"status {status}"
        raise PersistenceError(f"{method} {path} returned {status}: {detail}")

    # -- auth ---------------------------------------------------------------

    async def login(self, email: str, password: str) -> str:
        """Exchange credentials for an access token and keep it for later calls."""
        response = await self._request(
            "POST", "/auth/login", json={"email": email, "password": password}
        )
        self.token = TokenResponse.model_validate(response.json()).access_token
        return self.token

    async def get_session(self) -> SessionUser | None:
        """The signed-in user, or None when there is no valid session."""
        if not self.token:
            return None
        try:
            response = await self._request("GET", "/auth/session")
        except NotAuthenticatedError:
            return None
        return SessionResponse.model_validate(response.json()).user

    # -- forms --------------------------------------------------------------

    async def create_form(self, snapshot: FormSnapshot | None = None) -> FormOut:
        payload = (snapshot or FormSnapshot()).to_payload()
        response = await self._request("POST", "/forms/", json=payload)
        return FormOut.model_validate(response.json())

    async def list_forms(self, page: int = 1, page_size: int = 20) -> FormListResponse:
        response = await self._request(
            "GET", "/forms/", params={"page": page, "page_size": page_size}
        )
        return FormListResponse.model_validate(response.json())

    async def get_form(self, form_id: Any) -> FormDetailResponse:
        response = await self._request("GET", f"/forms/{form_id}", form_id=form_id)
        return FormDetailResponse.model_validate(response.json())

    async def get_public_form(self, form_id: Any) -> PublicFormOut:
        response = await self._request("GET", f"/forms/{form_id}/public", form_id=form_id)
        return PublicFormOut.model_validate(response.json())

    async def update_form(self, form_id: Any, fields: Mapping[str, Any]) -> FormOut:
        response = await self._request(
            "PUT", f"/forms/{form_id}", form_id=form_id, json=dict(fields)
        )
        return FormOut.model_validate(response.json())

    async def load_snapshot(self, form_id: Any) -> FormSnapshot:
        """Fetch a form as the snapshot a builder session starts from."""
        form = await self.get_form(form_id)
        return FormSnapshot(
            title=form.title,
            description=form.description,
            questions=form.questions,
            settings=form.settings,
        )

    async def save_snapshot(self, form_id: Any, snapshot: FormSnapshot) -> FormOut:
        """Full-replace save of ``snapshot``; the auto-save persist callback."""
        return await self.update_form(form_id, snapshot.to_payload())

    async def publish_form(self, form_id: Any) -> FormOut:
        response = await self._request("POST", f"/forms/{form_id}/publish", form_id=form_id)
        return FormOut.model_validate(response.json())

    async def unpublish_form(self, form_id: Any) -> FormOut:
        response = await self._request("POST", f"/forms/{form_id}/unpublish", form_id=form_id)
        return FormOut.model_validate(response.json())

    # -- responses ----------------------------------------------------------

    async def submit_response(
        self, form_id: Any, answers: Sequence[Mapping[str, Any]]
    ) -> FormResponseSchema:
        response = await self._request(
            "POST",
            f"/forms/{form_id}/responses",
            form_id=form_id,
            json={"answers": [dict(a) for a in answers]},
        )
        return FormResponseSchema.model_validate(response.json())
