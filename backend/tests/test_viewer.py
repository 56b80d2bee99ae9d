"""Tests for the respondent-side viewer session."""

from unittest.mock import AsyncMock

import pytest

from app.services.builder.exceptions import PersistenceError, SubmissionRejectedError
from app.services.builder.models import parse_question
from app.services.builder.validation import ValidationReason
from app.services.builder.viewer import SUBMIT_FAILED_MESSAGE, ViewerSession

FORM_ID = "form-7"

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _questions():
    return [
        parse_question({"id": "welcome", "type": "welcome_screen", "title": "Hi"}),
        parse_question({"id": "name", "type": "short_text", "title": "Name", "required": True}),
        parse_question({"id": "email", "type": "email", "title": "Email"}),
        parse_question({"id": "score", "type": "rating", "title": "Score", "required": True}),
    ]


def _viewer():
    return ViewerSession(FORM_ID, _questions())


def _walk_to_end(viewer):
    viewer.advance()
    viewer.set_answer("name", "Ram")
    viewer.advance()
    viewer.set_answer("email", "ram@example.com")
    viewer.advance()
    viewer.set_answer("score", 4)


class TestNavigation:
    def test_starts_at_first_question(self):
        viewer = _viewer()
        assert viewer.current_index == 0
        assert viewer.current_question.id == "welcome"
        assert viewer.progress == pytest.approx(0.25)

    def test_screen_advances_without_answer(self):
        viewer = _viewer()
        assert viewer.advance().ok
        assert viewer.current_index == 1

    def test_missing_required_answer_blocks_advance(self):
        viewer = _viewer()
        viewer.advance()
        check = viewer.advance()
        assert not check.ok
        assert viewer.current_index == 1
        assert viewer.error == "This question requires an answer"
        assert viewer.error_reason == ValidationReason.MISSING_REQUIRED_ANSWER

    def test_error_cleared_once_answer_is_valid(self):
        viewer = _viewer()
        viewer.advance()
        viewer.advance()
        viewer.set_answer("name", "Sita")
        assert viewer.advance().ok
        assert viewer.error is None
        assert viewer.current_index == 2

    def test_invalid_format_keeps_answers(self):
        viewer = _viewer()
        viewer.advance()
        viewer.set_answer("name", "Sita")
        viewer.advance()
        viewer.set_answer("email", "nope")
        assert not viewer.advance().ok
        assert viewer.error_reason == ValidationReason.INVALID_EMAIL
        assert viewer.answers == {"name": "Sita", "email": "nope"}

    def test_back_clears_error_and_stops_at_zero(self):
        viewer = _viewer()
        viewer.advance()
        viewer.advance()
        assert viewer.error is not None
        viewer.back()
        assert viewer.error is None
        assert viewer.current_index == 0
        viewer.back()
        assert viewer.current_index == 0

    def test_last_question_marks_ready_to_submit(self):
        viewer = _viewer()
        _walk_to_end(viewer)
        assert viewer.is_last
        assert viewer.advance().ok
        assert viewer.ready_to_submit
        assert viewer.current_index == 3
        assert viewer.progress == pytest.approx(1.0)

    def test_answer_list_in_question_order(self):
        viewer = _viewer()
        viewer.set_answer("score", 5)
        viewer.set_answer("welcome", "ignored")
        viewer.set_answer("email", "  ")
        viewer.set_answer("name", "Hari")
        assert viewer.answer_list() == [
            {"question_id": "name", "value": "Hari"},
            {"question_id": "score", "value": 5},
        ]

    def test_empty_form(self):
        viewer = ViewerSession(FORM_ID, [])
        assert viewer.current_question is None
        assert viewer.progress == 0.0
        assert viewer.advance().ok


class TestSubmit:
    @pytest.mark.asyncio
    async def test_successful_submit_resets_state(self):
        viewer = _viewer()
        _walk_to_end(viewer)
        submitter = AsyncMock()
        assert await viewer.submit(submitter) is True
        submitter.assert_awaited_once_with(
            FORM_ID,
            [
                {"question_id": "name", "value": "Ram"},
                {"question_id": "email", "value": "ram@example.com"},
                {"question_id": "score", "value": 4},
            ],
        )
        assert viewer.submitted
        assert viewer.answers == {}
        assert viewer.current_index == 0
        assert not viewer.submitting

    @pytest.mark.asyncio
    async def test_current_question_validated_before_submit(self):
        viewer = _viewer()
        _walk_to_end(viewer)
        viewer.set_answer("score", 9)
        submitter = AsyncMock()
        assert await viewer.submit(submitter) is False
        submitter.assert_not_awaited()
        assert viewer.error_reason == ValidationReason.RATING_OUT_OF_RANGE

    @pytest.mark.asyncio
    async def test_failed_submit_keeps_answers_for_retry(self):
        viewer = _viewer()
        _walk_to_end(viewer)
        submitter = AsyncMock(side_effect=[PersistenceError("timeout"), None])

        assert await viewer.submit(submitter) is False
        assert viewer.error == SUBMIT_FAILED_MESSAGE
        assert viewer.answers["name"] == "Ram"
        assert not viewer.submitted

        assert await viewer.submit(submitter) is True
        assert submitter.await_count == 2
        assert viewer.submitted

    @pytest.mark.asyncio
    async def test_rejected_submit_shows_server_message(self):
        viewer = _viewer()
        _walk_to_end(viewer)
        rejection = SubmissionRejectedError(
            [{"question_id": "name", "reason": "missing_required_answer", "message": "Name needed"}]
        )
        submitter = AsyncMock(side_effect=rejection)
        assert await viewer.submit(submitter) is False
        assert viewer.error == "Name needed"
        assert viewer.answers["score"] == 4
