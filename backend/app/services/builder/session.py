"""Builder session: one form open in the builder.

Holds the editable aggregate (title, description, settings, questions), routes
question edits through :class:`QuestionListEditor` and schedules a debounced
full-snapshot save after every change.
"""

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from app.services.builder.aggregate import FormSettings, FormSnapshot
from app.services.builder.autosave import DebouncedSaver, ErrorCallback, PersistFn
from app.services.builder.editor import QuestionListEditor
from app.services.builder.exceptions import QuestionUpdateError
from app.services.builder.models import Question, QuestionType, merge_settings

logger = logging.getLogger(__name__)


class BuilderSession:
    def __init__(self, form_id: str, snapshot: FormSnapshot, saver: DebouncedSaver) -> None:
        self.form_id = form_id
        self.title = snapshot.title
        self.description = snapshot.description
        self.settings = snapshot.settings
        self.editor = QuestionListEditor(snapshot.questions)
        self.saver = saver

    @classmethod
    def open(
        cls,
        form_id: str,
        snapshot: FormSnapshot,
        persist: PersistFn,
        delay: float | None = None,
        on_error: ErrorCallback | None = None,
    ) -> "BuilderSession":
        return cls(form_id, snapshot, DebouncedSaver(persist, delay=delay, on_error=on_error))

    @property
    def questions(self) -> list[Question]:
        return self.editor.questions

    def snapshot(self) -> FormSnapshot:
        return FormSnapshot(
            title=self.title,
            description=self.description,
            questions=self.editor.questions,
            settings=self.settings,
        )

    def _changed(self) -> None:
        self.saver.schedule(self.form_id, self.snapshot())

    # -- form fields --------------------------------------------------------

    def set_title(self, title: str) -> None:
        self.title = title
        self._changed()

    def set_description(self, description: str | None) -> None:
        self.description = description
        self._changed()

    def update_settings(self, changes: Mapping[str, Any]) -> FormSettings:
        """Merge ``changes`` into the form settings.

        Raises:
            QuestionUpdateError: If the merged settings are invalid; the current
                settings are kept.
        """
        try:
            self.settings = FormSettings.model_validate(merge_settings(self.settings, changes))
        except ValidationError as exc:
            raise QuestionUpdateError(f"Invalid settings for form {self.form_id}: {exc}") from exc
        self._changed()
        return self.settings

    # -- questions ----------------------------------------------------------

    def select(self, index: int | None) -> None:
        self.editor.select(index)

    def add_question(self, question_type: QuestionType | str) -> Question:
        question = self.editor.add(question_type)
        self._changed()
        return question

    def update_question(self, index: int, updates: Mapping[str, Any]) -> Question | None:
        question = self.editor.update(index, updates)
        if question is not None:
            self._changed()
        return question

    def remove_question(self, index: int) -> Question | None:
        removed = self.editor.remove(index)
        if removed is not None:
            self._changed()
        return removed

    def duplicate_question(self, index: int) -> Question | None:
        copy = self.editor.duplicate(index)
        if copy is not None:
            self._changed()
        return copy

    def move_question(self, from_index: int, to_index: int) -> bool:
        moved = self.editor.move(from_index, to_index)
        if moved:
            self._changed()
        return moved

    # -- lifecycle ----------------------------------------------------------

    async def save_now(self) -> bool:
        self._changed()
        return await self.saver.flush()

    async def close(self) -> bool:
        """Leave the builder; a pending save is flushed and awaited."""
        logger.debug("Closing builder session for form %s", self.form_id)
        return await self.saver.close()
