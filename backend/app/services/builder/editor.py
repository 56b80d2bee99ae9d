"""Question list editor: ordered question CRUD plus the selected index.

Every operation either applies fully or leaves the list untouched. Index
arguments outside the list are ignored: the builder never produces them, so
they are treated as no-ops rather than errors.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from app.services.builder.models import (
    Question,
    QuestionType,
    apply_updates,
    duplicate_question,
    new_question,
)

logger = logging.getLogger(__name__)


class QuestionListEditor:
    """In-memory editor for a form's ordered questions.

    Usage::

        editor = QuestionListEditor()
        editor.add("multiple_choice")
        editor.update(0, {"title": "Pick one"})
        editor.move(0, 1)
    """

    def __init__(self, questions: Iterable[Question] = (), selected: int | None = None) -> None:
        self._questions: list[Question] = list(questions)
        self._selected: int | None = None
        self.select(selected)

    @property
    def questions(self) -> list[Question]:
        return list(self._questions)

    @property
    def selected(self) -> int | None:
        return self._selected

    @property
    def selected_question(self) -> Question | None:
        if self._selected is None:
            return None
        return self._questions[self._selected]

    def __len__(self) -> int:
        return len(self._questions)

    def _in_range(self, index: int) -> bool:
        return 0 <= index < len(self._questions)

    def index_of(self, question_id: str) -> int | None:
        for index, question in enumerate(self._questions):
            if question.id == question_id:
                return index
        return None

    def select(self, index: int | None) -> None:
        if index is None or self._in_range(index):
            self._selected = index

    def add(self, question_type: QuestionType | str) -> Question:
        """Append a defaulted question of ``question_type`` and select it."""
        question = new_question(question_type)
        self._questions.append(question)
        self._selected = len(self._questions) - 1
        return question

    def update(self, index: int, updates: Mapping[str, Any]) -> Question | None:
        """Merge ``updates`` into the question at ``index``.

        Raises:
            QuestionUpdateError: If the merged question is invalid; the list
                is left unchanged.
        """
        if not self._in_range(index):
            logger.debug("update ignored: index %d out of range (%d questions)", index, len(self))
            return None
        question = apply_updates(self._questions[index], updates)
        self._questions[index] = question
        return question

    def remove(self, index: int) -> Question | None:
        if not self._in_range(index):
            logger.debug("remove ignored: index %d out of range (%d questions)", index, len(self))
            return None
        removed = self._questions.pop(index)
        if self._selected == index:
            self._selected = None
        elif self._selected is not None and self._selected > index:
            self._selected -= 1
        return removed

    def duplicate(self, index: int) -> Question | None:
        """Insert a copy right after ``index`` and select the copy."""
        if not self._in_range(index):
            logger.debug("duplicate ignored: index %d out of range (%d questions)", index, len(self))
            return None
        copy = duplicate_question(self._questions[index])
        self._questions.insert(index + 1, copy)
        self._selected = index + 1
        return copy

    def move(self, from_index: int, to_index: int) -> bool:
        """Move the question at ``from_index`` to ``to_index``; it becomes selected."""
        if from_index == to_index:
            return False
        if not (self._in_range(from_index) and self._in_range(to_index)):
            logger.debug("move ignored: %d -> %d out of range (%d questions)", from_index, to_index, len(self))
            return False
        question = self._questions.pop(from_index)
        self._questions.insert(to_index, question)
        self._selected = to_index
        return True

    def move_by_id(self, question_id: str, over_id: str) -> bool:
        """Drop the question ``question_id`` onto the slot held by ``over_id``."""
        from_index = self.index_of(question_id)
        to_index = self.index_of(over_id)
        if from_index is None or to_index is None:
            return False
        return self.move(from_index, to_index)
