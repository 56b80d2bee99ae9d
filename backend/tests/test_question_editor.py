import pytest

from app.services.builder.editor import QuestionListEditor
from app.services.builder.exceptions import QuestionUpdateError

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _editor(*types):
    editor = QuestionListEditor()
    for qtype in types:
        editor.add(qtype)
    return editor


def _ids(editor):
    return [q.id for q in editor.questions]


class TestAdd:
    def test_add_appends_and_selects(self):
        editor = _editor("short_text", "email")
        question = editor.add("rating")
        assert len(editor) == 3
        assert editor.questions[-1] is question
        assert editor.selected == 2
        assert editor.selected_question is question

    def test_add_unknown_type_leaves_list_alone(self):
        editor = _editor("short_text")
        with pytest.raises(ValueError):
            editor.add("signature")
        assert len(editor) == 1
        assert editor.selected == 0

    def test_questions_property_is_a_copy(self):
        editor = _editor("short_text")
        editor.questions.clear()
        assert len(editor) == 1


class TestUpdate:
    def test_update_merges_and_keeps_selection(self):
        editor = _editor("multiple_choice", "email")
        editor.select(1)
        updated = editor.update(0, {"title": "Pick", "settings": {"randomize": True}})
        assert updated.title == "Pick"
        assert editor.questions[0].settings.randomize is True
        assert editor.selected == 1

    def test_update_out_of_range_is_noop(self):
        editor = _editor("short_text")
        before = editor.questions
        assert editor.update(5, {"title": "x"}) is None
        assert editor.questions == before

    def test_invalid_update_leaves_list_unchanged(self):
        editor = _editor("dropdown")
        before = editor.questions
        with pytest.raises(QuestionUpdateError):
            editor.update(0, {"options": []})
        assert editor.questions == before


class TestRemove:
    def test_remove_selected_clears_selection(self):
        editor = _editor("short_text", "email", "number")
        editor.select(1)
        removed = editor.remove(1)
        assert removed.type == "email"
        assert len(editor) == 2
        assert editor.selected is None

    def test_remove_before_selection_shifts_it(self):
        editor = _editor("short_text", "email", "number")
        editor.select(2)
        selected_id = editor.selected_question.id
        editor.remove(0)
        assert editor.selected == 1
        assert editor.selected_question.id == selected_id

    def test_remove_after_selection_keeps_it(self):
        editor = _editor("short_text", "email", "number")
        editor.select(0)
        editor.remove(2)
        assert editor.selected == 0

    def test_remove_out_of_range_is_noop(self):
        editor = _editor("short_text")
        assert editor.remove(3) is None
        assert editor.remove(-1) is None
        assert len(editor) == 1


class TestDuplicate:
    def test_duplicate_inserts_copy_after_source(self):
        editor = _editor("short_text", "dropdown", "email")
        editor.update(1, {"title": "Color"})
        copy = editor.duplicate(1)
        assert len(editor) == 4
        assert editor.questions[2] is copy
        assert copy.title == "Color (copy)"
        assert copy.id != editor.questions[1].id
        assert editor.selected == 2

    def test_duplicate_out_of_range_is_noop(self):
        editor = _editor("short_text")
        assert editor.duplicate(1) is None
        assert len(editor) == 1

    def test_ids_stay_unique(self):
        editor = _editor("short_text")
        for _ in range(5):
            editor.duplicate(0)
        assert len(set(_ids(editor))) == 6


class TestMove:
    def test_move_forward(self):
        editor = _editor("short_text", "email", "number")
        a, b, c = _ids(editor)
        assert editor.move(0, 2) is True
        assert _ids(editor) == [b, c, a]
        assert editor.selected == 2

    def test_move_backward(self):
        editor = _editor("short_text", "email", "number")
        a, b, c = _ids(editor)
        assert editor.move(2, 0) is True
        assert _ids(editor) == [c, a, b]
        assert editor.selected == 0

    def test_move_to_same_index_is_noop(self):
        editor = _editor("short_text", "email")
        editor.select(0)
        before = _ids(editor)
        assert editor.move(1, 1) is False
        assert _ids(editor) == before
        assert editor.selected == 0

    def test_move_out_of_range_is_noop(self):
        editor = _editor("short_text", "email")
        before = _ids(editor)
        assert editor.move(0, 2) is False
        assert editor.move(-1, 0) is False
        assert _ids(editor) == before

    def test_move_by_id(self):
        editor = _editor("short_text", "email", "number")
        a, b, c = _ids(editor)
        assert editor.move_by_id(c, a) is True
        assert _ids(editor) == [c, a, b]
        assert editor.move_by_id("missing", a) is False

    def test_moves_preserve_the_multiset(self):
        editor = _editor("short_text", "email", "number", "rating", "date")
        original = sorted(_ids(editor))
        for src, dst in [(0, 4), (3, 1), (2, 2), (4, 0), (1, 3)]:
            editor.move(src, dst)
        assert sorted(_ids(editor)) == original


class TestSelect:
    def test_select_and_clear(self):
        editor = _editor("short_text", "email")
        editor.select(0)
        assert editor.selected == 0
        editor.select(None)
        assert editor.selected is None
        assert editor.selected_question is None

    def test_select_out_of_range_ignored(self):
        editor = _editor("short_text")
        editor.select(0)
        editor.select(4)
        assert editor.selected == 0

    def test_initial_questions_and_selection(self):
        source = _editor("short_text", "email")
        editor = QuestionListEditor(source.questions, selected=1)
        assert _ids(editor) == _ids(source)
        assert editor.selected == 1
        assert editor.index_of(source.questions[0].id) == 0
        assert editor.index_of("nope") is None


class TestListLaws:
    @pytest.mark.parametrize("src,dst", [(0, 1), (1, 0), (0, 3), (3, 0), (1, 2), (2, 3)])
    def test_move_round_trip_restores_order(self, src, dst):
        editor = _editor("short_text", "email", "number", "rating")
        before = _ids(editor)
        editor.move(src, dst)
        editor.move(dst, src)
        assert _ids(editor) == before

    @pytest.mark.parametrize("index", [0, 1, 2])
    def test_duplicate_differs_only_in_id_and_title(self, index):
        editor = _editor("multiple_choice", "rating", "welcome_screen")
        editor.update(index, {"title": "Original", "description": "Same"})
        editor.duplicate(index)
        source, copy = editor.questions[index], editor.questions[index + 1]
        assert len(editor) == 4
        assert copy.id != source.id
        assert copy.title == source.title + " (copy)"
        assert copy.model_dump(exclude={"id", "title"}) == source.model_dump(exclude={"id", "title"})

    def test_add_update_remove_scenario(self):
        editor = QuestionListEditor()
        question = editor.add("multiple_choice")
        assert question.options == ["Option 1", "Option 2"]
        assert question.required is False

        updated = editor.update(0, {"title": "Pick one"})
        assert updated.title == "Pick one"
        assert updated.options == ["Option 1", "Option 2"]

        editor.remove(0)
        assert len(editor) == 0
        assert editor.selected is None
