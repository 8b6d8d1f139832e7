"""Window-level flows: save, delete, import/export, clear, list selection."""

from dataclasses import replace

import pytest
from PyQt5.QtCore import Qt

from quest_graph.config import EditorConfig
from quest_graph.models import Requirement
from quest_graph.quest_editor import REQUIRED_FIELDS_MSG, QuestEditorWindow
from quest_graph.quest_form import ID_MAX

from conftest import make_quest


@pytest.fixture
def config(tmp_path):
    return EditorConfig(data_dir=tmp_path)


@pytest.fixture
def window(config, no_dialogs):
    win = QuestEditorWindow(config, load_sample_data=False, autostart=False)
    yield win
    win.close()
    win.deleteLater()


def _fill(win, quest):
    win.form.load_quest(quest)


# ---------------------------------------------------------------------------
# startup
# ---------------------------------------------------------------------------


def test_starts_empty_with_next_id(window):
    assert len(window.store) == 0
    assert window.form.id_spin.value() == 1
    assert window.sync.simulation is None


def test_sample_loaded_on_start(no_dialogs):
    win = QuestEditorWindow(EditorConfig(), autostart=False)
    try:
        assert win.store.ids() == [1, 2, 3, 4, 5]
        assert win.list_widget.count() == 5
        assert len(win.sync.nodes) == 5
        assert len(win.sync.links) == 4
        assert win.form.id_spin.value() == 6
    finally:
        win.close()


def test_missing_sample_starts_empty(config, no_dialogs):
    win = QuestEditorWindow(replace(config, sample_file="nope.json"), autostart=False)
    try:
        assert len(win.store) == 0
        assert no_dialogs == []
    finally:
        win.close()


# ---------------------------------------------------------------------------
# save / validation
# ---------------------------------------------------------------------------


class TestSave:
    def test_save_new_quest(self, window):
        _fill(window, make_quest(1, "Find the sword"))
        assert window.save_quest() is True
        assert window.store.get(1).description == "Find the sword"
        assert window.store.selected_id is None
        assert window.form.id_spin.value() == 2
        assert window.list_widget.count() == 1
        assert len(window.sync.nodes) == 1

    def test_save_with_prerequisite_draws_link(self, window):
        window.store.replace_all([make_quest(1, "Find the sword")])
        _fill(window, make_quest(2, "Use the sword", prerequisites=[1]))
        window.save_quest()
        edges = [(l.source.id, l.target.id) for l in window.sync.links]
        assert edges == [(1, 2)]

    def test_save_over_existing_id_replaces(self, window):
        window.store.replace_all([make_quest(1, "old", prerequisites=[3])])
        _fill(window, make_quest(1, "new"))
        window.save_quest()
        assert len(window.store) == 1
        assert window.store.get(1).prerequisites == []

    def test_missing_description_rejected(self, window, no_dialogs):
        _fill(window, make_quest(1, ""))
        assert window.save_quest() is False
        assert len(window.store) == 0
        assert ("warning", "Save Quest", REQUIRED_FIELDS_MSG) in no_dialogs
        assert window.form.desc_edit.toolTip()

    def test_missing_requirement_rejected(self, window, no_dialogs):
        window.store.replace_all([make_quest(1, "keep me")])
        _fill(window, make_quest(1, "changed", required=[]))
        assert window.save_quest() is False
        assert window.store.get(1).description == "keep me"

    def test_zero_id_rejected(self, window):
        _fill(window, make_quest(1, "desc"))
        window.form.id_spin.setValue(0)
        assert window.save_quest() is False
        assert len(window.store) == 0

    def test_new_quest_after_large_id_does_not_overwrite(self, window):
        window.store.replace_all([make_quest(999999, "Existing")])
        window.new_quest()
        assert window.form.id_spin.value() == 1000000
        window.form.desc_edit.setPlainText("Brand new")
        window.form.req_id_spin.setValue(5)
        window.form.addRequirement()
        assert window.save_quest() is True
        assert window.store.ids() == [999999, 1000000]
        assert window.store.get(999999).description == "Existing"

    def test_next_id_past_spin_limit_is_left_blank(self, window):
        window.store.replace_all([make_quest(ID_MAX, "Last one")])
        window.new_quest()
        assert window.form.id_spin.value() == 0
        window.form.desc_edit.setPlainText("Would collide")
        window.form.addRequirement()
        assert window.save_quest() is False
        assert window.store.get(ID_MAX).description == "Last one"

    def test_description_is_trimmed(self, window):
        _fill(window, make_quest(1, "  spaced out  "))
        window.save_quest()
        assert window.store.get(1).description == "spaced out"


# ---------------------------------------------------------------------------
# form sub-lists
# ---------------------------------------------------------------------------


class TestFormLists:
    def test_add_requirement_and_prerequisite(self, window):
        form = window.form
        form.clear_form(1)
        form.desc_edit.setPlainText("Gather herbs")
        form.req_id_spin.setValue(12)
        form.req_type_combo.setCurrentIndex(1)
        form.req_count_spin.setValue(4)
        form.addRequirement()
        form.prereq_combo.setCurrentText("7")
        form.addPrerequisite()
        form.giver_spin.setValue(101)
        form.addQuestgiver()
        form.addQuestgiver()

        q = form.to_quest()
        assert q.required == [Requirement(12, 1, 4)]
        assert q.prerequisites == [7]
        assert q.questgivers == [101]
        assert form.dirty

    def test_picker_lists_other_quests_with_descriptions(self, window):
        window.store.replace_all([make_quest(1, "Find the sword"), make_quest(2, "Use the sword")])
        window.store.select(1)
        combo = window.form.prereq_combo
        entries = [combo.itemText(i) for i in range(combo.count())]
        assert entries == ["", "ID: 2 - Use the sword"]

        combo.setCurrentIndex(1)
        window.form.addPrerequisite()
        assert window.form.to_quest().prerequisites == [2]

    def test_own_id_rejected_as_prerequisite(self, window):
        window.store.replace_all([make_quest(1)])
        window.store.select(1)
        window.form.prereq_combo.setCurrentText("1")
        window.form.addPrerequisite()
        assert window.form.prereq_list.count() == 0
        assert window.form.prereq_combo.toolTip()

    def test_bad_prerequisite_text_marked(self, window):
        window.form.prereq_combo.setCurrentText("abc")
        window.form.addPrerequisite()
        assert window.form.prereq_list.count() == 0
        assert window.form.prereq_combo.toolTip()


# ---------------------------------------------------------------------------
# delete / clear
# ---------------------------------------------------------------------------


class TestDelete:
    def test_delete_selected(self, window):
        window.store.replace_all([make_quest(1), make_quest(2, prerequisites=[1])])
        window.store.select(1)
        assert window.delete_selected(confirm=False) is True
        assert window.store.ids() == [2]
        assert window.store.get(2).prerequisites == []
        assert window.sync.links == []
        assert window.form.id_spin.value() == 3

    def test_confirm_dialog_asked(self, window, no_dialogs):
        window.store.replace_all([make_quest(1)])
        window.store.select(1)
        window.delete_selected()
        assert no_dialogs[-1][0] == "question"
        assert len(window.store) == 0

    def test_nothing_selected(self, window, no_dialogs):
        window.store.replace_all([make_quest(1)])
        assert window.delete_selected(confirm=False) is False
        assert window.store.ids() == [1]
        assert no_dialogs[-1][0] == "information"

    def test_clear_everything(self, window):
        window.store.replace_all([make_quest(1), make_quest(2)])
        sim = window.sync.simulation
        assert window.clear_everything(confirm=False) is True
        assert len(window.store) == 0
        assert window.sync.simulation is None
        assert sim.disposed
        assert window.list_widget.count() == 0
        assert window.form.id_spin.value() == 1


# ---------------------------------------------------------------------------
# list + selection
# ---------------------------------------------------------------------------


class TestList:
    def test_row_click_loads_form(self, window):
        window.store.replace_all([make_quest(1, "first"), make_quest(2, "second")])
        window.list_widget.item(1).setSelected(True)
        assert window.store.selected_id == 2
        assert window.form.desc_edit.toPlainText() == "second"

    def test_store_selection_highlights_row(self, window):
        window.store.replace_all([make_quest(1), make_quest(2)])
        window.store.select(1)
        rows = window.list_widget.selectedItems()
        assert [r.data(Qt.UserRole) for r in rows] == [1]

    def test_search_filters(self, window):
        window.store.replace_all([make_quest(1, "Find the sword"), make_quest(2, "Gather moonpetals")])
        window.search_box.setText("moon")
        assert window.list_widget.count() == 1
        assert window.list_widget.item(0).text() == "2: Gather moonpetals"

    def test_validate_reports(self, window, no_dialogs):
        window.store.replace_all([make_quest(1, prerequisites=[9])])
        window.onValidate()
        assert no_dialogs[-1][0] == "warning"
        assert "1: requires unknown quest 9" in no_dialogs[-1][2]


# ---------------------------------------------------------------------------
# import / export
# ---------------------------------------------------------------------------


class TestFiles:
    def test_export_then_import(self, window, tmp_path):
        quests = [make_quest(1, "Find the sword"), make_quest(2, "Use it", prerequisites=[1])]
        window.store.replace_all(quests)
        path = tmp_path / "quests.json"
        assert window.export_file(path) is True

        window.clear_everything(confirm=False)
        assert window.import_file(path) is True
        assert window.store.quests == quests
        assert window.filename_edit.text() == "quests.json"
        assert {(l.source.id, l.target.id) for l in window.sync.links} == {(1, 2)}

    def test_invalid_import_changes_nothing(self, window, tmp_path, no_dialogs):
        window.store.replace_all([make_quest(1)])
        window.store.select(1)
        bad = tmp_path / "bad.json"
        bad.write_text("not valid json", encoding="utf-8")

        assert window.import_file(bad) is False
        assert window.store.ids() == [1]
        assert window.store.selected_id == 1
        kind, _, text = no_dialogs[-1]
        assert kind == "critical"
        assert text.startswith("Failed to parse JSON:")

    def test_import_replaces_wholesale(self, window, tmp_path):
        window.store.replace_all([make_quest(9)])
        window.store.select(9)
        p = tmp_path / "other.json"
        p.write_text('[{"id": 3, "description": "Only one"}]', encoding="utf-8")
        assert window.import_file(p) is True
        assert window.store.ids() == [3]
        assert window.store.selected_id is None
        assert len(window.sync.nodes) == 1
