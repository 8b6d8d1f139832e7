#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Quest Graph Editor (list + form + live dependency graph)

What this gives you:
- Quest list with search; clicking a row, or a node in the graph, selects it.
- Form for every quest field. Save validates (ID, description, at least one
  requirement) and upserts by ID: saving over an existing ID replaces it.
- Delete also strips the quest from every other quest's prerequisites.
- Force-directed dependency graph (prerequisite -> dependent). Drag nodes to
  pin them while dragging; layouts survive edits that keep the quest count.
- Import / Export quests.json, Clear All, dark/light toggle (remembered).

Usage:
    pip install -e .
    quest-graph-editor [optional quests.json]
"""

from __future__ import annotations
import logging, sys
from pathlib import Path
from typing import List, Optional

from PyQt5.QtCore import Qt
from PyQt5.QtWidgets import (
    QApplication, QMainWindow, QWidget, QSplitter, QListWidget, QListWidgetItem, QLineEdit,
    QVBoxLayout, QHBoxLayout, QLabel, QPushButton, QMessageBox, QFileDialog, QCheckBox
)

from quest_graph import palette
from quest_graph.config import EditorConfig, resolve_config
from quest_graph.data_core import load_quests, load_sample, save_quests
from quest_graph.errors import QuestFileError, QuestValidationError
from quest_graph.graph_canvas import GraphCanvas
from quest_graph.graph_sync import GraphSynchronizer
from quest_graph.logging_config import setup_logging
from quest_graph.quest_form import QuestForm
from quest_graph.quest_store import CLEAR, DELETE, REPLACE, SELECT, UPSERT, QuestStore
from quest_graph.ui_common import attach_hotkeys, attach_status_bar, flash_status

log = logging.getLogger(__name__)

REQUIRED_FIELDS_MSG = "Please fill in required fields: ID, Description, and at least one Requirement"


class QuestEditorWindow(QMainWindow):
    def __init__(self, config: Optional[EditorConfig] = None, *, store: Optional[QuestStore] = None,
                 dark: bool = False, load_sample_data: bool = True, autostart: bool = True):
        super().__init__()
        self._base_title = "Quest Graph Editor"
        self.setWindowTitle(self._base_title)
        self.config = config or resolve_config()

        # Data
        self.store = store if store is not None else QuestStore()
        self.sync = GraphSynchronizer(
            self.store, height=self.config.canvas_height, dark=dark,
            tick_ms=self.config.tick_ms, autostart=autostart, parent=self,
        )
        self._syncing_list = False

        self.initUI()
        attach_status_bar(self)
        attach_hotkeys(self)

        self.store.subscribe(self._on_store_changed)
        if load_sample_data:
            self.load_initial(self.config.sample_path)
        self.refreshList()
        self.new_quest()

    # -------------------------
    #  UI
    # -------------------------
    def initUI(self):
        root_split = QSplitter(Qt.Horizontal)

        # Left: search + list
        left_panel = QWidget()
        left_layout = QVBoxLayout(left_panel)
        self.search_box = QLineEdit()
        self.search_box.setPlaceholderText("Search by ID or description…")
        self.search_box.textChanged.connect(self.refreshList)
        left_layout.addWidget(self.search_box)
        self.list_widget = QListWidget()
        self.list_widget.itemSelectionChanged.connect(self._on_list_selection_changed)
        left_layout.addWidget(self.list_widget, 1)
        root_split.addWidget(left_panel)

        # Middle: form
        self.form = QuestForm()
        self.form.saveRequested.connect(self.save_quest)
        self.form.newRequested.connect(self.new_quest)
        self.form.deleteRequested.connect(self.delete_selected)
        self.form.dirtyChanged.connect(self._update_title_dirty)
        root_split.addWidget(self.form)

        # Right: file row + graph
        right_panel = QWidget()
        right_layout = QVBoxLayout(right_panel)

        file_row = QHBoxLayout()
        self.filename_edit = QLineEdit(self.config.export_filename)
        export_btn = QPushButton("Export")
        import_btn = QPushButton("Import")
        clear_btn = QPushButton("Clear All")
        validate_btn = QPushButton("Validate")
        self.dark_check = QCheckBox("Dark mode")
        self.dark_check.setChecked(self.sync.dark_mode)
        export_btn.clicked.connect(self.export_quests)
        import_btn.clicked.connect(self.import_quests)
        clear_btn.clicked.connect(self.clear_everything)
        validate_btn.clicked.connect(self.onValidate)
        self.dark_check.toggled.connect(self.set_dark_mode)
        file_row.addWidget(QLabel("File:"))
        file_row.addWidget(self.filename_edit, 1)
        for w in (export_btn, import_btn, clear_btn, validate_btn, self.dark_check):
            file_row.addWidget(w)
        right_layout.addLayout(file_row)

        right_layout.addWidget(QLabel("Quest Dependency Graph"))
        self.canvas = GraphCanvas(self.sync, self.store)
        self.canvas.setMinimumHeight(self.config.canvas_height)
        right_layout.addWidget(self.canvas, 1)
        root_split.addWidget(right_panel)

        root_split.setStretchFactor(0, 1)
        root_split.setStretchFactor(1, 2)
        root_split.setStretchFactor(2, 3)
        self.setCentralWidget(root_split)

    def _update_title_dirty(self, *args):
        star = "*" if self.form.dirty else ""
        self.setWindowTitle(f"{self._base_title}{star}")

    # -------------------------
    #  List + selection
    # -------------------------
    def refreshList(self):
        """Refresh left list based on search filter; keep selection if possible."""
        sel = self.store.selected_id
        self._syncing_list = True
        try:
            self.list_widget.clear()
            needle = (self.search_box.text() or "").strip().lower()
            for q in self.store.quests:
                text = f"{q.id}: {q.label}"
                if needle and needle not in text.lower():
                    continue
                item = QListWidgetItem(text)
                item.setData(Qt.UserRole, q.id)
                self.list_widget.addItem(item)
                if q.id == sel:
                    item.setSelected(True)
        finally:
            self._syncing_list = False
        self.form.set_prerequisite_choices(self.store.quests)

    def _on_list_selection_changed(self):
        if self._syncing_list:
            return
        items = self.list_widget.selectedItems()
        self.store.select(items[0].data(Qt.UserRole) if items else None)

    def _on_store_changed(self, kind: str):
        if kind == SELECT:
            self._load_selection()
            self._select_list_row(self.store.selected_id)
            return
        if kind in (UPSERT, DELETE, REPLACE, CLEAR):
            self.refreshList()
        if kind in (DELETE, REPLACE, CLEAR) and self.store.selected_id is None:
            self.form.clear_form(self.store.next_id())

    def _load_selection(self):
        q = self.store.selected_quest()
        if q is not None:
            self.form.load_quest(q)
        else:
            self.form.clear_form(self.store.next_id())

    def _select_list_row(self, quest_id):
        self._syncing_list = True
        try:
            self.list_widget.clearSelection()
            for i in range(self.list_widget.count()):
                it = self.list_widget.item(i)
                if it.data(Qt.UserRole) == quest_id:
                    it.setSelected(True)
                    self.list_widget.scrollToItem(it)
                    break
        finally:
            self._syncing_list = False

    # -------------------------
    #  Actions
    # -------------------------
    def new_quest(self):
        # The SELECT notification clears the form with the next free id
        self.store.select(None)

    def save_quest(self) -> bool:
        quest = self.form.to_quest()
        try:
            added = self.store.upsert(quest)
        except QuestValidationError as e:
            self.form.show_issues(e.issues)
            QMessageBox.warning(self, "Save Quest", REQUIRED_FIELDS_MSG)
            return False
        self.form.mark_saved()
        flash_status(self, f"{'Added' if added else 'Updated'} quest {quest.id}")
        self.store.select(None)
        return True

    def delete_selected(self, *, confirm: bool = True) -> bool:
        qid = self.store.selected_id
        if qid is None:
            fid = self.form.current_id()
            qid = fid if fid in self.store else None
        if qid is None:
            QMessageBox.information(self, "Delete Quest", "Select a quest to delete.")
            return False
        if confirm and QMessageBox.question(self, "Delete Quest", f"Delete quest {qid}?") != QMessageBox.Yes:
            return False
        self.store.delete(qid)
        flash_status(self, f"Deleted quest {qid}")
        return True

    def clear_everything(self, *, confirm: bool = True) -> bool:
        if confirm and QMessageBox.question(
            self, "Clear All",
            "Are you sure you want to clear all quests? This cannot be undone."
        ) != QMessageBox.Yes:
            return False
        self.store.clear()
        self.sync.teardown()
        self.canvas.update()
        return True

    def set_dark_mode(self, dark: bool):
        palette.save_dark_mode(dark)
        app = QApplication.instance()
        if app is not None:
            palette.apply_theme(app, dark)
        self.sync.set_dark_mode(dark)

    def onValidate(self):
        issues = self.store.find_issues()
        if issues:
            QMessageBox.warning(self, "Validation", "\n".join(issues[:200]))
        else:
            QMessageBox.information(self, "Validation", "Looks good!")

    # -------------------------
    #  IO
    # -------------------------
    def load_initial(self, path: Path):
        quests = load_sample(path)
        if quests is None:
            return
        self.store.replace_all(quests)
        self.filename_edit.setText(Path(path).name)

    def import_file(self, path: Path) -> bool:
        try:
            quests = load_quests(path)
        except QuestFileError as e:
            log.warning("Import of %s failed: %s", path, e)
            QMessageBox.critical(self, "Import", f"Failed to parse JSON: {e}")
            return False
        self.filename_edit.setText(Path(path).name)
        self.store.replace_all(quests)
        flash_status(self, f"Loaded {len(quests)} quests")
        return True

    def import_quests(self):
        path, _ = QFileDialog.getOpenFileName(self, "Import Quests", str(self.config.data_dir), "JSON Files (*.json)")
        if path:
            self.import_file(Path(path))

    def export_file(self, path: Path) -> bool:
        try:
            save_quests(path, self.store.quests)
        except QuestFileError as e:
            QMessageBox.critical(self, "Export", str(e))
            return False
        flash_status(self, f"Exported {len(self.store)} quests to {Path(path).name}")
        return True

    def export_quests(self):
        name = self.filename_edit.text().strip() or self.config.export_filename
        path, _ = QFileDialog.getSaveFileName(self, "Export Quests", name, "JSON Files (*.json)")
        if path:
            self.export_file(Path(path))

    def closeEvent(self, event):
        self.sync.teardown()
        super().closeEvent(event)


# -----------------------------
#  Entrypoint
# -----------------------------
def main(argv: Optional[List[str]] = None) -> int:
    argv = list(sys.argv if argv is None else argv)
    config = resolve_config()
    setup_logging(config.log_level)

    app = QApplication(argv)
    app.setApplicationName("Quest Graph Editor")
    dark = palette.load_dark_mode(app=app)
    palette.apply_theme(app, dark)

    win = QuestEditorWindow(config, dark=dark, load_sample_data=len(argv) < 2)
    if len(argv) >= 2:
        win.import_file(Path(argv[1]))
    win.resize(1400, 800)
    win.show()
    return app.exec_()


if __name__ == "__main__":
    sys.exit(main())
