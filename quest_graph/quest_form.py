#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Quest form: every field of one quest, plus the sub-lists (givers,
prerequisites, requirements) with their own add/remove controls.

The form never touches the store. The window reads `to_quest()` on save and
calls `load_quest()` / `clear_form()` when the selection changes.
"""

from __future__ import annotations
from typing import Iterable, List, Optional, Tuple

from PyQt5.QtCore import Qt, pyqtSignal
from PyQt5.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QFormLayout, QLabel, QPushButton, QSpinBox,
    QTextEdit, QPlainTextEdit, QListWidget, QListWidgetItem, QComboBox, QTableWidget,
    QTableWidgetItem, QHeaderView, QAbstractItemView
)

from quest_graph.models import Quest, RequestType, Requirement
from quest_graph.ui_common import clear_invalid, mark_invalid

# QSpinBox is backed by a C int
ID_MAX = 2**31 - 1


def _int_item(value: int) -> QListWidgetItem:
    it = QListWidgetItem(str(value))
    it.setData(Qt.UserRole, int(value))
    return it


class QuestForm(QWidget):
    saveRequested = pyqtSignal()
    newRequested = pyqtSignal()
    deleteRequested = pyqtSignal()
    dirtyChanged = pyqtSignal(bool)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._form_dirty = False
        self._loading = False
        self._choices: List[Tuple[int, str]] = []
        self.initUI()

    # -------------------------
    #  UI
    # -------------------------
    def initUI(self):
        outer = QVBoxLayout()
        form = QFormLayout()

        self.id_spin = QSpinBox(); self.id_spin.setRange(0, ID_MAX)
        form.addRow("ID:", self.id_spin)

        self.desc_edit = QTextEdit()
        self.desc_edit.setPlaceholderText("Quest description…")
        self.desc_edit.setAcceptRichText(False)
        self.desc_edit.setFixedHeight(70)
        form.addRow("Description:", self.desc_edit)

        self.ongoing_edit = QPlainTextEdit(); self.ongoing_edit.setFixedHeight(50)
        self.ongoing_edit.setPlaceholderText("Shown while the quest is in progress")
        form.addRow("Ongoing:", self.ongoing_edit)

        self.finished_edit = QPlainTextEdit(); self.finished_edit.setFixedHeight(50)
        self.finished_edit.setPlaceholderText("Shown when the quest is handed in")
        form.addRow("On Finished:", self.finished_edit)

        # Quest givers (NPC ids)
        self.giver_list = QListWidget(); self.giver_list.setFixedHeight(60)
        self.giver_spin = QSpinBox(); self.giver_spin.setRange(1, ID_MAX)
        giver_add = QPushButton("Add"); giver_del = QPushButton("Remove")
        giver_add.clicked.connect(self.addQuestgiver)
        giver_del.clicked.connect(self.removeQuestgiver)
        form.addRow("Quest Givers:", self._list_block(self.giver_list, self.giver_spin, giver_add, giver_del))

        # Prerequisites (existing quest ids; free-type for not-yet-created ones)
        self.prereq_list = QListWidget(); self.prereq_list.setFixedHeight(60)
        self.prereq_combo = QComboBox(); self.prereq_combo.setEditable(True)
        prereq_add = QPushButton("Add"); prereq_del = QPushButton("Remove")
        prereq_add.clicked.connect(self.addPrerequisite)
        prereq_del.clicked.connect(self.removePrerequisite)
        form.addRow("Prerequisites:", self._list_block(self.prereq_list, self.prereq_combo, prereq_add, prereq_del))

        # Requirements
        self.req_table = QTableWidget(0, 3)
        self.req_table.setHorizontalHeaderLabels(["Subject ID", "Type", "Count"])
        self.req_table.horizontalHeader().setSectionResizeMode(QHeaderView.Stretch)
        self.req_table.setSelectionBehavior(QAbstractItemView.SelectRows)
        self.req_table.setEditTriggers(QAbstractItemView.NoEditTriggers)
        self.req_table.setFixedHeight(110)

        self.req_id_spin = QSpinBox(); self.req_id_spin.setRange(1, ID_MAX)
        self.req_type_combo = QComboBox()
        for t in RequestType:
            self.req_type_combo.addItem(t.name, int(t))
        self.req_count_spin = QSpinBox(); self.req_count_spin.setRange(1, ID_MAX)
        req_add = QPushButton("Add"); req_del = QPushButton("Remove")
        req_add.clicked.connect(self.addRequirement)
        req_del.clicked.connect(self.removeRequirement)

        req_box = QWidget(); rv = QVBoxLayout(req_box); rv.setContentsMargins(0, 0, 0, 0)
        rv.addWidget(self.req_table)
        row = QHBoxLayout()
        row.addWidget(QLabel("ID")); row.addWidget(self.req_id_spin)
        row.addWidget(self.req_type_combo)
        row.addWidget(QLabel("×")); row.addWidget(self.req_count_spin)
        row.addWidget(req_add); row.addWidget(req_del)
        rv.addLayout(row)
        form.addRow("Requirements:", req_box)

        outer.addLayout(form)

        # Save/New/Delete
        row2 = QHBoxLayout()
        save_btn = QPushButton("Save Quest")
        new_btn = QPushButton("New Quest")
        del_btn = QPushButton("Delete Quest")
        save_btn.clicked.connect(lambda: self.saveRequested.emit())
        new_btn.clicked.connect(lambda: self.newRequested.emit())
        del_btn.clicked.connect(lambda: self.deleteRequested.emit())
        row2.addWidget(save_btn); row2.addWidget(new_btn); row2.addWidget(del_btn)
        outer.addLayout(row2)
        outer.addStretch(1)
        self.setLayout(outer)

        # Mark form dirty on edits
        self.id_spin.valueChanged.connect(self._mark_form_dirty)
        self.desc_edit.textChanged.connect(self._mark_form_dirty)
        self.ongoing_edit.textChanged.connect(self._mark_form_dirty)
        self.finished_edit.textChanged.connect(self._mark_form_dirty)

    def _list_block(self, listw: QListWidget, picker: QWidget, add_btn: QPushButton, del_btn: QPushButton) -> QWidget:
        box = QWidget(); v = QVBoxLayout(box); v.setContentsMargins(0, 0, 0, 0)
        v.addWidget(listw)
        row = QHBoxLayout(); row.addWidget(picker, 1); row.addWidget(add_btn); row.addWidget(del_btn)
        v.addLayout(row)
        return box

    # -------------------------
    #  Dirty helpers
    # -------------------------
    @property
    def dirty(self) -> bool:
        return self._form_dirty

    def _mark_form_dirty(self, *args):
        if self._loading:
            return
        if not self._form_dirty:
            self._form_dirty = True
            self.dirtyChanged.emit(True)

    def _set_clean(self):
        was = self._form_dirty
        self._form_dirty = False
        if was:
            self.dirtyChanged.emit(False)

    # -------------------------
    #  Sub-list editing
    # -------------------------
    @staticmethod
    def _list_values(listw: QListWidget) -> List[int]:
        return [listw.item(i).data(Qt.UserRole) for i in range(listw.count())]

    def addQuestgiver(self):
        gid = self.giver_spin.value()
        if gid and gid not in self._list_values(self.giver_list):
            self.giver_list.addItem(_int_item(gid))
            self._mark_form_dirty()

    def removeQuestgiver(self):
        for it in self.giver_list.selectedItems():
            self.giver_list.takeItem(self.giver_list.row(it))
            self._mark_form_dirty()

    def _picked_prerequisite(self) -> Optional[int]:
        text = self.prereq_combo.currentText().strip()
        idx = self.prereq_combo.currentIndex()
        if idx >= 0 and text == self.prereq_combo.itemText(idx):
            data = self.prereq_combo.itemData(idx)
            if data is not None:
                return data
        try:
            return int(text)
        except ValueError:
            return None

    def addPrerequisite(self):
        pid = self._picked_prerequisite()
        if pid is None:
            mark_invalid(self.prereq_combo, "Prerequisite must be a quest ID")
            return
        if pid == self.id_spin.value():
            mark_invalid(self.prereq_combo, "A quest can't require itself")
            return
        clear_invalid(self.prereq_combo)
        if pid > 0 and pid not in self._list_values(self.prereq_list):
            self.prereq_list.addItem(_int_item(pid))
            self.prereq_combo.setCurrentText("")
            self._mark_form_dirty()

    def removePrerequisite(self):
        for it in self.prereq_list.selectedItems():
            self.prereq_list.takeItem(self.prereq_list.row(it))
            self._mark_form_dirty()

    def addRequirement(self):
        req = Requirement(
            id=self.req_id_spin.value(),
            type=RequestType.coerce(self.req_type_combo.currentData()),
            count=self.req_count_spin.value(),
        )
        if req.id and req.count > 0:
            self._append_requirement_row(req)
            self.req_count_spin.setValue(1)
            clear_invalid(self.req_table)
            self._mark_form_dirty()

    def removeRequirement(self):
        rows = sorted({i.row() for i in self.req_table.selectedIndexes()}, reverse=True)
        for r in rows:
            self.req_table.removeRow(r)
            self._mark_form_dirty()

    def _append_requirement_row(self, req: Requirement):
        r = self.req_table.rowCount()
        self.req_table.insertRow(r)
        id_item = QTableWidgetItem(str(req.id))
        id_item.setData(Qt.UserRole, req)
        self.req_table.setItem(r, 0, id_item)
        self.req_table.setItem(r, 1, QTableWidgetItem(req.type_name))
        self.req_table.setItem(r, 2, QTableWidgetItem(str(req.count)))

    def requirements(self) -> List[Requirement]:
        out = []
        for r in range(self.req_table.rowCount()):
            req = self.req_table.item(r, 0).data(Qt.UserRole)
            out.append(Requirement(req.id, req.type, req.count))
        return out

    # -------------------------
    #  Load / read
    # -------------------------
    def set_prerequisite_choices(self, quests: Iterable[Quest]):
        """Picker entries, one per stored quest with an integer id."""
        self._choices = sorted(
            (q.id, q.description or "") for q in quests
            if isinstance(q.id, int) and not isinstance(q.id, bool)
        )
        self._refill_prereq_combo()

    def _refill_prereq_combo(self):
        # the quest being edited is never offered as its own prerequisite
        own = self.id_spin.value()
        cur = self.prereq_combo.currentText()
        self.prereq_combo.clear()
        self.prereq_combo.addItem("", None)
        for qid, desc in self._choices:
            if qid != own:
                self.prereq_combo.addItem(f"ID: {qid} - {desc}", qid)
        self.prereq_combo.setCurrentText(cur)

    def clear_form(self, next_id: int):
        self._loading = True
        try:
            # past the spin box limit: leave the id blank rather than reuse one
            self.id_spin.setValue(next_id if 0 < next_id <= ID_MAX else 0)
            self.desc_edit.setPlainText("")
            self.ongoing_edit.setPlainText("")
            self.finished_edit.setPlainText("")
            self.giver_list.clear()
            self.prereq_list.clear()
            self.req_table.setRowCount(0)
            self.prereq_combo.setCurrentText("")
            self._refill_prereq_combo()
            self.clear_marks()
        finally:
            self._loading = False
        self._set_clean()

    def load_quest(self, q: Quest):
        self._loading = True
        try:
            self.id_spin.setValue(q.id if isinstance(q.id, int) and 0 <= q.id <= ID_MAX else 0)
            self.desc_edit.setPlainText(q.description or "")
            self.ongoing_edit.setPlainText(q.ongoing or "")
            self.finished_edit.setPlainText(q.onfinished or "")
            self.giver_list.clear()
            for g in q.questgivers or []:
                self.giver_list.addItem(_int_item(g))
            self.prereq_list.clear()
            for p in q.prerequisites or []:
                self.prereq_list.addItem(_int_item(p))
            self.req_table.setRowCount(0)
            for r in q.required or []:
                self._append_requirement_row(r)
            self._refill_prereq_combo()
            self.clear_marks()
        finally:
            self._loading = False
        self._set_clean()

    def to_quest(self) -> Quest:
        qid = self.id_spin.value()
        return Quest(
            id=qid if qid > 0 else None,
            description=self.desc_edit.toPlainText().strip(),
            ongoing=self.ongoing_edit.toPlainText(),
            onfinished=self.finished_edit.toPlainText(),
            questgivers=self._list_values(self.giver_list),
            prerequisites=self._list_values(self.prereq_list),
            required=self.requirements(),
        )

    def mark_saved(self):
        self._set_clean()

    # -------------------------
    #  Inline validation
    # -------------------------
    def clear_marks(self):
        for w in (self.id_spin, self.desc_edit, self.req_table):
            clear_invalid(w)

    def show_issues(self, issues: List[str]):
        self.clear_marks()
        for msg in issues:
            low = msg.lower()
            if "id" in low.split():
                mark_invalid(self.id_spin, msg)
            elif "description" in low:
                mark_invalid(self.desc_edit, msg)
            elif "requirement" in low:
                mark_invalid(self.req_table, msg)

    def current_id(self) -> Optional[int]:
        v = self.id_spin.value()
        return v or None
