"""Test environment setup: headless Qt and repo root on sys.path."""

import os
import sys
from pathlib import Path

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

repo_root = str(Path(__file__).resolve().parent.parent)
if repo_root not in sys.path:
    sys.path.insert(0, repo_root)

import pytest
from PyQt5.QtWidgets import QApplication, QMessageBox

from quest_graph.models import Quest, Requirement


@pytest.fixture(scope="session", autouse=True)
def qapp():
    app = QApplication.instance() or QApplication([])
    yield app


@pytest.fixture
def no_dialogs(monkeypatch):
    """Record message boxes instead of blocking on them."""
    shown = []

    def _box(kind, answer):
        def _show(parent, title, text, *args, **kwargs):
            shown.append((kind, title, text))
            return answer
        return staticmethod(_show)

    monkeypatch.setattr(QMessageBox, "warning", _box("warning", QMessageBox.Ok))
    monkeypatch.setattr(QMessageBox, "critical", _box("critical", QMessageBox.Ok))
    monkeypatch.setattr(QMessageBox, "information", _box("information", QMessageBox.Ok))
    monkeypatch.setattr(QMessageBox, "question", _box("question", QMessageBox.Yes))
    return shown


def make_quest(qid, description="A quest", prerequisites=(), required=None, **kwargs):
    if required is None:
        required = [Requirement(id=5, type=0, count=1)]
    return Quest(id=qid, description=description, prerequisites=list(prerequisites),
                 required=list(required), **kwargs)


@pytest.fixture
def quest_factory():
    return make_quest
