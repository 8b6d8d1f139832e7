"""Tests for canvas hit-testing, click vs drag, and arrow geometry."""

import pytest
from PyQt5.QtCore import QEvent, QPointF, Qt
from PyQt5.QtGui import QMouseEvent

from quest_graph.graph_canvas import GraphCanvas, arrow_head
from quest_graph.graph_sync import GraphSynchronizer
from quest_graph.quest_store import QuestStore

from conftest import make_quest


def _mouse(kind, x, y, button=Qt.LeftButton):
    buttons = Qt.NoButton if kind == QEvent.MouseButtonRelease else Qt.LeftButton
    if kind == QEvent.MouseMove:
        button = Qt.NoButton
    return QMouseEvent(kind, QPointF(x, y), button, buttons, Qt.NoModifier)


@pytest.fixture
def canvas():
    store = QuestStore()
    sync = GraphSynchronizer(store, width=400, height=300, seed=5, autostart=False)
    store.replace_all([make_quest(1), make_quest(2, prerequisites=[1])])
    # fixed spots so hits are unambiguous
    sync.node(1).x, sync.node(1).y = 50.0, 50.0
    sync.node(2).x, sync.node(2).y = 200.0, 200.0
    c = GraphCanvas(sync, store)
    yield c
    sync.teardown()
    c.deleteLater()


def _click(c, x, y):
    c.mousePressEvent(_mouse(QEvent.MouseButtonPress, x, y))
    c.mouseReleaseEvent(_mouse(QEvent.MouseButtonRelease, x, y))


class TestClicks:
    def test_node_click_selects(self, canvas):
        clicked = []
        canvas.node_clicked.connect(clicked.append)
        _click(canvas, 52, 49)
        assert canvas.store.selected_id == 1
        assert clicked == [1]
        assert not canvas.sync.node(1).pinned

    def test_background_click_deselects(self, canvas):
        canvas.store.select(2)
        bg = []
        canvas.background_clicked.connect(lambda: bg.append(True))
        _click(canvas, 120, 20)
        assert canvas.store.selected_id is None
        assert bg == [True]

    def test_node_click_is_not_a_background_click(self, canvas):
        bg = []
        canvas.background_clicked.connect(lambda: bg.append(True))
        _click(canvas, 200, 200)
        assert canvas.store.selected_id == 2
        assert bg == []

    def test_right_button_ignored(self, canvas):
        canvas.mousePressEvent(_mouse(QEvent.MouseButtonPress, 50, 50, Qt.RightButton))
        assert not canvas.sync.is_dragging(1)


class TestDragging:
    def test_drag_pins_then_releases(self, canvas):
        sync = canvas.sync
        canvas.mousePressEvent(_mouse(QEvent.MouseButtonPress, 50, 50))
        assert sync.is_dragging(1)
        assert sync.simulation.alpha_target == 0.3

        canvas.mouseMoveEvent(_mouse(QEvent.MouseMove, 120, 90))
        assert (sync.node(1).fx, sync.node(1).fy) == (120.0, 90.0)

        canvas.mouseReleaseEvent(_mouse(QEvent.MouseButtonRelease, 120, 90))
        assert not sync.node(1).pinned
        assert sync.simulation.alpha_target == 0
        # a drag is not a click
        assert canvas.store.selected_id is None

    def test_tiny_jitter_still_counts_as_click(self, canvas):
        canvas.mousePressEvent(_mouse(QEvent.MouseButtonPress, 50, 50))
        canvas.mouseMoveEvent(_mouse(QEvent.MouseMove, 51, 50))
        canvas.mouseReleaseEvent(_mouse(QEvent.MouseButtonRelease, 51, 50))
        assert canvas.store.selected_id == 1


class TestPainting:
    def test_grab_renders(self, canvas):
        canvas.resize(400, 300)
        pix = canvas.grab()
        assert not pix.isNull()

    def test_resize_rebuilds_layout(self, canvas):
        sim = canvas.sync.simulation
        canvas.sync.resize(640, 480)
        assert canvas.sync.simulation is not sim


class TestArrowHead:
    def test_points_at_target_edge(self):
        path = arrow_head(0, 0, 100, 0, radius=10)
        box = path.boundingRect()
        assert box.right() == pytest.approx(88)
        assert box.left() == pytest.approx(78)
        assert box.height() == pytest.approx(10)

    def test_overlapping_nodes_have_no_arrow(self):
        assert arrow_head(0, 0, 15, 0, radius=10) is None
