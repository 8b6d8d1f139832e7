#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations
import math
from typing import Optional

from PyQt5.QtCore import Qt, QPointF, pyqtSignal
from PyQt5.QtGui import QBrush, QColor, QFont, QPainter, QPainterPath, QPen
from PyQt5.QtWidgets import QApplication, QSizePolicy, QWidget

from quest_graph import palette
from quest_graph.graph_sync import GraphSynchronizer
from quest_graph.quest_store import QuestStore

# ---------- Visual tuning ----------
NODE_RADIUS = 10
LINK_WIDTH = 2
ARROW_LEN = 10
ARROW_HALF_W = 5
ARROW_GAP = 2          # space between arrow tip and the node circle
ID_OFFSET = -15        # "ID: n" baseline above the node
LABEL_OFFSET = 25      # description baseline below the node
FONT_PX = 10


class GraphCanvas(QWidget):
    """
    Draws the synchronizer's current nodes/links and turns mouse input into
    selection (click) or pinning (drag). Never stores its own copy of the graph.
    """
    node_clicked = pyqtSignal(object)
    background_clicked = pyqtSignal()

    def __init__(self, sync: GraphSynchronizer, store: QuestStore, parent=None):
        super().__init__(parent)
        self.sync = sync
        self.store = store
        self.setMouseTracking(True)
        self.setMinimumSize(300, 200)
        self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)

        self._font = QFont()
        self._font.setPixelSize(FONT_PX)

        # Interaction
        self._press_node_id = None
        self._press_pos = QPointF(0, 0)
        self._press_background = False
        self._moved = False

        sync.ticked.connect(self.update)
        sync.rebuilt.connect(self.update)
        sync.restyled.connect(self.update)

    # -------------------------
    #  Painting
    # -------------------------
    def paintEvent(self, event):
        p = QPainter(self)
        p.setRenderHint(QPainter.Antialiasing)
        p.fillRect(self.rect(), self.palette().window().color())

        dark = self.sync.dark_mode
        self._paint_links(p, dark)
        self._paint_nodes(p)

    def _paint_links(self, p: QPainter, dark: bool):
        color = palette.link_color(dark)
        for link in self.sync.links:
            s, t = link.source, link.target
            p.setPen(QPen(color, LINK_WIDTH))
            p.drawLine(QPointF(s.x, s.y), QPointF(t.x, t.y))
            head = arrow_head(s.x, s.y, t.x, t.y)
            if head is not None:
                p.setPen(Qt.NoPen)
                p.setBrush(QBrush(color))
                p.drawPath(head)
        p.setBrush(Qt.NoBrush)

    def _paint_nodes(self, p: QPainter):
        text_pen = QPen(QColor(self.sync.text_color()))
        p.setFont(self._font)
        fm = p.fontMetrics()
        for n in self.sync.nodes:
            p.setPen(Qt.NoPen)
            p.setBrush(QBrush(QColor(self.sync.fill_for(n.id))))
            p.drawEllipse(QPointF(n.x, n.y), NODE_RADIUS, NODE_RADIUS)

            p.setPen(text_pen)
            for text, dy in ((f"ID: {n.id}", ID_OFFSET), (n.label, LABEL_OFFSET)):
                w = fm.horizontalAdvance(text)
                p.drawText(QPointF(n.x - w / 2, n.y + dy), text)

    # -------------------------
    #  Geometry
    # -------------------------
    def resizeEvent(self, event):
        super().resizeEvent(event)
        self.sync.resize(self.width(), self.height())

    def _hit(self, pos: QPointF):
        return self.sync.node_at(pos.x(), pos.y(), NODE_RADIUS)

    # -------------------------
    #  Mouse
    # -------------------------
    def mousePressEvent(self, ev):
        if ev.button() != Qt.LeftButton:
            return super().mousePressEvent(ev)
        pos = QPointF(ev.pos())
        node = self._hit(pos)
        self._moved = False
        self._press_pos = pos
        if node is not None:
            self._press_node_id = node.id
            self._press_background = False
            self.sync.drag_start(node.id)
            self.setCursor(Qt.ClosedHandCursor)
        else:
            self._press_node_id = None
            self._press_background = True

    def mouseMoveEvent(self, ev):
        pos = QPointF(ev.pos())
        if self._press_node_id is not None:
            if not self._moved:
                d = pos - self._press_pos
                self._moved = math.hypot(d.x(), d.y()) >= QApplication.startDragDistance()
            if self._moved:
                self.sync.drag_move(self._press_node_id, pos.x(), pos.y())
                self.update()
            return
        self.setCursor(Qt.OpenHandCursor if self._hit(pos) is not None else Qt.ArrowCursor)

    def mouseReleaseEvent(self, ev):
        if ev.button() != Qt.LeftButton:
            return super().mouseReleaseEvent(ev)
        node_id, was_bg = self._press_node_id, self._press_background
        self._press_node_id = None
        self._press_background = False
        self.setCursor(Qt.ArrowCursor)

        if node_id is not None:
            self.sync.drag_end(node_id)
            if not self._moved:
                # Node click selects; it must not fall through to a background deselect
                self.store.select(node_id)
                self.node_clicked.emit(node_id)
        elif was_bg:
            self.store.select(None)
            self.background_clicked.emit()


def arrow_head(sx: float, sy: float, tx: float, ty: float,
               radius: float = NODE_RADIUS) -> Optional[QPainterPath]:
    """Triangle pointing at (tx, ty), tip resting just outside the target circle."""
    dx, dy = tx - sx, ty - sy
    dist = math.hypot(dx, dy)
    if dist <= radius + ARROW_GAP + ARROW_LEN:
        return None
    ux, uy = dx / dist, dy / dist
    tip = QPointF(tx - ux * (radius + ARROW_GAP), ty - uy * (radius + ARROW_GAP))
    base = QPointF(tip.x() - ux * ARROW_LEN, tip.y() - uy * ARROW_LEN)
    px, py = -uy * ARROW_HALF_W, ux * ARROW_HALF_W
    path = QPainterPath(tip)
    path.lineTo(base.x() + px, base.y() + py)
    path.lineTo(base.x() - px, base.y() - py)
    path.closeSubpath()
    return path
