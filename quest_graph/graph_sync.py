#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Keeps the force-directed graph in step with the QuestStore.

Every store change (and every theme / size change) ends up in `sync()`, which
picks one of two paths:

- rebuild: no simulation yet, a forced call, or the quest count no longer
  matches the node count. Nodes and links are derived again, the previous
  simulation is disposed (timer stopped, listeners detached) and only then is
  a new one created.
- refresh: same count, nothing forced. Only colors (and node labels) are
  updated; positions, velocities, pins and the link set are left alone, so a
  layout the user dragged into shape survives edits and selection changes.

Dragging is tracked per node: start pins the node where it is and warms the
simulation up if no other node is being dragged, move re-pins it under the
pointer, end releases the pin and lets the simulation cool down again.
"""

from __future__ import annotations
import logging
from typing import Dict, Iterable, List, Optional, Tuple

from PyQt5.QtCore import QObject, pyqtSignal

from quest_graph import palette
from quest_graph.models import Quest, truncate_label
from quest_graph.quest_store import CLEAR, REPLACE, QuestStore
from quest_graph.simulation import DEFAULT_TICK_MS, ForceSimulation, SimLink, SimNode, build_default_simulation

log = logging.getLogger(__name__)

REBUILD = "rebuild"
REFRESH = "refresh"

DRAG_ALPHA_TARGET = 0.3
DEFAULT_WIDTH = 300
DEFAULT_HEIGHT = 500


def build_view(quests: Iterable[Quest]) -> Tuple[List[SimNode], List[Tuple[int, int]]]:
    """Nodes (id + short label) and prerequisite -> dependent link pairs."""
    nodes: List[SimNode] = []
    links: List[Tuple[int, int]] = []
    for q in quests:
        nodes.append(SimNode(id=q.id, label=truncate_label(q.description)))
        for pid in q.prerequisites or []:
            links.append((pid, q.id))
    return nodes, links


class NodeDrag:
    """idle -> dragging -> idle for one node."""
    IDLE = "idle"
    DRAGGING = "dragging"

    def __init__(self, node_id):
        self.node_id = node_id
        self.state = self.IDLE

    @property
    def active(self) -> bool:
        return self.state == self.DRAGGING


class GraphSynchronizer(QObject):
    rebuilt = pyqtSignal()
    restyled = pyqtSignal()
    ticked = pyqtSignal()

    def __init__(self, store: QuestStore, *, width: float = DEFAULT_WIDTH, height: float = DEFAULT_HEIGHT,
                 dark: bool = False, tick_ms: int = DEFAULT_TICK_MS, seed: Optional[int] = None,
                 autostart: bool = True, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.store = store
        self.width = float(width or DEFAULT_WIDTH)
        self.height = float(height or DEFAULT_HEIGHT)
        self._dark = bool(dark)
        self.tick_ms = tick_ms
        self.seed = seed
        self.autostart = autostart

        self._simulation: Optional[ForceSimulation] = None
        self._drags: Dict[object, NodeDrag] = {}
        self.generation = 0

        store.subscribe(self._on_store_changed)

    # -------------------------
    #  Read access for the canvas
    # -------------------------
    @property
    def simulation(self) -> Optional[ForceSimulation]:
        return self._simulation

    @property
    def nodes(self) -> List[SimNode]:
        return self._simulation.nodes if self._simulation else []

    @property
    def links(self) -> List[SimLink]:
        return self._simulation.links if self._simulation else []

    @property
    def dark_mode(self) -> bool:
        return self._dark

    @property
    def viewport(self) -> Tuple[float, float]:
        return self.width, self.height

    def node(self, node_id) -> Optional[SimNode]:
        return self._simulation.node(node_id) if self._simulation else None

    def node_at(self, x: float, y: float, radius: float) -> Optional[SimNode]:
        return self._simulation.find(x, y, radius) if self._simulation else None

    def fill_for(self, node_id) -> str:
        return palette.node_fill(node_id, self.store.selected_id, self._dark)

    def text_color(self) -> str:
        return palette.text_color(self._dark)

    # -------------------------
    #  Triggers
    # -------------------------
    def _on_store_changed(self, kind: str):
        self.sync(force=kind in (REPLACE, CLEAR))

    def set_dark_mode(self, dark: bool):
        dark = bool(dark)
        if dark == self._dark:
            return
        self._dark = dark
        self.sync(force=True)

    def resize(self, width: float, height: float):
        width = float(width or DEFAULT_WIDTH)
        height = float(height or DEFAULT_HEIGHT)
        if (width, height) == (self.width, self.height) and self._simulation is not None:
            return
        self.width, self.height = width, height
        self.sync(force=True)

    # -------------------------
    #  Decision
    # -------------------------
    def needs_rebuild(self, force: bool = False) -> bool:
        return self._simulation is None or force or len(self.store) != len(self._simulation.nodes)

    def sync(self, force: bool = False) -> str:
        if self.needs_rebuild(force):
            self.rebuild()
            return REBUILD
        self.refresh()
        return REFRESH

    def refresh(self):
        if self._simulation is not None:
            labels = {q.id: truncate_label(q.description) for q in self.store.quests}
            for n in self._simulation.nodes:
                if n.id in labels:
                    n.label = labels[n.id]
        self.restyled.emit()

    def rebuild(self):
        self._teardown_simulation()
        self._drags.clear()
        self.generation += 1

        nodes, links = build_view(self.store.quests)
        if nodes:
            sim = build_default_simulation(
                nodes, links, self.width, self.height,
                tick_ms=self.tick_ms, seed=self.seed, autostart=False, parent=self,
            )
            sim.ticked.connect(self.ticked)
            self._simulation = sim
            if self.autostart:
                sim.restart()
            log.debug("Graph generation %d: %d nodes, %d links", self.generation, len(nodes), len(sim.links))
        else:
            log.debug("Graph generation %d: empty", self.generation)
        self.rebuilt.emit()

    def teardown(self):
        self._teardown_simulation()
        self._drags.clear()

    def _teardown_simulation(self):
        sim, self._simulation = self._simulation, None
        if sim is None:
            return
        sim.dispose()
        sim.deleteLater()

    # -------------------------
    #  Drag protocol
    # -------------------------
    def _other_drags_active(self, node_id) -> bool:
        return any(d.active for nid, d in self._drags.items() if nid != node_id)

    def is_dragging(self, node_id) -> bool:
        d = self._drags.get(node_id)
        return bool(d and d.active)

    def drag_start(self, node_id) -> bool:
        sim = self._simulation
        node = sim.node(node_id) if sim else None
        if node is None:
            return False
        drag = self._drags.setdefault(node_id, NodeDrag(node_id))
        if drag.active:
            return True
        if not self._other_drags_active(node_id):
            sim.set_alpha_target(DRAG_ALPHA_TARGET).restart()
        node.pin(node.x, node.y)
        drag.state = NodeDrag.DRAGGING
        return True

    def drag_move(self, node_id, x: float, y: float) -> bool:
        if not self.is_dragging(node_id):
            return False
        node = self.node(node_id)
        if node is None:
            return False
        node.pin(x, y)
        return True

    def drag_end(self, node_id) -> bool:
        if not self.is_dragging(node_id):
            return False
        self._drags[node_id].state = NodeDrag.IDLE
        if self._simulation is not None and not self._other_drags_active(node_id):
            self._simulation.set_alpha_target(0)
        node = self.node(node_id)
        if node is not None:
            node.unpin()
        return True
