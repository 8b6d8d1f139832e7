#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Force-directed layout solver (velocity Verlet, same model as d3-force).

A ForceSimulation owns its nodes, its links and a QTimer that steps it. Each
step cools `alpha` toward `alpha_target`, applies every registered force, then
integrates velocities into positions. Nodes with `fx`/`fy` set are pinned:
their position is forced to the pin and their velocity zeroed, but they still
take part in every force as a neighbour.

The timer stops itself once alpha drops under `alpha_min`; `restart()` wakes
it up again (used when a drag starts). `stop()` can be called any number of
times and no `ticked` is emitted after it returns.
"""

from __future__ import annotations
import logging
import math
import random
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from PyQt5.QtCore import QObject, QTimer, pyqtSignal

log = logging.getLogger(__name__)

INITIAL_RADIUS = 10.0
INITIAL_ANGLE = math.pi * (3 - math.sqrt(5))
DEFAULT_TICK_MS = 16


@dataclass(eq=False)
class SimNode:
    id: int
    label: str = ""
    x: float = math.nan
    y: float = math.nan
    vx: float = 0.0
    vy: float = 0.0
    fx: Optional[float] = None
    fy: Optional[float] = None
    index: int = 0

    @property
    def pinned(self) -> bool:
        return self.fx is not None or self.fy is not None

    def pin(self, x: float, y: float):
        self.fx, self.fy = x, y

    def unpin(self):
        self.fx = self.fy = None


@dataclass(eq=False)
class SimLink:
    source: SimNode
    target: SimNode
    index: int = 0


def _jiggle(rng: random.Random) -> float:
    return (rng.random() - 0.5) * 1e-6


# -----------------------------
#  Forces
# -----------------------------
class Force:
    """A force gets nodes once (initialize) then is applied every tick."""

    def initialize(self, nodes: List[SimNode], rng: random.Random):
        self.nodes = nodes
        self.rng = rng

    def __call__(self, alpha: float):
        raise NotImplementedError


class LinkForce(Force):
    """Spring between linked nodes toward `distance`."""

    def __init__(self, links: Iterable[Tuple[int, int]] = (), distance: float = 30.0):
        self.link_pairs = list(links)
        self.distance = distance
        self.links: List[SimLink] = []
        self.dropped: List[Tuple[int, int]] = []
        self._strengths: List[float] = []
        self._bias: List[float] = []

    def initialize(self, nodes: List[SimNode], rng: random.Random):
        super().initialize(nodes, rng)
        by_id: Dict[int, SimNode] = {n.id: n for n in nodes}
        self.links, self.dropped = [], []
        for src, dst in self.link_pairs:
            s, t = by_id.get(src), by_id.get(dst)
            if s is None or t is None:
                self.dropped.append((src, dst))
                continue
            self.links.append(SimLink(s, t, len(self.links)))
        if self.dropped:
            log.debug("Dropped %d link(s) with a missing endpoint: %s", len(self.dropped), self.dropped)

        count: Dict[int, int] = {}
        for link in self.links:
            count[link.source.index] = count.get(link.source.index, 0) + 1
            count[link.target.index] = count.get(link.target.index, 0) + 1
        self._strengths = [1.0 / min(count[l.source.index], count[l.target.index]) for l in self.links]
        self._bias = [count[l.source.index] / (count[l.source.index] + count[l.target.index]) for l in self.links]

    def __call__(self, alpha: float):
        for link, strength, bias in zip(self.links, self._strengths, self._bias):
            s, t = link.source, link.target
            x = t.x + t.vx - s.x - s.vx or _jiggle(self.rng)
            y = t.y + t.vy - s.y - s.vy or _jiggle(self.rng)
            length = math.sqrt(x * x + y * y)
            length = (length - self.distance) / length * alpha * strength
            x *= length
            y *= length
            t.vx -= x * bias
            t.vy -= y * bias
            s.vx += x * (1 - bias)
            s.vy += y * (1 - bias)


class ManyBodyForce(Force):
    """Pairwise charge. Negative strength repels."""

    def __init__(self, strength: float = -30.0, distance_min: float = 1.0, distance_max: float = math.inf):
        self.strength = strength
        self.distance_min2 = distance_min * distance_min
        self.distance_max2 = distance_max * distance_max

    def __call__(self, alpha: float):
        nodes = self.nodes
        w = self.strength * alpha
        for node in nodes:
            for other in nodes:
                if other is node:
                    continue
                x = other.x - node.x
                y = other.y - node.y
                l = x * x + y * y
                if l >= self.distance_max2:
                    continue
                if x == 0:
                    x = _jiggle(self.rng)
                    l += x * x
                if y == 0:
                    y = _jiggle(self.rng)
                    l += y * y
                if l < self.distance_min2:
                    l = math.sqrt(self.distance_min2 * l)
                node.vx += x * w / l
                node.vy += y * w / l


class CenterForce(Force):
    """Shifts all nodes so their mean position sits on (x, y)."""

    def __init__(self, x: float = 0.0, y: float = 0.0, strength: float = 1.0):
        self.x, self.y, self.strength = x, y, strength

    def __call__(self, alpha: float):
        nodes = self.nodes
        if not nodes:
            return
        sx = sum(n.x for n in nodes) / len(nodes) - self.x
        sy = sum(n.y for n in nodes) / len(nodes) - self.y
        for n in nodes:
            n.x -= sx * self.strength
            n.y -= sy * self.strength


class PositionForce(Force):
    """Pulls each node toward a coordinate on one axis ("x" or "y")."""

    def __init__(self, axis: str, value: float = 0.0, strength: float = 0.1):
        if axis not in ("x", "y"):
            raise ValueError(f"axis must be 'x' or 'y', not {axis!r}")
        self.axis, self.value, self.strength = axis, value, strength

    def __call__(self, alpha: float):
        k = self.strength * alpha
        if self.axis == "x":
            for n in self.nodes:
                n.vx += (self.value - n.x) * k
        else:
            for n in self.nodes:
                n.vy += (self.value - n.y) * k


# -----------------------------
#  Simulation
# -----------------------------
class ForceSimulation(QObject):
    ticked = pyqtSignal()
    ended = pyqtSignal()

    def __init__(self, nodes: Iterable[SimNode] = (), *, tick_ms: int = DEFAULT_TICK_MS,
                 seed: Optional[int] = None, autostart: bool = True, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.alpha_value = 1.0
        self.alpha_min = 0.001
        self.alpha_decay = 1 - math.pow(self.alpha_min, 1 / 300)
        self.alpha_target_value = 0.0
        self.velocity_decay = 0.6  # i.e. 40% friction per tick
        self.rng = random.Random(seed)

        self._nodes: List[SimNode] = list(nodes)
        self._forces: Dict[str, Force] = {}
        self._disposed = False
        self._init_nodes()

        self._timer = QTimer(self)
        self._timer.setInterval(max(1, int(tick_ms)))
        self._timer.timeout.connect(self._step)
        if autostart:
            self._timer.start()

    # -------------------------
    #  Data access (read-only views)
    # -------------------------
    @property
    def nodes(self) -> List[SimNode]:
        return list(self._nodes)

    @property
    def links(self) -> List[SimLink]:
        link = self._forces.get("link")
        return list(link.links) if isinstance(link, LinkForce) else []

    def node(self, node_id) -> Optional[SimNode]:
        for n in self._nodes:
            if n.id == node_id:
                return n
        return None

    def force(self, name: str) -> Optional[Force]:
        return self._forces.get(name)

    def add_force(self, name: str, force: Optional[Force]) -> "ForceSimulation":
        if force is None:
            self._forces.pop(name, None)
        else:
            force.initialize(self._nodes, self.rng)
            self._forces[name] = force
        return self

    # -------------------------
    #  Energy
    # -------------------------
    @property
    def alpha(self) -> float:
        return self.alpha_value

    def set_alpha(self, value: float) -> "ForceSimulation":
        self.alpha_value = float(value)
        return self

    @property
    def alpha_target(self) -> float:
        return self.alpha_target_value

    def set_alpha_target(self, value: float) -> "ForceSimulation":
        self.alpha_target_value = float(value)
        return self

    # -------------------------
    #  Timer lifecycle
    # -------------------------
    @property
    def running(self) -> bool:
        return self._timer.isActive()

    @property
    def disposed(self) -> bool:
        return self._disposed

    def restart(self) -> "ForceSimulation":
        if self._disposed:
            log.warning("restart() on a disposed simulation ignored")
            return self
        if not self._timer.isActive():
            self._timer.start()
        return self

    def stop(self) -> "ForceSimulation":
        if self._timer.isActive():
            self._timer.stop()
        return self

    def dispose(self):
        """Stop for good: timer halted, tick listeners detached. Safe to repeat."""
        self.stop()
        if self._disposed:
            return
        self._disposed = True
        for sig in (self.ticked, self.ended):
            try:
                sig.disconnect()
            except TypeError:
                pass  # nothing connected

    # -------------------------
    #  Stepping
    # -------------------------
    def tick(self, iterations: int = 1) -> "ForceSimulation":
        """Advance without emitting ticked (manual stepping)."""
        for _ in range(iterations):
            self.alpha_value += (self.alpha_target_value - self.alpha_value) * self.alpha_decay
            for force in self._forces.values():
                force(self.alpha_value)
            for n in self._nodes:
                if n.fx is None:
                    n.vx *= self.velocity_decay
                    n.x += n.vx
                else:
                    n.x = n.fx
                    n.vx = 0.0
                if n.fy is None:
                    n.vy *= self.velocity_decay
                    n.y += n.vy
                else:
                    n.y = n.fy
                    n.vy = 0.0
        return self

    def _step(self):
        if self._disposed:
            self._timer.stop()
            return
        self.tick()
        self.ticked.emit()
        if self.alpha_value < self.alpha_min:
            self._timer.stop()
            self.ended.emit()

    def find(self, x: float, y: float, radius: float = math.inf) -> Optional[SimNode]:
        best, best_d2 = None, radius * radius
        for n in self._nodes:
            dx, dy = x - n.x, y - n.y
            d2 = dx * dx + dy * dy
            if d2 < best_d2:
                best, best_d2 = n, d2
        return best

    def _init_nodes(self):
        for i, n in enumerate(self._nodes):
            n.index = i
            if n.fx is not None:
                n.x = n.fx
            if n.fy is not None:
                n.y = n.fy
            if math.isnan(n.x) or math.isnan(n.y):
                radius = INITIAL_RADIUS * math.sqrt(0.5 + i)
                angle = i * INITIAL_ANGLE
                n.x = radius * math.cos(angle)
                n.y = radius * math.sin(angle)
            if math.isnan(n.vx) or math.isnan(n.vy):
                n.vx = n.vy = 0.0


def build_default_simulation(nodes: List[SimNode], links: Iterable[Tuple[int, int]], width: float, height: float,
                             *, link_distance: float = 100.0, charge: float = -300.0, gravity: float = 0.1,
                             tick_ms: int = DEFAULT_TICK_MS, seed: Optional[int] = None,
                             autostart: bool = True, parent: Optional[QObject] = None) -> ForceSimulation:
    """Link + charge + center, plus gentle x/y pull toward the middle of the viewport."""
    cx, cy = width / 2, height / 2
    sim = ForceSimulation(nodes, tick_ms=tick_ms, seed=seed, autostart=False, parent=parent)
    sim.add_force("link", LinkForce(links, distance=link_distance))
    sim.add_force("charge", ManyBodyForce(strength=charge))
    sim.add_force("center", CenterForce(cx, cy))
    sim.add_force("x", PositionForce("x", cx, strength=gravity))
    sim.add_force("y", PositionForce("y", cy, strength=gravity))
    if autostart:
        sim.restart()
    return sim
