#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
In-memory quest collection + current selection. Everything else (graph,
form, list) reads from here and listens for changes.
"""

from __future__ import annotations
import logging
from typing import Callable, Dict, Iterable, List, Optional

from quest_graph.errors import QuestValidationError
from quest_graph.models import Quest

log = logging.getLogger(__name__)

# Change kinds passed to subscribers
UPSERT = "upsert"
DELETE = "delete"
SELECT = "select"
REPLACE = "replace"
CLEAR = "clear"


def validate_quest(quest: Quest) -> List[str]:
    """Save-time checks. Empty list means the quest may be stored."""
    issues: List[str] = []
    qid = quest.id
    if not isinstance(qid, int) or isinstance(qid, bool) or qid <= 0:
        issues.append("ID must be a positive integer")
    if not (quest.description or "").strip():
        issues.append("Description is required")
    if not quest.required:
        issues.append("At least one requirement is required")
    return issues


class QuestStore:
    def __init__(self, quests: Optional[Iterable[Quest]] = None):
        self._quests: List[Quest] = list(quests or [])
        self._selected: Optional[int] = None
        self._subs: List[Callable[[str], None]] = []

    # -------------------------
    #  Notifications
    # -------------------------
    def subscribe(self, cb: Callable[[str], None]):
        self._subs.append(cb)

    def unsubscribe(self, cb: Callable[[str], None]):
        if cb in self._subs:
            self._subs.remove(cb)

    def _publish(self, kind: str):
        for cb in list(self._subs):
            try:
                cb(kind)
            except Exception:
                log.exception("Store listener failed on %r", kind)

    # -------------------------
    #  Reads
    # -------------------------
    def __len__(self) -> int:
        return len(self._quests)

    def __contains__(self, quest_id) -> bool:
        return self.get(quest_id) is not None

    @property
    def quests(self) -> List[Quest]:
        return list(self._quests)

    def ids(self) -> List:
        return [q.id for q in self._quests]

    def get(self, quest_id) -> Optional[Quest]:
        for q in self._quests:
            if q.id == quest_id:
                return q
        return None

    def next_id(self) -> int:
        nums = [q.id for q in self._quests if isinstance(q.id, int) and not isinstance(q.id, bool)]
        if not nums:
            return 1
        return max(nums) + 1

    @property
    def selected_id(self) -> Optional[int]:
        """Current selection, or None if it points at a quest that's gone."""
        if self._selected is None or self.get(self._selected) is None:
            return None
        return self._selected

    def selected_quest(self) -> Optional[Quest]:
        sid = self.selected_id
        return self.get(sid) if sid is not None else None

    # -------------------------
    #  Writes
    # -------------------------
    def validate(self, quest: Quest) -> List[str]:
        return validate_quest(quest)

    def upsert(self, quest: Quest) -> bool:
        """Insert or fully replace by id. Returns True if a new quest was added."""
        issues = validate_quest(quest)
        if issues:
            raise QuestValidationError(issues)
        for i, q in enumerate(self._quests):
            if q.id == quest.id:
                self._quests[i] = quest
                log.debug("Replaced quest %s", quest.id)
                self._publish(UPSERT)
                return False
        self._quests.append(quest)
        log.debug("Added quest %s", quest.id)
        self._publish(UPSERT)
        return True

    def delete(self, quest_id) -> bool:
        if self.get(quest_id) is None:
            return False
        self._quests = [q for q in self._quests if q.id != quest_id]
        stripped = sum(1 for q in self._quests if q.strip_prerequisite(quest_id))
        log.debug("Deleted quest %s (stripped from %d prerequisite lists)", quest_id, stripped)
        self._publish(DELETE)
        return True

    def select(self, quest_id: Optional[int]):
        self._selected = quest_id
        self._publish(SELECT)

    def replace_all(self, quests: Iterable[Quest]):
        # No validation here: imported data is taken verbatim
        self._quests = list(quests)
        log.info("Loaded %d quests", len(self._quests))
        self._publish(REPLACE)

    def clear(self):
        self._quests = []
        self._selected = None
        self._publish(CLEAR)

    # -------------------------
    #  Project-wide checks
    # -------------------------
    def find_issues(self) -> List[str]:
        issues: List[str] = []
        seen: Dict = {}
        for q in self._quests:
            seen[q.id] = seen.get(q.id, 0) + 1
        for qid, n in seen.items():
            if n > 1:
                issues.append(f"{qid}: duplicate quest id ({n} records)")

        known = set(seen)
        for q in self._quests:
            for msg in validate_quest(q):
                issues.append(f"{q.id}: {msg.lower()}")
            for pid in q.prerequisites:
                if pid == q.id:
                    issues.append(f"{q.id}: lists itself as a prerequisite")
                elif pid not in known:
                    issues.append(f"{q.id}: requires unknown quest {pid}")
            for i, r in enumerate(q.required):
                if r.count <= 0:
                    issues.append(f"{q.id}: requirement #{i + 1} has non-positive count {r.count}")
        return issues
