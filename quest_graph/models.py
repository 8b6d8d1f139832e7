#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Quest records as they live in the editor and in quests.json.

JSON shape (one object per quest, keys in this order):
    {"id": 1, "description": "...", "ongoing": "...", "onfinished": "...",
     "questgivers": [3], "prerequisites": [], "required": [{"id": 5, "type": 0, "count": 1}]}

Loading is forgiving: missing optional keys become empty, numbers given as
strings are coerced, and anything that can't be coerced is dropped from the
list it was in. Bad ids are kept so the editor can still show them; list or
object ids become their JSON text. Array entries that are not objects are
skipped with a warning.
"""

from __future__ import annotations
import json, logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, Iterable, List, Optional

log = logging.getLogger(__name__)

LABEL_MAX = 20


class RequestType(IntEnum):
    KILL = 0
    GATHER = 1
    USE = 2
    VISIT = 3
    TALK = 4

    @classmethod
    def coerce(cls, value: Any) -> int:
        """Enum member when known, plain int otherwise (kept so export round-trips)."""
        num = _as_int(value)
        if num is None:
            return cls.KILL
        try:
            return cls(num)
        except ValueError:
            return num


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _int_list(values: Any) -> List[int]:
    if not isinstance(values, (list, tuple)):
        return []
    out: List[int] = []
    for v in values:
        num = _as_int(v)
        if num is not None:
            out.append(num)
    return out


def _record_id(raw: Any) -> Any:
    """Integer id when possible; otherwise something usable as a dict key."""
    num = _as_int(raw)
    if num is not None:
        return num
    if raw is None or isinstance(raw, (str, float, bool)):
        return raw
    # lists / objects: keep their JSON text so the record stays visible
    return json.dumps(raw, ensure_ascii=False, sort_keys=True)


def truncate_label(text: str, limit: int = LABEL_MAX) -> str:
    text = text or ""
    return text[:limit] + ("..." if len(text) > limit else "")


@dataclass
class Requirement:
    id: int
    type: int = RequestType.KILL
    count: int = 1

    @property
    def type_name(self) -> str:
        try:
            return RequestType(self.type).name
        except ValueError:
            return f"UNKNOWN({self.type})"

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "type": int(self.type), "count": self.count}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Requirement":
        count = _as_int(data.get("count"))
        return cls(
            id=_as_int(data.get("id")) or 0,
            type=RequestType.coerce(data.get("type", 0)),
            count=1 if count is None else count,
        )


@dataclass
class Quest:
    id: Any
    description: str = ""
    ongoing: str = ""
    onfinished: str = ""
    questgivers: List[int] = field(default_factory=list)
    prerequisites: List[int] = field(default_factory=list)
    required: List[Requirement] = field(default_factory=list)

    @property
    def label(self) -> str:
        return truncate_label(self.description)

    def strip_prerequisite(self, quest_id: int) -> bool:
        """Drop quest_id from prerequisites. Returns True if anything changed."""
        if quest_id not in self.prerequisites:
            return False
        self.prerequisites = [p for p in self.prerequisites if p != quest_id]
        return True

    def copy(self) -> "Quest":
        return Quest.from_dict(self.to_dict())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "ongoing": self.ongoing,
            "onfinished": self.onfinished,
            "questgivers": list(self.questgivers),
            "prerequisites": list(self.prerequisites),
            "required": [r.to_dict() for r in self.required],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Quest":
        reqs = data.get("required") or []
        return cls(
            id=_record_id(data.get("id")),
            description=str(data.get("description") or ""),
            ongoing=str(data.get("ongoing") or ""),
            onfinished=str(data.get("onfinished") or ""),
            questgivers=_int_list(data.get("questgivers")),
            prerequisites=_int_list(data.get("prerequisites")),
            required=[Requirement.from_dict(r) for r in reqs if isinstance(r, dict)] if isinstance(reqs, list) else [],
        )


def quests_from_json(data: Any) -> List[Quest]:
    """Accepts the decoded JSON document; anything but a list of objects is rejected."""
    if not isinstance(data, list):
        raise ValueError("expected a JSON array of quest objects")
    quests: List[Quest] = []
    for i, q in enumerate(data):
        if not isinstance(q, dict):
            log.warning("Skipping entry %d: expected a quest object, got %s", i, type(q).__name__)
            continue
        quests.append(Quest.from_dict(q))
    return quests


def quests_to_json(quests: Iterable[Quest]) -> List[Dict[str, Any]]:
    return [q.to_dict() for q in quests]
