#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations
import json, logging
from pathlib import Path
from typing import Iterable, List, Optional

from quest_graph.errors import QuestFileError
from quest_graph.models import Quest, quests_from_json, quests_to_json

log = logging.getLogger(__name__)


def parse_quests(text: str) -> List[Quest]:
    """Decode a quests.json document. Any problem comes back as QuestFileError."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise QuestFileError(str(e)) from e
    try:
        return quests_from_json(data)
    except ValueError as e:
        raise QuestFileError(str(e)) from e


def load_quests(path: Path) -> List[Quest]:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise QuestFileError(f"Failed to read {path.name}: {e}") from e
    return parse_quests(text)


def dump_quests(quests: Iterable[Quest], *, indent: int = 2) -> str:
    return json.dumps(quests_to_json(quests), ensure_ascii=False, indent=indent)


def save_quests(path: Path, quests: Iterable[Quest], *, indent: int = 2) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        path.write_text(dump_quests(quests, indent=indent), encoding="utf-8")
    except OSError as e:
        raise QuestFileError(f"Failed to write {path.name}: {e}") from e
    log.info("Exported quests to %s", path)
    return path


def load_sample(path: Path) -> Optional[List[Quest]]:
    """Startup helper: the bundled sample, or None (logged) if it can't be had."""
    try:
        quests = load_quests(path)
    except QuestFileError as e:
        log.warning("Error loading sample quests: %s", e)
        return None
    log.info("Loaded %d sample quests from %s", len(quests), path)
    return quests
