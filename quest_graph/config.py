#!/usr/bin/env python3
"""
Where the editor finds its data and how fast the graph ticks.

Precedence, highest first:
- environment variables (QUESTGRAPH_*)
- the first existing JSON config file in CONFIG_PATHS
- built-in defaults (bundled sample collection next to this package)
"""
from __future__ import annotations
import json, logging, os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence

log = logging.getLogger(__name__)

PACKAGE_DIR = Path(__file__).resolve().parent
DEFAULT_DATA_DIR = PACKAGE_DIR / "data"
SAMPLE_FILENAME = "sample-quests.json"
EXPORT_FILENAME = "quests.json"

CONFIG_PATHS: Sequence[Path] = (
    Path.home() / ".quest_graph.json",
)


@dataclass(frozen=True)
class EditorConfig:
    data_dir: Path = DEFAULT_DATA_DIR
    sample_file: str = SAMPLE_FILENAME
    export_filename: str = EXPORT_FILENAME
    tick_ms: int = 16
    canvas_height: int = 500
    log_level: str = "INFO"

    @property
    def sample_path(self) -> Path:
        p = Path(self.sample_file).expanduser()
        return p if p.is_absolute() else self.data_dir / p


def _read_config_file(paths: Sequence[Path]) -> Dict[str, Any]:
    for p in paths:
        if not p.exists():
            continue
        try:
            data = json.loads(p.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            log.warning("Ignoring unreadable config %s: %s", p, e)
            continue
        if isinstance(data, dict):
            log.debug("Using config file %s", p)
            return data
    return {}


def _coerce(cfg: EditorConfig, raw: Mapping[str, Any]) -> EditorConfig:
    changes: Dict[str, Any] = {}
    if raw.get("data_dir"):
        changes["data_dir"] = Path(str(raw["data_dir"])).expanduser()
    if raw.get("sample_file"):
        changes["sample_file"] = str(raw["sample_file"])
    if raw.get("export_filename"):
        changes["export_filename"] = str(raw["export_filename"])
    for key in ("tick_ms", "canvas_height"):
        if raw.get(key) not in (None, ""):
            try:
                changes[key] = max(1, int(raw[key]))
            except (TypeError, ValueError):
                log.warning("Ignoring non-integer %s=%r", key, raw[key])
    if raw.get("log_level"):
        changes["log_level"] = str(raw["log_level"]).upper()
    return replace(cfg, **changes)


def resolve_config(env: Optional[Mapping[str, str]] = None,
                   config_paths: Optional[Sequence[Path]] = None) -> EditorConfig:
    env = os.environ if env is None else env
    cfg = _coerce(EditorConfig(), _read_config_file(CONFIG_PATHS if config_paths is None else config_paths))
    return _coerce(cfg, {
        "data_dir": env.get("QUESTGRAPH_DATA_DIR"),
        "sample_file": env.get("QUESTGRAPH_SAMPLE_FILE"),
        "tick_ms": env.get("QUESTGRAPH_TICK_MS"),
        "log_level": env.get("QUESTGRAPH_LOG_LEVEL"),
    })
