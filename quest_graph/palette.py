#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Colors for the graph plus the light/dark application palettes.

Graph colors are plain functions of (node id, selected id, dark) so the
canvas can ask for them while painting instead of patching drawn items.
"""

from __future__ import annotations
from typing import Optional

from PyQt5.QtCore import QSettings
from PyQt5.QtGui import QColor, QFont, QPalette
from PyQt5.QtWidgets import QApplication

SELECTED_FILL = "#ff6347"
NODE_FILL = {True: "#88d1c0", False: "#69b3a2"}
TEXT_COLOR = {True: "#e2e8f0", False: "#1a202c"}
LINK_COLOR = {True: "#aaaaaa", False: "#999999"}
LINK_OPACITY = 0.6

SETTINGS_ORG = "QuestGraph"
SETTINGS_APP = "QuestEditor"
DARK_MODE_KEY = "questEditorDarkMode"


def node_fill(node_id, selected_id: Optional[int], dark: bool) -> str:
    if selected_id is not None and node_id == selected_id:
        return SELECTED_FILL
    return NODE_FILL[bool(dark)]


def text_color(dark: bool) -> str:
    return TEXT_COLOR[bool(dark)]


def link_color(dark: bool) -> QColor:
    c = QColor(LINK_COLOR[bool(dark)])
    c.setAlphaF(LINK_OPACITY)
    return c


# -----------------------------
#  Theme preference
# -----------------------------
def _settings() -> QSettings:
    return QSettings(SETTINGS_ORG, SETTINGS_APP)


def system_prefers_dark(app: Optional[QApplication] = None) -> bool:
    # Same heuristic the world canvas uses: a dim window color means dark
    app = app or QApplication.instance()
    if app is None:
        return False
    return app.palette().color(QPalette.Window).value() < 128


def load_dark_mode(settings: Optional[QSettings] = None, app: Optional[QApplication] = None) -> bool:
    """Stored flag wins; otherwise follow the OS palette."""
    settings = settings or _settings()
    stored = settings.value(DARK_MODE_KEY, None)
    if stored is None or stored == "":
        return system_prefers_dark(app)
    if isinstance(stored, bool):
        return stored
    return str(stored).lower() == "true"


def save_dark_mode(dark: bool, settings: Optional[QSettings] = None):
    settings = settings or _settings()
    settings.setValue(DARK_MODE_KEY, "true" if dark else "false")
    settings.sync()


# -----------------------------
#  Application palettes
# -----------------------------
# Palette roles for the dark theme; light uses the style's standard palette
DARK_ROLES = {
    QPalette.Window: "#24272c",
    QPalette.WindowText: TEXT_COLOR[True],
    QPalette.Base: "#1b1d21",
    QPalette.AlternateBase: "#24272c",
    QPalette.ToolTipBase: TEXT_COLOR[True],
    QPalette.ToolTipText: TEXT_COLOR[True],
    QPalette.Text: TEXT_COLOR[True],
    QPalette.Button: "#373b42",
    QPalette.ButtonText: TEXT_COLOR[True],
    QPalette.Highlight: "#6699ff",
    QPalette.HighlightedText: "#ffffff",
}


def app_palette(dark: bool) -> QPalette:
    if not dark:
        return QApplication.style().standardPalette()
    pal = QPalette()
    for role, hex_color in DARK_ROLES.items():
        pal.setColor(role, QColor(hex_color))
    return pal


def apply_theme(app: QApplication, dark: bool, *, base_pt: int = 10):
    """Fusion style plus the light/dark palette; the graph canvas reads its own colors."""
    app.setStyle("Fusion")
    app.setPalette(app_palette(dark))
    font = QFont(app.font())
    font.setPointSize(base_pt)
    app.setFont(font)
