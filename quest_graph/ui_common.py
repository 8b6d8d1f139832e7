#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations
from typing import Callable, Optional
from PyQt5.QtWidgets import QShortcut, QStatusBar, QWidget


def attach_status_bar(win) -> QStatusBar:
    """
    Ensures the editor window has a status bar and returns it.
    """
    sb = getattr(win, "_status_bar", None)
    if sb: return sb
    sb = QStatusBar()
    if hasattr(win, "setStatusBar"):
        win.setStatusBar(sb)
    win._status_bar = sb
    return sb

def flash_status(win, msg: str, ms: int = 1800):
    sb = attach_status_bar(win)
    sb.showMessage(msg, ms)

def attach_hotkeys(win,
                   save_cb: Optional[Callable]=None,
                   delete_cb: Optional[Callable]=None,
                   new_cb: Optional[Callable]=None,
                   export_cb: Optional[Callable]=None):
    """
    Adds common shortcuts for whichever callbacks exist on the editor.
    """
    def _try(seq, cb):
        if cb:
            sc = QShortcut(seq, win)
            sc.activated.connect(cb)

    _try("Ctrl+S", save_cb or getattr(win, "save_quest", None))
    _try("Ctrl+N", new_cb or getattr(win, "new_quest", None))
    _try("Delete", delete_cb or getattr(win, "delete_selected", None))
    _try("Ctrl+E", export_cb or getattr(win, "export_quests", None))

# ---- Inline validation helpers ----

def mark_invalid(widget: QWidget, msg: str):
    widget.setToolTip(msg)
    widget.setStyleSheet("border: 1px solid #e5534b; border-radius: 3px;")

def clear_invalid(widget: QWidget):
    widget.setToolTip("")
    widget.setStyleSheet("")
