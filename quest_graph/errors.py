#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations
from typing import List


class QuestGraphError(Exception):
    """Base for everything the editor raises on purpose."""


class QuestValidationError(QuestGraphError):
    def __init__(self, issues: List[str]):
        self.issues = list(issues)
        super().__init__("; ".join(self.issues) or "invalid quest")


class QuestFileError(QuestGraphError):
    """Import file could not be read or parsed."""
