"""Immersive session handle.

A handle is compared by identity only. The recovery code needs exactly two
things from it: a ``visibility_changed`` signal carrying the new state string
and the current ``visibility_state``.
"""

from __future__ import annotations

import itertools
import logging
from enum import Enum
from typing import Optional

from PyQt6.QtCore import QObject, pyqtSignal

logger = logging.getLogger(__name__)

_ids = itertools.count(1)


class SessionVisibility(str, Enum):
    VISIBLE = "visible"
    VISIBLE_BLURRED = "visible-blurred"  # rendered, but a system overlay owns input
    HIDDEN = "hidden"


class XrSessionHandle(QObject):
    """One immersive session instance as seen by the application."""

    visibility_changed = pyqtSignal(str)

    def __init__(self, label: Optional[str] = None, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.label = label or f"session-{next(_ids)}"
        self._visibility = SessionVisibility.VISIBLE.value

    @property
    def visibility_state(self) -> str:
        return self._visibility

    def set_visibility(self, state: SessionVisibility | str) -> None:
        value = SessionVisibility(state).value
        if value == self._visibility:
            return
        self._visibility = value
        logger.debug("[session] %s visibility -> %s", self.label, value)
        self.visibility_changed.emit(value)

    def __repr__(self) -> str:
        return f"XrSessionHandle({self.label!r}, {self._visibility})"
