"""Document-level visibility sources.

:class:`VisibilitySource` is a settable source (simulation, tests, or hosts
that learn about visibility from elsewhere). :class:`ApplicationVisibility`
follows Qt's application state: active means visible, anything else hidden.
"""

from __future__ import annotations

import logging
from typing import Optional

from PyQt6.QtCore import QObject, Qt, pyqtSignal
from PyQt6.QtGui import QGuiApplication

logger = logging.getLogger(__name__)

VISIBLE = "visible"
HIDDEN = "hidden"


class VisibilitySource(QObject):
    visibility_changed = pyqtSignal(str)

    def __init__(self, initial: str = VISIBLE, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._state = initial

    @property
    def visibility_state(self) -> str:
        return self._state

    def set_visibility(self, state: str) -> None:
        if state not in (VISIBLE, HIDDEN):
            raise ValueError(f"unknown visibility state: {state!r}")
        if state == self._state:
            return
        self._state = state
        self.visibility_changed.emit(state)


def map_application_state(state: Qt.ApplicationState) -> str:
    return VISIBLE if state == Qt.ApplicationState.ApplicationActive else HIDDEN


class ApplicationVisibility(VisibilitySource):
    """Tracks ``QGuiApplication.applicationStateChanged``."""

    def __init__(self, app: Optional[QGuiApplication] = None, parent: Optional[QObject] = None):
        app = app or QGuiApplication.instance()
        if not isinstance(app, QGuiApplication):
            app = None
        initial = map_application_state(app.applicationState()) if app is not None else VISIBLE
        super().__init__(initial, parent)
        self._app = app
        if self._app is not None:
            self._app.applicationStateChanged.connect(self._on_application_state)
        else:
            logger.debug("[visibility] No QGuiApplication; application visibility stays %s", initial)

    def _on_application_state(self, state: Qt.ApplicationState) -> None:
        self.set_visibility(map_application_state(state))

    def close(self) -> None:
        if self._app is None:
            return
        try:
            self._app.applicationStateChanged.disconnect(self._on_application_state)
        except (TypeError, RuntimeError):
            pass
        self._app = None
