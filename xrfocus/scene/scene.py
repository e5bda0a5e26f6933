"""Minimal scene model: entities, immersive state, renderer flag, render surface."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from PyQt6.QtCore import Qt

from .capabilities import get_component
from .entity import Entity
from .events import SceneEvent, SceneEventEmitter, SceneEventType

logger = logging.getLogger(__name__)


@dataclass
class Renderer:
    """Rendering subsystem as far as input recovery cares: the XR integration flag."""

    xr_enabled: bool = False


class RenderSurface:
    """Focus target standing in for the host's canvas."""

    def __init__(self) -> None:
        self.focus_count = 0

    @property
    def has_focus(self) -> bool:
        return self.focus_count > 0

    def focus(self) -> None:
        self.focus_count += 1


class QtRenderSurface:
    """Adapts a ``QWidget`` or ``QWindow`` to the ``focus()`` primitive."""

    def __init__(self, target: Any) -> None:
        self.target = target

    def focus(self) -> None:
        set_focus = getattr(self.target, "setFocus", None)
        if callable(set_focus):
            set_focus(Qt.FocusReason.OtherFocusReason)
            return
        activate = getattr(self.target, "requestActivate", None)
        if callable(activate):
            activate()


class Scene:
    """Owns entities and the scene event bus.

    ``xr_session`` is the current session handle (None outside immersive mode)
    and is replaced by the platform without notification.
    """

    def __init__(self, *, renderer: Optional[Renderer] = None, canvas: Any = None):
        self.events = SceneEventEmitter()
        self.renderer = renderer if renderer is not None else Renderer()
        self.canvas = canvas if canvas is not None else RenderSurface()
        self.xr_session: Any = None
        self._entities: dict[str, Entity] = {}
        self._states: set[str] = set()

    # Entities -----------------------------------------------------------------
    def add_entity(self, entity: Entity) -> Entity:
        self._entities[entity.id] = entity
        return entity

    def remove_entity(self, entity_id: str) -> None:
        self._entities.pop(entity_id, None)

    def get_entity(self, entity_id: str) -> Optional[Entity]:
        return self._entities.get(entity_id)

    def query_component(self, name: str) -> Optional[Entity]:
        """First entity carrying component ``name``."""
        for entity in self._entities.values():
            if get_component(entity, name) is not None:
                return entity
        return None

    # Immersive state ------------------------------------------------------------
    def is_vr_mode(self) -> bool:
        return "vr-mode" in self._states

    def enter_vr(self, session: Any = None) -> None:
        self._states.add("vr-mode")
        self.xr_session = session
        self.renderer.xr_enabled = True
        logger.info("[scene] Entered VR (session=%r)", session)
        self.emit(SceneEventType.ENTER_VR, {"session": getattr(session, "label", None)})

    def exit_vr(self) -> None:
        self._states.discard("vr-mode")
        self.xr_session = None
        self.renderer.xr_enabled = False
        logger.info("[scene] Exited VR")
        self.emit(SceneEventType.EXIT_VR)

    def emit(self, event_type: SceneEventType, detail: Optional[dict[str, Any]] = None,
             bubbles: bool = False) -> None:
        self.events.emit(SceneEvent(event_type, detail=detail or {}, bubbles=bubbles))
