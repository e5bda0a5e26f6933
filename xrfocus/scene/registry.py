"""Read-only collaborator lookups for the recovery stages.

Every lookup goes to the scene at call time; nothing is cached, so entities
added or removed between runs are picked up by the next run.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

from .capabilities import CURSOR

DEFAULT_CONTROLLER_IDS = ("leftHand", "rightHand")


class CollaboratorRegistry:
    def __init__(self, scene: Any, controller_ids: Sequence[str] = DEFAULT_CONTROLLER_IDS):
        self.scene = scene
        self.controller_ids = tuple(controller_ids)

    def controllers(self) -> list[Any]:
        """Controller entities that currently exist, in identifier order."""
        get_entity = getattr(self.scene, "get_entity", None)
        if not callable(get_entity):
            return []
        found = []
        for entity_id in self.controller_ids:
            entity = get_entity(entity_id)
            if entity is not None:
                found.append(entity)
        return found

    def cursor(self) -> Optional[Any]:
        query = getattr(self.scene, "query_component", None)
        return query(CURSOR) if callable(query) else None

    def render_surface(self) -> Optional[Any]:
        return getattr(self.scene, "canvas", None)

    def renderer(self) -> Optional[Any]:
        return getattr(self.scene, "renderer", None)

    def session_handle(self) -> Optional[Any]:
        return getattr(self.scene, "xr_session", None)

    def event_bus(self) -> Optional[Any]:
        return getattr(self.scene, "events", None)

    def is_immersive(self) -> bool:
        is_vr_mode = getattr(self.scene, "is_vr_mode", None)
        return bool(is_vr_mode()) if callable(is_vr_mode) else False
