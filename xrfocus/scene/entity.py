"""In-process scene entities and the input components the recovery stages touch.

Host applications usually bring their own entity objects; anything with a
``components`` mapping works. These classes back the CLI simulation and the
tests, and double as a reference for the expected component surface.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from .capabilities import CURSOR, LASER_CONTROLS, RAYCASTER, TRACKING_COMPONENTS

logger = logging.getLogger(__name__)


class Entity:
    """Named scene node holding components by name."""

    def __init__(self, entity_id: str, components: Optional[dict[str, Any]] = None):
        self.id = entity_id
        self.components: dict[str, Any] = dict(components or {})

    def add_component(self, name: str, component: Any) -> Any:
        self.components[name] = component
        return component

    def remove_component(self, name: str) -> None:
        self.components.pop(name, None)

    def has_component(self, name: str) -> bool:
        return name in self.components

    def __repr__(self) -> str:
        return f"Entity({self.id!r}, components={sorted(self.components)})"


class TrackedControls:
    """Controller tracking binding; ``refresh`` re-reads the input source."""

    def __init__(self, hand: str = "right"):
        self.hand = hand
        self.refresh_count = 0

    def refresh(self) -> None:
        self.refresh_count += 1
        logger.debug("[entity] tracked-controls(%s) refreshed (#%d)", self.hand, self.refresh_count)


class Raycaster:
    """Pointer raycaster. Disabling drops the cached intersection state."""

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self.intersections: list[Any] = []
        self.toggle_count = 0

    def set_enabled(self, enabled: bool) -> None:
        enabled = bool(enabled)
        if enabled == self.enabled:
            return
        self.enabled = enabled
        self.toggle_count += 1
        if not enabled:
            self.intersections.clear()


class _PlayableComponent:
    def __init__(self) -> None:
        self.paused = False
        self.pause_count = 0
        self.play_count = 0

    def pause(self) -> None:
        if self.paused:
            return
        self.paused = True
        self.pause_count += 1

    def play(self) -> None:
        if not self.paused:
            return
        self.paused = False
        self.play_count += 1


class LaserControls(_PlayableComponent):
    """Laser pointer visual for one hand."""

    def __init__(self, hand: str = "right"):
        super().__init__()
        self.hand = hand


class Cursor(_PlayableComponent):
    """On-screen gaze/mouse cursor."""


def make_hand(entity_id: str, hand: str, *, tracking: bool = True, raycaster: bool = True,
              laser: bool = True, tracking_name: str = TRACKING_COMPONENTS[0]) -> Entity:
    """Build a controller entity with the requested subset of components."""
    entity = Entity(entity_id)
    if tracking:
        entity.add_component(tracking_name, TrackedControls(hand))
    if raycaster:
        entity.add_component(RAYCASTER, Raycaster(enabled=True))
    if laser:
        entity.add_component(LASER_CONTROLS, LaserControls(hand))
    return entity


def make_cursor(entity_id: str = "cursor") -> Entity:
    return Entity(entity_id, {CURSOR: Cursor()})
