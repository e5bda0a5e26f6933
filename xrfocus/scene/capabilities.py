"""Optional capability lookups on scene entities.

An entity carries a ``components`` mapping (component name -> component).
Every resolver here returns the capability object only when the entity has
it *and* the capability exposes the operations the caller needs, otherwise
``None``. Callers treat ``None`` as "nothing to refresh", never as an error.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol, runtime_checkable

# Tracking is registered under either name depending on the input backend.
TRACKING_COMPONENTS = ("tracked-controls", "tracked-controls-webxr")
RAYCASTER = "raycaster"
LASER_CONTROLS = "laser-controls"
CURSOR = "cursor"


@runtime_checkable
class Refreshable(Protocol):
    def refresh(self) -> None: ...


@runtime_checkable
class Toggleable(Protocol):
    enabled: bool

    def set_enabled(self, enabled: bool) -> None: ...


@runtime_checkable
class Pausable(Protocol):
    def pause(self) -> None: ...

    def play(self) -> None: ...


def get_component(entity: Any, name: str) -> Any:
    """Return ``entity.components[name]`` or None for any missing link."""
    if entity is None:
        return None
    components = getattr(entity, "components", None)
    if not components:
        return None
    try:
        return components.get(name)
    except AttributeError:
        return None


def resolve_refreshable(entity: Any) -> Optional[Refreshable]:
    """First tracking component found, if it can be refreshed."""
    for name in TRACKING_COMPONENTS:
        component = get_component(entity, name)
        if component is not None:
            return component if callable(getattr(component, "refresh", None)) else None
    return None


def resolve_toggleable(entity: Any, name: str = RAYCASTER) -> Optional[Toggleable]:
    component = get_component(entity, name)
    if component is None or not hasattr(component, "enabled"):
        return None
    if not callable(getattr(component, "set_enabled", None)):
        return None
    return component


def resolve_pausable(entity: Any, name: str) -> Optional[Pausable]:
    """Component ``name`` if it exposes both ``pause`` and ``play``."""
    component = get_component(entity, name)
    if component is None:
        return None
    if callable(getattr(component, "pause", None)) and callable(getattr(component, "play", None)):
        return component
    return None
