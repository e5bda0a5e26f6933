"""Scene collaborators consumed by the recovery controller.

Exports:
- Scene, Renderer, RenderSurface, QtRenderSurface: scene model and render targets
- Entity and the input components (TrackedControls, Raycaster, LaserControls, Cursor)
- XrSessionHandle, SessionVisibility: identity-compared session handle
- VisibilitySource, ApplicationVisibility: document-level visibility
- CollaboratorRegistry: read-only lookups used by the stages
- SceneEvent, SceneEventType, SceneEventEmitter: scene event bus
"""

from .events import SceneEvent, SceneEventEmitter, SceneEventType
from .entity import Cursor, Entity, LaserControls, Raycaster, TrackedControls, make_cursor, make_hand
from .registry import DEFAULT_CONTROLLER_IDS, CollaboratorRegistry
from .scene import QtRenderSurface, Renderer, RenderSurface, Scene
from .session import SessionVisibility, XrSessionHandle
from .visibility import HIDDEN, VISIBLE, ApplicationVisibility, VisibilitySource

__all__ = [
    "ApplicationVisibility",
    "CollaboratorRegistry",
    "Cursor",
    "DEFAULT_CONTROLLER_IDS",
    "Entity",
    "HIDDEN",
    "LaserControls",
    "QtRenderSurface",
    "Raycaster",
    "RenderSurface",
    "Renderer",
    "Scene",
    "SceneEvent",
    "SceneEventEmitter",
    "SceneEventType",
    "SessionVisibility",
    "TrackedControls",
    "VISIBLE",
    "VisibilitySource",
    "XrSessionHandle",
    "make_cursor",
    "make_hand",
]
