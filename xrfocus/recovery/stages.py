"""Restoration stages.

A stage has an issue phase, run synchronously by the sequencer, and an
optional completion phase the sequencer schedules ``delay_ms`` later with
the targets the issue phase touched. Both phases skip absent targets and
are safe to repeat: disabling something already disabled or resuming
something already running changes nothing.

Reset stages use the disable-then-enable (or pause-then-resume) pattern to
drop stale intersection and animation state without recreating entities.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from ..config import RecoveryConfig
from ..scene.capabilities import (
    CURSOR,
    LASER_CONTROLS,
    RAYCASTER,
    resolve_pausable,
    resolve_refreshable,
    resolve_toggleable,
)
from ..scene.events import SceneEventType
from ..scene.registry import CollaboratorRegistry

logger = logging.getLogger(__name__)


@dataclass
class IssueResult:
    touched: list[Any] = field(default_factory=list)
    errors: list[Exception] = field(default_factory=list)


class Stage:
    name = "stage"
    delay_ms: Optional[int] = None

    def issue(self, registry: CollaboratorRegistry) -> IssueResult:
        raise NotImplementedError

    def complete(self, touched: list[Any]) -> None:
        """Delayed phase; only called when ``delay_ms`` is set and something was touched."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(delay_ms={self.delay_ms})"


class TrackingRefreshStage(Stage):
    name = "tracking-refresh"

    def issue(self, registry: CollaboratorRegistry) -> IssueResult:
        result = IssueResult()
        for entity in registry.controllers():
            tracking = resolve_refreshable(entity)
            if tracking is None:
                continue
            try:
                tracking.refresh()
                result.touched.append(tracking)
            except Exception as exc:
                logger.error("[stage] %s failed on %s: %s", self.name, getattr(entity, "id", entity), exc, exc_info=True)
                result.errors.append(exc)
        return result


class ResetStage(Stage):
    """Two-phase reset applied to one capability per target entity."""

    def __init__(self, delay_ms: int):
        self.delay_ms = delay_ms

    def targets(self, registry: CollaboratorRegistry) -> Iterable[Any]:
        return registry.controllers()

    def resolve(self, entity: Any) -> Any:
        raise NotImplementedError

    def reset(self, capability: Any) -> bool:
        """Issue-phase action. Returns True when the capability needs restoring."""
        raise NotImplementedError

    def restore(self, capability: Any) -> None:
        raise NotImplementedError

    def issue(self, registry: CollaboratorRegistry) -> IssueResult:
        result = IssueResult()
        for entity in self.targets(registry):
            capability = self.resolve(entity)
            if capability is None:
                continue
            try:
                if self.reset(capability):
                    result.touched.append(capability)
            except Exception as exc:
                logger.error("[stage] %s failed on %s: %s", self.name, getattr(entity, "id", entity), exc, exc_info=True)
                result.errors.append(exc)
                # A half-applied reset still gets its completion attempt
                result.touched.append(capability)
        return result

    def complete(self, touched: list[Any]) -> None:
        for capability in touched:
            try:
                self.restore(capability)
            except Exception as exc:
                logger.error("[stage] %s completion failed: %s", self.name, exc, exc_info=True)


class RaycasterResetStage(ResetStage):
    name = "raycaster-reset"

    def resolve(self, entity: Any) -> Any:
        return resolve_toggleable(entity, RAYCASTER)

    def reset(self, capability: Any) -> bool:
        # Leave raycasters the application disabled on purpose alone
        if not capability.enabled:
            return False
        capability.set_enabled(False)
        return True

    def restore(self, capability: Any) -> None:
        capability.set_enabled(True)


class _PauseResumeStage(ResetStage):
    component = ""

    def resolve(self, entity: Any) -> Any:
        return resolve_pausable(entity, self.component)

    def reset(self, capability: Any) -> bool:
        capability.pause()
        return True

    def restore(self, capability: Any) -> None:
        capability.play()


class LaserResetStage(_PauseResumeStage):
    name = "laser-reset"
    component = LASER_CONTROLS


class CursorResetStage(_PauseResumeStage):
    name = "cursor-reset"
    component = CURSOR

    def targets(self, registry: CollaboratorRegistry) -> Iterable[Any]:
        cursor = registry.cursor()
        return [cursor] if cursor is not None else []


class SettleNotifyStage(Stage):
    """Emits the non-bubbling ``controllersupdated`` scene event after a delay."""

    name = "settle-notify"

    def __init__(self, delay_ms: int):
        self.delay_ms = delay_ms

    def issue(self, registry: CollaboratorRegistry) -> IssueResult:
        scene = registry.scene
        if scene is None or not callable(getattr(scene, "emit", None)):
            return IssueResult()
        return IssueResult(touched=[scene])

    def complete(self, touched: list[Any]) -> None:
        for scene in touched:
            scene.emit(SceneEventType.CONTROLLERS_UPDATED, {}, False)


class FocusStage(Stage):
    name = "focus"

    def issue(self, registry: CollaboratorRegistry) -> IssueResult:
        surface = registry.render_surface()
        focus = getattr(surface, "focus", None)
        if not callable(focus):
            return IssueResult()
        focus()
        return IssueResult(touched=[surface])


class RenderLoopStage(Stage):
    """Re-asserts the renderer's XR integration flag while a session is live."""

    name = "render-loop"

    def issue(self, registry: CollaboratorRegistry) -> IssueResult:
        if not registry.is_immersive() or registry.session_handle() is None:
            return IssueResult()
        renderer = registry.renderer()
        if renderer is None or not hasattr(renderer, "xr_enabled"):
            return IssueResult()
        renderer.xr_enabled = True
        return IssueResult(touched=[renderer])


def default_stages(config: Optional[RecoveryConfig] = None) -> list[Stage]:
    """The restoration stages in issuance order."""
    config = config or RecoveryConfig()
    return [
        TrackingRefreshStage(),
        RaycasterResetStage(config.reset_delay_ms),
        LaserResetStage(config.reset_delay_ms),
        CursorResetStage(config.reset_delay_ms),
        SettleNotifyStage(config.settle_delay_ms),
        FocusStage(),
        RenderLoopStage(),
    ]
