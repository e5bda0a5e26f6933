"""Scripted interruption scenario against the in-process scene model.

Drives a demo scene through: enter VR, a system-menu style interruption
(document and session hidden, then visible again), and a silent session
replacement. Used by ``xrfocus simulate`` and as an end-to-end check.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from PyQt6.QtCore import QCoreApplication, QEventLoop, QTimer

from .config import RecoveryConfig
from .recovery import RecoveryController
from .scene import (
    HIDDEN,
    VISIBLE,
    Scene,
    SceneEventType,
    SessionVisibility,
    VisibilitySource,
    XrSessionHandle,
    make_cursor,
    make_hand,
)
from .scene.capabilities import CURSOR, LASER_CONTROLS, RAYCASTER, TRACKING_COMPONENTS, get_component

logger = logging.getLogger(__name__)

_MARGIN_MS = 60


def build_demo_scene(config: RecoveryConfig) -> Scene:
    scene = Scene()
    for index, entity_id in enumerate(config.controller_ids):
        scene.add_entity(make_hand(entity_id, "left" if index == 0 else "right"))
    scene.add_entity(make_cursor())
    return scene


def describe_scene(scene: Scene, config: RecoveryConfig) -> dict[str, Any]:
    controllers = {}
    for entity_id in config.controller_ids:
        entity = scene.get_entity(entity_id)
        if entity is None:
            continue
        tracking = next(
            (get_component(entity, n) for n in TRACKING_COMPONENTS if get_component(entity, n) is not None),
            None,
        )
        raycaster = get_component(entity, RAYCASTER)
        laser = get_component(entity, LASER_CONTROLS)
        controllers[entity_id] = {
            "tracking_refreshes": getattr(tracking, "refresh_count", None),
            "raycaster_enabled": getattr(raycaster, "enabled", None),
            "laser_paused": getattr(laser, "paused", None),
        }
    cursor_entity = scene.query_component(CURSOR)
    cursor = get_component(cursor_entity, CURSOR)
    return {
        "controllers": controllers,
        "cursor_paused": getattr(cursor, "paused", None),
        "canvas_focus_count": getattr(scene.canvas, "focus_count", None),
        "renderer_xr_enabled": scene.renderer.xr_enabled,
    }


def _is_restored(state: dict[str, Any]) -> bool:
    for entry in state["controllers"].values():
        if entry["raycaster_enabled"] is False or entry["laser_paused"] is True:
            return False
    return state["cursor_paused"] is not True and bool(state["renderer_xr_enabled"])


def run_simulation(
    config: Optional[RecoveryConfig] = None,
    *,
    progress: Optional[Callable[[str], None]] = None,
) -> dict[str, Any]:
    """Run the scenario in a local event loop and return a JSON-ready summary."""
    config = config or RecoveryConfig()
    app = QCoreApplication.instance() or QCoreApplication([])
    say = progress or (lambda msg: logger.info("[simulate] %s", msg))

    scene = build_demo_scene(config)
    document = VisibilitySource()
    settle_events: list[float] = []
    scene.events.subscribe(SceneEventType.CONTROLLERS_UPDATED, lambda evt: settle_events.append(evt.timestamp or 0.0))

    controller = RecoveryController(scene, config=config, visibility_source=document)
    controller.init()

    sessions: dict[str, XrSessionHandle] = {"a": XrSessionHandle("session-a")}
    loop = QEventLoop()

    def interrupt() -> None:
        document.set_visibility(HIDDEN)
        sessions["a"].set_visibility(SessionVisibility.HIDDEN)

    def resume() -> None:
        sessions["a"].set_visibility(SessionVisibility.VISIBLE)
        document.set_visibility(VISIBLE)

    def replace_session() -> None:
        # The platform swaps the session without any event
        handle = XrSessionHandle("session-b")
        handle.set_visibility(SessionVisibility.HIDDEN)
        sessions["b"] = handle
        scene.xr_session = handle

    def session_b_visible() -> None:
        sessions["b"].set_visibility(SessionVisibility.VISIBLE)

    settle_ms = config.debounce_ms + max(config.reset_delay_ms, config.settle_delay_ms) + _MARGIN_MS
    steps: list[tuple[int, str, Callable[[], None]]] = [
        (0, "enter-vr", lambda: scene.enter_vr(sessions["a"])),
        (config.enter_delay_ms + settle_ms, "interrupt", interrupt),
        (_MARGIN_MS, "resume", resume),
        (settle_ms, "replace-session", replace_session),
        (config.session_poll_ms + _MARGIN_MS, "session-visible", session_b_visible),
        (settle_ms, "finish", loop.quit),
    ]

    elapsed = 0
    for delay, label, action in steps:
        elapsed += delay

        def _step(label=label, action=action) -> None:
            say(label)
            action()

        QTimer.singleShot(elapsed, _step)
    # Guard against a step raising before "finish" is reached
    guard = QTimer()
    guard.setSingleShot(True)
    guard.timeout.connect(loop.quit)
    guard.start(elapsed + 2000)
    loop.exec()
    guard.stop()

    state = describe_scene(scene, config)
    summary = {
        "runs": [report.to_dict() for report in controller.reports],
        "settle_notifications": len(settle_events),
        "session_subscriptions": controller.tracker.sessions_seen,
        "state": state,
    }
    controller.teardown()
    summary["pending_after_teardown"] = controller.timers.pending
    summary["restored"] = _is_restored(state) and len(settle_events) == len(controller.reports)
    app.processEvents()
    return summary
