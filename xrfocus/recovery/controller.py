"""Recovery controller.

Restores controller and pointer input after the immersive session was
interrupted from outside (system menu, app switch, headset button) without
the application restarting. Upon return, tracking, raycasters and laser
pointers can stay disconnected until a restart; the controller watches for
the transitions that cause this and re-runs the restoration stages.

Usage:
    controller = RecoveryController(scene, visibility_source=ApplicationVisibility())
    controller.init()
    ...
    controller.teardown()
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from PyQt6.QtCore import QObject

from ..config import RecoveryConfig
from ..scene.registry import CollaboratorRegistry
from .sequencer import RestorationReport, RestorationSequencer
from .stages import Stage, default_stages
from .state import RecoveryState, TimerBook
from .watchers import LifecycleListener, SessionTracker, VisibilityWatcher

logger = logging.getLogger(__name__)


class RecoveryController:
    def __init__(
        self,
        scene: Any,
        *,
        config: Optional[RecoveryConfig] = None,
        visibility_source: Any = None,
        stages: Optional[Sequence[Stage]] = None,
        parent: Optional[QObject] = None,
    ):
        self.config = config or RecoveryConfig()
        self.registry = CollaboratorRegistry(scene, self.config.controller_ids)
        self.visibility_source = visibility_source
        self._stages = stages
        self._parent = parent
        self.state: Optional[RecoveryState] = None
        self.timers: Optional[TimerBook] = None
        self.sequencer: Optional[RestorationSequencer] = None
        self.tracker: Optional[SessionTracker] = None
        self.visibility: Optional[VisibilityWatcher] = None
        self.lifecycle: Optional[LifecycleListener] = None
        self.reports: list[RestorationReport] = []

    @property
    def initialized(self) -> bool:
        return self.state is not None and not self.state.torn_down

    def init(self) -> None:
        if self.initialized:
            return
        self.state = RecoveryState(in_vr=self.registry.is_immersive())
        self.timers = TimerBook(self.state, self._parent)
        self.sequencer = RestorationSequencer(
            self.registry,
            self.timers,
            self._stages if self._stages is not None else default_stages(self.config),
        )
        self.tracker = SessionTracker(
            self.registry,
            self.state,
            self._on_session_visibility,
            poll_ms=self.config.session_poll_ms,
            parent=self._parent,
        )
        self.visibility = VisibilityWatcher(
            self.registry, self.state, self.request_restore, self.tracker, self.visibility_source
        )
        self.lifecycle = LifecycleListener(
            self.registry,
            self.state,
            self.request_restore,
            self.cancel_pending_restore,
            enter_delay_ms=self.config.enter_delay_ms,
            tracker=self.tracker,
        )
        self.visibility.attach()
        self.lifecycle.attach()
        self.tracker.start()
        logger.info(
            "[recovery] Controller ready (controllers=%s, poll=%dms)",
            ",".join(self.config.controller_ids) or "-",
            self.config.session_poll_ms,
        )

    def teardown(self) -> None:
        if not self.initialized:
            return
        assert self.state is not None and self.timers is not None
        cancelled = self.timers.close()
        self.tracker.stop()
        self.visibility.detach()
        self.lifecycle.detach()
        logger.info("[recovery] Controller removed (%d pending timer(s) cancelled)", cancelled)

    def __enter__(self) -> "RecoveryController":
        self.init()
        return self

    def __exit__(self, exc_type, exc, exc_tb) -> None:
        self.teardown()

    # Triggers ---------------------------------------------------------------
    def request_restore(self, reason: str, delay_ms: Optional[int] = None) -> bool:
        """Schedule a restoration run, replacing one that is still pending."""
        if not self.initialized:
            return False
        delay = self.config.debounce_ms if delay_ms is None else delay_ms
        if self.state.pending_restore is not None:
            self.timers.cancel(self.state.pending_restore)
            logger.debug("[recovery] Replacing pending restore with %s", reason)
        self.state.pending_restore = self.timers.schedule(
            delay, lambda: self.restore_now(reason), label=f"restore:{reason}"
        )
        return self.state.pending_restore is not None

    def cancel_pending_restore(self) -> bool:
        if not self.initialized or self.state.pending_restore is None:
            return False
        return self.timers.cancel(self.state.pending_restore)

    def restore_now(self, reason: str = "manual") -> Optional[RestorationReport]:
        if not self.initialized:
            logger.debug("[recovery] Ignoring restore (%s): controller not active", reason)
            return None
        report = self.sequencer.run(reason)
        self.state.run_count += 1
        self.reports.append(report)
        return report

    def _on_session_visibility(self, handle: Any, visibility: str) -> None:
        if self.visibility is not None:
            self.visibility.on_session_visibility(handle, visibility)

    # Diagnostics --------------------------------------------------------------
    def snapshot(self) -> dict[str, Any]:
        state = self.state
        return {
            "initialized": self.initialized,
            "in_vr": bool(state and state.in_vr),
            "was_in_vr": bool(state and state.was_in_vr),
            "run_count": state.run_count if state else 0,
            "pending_timers": self.timers.labels() if self.timers else [],
            "session_subscriptions": self.tracker.subscription_count if self.tracker else 0,
            "sessions_seen": self.tracker.sessions_seen if self.tracker else 0,
            "config": self.config.to_dict(),
        }
