"""Detectors for "possibly stale" input transitions.

- VisibilityWatcher: document-level and per-session visibility
- SessionTracker: polls for session handle replacement (there is no event for it)
- LifecycleListener: enter/exit immersive mode on the scene event bus

None of them restore anything directly; they call back into the controller,
which owns the debounce timer and the sequencer.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from PyQt6.QtCore import QObject, QTimer

from ..logging_utils import BurstSampler
from ..scene.events import SceneEvent, SceneEventType
from ..scene.registry import CollaboratorRegistry
from ..scene.session import SessionVisibility
from ..scene.visibility import VISIBLE
from .state import RecoveryState

logger = logging.getLogger(__name__)

RestoreRequest = Callable[[str, Optional[int]], None]


class _SessionListener:
    """Binds one session handle to the shared visibility callback."""

    __slots__ = ("handle", "callback", "__weakref__")

    def __init__(self, handle: Any, callback: Callable[[Any, str], None]):
        self.handle = handle
        self.callback = callback

    def on_visibility(self, visibility: str) -> None:
        self.callback(self.handle, visibility)


class SessionTracker:
    """Notices new session handles and keeps one visibility listener on the current one."""

    def __init__(
        self,
        registry: CollaboratorRegistry,
        state: RecoveryState,
        on_session_visibility: Callable[[Any, str], None],
        *,
        poll_ms: int = 1000,
        parent: Optional[QObject] = None,
    ):
        self.registry = registry
        self.state = state
        self.on_session_visibility = on_session_visibility
        self.poll_ms = poll_ms
        self._timer = QTimer(parent)
        self._timer.setInterval(poll_ms)
        self._timer.timeout.connect(self.poll_now)
        # id(handle) -> (handle, listener); the handle reference keeps the id stable
        self._subscriptions: dict[int, tuple[Any, _SessionListener]] = {}
        self.sessions_seen = 0
        self._poll_sampler = BurstSampler(interval_s=30.0)

    @property
    def active(self) -> bool:
        return self._timer.isActive()

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)

    def is_subscribed(self, handle: Any) -> bool:
        entry = self._subscriptions.get(id(handle))
        return entry is not None and entry[0] is handle

    def start(self) -> None:
        if self.state.torn_down:
            return
        self.poll_now()
        self._timer.start()

    def poll_now(self) -> bool:
        """Check the scene's session handle; True when a new one was picked up."""
        if self.state.torn_down:
            return False
        try:
            return self._poll()
        except Exception as exc:
            logger.error("[tracker] Session poll failed: %s", exc, exc_info=True)
            return False

    def _poll(self) -> bool:
        polls = self._poll_sampler.record()
        if polls is not None:
            logger.debug("[tracker.poll] %d session polls in the last %.0fs", polls, self._poll_sampler.interval_s)

        handle = self.registry.session_handle()
        if handle is None or handle is self.state.last_session_handle:
            return False
        self.state.last_session_handle = handle
        self.sessions_seen += 1
        # Replaced sessions are dead; only the current one stays connected
        self._detach_all(keep=handle)
        if self.is_subscribed(handle):
            return True

        signal = getattr(handle, "visibility_changed", None)
        if signal is None or not callable(getattr(signal, "connect", None)):
            logger.debug("[tracker] Session %r has no visibility signal", handle)
            return True
        listener = _SessionListener(handle, self.on_session_visibility)
        signal.connect(listener.on_visibility)
        self._subscriptions[id(handle)] = (handle, listener)
        logger.info("[tracker] New XR session %r; visibility listener attached", handle)
        return True

    def _detach_all(self, keep: Any = None) -> None:
        for key, (handle, listener) in list(self._subscriptions.items()):
            if handle is keep:
                continue
            del self._subscriptions[key]
            try:
                handle.visibility_changed.disconnect(listener.on_visibility)
            except (TypeError, RuntimeError) as exc:
                # Handle already destroyed by the platform
                logger.debug("[tracker] Could not detach from %r: %s", handle, exc)

    def stop(self) -> None:
        self._timer.stop()
        self._detach_all()


class VisibilityWatcher:
    """Turns visibility transitions into restore requests while immersive."""

    def __init__(
        self,
        registry: CollaboratorRegistry,
        state: RecoveryState,
        request_restore: RestoreRequest,
        tracker: SessionTracker,
        source: Any = None,
    ):
        self.registry = registry
        self.state = state
        self.request_restore = request_restore
        self.tracker = tracker
        self.source = source
        self._attached = False

    def attach(self) -> None:
        if self._attached or self.source is None:
            return
        self.source.visibility_changed.connect(self.on_document_visibility)
        self._attached = True

    def detach(self) -> None:
        if not self._attached:
            return
        try:
            self.source.visibility_changed.disconnect(self.on_document_visibility)
        except (TypeError, RuntimeError) as exc:
            logger.debug("[visibility] Detach failed: %s", exc)
        self._attached = False

    def on_document_visibility(self, visibility: str) -> None:
        if self.state.torn_down:
            return
        try:
            if visibility == VISIBLE:
                logger.info("[visibility] Document became visible, checking VR state")
                # Coming back is when a replaced session is most likely
                self.tracker.poll_now()
                if self.registry.is_immersive():
                    self.request_restore("document-visible", None)
            else:
                self.state.was_in_vr = self.registry.is_immersive()
                logger.debug("[visibility] Document hidden (was_in_vr=%s)", self.state.was_in_vr)
        except Exception as exc:
            logger.error("[visibility] Document %s handling failed: %s", visibility, exc, exc_info=True)

    def on_session_visibility(self, handle: Any, visibility: str) -> None:
        if self.state.torn_down:
            return
        try:
            if handle is not self.registry.session_handle():
                logger.debug("[visibility] Ignoring %s from stale session %r", visibility, handle)
                self.tracker.poll_now()
                return
            logger.info("[visibility] XR session visibility changed: %s", visibility)
            if visibility == SessionVisibility.VISIBLE.value:
                if self.registry.is_immersive():
                    self.request_restore("session-visible", None)
            elif visibility == SessionVisibility.HIDDEN.value:
                self.state.was_in_vr = self.registry.is_immersive()
        except Exception as exc:
            logger.error("[visibility] Session %s handling failed: %s", visibility, exc, exc_info=True)


class LifecycleListener:
    def __init__(
        self,
        registry: CollaboratorRegistry,
        state: RecoveryState,
        request_restore: RestoreRequest,
        cancel_restore: Callable[[], None],
        *,
        enter_delay_ms: int = 500,
        tracker: Optional[SessionTracker] = None,
    ):
        self.registry = registry
        self.state = state
        self.request_restore = request_restore
        self.cancel_restore = cancel_restore
        self.enter_delay_ms = enter_delay_ms
        self.tracker = tracker
        self._bus: Any = None

    def attach(self) -> None:
        bus = self.registry.event_bus()
        if bus is None or self._bus is not None:
            return
        bus.subscribe(SceneEventType.ENTER_VR, self.on_enter_vr)
        bus.subscribe(SceneEventType.EXIT_VR, self.on_exit_vr)
        self._bus = bus

    def detach(self) -> None:
        if self._bus is None:
            return
        self._bus.unsubscribe(SceneEventType.ENTER_VR, self.on_enter_vr)
        self._bus.unsubscribe(SceneEventType.EXIT_VR, self.on_exit_vr)
        self._bus = None

    def on_enter_vr(self, event: Optional[SceneEvent] = None) -> None:
        if self.state.torn_down:
            return
        logger.info("[lifecycle] Entered VR mode")
        self.state.in_vr = True
        self.state.was_in_vr = True
        if self.tracker is not None:
            # Entering VR is when a fresh session handle appears
            self.tracker.poll_now()
        # Entry itself can leave input stale (e.g. after a permission prompt)
        self.request_restore("enter-vr", self.enter_delay_ms)

    def on_exit_vr(self, event: Optional[SceneEvent] = None) -> None:
        if self.state.torn_down:
            return
        logger.info("[lifecycle] Exited VR mode")
        self.state.in_vr = False
        self.state.was_in_vr = False
        self.cancel_restore()
