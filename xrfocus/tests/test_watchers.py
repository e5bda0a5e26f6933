"""Session tracker, visibility watcher and lifecycle listener in isolation."""

import logging
from unittest.mock import Mock

from xrfocus.recovery import LifecycleListener, RecoveryState, SessionTracker, VisibilityWatcher
from xrfocus.scene import CollaboratorRegistry, Scene, SessionVisibility, VisibilitySource, XrSessionHandle


def _tracker(scene, callback=None, poll_ms=50):
    state = RecoveryState()
    tracker = SessionTracker(CollaboratorRegistry(scene), state, callback or Mock(), poll_ms=poll_ms)
    return state, tracker


class TestSessionTracker:
    def test_one_listener_per_distinct_handle(self, qapp):
        scene = Scene()
        callback = Mock()
        state, tracker = _tracker(scene, callback)
        first, second = XrSessionHandle("a"), XrSessionHandle("b")

        assert tracker.poll_now() is False  # no session yet
        scene.xr_session = first
        assert tracker.poll_now() is True
        for _ in range(5):
            assert tracker.poll_now() is False
        scene.xr_session = second
        tracker.poll_now()
        tracker.poll_now()
        scene.xr_session = first
        tracker.poll_now()

        assert tracker.subscription_count == 1
        assert tracker.sessions_seen == 3
        assert state.last_session_handle is first
        first.set_visibility(SessionVisibility.HIDDEN)
        second.set_visibility(SessionVisibility.HIDDEN)
        callback.assert_called_once_with(first, "hidden")

    def test_replaced_session_is_released(self, qapp):
        scene = Scene()
        callback = Mock()
        state, tracker = _tracker(scene, callback)
        old, new = XrSessionHandle("old"), XrSessionHandle("new")
        scene.xr_session = old
        tracker.poll_now()
        scene.xr_session = new
        tracker.poll_now()

        assert not tracker.is_subscribed(old)
        assert tracker.is_subscribed(new)
        old.set_visibility(SessionVisibility.HIDDEN)
        callback.assert_not_called()

    def test_polling_timer_picks_up_replacement(self, qtbot):
        scene = Scene()
        state, tracker = _tracker(scene)
        tracker.start()
        assert tracker.active
        handle = XrSessionHandle()
        scene.xr_session = handle
        qtbot.waitUntil(lambda: tracker.is_subscribed(handle), timeout=1000)
        tracker.stop()
        assert not tracker.active

    def test_stop_detaches_all_listeners(self, qapp):
        scene = Scene()
        callback = Mock()
        state, tracker = _tracker(scene, callback)
        handle = XrSessionHandle()
        scene.xr_session = handle
        tracker.poll_now()
        tracker.stop()
        handle.set_visibility(SessionVisibility.HIDDEN)
        callback.assert_not_called()
        assert tracker.subscription_count == 0

    def test_handle_without_signal_is_tolerated(self, qapp):
        scene = Scene()
        state, tracker = _tracker(scene)
        scene.xr_session = object()
        assert tracker.poll_now() is True
        assert tracker.subscription_count == 0

    def test_no_polling_after_teardown(self, qapp):
        scene = Scene()
        state, tracker = _tracker(scene)
        state.torn_down = True
        scene.xr_session = XrSessionHandle()
        assert tracker.poll_now() is False
        tracker.start()
        assert not tracker.active


def _watcher(scene, source=None):
    state = RecoveryState()
    registry = CollaboratorRegistry(scene)
    request = Mock()
    tracker = SessionTracker(registry, state, Mock(), poll_ms=50)
    watcher = VisibilityWatcher(registry, state, request, tracker, source)
    return state, request, tracker, watcher


class TestVisibilityWatcher:
    def test_toggles_outside_vr_never_request(self, qapp):
        scene = Scene()
        source = VisibilitySource()
        state, request, tracker, watcher = _watcher(scene, source)
        watcher.attach()
        for _ in range(3):
            source.set_visibility("hidden")
            source.set_visibility("visible")
        request.assert_not_called()
        assert state.was_in_vr is False

    def test_visible_in_vr_requests_debounced_restore(self, qapp):
        scene = Scene()
        scene.enter_vr(XrSessionHandle())
        source = VisibilitySource()
        state, request, tracker, watcher = _watcher(scene, source)
        watcher.attach()
        source.set_visibility("hidden")
        assert state.was_in_vr is True
        source.set_visibility("visible")
        request.assert_called_once_with("document-visible", None)
        # Coming back also checks for a replaced session
        assert tracker.is_subscribed(scene.xr_session)

    def test_fires_before_any_session_exists(self, qapp):
        scene = Scene()
        state, request, tracker, watcher = _watcher(scene)
        watcher.on_document_visibility("hidden")
        watcher.on_document_visibility("visible")
        assert tracker.subscription_count == 0

    def test_session_visible_requests_restore(self, qapp):
        scene = Scene()
        handle = XrSessionHandle()
        scene.enter_vr(handle)
        state, request, tracker, watcher = _watcher(scene)
        watcher.on_session_visibility(handle, "visible-blurred")
        request.assert_not_called()
        watcher.on_session_visibility(handle, "visible")
        request.assert_called_once_with("session-visible", None)

    def test_stale_session_event_resubscribes_instead_of_restoring(self, qapp):
        scene = Scene()
        old, new = XrSessionHandle("old"), XrSessionHandle("new")
        scene.enter_vr(new)
        state, request, tracker, watcher = _watcher(scene)
        watcher.on_session_visibility(old, "visible")
        request.assert_not_called()
        assert tracker.is_subscribed(new)

    def test_detach_stops_document_events(self, qapp):
        scene = Scene()
        scene.enter_vr(XrSessionHandle())
        source = VisibilitySource()
        state, request, tracker, watcher = _watcher(scene, source)
        watcher.attach()
        watcher.attach()
        watcher.detach()
        source.set_visibility("hidden")
        source.set_visibility("visible")
        request.assert_not_called()


class TestLifecycleListener:
    def test_enter_and_exit(self, qapp):
        scene = Scene()
        state = RecoveryState()
        request, cancel = Mock(), Mock()
        listener = LifecycleListener(CollaboratorRegistry(scene), state, request, cancel, enter_delay_ms=500)
        listener.attach()

        scene.enter_vr(XrSessionHandle())
        assert state.in_vr is True
        assert state.was_in_vr is True
        request.assert_called_once_with("enter-vr", 500)

        scene.exit_vr()
        assert state.in_vr is False
        assert state.was_in_vr is False
        cancel.assert_called_once()
        assert request.call_count == 1

    def test_detach_unsubscribes(self, qapp):
        scene = Scene()
        request = Mock()
        listener = LifecycleListener(CollaboratorRegistry(scene), RecoveryState(), request, Mock())
        listener.attach()
        listener.detach()
        scene.enter_vr(XrSessionHandle())
        request.assert_not_called()


class _FlakyScene(Scene):
    """Scene whose session lookup starts failing after the first read."""

    def __init__(self):
        super().__init__()
        self._session = None
        self.reads = 0

    @property
    def xr_session(self):
        self.reads += 1
        if self.reads > 1:
            raise RuntimeError("platform session lookup failed")
        return self._session

    @xr_session.setter
    def xr_session(self, value):
        self._session = value


class TestCollaboratorFaults:
    def test_poll_tick_logs_and_keeps_polling(self, qtbot, caplog):
        scene = _FlakyScene()
        state, tracker = _tracker(scene, poll_ms=50)
        with caplog.at_level(logging.ERROR, logger="xrfocus.recovery.watchers"):
            tracker.start()
            qtbot.waitUntil(lambda: scene.reads >= 3, timeout=1000)
        assert tracker.active
        assert "Session poll failed" in caplog.text
        tracker.stop()

    def test_visibility_callbacks_log_and_carry_on(self, qapp, caplog):
        scene = _FlakyScene()
        scene.reads = 1
        source = VisibilitySource()
        state, request, tracker, watcher = _watcher(scene, source)
        watcher.attach()
        with caplog.at_level(logging.ERROR, logger="xrfocus.recovery.watchers"):
            source.set_visibility("hidden")
            source.set_visibility("visible")
            watcher.on_session_visibility(XrSessionHandle(), "visible")
        request.assert_not_called()
        assert "Session visible handling failed" in caplog.text
        assert caplog.text.count("Session poll failed") == 1
