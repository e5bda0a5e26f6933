"""Tests for the scene model, event bus, capability resolvers and registry."""

from unittest.mock import Mock

import pytest

from xrfocus.scene import (
    CollaboratorRegistry,
    Entity,
    Raycaster,
    Scene,
    SceneEvent,
    SceneEventEmitter,
    SceneEventType,
    SessionVisibility,
    VisibilitySource,
    XrSessionHandle,
    make_cursor,
    make_hand,
)
from xrfocus.scene.capabilities import (
    LASER_CONTROLS,
    resolve_pausable,
    resolve_refreshable,
    resolve_toggleable,
)


class TestSceneEventEmitter:
    def test_subscribe_emit_unsubscribe(self):
        emitter = SceneEventEmitter()
        received = []
        emitter.subscribe(SceneEventType.CONTROLLERS_UPDATED, received.append)
        emitter.subscribe(SceneEventType.CONTROLLERS_UPDATED, received.append)  # duplicate ignored
        assert emitter.subscriber_count(SceneEventType.CONTROLLERS_UPDATED) == 1

        emitter.emit(SceneEvent(SceneEventType.CONTROLLERS_UPDATED))
        assert len(received) == 1
        assert received[0].timestamp is not None
        assert received[0].bubbles is False

        emitter.unsubscribe(SceneEventType.CONTROLLERS_UPDATED, received.append)
        emitter.emit(SceneEvent(SceneEventType.CONTROLLERS_UPDATED))
        assert len(received) == 1

    def test_failing_subscriber_does_not_block_others(self):
        emitter = SceneEventEmitter()
        after = Mock()
        emitter.subscribe(SceneEventType.ENTER_VR, Mock(side_effect=RuntimeError("boom")))
        emitter.subscribe(SceneEventType.ENTER_VR, after)
        emitter.emit(SceneEvent(SceneEventType.ENTER_VR))
        after.assert_called_once()

    def test_event_str_uses_wire_name(self):
        assert str(SceneEvent(SceneEventType.EXIT_VR)) == "SceneEvent(exit-vr)"
        assert "session=s" in str(SceneEvent(SceneEventType.ENTER_VR, detail={"session": "s"}))


class TestCapabilities:
    def test_tracking_falls_back_to_webxr_name(self):
        entity = make_hand("h", "left", tracking_name="tracked-controls-webxr")
        assert resolve_refreshable(entity) is entity.components["tracked-controls-webxr"]

    def test_tracking_without_refresh_is_none(self):
        entity = Entity("h", {"tracked-controls": object()})
        assert resolve_refreshable(entity) is None

    def test_missing_entity_or_components(self):
        assert resolve_refreshable(None) is None
        assert resolve_toggleable(Entity("bare")) is None
        assert resolve_pausable(object(), LASER_CONTROLS) is None

    def test_pausable_requires_both_operations(self):
        half = Mock(spec=["pause"])
        entity = Entity("h", {LASER_CONTROLS: half})
        assert resolve_pausable(entity, LASER_CONTROLS) is None

    def test_toggleable_resolves_raycaster(self):
        entity = make_hand("h", "right")
        assert isinstance(resolve_toggleable(entity), Raycaster)


class TestSceneModel:
    def test_enter_and_exit_vr_emit_events(self):
        scene = Scene()
        seen = []
        scene.events.subscribe(SceneEventType.ENTER_VR, lambda e: seen.append(e.event_type))
        scene.events.subscribe(SceneEventType.EXIT_VR, lambda e: seen.append(e.event_type))
        session = XrSessionHandle("s")
        scene.enter_vr(session)
        assert scene.is_vr_mode() and scene.xr_session is session
        assert scene.renderer.xr_enabled is True
        scene.exit_vr()
        assert not scene.is_vr_mode() and scene.xr_session is None
        assert seen == [SceneEventType.ENTER_VR, SceneEventType.EXIT_VR]

    def test_query_component_finds_cursor(self):
        scene = Scene()
        scene.add_entity(make_hand("leftHand", "left"))
        cursor = scene.add_entity(make_cursor("gaze"))
        assert scene.query_component("cursor") is cursor

    def test_raycaster_disable_clears_intersections(self):
        ray = Raycaster()
        ray.intersections.append("panel")
        ray.set_enabled(False)
        ray.set_enabled(False)
        assert ray.intersections == []
        assert ray.toggle_count == 1


class TestSessionAndVisibility:
    def test_session_emits_only_on_change(self, qapp):
        handle = XrSessionHandle("s")
        seen = []
        handle.visibility_changed.connect(seen.append)
        handle.set_visibility(SessionVisibility.VISIBLE)
        handle.set_visibility("visible-blurred")
        handle.set_visibility(SessionVisibility.HIDDEN)
        assert seen == ["visible-blurred", "hidden"]

    def test_session_rejects_unknown_state(self, qapp):
        with pytest.raises(ValueError):
            XrSessionHandle().set_visibility("minimised")

    def test_visibility_source(self, qapp):
        source = VisibilitySource()
        seen = []
        source.visibility_changed.connect(seen.append)
        source.set_visibility("hidden")
        source.set_visibility("hidden")
        source.set_visibility("visible")
        assert seen == ["hidden", "visible"]
        with pytest.raises(ValueError):
            source.set_visibility("prerender")


class TestRegistry:
    def test_lookups_are_live(self):
        scene = Scene()
        registry = CollaboratorRegistry(scene, ("leftHand", "rightHand", "thirdHand"))
        assert registry.controllers() == []
        left = scene.add_entity(make_hand("leftHand", "left"))
        third = scene.add_entity(make_hand("thirdHand", "right"))
        assert registry.controllers() == [left, third]
        scene.remove_entity("leftHand")
        assert registry.controllers() == [third]
        assert registry.cursor() is None
        assert registry.render_surface() is scene.canvas

    def test_registry_tolerates_foreign_scene(self):
        registry = CollaboratorRegistry(object())
        assert registry.controllers() == []
        assert registry.cursor() is None
        assert registry.session_handle() is None
        assert registry.is_immersive() is False


class TestQtAdapters:
    def test_application_state_mapping(self, qapp):
        from PyQt6.QtCore import Qt

        from xrfocus.scene.visibility import map_application_state

        assert map_application_state(Qt.ApplicationState.ApplicationActive) == "visible"
        assert map_application_state(Qt.ApplicationState.ApplicationInactive) == "hidden"
        assert map_application_state(Qt.ApplicationState.ApplicationSuspended) == "hidden"

    def test_application_visibility_follows_state_changes(self, qapp):
        from PyQt6.QtCore import Qt

        from xrfocus.scene import ApplicationVisibility

        source = ApplicationVisibility(qapp)
        seen = []
        source.visibility_changed.connect(seen.append)
        source._on_application_state(Qt.ApplicationState.ApplicationHidden)
        source._on_application_state(Qt.ApplicationState.ApplicationActive)
        assert seen[-1] == "visible"
        assert source.visibility_state == "visible"
        source.close()
        source.close()

    def test_qt_render_surface_prefers_set_focus(self):
        from PyQt6.QtCore import Qt

        from xrfocus.scene import QtRenderSurface

        widget = Mock(spec=["setFocus", "requestActivate"])
        QtRenderSurface(widget).focus()
        widget.setFocus.assert_called_once_with(Qt.FocusReason.OtherFocusReason)
        widget.requestActivate.assert_not_called()

        window = Mock(spec=["requestActivate"])
        QtRenderSurface(window).focus()
        window.requestActivate.assert_called_once()
