"""Scene event bus.

Provides event types, event data structures, and an emitter for decoupled
communication between the scene and the components attached to it.

Usage:
    emitter = SceneEventEmitter()
    emitter.subscribe(SceneEventType.ENTER_VR, lambda evt: print(f"Entered VR: {evt.detail}"))
    emitter.emit(SceneEvent(SceneEventType.ENTER_VR, detail={"session": "s1"}))
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional


class SceneEventType(str, Enum):
    """Scene-level events. Values are the wire names components listen for."""

    # Immersive mode lifecycle
    ENTER_VR = "enter-vr"
    EXIT_VR = "exit-vr"

    # Emitted once a restoration run has issued every stage
    CONTROLLERS_UPDATED = "controllersupdated"


@dataclass
class SceneEvent:
    """Represents a scene event with optional payload data.

    Attributes:
        event_type: Type of event that occurred
        detail: Optional dictionary with event-specific data
        bubbles: Whether the event propagates to parent entities
        timestamp: Optional timestamp (set by the emitter when missing)
    """
    event_type: SceneEventType
    detail: Optional[dict[str, Any]] = None
    bubbles: bool = False
    timestamp: Optional[float] = None

    def __str__(self) -> str:
        if self.detail:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.detail.items())
            return f"SceneEvent({self.event_type.value}, {detail_str})"
        return f"SceneEvent({self.event_type.value})"


class SceneEventEmitter:
    """Event bus for scene-wide notifications.

    Allows components to subscribe to specific event types and receive
    notifications when those events occur. Supports multiple subscribers
    per event type. A failing subscriber is logged and does not stop the
    remaining subscribers.

    Example:
        emitter = SceneEventEmitter()

        def on_updated(event: SceneEvent):
            print("controllers refreshed")

        emitter.subscribe(SceneEventType.CONTROLLERS_UPDATED, on_updated)
        emitter.emit(SceneEvent(SceneEventType.CONTROLLERS_UPDATED, bubbles=False))
    """

    def __init__(self):
        self._subscribers: dict[SceneEventType, list[Callable[[SceneEvent], None]]] = {}
        self.logger = logging.getLogger(__name__)

    def subscribe(
        self,
        event_type: SceneEventType,
        callback: Callable[[SceneEvent], None]
    ) -> None:
        """Subscribe to a specific event type.

        Args:
            event_type: Type of event to listen for
            callback: Function to call when event occurs (receives SceneEvent)
        """
        if event_type not in self._subscribers:
            self._subscribers[event_type] = []

        if callback not in self._subscribers[event_type]:
            self._subscribers[event_type].append(callback)
            self.logger.debug(f"[events] Subscribed to {event_type.value} (total={len(self._subscribers[event_type])})")

    def unsubscribe(
        self,
        event_type: SceneEventType,
        callback: Callable[[SceneEvent], None]
    ) -> None:
        """Unsubscribe from a specific event type.

        Args:
            event_type: Type of event to stop listening for
            callback: The callback function to remove
        """
        if event_type in self._subscribers:
            if callback in self._subscribers[event_type]:
                self._subscribers[event_type].remove(callback)
                self.logger.debug(f"[events] Unsubscribed from {event_type.value} (total={len(self._subscribers[event_type])})")

    def subscriber_count(self, event_type: SceneEventType) -> int:
        return len(self._subscribers.get(event_type, ()))

    def emit(self, event: SceneEvent) -> None:
        """Emit an event to all subscribed callbacks.

        Args:
            event: The event to emit
        """
        if event.timestamp is None:
            event.timestamp = time.time()

        self.logger.debug(f"[events] Emitting: {event}")

        # Copy so callbacks may unsubscribe while we iterate
        for callback in list(self._subscribers.get(event.event_type, ())):
            try:
                callback(event)
            except Exception as e:
                self.logger.error(f"[events] Callback error for {event.event_type.value}: {e}", exc_info=True)

    def clear_all(self) -> None:
        """Remove all event subscribers (useful for testing/cleanup)."""
        self._subscribers.clear()
        self.logger.debug("[events] Cleared all subscribers")
