"""Recovery state and timer bookkeeping.

Every delayed callback the recovery controller schedules goes through
:class:`TimerBook`, which records the live ``QTimer`` in
``RecoveryState.pending_timers`` until it fires or is cancelled. After
:meth:`TimerBook.close` no callback runs, even one whose timeout event is
already queued.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from PyQt6.QtCore import QObject, QTimer

logger = logging.getLogger(__name__)


@dataclass
class RecoveryState:
    in_vr: bool = False
    was_in_vr: bool = False
    last_session_handle: Any = None
    pending_timers: set[QTimer] = field(default_factory=set)
    pending_restore: Optional[QTimer] = None
    torn_down: bool = False
    run_count: int = 0


class TimerBook:
    def __init__(self, state: RecoveryState, parent: Optional[QObject] = None):
        self._state = state
        self._parent = parent
        self._labels: dict[QTimer, str] = {}

    @property
    def pending(self) -> int:
        return len(self._state.pending_timers)

    def labels(self) -> list[str]:
        return sorted(self._labels.values())

    def schedule(self, delay_ms: int, callback: Callable[[], None], *, label: str = "timer") -> Optional[QTimer]:
        """Run ``callback`` once after ``delay_ms``. Returns None once closed."""
        if self._state.torn_down:
            logger.debug("[timers] Refusing to schedule %s after teardown", label)
            return None
        timer = QTimer(self._parent)
        timer.setSingleShot(True)
        timer.timeout.connect(lambda t=timer: self._fire(t, callback))
        self._state.pending_timers.add(timer)
        self._labels[timer] = label
        timer.start(max(0, int(delay_ms)))
        return timer

    def cancel(self, timer: Optional[QTimer]) -> bool:
        if timer is None or timer not in self._state.pending_timers:
            return False
        timer.stop()
        self._forget(timer)
        return True

    def cancel_all(self) -> int:
        timers = list(self._state.pending_timers)
        for timer in timers:
            timer.stop()
            self._forget(timer)
        return len(timers)

    def close(self) -> int:
        """Cancel everything and refuse further scheduling."""
        self._state.torn_down = True
        return self.cancel_all()

    def _forget(self, timer: QTimer) -> None:
        self._state.pending_timers.discard(timer)
        self._labels.pop(timer, None)
        if self._state.pending_restore is timer:
            self._state.pending_restore = None
        timer.deleteLater()

    def _fire(self, timer: QTimer, callback: Callable[[], None]) -> None:
        if timer not in self._state.pending_timers:
            return
        label = self._labels.get(timer, "timer")
        self._forget(timer)
        if self._state.torn_down:
            return
        try:
            callback()
        except Exception as exc:
            logger.error("[timers] %s callback failed: %s", label, exc, exc_info=True)
