"""Input-pipeline recovery after immersive session interruptions.

Exports:
- RecoveryController: init/teardown lifecycle, wires watchers to the sequencer
- RestorationSequencer, RestorationReport: ordered stage execution
- Stage and the default stages
- RecoveryState, TimerBook: owned state and cancelable timers
- SessionTracker, VisibilityWatcher, LifecycleListener: trigger sources
"""

from .controller import RecoveryController
from .sequencer import RestorationReport, RestorationSequencer
from .stages import (
    CursorResetStage,
    FocusStage,
    IssueResult,
    LaserResetStage,
    RaycasterResetStage,
    RenderLoopStage,
    ResetStage,
    SettleNotifyStage,
    Stage,
    TrackingRefreshStage,
    default_stages,
)
from .state import RecoveryState, TimerBook
from .watchers import LifecycleListener, SessionTracker, VisibilityWatcher

__all__ = [
    "CursorResetStage",
    "FocusStage",
    "IssueResult",
    "LaserResetStage",
    "LifecycleListener",
    "RaycasterResetStage",
    "RecoveryController",
    "RecoveryState",
    "RenderLoopStage",
    "ResetStage",
    "RestorationReport",
    "RestorationSequencer",
    "SessionTracker",
    "SettleNotifyStage",
    "Stage",
    "TimerBook",
    "TrackingRefreshStage",
    "VisibilityWatcher",
    "default_stages",
]
