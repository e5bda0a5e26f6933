"""Restoration sequencer.

Issues every stage in order and schedules each stage's completion phase.
Stages are isolated from each other: an exception in one is logged and
recorded, and the next stage still runs. Overlapping runs are allowed; the
stages are idempotent, so only the timers need bookkeeping.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Optional, Sequence

from ..logging_utils import PerfTracer
from ..scene.registry import CollaboratorRegistry
from .stages import Stage, default_stages
from .state import TimerBook

logger = logging.getLogger(__name__)


@dataclass
class RestorationReport:
    """What one run issued, skipped (no target) and failed."""

    run_id: int
    reason: str = "manual"
    issued: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    scheduled: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "reason": self.reason,
            "issued": list(self.issued),
            "skipped": list(self.skipped),
            "failed": list(self.failed),
            "scheduled": list(self.scheduled),
        }


class RestorationSequencer:
    def __init__(
        self,
        registry: CollaboratorRegistry,
        timers: TimerBook,
        stages: Optional[Sequence[Stage]] = None,
        *,
        tracer: Optional[PerfTracer] = None,
    ):
        self.registry = registry
        self.timers = timers
        self.stages: list[Stage] = list(stages) if stages is not None else default_stages()
        self.tracer = tracer or PerfTracer("restoration")
        self._run_ids = itertools.count(1)

    def run(self, reason: str = "manual") -> RestorationReport:
        report = RestorationReport(run_id=next(self._run_ids), reason=reason)
        logger.info("[recovery] Restoring input pipeline (run #%d, reason=%s)", report.run_id, reason)
        for stage in self.stages:
            try:
                with self.tracer.span(stage.name, category="issue", metadata={"run": report.run_id}):
                    result = stage.issue(self.registry)
            except Exception as exc:
                logger.error("[recovery] Stage %s raised: %s", stage.name, exc, exc_info=True)
                report.failed.append(stage.name)
                continue

            if result.errors:
                report.failed.append(stage.name)
            elif result.touched:
                report.issued.append(stage.name)
            else:
                logger.debug("[recovery] Stage %s: no target, skipped", stage.name)
                report.skipped.append(stage.name)

            if stage.delay_ms is not None and result.touched:
                label = f"{stage.name}#{report.run_id}"
                callback = partial(self._complete, stage, list(result.touched), label)
                if self.timers.schedule(stage.delay_ms, callback, label=label) is not None:
                    report.scheduled.append(stage.name)

        if self.tracer.enabled:
            logger.debug("[recovery] Issue timings: %s", self.tracer.dump_json())
            self.tracer.clear()
        logger.info(
            "[recovery] Run #%d issued=%s skipped=%s failed=%s",
            report.run_id, report.issued, report.skipped, report.failed,
        )
        return report

    def _complete(self, stage: Stage, touched: list[Any], label: str) -> None:
        try:
            stage.complete(touched)
        except Exception as exc:
            logger.error("[recovery] Completion %s raised: %s", label, exc, exc_info=True)
        else:
            logger.debug("[recovery] Completed %s (%d target(s))", label, len(touched))
