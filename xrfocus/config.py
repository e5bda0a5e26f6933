"""Recovery timing and lookup configuration.

Defaults match the delays the restoration sequence was tuned with on
standalone headsets. Every value can be overridden through ``XRFOCUS_*``
environment variables (read by :meth:`RecoveryConfig.from_env`) or by the CLI.
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, replace
from typing import Any, Mapping, Optional

logger = logging.getLogger(__name__)

MIN_SESSION_POLL_MS = 50


def _read_env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("[config] Ignoring %s=%r (not an integer), using %d", name, raw, default)
        return default


def _read_env_ids(env: Mapping[str, str], name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    return tuple(part.strip() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class RecoveryConfig:
    """Delays (milliseconds) and controller identifiers used by the recovery controller."""

    debounce_ms: int = 100
    enter_delay_ms: int = 500
    reset_delay_ms: int = 50
    settle_delay_ms: int = 100
    session_poll_ms: int = 1000
    controller_ids: tuple[str, ...] = ("leftHand", "rightHand")

    def __post_init__(self) -> None:
        # frozen dataclass: normalise through object.__setattr__
        for name in ("debounce_ms", "enter_delay_ms", "reset_delay_ms", "settle_delay_ms"):
            value = int(getattr(self, name))
            if value < 0:
                logger.warning("[config] %s=%d is negative, clamping to 0", name, value)
                value = 0
            object.__setattr__(self, name, value)
        poll = int(self.session_poll_ms)
        if poll < MIN_SESSION_POLL_MS:
            logger.warning("[config] session_poll_ms=%d too small, clamping to %d", poll, MIN_SESSION_POLL_MS)
            poll = MIN_SESSION_POLL_MS
        object.__setattr__(self, "session_poll_ms", poll)
        object.__setattr__(self, "controller_ids", tuple(self.controller_ids))

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "RecoveryConfig":
        env = os.environ if env is None else env
        defaults = cls()
        return cls(
            debounce_ms=_read_env_int(env, "XRFOCUS_DEBOUNCE_MS", defaults.debounce_ms),
            enter_delay_ms=_read_env_int(env, "XRFOCUS_ENTER_DELAY_MS", defaults.enter_delay_ms),
            reset_delay_ms=_read_env_int(env, "XRFOCUS_RESET_DELAY_MS", defaults.reset_delay_ms),
            settle_delay_ms=_read_env_int(env, "XRFOCUS_SETTLE_DELAY_MS", defaults.settle_delay_ms),
            session_poll_ms=_read_env_int(env, "XRFOCUS_SESSION_POLL_MS", defaults.session_poll_ms),
            controller_ids=_read_env_ids(env, "XRFOCUS_CONTROLLER_IDS", defaults.controller_ids),
        )

    def with_overrides(self, **overrides: Any) -> "RecoveryConfig":
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["controller_ids"] = list(self.controller_ids)
        return data
