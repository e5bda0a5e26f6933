"""pytest configuration file."""

import logging
import os

import pytest

# Timers and signals only; no window system needed
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from xrfocus.config import RecoveryConfig  # noqa: E402


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (may take several seconds)"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests that drive the full scripted scenario"
    )


@pytest.fixture(autouse=True, scope="session")
def _quiet_logs():
    os.environ.pop("XRFOCUS_POLL_TRACE", None)
    logging.getLogger("xrfocus.scene.events").setLevel(logging.INFO)
    yield


@pytest.fixture
def fast_config():
    """Short delays so timer-driven tests finish quickly."""
    return RecoveryConfig(
        debounce_ms=10,
        enter_delay_ms=30,
        reset_delay_ms=20,
        settle_delay_ms=40,
        session_poll_ms=50,
    )
