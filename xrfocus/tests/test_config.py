"""Tests for RecoveryConfig defaults, env parsing and clamping."""

from xrfocus.config import MIN_SESSION_POLL_MS, RecoveryConfig


def test_defaults_match_tuned_delays():
    cfg = RecoveryConfig()
    assert cfg.debounce_ms == 100
    assert cfg.enter_delay_ms == 500
    assert cfg.reset_delay_ms == 50
    assert cfg.settle_delay_ms == 100
    assert cfg.session_poll_ms == 1000
    assert cfg.controller_ids == ("leftHand", "rightHand")


def test_from_env_reads_overrides():
    env = {
        "XRFOCUS_DEBOUNCE_MS": "250",
        "XRFOCUS_RESET_DELAY_MS": "75",
        "XRFOCUS_CONTROLLER_IDS": "left, right ,extra",
    }
    cfg = RecoveryConfig.from_env(env)
    assert cfg.debounce_ms == 250
    assert cfg.reset_delay_ms == 75
    assert cfg.enter_delay_ms == 500
    assert cfg.controller_ids == ("left", "right", "extra")


def test_from_env_invalid_value_falls_back(caplog):
    cfg = RecoveryConfig.from_env({"XRFOCUS_SETTLE_DELAY_MS": "soon"})
    assert cfg.settle_delay_ms == 100
    assert "XRFOCUS_SETTLE_DELAY_MS" in caplog.text


def test_negative_delays_and_tiny_poll_are_clamped():
    cfg = RecoveryConfig(debounce_ms=-5, session_poll_ms=1)
    assert cfg.debounce_ms == 0
    assert cfg.session_poll_ms == MIN_SESSION_POLL_MS


def test_blank_controller_ids_use_default():
    cfg = RecoveryConfig.from_env({"XRFOCUS_CONTROLLER_IDS": "  "})
    assert cfg.controller_ids == ("leftHand", "rightHand")


def test_empty_controller_list_is_allowed():
    cfg = RecoveryConfig.from_env({"XRFOCUS_CONTROLLER_IDS": ","})
    assert cfg.controller_ids == ()


def test_with_overrides_ignores_none():
    cfg = RecoveryConfig()
    same = cfg.with_overrides(debounce_ms=None)
    assert same is cfg
    changed = cfg.with_overrides(debounce_ms=5, controller_ids=["a"])
    assert changed.debounce_ms == 5
    assert changed.controller_ids == ("a",)
    assert changed.to_dict()["controller_ids"] == ["a"]
