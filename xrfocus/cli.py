"""xrfocus command-line interface.

Argparse-based CLI that initializes structured logging early. Exposed via
``python -m xrfocus`` and the ``xrfocus`` console script.
"""

from __future__ import annotations

import argparse
import json
import logging
from typing import Optional

from .config import RecoveryConfig
from .logging_utils import LogMode, get_default_log_path, setup_logging


def _add_logging_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Set log level (default: INFO)",
    )
    parser.add_argument(
        "--log-mode",
        choices=[mode.value for mode in LogMode],
        default=LogMode.NORMAL.value,
        help="Logging preset: quiet suppresses console info, perf forces DEBUG and stage timings",
    )
    parser.add_argument(
        "--log-file",
        default=str(get_default_log_path()),
        help="Path to log file (default: per-user xrfocus directory)",
    )
    parser.add_argument(
        "--log-format",
        choices=["plain", "json"],
        default="plain",
        help="Log format (plain or json)",
    )


def _build_logging_parent() -> argparse.ArgumentParser:
    parent = argparse.ArgumentParser(add_help=False)
    _add_logging_args(parent)
    return parent


def _add_timing_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--debounce-ms", type=int, default=None, help="Delay before restoring after a visibility change")
    parser.add_argument("--enter-delay-ms", type=int, default=None, help="Delay before restoring after entering VR")
    parser.add_argument("--reset-delay-ms", type=int, default=None, help="Gap between disable and re-enable of a target")
    parser.add_argument("--settle-delay-ms", type=int, default=None, help="Delay before the controllersupdated notification")
    parser.add_argument("--session-poll-ms", type=int, default=None, help="Session replacement polling interval")
    parser.add_argument("--controllers", default=None, help="Comma-separated controller entity ids")


def _config_from_args(args: argparse.Namespace) -> RecoveryConfig:
    controllers = getattr(args, "controllers", None)
    return RecoveryConfig.from_env().with_overrides(
        debounce_ms=getattr(args, "debounce_ms", None),
        enter_delay_ms=getattr(args, "enter_delay_ms", None),
        reset_delay_ms=getattr(args, "reset_delay_ms", None),
        settle_delay_ms=getattr(args, "settle_delay_ms", None),
        session_poll_ms=getattr(args, "session_poll_ms", None),
        controller_ids=tuple(c.strip() for c in controllers.split(",") if c.strip()) if controllers is not None else None,
    )


def selftest() -> int:
    """Fast import-and-init smoke test. Returns exit code."""
    try:
        from PyQt6.QtCore import QCoreApplication

        from .recovery import RecoveryController
        from .scene import Scene

        app = QCoreApplication.instance() or QCoreApplication([])  # noqa: F841
        controller = RecoveryController(Scene())
        controller.init()
        report = controller.restore_now("selftest")
        controller.teardown()
        if report is None or not report.ok:
            raise RuntimeError(f"restoration report not ok: {report}")

        msg = "Selftest OK: imports + controller init/restore/teardown"
        logging.getLogger(__name__).info(msg)
        print(msg)
        return 0
    except Exception as e:
        logging.getLogger(__name__).error("Selftest failed: %s", e)
        return 1


def cmd_config(args) -> int:
    print(json.dumps(_config_from_args(args).to_dict(), indent=2))
    return 0


def cmd_simulate(args) -> int:
    """Run the scripted interruption scenario and print a JSON summary.

    Exit codes:
      0 input fully restored
      1 something stayed disabled or a notification was missing
    """
    from .simulate import run_simulation

    log = logging.getLogger(__name__)
    config = _config_from_args(args)
    progress = None if args.quiet_steps else (lambda step: log.info("[simulate] step: %s", step))
    summary = run_simulation(config, progress=progress)
    print(json.dumps(summary, indent=2 if args.pretty else None))
    return 0 if summary["restored"] else 1


def build_parser() -> argparse.ArgumentParser:
    logging_parent = _build_logging_parent()
    parser = argparse.ArgumentParser(
        description="xrfocus CLI",
        parents=[logging_parent],
    )
    sub = parser.add_subparsers(dest="command", required=False)

    def add_subparser(name: str, **kwargs: object) -> argparse.ArgumentParser:
        parents = list(kwargs.pop("parents", []))
        parents.insert(0, logging_parent)
        return sub.add_parser(name, parents=parents, **kwargs)

    add_subparser("selftest", help="Import, init, restore once, teardown; exit 0 on success")

    p_config = add_subparser("config", help="Print the resolved recovery configuration as JSON")
    _add_timing_args(p_config)

    p_sim = add_subparser("simulate", help="Run a scripted interruption against a demo scene")
    _add_timing_args(p_sim)
    p_sim.add_argument("--pretty", action="store_true", help="Indent the JSON summary")
    p_sim.add_argument("--quiet-steps", action="store_true", help="Do not log each scenario step")

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(
        level=args.log_level,
        log_file=args.log_file,
        json_format=(args.log_format == "json"),
        log_mode=args.log_mode,
        add_console=True,
    )

    cmd = args.command or "selftest"
    if cmd == "selftest":
        return selftest()
    if cmd == "config":
        return cmd_config(args)
    if cmd == "simulate":
        return cmd_simulate(args)
    parser.error(f"unknown command: {cmd}")
    return 2
