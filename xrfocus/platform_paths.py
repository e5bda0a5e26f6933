"""Platform-specific paths.

We intentionally avoid extra dependencies (e.g. platformdirs) and rely on
standard environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path


def is_windows() -> bool:
    return os.name == "nt"


def get_user_data_dir(app_name: str = "xrfocus") -> Path:
    """Return a persistent per-user data directory.

    Windows: %LOCALAPPDATA%\\xrfocus, elsewhere ~/.xrfocus.
    ``XRFOCUS_HOME`` overrides both.
    """
    override = os.getenv("XRFOCUS_HOME")
    if override:
        return Path(override)
    if is_windows():
        base = os.getenv("LOCALAPPDATA") or os.getenv("APPDATA")
        if base:
            return Path(base) / app_name
        return Path.home() / "AppData" / "Local" / app_name
    return Path.home() / f".{app_name.lower()}"


def ensure_dir(path: Path) -> Path:
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path
