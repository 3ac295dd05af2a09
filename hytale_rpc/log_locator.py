from __future__ import annotations

import logging
import os
import sys
from collections.abc import Iterable
from pathlib import Path

from hytale_rpc.models import AppConfig

LOGGER = logging.getLogger("hytale_rpc.log_locator")

_LOGS_SUBPATH = Path("Hytale") / "UserData" / "Logs"
_PROTON_SUBPATH = (
    Path("steamapps")
    / "compatdata"
    / "Hytale"
    / "pfx"
    / "drive_c"
    / "users"
    / "steamuser"
    / "AppData"
    / "Roaming"
    / _LOGS_SUBPATH
)


def default_log_directories(home: Path | None = None, platform: str | None = None) -> list[Path]:
    home = home or Path.home()
    platform = platform or sys.platform

    paths = [home / ".hytale" / "UserData" / "Logs"]

    if platform == "darwin":
        paths.append(home / "Library" / "Application Support" / _LOGS_SUBPATH)
    elif platform == "win32":
        for variable in ("LOCALAPPDATA", "APPDATA"):
            root = os.environ.get(variable)
            if root:
                paths.append(Path(root) / _LOGS_SUBPATH)
    else:
        paths.extend(
            [
                home / ".local" / "share" / _LOGS_SUBPATH,
                home / ".config" / _LOGS_SUBPATH,
                home / ".var" / "app" / "com.hytale.Hytale" / "data" / _LOGS_SUBPATH,
                home / ".var" / "app" / "com.hytale.Hytale" / "config" / _LOGS_SUBPATH,
                home / ".steam" / "steam" / _PROTON_SUBPATH,
                home / ".local" / "share" / "Steam" / _PROTON_SUBPATH,
            ]
        )

    return paths


def candidate_log_directories(config: AppConfig) -> list[Path]:
    output: list[Path] = []
    seen: set[Path] = set()
    extra = [Path(raw).expanduser() for raw in config.extra_log_directories if raw.strip()]
    for path in [*extra, *default_log_directories()]:
        if path in seen:
            continue
        seen.add(path)
        output.append(path)
    return output


def find_latest_log_file(directories: Iterable[Path], suffix: str) -> Path | None:
    latest: tuple[Path, float] | None = None

    for directory in directories:
        try:
            if not directory.is_dir():
                continue
            entries = list(directory.iterdir())
        except OSError as exc:
            LOGGER.debug("Skipping unreadable log directory %s: %s", directory, exc)
            continue

        for entry in entries:
            if not entry.name.endswith(suffix):
                continue
            try:
                if not entry.is_file():
                    continue
                modified = entry.stat().st_mtime
            except OSError:
                continue

            # Strict comparison keeps the first-seen file on ties.
            if latest is None or modified > latest[1]:
                latest = (entry, modified)

    return latest[0] if latest else None
