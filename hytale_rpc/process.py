from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

import psutil

from hytale_rpc.utils import normalize_process_name

GAME_PROCESSES = ["hytale", "hytale.exe", "hytaleclient", "hytaleclient.exe"]
LAUNCHER_PROCESSES = ["hytalelauncher", "hytalelauncher.exe", "hytale-launcher"]


def _iter_processes() -> Iterable[Any]:
    return psutil.process_iter(["name"])


class ProcessDetector:
    def __init__(
        self,
        game_names: list[str] | None = None,
        launcher_names: list[str] | None = None,
        process_source: Callable[[], Iterable[Any]] = _iter_processes,
    ) -> None:
        self._game_names = [normalize_process_name(name) for name in game_names or GAME_PROCESSES]
        self._launcher_names = [normalize_process_name(name) for name in launcher_names or LAUNCHER_PROCESSES]
        self._process_source = process_source
        self._running_names: set[str] = set()

    def refresh(self) -> None:
        names: set[str] = set()
        for proc in self._process_source():
            try:
                name = normalize_process_name(proc.info.get("name"))
            except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                continue
            if name:
                names.add(name)
        self._running_names = names

    def is_game_running(self) -> bool:
        return self._any_running(self._game_names)

    def is_launcher_running(self) -> bool:
        return self._any_running(self._launcher_names)

    def running_names(self) -> set[str]:
        return set(self._running_names)

    def _any_running(self, targets: list[str]) -> bool:
        for running in self._running_names:
            for target in targets:
                if running == target or running.startswith(f"{target}."):
                    return True
        return False
