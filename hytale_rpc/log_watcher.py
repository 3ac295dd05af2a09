from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import replace
from pathlib import Path

from hytale_rpc.log_locator import find_latest_log_file
from hytale_rpc.models import (
    DEFAULT_LOG_FILE_SUFFIX,
    GameActivity,
    Idle,
    InMainMenu,
    InMultiplayerSession,
    InSingleplayerWorld,
    Loading,
)
from hytale_rpc.patterns import DEFAULT_PATTERNS, LogPatterns
from hytale_rpc.utils import format_stage_name

LOGGER = logging.getLogger("hytale_rpc.log_watcher")

DEFAULT_WORLD_NAME = "Exploring Orbis"

_LOOPBACK_HOSTS = {"127.0.0.1", "localhost", "::1"}


# Lines go through _HANDLERS in order and the first handler that applies
# decides the result. The loading stage check runs before the generic
# in-game checks. Address and name lines only prime pending fields that a
# later in-game line folds into the visible state.
class LogWatcher:
    def __init__(
        self,
        directories: Callable[[], Iterable[Path]],
        suffix: str = DEFAULT_LOG_FILE_SUFFIX,
        patterns: LogPatterns = DEFAULT_PATTERNS,
    ) -> None:
        self._directories = directories
        self._suffix = suffix
        self._patterns = patterns

        self._current_log_path: Path | None = None
        self._file_position = 0
        self._state: GameActivity = Idle()

        self._pending_world_name: str | None = None
        self._pending_server_address: str | None = None
        self._pending_server_name: str | None = None
        self._is_multiplayer = False

    @property
    def state(self) -> GameActivity:
        return self._state

    @property
    def current_log_path(self) -> Path | None:
        return self._current_log_path

    @property
    def file_position(self) -> int:
        return self._file_position

    def reset(self) -> None:
        self._current_log_path = None
        self._file_position = 0
        self._state = Idle()
        self._clear_pending()

    def update(self) -> bool:
        latest = find_latest_log_file(self._directories(), self._suffix)

        if latest != self._current_log_path:
            if latest is not None:
                LOGGER.info("Found log file: %s", latest)
            self._current_log_path = latest
            self._file_position = 0

        log_path = self._current_log_path
        if log_path is None:
            LOGGER.debug("No log file found")
            return False

        file_size = log_path.stat().st_size

        if file_size < self._file_position:
            LOGGER.info("Log file %s was truncated, resetting position", log_path)
            self._file_position = 0
            self._state = Idle()

        if file_size == self._file_position:
            return False

        state_changed = False
        with log_path.open("rb") as handle:
            handle.seek(self._file_position)
            while True:
                raw = handle.readline()
                if not raw:
                    break
                if self.parse_line(raw.decode("utf-8", errors="replace")):
                    state_changed = True
            self._file_position = handle.tell()

        return state_changed

    def parse_line(self, raw_line: str) -> bool:
        raw_line = raw_line.strip()
        if not raw_line:
            return False

        # Timestamp|Level|Source|Message
        parts = raw_line.split("|", 3)
        line = parts[3].strip() if len(parts) == 4 else raw_line

        for handler in self._HANDLERS:
            result = handler(self, line)
            if result is not None:
                return result
        return False

    def _clear_pending(self) -> None:
        self._pending_world_name = None
        self._pending_server_address = None
        self._pending_server_name = None
        self._is_multiplayer = False

    def _multiplayer_session(self) -> InMultiplayerSession:
        return InMultiplayerSession(
            server_address=self._pending_server_address,
            server_name=self._pending_server_name,
        )

    def _on_main_menu(self, line: str) -> bool | None:
        if not self._patterns.main_menu.search(line):
            return None
        LOGGER.debug("Detected: main menu")
        self._state = InMainMenu()
        self._clear_pending()
        return True

    def _on_singleplayer_world(self, line: str) -> bool | None:
        match = self._patterns.singleplayer_world.search(line)
        if not match:
            return None
        name = match.group(1)
        LOGGER.debug("Detected: connecting to singleplayer world %r", name)
        self._pending_world_name = name
        self._is_multiplayer = False
        self._state = Loading(world_name=name, is_multiplayer=False)
        return True

    def _on_singleplayer_create(self, line: str) -> bool | None:
        if not self._patterns.singleplayer_create.search(line):
            return None
        LOGGER.debug("Detected: creating singleplayer world")
        self._is_multiplayer = False
        self._state = Loading(world_name=self._pending_world_name, is_multiplayer=False)
        return True

    def _on_multiplayer_connect(self, line: str) -> bool | None:
        if not self._patterns.multiplayer_connect.search(line):
            return None
        LOGGER.debug("Detected: multiplayer connection")
        self._is_multiplayer = True
        self._state = Loading(world_name=None, is_multiplayer=True)
        return True

    def _on_loading_stage(self, line: str) -> bool | None:
        match = self._patterns.loading_stage.search(line)
        if not match or not isinstance(self._state, Loading):
            return None
        stage = match.group(2)
        LOGGER.debug("Detected: loading stage %r", stage)
        self._state = replace(self._state, sub_stage=f"Loading: {format_stage_name(stage)}")
        return True

    def _on_server_address(self, line: str) -> bool | None:
        match = self._patterns.server_connect.search(line)
        if not match:
            return None
        host, port = match.group(1), match.group(2)
        address = f"{host}:{port}"
        LOGGER.debug("Detected: server address %s", address)

        if host in _LOOPBACK_HOSTS:
            LOGGER.debug("Loopback address, treating session as singleplayer")
            self._is_multiplayer = False
        else:
            self._pending_server_address = address
            self._is_multiplayer = True
        return False

    def _on_server_name(self, line: str) -> bool | None:
        match = self._patterns.server_name.search(line)
        if not match:
            return None
        name = match.group(1) or match.group(2)
        LOGGER.debug("Detected: server name %r", name)
        self._pending_server_name = name
        return False

    def _on_in_game(self, line: str) -> bool | None:
        if not (self._patterns.in_game.search(line) or self._patterns.world_loaded.search(line)):
            return None
        LOGGER.debug("Detected: in game / world loaded")
        if self._is_multiplayer:
            self._state = self._multiplayer_session()
        else:
            self._state = InSingleplayerWorld(world_name=self._pending_world_name or DEFAULT_WORLD_NAME)
        return True

    def _on_playing_singleplayer(self, line: str) -> bool | None:
        match = self._patterns.playing_singleplayer.search(line)
        if not match or match.group(1) is None:
            return None
        LOGGER.debug("Detected: playing singleplayer %r", match.group(1))
        self._state = InSingleplayerWorld(world_name=match.group(1))
        return True

    def _on_playing_multiplayer(self, line: str) -> bool | None:
        if not self._patterns.playing_multiplayer.search(line):
            return None
        LOGGER.debug("Detected: playing multiplayer")
        if isinstance(self._state, InMultiplayerSession):
            return False
        self._state = self._multiplayer_session()
        return True

    # A handler returns None when the line does not apply to it, otherwise
    # whether the visible state changed.
    _HANDLERS: tuple[Callable[..., bool | None], ...] = (
        _on_main_menu,
        _on_singleplayer_world,
        _on_singleplayer_create,
        _on_multiplayer_connect,
        _on_loading_stage,
        _on_server_address,
        _on_server_name,
        _on_in_game,
        _on_playing_singleplayer,
        _on_playing_multiplayer,
    )
