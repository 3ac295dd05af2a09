from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

from pypresence import Presence, PyPresenceException

from hytale_rpc.models import (
    AppConfig,
    GameActivity,
    InLauncher,
    InMainMenu,
    InMultiplayerSession,
    InSingleplayerWorld,
    Loading,
    is_in_game,
)

LOGGER = logging.getLogger("hytale_rpc.presence")

LARGE_IMAGE = "hytale_logo"
LARGE_TEXT = "Hytale"
WEBSITE_URL = "https://hytale.com"


class PresenceError(RuntimeError):
    pass


def _close_quietly(rpc: Any) -> None:
    try:
        rpc.close()
    except (PyPresenceException, OSError, RuntimeError) as exc:
        LOGGER.warning("Error closing Discord RPC: %s", exc)


def details_text(activity: GameActivity) -> str:
    if isinstance(activity, InLauncher):
        return "In Launcher"
    if isinstance(activity, InMainMenu):
        return "In Main Menu"
    if isinstance(activity, Loading):
        if activity.sub_stage:
            return activity.sub_stage
        return "Joining Server" if activity.is_multiplayer else "Loading World"
    if isinstance(activity, InSingleplayerWorld):
        return "Playing Singleplayer"
    if isinstance(activity, InMultiplayerSession):
        return "Playing Multiplayer"
    return "Idle"


def state_text(activity: GameActivity, config: AppConfig) -> str:
    if isinstance(activity, InLauncher):
        return "Ready to Play"
    if isinstance(activity, InMainMenu):
        return "Idle"
    if isinstance(activity, Loading):
        fallback = "Please wait..." if activity.sub_stage else "..."
        if config.show_world_name and activity.world_name:
            return activity.world_name
        return fallback
    if isinstance(activity, InSingleplayerWorld):
        if config.show_world_name:
            return f"World: {activity.world_name}"
        return "In Game"
    if isinstance(activity, InMultiplayerSession):
        if not config.show_server_ip:
            return "Online"
        label = activity.server_name or activity.server_address
        return f"Server: {label}" if label else "Online"
    return "Waiting..."


class PresenceClient:
    def __init__(
        self,
        client_id: str,
        presence_factory: Callable[[str], Any] = Presence,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._client_id = client_id
        self._presence_factory = presence_factory
        self._clock = clock

        self._rpc: Any | None = None
        self._start_timestamp: int | None = None
        self._last_published: tuple[GameActivity, str, str] | None = None

    def is_connected(self) -> bool:
        return self._rpc is not None

    def connect(self) -> None:
        if self._rpc is not None:
            return

        LOGGER.info("Connecting to Discord RPC")
        try:
            rpc = self._presence_factory(self._client_id)
        except (PyPresenceException, OSError) as exc:
            raise PresenceError(f"Failed to connect to Discord: {exc}") from exc

        try:
            rpc.connect()
        except (PyPresenceException, OSError) as exc:
            _close_quietly(rpc)
            raise PresenceError(f"Failed to connect to Discord: {exc}") from exc

        self._rpc = rpc
        LOGGER.info("Connected to Discord RPC")

    def disconnect(self) -> None:
        rpc = self._rpc
        self._rpc = None
        self._start_timestamp = None
        self._last_published = None
        if rpc is None:
            return

        _close_quietly(rpc)
        LOGGER.info("Disconnected from Discord RPC")

    def clear(self) -> None:
        if self._rpc is None:
            return

        try:
            self._rpc.clear()
        except (PyPresenceException, OSError) as exc:
            _close_quietly(self._rpc)
            self._mark_disconnected()
            raise PresenceError(f"Failed to clear activity: {exc}") from exc

        self._last_published = None
        LOGGER.debug("Cleared Discord presence")

    def update(self, activity: GameActivity, config: AppConfig) -> None:
        details = details_text(activity)
        state = state_text(activity, config)
        published = (activity, details, state)
        if published == self._last_published:
            return

        if self._rpc is None:
            self.connect()

        was_in_game = self._last_published is not None and is_in_game(self._last_published[0])
        if is_in_game(activity) and not was_in_game:
            self._start_timestamp = int(self._clock())
        elif not is_in_game(activity):
            self._start_timestamp = None

        payload: dict[str, Any] = {
            "details": details,
            "state": state,
            "large_image": LARGE_IMAGE,
            "large_text": LARGE_TEXT,
            "buttons": [{"label": "Hytale Website", "url": WEBSITE_URL}],
        }
        if self._start_timestamp is not None:
            payload["start"] = self._start_timestamp

        LOGGER.debug("Updating Discord presence: %s - %s", details, state)
        try:
            self._rpc.update(**payload)
        except (PyPresenceException, OSError) as exc:
            _close_quietly(self._rpc)
            self._mark_disconnected()
            raise PresenceError(f"Failed to update presence: {exc}") from exc

        self._last_published = published

    def _mark_disconnected(self) -> None:
        self._rpc = None
        self._last_published = None
        self._start_timestamp = None

