from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

DEFAULT_CLIENT_ID = "1461306150497550376"
DEFAULT_LOG_FILE_SUFFIX = "_client.log"


@dataclass(frozen=True)
class InLauncher:
    pass


@dataclass(frozen=True)
class InMainMenu:
    pass


@dataclass(frozen=True)
class Loading:
    world_name: str | None = None
    is_multiplayer: bool = False
    sub_stage: str | None = None


@dataclass(frozen=True)
class InSingleplayerWorld:
    world_name: str


@dataclass(frozen=True)
class InMultiplayerSession:
    server_address: str | None = None
    server_name: str | None = None


@dataclass(frozen=True)
class Idle:
    pass


GameActivity = Union[InLauncher, InMainMenu, Loading, InSingleplayerWorld, InMultiplayerSession, Idle]


def is_in_game(activity: GameActivity) -> bool:
    return isinstance(activity, (InSingleplayerWorld, InMultiplayerSession))


@dataclass(frozen=True)
class AppConfig:
    show_world_name: bool = True
    show_server_ip: bool = True
    poll_interval_seconds: float = 3.0
    log_level: str = "INFO"
    client_id: str = DEFAULT_CLIENT_ID
    log_file_suffix: str = DEFAULT_LOG_FILE_SUFFIX
    extra_log_directories: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class AgentStatus:
    running: bool
    game_running: bool
    launcher_running: bool
    presence_connected: bool
    activity: GameActivity
