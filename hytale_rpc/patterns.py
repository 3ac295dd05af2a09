from __future__ import annotations

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class LogPatterns:
    main_menu: re.Pattern[str]
    singleplayer_world: re.Pattern[str]
    singleplayer_create: re.Pattern[str]
    multiplayer_connect: re.Pattern[str]
    server_connect: re.Pattern[str]
    loading_stage: re.Pattern[str]
    in_game: re.Pattern[str]
    world_loaded: re.Pattern[str]
    server_name: re.Pattern[str]
    playing_singleplayer: re.Pattern[str]
    playing_multiplayer: re.Pattern[str]


def build_patterns() -> LogPatterns:
    return LogPatterns(
        # Changing from Stage Startup to MainMenu
        main_menu=re.compile(
            r"Changing Stage to MainMenu|Changing from Stage (?:Loading|GameLoading|Startup) to MainMenu"
        ),
        # Connecting to singleplayer world "TestWorld"...
        singleplayer_world=re.compile(r'Connecting to singleplayer world "([^"]+)"'),
        singleplayer_create=re.compile(r"Creating new singleplayer world in|Creating world"),
        multiplayer_connect=re.compile(
            r"Connecting to (?:multiplayer|dedicated) server|Server connection established"
        ),
        # Opening Quic Connection to play.hytale.com:5520
        server_connect=re.compile(r"Opening Quic Connection to ([\w.:-]+):(\d+)"),
        # Changing from loading stage Initial to BootingServer
        loading_stage=re.compile(r"Changing from loading stage (\w+) to (\w+)"),
        in_game=re.compile(
            r"Changing from Stage (?:GameLoading|Loading) to InGame"
            r"|GameInstance\.StartJoiningWorld"
            r"|GameInstance\.OnWorldJoined"
        ),
        world_loaded=re.compile(r"World loaded|World finished loading|World ready|Loading world:"),
        server_name=re.compile(r'Server name:?\s*"([^"]+)"|Joined server:?\s*"([^"]+)"'),
        playing_singleplayer=re.compile(
            r'Singleplayer world "([^"]+)"|Playing in singleplayer|Singleplayer mode'
        ),
        playing_multiplayer=re.compile(
            r"Playing in multiplayer|Multiplayer mode|Multi player|dedicated server"
        ),
    )


DEFAULT_PATTERNS = build_patterns()
