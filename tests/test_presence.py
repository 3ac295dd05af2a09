from __future__ import annotations

import pytest
from pypresence import PyPresenceException

from hytale_rpc.models import (
    AppConfig,
    Idle,
    InLauncher,
    InMainMenu,
    InMultiplayerSession,
    InSingleplayerWorld,
    Loading,
)
from hytale_rpc.presence import PresenceClient, PresenceError, details_text, state_text


class _FakeRpc:
    def __init__(self, client_id: str, fail_connect: bool = False) -> None:
        self.client_id = client_id
        self.fail_connect = fail_connect
        self.fail_update = False
        self.updates: list[dict] = []
        self.cleared = 0
        self.closed = False

    def connect(self) -> None:
        if self.fail_connect:
            raise PyPresenceException("Discord not running")

    def update(self, **payload) -> None:
        if self.fail_update:
            raise PyPresenceException("pipe closed")
        self.updates.append(payload)

    def clear(self) -> None:
        self.cleared += 1

    def close(self) -> None:
        self.closed = True


def _make_client(fail_connect: bool = False, **kwargs) -> tuple[PresenceClient, list[_FakeRpc]]:
    created: list[_FakeRpc] = []

    def _factory(client_id: str) -> _FakeRpc:
        rpc = _FakeRpc(client_id, fail_connect=fail_connect)
        created.append(rpc)
        return rpc

    return PresenceClient("123", presence_factory=_factory, **kwargs), created


def test_details_text_per_activity() -> None:
    assert details_text(InLauncher()) == "In Launcher"
    assert details_text(InMainMenu()) == "In Main Menu"
    assert details_text(Loading(is_multiplayer=True)) == "Joining Server"
    assert details_text(Loading()) == "Loading World"
    assert details_text(Loading(sub_stage="Loading: Booting Server")) == "Loading: Booting Server"
    assert details_text(InSingleplayerWorld("Foo")) == "Playing Singleplayer"
    assert details_text(InMultiplayerSession()) == "Playing Multiplayer"
    assert details_text(Idle()) == "Idle"


def test_state_text_respects_privacy_toggles() -> None:
    shown = AppConfig()
    hidden = AppConfig(show_world_name=False, show_server_ip=False)

    assert state_text(InSingleplayerWorld("Foo"), shown) == "World: Foo"
    assert state_text(InSingleplayerWorld("Foo"), hidden) == "In Game"
    assert state_text(InMultiplayerSession("1.2.3.4:5520", "Alpha"), shown) == "Server: Alpha"
    assert state_text(InMultiplayerSession("1.2.3.4:5520", None), shown) == "Server: 1.2.3.4:5520"
    assert state_text(InMultiplayerSession(None, None), shown) == "Online"
    assert state_text(InMultiplayerSession("1.2.3.4:5520", "Alpha"), hidden) == "Online"


def test_state_text_for_loading_and_idle() -> None:
    shown = AppConfig()
    hidden = AppConfig(show_world_name=False)

    assert state_text(Loading(world_name="Foo"), shown) == "Foo"
    assert state_text(Loading(), shown) == "..."
    assert state_text(Loading(sub_stage="Loading: Initial"), shown) == "Please wait..."
    assert state_text(Loading(world_name="Foo", sub_stage="Loading: Initial"), hidden) == "Please wait..."
    assert state_text(InLauncher(), shown) == "Ready to Play"
    assert state_text(InMainMenu(), shown) == "Idle"
    assert state_text(Idle(), shown) == "Waiting..."


def test_update_publishes_once_per_distinct_activity() -> None:
    client, created = _make_client()
    config = AppConfig()

    client.update(InMainMenu(), config)
    client.update(InMainMenu(), config)

    assert client.is_connected()
    assert len(created) == 1
    assert created[0].updates == [
        {
            "details": "In Main Menu",
            "state": "Idle",
            "large_image": "hytale_logo",
            "large_text": "Hytale",
            "buttons": [{"label": "Hytale Website", "url": "https://hytale.com"}],
        }
    ]


def test_update_republishes_when_config_changes_text() -> None:
    client, created = _make_client()
    activity = InSingleplayerWorld("Foo")

    client.update(activity, AppConfig())
    client.update(activity, AppConfig(show_world_name=False))

    assert [item["state"] for item in created[0].updates] == ["World: Foo", "In Game"]


def test_start_timestamp_tracks_in_game_session() -> None:
    ticks = iter([1_000.0, 2_000.0])
    client, created = _make_client(clock=lambda: next(ticks))
    config = AppConfig()

    client.update(Loading(world_name="Foo"), config)
    client.update(InSingleplayerWorld("Foo"), config)
    client.update(InMultiplayerSession("1.2.3.4:5520", None), config)
    client.update(InMainMenu(), config)

    updates = created[0].updates
    assert "start" not in updates[0]
    assert updates[1]["start"] == 1000
    assert updates[2]["start"] == 1000
    assert "start" not in updates[3]


def test_connect_failure_raises_presence_error() -> None:
    client, created = _make_client(fail_connect=True)

    with pytest.raises(PresenceError):
        client.connect()
    assert not client.is_connected()
    assert created[0].closed is True


def test_update_failure_marks_client_disconnected() -> None:
    client, created = _make_client()
    client.connect()
    created[0].fail_update = True

    with pytest.raises(PresenceError):
        client.update(InMainMenu(), AppConfig())

    assert not client.is_connected()
    assert created[0].closed is True

    client.update(InMainMenu(), AppConfig())
    assert len(created) == 2
    assert len(created[1].updates) == 1


def test_clear_and_disconnect() -> None:
    client, created = _make_client()
    client.update(InMainMenu(), AppConfig())

    client.clear()
    client.update(InMainMenu(), AppConfig())
    client.disconnect()
    client.disconnect()

    assert created[0].cleared == 1
    assert len(created[0].updates) == 2
    assert created[0].closed is True
    assert not client.is_connected()
