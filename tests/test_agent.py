from __future__ import annotations

from pathlib import Path

from hytale_rpc.agent import DISCORD_WAITING_TEXT, WAITING_TEXT, PresenceAgent
from hytale_rpc.log_watcher import LogWatcher
from hytale_rpc.models import AppConfig, GameActivity, Idle, InLauncher, InMainMenu
from hytale_rpc.presence import PresenceError


class _FakeDetector:
    def __init__(self) -> None:
        self.game = False
        self.launcher = False
        self.refreshes = 0

    def refresh(self) -> None:
        self.refreshes += 1

    def is_game_running(self) -> bool:
        return self.game

    def is_launcher_running(self) -> bool:
        return self.launcher


class _FakePresence:
    def __init__(self, fail_connect: bool = False) -> None:
        self.connected = False
        self.fail_connect = fail_connect
        self.published: list[GameActivity] = []
        self.clears = 0
        self.disconnects = 0

    def is_connected(self) -> bool:
        return self.connected

    def connect(self) -> None:
        if self.fail_connect:
            raise PresenceError("Discord not running")
        self.connected = True

    def disconnect(self) -> None:
        self.connected = False
        self.disconnects += 1

    def clear(self) -> None:
        self.clears += 1

    def update(self, activity: GameActivity, config: AppConfig) -> None:
        self.published.append(activity)


def _make_agent(log_dir: Path, presence: _FakePresence | None = None):
    detector = _FakeDetector()
    presence = presence or _FakePresence()
    notifications: list[str] = []
    agent = PresenceAgent(
        config=AppConfig(poll_interval_seconds=0.5),
        watcher=LogWatcher(directories=lambda: [log_dir]),
        detector=detector,
        presence=presence,
        notifier=lambda _title, message: notifications.append(message),
        once=True,
    )
    return agent, detector, presence, notifications


def test_game_session_publishes_log_activity_and_resets_on_exit(tmp_path) -> None:
    (tmp_path / "session_client.log").write_text("Changing Stage to MainMenu\n", encoding="utf-8")
    agent, detector, presence, notifications = _make_agent(tmp_path)

    detector.game = True
    agent.run_cycle()

    assert notifications == ["Hytale Game detected"]
    assert presence.published == [InMainMenu()]
    assert agent.status().activity == InMainMenu()
    assert agent.status_text() == "In Main Menu - Idle"

    detector.game = False
    agent.run_cycle()

    assert notifications == ["Hytale Game detected", "Hytale Game closed"]
    assert agent.status().activity == Idle()
    assert presence.clears == 2
    assert presence.disconnects == 1
    assert agent.status_text() == WAITING_TEXT


def test_launcher_only_publishes_launcher_activity(tmp_path) -> None:
    agent, detector, presence, notifications = _make_agent(tmp_path)

    detector.launcher = True
    agent.run_cycle()

    assert presence.published == [InLauncher()]
    assert notifications == []
    assert agent.status_text() == "In Launcher"


def test_connect_failure_skips_publish_but_still_reads_log(tmp_path) -> None:
    (tmp_path / "session_client.log").write_text("Changing Stage to MainMenu\n", encoding="utf-8")
    agent, detector, presence, _ = _make_agent(tmp_path, presence=_FakePresence(fail_connect=True))

    detector.game = True
    agent.run_cycle()

    assert presence.published == []
    assert agent.status().activity == InMainMenu()
    assert agent.status().presence_connected is False
    assert agent.status_text() == DISCORD_WAITING_TEXT


def test_log_read_error_is_not_fatal(tmp_path, monkeypatch) -> None:
    agent, detector, presence, _ = _make_agent(tmp_path)

    def _boom(self) -> bool:
        raise PermissionError("locked")

    monkeypatch.setattr(LogWatcher, "update", _boom)
    detector.game = True
    agent.run_cycle()

    assert presence.published == [Idle()]


def test_run_once_disconnects_on_exit(tmp_path) -> None:
    agent, detector, presence, _ = _make_agent(tmp_path)
    detector.launcher = True

    agent.run()

    assert detector.refreshes == 1
    assert presence.disconnects == 1
    assert agent.status().running is False


def test_update_config_is_used_for_status_text(tmp_path) -> None:
    (tmp_path / "session_client.log").write_text('Singleplayer world "Foo"\n', encoding="utf-8")
    agent, detector, _, _ = _make_agent(tmp_path)
    detector.game = True
    agent.run_cycle()
    assert agent.status_text() == "Playing Singleplayer - World: Foo"

    agent.update_config(AppConfig(show_world_name=False))

    assert agent.status_text() == "Playing Singleplayer - In Game"
