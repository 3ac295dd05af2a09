from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from hytale_rpc.log_locator import candidate_log_directories
from hytale_rpc.log_watcher import LogWatcher
from hytale_rpc.models import AgentStatus, AppConfig, GameActivity, InLauncher
from hytale_rpc.presence import PresenceClient, PresenceError, details_text, state_text
from hytale_rpc.process import ProcessDetector

LOGGER = logging.getLogger("hytale_rpc.agent")

WAITING_TEXT = "Waiting for Hytale..."
DISCORD_WAITING_TEXT = "Waiting for Discord..."
NOTIFICATION_TITLE = "Hytale RPC"

Notifier = Callable[[str, str], None]


class PresenceAgent:
    def __init__(
        self,
        config: AppConfig,
        watcher: LogWatcher | None = None,
        detector: ProcessDetector | None = None,
        presence: PresenceClient | None = None,
        notifier: Notifier | None = None,
        once: bool = False,
    ) -> None:
        self._config = config
        self._watcher = watcher or LogWatcher(
            directories=lambda: candidate_log_directories(self.config()),
            suffix=config.log_file_suffix,
        )
        self._detector = detector or ProcessDetector()
        self._presence = presence or PresenceClient(config.client_id)
        self._notifier = notifier
        self._once = once

        self._game_was_running = False
        self._launcher_was_running = False

        self._stop_event = threading.Event()
        self._state_lock = threading.Lock()
        self._is_running = False
        self._activity: GameActivity = self._watcher.state

    def run(self) -> None:
        with self._state_lock:
            if self._is_running:
                LOGGER.warning("Presence agent is already running")
                return
            self._is_running = True
            self._stop_event.clear()

        LOGGER.info("Starting Hytale presence agent poll_interval=%.1fs", self.config().poll_interval_seconds)

        try:
            while not self._stop_event.is_set():
                self.run_cycle()

                if self._once:
                    break

                if self._stop_event.wait(self.config().poll_interval_seconds):
                    break
        except KeyboardInterrupt:
            LOGGER.info("Received interrupt, stopping presence agent")
        finally:
            LOGGER.info("Shutting down presence agent")
            self._presence.disconnect()
            with self._state_lock:
                self._is_running = False

    def stop(self) -> None:
        self._stop_event.set()

    def config(self) -> AppConfig:
        with self._state_lock:
            return self._config

    def update_config(self, config: AppConfig) -> None:
        with self._state_lock:
            self._config = config
        LOGGER.info(
            "Config updated show_world_name=%s show_server_ip=%s",
            config.show_world_name,
            config.show_server_ip,
        )

    def status(self) -> AgentStatus:
        with self._state_lock:
            return AgentStatus(
                running=self._is_running and not self._stop_event.is_set(),
                game_running=self._game_was_running,
                launcher_running=self._launcher_was_running,
                presence_connected=self._presence.is_connected(),
                activity=self._activity,
            )

    def status_text(self) -> str:
        status = self.status()
        if (status.game_running or status.launcher_running) and not status.presence_connected:
            return DISCORD_WAITING_TEXT
        if status.game_running:
            activity = status.activity
            return f"{details_text(activity)} - {state_text(activity, self.config())}"
        if status.launcher_running:
            return "In Launcher"
        return WAITING_TEXT

    def run_cycle(self) -> None:
        try:
            self._detector.refresh()
            game_running = self._detector.is_game_running()
            launcher_running = self._detector.is_launcher_running()

            self._handle_game_edges(game_running)
            self._handle_launcher_edges(launcher_running)

            with self._state_lock:
                self._game_was_running = game_running
                self._launcher_was_running = launcher_running

            if game_running:
                self._ensure_connected()
                if self._poll_log():
                    LOGGER.info("Activity changed: %s", self.status_text())
                self._publish(self._watcher.state)
            elif launcher_running:
                self._ensure_connected()
                self._publish(InLauncher())
            else:
                self._release_presence()
        except Exception:
            LOGGER.exception("Unhandled error during presence cycle")

    def _handle_game_edges(self, game_running: bool) -> None:
        if game_running and not self._game_was_running:
            LOGGER.info("Hytale Game detected")
            self._notify("Hytale Game detected")
        elif not game_running and self._game_was_running:
            LOGGER.info("Hytale Game closed")
            self._watcher.reset()
            self._set_activity(self._watcher.state)
            if self._presence.is_connected():
                try:
                    self._presence.clear()
                except PresenceError as exc:
                    LOGGER.warning("Could not clear Discord presence: %s", exc)
            self._notify("Hytale Game closed")

    def _handle_launcher_edges(self, launcher_running: bool) -> None:
        if launcher_running and not self._launcher_was_running:
            LOGGER.info("Hytale Launcher detected")
        elif not launcher_running and self._launcher_was_running:
            LOGGER.info("Hytale Launcher closed")

    def _poll_log(self) -> bool:
        try:
            changed = self._watcher.update()
        except OSError as exc:
            LOGGER.warning("Error reading log file: %s", exc)
            changed = False
        self._set_activity(self._watcher.state)
        return changed

    def _ensure_connected(self) -> None:
        if self._presence.is_connected():
            return
        try:
            self._presence.connect()
        except PresenceError as exc:
            LOGGER.warning("Could not connect to Discord RPC: %s", exc)

    def _publish(self, activity: GameActivity) -> None:
        self._set_activity(activity)
        if not self._presence.is_connected():
            return
        try:
            self._presence.update(activity, self.config())
        except PresenceError as exc:
            LOGGER.error("Failed to update Discord RPC: %s", exc)

    def _release_presence(self) -> None:
        if not self._presence.is_connected():
            return
        try:
            self._presence.clear()
        except PresenceError as exc:
            LOGGER.warning("Could not clear Discord presence: %s", exc)
        self._presence.disconnect()

    def _set_activity(self, activity: GameActivity) -> None:
        with self._state_lock:
            self._activity = activity

    def _notify(self, message: str) -> None:
        if self._notifier is None:
            return
        try:
            self._notifier(NOTIFICATION_TITLE, message)
        except Exception as exc:
            LOGGER.warning("Notification failed: %s", exc)
