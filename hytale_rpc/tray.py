from __future__ import annotations

import logging
import os
import queue
import threading
import webbrowser
from dataclasses import replace
from pathlib import Path

import pystray
from PIL import Image, ImageDraw
from pystray import Menu, MenuItem

from hytale_rpc.agent import WAITING_TEXT, Notifier, PresenceAgent
from hytale_rpc.config import save_config
from hytale_rpc.logging_setup import add_file_handler
from hytale_rpc.models import AppConfig
from hytale_rpc.presence import WEBSITE_URL

LOGGER = logging.getLogger("hytale_rpc.tray")

PROJECT_URL = "https://github.com/MopigamesYT/hytale-rpc-rs"


def _tray_log_path() -> Path:
    local_app_data = os.environ.get("LOCALAPPDATA")
    if local_app_data:
        return Path(local_app_data) / "HytaleRPC" / "tray.log"
    return Path("logs") / "tray.log"


def _open_path(path: Path) -> OSError | None:
    try:
        if not webbrowser.open(path.resolve().as_uri()):
            return OSError(f"No handler available for {path}")
        return None
    except OSError as exc:
        return exc


class AgentController:
    def __init__(self, config: AppConfig, config_path: Path | None) -> None:
        self._config = config
        self._config_path = config_path

        self._agent: PresenceAgent | None = None
        self._thread: threading.Thread | None = None
        self._notifier: Notifier | None = None
        self._lock = threading.Lock()

    def set_notifier(self, notifier: Notifier) -> None:
        with self._lock:
            self._notifier = notifier

    def start(self) -> None:
        with self._lock:
            if self._thread and self._thread.is_alive():
                return

            self._agent = PresenceAgent(config=self._config, notifier=self._notifier)
            self._thread = threading.Thread(target=self._agent.run, name="hytale-rpc-agent", daemon=True)
            self._thread.start()

    def stop(self) -> None:
        with self._lock:
            agent = self._agent
            thread = self._thread

        if not agent or not thread:
            return

        agent.stop()
        thread.join(timeout=5)

        with self._lock:
            self._thread = None
            self._agent = None

    def config(self) -> AppConfig:
        with self._lock:
            return self._config

    def set_show_world_name(self, enabled: bool) -> None:
        self._apply_config(replace(self.config(), show_world_name=enabled))

    def set_show_server_ip(self, enabled: bool) -> None:
        self._apply_config(replace(self.config(), show_server_ip=enabled))

    def status_text(self) -> str:
        with self._lock:
            agent = self._agent
        if not agent:
            return "Stopped"

        if not agent.status().running:
            return WAITING_TEXT
        return agent.status_text()

    def _apply_config(self, config: AppConfig) -> None:
        with self._lock:
            self._config = config
            agent = self._agent

        if agent:
            agent.update_config(config)

        try:
            path = save_config(config, self._config_path)
            LOGGER.info("Saved config to %s", path)
        except OSError as exc:
            LOGGER.error("Failed to save config: %s", exc)


class SettingsWindow:
    def __init__(self, controller: AgentController) -> None:
        self._controller = controller
        self._commands: queue.Queue[str] = queue.Queue()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    def show(self) -> None:
        with self._lock:
            if not self._thread or not self._thread.is_alive():
                self._thread = threading.Thread(
                    target=self._run_loop,
                    name="hytale-rpc-settings",
                    daemon=True,
                )
                self._thread.start()

        self._commands.put("show")

    def shutdown(self) -> None:
        with self._lock:
            thread = self._thread

        if not thread or not thread.is_alive():
            return

        self._commands.put("quit")
        thread.join(timeout=3)

        with self._lock:
            if self._thread is thread and not thread.is_alive():
                self._thread = None

    def _run_loop(self) -> None:
        try:
            import tkinter as tk
            from tkinter import ttk
        except ImportError:
            LOGGER.exception("Settings window unavailable because tkinter could not be imported")
            return

        root = tk.Tk()
        root.title("Hytale RPC Settings")
        root.geometry("300x200")
        root.resizable(False, False)
        root.withdraw()

        container = ttk.Frame(root, padding=20)
        container.grid(row=0, column=0, sticky="nsew")
        container.columnconfigure(0, weight=1)

        config = self._controller.config()
        world_value = tk.BooleanVar(value=config.show_world_name)
        server_value = tk.BooleanVar(value=config.show_server_ip)
        status_value = tk.StringVar(value=self._controller.status_text())

        ttk.Label(container, text="Configuration", font=("", 12, "bold")).grid(row=0, column=0, sticky="w")
        ttk.Label(container, textvariable=status_value, wraplength=260, justify="left").grid(
            row=1,
            column=0,
            sticky="ew",
            pady=(4, 10),
        )

        def _toggle_world() -> None:
            self._controller.set_show_world_name(bool(world_value.get()))

        def _toggle_server() -> None:
            self._controller.set_show_server_ip(bool(server_value.get()))

        def _refresh() -> None:
            current = self._controller.config()
            if world_value.get() != current.show_world_name:
                world_value.set(current.show_world_name)
            if server_value.get() != current.show_server_ip:
                server_value.set(current.show_server_ip)
            status_value.set(self._controller.status_text())
            root.after(1000, _refresh)

        def _process_commands() -> None:
            while True:
                try:
                    command = self._commands.get_nowait()
                except queue.Empty:
                    break

                if command == "show":
                    root.deiconify()
                    root.lift()
                    try:
                        root.focus_force()
                    except tk.TclError:
                        pass
                    continue

                if command == "quit":
                    root.destroy()
                    return

            root.after(100, _process_commands)

        ttk.Checkbutton(container, text="Show World Name", variable=world_value, command=_toggle_world).grid(
            row=2,
            column=0,
            sticky="w",
        )
        ttk.Checkbutton(container, text="Show Server IP", variable=server_value, command=_toggle_server).grid(
            row=3,
            column=0,
            sticky="w",
        )
        ttk.Label(container, text="Changes apply immediately", foreground="gray").grid(
            row=4,
            column=0,
            sticky="w",
            pady=(20, 0),
        )

        root.protocol("WM_DELETE_WINDOW", root.withdraw)

        _refresh()
        _process_commands()

        try:
            root.mainloop()
        finally:
            current = threading.current_thread()
            with self._lock:
                if self._thread is current:
                    self._thread = None


class TrayApplication:
    def __init__(self, config: AppConfig, config_path: Path | None) -> None:
        self._controller = AgentController(config, config_path=config_path)
        self._log_path = _tray_log_path()
        add_file_handler(self._log_path, config.log_level)
        LOGGER.info("Tray logging initialized at %s", self._log_path)
        self._settings = SettingsWindow(controller=self._controller)

        self._icon = pystray.Icon(
            name="hytale-rpc",
            icon=self._build_icon(),
            title="Hytale Discord Rich Presence",
            menu=self._build_menu(),
        )
        self._controller.set_notifier(self._notify)

    def run(self) -> None:
        LOGGER.info("Starting tray UI")
        self._controller.start()
        self._icon.run()

    def _build_menu(self) -> Menu:
        return Menu(
            MenuItem(lambda _: self._controller.status_text(), None, enabled=False),
            Menu.SEPARATOR,
            MenuItem("Settings", self._on_open_settings),
            MenuItem("Show World Name", self._toggle_world_name, checked=self._is_world_name_shown),
            MenuItem("Show Server IP", self._toggle_server_ip, checked=self._is_server_ip_shown),
            MenuItem("Open Logs", self._on_open_logs),
            MenuItem("Hytale Website", self._on_open_website),
            MenuItem("GitHub", self._on_open_project),
            Menu.SEPARATOR,
            MenuItem("Exit", self._on_exit),
        )

    def _notify(self, title: str, message: str) -> None:
        self._icon.notify(message, title)

    def _on_open_settings(self, _icon: pystray.Icon, _item: MenuItem) -> None:
        self._settings.show()

    def _toggle_world_name(self, _icon: pystray.Icon, _item: MenuItem) -> None:
        self._controller.set_show_world_name(not self._controller.config().show_world_name)

    def _toggle_server_ip(self, _icon: pystray.Icon, _item: MenuItem) -> None:
        self._controller.set_show_server_ip(not self._controller.config().show_server_ip)

    def _is_world_name_shown(self, _item: MenuItem) -> bool:
        return self._controller.config().show_world_name

    def _is_server_ip_shown(self, _item: MenuItem) -> bool:
        return self._controller.config().show_server_ip

    def _on_open_logs(self, icon: pystray.Icon, _item: MenuItem) -> None:
        error = _open_path(self._log_path)
        if error:
            LOGGER.warning("Failed to open log file: %s", error)
            icon.notify("Could not open logs", "Hytale RPC")

    def _on_open_website(self, _icon: pystray.Icon, _item: MenuItem) -> None:
        webbrowser.open(WEBSITE_URL)

    def _on_open_project(self, _icon: pystray.Icon, _item: MenuItem) -> None:
        webbrowser.open(PROJECT_URL)

    def _on_exit(self, icon: pystray.Icon, _item: MenuItem) -> None:
        LOGGER.info("Exiting tray UI")
        self._settings.shutdown()
        self._controller.stop()
        icon.stop()

    @staticmethod
    def _build_icon() -> Image.Image:
        image = Image.new("RGB", (64, 64), color=(24, 30, 52))
        draw = ImageDraw.Draw(image)
        draw.polygon([(32, 6), (56, 20), (56, 44), (32, 58), (8, 44), (8, 20)], outline=(241, 196, 84), width=3)
        draw.line((22, 20, 22, 44), fill=(241, 196, 84), width=4)
        draw.line((42, 20, 42, 44), fill=(241, 196, 84), width=4)
        draw.line((22, 32, 42, 32), fill=(241, 196, 84), width=4)
        return image


def run_tray_app(config: AppConfig, config_path: Path | None = None) -> None:
    app = TrayApplication(config=config, config_path=config_path)
    app.run()
