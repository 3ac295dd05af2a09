from __future__ import annotations

import json
import os
import sys
from dataclasses import asdict
from pathlib import Path

from hytale_rpc.models import DEFAULT_CLIENT_ID, DEFAULT_LOG_FILE_SUFFIX, AppConfig

_ALLOWED_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
_MIN_POLL_INTERVAL_SECONDS = 0.5


def _user_config_dir() -> Path:
    if sys.platform == "win32":
        app_data = os.environ.get("APPDATA")
        if app_data:
            return Path(app_data)
    elif sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg)
    return Path.home() / ".config"


def default_config_path() -> Path:
    return _user_config_dir() / "hytale-rpc" / "config.json"


def _read_bool(payload: dict, key: str, default: bool) -> bool:
    value = payload.get(key, default)
    if not isinstance(value, bool):
        raise ValueError(f"Invalid {key}: {value!r}. Expected true or false")
    return value


def _read_str(payload: dict, key: str, default: str) -> str:
    value = payload.get(key)
    if value is None:
        return default
    return str(value).strip() or default


def load_config(path: str | Path | None = None) -> AppConfig:
    config_path = Path(path) if path else default_config_path()
    if not config_path.exists():
        return AppConfig()

    payload = json.loads(config_path.read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError(f"Invalid config in {config_path}: expected a JSON object")

    raw_interval = payload.get("poll_interval_seconds", 3.0)
    if isinstance(raw_interval, bool) or not isinstance(raw_interval, (int, float)):
        raise ValueError(f"Invalid poll_interval_seconds: {raw_interval!r}")

    log_level = str(payload.get("log_level", "INFO")).strip().upper()
    if log_level not in _ALLOWED_LOG_LEVELS:
        raise ValueError(f"Invalid log_level: {log_level}. Expected one of {sorted(_ALLOWED_LOG_LEVELS)}")

    raw_directories = payload.get("extra_log_directories", [])
    if not isinstance(raw_directories, list):
        raise ValueError("Invalid extra_log_directories: expected a list of paths")

    return AppConfig(
        show_world_name=_read_bool(payload, "show_world_name", True),
        show_server_ip=_read_bool(payload, "show_server_ip", True),
        poll_interval_seconds=max(float(raw_interval), _MIN_POLL_INTERVAL_SECONDS),
        log_level=log_level,
        client_id=_read_str(payload, "client_id", DEFAULT_CLIENT_ID),
        log_file_suffix=_read_str(payload, "log_file_suffix", DEFAULT_LOG_FILE_SUFFIX),
        extra_log_directories=[str(item) for item in raw_directories if str(item).strip()],
    )


def save_config(config: AppConfig, path: str | Path | None = None) -> Path:
    output_path = Path(path) if path else default_config_path()
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(asdict(config), indent=2), encoding="utf-8")
    return output_path
