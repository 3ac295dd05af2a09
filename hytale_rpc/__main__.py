from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict, replace
from pathlib import Path

from hytale_rpc.agent import PresenceAgent
from hytale_rpc.config import default_config_path, load_config, save_config
from hytale_rpc.log_locator import candidate_log_directories, find_latest_log_file
from hytale_rpc.log_watcher import LogWatcher
from hytale_rpc.logging_setup import configure_logging
from hytale_rpc.models import AppConfig
from hytale_rpc.presence import details_text, state_text

_ON_OFF = {"on": True, "off": False}


def _add_config_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", help="Path to JSON config (defaults to the user config directory)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Hytale Discord Rich Presence")
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Run presence agent in console")
    _add_config_arg(run_parser)
    run_parser.add_argument("--once", action="store_true", help="Run a single poll cycle")

    tray_parser = subparsers.add_parser("tray", help="Run presence agent with system tray UI")
    _add_config_arg(tray_parser)

    config_parser = subparsers.add_parser("config", help="Show or change settings")
    config_parser.add_argument("action", choices=["show", "set"])
    _add_config_arg(config_parser)
    config_parser.add_argument("--show-world-name", choices=sorted(_ON_OFF), help="Show world names in presence")
    config_parser.add_argument("--show-server-ip", choices=sorted(_ON_OFF), help="Show server address in presence")

    scan_parser = subparsers.add_parser("scan", help="Replay the newest client log and print activity changes")
    _add_config_arg(scan_parser)

    return parser


def _normalized_argv(raw_argv: list[str]) -> list[str]:
    commands = {"run", "tray", "config", "scan"}
    if not raw_argv or raw_argv[0] not in commands:
        return ["run", *raw_argv]
    return raw_argv


def _resolve_config_path(raw_path: str | None) -> Path:
    if not raw_path:
        return default_config_path()
    return Path(raw_path).expanduser().resolve()


def _resolve_runtime(args: argparse.Namespace) -> tuple[AppConfig, Path]:
    config_path = _resolve_config_path(getattr(args, "config", None))
    return load_config(config_path), config_path


def _run_command(args: argparse.Namespace) -> None:
    config, _ = _resolve_runtime(args)
    configure_logging(config.log_level)

    agent = PresenceAgent(config=config, once=args.once)
    agent.run()


def _tray_command(args: argparse.Namespace) -> None:
    from hytale_rpc.tray import run_tray_app

    config, config_path = _resolve_runtime(args)
    configure_logging(config.log_level)
    run_tray_app(config=config, config_path=config_path)


def _config_command(args: argparse.Namespace) -> None:
    config, config_path = _resolve_runtime(args)

    if args.action == "set":
        if args.show_world_name:
            config = replace(config, show_world_name=_ON_OFF[args.show_world_name])
        if args.show_server_ip:
            config = replace(config, show_server_ip=_ON_OFF[args.show_server_ip])
        saved = save_config(config, config_path)
        print(f"Config saved: {saved}")

    print(json.dumps(asdict(config), indent=2))


def _scan_command(args: argparse.Namespace) -> None:
    config, _ = _resolve_runtime(args)
    configure_logging(config.log_level)

    directories = candidate_log_directories(config)
    latest = find_latest_log_file(directories, config.log_file_suffix)
    if latest is None:
        print("No client log found in:")
        for directory in directories:
            print(f"  {directory}")
        return

    print(f"Replaying {latest}")
    watcher = LogWatcher(directories=lambda: [])
    with latest.open("rb") as handle:
        for raw in handle:
            if watcher.parse_line(raw.decode("utf-8", errors="replace")):
                activity = watcher.state
                print(f"{details_text(activity)} - {state_text(activity, config)}")

    print(f"Final activity: {watcher.state}")


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    parsed = parser.parse_args(_normalized_argv(argv if argv is not None else sys.argv[1:]))

    if parsed.command == "run":
        _run_command(parsed)
        return

    if parsed.command == "tray":
        _tray_command(parsed)
        return

    if parsed.command == "config":
        _config_command(parsed)
        return

    if parsed.command == "scan":
        _scan_command(parsed)
        return

    parser.error("Unknown command")


if __name__ == "__main__":
    main()
