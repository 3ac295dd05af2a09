from __future__ import annotations

import logging
from pathlib import Path

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"


def _level(level: str) -> int:
    return getattr(logging, level.upper(), logging.INFO)


def configure_logging(level: str) -> None:
    root = logging.getLogger()
    root.setLevel(_level(level))

    for handler in root.handlers:
        if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
            handler.setLevel(_level(level))
            return

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(_level(level))
    stream_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(stream_handler)


def add_file_handler(path: Path, level: str) -> logging.FileHandler | None:
    root = logging.getLogger()
    for handler in root.handlers:
        if isinstance(handler, logging.FileHandler) and Path(handler.baseFilename) == path.resolve():
            return None

    path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(path, encoding="utf-8")
    file_handler.setLevel(_level(level))
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(file_handler)
    return file_handler
