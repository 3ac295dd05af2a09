from __future__ import annotations

import re

_WHITESPACE = re.compile(r"\s+")


def normalize_process_name(value: str | None) -> str:
    if not value:
        return ""
    normalized = _WHITESPACE.sub("", value.strip().lower())
    return normalized


# BootingServer -> Booting Server
def format_stage_name(stage: str) -> str:
    parts: list[str] = []
    for index, char in enumerate(stage):
        if index > 0 and char.isupper():
            parts.append(" ")
        parts.append(char)
    return "".join(parts)
