"""
# cargo-cover
# Copyright (c) 2026 Dale Chapman
# Licensed under the MIT License. See LICENSE in the project root.

log_utils.py

Logging setup with icons. Progress goes to stderr so the markdown report on
stdout stays clean enough to pipe.
"""

import logging
from typing import Union


# Message-only; no per-line timestamps
LOG_FORMAT = "%(message)s"

LEVEL_ICONS = {
    logging.DEBUG: "🔍",
    logging.INFO: "✔️",
    logging.WARNING: "⚠️",
    logging.ERROR: "❌",
    logging.CRITICAL: "💥",
}

LEVEL_NAMES = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class IconLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        icon = LEVEL_ICONS.get(record.levelno, "✔️")
        base = super().format(record)
        return f"{icon} {base}"


def resolve_level(level: Union[str, int]) -> int:
    if isinstance(level, int):
        return level
    return LEVEL_NAMES.get(str(level).lower(), logging.INFO)


def setup_logging(level: Union[str, int] = "info") -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(IconLogFormatter(LOG_FORMAT))

    root = logging.getLogger("cargo_cover")
    root.handlers.clear()
    root.setLevel(resolve_level(level))
    root.addHandler(handler)
