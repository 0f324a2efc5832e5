"""Terminal output: log lines, questions and entry listings."""

from __future__ import annotations

import os
import sys
from collections.abc import Iterable
from enum import StrEnum
from typing import TextIO

_CODES = {
    "bold": "1",
    "underline": "4",
    "bright_black": "90",
    "bright_red": "91",
    "bright_green": "92",
    "bright_yellow": "93",
    "bright_blue": "94",
    "bright_magenta": "95",
    "bright_cyan": "96",
}


def _use_color(stream: TextIO) -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def _paint(text: str, *styles: str, stream: TextIO | None = None) -> str:
    """Wrap text in ANSI styles when the stream is a colour terminal."""
    target = sys.stdout if stream is None else stream
    if not styles or not _use_color(target):
        return text
    codes = ";".join(_CODES[style] for style in styles)
    return f"\x1b[{codes}m{text}\x1b[0m"


class LogMode(StrEnum):
    """Kinds of log line."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    FATAL = "fatal"
    NOTE = "note"


_MODE_STYLE = {
    LogMode.INFO: "bright_blue",
    LogMode.SUCCESS: "bright_green",
    LogMode.WARNING: "bright_yellow",
    LogMode.ERROR: "bright_red",
    LogMode.FATAL: "bright_red",
    LogMode.NOTE: "bright_magenta",
}

_TO_STDERR = frozenset({LogMode.ERROR, LogMode.FATAL})


def _log(mode: LogMode, message: object) -> None:
    stream = sys.stderr if mode in _TO_STDERR else sys.stdout
    tag = _paint(f"[{mode.value}]", _MODE_STYLE[mode], "bold", stream=stream)
    print(f"{tag} {message}", file=stream, flush=True)


def info(message: object) -> None:
    _log(LogMode.INFO, message)


def success(message: object) -> None:
    _log(LogMode.SUCCESS, message)


def warning(message: object) -> None:
    _log(LogMode.WARNING, message)


def error(message: object) -> None:
    _log(LogMode.ERROR, message)


def fatal(message: object) -> None:
    _log(LogMode.FATAL, message)


def note(message: object) -> None:
    _log(LogMode.NOTE, message)


def generic(message: object) -> None:
    """Print an untagged line."""
    marker = _paint(">", "bright_black", "bold")
    print(f"{marker} {message}", flush=True)


def echo(mode: LogMode | str, message: object) -> None:
    """Log a message with a mode given by value or name."""
    _log(LogMode(mode), message)


def prompt(prefix: str) -> str:
    """Show a prefix and read one line from standard input."""
    sys.stdout.write(prefix)
    sys.stdout.flush()
    return sys.stdin.readline()


_YES = frozenset({"yes", "y", "yeah", "yeh", "true"})
_NO = frozenset({"no", "n", "nope", "nah", "false"})


def bool_question(question: str, fallback: bool) -> bool:
    """Ask a yes/no question until answered; an empty answer gives the fallback."""
    if fallback:
        yes = _paint("Y", "bright_green", "bold", "underline")
        no = _paint("n", "bright_red")
    else:
        yes = _paint("y", "bright_green")
        no = _paint("N", "bright_red", "bold", "underline")

    while True:
        answer = prompt(f"{_paint(question, 'bright_cyan')} [{yes}/{no}]: ")
        choice = answer.strip().lower()
        if choice in _YES:
            return True
        if choice in _NO:
            return False
        if choice == "":
            return fallback
        print(f"Invalid response: '{choice}'", file=sys.stderr, flush=True)


def print_entry(name: object, items: Iterable[object]) -> None:
    """Print a heading followed by one line per item."""
    info(f"{name}:")
    for item in items:
        generic(item)
    print()