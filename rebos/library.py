"""Shared helpers: shell commands, item diffs and environment queries."""

from __future__ import annotations

import os
import socket
import subprocess
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Hashable, TypeVar

from . import console
from .console import _paint

if TYPE_CHECKING:
    from .model import Generation

T = TypeVar("T", bound=Hashable)


class RebosError(Exception):
    """A failure reported to the user."""


class HistoryMode(Enum):
    ADD = "add"
    REMOVE = "remove"


@dataclass(frozen=True)
class History:
    """One added or removed item."""

    mode: HistoryMode
    line: str


def run_command(command: str) -> bool:
    """Run a command through bash; report whether it succeeded."""
    try:
        result = subprocess.run(["bash", "-c", command], check=False)
    except OSError:
        return False
    return result.returncode == 0


def run_command_with_output(command: str) -> str | None:
    """Run a command through bash and return its standard output, or None on failure."""
    try:
        result = subprocess.run(["bash", "-c", command], stdout=subprocess.PIPE, check=False)
    except OSError:
        return None
    if result.returncode != 0:
        return None
    try:
        return result.stdout.decode("utf-8")
    except UnicodeDecodeError:
        return None


def name_from_path(path: str) -> str:
    """Last component of a slash-separated path."""
    return path.split("/")[-1]


def ensure_directories_exist(dirs: Iterable[Path]) -> None:
    """Create every missing directory, with its parents."""
    for directory in map(Path, dirs):
        if not directory.exists():
            directory.mkdir(parents=True, exist_ok=True)
            console.info(f"Created directory: {directory}")


def username() -> str:
    return os.environ.get("USER") or os.environ.get("USERNAME") or "user"


def is_root_user() -> bool:
    return username() == "root"


def remove_array_duplicates(items: Iterable[T]) -> list[T]:
    """Drop repeated items, keeping first occurrences in order."""
    return list(dict.fromkeys(items))


def history(array_1: Sequence[str], array_2: Sequence[str]) -> list[History]:
    """Removals from the first list, then additions in the second; blank items are ignored."""
    set_1 = set(array_1)
    set_2 = set(array_2)
    removed = [
        History(HistoryMode.REMOVE, item)
        for item in dict.fromkeys(array_1)
        if item.strip() and item not in set_2
    ]
    added = [
        History(HistoryMode.ADD, item)
        for item in dict.fromkeys(array_2)
        if item.strip() and item not in set_1
    ]
    return removed + added


def history_gen(gen_1: Generation, gen_2: Generation) -> dict[str, list[History]]:
    """Per-manager differences between two generations."""
    result: dict[str, list[History]] = {}
    for name, items_2 in gen_2.managers.items():
        items_1 = gen_1.managers.get(name)
        if items_1 is not None:
            result[name] = history(items_1.items, items_2.items)
        else:
            result[name] = [History(HistoryMode.ADD, item) for item in items_2.items]
    for name, items_1 in gen_1.managers.items():
        if name not in gen_2.managers:
            result[name] = [History(HistoryMode.REMOVE, item) for item in items_1.items]
    return result


def print_history(entries: Iterable[History]) -> None:
    for entry in entries:
        if entry.mode is HistoryMode.ADD:
            print(_paint(f"+ {entry.line}", "bright_green", "bold"))
        else:
            print(_paint(f"- {entry.line}", "bright_red", "bold"))


def print_history_gen(history_map: Mapping[str, Iterable[History]]) -> None:
    for name, entries in history_map.items():
        console.info(f"{name}:")
        print_history(entries)
        print()


def hostname() -> str:
    """The system's host name."""
    try:
        return socket.gethostname()
    except OSError as exc:
        console.error("Failed to get system hostname!")
        raise RebosError("Failed to get system hostname!") from exc