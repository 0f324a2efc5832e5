"""Generation and manager-order documents."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import tomli_w

from . import console
from .library import RebosError


class ConfigSide(Enum):
    """Which side a generation is read from."""

    USER = "user"
    SYSTEM = "system"


@dataclass
class Items:
    """Items declared for one manager."""

    items: list[str] = field(default_factory=list)


@dataclass
class Generation:
    """Imports and per-manager item lists."""

    imports: list[str] = field(default_factory=list)
    managers: dict[str, Items] = field(default_factory=dict)

    def extend(self, other: Generation) -> None:
        """Append another generation's imports and items to this one."""
        self.imports.extend(other.imports)
        for name, items in other.managers.items():
            self.managers.setdefault(name, Items()).items.extend(items.items)

    def to_toml(self) -> str:
        return tomli_w.dumps(
            {
                "imports": list(self.imports),
                "managers": {name: {"items": list(it.items)} for name, it in self.managers.items()},
            }
        )


@dataclass
class ManagerOrder:
    """Managers to handle first and last."""

    begin: list[str] = field(default_factory=list)
    end: list[str] = field(default_factory=list)


def _load_toml(text: str) -> dict[str, Any]:
    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise RebosError(f"invalid TOML: {exc}") from exc


def _check_keys(table: dict[str, Any], allowed: set[str], where: str) -> None:
    unknown = sorted(set(table) - allowed)
    if unknown:
        expected = ", ".join(f"'{key}'" for key in sorted(allowed))
        raise RebosError(f"unknown field '{unknown[0]}' in {where}, expected one of {expected}")


def _string_list(value: Any, where: str) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise RebosError(f"'{where}' must be an array of strings")
    return list(value)


def parse_generation(text: str) -> Generation:
    """Parse a generation document; unknown fields are rejected."""
    data = _load_toml(text)
    _check_keys(data, {"imports", "managers"}, "generation")
    imports = _string_list(data.get("imports", []), "imports")
    raw_managers = data.get("managers", {})
    if not isinstance(raw_managers, dict):
        raise RebosError("'managers' must be a table")
    managers: dict[str, Items] = {}
    for name, entry in raw_managers.items():
        if not isinstance(entry, dict):
            raise RebosError(f"'managers.{name}' must be a table")
        _check_keys(entry, {"items"}, f"managers.{name}")
        managers[name] = Items(_string_list(entry.get("items", []), f"managers.{name}.items"))
    return Generation(imports=imports, managers=managers)


def read_generation(path: Path) -> Generation:
    """Read a generation file; a missing file gives an empty generation."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return Generation()
    except (OSError, UnicodeDecodeError) as exc:
        console.error("Failed to read generation TOML file!")
        if isinstance(exc, OSError):
            raise
        raise RebosError("Failed to read generation TOML file!") from exc
    try:
        return parse_generation(text)
    except RebosError as exc:
        console.error("Failed to deserialize generation file:")
        console.error(str(exc))
        console.error(f"Path: '{path}'")
        raise RebosError("Failed to deserialize generation!") from exc


def parse_manager_order(text: str) -> ManagerOrder:
    """Parse a manager order document; unknown fields are rejected."""
    data = _load_toml(text)
    _check_keys(data, {"begin", "end"}, "manager order")
    return ManagerOrder(
        begin=_string_list(data.get("begin", []), "begin"),
        end=_string_list(data.get("end", []), "end"),
    )