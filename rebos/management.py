"""Package managers described by user TOML files."""

from __future__ import annotations

import re
import sys
import tomllib
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from . import console, hook
from .console import _paint
from .library import RebosError, run_command, run_command_with_output
from .places import base_user

PLACEHOLDER = "#:?"

_MANAGER_FIELDS = {"add", "remove", "sync", "upgrade", "list", "config", "hook_name", "plural_name"}
_REQUIRED_FIELDS = ("add", "remove", "config", "hook_name", "plural_name")
_CONFIG_FIELDS = {"many_args", "arg_sep"}
_UNSAFE_HOOK_CHAR = re.compile(r"[^a-zA-Z0-9\-_.]")


@dataclass
class ManagerConfig:
    """How a manager takes its arguments."""

    many_args: bool = True
    arg_sep: str = " "


@dataclass
class Manager:
    """Shell commands that add, remove, sync, upgrade and list one kind of item."""

    add_command: str
    remove_command: str
    hook_name: str
    plural_name: str
    sync_command: str | None = None
    upgrade_command: str | None = None
    list_command: str | None = None
    config: ManagerConfig = field(default_factory=ManagerConfig)

    def _apply(self, verb: str, items: Sequence[str], raw: Callable[[str], None]) -> None:
        hook.run(f"pre_{self.hook_name}_{verb}")
        if self.config.many_args:
            raw(self.config.arg_sep.join(items))
        else:
            for item in items:
                raw(item)
        hook.run(f"post_{self.hook_name}_{verb}")

    def add(self, items: Sequence[str]) -> None:
        """Install items, with the add hooks around."""
        self._apply("add", items, self._add_raw)

    def remove(self, items: Sequence[str]) -> None:
        """Uninstall items, with the remove hooks around."""
        self._apply("remove", items, self._remove_raw)

    def _add_raw(self, items: str) -> None:
        if not items.strip():
            return
        if not run_command(self.add_command.replace(PLACEHOLDER, items)):
            message = f"Failed to add {self.plural_name}!"
            console.error(message)
            raise RebosError(message)
        console.info(f"Successfully added {self.plural_name}!")

    def _remove_raw(self, items: str) -> None:
        if not items.strip():
            return
        if not run_command(self.remove_command.replace(PLACEHOLDER, items)):
            message = f"Failed to remove {self.plural_name}!"
            console.error(message)
            raise RebosError(message)
        console.info(f"Successfully removed {self.plural_name}!")

    def sync(self) -> None:
        """Refresh the manager's repositories, if it has a sync command."""
        hook.run(f"pre_{self.hook_name}_sync")
        if self.sync_command is not None:
            if not run_command(self.sync_command):
                console.error(f"Failed to sync manager! ('{self.plural_name}')")
                raise RebosError("Failed to sync repositories!")
            console.info(f"Synced manager successfully! ('{self.plural_name}')")
        hook.run(f"post_{self.hook_name}_sync")

    def upgrade(self) -> None:
        """Upgrade installed items, if the manager has an upgrade command."""
        hook.run(f"pre_{self.hook_name}_upgrade")
        if self.upgrade_command is not None:
            if not run_command(self.upgrade_command):
                message = f"Failed to upgrade {self.plural_name}!"
                console.error(message)
                raise RebosError(message)
            console.info(f"Successfully upgraded {self.plural_name}!")
        hook.run(f"post_{self.hook_name}_upgrade")

    def get_other(self, items: Iterable[str]) -> list[str]:
        """Installed items not among the given ones; empty without a list command."""
        if self.list_command is None:
            return []
        wanted = set(items)
        return [other for other in self.list_installed() if other not in wanted]

    def list_installed(self) -> list[str]:
        """Whitespace-separated output of the list command."""
        if self.list_command is None:
            raise RebosError(f"No list command configured for {self.plural_name}!")
        output = run_command_with_output(self.list_command)
        if output is None:
            message = f"Failed to get list of {self.plural_name}!"
            console.error(message)
            raise RebosError(message)
        return output.split()

    def check_config(self) -> list[str]:
        """Problems with this manager's configuration; empty when it is valid."""
        errors = []
        valid_hook_name = _UNSAFE_HOOK_CHAR.sub("_", self.hook_name)
        if self.hook_name != valid_hook_name:
            errors.append(
                "Field 'hook_name' must be filename safe! "
                f"(Fixed version: {valid_hook_name})"
            )
        return errors


def _reject_unknown(table: dict[str, Any], allowed: set[str], where: str) -> None:
    unknown = sorted(set(table) - allowed)
    if unknown:
        raise RebosError(f"unknown field '{unknown[0]}' in {where}")


def _string(table: dict[str, Any], key: str, optional: bool = False) -> str | None:
    value = table.get(key)
    if value is None and optional:
        return None
    if not isinstance(value, str):
        raise RebosError(f"field '{key}' must be a string")
    return value


def _parse_config(raw: Any) -> ManagerConfig:
    if not isinstance(raw, dict):
        raise RebosError("field 'config' must be a table")
    _reject_unknown(raw, _CONFIG_FIELDS, "config")
    many_args = raw.get("many_args", True)
    arg_sep = raw.get("arg_sep", " ")
    if not isinstance(many_args, bool):
        raise RebosError("field 'many_args' must be a boolean")
    if not isinstance(arg_sep, str):
        raise RebosError("field 'arg_sep' must be a string")
    return ManagerConfig(many_args=many_args, arg_sep=arg_sep)


def parse_manager(text: str) -> Manager:
    """Parse a manager document; unknown and missing fields are rejected."""
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise RebosError(f"invalid TOML: {exc}") from exc
    _reject_unknown(data, _MANAGER_FIELDS, "manager")
    for key in _REQUIRED_FIELDS:
        if key not in data:
            raise RebosError(f"missing field '{key}'")
    return Manager(
        add_command=_string(data, "add"),
        remove_command=_string(data, "remove"),
        hook_name=_string(data, "hook_name"),
        plural_name=_string(data, "plural_name"),
        sync_command=_string(data, "sync", optional=True),
        upgrade_command=_string(data, "upgrade", optional=True),
        list_command=_string(data, "list", optional=True),
        config=_parse_config(data["config"]),
    )


def load_manager_no_config_check(name: str) -> Manager:
    """Read and parse the named manager's file."""
    path = base_user() / "managers" / f"{name}.toml"
    try:
        text = path.read_text(encoding="utf-8")
    except OSError:
        console.fatal(f"Failed to read manager file! ({name})")
        console.note(f"If this error shows up, it is possible the file is missing. ({path})")
        raise
    try:
        return parse_manager(text)
    except RebosError as exc:
        console.fatal(f"Failed to deserialize manager! ({name})")
        console.fatal(f"Error: {exc}")
        raise RebosError("Failed to deserialize manager!") from exc


def load_manager(name: str) -> Manager:
    """Load the named manager and reject it if its configuration is invalid."""
    manager = load_manager_no_config_check(name)
    errors = manager.check_config()
    if errors:
        console.fatal(f"Manager '{name}' is not configured properly! Errors:")
        for index, message in enumerate(errors):
            number = _paint(str(index), "bright_red", "bold", stream=sys.stderr)
            colon = _paint(":", "bright_black", "bold", stream=sys.stderr)
            print(f"{number}{colon} {message}", file=sys.stderr, flush=True)
        raise RebosError("Failed manager configuration check!")
    return manager


def get_managers() -> list[str]:
    """Names of the manager files in the user's managers directory."""
    path = base_user() / "managers"
    return sorted(
        entry.name.replace(".toml", "")
        for entry in path.iterdir()
        if entry.is_file() and entry.name.endswith(".toml")
    )


def for_each_manager(managers: Sequence[str] | None, operation: Callable[[str], object]) -> None:
    """Apply an operation to the given managers, or to every configured one."""
    names = get_managers() if managers is None else managers
    for name in names:
        operation(name)


def sync_managers(managers: Sequence[str] | None) -> None:
    def sync_one(name: str) -> None:
        console.info(f"Syncing manager {name}")
        load_manager(name).sync()

    for_each_manager(managers, sync_one)
    console.success("All managers synced successfully")


def upgrade_managers(sync_before_upgrade: bool, managers: Sequence[str] | None) -> None:
    if sync_before_upgrade:
        sync_managers(managers)

    def upgrade_one(name: str) -> None:
        console.info(f"Upgrading manager {name}")
        load_manager(name).upgrade()

    for_each_manager(managers, upgrade_one)
    console.success("All managers upgraded successfully")