"""User configuration: creating the starter files and checking them."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Union

from . import console, places
from .generation import config_for, load_generation
from .library import RebosError, ensure_directories_exist, hostname
from .management import Manager, get_managers, load_manager_no_config_check
from .model import ConfigSide

DEFAULT_USER_GEN = """\
# --------------------- #
#    Generation File    #
# --------------------- #

# Import other generation files (relative to ~/.config/rebos/imports/)
imports = [
    # "intensive_apps",
]

# System packages managed by your distro's package manager
[managers.system]
items = [
    # "git",
]

# Flatpak applications
[managers.flatpak]
items = [
    # "com.github.tchx84.Flatseal",
]

# Rust crates installed via Cargo
[managers.cargo]
items = [
    # "bacon",
]
"""

DEFAULT_PACKAGE_MANAGER_CONFIG = """\
# --------------------------- #
#    Manager Configuration    #
# --------------------------- #

# Commands for package management - replace with your distro's commands
# Use '#:?' as placeholder for package names
add = ""           # Example: "sudo apt install #:?"
remove = ""        # Example: "sudo apt remove #:?"
sync = ""          # Example: "sudo apt update"
upgrade = ""       # Example: "sudo apt upgrade"

# Display name for this manager (used in output messages)
plural_name = "system packages"

# Hook name prefix (used for hook scripts like pre_system_packages_add)
hook_name = "system_packages"

[config]
# Can this manager handle multiple packages at once? (true/false)
many_args = true
"""

DEFAULT_FLATPAK_MANAGER_CONFIG = """\
# Flatpak application manager
add = "flatpak install #:?"
remove = "flatpak uninstall #:?"
upgrade = "flatpak upgrade"

plural_name = "flatpaks"
hook_name = "flatpaks"

[config]
many_args = true
"""

DEFAULT_CARGO_MANAGER_CONFIG = """\
# Rust Cargo package manager
add = "cargo install #:?"
remove = "cargo uninstall #:?"

plural_name = "crates"
hook_name = "crates"

[config]
many_args = true
"""

_HOOK_STAGES = ("pre", "post")
_HOOK_ACTIONS = ("add", "remove", "sync", "upgrade")


@dataclass(frozen=True)
class InvalidManager:
    """A manager file whose configuration check failed."""

    manager: str
    errors: tuple[str, ...]

    def __init__(self, manager: str, errors) -> None:
        object.__setattr__(self, "manager", manager)
        object.__setattr__(self, "errors", tuple(errors))

    def msg(self) -> str:
        lines = [f"Manager '{self.manager}' is not configured properly! Errors:"]
        lines.extend(f"  {error}" for error in self.errors)
        return "\n".join(lines)


@dataclass(frozen=True)
class MissingMachine:
    """The machine-specific generation file is absent."""

    def msg(self) -> str:
        return "Missing configuration for machine! (Machine specific gen.toml...)"


@dataclass(frozen=True)
class FailedToDeserializeGeneration:
    """The user-side generation could not be read."""

    def msg(self) -> str:
        return "Failed to deserialize config (user-side) generation!"


@dataclass(frozen=True)
class UnusedHook:
    """A hook script that no manager or build stage would run."""

    hook: str

    def msg(self) -> str:
        return (
            f"Hook '{self.hook}' is never used. "
            "(Doesn't match any manager 'hook_name' fields.)"
        )


ConfigError = Union[InvalidManager, MissingMachine, FailedToDeserializeGeneration]


@dataclass
class ConfigCheckResult:
    """Errors and warnings found by a configuration check."""

    errors: list[ConfigError] = field(default_factory=list)
    warnings: list[UnusedHook] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def _machine_gen_path(system_hostname: str) -> Path:
    return places.base_user() / "machines" / system_hostname / "gen.toml"


def init_user_config() -> None:
    """Create the configuration directories and starter files that are missing."""
    system_hostname = hostname()
    user = places.base_user()

    ensure_directories_exist(
        [
            user,
            user / "machines" / system_hostname,
            user / "imports",
            user / "hooks",
            user / "managers",
        ]
    )

    files = [
        (DEFAULT_USER_GEN, config_for(ConfigSide.USER)),
        (DEFAULT_USER_GEN, _machine_gen_path(system_hostname)),
        (DEFAULT_PACKAGE_MANAGER_CONFIG, user / "managers" / "system.toml"),
        (DEFAULT_FLATPAK_MANAGER_CONFIG, user / "managers" / "flatpak.toml"),
        (DEFAULT_CARGO_MANAGER_CONFIG, user / "managers" / "cargo.toml"),
    ]

    for content, path in files:
        if path.exists():
            continue
        try:
            path.write_text(content, encoding="utf-8")
        except OSError:
            console.error(f"Failed to create file: {path}")
            raise
        console.info(f"Created file: {path}")


def _used_hooks(managers: list[Manager]) -> set[str]:
    used = {"pre_build", "post_build"}
    for manager in managers:
        for stage in _HOOK_STAGES:
            for action in _HOOK_ACTIONS:
                used.add(f"{stage}_{manager.hook_name}_{action}")
    return used


def check_config() -> ConfigCheckResult:
    """Check the user configuration; I/O failures are raised, problems are returned."""
    result = ConfigCheckResult()

    try:
        load_generation(ConfigSide.USER)
    except (RebosError, OSError):
        result.errors.append(FailedToDeserializeGeneration())

    try:
        names = get_managers()
    except OSError as exc:
        console.fatal(f"Failed to get a list of managers due to IO error: {exc}")
        raise

    loaded: list[tuple[str, Manager]] = []
    for name in names:
        try:
            loaded.append((name, load_manager_no_config_check(name)))
        except (OSError, RebosError) as exc:
            console.fatal(f"Failed to load manager '{name}' due to IO error: {exc}")
            raise

    system_hostname = hostname()

    for name, manager in loaded:
        problems = manager.check_config()
        if problems:
            result.errors.append(InvalidManager(name, problems))

    if not _machine_gen_path(system_hostname).exists():
        result.errors.append(MissingMachine())

    used = _used_hooks([manager for _, manager in loaded])
    hooks_dir = places.base_user() / "hooks"
    for entry in sorted(hooks_dir.iterdir(), key=lambda p: p.name):
        if entry.name not in used:
            result.warnings.append(UnusedHook(entry.name))

    if not result.errors and not result.warnings:
        console.success("Configuration has no errors or warnings! (^-^)")

    return result


def print_misc_info(result: ConfigCheckResult) -> None:
    """Print the warnings of a check."""
    for warning in result.warnings:
        console.warning(warning.msg())


def print_errors_and_misc_info(result: ConfigCheckResult) -> None:
    """Print the warnings, then the errors, of a check."""
    print_misc_info(result)
    for error in result.errors:
        console.error(error.msg())