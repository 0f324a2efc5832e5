"""Command line interface."""

from __future__ import annotations

import argparse
import os
import shutil
import sys
from collections.abc import Callable, Sequence

from . import config, console, generation, management, places
from .console import _paint, bool_question
from .library import RebosError, history_gen, is_root_user, print_history_gen
from .model import ConfigSide

_VERSION = "3.5.2"
_YES_NO = ("yes", "no")

Handler = Callable[[argparse.Namespace], None]


def _usize(text: str) -> int:
    try:
        value = int(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid digit found in string: '{text}'") from exc
    if value < 0:
        raise argparse.ArgumentTypeError(f"invalid digit found in string: '{text}'")
    return value


def _failing(message: str, action: Callable[[], object]) -> object:
    """Run an action, turning its failure into a RebosError with the given message."""
    try:
        return action()
    except (RebosError, OSError) as exc:
        raise RebosError(message) from exc


# --- setup -----------------------------------------------------------------


def _handle_setup(args: argparse.Namespace) -> None:
    console.info("Beginning setup...")
    _failing("Failed to setup program", places.setup)
    console.success("Core directories verified successfully!")
    console.success("Set up the program successfully!")


# --- gen -------------------------------------------------------------------


def _handle_gen_commit(args: argparse.Namespace) -> None:
    console.info("Committing user generation...")
    _failing("Failed to commit generation", lambda: generation.commit(args.msg))
    console.success(f'Committed generation successfully! ("{args.msg}")')


def _handle_gen_list(args: argparse.Namespace) -> None:
    _failing("Failed to list generations", generation.list_print)


def _handle_gen_info(args: argparse.Namespace) -> None:
    current = _failing(
        "Failed to get generation", lambda: generation.load_generation(ConfigSide.USER)
    )
    generation.print_generation(current)


def _handle_gen_latest(args: argparse.Namespace) -> None:
    entries = _failing("Failed to get latest generation", generation.list_generations)
    if entries:
        console.info(f"Latest generation is: {entries[0].number}")
    else:
        console.warning("No generations found")


def _hash_for(number: int) -> str:
    try:
        return generation.get_hash_from_number(number)
    except (RebosError, OSError) as exc:
        console.fatal(f"Generation {number} not found!")
        raise RebosError("Generation not found") from exc


def _handle_gen_diff(args: argparse.Namespace) -> None:
    hash_1 = _hash_for(args.old)
    hash_2 = _hash_for(args.new)
    gen_1 = _failing("Failed to get generation", lambda: generation.get_gen_from_hash(hash_1))
    gen_2 = _failing("Failed to get generation", lambda: generation.get_gen_from_hash(hash_2))

    changes = history_gen(gen_1, gen_2)
    arrow = _paint("->", "bright_black", "bold")
    old = _paint(f"gen:{args.old}", "bright_cyan", "bold")
    new = _paint(f"gen:{args.new}", "bright_cyan", "bold")
    print(f"\n{old} {arrow} {new}")
    print()
    print_history_gen(changes)


def _handle_current_build(args: argparse.Namespace) -> None:
    console.info("Building 'current' generation...")
    _failing("Failed to build current generation", generation.build)
    console.success("Built generation successfully!")


def _handle_current_rollback(args: argparse.Namespace) -> None:
    console.info(f"Rolling back by {args.by} generations...")
    _failing("Failed to rollback generation", lambda: generation.rollback(args.by, True))
    console.success("Rolled back successfully!")


def _handle_current_to_latest(args: argparse.Namespace) -> None:
    console.info("Jumping to latest generation...")
    _failing("Failed to set to latest generation", lambda: generation.latest(True))
    console.success("Jumped to latest successfully!")


def _handle_current_set(args: argparse.Namespace) -> None:
    console.info(f"Jumping to generation {args.to}...")
    target = _failing(
        "Failed to get generation hash", lambda: generation.get_hash_from_number(args.to)
    )
    _failing(
        "Failed to set current generation",
        lambda: generation.set_current_hash(target, True),
    )
    console.success(f"Jumped to generation {args.to} successfully!")


# --- config ----------------------------------------------------------------


def _handle_config_init(args: argparse.Namespace) -> None:
    console.info("Creating user configuration...")
    _failing("Failed to initialize config", config.init_user_config)
    console.success("Created user configuration successfully!")


def _handle_config_check(args: argparse.Namespace) -> None:
    result = _failing("Failed to check config", config.check_config)
    if result.errors:
        config.print_errors_and_misc_info(result)
        raise RebosError("Config check failed")
    config.print_misc_info(result)


# --- managers --------------------------------------------------------------


def _handle_managers_sync(args: argparse.Namespace) -> None:
    _failing("Failed to sync managers", lambda: management.sync_managers(args.managers))


def _handle_managers_upgrade(args: argparse.Namespace) -> None:
    _failing(
        "Failed to upgrade managers",
        lambda: management.upgrade_managers(args.sync, args.managers),
    )


def _handle_managers_list_others(args: argparse.Namespace) -> None:
    _failing(
        "Failed to list others",
        lambda: generation.list_others(args.managers, args.remove),
    )


# --- api -------------------------------------------------------------------


def _handle_api_echo(args: argparse.Namespace) -> None:
    console.echo(args.log_mode, args.message)


def _handle_api_echo_generic(args: argparse.Namespace) -> None:
    console.generic(args.message)


def _handle_api_bool_question(args: argparse.Namespace) -> None:
    if not bool_question(args.question, args.fallback == "yes"):
        raise RebosError("Boolean question returned false")


# --- parser ----------------------------------------------------------------


def _subparsers(parser: argparse.ArgumentParser, dest: str) -> argparse._SubParsersAction:
    return parser.add_subparsers(dest=dest, required=True, metavar="COMMAND")


def _leaf(
    subparsers: argparse._SubParsersAction, name: str, handler: Handler, help_text: str
) -> argparse.ArgumentParser:
    parser = subparsers.add_parser(name, help=help_text)
    parser.add_argument("--version", action="version", version=f"%(prog)s {_VERSION}")
    parser.set_defaults(handler=handler)
    return parser


def _group(
    subparsers: argparse._SubParsersAction, name: str, help_text: str
) -> argparse.ArgumentParser:
    parser = subparsers.add_parser(name, help=help_text)
    parser.add_argument("--version", action="version", version=f"%(prog)s {_VERSION}")
    return parser


def build_parser() -> argparse.ArgumentParser:
    """The argument parser for every command."""
    parser = argparse.ArgumentParser(
        prog="rebos", description="NixOS-like repeatability for any Linux distro."
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {_VERSION}")
    commands = _subparsers(parser, "command")

    gen = _subparsers(_group(commands, "gen", "Work with generations"), "gen_command")
    _leaf(gen, "commit", _handle_gen_commit, "Commit the user generation").add_argument("msg")
    _leaf(gen, "list", _handle_gen_list, "List committed generations")
    _leaf(gen, "info", _handle_gen_info, "Show the user generation")
    _leaf(gen, "latest", _handle_gen_latest, "Show the latest generation number")
    diff = _leaf(gen, "diff", _handle_gen_diff, "Compare two generations")
    diff.add_argument("old", type=_usize)
    diff.add_argument("new", type=_usize)

    current = _subparsers(
        _group(gen, "current", "Work with the current generation"), "current_command"
    )
    _leaf(current, "build", _handle_current_build, "Build the current generation")
    _leaf(current, "rollback", _handle_current_rollback, "Roll back by some generations")\
        .add_argument("by", type=int)
    _leaf(current, "to-latest", _handle_current_to_latest, "Jump to the latest generation")
    _leaf(current, "set", _handle_current_set, "Jump to a generation").add_argument(
        "to", type=_usize
    )

    _leaf(commands, "setup", _handle_setup, "Set up the program")

    cfg = _subparsers(_group(commands, "config", "Work with the configuration"), "config_command")
    _leaf(cfg, "init", _handle_config_init, "Create the user configuration")
    _leaf(cfg, "check", _handle_config_check, "Check the user configuration")

    managers_parser = _group(commands, "managers", "Work with package managers")
    managers_parser.add_argument(
        "-m", "--manager", dest="managers", action="append", metavar="MANAGER", default=None
    )
    managers = _subparsers(managers_parser, "managers_command")
    _leaf(managers, "sync", _handle_managers_sync, "Sync managers")
    _leaf(managers, "upgrade", _handle_managers_upgrade, "Upgrade managers").add_argument(
        "--sync", action="store_true"
    )
    _leaf(
        managers, "list-others", _handle_managers_list_others, "List undeclared items"
    ).add_argument("--remove", action="store_true")

    api = _subparsers(_group(commands, "api", "Helpers for scripts"), "api_command")
    echo = _leaf(api, "echo", _handle_api_echo, "Print a log line")
    echo.add_argument("log_mode", choices=[mode.value for mode in console.LogMode])
    echo.add_argument("message")
    _leaf(api, "echo-generic", _handle_api_echo_generic, "Print a plain line").add_argument(
        "message"
    )
    question = _leaf(api, "bool-question", _handle_api_bool_question, "Ask a yes/no question")
    question.add_argument("question")
    question.add_argument("fallback", choices=_YES_NO)

    return parser


def handle_command(args: argparse.Namespace) -> None:
    """Run a parsed command; failures raise RebosError."""
    if args.command != "setup" and not places.base().exists():
        console.error("It seems that the program is not set up!")
        raise RebosError("Program not set up")
    args.handler(args)


def _migrate_legacy_base() -> None:
    legacy = places.base_legacy()
    if not legacy.exists():
        return
    target = places.base()
    console.warning("Detected Rebos base at legacy location, moving it to new location...")
    console.generic(f"'{legacy}' -> '{target}'")

    if target.exists():
        try:
            shutil.rmtree(target)
        except OSError as exc:
            console.fatal(f"Failed to delete directory: '{target}'")
            print(repr(exc))
            raise

    try:
        os.rename(legacy, target)
    except OSError as exc:
        console.fatal(f"Failed to move directory ('{legacy}') to new location: '{target}'")
        print(repr(exc))
        raise

    console.success("Moved Rebos base directory to new location!")


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point; returns the process exit status."""
    if is_root_user():
        console.error("Cannot run as root! Please run as the normal user!")
        return 1

    try:
        _migrate_legacy_base()
    except OSError:
        return 1

    args = build_parser().parse_args(argv)

    try:
        handle_command(args)
    except RebosError:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())