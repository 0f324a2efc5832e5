"""Generations: building the user's declared state, committing and applying it."""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from pathlib import Path
from typing import NamedTuple

from . import console, git, hook, places
from .console import _paint, bool_question, print_entry
from .library import HistoryMode, RebosError, history, hostname
from .management import load_manager
from .model import (
    ConfigSide,
    Generation,
    Items,
    parse_generation,
    parse_manager_order,
    read_generation,
)

GEN_FILE = "gen.toml"


class GenerationEntry(NamedTuple):
    """One committed generation as listed to the user."""

    number: str
    message: str
    is_current: bool
    is_built: bool


def config_for(side: ConfigSide) -> Path:
    """Path of the generation file for the given side."""
    if side is ConfigSide.USER:
        return places.base_user() / GEN_FILE
    try:
        return current_gen()
    except (RebosError, OSError):
        console.error("Failed to get config path for system generation!")
        raise


def load_generation(side: ConfigSide) -> Generation:
    """Read a generation, merging the machine file (user side) and all imports."""
    generation = read_generation(config_for(side))
    system_hostname = hostname()

    if side is ConfigSide.USER:
        machine = places.base_user() / "machines" / system_hostname / GEN_FILE
        generation.extend(read_generation(machine))

    seen: set[str] = set()
    while generation.imports:
        pending = generation.imports
        generation.imports = []
        for name in pending:
            seen.add(name)
            generation.extend(read_generation(places.base_user() / "imports" / f"{name}.toml"))
        generation.imports = [name for name in generation.imports if name not in seen]

    return generation


def get_gen_from_hash(hash_: str) -> Generation:
    """The generation stored in the given commit."""
    try:
        content = git.repo().get_file_content_at_hash(hash_, GEN_FILE)
    except FileNotFoundError:
        return Generation()
    try:
        return parse_generation(content)
    except RebosError as exc:
        console.error(f"Failed to deserialize generation from commit {hash_}")
        raise RebosError(str(exc)) from exc


def get_current_hash() -> str:
    return git.repo().get_current_hash()


def get_built_hash() -> str:
    """Hash of the last built generation."""
    try:
        return (places.gens() / "built").read_text(encoding="utf-8").strip()
    except FileNotFoundError as exc:
        raise FileNotFoundError("No built generation found") from exc


def commit(msg: str) -> str:
    """Commit the user generation; return its hash, or an empty string if unchanged."""
    user_gen = load_generation(ConfigSide.USER)
    text = user_gen.to_toml()

    gen_path = places.gens() / GEN_FILE
    try:
        gen_path.write_text(text, encoding="utf-8")
    except OSError:
        console.error("Failed to write generation file!")
        raise
    console.info("Wrote generation file")

    commit_hash = git.repo().commit(msg)
    if not commit_hash:
        console.warning("No changes to commit")
        return ""

    set_current_hash(commit_hash, True)
    return commit_hash


def get_order(generation: Generation) -> list[str]:
    """Manager names in the order they are applied."""
    path = places.base_user() / "manager_order.toml"
    if not path.exists():
        return list(generation.managers)

    console.info("Reading order rules from manager_order.toml...")
    try:
        order_obj = parse_manager_order(path.read_text(encoding="utf-8"))
    except RebosError as exc:
        console.error("Failed to deserialize manager_order.toml!")
        console.error(f"TOML Error: {exc}")
        raise RebosError("Failed to deserialize manager_order.toml!") from exc

    order = list(order_obj.begin)
    order.extend(
        name
        for name in generation.managers
        if name not in order_obj.begin and name not in order_obj.end
    )
    order.extend(order_obj.end)

    for name, count in Counter(order).items():
        if count > 1:
            console.warning(f"Duplicates in manager_order.toml! (Found {count} of: '{name}')")

    return [name for name in order if name in generation.managers]


def _apply_diffs(built_gen: Generation, curr_gen: Generation) -> None:
    for name in get_order(curr_gen):
        manager = load_manager(name)
        curr_items = curr_gen.managers[name]
        built_items = built_gen.managers.get(name)
        if built_items is None:
            manager.add(curr_items.items)
            continue
        diffs = history(built_items.items, curr_items.items)
        to_install = [d.line for d in diffs if d.mode is HistoryMode.ADD]
        to_remove = [d.line for d in diffs if d.mode is HistoryMode.REMOVE]
        manager.remove(to_remove)
        manager.add(to_install)

    for name in get_order(built_gen):
        if name not in curr_gen.managers:
            load_manager(name).remove(built_gen.managers[name].items)


def _apply_full(curr_gen: Generation) -> None:
    for name in get_order(curr_gen):
        items = curr_gen.managers[name]
        load_manager(name).add(items.items)


def build() -> None:
    """Apply the current generation to the system."""
    hook.run("pre_build")

    curr_gen = load_generation(ConfigSide.SYSTEM)

    try:
        current_hash = get_current_hash()
    except (RebosError, OSError) as exc:
        console.error("No current generation found!")
        raise RebosError("No current generation found!") from exc

    try:
        built_hash = get_built_hash()
    except OSError:
        _apply_full(curr_gen)
        console.note("There is no summary. (First time building.)")
    else:
        built_gen = get_gen_from_hash(built_hash)
        _apply_diffs(built_gen, curr_gen)
        print("\n\n")
        console.info("#################")
        console.info("#    SUMMARY    #")
        console.info("#################")
        print()
        console.note("Summary printing not yet implemented for Git-based system")
        print("\n")

    set_built_hash(current_hash, True)
    hook.run("post_build")


def rollback(by: int, verbose: bool) -> None:
    """Check out the generation `by` commits back from the newest."""
    repo = git.repo()
    get_current_hash()
    log = repo.log(None)

    if by >= len(log):
        console.error("Cannot rollback that far!")
        raise RebosError("Rollback out of range!")
    if by < 0:
        console.error("Rollback target out of range!")
        raise RebosError("Rollback target out of range!")

    target_hash = log[by][0]
    repo.checkout(target_hash)
    set_current_hash(target_hash, verbose)


def latest(verbose: bool) -> None:
    """Check out the newest generation."""
    repo = git.repo()
    log = repo.log(1)
    if not log:
        console.error("No generations found!")
        raise RebosError("No generations found!")
    latest_hash = log[0][0]
    repo.checkout(latest_hash)
    set_current_hash(latest_hash, verbose)


def _write_tracking(name: str, hash_: str, verbose: bool) -> None:
    try:
        (places.gens() / name).write_text(hash_, encoding="utf-8")
    except OSError:
        console.error(f"Failed to create/write '{name}' tracking file!")
        raise
    if verbose:
        console.info(f"Set '{name}' to: {hash_}")


def set_current_hash(hash_: str, verbose: bool) -> None:
    _write_tracking("current", hash_, verbose)


def set_built_hash(hash_: str, verbose: bool) -> None:
    _write_tracking("built", hash_, verbose)


def _hash_or_empty(getter) -> str:
    try:
        return getter()
    except (RebosError, OSError):
        return ""


def list_generations() -> list[GenerationEntry]:
    """Committed generations, newest first, numbered from 1."""
    commits = git.repo().log(None)
    current_hash = _hash_or_empty(get_current_hash)
    built_hash = _hash_or_empty(get_built_hash)
    return [
        GenerationEntry(str(number), message, hash_ == current_hash, hash_ == built_hash)
        for number, (hash_, message) in enumerate(commits, start=1)
    ]


def list_print() -> None:
    """Print the generation list with current and built markers."""
    entries = list_generations()
    max_digits = len(entries[-1].number.strip()) if entries else 0

    for entry in entries:
        tags = ""
        open_b = _paint("[", "bright_black", "bold")
        close_b = _paint("]", "bright_black", "bold")
        if entry.is_current:
            tags += f" {open_b}{_paint('CURRENT', 'bright_green', 'bold')}{close_b}"
        if entry.is_built:
            tags += f" {open_b}{_paint('BUILT', 'bright_yellow', 'bold')}{close_b}"
        padding = " " * (max_digits - len(entry.number.strip()))
        console.generic(f"{padding}{entry.number} ... ({entry.message}){tags}")


def get_hash_from_number(num: int) -> str:
    """Commit hash of the generation with the given list number."""
    commits = git.repo().log(None)
    if num <= 0 or num > len(commits):
        console.error(f"Generation number {num} out of range!")
        raise RebosError("Generation number out of range!")
    return commits[num - 1][0]


def current_gen() -> Path:
    """Path of the committed generation file; requires a current commit."""
    get_current_hash()
    return places.gens() / GEN_FILE


def been_built() -> bool:
    return (places.gens() / "built").exists()


def _list_others_core(name: str, items: Items, remove: bool) -> None:
    manager = load_manager(name)
    others = manager.get_other(items.items)
    if not others:
        return
    print_entry(name, others)
    if remove and bool_question("Remove items?", False):
        manager.remove(others)


def list_others(managers: Sequence[str] | None, remove: bool) -> None:
    """Show installed items that the current generation does not declare."""
    curr_gen = load_generation(ConfigSide.SYSTEM)
    console.info("Installed but not specified items")
    if managers is None:
        for name, items in curr_gen.managers.items():
            _list_others_core(name, items, remove)
        return
    for name in managers:
        items = curr_gen.managers.get(name)
        if items is None:
            raise RebosError(f"Failed to get manager {name}!")
        _list_others_core(name, items, remove)


def print_generation(generation: Generation) -> None:
    """Print each manager's items."""
    print()
    for name, items in generation.managers.items():
        print_entry(name, items.items)