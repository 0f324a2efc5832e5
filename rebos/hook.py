"""User hook scripts run around manager actions."""

from __future__ import annotations

from . import console
from .library import RebosError, run_command
from .places import base_user


def run(hook_name: str) -> None:
    """Run the named hook script if the user has one."""
    hook_path = base_user() / "hooks" / hook_name
    if not hook_path.exists():
        return
    console.info(f"Running hook: {hook_name}")
    if not run_command(str(hook_path)):
        console.error(f"Failed to run hook: {hook_name}")
        raise RebosError("Failed to run hook!")
    console.info(f"Successfully ran hook: {hook_name}")