"""Locations of the state and configuration directories."""

from __future__ import annotations

import os
from pathlib import Path

from .library import ensure_directories_exist

_FALLBACK_HOME = "/tmp"


def _home() -> str:
    return os.environ.get("HOME", _FALLBACK_HOME)


def setup() -> None:
    """Create the core state directories if they are missing."""
    ensure_directories_exist([base(), gens()])


def base_legacy() -> Path:
    """Old location of the state directory."""
    home = os.environ.get("HOME")
    if home is None:
        return Path("/tmp/.rebos-base")
    return Path(home) / ".rebos-base"


def base() -> Path:
    """Directory holding generation state."""
    state = os.environ.get("XDG_STATE_HOME")
    if state is not None:
        return Path(state) / "rebos"
    return Path(_home()) / ".local" / "state" / "rebos"


def gens() -> Path:
    """Directory holding the generation repository and tracking files."""
    return base() / "generations"


def base_user() -> Path:
    """Directory holding the user's configuration."""
    config = os.environ.get("XDG_CONFIG_HOME")
    if config is not None:
        return Path(config) / "rebos"
    return Path(_home()) / ".config" / "rebos"