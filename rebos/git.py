"""Git repository that stores committed generations."""

from __future__ import annotations

import subprocess
from pathlib import Path

from . import console, places
from .library import RebosError

_LOG_FORMAT = "--pretty=format:%H|%s"


class GitRepo:
    """A git working tree holding the generation history."""

    def __init__(self, path: Path | str | None = None) -> None:
        self.path = places.base() if path is None else Path(path)

    def __repr__(self) -> str:
        return f"GitRepo(path={str(self.path)!r})"

    def _run(self, *args: str) -> str:
        """Run git in the repository and return its trimmed standard output."""
        try:
            result = subprocess.run(
                ["git", *args],
                cwd=self.path,
                capture_output=True,
                check=False,
            )
        except OSError as exc:
            console.error(f"Failed to execute git command: {exc}")
            raise
        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace")
            console.error(f"Git command failed: {stderr}")
            raise RebosError(stderr)
        return result.stdout.decode("utf-8", errors="replace").strip()

    def init_if_needed(self) -> None:
        """Create the repository, with an identity and initial commit, if it is missing."""
        if not self.path.exists():
            console.error("Rebos base directory does not exist!")
            raise FileNotFoundError(f"Base directory not found: {self.path}")

        if (self.path / ".git").exists():
            return

        console.info("Initializing Git repository...")
        self._run("init")

        for key, value in (("user.name", "Rebos"), ("user.email", "rebos@localhost")):
            try:
                self._run("config", key)
            except RebosError:
                self._run("config", key, value)

        (self.path / ".gitignore").write_text("lock\n", encoding="utf-8")
        self._run("add", ".gitignore")
        self._run("commit", "-m", "Initial commit")
        console.success("Git repository initialized")

    def commit(self, message: str) -> str:
        """Commit every change; return the new hash, or an empty string if nothing changed."""
        self.init_if_needed()
        self._run("add", ".")

        if not self._run("status", "--porcelain").strip():
            console.warning("No changes to commit")
            return ""

        self._run("commit", "-m", message)
        commit_hash = self.get_current_hash()
        console.success(f"Committed generation: {commit_hash}")
        return commit_hash

    def get_current_hash(self) -> str:
        return self._run("rev-parse", "HEAD")

    def get_file_content_at_hash(self, hash_: str, file_path: str) -> str:
        """Contents of a file as it was at a commit."""
        return self._run("show", f"{hash_}:{file_path}")

    def log(self, limit: int | None = None) -> list[tuple[str, str]]:
        """(hash, subject) pairs, newest first."""
        args = ["log", _LOG_FORMAT]
        if limit is not None:
            args.append(f"-{limit}")
        output = self._run(*args)
        commits = []
        for line in output.splitlines():
            commit_hash, sep, message = line.partition("|")
            if sep:
                commits.append((commit_hash, message))
        return commits

    def checkout(self, hash_: str) -> None:
        """Check out a commit, stashing local changes first."""
        if self.is_dirty():
            self._run("stash", "push", "-m", "Auto-stash before rollback")
        self._run("checkout", hash_)
        console.success(f"Checked out generation: {hash_}")

    def get_diff(self, from_hash: str, to_hash: str) -> str:
        return self._run("diff", f"{from_hash}..{to_hash}")

    def is_dirty(self) -> bool:
        return bool(self._run("status", "--porcelain").strip())


def repo() -> GitRepo:
    """The repository at the state directory."""
    return GitRepo()