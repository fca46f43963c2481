"""Mutating git operations, delegated to the ``git`` executable.

Only the exit status decides success.  Failures are logged (stderr included)
and reported as ``False`` / an empty list; nothing is raised to the caller.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Protocol

log = logging.getLogger(__name__)


class GitRunner(Protocol):
    """Narrow capability used by the resolver for list/checkout/create."""

    def list_branches(self, root: Path) -> list[str] | None:
        """Local branch names, or None when listing failed."""
        ...

    def checkout(self, root: Path, branch: str) -> bool: ...

    def create_branch(self, root: Path, branch: str, base: str) -> bool: ...


def parse_branch_listing(output: str) -> list[str]:
    """``git branch`` output → names.

    Strips the ``*`` (current) and ``+`` (checked out in another worktree) markers.
    """
    names: list[str] = []
    for line in output.splitlines():
        name = line.strip().lstrip("*+ ").strip()
        if name:
            names.append(name)
    return names


class SubprocessGitRunner:
    """Runs ``git`` with ``cwd`` set to the repository root."""

    def __init__(self, executable: str = "git", timeout: float | None = None) -> None:
        self.executable = executable
        self.timeout = timeout

    def _run(self, root: Path, *args: str) -> subprocess.CompletedProcess[str] | None:
        command = [self.executable, *args]
        try:
            proc = subprocess.run(
                command,
                cwd=root,
                text=True,
                capture_output=True,
                timeout=self.timeout,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            log.warning("%s failed to run in %s: %s", " ".join(command), root, exc)
            return None
        if proc.returncode != 0:
            detail = proc.stderr.strip() or proc.stdout.strip() or "command failed"
            log.warning("%s exited with %d: %s", " ".join(command), proc.returncode, detail)
        return proc

    def list_branches(self, root: Path) -> list[str] | None:
        proc = self._run(root, "branch")
        if proc is None or proc.returncode != 0:
            return None
        return parse_branch_listing(proc.stdout)

    def checkout(self, root: Path, branch: str) -> bool:
        proc = self._run(root, "checkout", branch)
        return proc is not None and proc.returncode == 0

    def create_branch(self, root: Path, branch: str, base: str) -> bool:
        proc = self._run(root, "checkout", "-b", branch, base)
        return proc is not None and proc.returncode == 0
