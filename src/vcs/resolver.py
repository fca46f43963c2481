"""Repository state — git root and current branch without running git.

Read path (``find_root``, ``current_ref``) only looks at files:

  <root>/.git/HEAD          "ref: refs/heads/<name>"  → <name>
                            40 hex chars              → "detached HEAD"
  <root>/.git/packed-refs   "<sha> refs/heads/<name>" → <name> (fallback)

It is best-effort: any I/O problem yields None so branch display never
breaks the caller.  Write path (list, checkout, create) goes through a
:class:`GitRunner` and is serialised per repository root.
"""

from __future__ import annotations

import logging
import os
import re
import threading
from pathlib import Path

from src.contracts.repository import DETACHED_HEAD, RepositoryState
from src.vcs.runner import GitRunner, SubprocessGitRunner

log = logging.getLogger(__name__)

MARKER = ".git"
HEAD_FILE = Path(MARKER) / "HEAD"
PACKED_REFS_FILE = Path(MARKER) / "packed-refs"

_SYMREF_PREFIX = "ref: refs/heads/"
_HEADS_PREFIX = "refs/heads/"
_SHA_RX = re.compile(r"[0-9a-fA-F]{40}\Z")

DEFAULT_BASE_BRANCHES = ("main", "master")


def find_root(start_path: str | Path | None = None) -> Path | None:
    """Closest ancestor of *start_path* (itself included) that holds ``.git``.

    A file path starts from its parent directory; ``None`` starts from the
    current working directory.  Returns None at the filesystem root.
    """
    try:
        current = Path(start_path) if start_path is not None else Path.cwd()
        current = current.expanduser().absolute()
        if current.is_file():
            current = current.parent
        while True:
            if (current / MARKER).exists():
                return current
            parent = current.parent
            if parent == current:
                return None
            current = parent
    except OSError as exc:
        log.debug("find_root(%s) failed: %s", start_path, exc)
        return None


def _branch_from_packed_refs(root: Path, head: str) -> str | None:
    path = root / PACKED_REFS_FILE
    if not head or not path.is_file():
        return None
    with path.open("r", encoding="utf-8", errors="replace") as fh:
        for raw in fh:
            line = raw.strip()
            if not line or line.startswith(("#", "^")) or not line.startswith(head):
                continue
            parts = line.split()
            if len(parts) >= 2 and parts[1].startswith(_HEADS_PREFIX):
                return parts[1][len(_HEADS_PREFIX) :]
    return None


def current_ref(root: str | Path) -> str | None:
    """Branch checked out in *root*, ``DETACHED_HEAD``, or None if unknown."""
    root = Path(root)
    try:
        head_path = root / HEAD_FILE
        if not head_path.is_file():
            return None
        head = head_path.read_text(encoding="utf-8", errors="replace").strip()

        if _SHA_RX.match(head):
            return DETACHED_HEAD
        if head.startswith(_SYMREF_PREFIX):
            return head[len(_SYMREF_PREFIX) :]
        return _branch_from_packed_refs(root, head)
    except OSError as exc:
        log.debug("Cannot read HEAD under %s: %s", root, exc)
        return None


def select_default_branch(branches: list[str]) -> str | None:
    """``main`` if present, else ``master``, else None."""
    lowered = {b.lower() for b in branches}
    for candidate in DEFAULT_BASE_BRANCHES:
        if candidate in lowered:
            return candidate
    return None


class RepositoryStateResolver:
    """Repository queries plus runner-backed branch operations."""

    def __init__(self, runner: GitRunner | None = None) -> None:
        self.runner: GitRunner = runner if runner is not None else SubprocessGitRunner()
        self._locks: dict[Path, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, root: Path) -> threading.Lock:
        key = Path(os.path.realpath(root))
        with self._locks_guard:
            return self._locks.setdefault(key, threading.Lock())

    # ── Read path ────────────────────────────────────────────────────────

    def find_root(self, start_path: str | Path | None = None) -> Path | None:
        return find_root(start_path)

    def current_ref(self, root: str | Path) -> str | None:
        return current_ref(root)

    def resolve(self, path: str | Path | None = None) -> RepositoryState | None:
        root = find_root(path)
        if root is None:
            return None
        return RepositoryState(root=root, ref=current_ref(root))

    def current_branch(self, path: str | Path | None = None) -> str | None:
        state = self.resolve(path)
        return state.ref if state else None

    # ── Write path ───────────────────────────────────────────────────────

    def list_branches(self, path: str | Path | None = None) -> list[str]:
        root = find_root(path)
        if root is None:
            return []
        return self.runner.list_branches(root) or []

    def checkout(self, branch: str, path: str | Path | None = None) -> bool:
        root = find_root(path)
        if root is None:
            log.warning("Checkout of '%s' skipped: no repository at %s", branch, path)
            return False
        with self._lock_for(root):
            ok = self.runner.checkout(root, branch)
        log.info("Checkout '%s' in %s: %s", branch, root, "ok" if ok else "failed")
        return ok

    def create_and_checkout(
        self,
        branch: str,
        base: str | None = None,
        path: str | Path | None = None,
    ) -> bool:
        """Create *branch* from *base* (default ``main``/``master``) and switch to it."""
        root = find_root(path)
        if root is None:
            log.warning("Branch '%s' not created: no repository at %s", branch, path)
            return False
        with self._lock_for(root):
            if not base:
                base = select_default_branch(self.runner.list_branches(root) or [])
                if base is None:
                    log.warning("Branch '%s' not created: no main/master in %s", branch, root)
                    return False
            ok = self.runner.create_branch(root, branch, base)
        log.info("Create '%s' from '%s' in %s: %s", branch, base, root, "ok" if ok else "failed")
        return ok
