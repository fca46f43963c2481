"""Repository state as read from on-disk git metadata."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

# Returned instead of a branch name when HEAD points at a commit.
DETACHED_HEAD = "detached HEAD"


@dataclass(slots=True, frozen=True)
class RepositoryState:
    root: Path  # absolute path of the working tree
    ref: str | None  # branch name | DETACHED_HEAD | None (unknown)

    @property
    def is_detached(self) -> bool:
        return self.ref == DETACHED_HEAD
