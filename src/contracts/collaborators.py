"""Interfaces of the host application's services used by the alert tooling."""

from __future__ import annotations

from typing import Protocol


class SettingsStore(Protocol):
    """Key-value store for user settings (repository path, selected stack)."""

    def get_setting(self, key: str) -> str: ...

    def set_setting(self, key: str, value: str) -> None: ...


class DirectoryLister(Protocol):
    """Read-only view of a directory tree."""

    def exists(self, path: str) -> bool: ...

    def list_directories(self, path: str) -> list[str]:
        """Names (not paths) of the immediate subdirectories of *path*."""
        ...
