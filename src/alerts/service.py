"""Alert stacks on disk — load, save, and repository checks.

Layout of the alerts repository::

    <NRAlertsDir>/
      .github/  ansible/  metaform/  terraform/     (required top-level folders)
      <stacks_path>/<stack>/auto.tfvars             (one alert list per stack)

The repository path and the selected stack live in the settings store.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from dataclasses import replace
from pathlib import Path
from typing import Any

from src.contracts.alert import AlertRecord
from src.contracts.collaborators import DirectoryLister, SettingsStore
from src.shared.config_loader import get_value
from src.shared.settings import REPOSITORY_PATH_KEY, SELECTED_STACK_KEY
from src.tfvars.codec import DEFAULT_SECTION_KEY, parse_alerts, replace_alerts

log = logging.getLogger(__name__)

DEFAULT_STACKS_PATH = "metaform/mpm/copies/production/prd/eu-west-1"
DEFAULT_FILE_NAME = "auto.tfvars"
DEFAULT_REQUIRED_FOLDERS = (".github", "ansible", "metaform", "terraform")


class LocalDirectoryLister:
    """:class:`DirectoryLister` over the local filesystem."""

    def exists(self, path: str) -> bool:
        return os.path.isdir(path)

    def list_directories(self, path: str) -> list[str]:
        return sorted(entry.name for entry in os.scandir(path) if entry.is_dir())


def _read_text(path: Path) -> str:
    # newline="" keeps CRLF line endings intact
    with path.open("r", encoding="utf-8", newline="") as fh:
        return fh.read()


def clone_alert(alert: AlertRecord) -> AlertRecord:
    """Copy of *alert* named ``"<name> Copy"``, detached from any source block."""
    return replace(
        alert,
        name=f"{alert.name or ''} Copy",
        additional_fields=dict(alert.additional_fields),
        origin=None,
    )


class AlertService:
    """Stack-level operations on the configured alerts repository."""

    def __init__(
        self,
        settings: SettingsStore,
        cfg: dict[str, Any] | None = None,
        directories: DirectoryLister | None = None,
    ) -> None:
        cfg = cfg or {}
        self.settings = settings
        self.directories: DirectoryLister = directories or LocalDirectoryLister()
        self.stacks_path: str = get_value(cfg, "alerts.stacks_path", DEFAULT_STACKS_PATH)
        self.file_name: str = get_value(cfg, "alerts.file_name", DEFAULT_FILE_NAME)
        self.section_key: str = get_value(cfg, "alerts.section_key", DEFAULT_SECTION_KEY)
        self.required_folders: tuple[str, ...] = tuple(
            get_value(cfg, "alerts.required_folders", DEFAULT_REQUIRED_FOLDERS)
        )

    # ── Settings-backed properties ───────────────────────────────────────

    @property
    def repository_path(self) -> str:
        return self.settings.get_setting(REPOSITORY_PATH_KEY)

    @repository_path.setter
    def repository_path(self, value: str) -> None:
        self.settings.set_setting(REPOSITORY_PATH_KEY, value)

    @property
    def selected_stack(self) -> str:
        return self.settings.get_setting(SELECTED_STACK_KEY)

    @selected_stack.setter
    def selected_stack(self, value: str) -> None:
        self.settings.set_setting(SELECTED_STACK_KEY, value)

    # ── Stacks ───────────────────────────────────────────────────────────

    def stack_file(self, stack: str) -> Path:
        return Path(self.repository_path, self.stacks_path, stack, self.file_name)

    def list_stacks(self) -> list[str]:
        """Stack directory names, or an empty list when nothing is configured."""
        if not self.repository_path:
            return []
        path = os.path.join(self.repository_path, self.stacks_path)
        if not self.directories.exists(path):
            log.warning("Stacks directory does not exist: %s", path)
            return []
        return self.directories.list_directories(path)

    def load_alerts(self, stack: str) -> list[AlertRecord]:
        """Alerts of *stack*; empty when the stack has no tfvars file."""
        path = self.stack_file(stack)
        if not path.is_file():
            log.info("No %s for stack '%s'", self.file_name, stack)
            return []
        alerts = parse_alerts(_read_text(path), self.section_key)
        log.info("Loaded %d alerts from stack '%s'", len(alerts), stack)
        return alerts

    def save_alerts(self, stack: str, alerts: Sequence[AlertRecord], create: bool = False) -> None:
        """Rewrite the alert list of *stack* in place, keeping the rest of the file."""
        path = self.stack_file(stack)
        try:
            document = _read_text(path) if path.exists() else ""
            updated = replace_alerts(document, alerts, self.section_key, create=create)
            if updated == document:
                log.info("Stack '%s' unchanged, nothing written", stack)
                return
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("w", encoding="utf-8", newline="") as fh:
                fh.write(updated)
        except OSError:
            log.exception("Failed to save alerts of stack '%s' to %s", stack, path)
            raise
        log.info("Saved %d alerts to stack '%s'", len(alerts), stack)

    # ── Repository layout ────────────────────────────────────────────────

    def validate_repository(self, folder_path: str) -> tuple[bool, list[str]]:
        """Check that *folder_path* holds every required top-level folder.

        Returns:
            (ok, missing folder names).  An unreadable path misses all of them.
        """
        try:
            existing = set(self.directories.list_directories(folder_path))
        except OSError as exc:
            log.warning("Cannot list %s: %s", folder_path, exc)
            return False, list(self.required_folders)
        missing = [name for name in self.required_folders if name not in existing]
        return not missing, missing
