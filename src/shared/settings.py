"""YAML-backed user settings (repository path, selected stack)."""

from __future__ import annotations

import logging
from pathlib import Path

from src.shared.config_loader import load_yaml, save_yaml

log = logging.getLogger(__name__)

REPOSITORY_PATH_KEY = "NRAlertsDir"
SELECTED_STACK_KEY = "SelectedStack"

DEFAULT_SETTINGS_PATH = Path.home() / ".config" / "alert-tool" / "settings.yaml"


class YamlSettingsStore:
    """Flat key → string store persisted as a YAML mapping.

    Missing keys read as an empty string.  Every ``set_setting`` writes the
    whole file back.
    """

    def __init__(self, path: str | Path = DEFAULT_SETTINGS_PATH) -> None:
        self.path = Path(path)
        self._values: dict[str, str] = {}
        if self.path.exists():
            raw = load_yaml(self.path)
            self._values = {str(k): "" if v is None else str(v) for k, v in raw.items()}

    def get_setting(self, key: str) -> str:
        return self._values.get(key, "")

    def set_setting(self, key: str, value: str) -> None:
        self._values[key] = value
        save_yaml(self.path, self._values)
        log.debug("Setting '%s' updated in %s", key, self.path)
