"""Завантаження та збереження YAML конфігурацій."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

log = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent.parent / "config" / "alerting.yaml"


def load_yaml(path: str | Path) -> dict[str, Any]:
    """Зчитує YAML файл та повертає його вміст як dict.

    Args:
        path: Шлях до файлу.

    Returns:
        Вміст файлу як словник (порожній для порожнього файлу).

    Raises:
        FileNotFoundError: Якщо файл не знайдено.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config not found: {p}")
    with p.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    log.debug("Loaded config %s (%d top-level keys)", p.name, len(data or {}))
    return data or {}


def save_yaml(path: str | Path, data: dict[str, Any]) -> None:
    """Записує *data* у YAML файл, створюючи батьківські каталоги."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8") as fh:
        yaml.safe_dump(data, fh, default_flow_style=False, sort_keys=True, allow_unicode=True)
    log.debug("Saved config %s (%d top-level keys)", p.name, len(data))


def load_config(path: str | Path | None = None) -> dict[str, Any]:
    """Load the tool config, falling back to the bundled ``config/alerting.yaml``."""
    return load_yaml(path or DEFAULT_CONFIG_PATH)


def get_value(cfg: dict[str, Any], dotted_key: str, default: Any = None) -> Any:
    """Look up ``"a.b.c"`` in nested dicts; *default* when any level is missing."""
    node: Any = cfg
    for part in dotted_key.split("."):
        if not isinstance(node, dict) or part not in node:
            return default
        node = node[part]
    return default if node is None else node
