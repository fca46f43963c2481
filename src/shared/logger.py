"""Налаштування логування."""

from __future__ import annotations

import logging
import sys

_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """Налаштовує кореневий логер: stderr і, за потреби, файл.

    Args:
        level: Рівень логування (DEBUG, INFO, WARNING, ERROR).
        log_file: Необов'язковий шлях до файлу журналу (дописується).
    """
    numeric = getattr(logging, level.upper(), logging.INFO)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(
        level=numeric,
        format=_FORMAT,
        datefmt="%H:%M:%S",
        handlers=handlers,
        force=True,
    )
