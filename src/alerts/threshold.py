"""Suggested critical threshold for print-duration alerts.

Methods
───────
  StdDev   proposed = avg + k × max(stddev, minimum_stddev)
           clamped to [minimum_absolute_threshold, maximum_absolute_threshold]
           (each bound optional), never below 3, rounded to the nearest 0.5.

  Formula  proposed = round(avg × formula_multiplier + formula_offset, 2),
           rounded to the nearest 0.5.  Used for any method other than StdDev.

Both roundings use Python's round-half-to-even, so identical inputs always
give identical output.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from src.contracts.enums import ThresholdMethod
from src.contracts.errors import ConfigurationError
from src.contracts.statistics import DurationStatistics
from src.shared.config_loader import get_value

log = logging.getLogger(__name__)

ABSOLUTE_FLOOR = 3.0
DEFAULT_FORMULA_MULTIPLIER = 1.5
DEFAULT_FORMULA_OFFSET = 3.0

_CONFIG_PREFIX = "print_duration.proposed_values"


@dataclass(slots=True)
class ThresholdConfig:
    method: str = ThresholdMethod.FORMULA.value
    stddev_multiplier: float | None = None
    minimum_stddev: float | None = None
    minimum_absolute_threshold: float | None = None
    maximum_absolute_threshold: float | None = None
    formula_multiplier: float | None = None
    formula_offset: float | None = None

    @classmethod
    def from_config(cls, cfg: dict[str, Any]) -> ThresholdConfig:
        """Read ``print_duration.proposed_values`` from the tool config."""

        def number(key: str) -> float | None:
            raw = get_value(cfg, f"{_CONFIG_PREFIX}.{key}")
            if raw is None:
                return None
            try:
                return float(raw)
            except (TypeError, ValueError) as exc:
                raise ConfigurationError(f"'{key}' must be a number, got {raw!r}") from exc

        return cls(
            method=str(get_value(cfg, f"{_CONFIG_PREFIX}.method", ThresholdMethod.FORMULA.value)),
            stddev_multiplier=number("stddev_multiplier"),
            minimum_stddev=number("minimum_stddev"),
            minimum_absolute_threshold=number("minimum_absolute_threshold"),
            maximum_absolute_threshold=number("maximum_absolute_threshold"),
            formula_multiplier=number("formula_multiplier"),
            formula_offset=number("formula_offset"),
        )


def round_to_half(value: float) -> float:
    return round(value * 2.0) / 2.0


def _suggest_stddev(stats: DurationStatistics, config: ThresholdConfig) -> float:
    if config.stddev_multiplier is None:
        raise ConfigurationError("'stddev_multiplier' missing in config.")

    stddev = stats.standard_deviation
    if config.minimum_stddev is not None and stddev < config.minimum_stddev:
        stddev = config.minimum_stddev

    proposed = stats.average_duration + config.stddev_multiplier * stddev

    if config.minimum_absolute_threshold is not None and proposed < config.minimum_absolute_threshold:
        proposed = config.minimum_absolute_threshold
    if config.maximum_absolute_threshold is not None and proposed > config.maximum_absolute_threshold:
        proposed = config.maximum_absolute_threshold

    proposed = max(proposed, ABSOLUTE_FLOOR)
    return round_to_half(proposed)


def _suggest_formula(stats: DurationStatistics, config: ThresholdConfig) -> float:
    multiplier = (
        config.formula_multiplier if config.formula_multiplier is not None else DEFAULT_FORMULA_MULTIPLIER
    )
    offset = config.formula_offset if config.formula_offset is not None else DEFAULT_FORMULA_OFFSET
    proposed = round(stats.average_duration * multiplier + offset, 2)
    return round_to_half(proposed)


def suggest_threshold(stats: DurationStatistics, config: ThresholdConfig) -> float:
    """Suggested ``critical_threshold`` (seconds) for the given statistics.

    Raises:
        ConfigurationError: StdDev method without ``stddev_multiplier``.
    """
    if config.method == ThresholdMethod.STDDEV.value:
        result = _suggest_stddev(stats, config)
    else:
        result = _suggest_formula(stats, config)
    log.debug(
        "Threshold (%s): avg=%.3f stddev=%.3f -> %.1f",
        config.method,
        stats.average_duration,
        stats.standard_deviation,
        result,
    )
    return result
