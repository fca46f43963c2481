"""Duration statistics consumed by the threshold recommender."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class DurationStatistics:
    """Average and spread of a carrier's label-printing duration, in seconds."""

    average_duration: float
    standard_deviation: float
    sample_count: int = 0
