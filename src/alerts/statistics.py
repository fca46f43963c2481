"""Duration statistics from raw samples.

Input is a CSV export of label-printing calls with at least a carrier column
and a duration column (seconds), e.g.::

    carrier,duration
    DPD,4.21
    DPD,3.97
    GLS,7.10
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

import pandas as pd

from src.contracts.statistics import DurationStatistics

log = logging.getLogger(__name__)


def duration_statistics(durations: Iterable[float]) -> DurationStatistics:
    """Mean and sample standard deviation of *durations*.

    An empty input gives zeros; a single sample has a standard deviation of 0.
    """
    series = pd.Series(list(durations), dtype="float64").dropna()
    if series.empty:
        return DurationStatistics(average_duration=0.0, standard_deviation=0.0, sample_count=0)
    std = float(series.std(ddof=1)) if len(series) > 1 else 0.0
    return DurationStatistics(
        average_duration=float(series.mean()),
        standard_deviation=std,
        sample_count=int(len(series)),
    )


def statistics_by_carrier(
    df: pd.DataFrame,
    carrier_col: str = "carrier",
    duration_col: str = "duration",
) -> dict[str, DurationStatistics]:
    """Group samples by carrier and compute statistics per group."""
    missing = [c for c in (carrier_col, duration_col) if c not in df.columns]
    if missing:
        raise KeyError(f"missing column(s): {', '.join(missing)}")

    data = df[[carrier_col, duration_col]].copy()
    data[duration_col] = pd.to_numeric(data[duration_col], errors="coerce")
    dropped = int(data[duration_col].isna().sum())
    if dropped:
        log.warning("Ignoring %d rows with a non-numeric %s", dropped, duration_col)
    data = data.dropna()

    result: dict[str, DurationStatistics] = {}
    for carrier, group in data.groupby(carrier_col, sort=True):
        result[str(carrier)] = duration_statistics(group[duration_col])
    log.info("Computed duration statistics for %d carriers", len(result))
    return result


def load_duration_statistics(
    path: str | Path,
    carrier_col: str = "carrier",
    duration_col: str = "duration",
) -> dict[str, DurationStatistics]:
    """Read a samples CSV and return statistics keyed by carrier."""
    df = pd.read_csv(path, dtype={carrier_col: str})
    log.debug("Loaded %d duration samples from %s", len(df), path)
    return statistics_by_carrier(df, carrier_col, duration_col)
