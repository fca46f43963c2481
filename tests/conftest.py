"""Shared fixtures for the alert tooling tests."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from src.contracts.alert import AlertRecord
from src.contracts.statistics import DurationStatistics

# ── Helper: create AlertRecord with sensible (valid) defaults ───────────


def make_alert(
    *,
    name: str | None = "PrintParcel - DPD - Average Duration",
    description: str | None = "Label printing is slow",
    nrql_query: str | None = (
        "SELECT average(duration) FROM Transaction WHERE CarrierName = 'DPD' FACET host"
    ),
    runbook_url: str | None = None,
    severity: str | None = "CRITICAL",
    enabled: bool | None = True,
    aggregation_method: str | None = "event_flow",
    aggregation_window: int | None = 60,
    aggregation_delay: int | None = 120,
    critical_operator: str | None = "above",
    critical_threshold: float | None = 5.5,
    critical_threshold_duration: int | None = 300,
    critical_threshold_occurrences: str | None = "all",
    expiration_duration: int | None = None,
    close_violations_on_expiration: bool | None = None,
    additional_fields: dict[str, str] | None = None,
) -> AlertRecord:
    return AlertRecord(
        name=name,
        description=description,
        nrql_query=nrql_query,
        runbook_url=runbook_url,
        severity=severity,
        enabled=enabled,
        aggregation_method=aggregation_method,
        aggregation_window=aggregation_window,
        aggregation_delay=aggregation_delay,
        critical_operator=critical_operator,
        critical_threshold=critical_threshold,
        critical_threshold_duration=critical_threshold_duration,
        critical_threshold_occurrences=critical_threshold_occurrences,
        expiration_duration=expiration_duration,
        close_violations_on_expiration=close_violations_on_expiration,
        additional_fields=dict(additional_fields or {}),
    )


def make_stats(average: float = 10.0, stddev: float = 1.0, count: int = 100) -> DurationStatistics:
    return DurationStatistics(average_duration=average, standard_deviation=stddev, sample_count=count)


# ── Sample documents ─────────────────────────────────────────────────────

SAMPLE_TFVARS = """\
# Production alerts for the DPD stack
stack_name = "dpd"
tags = {
  team = "carriers" # owning team
}

nrql_alerts = [
  {
    name        = "PrintParcel - DPD - Average Duration"
    description = "Label printing is slow"
    nrql_query  = "SELECT average(duration) FROM Transaction WHERE CarrierName = 'DPD' FACET host"
    severity    = "CRITICAL"
    enabled     = true
    aggregation_method = "event_flow"
    aggregation_window = 60
    aggregation_delay  = 120
    critical_operator  = "above"
    critical_threshold = 5.50
    critical_threshold_duration    = 300
    critical_threshold_occurrences = "all"
    close_violations_on_expiration = false
    labels = { priority = "p1", "owner" = "team-a" } // nested map
  },
  # legacy alert kept for reference
  {
    name       = "DM Allocation <DPD Poland API> (764) Error Percentage"
    nrql_query = "SELECT percentage(count(*), WHERE error IS true) FROM Transaction WHERE carrierId = 764"
    severity   = "WARNING"
    enabled    = false
    aggregation_method = "cadence"
    critical_operator  = "above"
    critical_threshold = 10
    critical_threshold_occurrences = "at_least_once"
    channels = ["slack", "email"]
  }
]

other_setting = 42
"""


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """Working tree with a .git directory checked out on ``main``."""
    root = tmp_path / "repo"
    (root / ".git").mkdir(parents=True)
    (root / ".git" / "HEAD").write_text("ref: refs/heads/main\n", encoding="utf-8")
    return root


class FakeRunner:
    """In-memory GitRunner recording every call."""

    def __init__(self, branches: list[str] | None = None, succeed: bool = True) -> None:
        self.branches = branches
        self.succeed = succeed
        self.calls: list[tuple] = []

    def list_branches(self, root: Path) -> list[str] | None:
        self.calls.append(("list", root))
        return None if self.branches is None else list(self.branches)

    def checkout(self, root: Path, branch: str) -> bool:
        self.calls.append(("checkout", root, branch))
        return self.succeed

    def create_branch(self, root: Path, branch: str, base: str) -> bool:
        self.calls.append(("create", root, branch, base))
        return self.succeed


class DictSettings:
    """SettingsStore backed by a plain dict."""

    def __init__(self, **values: str) -> None:
        self.values = dict(values)

    def get_setting(self, key: str) -> str:
        return self.values.get(key, "")

    def set_setting(self, key: str, value: str) -> None:
        self.values[key] = value


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """setup_logging() replaces root handlers; put pytest's back afterwards."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
